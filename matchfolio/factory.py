"""Wires stores, score source, tracker and services from settings."""

from __future__ import annotations

from dataclasses import dataclass

from matchfolio.config.settings import MatchfolioSettings
from matchfolio.infra.score_client import ScoreClient
from matchfolio.services.portfolio_service import PortfolioService
from matchfolio.services.score_source import MatchScoreSource
from matchfolio.storage.match_store import MatchScoreStore
from matchfolio.storage.user_store import UserStore
from matchfolio.tracking.runner import TrackingRunner
from matchfolio.tracking.tracker import MatchTracker


@dataclass
class MatchfolioSystem:
    settings: MatchfolioSettings
    user_store: UserStore
    match_store: MatchScoreStore
    score_source: MatchScoreSource
    tracker: MatchTracker
    runner: TrackingRunner
    portfolio: PortfolioService


def build_system(
    settings: MatchfolioSettings,
    *,
    score_client: ScoreClient | None = None,
) -> MatchfolioSystem:
    """Build every component from settings.

    Stores persist under ``settings.data_dir`` unless persistence is off.
    """
    users_path = None
    matches_path = None
    if settings.persist_storage:
        settings.data_dir.mkdir(parents=True, exist_ok=True)
        users_path = settings.users_path
        matches_path = settings.matches_path

    user_store = UserStore(persist_path=users_path)
    match_store = MatchScoreStore(persist_path=matches_path)

    client = score_client or ScoreClient(
        base_url=settings.score_api_url,
        api_key=settings.score_api_key or None,
        timeout=settings.score_api_timeout,
    )
    score_source = MatchScoreSource(client, match_store)

    tracker = MatchTracker(
        user_store,
        score_source,
        poll_interval=settings.poll_interval_seconds,
    )
    runner = TrackingRunner(tracker, refresh_every=settings.refresh_every)

    return MatchfolioSystem(
        settings=settings,
        user_store=user_store,
        match_store=match_store,
        score_source=score_source,
        tracker=tracker,
        runner=runner,
        portfolio=PortfolioService(user_store),
    )
