"""Shared test fixtures for Matchfolio tests.

Provides in-memory stores, a score source backed by a mocked provider
client, and a manual poll scheduler so tracker tests never wait on a
real clock.
"""

from typing import Any
from unittest.mock import AsyncMock

import pytest

from matchfolio.infra.score_client import ScoreClient
from matchfolio.services.score_source import MatchScoreSource
from matchfolio.storage.match_store import MatchScoreStore
from matchfolio.storage.user_store import UserStore
from matchfolio.tracking.tracker import MatchTracker
from tests.support.tracking_helpers import ManualPollScheduler


class ProviderStub:
    """Live provider state keyed by match id: a payload dict or an exception."""

    def __init__(self) -> None:
        self.responses: dict[str, Any] = {}
        self.calls: list[str] = []

    async def fetch(self, match_id: str) -> dict[str, Any]:
        self.calls.append(match_id)
        response = self.responses.get(match_id, {"isMatchComplete": False, "status": "LIVE"})
        if isinstance(response, Exception):
            raise response
        return response

    def complete(self, match_id: str) -> None:
        self.responses[match_id] = {"isMatchComplete": True, "status": "FINISHED"}


@pytest.fixture
def user_store() -> UserStore:
    return UserStore()


@pytest.fixture
def match_store() -> MatchScoreStore:
    return MatchScoreStore()


@pytest.fixture
def provider() -> ProviderStub:
    return ProviderStub()


@pytest.fixture
def score_client(provider: ProviderStub) -> AsyncMock:
    client = AsyncMock(spec=ScoreClient)
    client.get_match_score.side_effect = provider.fetch
    return client


@pytest.fixture
def score_source(score_client: AsyncMock, match_store: MatchScoreStore) -> MatchScoreSource:
    return MatchScoreSource(score_client, match_store)


@pytest.fixture
def poller() -> ManualPollScheduler:
    return ManualPollScheduler()


@pytest.fixture
def tracker(
    user_store: UserStore,
    score_source: MatchScoreSource,
    poller: ManualPollScheduler,
) -> MatchTracker:
    return MatchTracker(user_store, score_source, poll_scheduler=poller, poll_interval=10.0)
