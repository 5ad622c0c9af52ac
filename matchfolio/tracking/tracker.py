"""MatchTracker: keeps score polls alive for matches users still hold.

A match is tracked while at least one user holds a positive quantity of
a player in it and the score source has not reported it complete.

Operations:
- start_tracking(): register a poll for every held, incomplete match
- stop_all_tracking(): cancel every poll
- refresh_tracking(): stop all, then start from the current store state
- cleanup_completed_matches(): drop matches the cache reports complete
- cleanup_inactive_matches(): drop matches nobody holds anymore

Failures are logged and never raised to the caller. A store or score
lookup failure aborts the rest of a start pass; during polls and
cleanup a per-match failure leaves that match as it was.
"""

from __future__ import annotations

import functools
from typing import Any, Iterable

from matchfolio.schemas.portfolio import UserPortfolio
from matchfolio.services.score_source import MatchScoreSource
from matchfolio.storage.user_store import UserStore
from matchfolio.tracking.poller import AsyncioPollScheduler, PollHandle, PollScheduler
from matchfolio.tracking.registry import TrackingRegistry
from matchfolio.utils.logging import get_logger

logger = get_logger("tracker")

DEFAULT_POLL_INTERVAL = 10.0  # seconds


def active_match_ids(users: Iterable[UserPortfolio]) -> list[str]:
    """Distinct match ids with at least one positive holding, in first-seen order."""
    seen: dict[str, None] = {}
    for user in users:
        for entry in user.portfolio:
            logger.debug(
                "Portfolio entry holdings",
                user_id=user.user_id,
                match_id=entry.match_id,
                holdings=entry.current_holdings,
            )
            if entry.is_active:
                seen.setdefault(entry.match_id, None)
    return list(seen)


class MatchTracker:
    def __init__(
        self,
        user_store: UserStore,
        score_source: MatchScoreSource,
        *,
        registry: TrackingRegistry | None = None,
        poll_scheduler: PollScheduler | None = None,
        poll_interval: float = DEFAULT_POLL_INTERVAL,
    ) -> None:
        self._user_store = user_store
        self._score_source = score_source
        self._registry = registry if registry is not None else TrackingRegistry()
        self._poll_scheduler = poll_scheduler or AsyncioPollScheduler()
        self._poll_interval = poll_interval

    @property
    def registry(self) -> TrackingRegistry:
        return self._registry

    @property
    def poll_interval(self) -> float:
        return self._poll_interval

    # ------------------------------------------------------------------
    # Start / stop
    # ------------------------------------------------------------------

    async def start_tracking(self) -> list[str]:
        """Register polls for held matches that are not tracked yet.

        Idempotent: matches already in the registry are skipped.

        Returns:
            Match ids newly registered by this pass.
        """
        try:
            users = self._user_store.find_users_with_portfolio()
        except Exception as e:
            logger.error("Error starting portfolio match tracking", error=str(e))
            return []

        logger.info("Found users with portfolios", count=len(users))

        match_ids = active_match_ids(users)
        if not match_ids:
            logger.info("No matches with active holdings found, skipping tracking setup")
            return []

        logger.info("Matches with active holdings", match_ids=match_ids)

        started: list[str] = []
        for match_id in match_ids:
            if self._registry.has(match_id):
                logger.debug("Match already being tracked, skipping", match_id=match_id)
                continue

            try:
                match = await self._score_source.find_match_by_match_id(match_id)
            except Exception as e:
                logger.error(
                    "Error starting portfolio match tracking",
                    match_id=match_id,
                    error=str(e),
                )
                return started

            if match is not None and match.is_match_complete:
                logger.info("Skipping completed match", match_id=match_id)
                continue

            handle = self._poll_scheduler.schedule_every(
                match_id,
                self._poll_interval,
                functools.partial(self._poll_tick, match_id),
            )
            if self._registry.register(match_id, handle):
                started.append(match_id)
                logger.info(
                    "Tracking match",
                    match_id=match_id,
                    interval_seconds=self._poll_interval,
                )
            else:
                # Another pass registered this match while we awaited the lookup.
                handle.cancel()

        logger.info(
            "Now tracking active matches",
            tracked=self._registry.size(),
            started=len(started),
        )
        return started

    def stop_all_tracking(self) -> int:
        """Cancel every poll. Returns the number of matches removed."""
        count = self._registry.clear()
        logger.info("All portfolio match tracking stopped", count=count)
        return count

    async def refresh_tracking(self) -> list[str]:
        """Rebuild the registry from the store's current holdings."""
        logger.info("Starting portfolio tracking refresh")
        self.stop_all_tracking()
        started = await self.start_tracking()
        logger.info("Portfolio tracking refresh completed", started=len(started))
        return started

    # ------------------------------------------------------------------
    # Cleanup passes
    # ------------------------------------------------------------------

    async def cleanup_completed_matches(self) -> int:
        """Unregister tracked matches the score cache reports complete.

        A lookup failure leaves that match registered for the next pass.
        """
        match_ids = self._registry.keys()
        logger.info("Checking matches for completion status", count=len(match_ids))

        removed = 0
        for match_id in match_ids:
            try:
                match = await self._score_source.find_match_by_match_id(match_id)
            except Exception as e:
                logger.error("Error checking match", match_id=match_id, error=str(e))
                continue

            if match is not None and match.is_match_complete:
                if self._registry.unregister(match_id):
                    removed += 1
                    logger.info("Cleaned up completed match", match_id=match_id)

        logger.info("Completed-match cleanup done", removed=removed)
        return removed

    async def cleanup_inactive_matches(self) -> int:
        """Unregister tracked matches no user holds a positive quantity in.

        Match completion is not consulted here.
        """
        match_ids = self._registry.keys()
        logger.info("Checking tracked matches for inactive status", count=len(match_ids))

        removed = 0
        for match_id in match_ids:
            try:
                active = self.has_active_holdings(match_id)
            except Exception as e:
                logger.error(
                    "Error checking holdings for match",
                    match_id=match_id,
                    error=str(e),
                )
                continue

            if not active:
                if self._registry.unregister(match_id):
                    removed += 1
                    logger.info("Stopped tracking match (no active holdings)", match_id=match_id)

        logger.info("Inactive cleanup done", removed=removed)
        return removed

    def has_active_holdings(self, match_id: str) -> bool:
        """True if any user holds a positive quantity in the match.

        Store errors propagate.
        """
        users = self._user_store.find_users_with_active_holding(match_id)
        return len(users) > 0

    # ------------------------------------------------------------------
    # Poll
    # ------------------------------------------------------------------

    async def _poll_tick(self, match_id: str, handle: PollHandle) -> None:
        """One fetch; unregister this poll once the match is complete."""
        try:
            score = await self._score_source.fetch_match_score(match_id)
        except Exception as e:
            logger.error("Error fetching match", match_id=match_id, error=str(e))
            return

        if self._registry.get(match_id) is not handle:
            logger.debug("Discarding score for match no longer tracked by this poll", match_id=match_id)
            return

        if score.is_match_complete:
            if self._registry.unregister(match_id, handle=handle):
                logger.info("Stopped polling match (completed)", match_id=match_id)

    def status(self) -> dict[str, Any]:
        match_ids = self._registry.keys()
        return {
            "tracked_count": len(match_ids),
            "tracked_matches": sorted(match_ids),
            "poll_interval_seconds": self._poll_interval,
        }
