"""TrackingRunner: drives MatchTracker on a fixed cadence.

Start-up registers polls for every held match. Each maintenance cycle
then retires completed and inactive matches and picks up new holdings
with an incremental start pass; every ``refresh_every`` cycles the
registry is rebuilt from scratch instead. Shutdown cancels all polls.
"""

import asyncio
import uuid
from datetime import datetime, timezone
from typing import Any

from matchfolio.tracking.tracker import MatchTracker
from matchfolio.utils.logging import get_logger

logger = get_logger("runner")


class TrackingRunner:
    def __init__(self, tracker: MatchTracker, *, refresh_every: int = 10) -> None:
        if refresh_every < 1:
            raise ValueError("refresh_every must be >= 1")
        self._tracker = tracker
        self._refresh_every = refresh_every
        self._shutdown_event = asyncio.Event()
        self._running = False

    @property
    def is_running(self) -> bool:
        return self._running

    def request_shutdown(self) -> None:
        logger.info("Shutdown requested")
        self._shutdown_event.set()

    async def run_cycle(self, cycle: int) -> dict[str, Any]:
        """Run one maintenance cycle and return a summary."""
        started_at = datetime.now(timezone.utc)

        completed_removed = await self._tracker.cleanup_completed_matches()
        inactive_removed = await self._tracker.cleanup_inactive_matches()

        refreshed = cycle % self._refresh_every == 0
        if refreshed:
            started = await self._tracker.refresh_tracking()
        else:
            started = await self._tracker.start_tracking()

        status = self._tracker.status()
        duration = (datetime.now(timezone.utc) - started_at).total_seconds()
        return {
            "cycle": cycle,
            "completed_removed": completed_removed,
            "inactive_removed": inactive_removed,
            "refreshed": refreshed,
            "started": len(started),
            "tracked": status["tracked_count"],
            "tracked_matches": status["tracked_matches"],
            "duration_seconds": duration,
        }

    async def run_continuous(self, interval_seconds: float = 60.0) -> None:
        """Track until request_shutdown() is called."""
        run_id = uuid.uuid4().hex[:12]
        log = get_logger("runner", correlation_id=run_id).bind(interval=interval_seconds)
        log.info("Starting match tracking")
        self._running = True
        cycle = 0

        try:
            await self._tracker.start_tracking()

            while True:
                try:
                    await asyncio.wait_for(
                        self._shutdown_event.wait(),
                        timeout=interval_seconds,
                    )
                    break  # Shutdown requested
                except asyncio.TimeoutError:
                    pass  # Timeout = next cycle

                cycle += 1
                try:
                    summary = await self.run_cycle(cycle)
                    log.info("Tracking cycle complete", **summary)
                except Exception as e:
                    log.error("Tracking cycle failed", cycle=cycle, error=str(e))

        finally:
            self._tracker.stop_all_tracking()
            self._running = False
            log.info("Match tracking stopped", total_cycles=cycle)
