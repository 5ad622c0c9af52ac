"""Recurring per-match poll tasks on the asyncio event loop."""

from __future__ import annotations

import asyncio
from typing import Awaitable, Callable, Protocol

from matchfolio.utils.logging import get_logger

logger = get_logger("poller")


class PollHandle:
    """Cancellable identity of one recurring poll."""

    def __init__(self, match_id: str, interval: float) -> None:
        self.match_id = match_id
        self.interval = interval
        self._task: asyncio.Task | None = None
        self._cancelled = False
        self._in_tick = False

    @property
    def cancelled(self) -> bool:
        return self._cancelled

    def cancel(self) -> None:
        """Stop future ticks.

        A tick already in flight runs to completion; only a poll waiting
        out its interval is woken and ended early.
        """
        self._cancelled = True
        if self._task is not None and not self._task.done() and not self._in_tick:
            self._task.cancel()

    def __repr__(self) -> str:
        state = "cancelled" if self._cancelled else "active"
        return f"PollHandle(match_id={self.match_id!r}, interval={self.interval}, {state})"


Tick = Callable[[PollHandle], Awaitable[None]]


class PollScheduler(Protocol):
    def schedule_every(self, match_id: str, interval: float, tick: Tick) -> PollHandle: ...


class AsyncioPollScheduler:
    """Runs each poll as its own asyncio task: sleep, tick, repeat.

    Must be called from within a running event loop. Exceptions escaping
    a tick are logged and the poll carries on with the next tick.
    """

    def schedule_every(self, match_id: str, interval: float, tick: Tick) -> PollHandle:
        handle = PollHandle(match_id, interval)
        loop = asyncio.get_running_loop()
        handle._task = loop.create_task(
            self._run(handle, tick),
            name=f"poll-{match_id}",
        )
        logger.debug("Poll scheduled", match_id=match_id, interval_seconds=interval)
        return handle

    @staticmethod
    async def _run(handle: PollHandle, tick: Tick) -> None:
        while not handle.cancelled:
            await asyncio.sleep(handle.interval)
            if handle.cancelled:
                break
            handle._in_tick = True
            try:
                await tick(handle)
            except asyncio.CancelledError:
                raise
            except Exception as e:
                logger.error(
                    "Poll tick raised",
                    match_id=handle.match_id,
                    error=str(e),
                )
            finally:
                handle._in_tick = False
