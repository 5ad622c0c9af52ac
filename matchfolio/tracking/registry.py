"""TrackingRegistry: one live poll handle per tracked match.

The registry is the only shared mutable state of the tracker. It is
touched both by tracker passes and by the completion path of each poll,
so every insert, removal and snapshot happens under a single lock.
Handles are cancelled after they leave the map, never under the lock.
"""

from __future__ import annotations

import threading
from typing import Any, Protocol

from matchfolio.utils.logging import get_logger

logger = get_logger("registry")


class Cancellable(Protocol):
    def cancel(self) -> Any: ...


class TrackingRegistry:
    """Map of match_id -> cancellable poll handle."""

    def __init__(self) -> None:
        self._lock = threading.RLock()
        self._handles: dict[str, Cancellable] = {}

    def register(self, match_id: str, handle: Cancellable) -> bool:
        """Insert a handle. Returns False, leaving the map untouched, if one exists."""
        with self._lock:
            if match_id in self._handles:
                logger.info("Match already being tracked, skipping", match_id=match_id)
                return False
            self._handles[match_id] = handle
        logger.debug("Match registered", match_id=match_id)
        return True

    def unregister(self, match_id: str, handle: Cancellable | None = None) -> bool:
        """Remove a match and cancel its handle.

        If ``handle`` is given, only that exact handle is removed; a poll
        whose entry has since been replaced leaves the newer one alone.
        Returns True if an entry was removed.
        """
        with self._lock:
            current = self._handles.get(match_id)
            if current is None:
                return False
            if handle is not None and current is not handle:
                return False
            del self._handles[match_id]
        current.cancel()
        return True

    def has(self, match_id: str) -> bool:
        with self._lock:
            return match_id in self._handles

    def get(self, match_id: str) -> Cancellable | None:
        with self._lock:
            return self._handles.get(match_id)

    def size(self) -> int:
        with self._lock:
            return len(self._handles)

    def keys(self) -> list[str]:
        """Snapshot of tracked match ids, safe to iterate while mutating."""
        with self._lock:
            return list(self._handles)

    def clear(self) -> int:
        """Cancel and remove every entry. Returns the number removed."""
        with self._lock:
            removed = list(self._handles.items())
            self._handles.clear()
        for match_id, handle in removed:
            handle.cancel()
            logger.info("Stopped tracking match", match_id=match_id)
        return len(removed)

    def __contains__(self, match_id: object) -> bool:
        return self.has(match_id)  # type: ignore[arg-type]

    def __len__(self) -> int:
        return self.size()
