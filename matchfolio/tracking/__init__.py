"""Match tracking: registry of live score polls and the passes that manage it."""

from matchfolio.tracking.poller import AsyncioPollScheduler, PollHandle, PollScheduler
from matchfolio.tracking.registry import TrackingRegistry
from matchfolio.tracking.runner import TrackingRunner
from matchfolio.tracking.tracker import MatchTracker, active_match_ids

__all__ = [
    "AsyncioPollScheduler",
    "MatchTracker",
    "PollHandle",
    "PollScheduler",
    "TrackingRegistry",
    "TrackingRunner",
    "active_match_ids",
]
