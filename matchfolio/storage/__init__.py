"""Storage layer: user portfolio documents and last known match scores.

Both stores keep state in memory behind a lock and optionally append
every write to a JSON-lines file that is replayed on start-up.
"""

from matchfolio.storage.match_store import MatchScoreStore
from matchfolio.storage.user_store import UserStore

__all__ = [
    "MatchScoreStore",
    "UserStore",
]
