"""UserStore: user documents with their portfolio lists.

Documents are kept as plain dicts exactly as written, so legacy values
(holdings stored as strings, camelCase keys) survive until the user is
saved again. Reads validate into UserPortfolio, which coerces holdings.

Persistence is a JSON-lines log: each save appends the full document
and reload keeps the last document seen per user id.
"""

from __future__ import annotations

import copy
import json
import threading
from pathlib import Path
from typing import Any

import structlog
from pydantic import ValidationError

from matchfolio.exceptions import StoreError
from matchfolio.schemas.portfolio import UserPortfolio, coerce_holdings

logger = structlog.get_logger()


def _user_id_of(doc: dict[str, Any]) -> str | None:
    user_id = doc.get("user_id", doc.get("userId"))
    return str(user_id) if user_id is not None else None


def _entry_is_active(entry: dict[str, Any], match_id: str) -> bool:
    entry_match = entry.get("match_id", entry.get("matchId"))
    holdings = entry.get("current_holdings", entry.get("currentHoldings"))
    return str(entry_match) == match_id and coerce_holdings(holdings) > 0


class UserStore:
    """Thread-safe store of user portfolio documents."""

    def __init__(self, persist_path: Path | None = None) -> None:
        self._lock = threading.RLock()
        self._users: dict[str, dict[str, Any]] = {}

        self._persist_path = persist_path
        if persist_path and persist_path.exists():
            self._load_from_disk()

    # ------------------------------------------------------------------
    # Write
    # ------------------------------------------------------------------

    def create_user(self, user_id: str) -> UserPortfolio:
        """Create an empty user document. Returns the existing one if present."""
        with self._lock:
            if user_id in self._users:
                logger.debug("User already exists", user_id=user_id)
                return self._validate(self._users[user_id])
            user = UserPortfolio(user_id=user_id)
            self._put(user.model_dump(mode="json"))
            logger.info("User created", user_id=user_id)
            return user

    def save_user(self, user: UserPortfolio) -> None:
        """Replace a user's document with the given state."""
        doc = user.model_dump(mode="json")
        with self._lock:
            self._put(doc)
        logger.debug(
            "User saved",
            user_id=user.user_id,
            entries=len(user.portfolio),
        )

    def put_raw(self, doc: dict[str, Any]) -> None:
        """Store a document as-is, e.g. one imported from another system."""
        if _user_id_of(doc) is None:
            raise StoreError("User document has no user_id")
        with self._lock:
            self._put(copy.deepcopy(doc))

    # ------------------------------------------------------------------
    # Read
    # ------------------------------------------------------------------

    def get_user(self, user_id: str) -> UserPortfolio | None:
        with self._lock:
            doc = self._users.get(user_id)
            return self._validate(doc) if doc is not None else None

    def find_users_with_portfolio(self) -> list[UserPortfolio]:
        """Users with at least one portfolio entry, regardless of holdings.

        Documents that fail validation are logged and left out.
        """
        users: list[UserPortfolio] = []
        with self._lock:
            docs = [
                doc for doc in self._users.values()
                if doc.get("portfolio")
            ]
            for doc in docs:
                try:
                    users.append(self._validate(doc))
                except StoreError as exc:
                    logger.warning(
                        "Skipping malformed user document",
                        user_id=_user_id_of(doc),
                        error=str(exc),
                    )
        return users

    def find_users_with_active_holding(self, match_id: str) -> list[UserPortfolio]:
        """Users holding a positive quantity of any player in the match."""
        match_id = str(match_id)
        with self._lock:
            docs = [
                doc for doc in self._users.values()
                if any(_entry_is_active(e, match_id) for e in doc.get("portfolio") or [])
            ]
            return [self._validate(doc) for doc in docs]

    def count(self) -> int:
        with self._lock:
            return len(self._users)

    # ------------------------------------------------------------------
    # Internal
    # ------------------------------------------------------------------

    def _put(self, doc: dict[str, Any]) -> None:
        user_id = _user_id_of(doc)
        self._users[user_id] = doc
        if self._persist_path:
            self._persist_one(doc)

    @staticmethod
    def _validate(doc: dict[str, Any]) -> UserPortfolio:
        try:
            return UserPortfolio.model_validate(copy.deepcopy(doc))
        except ValidationError as exc:
            raise StoreError(
                f"Malformed user document {_user_id_of(doc)}: {exc.error_count()} errors"
            ) from exc

    # ------------------------------------------------------------------
    # Persistence
    # ------------------------------------------------------------------

    def _persist_one(self, doc: dict[str, Any]) -> None:
        """Append a user document to the JSON-lines file."""
        try:
            self._persist_path.parent.mkdir(parents=True, exist_ok=True)
            with open(self._persist_path, "a") as f:
                f.write(json.dumps(doc, default=str) + "\n")
        except OSError as exc:
            logger.error(
                "Failed to persist user",
                user_id=_user_id_of(doc),
                error=str(exc),
            )

    def _load_from_disk(self) -> None:
        """Replay the JSON-lines file; later lines replace earlier ones."""
        lines = 0
        try:
            with open(self._persist_path) as f:
                for line in f:
                    line = line.strip()
                    if not line:
                        continue
                    doc = json.loads(line)
                    user_id = _user_id_of(doc)
                    if user_id is None:
                        continue
                    self._users[user_id] = doc
                    lines += 1
        except (OSError, json.JSONDecodeError) as exc:
            logger.error(
                "Failed to load users from disk",
                path=str(self._persist_path),
                error=str(exc),
            )
        logger.info("Users loaded from disk", lines=lines, users=len(self._users))
