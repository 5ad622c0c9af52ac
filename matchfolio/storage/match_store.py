"""MatchScoreStore: last known score per match id."""

from __future__ import annotations

import json
import threading
from pathlib import Path

import structlog
from pydantic import ValidationError

from matchfolio.schemas.match import MatchScore

logger = structlog.get_logger()


class MatchScoreStore:
    """Thread-safe cache of the latest MatchScore for each match.

    Every upsert is appended to the optional JSON-lines file; reload
    keeps the last snapshot per match.
    """

    def __init__(self, persist_path: Path | None = None) -> None:
        self._lock = threading.RLock()
        self._scores: dict[str, MatchScore] = {}

        self._persist_path = persist_path
        if persist_path and persist_path.exists():
            self._load_from_disk()

    def get(self, match_id: str) -> MatchScore | None:
        with self._lock:
            return self._scores.get(str(match_id))

    def upsert(self, score: MatchScore) -> None:
        with self._lock:
            previous = self._scores.get(score.match_id)
            self._scores[score.match_id] = score
            if self._persist_path:
                self._persist_one(score)

        if previous is None or previous.is_match_complete != score.is_match_complete:
            logger.info(
                "Match score state changed",
                match_id=score.match_id,
                is_match_complete=score.is_match_complete,
            )

    def all(self) -> list[MatchScore]:
        with self._lock:
            return list(self._scores.values())

    def _persist_one(self, score: MatchScore) -> None:
        try:
            self._persist_path.parent.mkdir(parents=True, exist_ok=True)
            with open(self._persist_path, "a") as f:
                f.write(score.model_dump_json() + "\n")
        except OSError as exc:
            logger.error(
                "Failed to persist match score",
                match_id=score.match_id,
                error=str(exc),
            )

    def _load_from_disk(self) -> None:
        try:
            with open(self._persist_path) as f:
                for line in f:
                    line = line.strip()
                    if not line:
                        continue
                    try:
                        score = MatchScore.model_validate_json(line)
                    except ValidationError as exc:
                        logger.warning("Skipping malformed match score line", error=str(exc))
                        continue
                    self._scores[score.match_id] = score
        except OSError as exc:
            logger.error(
                "Failed to load match scores from disk",
                path=str(self._persist_path),
                error=str(exc),
            )
        logger.info("Match scores loaded from disk", count=len(self._scores))
