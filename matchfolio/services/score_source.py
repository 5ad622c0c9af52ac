"""MatchScoreSource: live score fetches backed by the score cache.

fetch_match_score() goes to the provider and records the result;
find_match_by_match_id() answers from the cache without network I/O.
"""

from __future__ import annotations

from typing import Any

import structlog
from pydantic import ValidationError

from matchfolio.exceptions import DataIngestionError
from matchfolio.infra.score_client import ScoreClient
from matchfolio.schemas.match import MatchScore
from matchfolio.storage.match_store import MatchScoreStore

logger = structlog.get_logger()


class MatchScoreSource:
    def __init__(self, client: ScoreClient, match_store: MatchScoreStore) -> None:
        self._client = client
        self._match_store = match_store

    async def fetch_match_score(self, match_id: str) -> MatchScore:
        """Fetch the current score from the provider and cache it.

        Raises:
            ExternalAPIError: Provider unreachable or returned an error.
            DataIngestionError: Payload could not be parsed.
        """
        payload = await self._client.get_match_score(match_id)
        score = self._parse(match_id, payload)
        self._match_store.upsert(score)
        logger.debug(
            "Match score fetched",
            match_id=match_id,
            is_match_complete=score.is_match_complete,
            status=score.status,
        )
        return score

    async def find_match_by_match_id(self, match_id: str) -> MatchScore | None:
        """Last cached score for the match, or None if never fetched."""
        return self._match_store.get(match_id)

    async def close(self) -> None:
        await self._client.close()

    @staticmethod
    def _parse(match_id: str, payload: dict[str, Any]) -> MatchScore:
        data = dict(payload)
        # Providers often omit the id on a per-match endpoint.
        if "match_id" not in data and "matchId" not in data:
            data["match_id"] = match_id
        try:
            return MatchScore.model_validate(data)
        except ValidationError as exc:
            raise DataIngestionError(
                message=f"Invalid score payload: {exc.error_count()} errors",
                match_id=match_id,
            ) from exc
