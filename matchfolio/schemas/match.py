"""Match score snapshot as reported by the score provider."""

from datetime import datetime, timezone
from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel


class MatchScore(BaseModel):
    """Latest known state of one match.

    Only ``is_match_complete`` drives tracking decisions; the remaining
    fields are carried for display. Accepts camelCase or snake_case keys
    and ignores anything else the provider sends.
    """

    model_config = ConfigDict(
        frozen=True,
        alias_generator=to_camel,
        populate_by_name=True,
        extra="ignore",
    )

    match_id: str = Field(...)
    is_match_complete: bool = Field(default=False)
    status: Optional[str] = Field(default=None, description="Provider status text")
    home_team: Optional[str] = None
    away_team: Optional[str] = None
    home_score: Optional[str] = None
    away_score: Optional[str] = None
    updated_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))

    @field_validator("match_id", "home_score", "away_score", mode="before")
    @classmethod
    def _as_str(cls, v: Any) -> Any:
        if isinstance(v, (int, float)) and not isinstance(v, bool):
            return str(v)
        return v
