"""Portfolio document schemas.

A user owns a list of PortfolioEntry objects, one per (match, player)
pair. Entries are never deleted: selling down to zero keeps the entry
and its transaction history.

Stored documents may come from older writers that used camelCase keys
or stored holdings as strings, so parsing is lenient on both counts.
"""

import math
from datetime import datetime, timezone
from decimal import Decimal
from enum import Enum
from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel


class TransactionType(str, Enum):
    BUY = "buy"
    SELL = "sell"


def coerce_holdings(value: Any) -> float:
    """Interpret a stored holdings value as a non-negative float.

    Numeric strings are parsed ("3" -> 3.0). Anything that is not a
    finite, non-negative number (None, "", "abc", NaN, booleans,
    negatives) counts as zero. Never raises.
    """
    if value is None or isinstance(value, bool):
        return 0.0
    if isinstance(value, (int, float, Decimal)):
        number = float(value)
    elif isinstance(value, str):
        try:
            number = float(value.strip())
        except ValueError:
            return 0.0
    else:
        return 0.0

    if math.isnan(number) or math.isinf(number) or number < 0:
        return 0.0
    return number


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class Transaction(BaseModel):
    """One buy or sell against a portfolio entry. Append-only."""

    model_config = ConfigDict(
        frozen=True,
        alias_generator=to_camel,
        populate_by_name=True,
        extra="ignore",
    )

    type: TransactionType = Field(..., description="buy or sell")
    quantity: float = Field(..., ge=0.0)
    price: float = Field(..., ge=0.0)
    timestamp: datetime = Field(default_factory=_utcnow)
    auto_sold: bool = Field(default=False, description="Sold by an automatic rule")
    reason: str = Field(default="", description="Free-text reason for auto sells")

    @field_validator("timestamp")
    @classmethod
    def _ensure_timezone(cls, v: datetime) -> datetime:
        if v.tzinfo is None:
            return v.replace(tzinfo=timezone.utc)
        return v


class PortfolioEntry(BaseModel):
    """A user's position in one player within one match."""

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        validate_assignment=True,
        extra="ignore",
    )

    match_id: str = Field(..., description="Match identifier from the score provider")
    player_id: str = Field(...)
    player_name: str = Field(default="")
    team: str = Field(default="")
    initial_price: Optional[float] = Field(default=None, description="Price at first purchase")
    current_holdings: float = Field(default=0.0, ge=0.0)
    transactions: list[Transaction] = Field(default_factory=list)

    @field_validator("match_id", "player_id", mode="before")
    @classmethod
    def _id_as_str(cls, v: Any) -> Any:
        if isinstance(v, (int, float)) and not isinstance(v, bool):
            return str(v)
        return v

    @field_validator("current_holdings", mode="before")
    @classmethod
    def _lenient_holdings(cls, v: Any) -> float:
        return coerce_holdings(v)

    @property
    def is_active(self) -> bool:
        return self.current_holdings > 0

    def matches(self, match_id: Any, player_id: Any) -> bool:
        return self.match_id == str(match_id) and self.player_id == str(player_id)


class UserPortfolio(BaseModel):
    """A user document reduced to the fields the tracker and service need."""

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        extra="ignore",
    )

    user_id: str = Field(...)
    portfolio: list[PortfolioEntry] = Field(default_factory=list)

    def find_entry(self, match_id: Any, player_id: Any) -> PortfolioEntry | None:
        for entry in self.portfolio:
            if entry.matches(match_id, player_id):
                return entry
        return None

    def has_active_holding(self, match_id: Any) -> bool:
        return any(
            entry.match_id == str(match_id) and entry.is_active
            for entry in self.portfolio
        )
