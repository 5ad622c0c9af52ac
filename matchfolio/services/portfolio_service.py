"""Portfolio buy / sell / list operations.

Writes go straight to the UserStore. The match tracker does not see
them until its next start or cleanup pass.
"""

from __future__ import annotations

import math
from typing import Any, Optional

import structlog

from matchfolio.exceptions import (
    InsufficientHoldingsError,
    PortfolioEntryNotFoundError,
    PortfolioValidationError,
    UserNotFoundError,
)
from matchfolio.schemas.portfolio import (
    PortfolioEntry,
    Transaction,
    TransactionType,
    UserPortfolio,
)
from matchfolio.storage.user_store import UserStore

logger = structlog.get_logger()


def _require_id(name: str, value: Any) -> str:
    if value is None or str(value).strip() == "":
        raise PortfolioValidationError(f"Missing required field: {name}")
    return str(value)


def _require_number(name: str, value: Any, *, positive: bool) -> float:
    if value is None or isinstance(value, bool):
        raise PortfolioValidationError(f"Missing required field: {name}")
    try:
        number = float(value)
    except (TypeError, ValueError):
        raise PortfolioValidationError(f"{name} must be a number, got {value!r}")
    if math.isnan(number) or math.isinf(number):
        raise PortfolioValidationError(f"{name} must be finite")
    if positive and number <= 0:
        raise PortfolioValidationError(f"{name} must be greater than zero")
    if number < 0:
        raise PortfolioValidationError(f"{name} must not be negative")
    return number


class PortfolioService:
    """Buy, sell and read a user's portfolio."""

    def __init__(self, user_store: UserStore) -> None:
        self._store = user_store

    def _load(self, user_id: str) -> UserPortfolio:
        user = self._store.get_user(user_id)
        if user is None:
            raise UserNotFoundError(user_id)
        return user

    def buy(
        self,
        user_id: str,
        match_id: str,
        player_id: str,
        team: str,
        price: float,
        quantity: float,
        player_name: str = "",
        initial_price: Optional[float] = None,
    ) -> UserPortfolio:
        """Add units of a player to the user's position in a match.

        Creates the (match, player) entry on first purchase; later buys
        append a transaction and increase holdings.

        Raises:
            UserNotFoundError: Unknown user.
            PortfolioValidationError: Missing ids/team or bad price/quantity.
        """
        match_id = _require_id("match_id", match_id)
        player_id = _require_id("player_id", player_id)
        team = _require_id("team", team)
        price = _require_number("price", price, positive=False)
        quantity = _require_number("quantity", quantity, positive=True)

        user = self._load(user_id)
        txn = Transaction(type=TransactionType.BUY, quantity=quantity, price=price)
        entry = user.find_entry(match_id, player_id)

        if entry is not None:
            entry.transactions.append(txn)
            entry.current_holdings = entry.current_holdings + quantity
        else:
            entry = PortfolioEntry(
                match_id=match_id,
                player_id=player_id,
                player_name=player_name or "",
                team=team,
                initial_price=initial_price if initial_price is not None else price,
                current_holdings=quantity,
                transactions=[txn],
            )
            user.portfolio.append(entry)

        self._store.save_user(user)
        logger.info(
            "Portfolio buy recorded",
            user_id=user_id,
            match_id=match_id,
            player_id=player_id,
            quantity=quantity,
            price=price,
            holdings=entry.current_holdings,
        )
        return user

    def sell(
        self,
        user_id: str,
        match_id: str,
        player_id: str,
        price: float,
        quantity: float,
        auto_sold: bool = False,
        reason: str = "",
    ) -> UserPortfolio:
        """Sell units of a player. Holdings never drop below zero.

        Raises:
            UserNotFoundError: Unknown user.
            PortfolioValidationError: Missing ids or bad price/quantity.
            PortfolioEntryNotFoundError: User never bought this player in this match.
            InsufficientHoldingsError: Quantity exceeds current holdings.
        """
        match_id = _require_id("match_id", match_id)
        player_id = _require_id("player_id", player_id)
        price = _require_number("price", price, positive=False)
        quantity = _require_number("quantity", quantity, positive=True)

        user = self._load(user_id)
        entry = user.find_entry(match_id, player_id)
        if entry is None:
            raise PortfolioEntryNotFoundError(match_id, player_id)

        if entry.current_holdings < quantity:
            raise InsufficientHoldingsError(
                match_id, player_id, requested=quantity, available=entry.current_holdings
            )

        entry.transactions.append(
            Transaction(
                type=TransactionType.SELL,
                quantity=quantity,
                price=round(price, 2),
                auto_sold=bool(auto_sold),
                reason=reason or "",
            )
        )
        entry.current_holdings = max(0.0, entry.current_holdings - quantity)

        self._store.save_user(user)
        logger.info(
            "Portfolio sell recorded",
            user_id=user_id,
            match_id=match_id,
            player_id=player_id,
            quantity=quantity,
            price=round(price, 2),
            auto_sold=bool(auto_sold),
            holdings=entry.current_holdings,
        )
        return user

    def get_portfolio(self, user_id: str) -> list[PortfolioEntry]:
        """Entries with each transaction list sorted newest first."""
        user = self._load(user_id)
        for entry in user.portfolio:
            entry.transactions.sort(key=lambda t: t.timestamp, reverse=True)
        return user.portfolio
