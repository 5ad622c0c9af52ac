"""Matchfolio data schemas: portfolio documents and match scores."""

from matchfolio.schemas.match import MatchScore
from matchfolio.schemas.portfolio import (
    PortfolioEntry,
    Transaction,
    TransactionType,
    UserPortfolio,
    coerce_holdings,
)

__all__ = [
    "MatchScore",
    "PortfolioEntry",
    "Transaction",
    "TransactionType",
    "UserPortfolio",
    "coerce_holdings",
]
