"""Matchfolio exception hierarchy.

All custom exceptions inherit from MatchfolioError, allowing callers
to catch broad or specific error categories as needed.
"""


class MatchfolioError(Exception):
    """Base exception for all Matchfolio errors."""

    def __init__(self, message: str = "", match_id: str | None = None) -> None:
        self.match_id = match_id
        super().__init__(message)


class ExternalAPIError(MatchfolioError):
    """Raised when an external API call fails.

    Examples: HTTP timeout, rate limiting, authentication failure,
    non-200 status from the score provider.
    """

    def __init__(
        self,
        message: str = "",
        match_id: str | None = None,
        status_code: int | None = None,
        service: str | None = None,
    ) -> None:
        self.status_code = status_code
        self.service = service
        super().__init__(message, match_id)


class DataIngestionError(MatchfolioError):
    """Raised when a score payload cannot be parsed.

    Examples: non-JSON body, list instead of object, missing match id.
    """


class StoreError(MatchfolioError):
    """Raised when the user or match store cannot serve a query."""


class PortfolioError(MatchfolioError):
    """Base for portfolio buy/sell/list failures surfaced to end users."""


class UserNotFoundError(PortfolioError):
    """Raised when no user document exists for the given id."""

    def __init__(self, user_id: str) -> None:
        self.user_id = user_id
        super().__init__(f"User not found: {user_id}")


class PortfolioEntryNotFoundError(PortfolioError):
    """Raised when selling a player the user never bought in that match."""

    def __init__(self, match_id: str, player_id: str) -> None:
        self.player_id = player_id
        super().__init__(
            f"Player {player_id} not found in portfolio for match {match_id}",
            match_id,
        )


class InsufficientHoldingsError(PortfolioError):
    """Raised when a sell asks for more units than the entry holds."""

    def __init__(
        self,
        match_id: str,
        player_id: str,
        requested: float,
        available: float,
    ) -> None:
        self.player_id = player_id
        self.requested = requested
        self.available = available
        super().__init__(
            f"Not enough holdings to sell: requested {requested}, available {available}",
            match_id,
        )


class PortfolioValidationError(PortfolioError):
    """Raised when buy/sell input is missing fields or out of range."""
