from matchfolio.services.portfolio_service import PortfolioService
from matchfolio.services.score_source import MatchScoreSource

__all__ = [
    "MatchScoreSource",
    "PortfolioService",
]
