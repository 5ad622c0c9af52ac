from matchfolio.infra.score_client import ScoreClient

__all__ = [
    "ScoreClient",
]
