"""Matchfolio utilities: logging setup and shared helpers."""

from matchfolio.utils.logging import configure_logging, get_logger

__all__ = [
    "configure_logging",
    "get_logger",
]
