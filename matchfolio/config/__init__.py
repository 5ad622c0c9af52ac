from matchfolio.config.settings import MatchfolioSettings, get_settings, load_settings

__all__ = [
    "MatchfolioSettings",
    "get_settings",
    "load_settings",
]
