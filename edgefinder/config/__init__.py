"""Settings and constants."""
from .settings import EngineSettings, FeedSettings, Settings, get_settings

__all__ = ["EngineSettings", "FeedSettings", "Settings", "get_settings"]
