"""
Configuration Management.

Configuration sources (in order of precedence):
1. Environment variables
2. .env file
3. Default values

Example:
    from biteboard.config import get_settings

    settings = get_settings()
    ttl = settings.analysis_cache_ttl_days
"""

from biteboard.config.settings import Settings, get_settings

__all__ = [
    "Settings",
    "get_settings",
]
