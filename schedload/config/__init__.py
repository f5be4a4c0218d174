"""
schedload Configuration

Environment-driven driver settings.
"""

from .schemas import DriverSettings
from .service import ENV_PREFIX, get_settings, load_settings

__all__ = [
    "DriverSettings",
    "ENV_PREFIX",
    "get_settings",
    "load_settings",
]
