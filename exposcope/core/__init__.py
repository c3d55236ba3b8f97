"""Core modules for ExpoScope."""

from exposcope.core.config import Settings, get_settings, load_settings
from exposcope.core.errors import (
    ExpoScopeError,
    InvalidTargetError,
    PrimaryFetchError,
    ScanCancelledError,
)
from exposcope.core.logger import get_logger, setup_logging

__all__ = [
    "Settings",
    "get_settings",
    "load_settings",
    "ExpoScopeError",
    "InvalidTargetError",
    "PrimaryFetchError",
    "ScanCancelledError",
    "get_logger",
    "setup_logging",
]
