"""
ExpoScope v1.0.0 - Web exposure scanning engine.
"""

__version__ = "1.0.0"
__author__ = "ExpoScope Team"

from exposcope.core.config import Settings, get_settings
from exposcope.core.logger import get_logger, setup_logging

__all__ = [
    "__version__",
    "Settings",
    "get_settings",
    "get_logger",
    "setup_logging",
]
