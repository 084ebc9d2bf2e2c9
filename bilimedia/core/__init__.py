from .config import settings, Settings, validate_settings
from .logging import logger, log_context, setup_logging

__all__ = [
    "settings",
    "Settings",
    "validate_settings",
    "logger",
    "log_context",
    "setup_logging",
]
