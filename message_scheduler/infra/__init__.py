"""
Infrastructure module - configuration and logging.
"""

from .config import Settings, get_project_root
from .logging_config import DailyRotatingFileHandler, setup_logging

__all__ = [
    # config
    "Settings",
    "get_project_root",
    # logging
    "DailyRotatingFileHandler",
    "setup_logging",
]
