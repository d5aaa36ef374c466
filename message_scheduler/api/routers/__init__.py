"""
API Routers package.
"""

from . import numbers, schedules, scheduler

__all__ = ["numbers", "schedules", "scheduler"]
