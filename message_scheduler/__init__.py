"""
Scheduled WhatsApp message dispatcher.

Schedules a message for future delivery to individual numbers or a group
and dispatches it at the scheduled time.
"""

__version__ = "1.0.0"
