"""
HTTP request layer for the message scheduler.
"""
