"""
API Routers
"""

from . import jira, window, reminder

__all__ = ["jira", "window", "reminder"]
