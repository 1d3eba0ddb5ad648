"""
API Models - Pydantic schemas for the API
"""

from .schemas import (
    # Jira
    ConnectRequest,
    ConnectResponse,
    AssigneeResponse,
    IssueResponse,
    WorklogRequest,
    WorklogResponse,
    SavedCredentialsResponse,
    # Reminder
    ReminderStatusResponse,
    # Window
    ThemeUpdate,
    # Common
    ErrorResponse,
    SuccessResponse,
)

__all__ = [
    "ConnectRequest",
    "ConnectResponse",
    "AssigneeResponse",
    "IssueResponse",
    "WorklogRequest",
    "WorklogResponse",
    "SavedCredentialsResponse",
    "ReminderStatusResponse",
    "ThemeUpdate",
    "ErrorResponse",
    "SuccessResponse",
]
