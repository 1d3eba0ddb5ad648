"""
Pydantic schemas for the worklog tray API
"""

from datetime import datetime
from typing import Optional

from pydantic import BaseModel, Field


# ============================================================
# Jira Schemas
# ============================================================

class ConnectRequest(BaseModel):
    """Connect to Jira"""
    base_url: str = Field(min_length=1)
    access_token: str = Field(min_length=1)
    identity: Optional[str] = None  # account email; empty for token-only auth


class ConnectResponse(BaseModel):
    connected: bool
    base_url: str


class AssigneeResponse(BaseModel):
    display_name: str
    email: str = ""


class IssueResponse(BaseModel):
    """Issue assigned to the current user"""
    key: str
    summary: str
    status_name: str
    assignee: Optional[AssigneeResponse] = None


class WorklogRequest(BaseModel):
    """Single worklog to create"""
    issue_key: str = Field(min_length=1)
    description: str = ""
    started: str  # e.g. 2025-12-31T09:00:00.000+0800
    time_spent: str  # e.g. 30m, 2h, 1d


class WorklogResponse(BaseModel):
    id: str
    issue_key: str
    issue_id: str = ""
    started: str = ""
    time_spent: str
    time_spent_seconds: Optional[int] = None


class SavedCredentialsResponse(BaseModel):
    """Last used credentials (token is never returned)"""
    base_url: str = ""
    identity: str = ""
    has_token: bool = False
    theme: str = "dark"


# ============================================================
# Reminder Schemas
# ============================================================

class ReminderStatusResponse(BaseModel):
    state: str  # "idle", "armed", "fired"
    fire_hour: Optional[int] = None
    fire_minute: Optional[int] = None
    next_fire_at: Optional[datetime] = None


# ============================================================
# Window Schemas
# ============================================================

class ThemeUpdate(BaseModel):
    theme: str  # "dark" or "light"


# ============================================================
# Common Schemas
# ============================================================

class ErrorResponse(BaseModel):
    kind: str
    detail: str


class SuccessResponse(BaseModel):
    """Generic success response"""
    success: bool = True
    message: str = ""
