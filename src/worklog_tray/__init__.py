"""Worklog Tray - Log work to Jira from the system tray, with a daily reminder."""

__version__ = "1.0.0"

from .commands import Commands
from .config import Config, CredentialStore
from .presentation import PresentationBridge, UiEvent
from .reminder import ReminderScheduler
from .session import SessionState
from .tracker_api import Credentials, Issue, TrackerClient, WorklogReceipt, WorklogSubmission

__all__ = [
    "Commands",
    "Config",
    "CredentialStore",
    "PresentationBridge",
    "UiEvent",
    "ReminderScheduler",
    "SessionState",
    "Credentials",
    "Issue",
    "TrackerClient",
    "WorklogReceipt",
    "WorklogSubmission",
]
