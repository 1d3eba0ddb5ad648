"""
Commands exposed to the foreground.

Commands owns the SessionState, the ReminderScheduler and the
PresentationBridge; the HTTP API, the CLI and the tray icon all go
through it.
"""

import logging
from typing import Optional, Protocol

from .config import Config
from .errors import InvalidPreference
from .presentation import PresentationBridge, reminder_event, sample_notification_event
from .reminder import ReminderDue, ReminderScheduler, ReminderStatus
from .session import ClientFactory, Session, SessionState
from .tracker_api import (
    Credentials,
    Issue,
    TrackerClient,
    WorklogReceipt,
    WorklogSubmission,
    parse_started,
    validate_duration_spec,
    validate_issue_key,
)

logger = logging.getLogger(__name__)


class PreferenceStore(Protocol):
    def load_saved(self) -> Optional[Credentials]: ...

    def save(self, credentials: Credentials): ...

    def load_theme(self) -> str: ...

    def save_theme(self, theme: str): ...


def client_factory_for(config: Config) -> ClientFactory:
    """依照設定建立 TrackerClient（TLS、timeout、API 版本）"""
    def factory(credentials: Credentials) -> TrackerClient:
        return TrackerClient.from_credentials(
            credentials,
            insecure_tls=config.insecure_tls,
            timeout=config.request_timeout,
            api_version=config.api_version,
        )
    return factory


class Commands:
    def __init__(
        self,
        config: Config,
        store: Optional[PreferenceStore] = None,
        bridge: Optional[PresentationBridge] = None,
        session_state: Optional[SessionState] = None,
        scheduler: Optional[ReminderScheduler] = None,
    ):
        self.config = config
        self.store = store
        self.bridge = bridge or PresentationBridge()
        self.session_state = session_state or SessionState(client_factory_for(config))
        self.scheduler = scheduler or ReminderScheduler(self._on_reminder_due)

    def _on_reminder_due(self, due: ReminderDue):
        self.bridge.dispatch(reminder_event(due.scheduled_for))

    def ensure_reminder(self) -> bool:
        """Arm the daily reminder unless it is already running."""
        return self.scheduler.start(self.config.reminder_hour, self.config.reminder_minute)

    def connect_to_jira(self, base_url: str, access_token: str, identity: Optional[str] = None) -> bool:
        credentials = Credentials(base_url=base_url, secret=access_token, identity=identity)
        self.session_state.connect(credentials)

        if self.store is not None:
            try:
                self.store.save(credentials)
            except OSError as e:
                logger.warning("Could not save credentials: %s", e)

        self.ensure_reminder()
        return True

    def _require_session(self) -> Session:
        return self.session_state.require()

    def get_assigned_issues(self) -> list[Issue]:
        return self._require_session().client.list_assigned_issues()

    def create_worklog(self, issue_key: str, description: str, started: str, time_spent: str) -> WorklogReceipt:
        session = self._require_session()
        submission = WorklogSubmission(
            issue_key=validate_issue_key(issue_key),
            started_at=parse_started(started),
            duration_spec=validate_duration_spec(time_spent),
            description=description,
        )
        return session.client.submit_worklog(submission)

    def disconnect_from_jira(self):
        self.session_state.disconnect()

    def hide_to_tray(self):
        self.bridge.minimize_to_background()

    def show_window(self):
        self.bridge.restore_to_foreground()

    def send_test_notification(self):
        self.bridge.dispatch(sample_notification_event())

    def reminder_status(self) -> ReminderStatus:
        return self.scheduler.status()

    def load_saved_credentials(self) -> Optional[Credentials]:
        if self.store is None:
            return None
        return self.store.load_saved()

    def load_theme(self) -> str:
        if self.store is None:
            return self.config.theme
        return self.store.load_theme()

    def set_theme(self, theme: str):
        if theme not in ("dark", "light"):
            raise InvalidPreference(f"theme must be 'dark' or 'light', got {theme!r}")
        self.config.theme = theme
        if self.store is not None:
            self.store.save_theme(theme)

    def is_connected(self) -> bool:
        return self.session_state.current() is not None

    def shutdown(self):
        self.scheduler.stop()
        self.session_state.disconnect()
