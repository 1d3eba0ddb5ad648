"""
背景服務與前景視窗之間的橋接

每個 foreground surface 是一個連上本機 API 的 UI (SSE stream)。
事件透過有上限的 queue 送到所有已連接的 surface；沒有可見的 surface 時，
改以系統通知送出。
"""

import logging
import queue
import threading
import uuid
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Optional, Protocol

from .errors import PresentationUnavailable

logger = logging.getLogger(__name__)

DAILY_REMINDER = "daily-reminder"
TEST_NOTIFICATION = "test-notification"
WINDOW_HIDE = "window-hide"
WINDOW_SHOW = "window-show"

SURFACE_QUEUE_SIZE = 100


@dataclass(frozen=True)
class UiEvent:
    name: str
    title: str = ""
    message: str = ""
    payload: dict[str, Any] = field(default_factory=dict)
    created_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))

    def to_dict(self) -> dict[str, Any]:
        return {
            "name": self.name,
            "title": self.title,
            "message": self.message,
            "payload": self.payload,
            "created_at": self.created_at.isoformat(),
        }


class Notifier(Protocol):
    def notify(self, title: str, message: str): ...


class LogNotifier:
    """無 tray 時的通知：只寫入 log"""

    def notify(self, title: str, message: str):
        logger.info("Notification: %s - %s", title, message)


class ForegroundSurface:
    """一個已連接的前景視窗"""

    def __init__(self, maxsize: int = SURFACE_QUEUE_SIZE):
        self.id = uuid.uuid4().hex[:8]
        self.visible = True
        self._queue: queue.Queue[UiEvent] = queue.Queue(maxsize=maxsize)

    def deliver(self, event: UiEvent) -> bool:
        try:
            self._queue.put_nowait(event)
            return True
        except queue.Full:
            logger.warning("Surface %s queue full; dropping %s", self.id, event.name)
            return False

    def next_event(self, timeout: Optional[float] = None) -> Optional[UiEvent]:
        """等待下一個事件；逾時回傳 None"""
        try:
            return self._queue.get(timeout=timeout)
        except queue.Empty:
            return None

    def pending(self) -> int:
        return self._queue.qsize()


class PresentationBridge:
    """
    管理前景 surface 與系統通知

    hide/show 需要至少一個已連接的 surface，否則 raise PresentationUnavailable。
    """

    def __init__(self, notifier: Optional[Notifier] = None):
        self._notifier: Notifier = notifier or LogNotifier()
        self._lock = threading.Lock()
        self._surfaces: list[ForegroundSurface] = []

    def set_notifier(self, notifier: Notifier):
        with self._lock:
            self._notifier = notifier

    def attach(self) -> ForegroundSurface:
        surface = ForegroundSurface()
        with self._lock:
            self._surfaces.append(surface)
        logger.info("Foreground surface %s attached", surface.id)
        return surface

    def detach(self, surface: ForegroundSurface):
        with self._lock:
            if surface in self._surfaces:
                self._surfaces.remove(surface)
                logger.info("Foreground surface %s detached", surface.id)

    def surface_count(self) -> int:
        with self._lock:
            return len(self._surfaces)

    def has_visible_surface(self) -> bool:
        with self._lock:
            return any(s.visible for s in self._surfaces)

    def _set_visibility(self, visible: bool, event_name: str):
        with self._lock:
            surfaces = list(self._surfaces)
            if not surfaces:
                raise PresentationUnavailable("No foreground window is attached")
            for surface in surfaces:
                surface.visible = visible
        for surface in surfaces:
            surface.deliver(UiEvent(event_name))

    def minimize_to_background(self):
        self._set_visibility(False, WINDOW_HIDE)
        logger.info("Foreground hidden; running in background")

    def restore_to_foreground(self):
        self._set_visibility(True, WINDOW_SHOW)
        logger.info("Foreground restored")

    def dispatch(self, event: UiEvent):
        """送出事件；不會阻塞，也不會 raise"""
        with self._lock:
            surfaces = list(self._surfaces)
            notifier = self._notifier

        delivered_visible = False
        for surface in surfaces:
            if surface.deliver(event) and surface.visible:
                delivered_visible = True

        if delivered_visible:
            return
        try:
            notifier.notify(event.title or event.name, event.message)
        except Exception as e:
            logger.error("System notification failed for %s: %s", event.name, e)


def reminder_event(scheduled_for: datetime) -> UiEvent:
    return UiEvent(
        name=DAILY_REMINDER,
        title="Time to log work",
        message="Don't forget to log your work in Jira today.",
        payload={"scheduled_for": scheduled_for.isoformat()},
    )


def sample_notification_event() -> UiEvent:
    return UiEvent(
        name=TEST_NOTIFICATION,
        title="Test notification",
        message="Notifications from the worklog tray are working.",
    )
