"""
每日提醒排程

固定在本地時間 (wall-clock) 的某個時刻觸發一次；跨越日光節約時間切換時
仍以當地時鐘為準，因此那一天的間隔會是 23 或 25 小時。
"""

import enum
import logging
import threading
from dataclasses import dataclass
from datetime import datetime, time, timedelta, tzinfo
from typing import Callable, Optional

logger = logging.getLogger(__name__)

DEFAULT_POLL_SECONDS = 30.0


class SchedulerState(str, enum.Enum):
    IDLE = "idle"
    ARMED = "armed"
    FIRED = "fired"


@dataclass(frozen=True)
class ReminderDue:
    scheduled_for: datetime
    fired_at: datetime


@dataclass
class ReminderStatus:
    state: SchedulerState
    fire_hour: Optional[int]
    fire_minute: Optional[int]
    next_fire_at: Optional[datetime]


def local_now() -> datetime:
    return datetime.now().astimezone()


def _at_wall_clock(day, hour: int, minute: int, zone: Optional[tzinfo]) -> datetime:
    if zone is None:
        # naive -> 系統當地時區，offset 依該日期的 DST 規則決定
        return datetime.combine(day, time(hour, minute)).astimezone()
    return datetime.combine(day, time(hour, minute), tzinfo=zone)


def next_occurrence(now: datetime, hour: int, minute: int, zone: Optional[tzinfo] = None) -> datetime:
    """
    下一個嚴格晚於 now 的 hour:minute（今天尚未經過則為今天，否則明天）

    Args:
        now: 帶時區的目前時間
        zone: 計算 wall-clock 的時區；None 表示系統當地時區
    """
    local = now.astimezone(zone) if zone is not None else now.astimezone()
    target = _at_wall_clock(local.date(), hour, minute, zone)
    if target <= now:
        target = _at_wall_clock(local.date() + timedelta(days=1), hour, minute, zone)
    return target


def validate_fire_time(hour: int, minute: int):
    if not 0 <= hour <= 23:
        raise ValueError(f"reminder hour must be 0-23, got {hour}")
    if not 0 <= minute <= 59:
        raise ValueError(f"reminder minute must be 0-59, got {minute}")


class ReminderScheduler:
    """
    每天在固定的本地時間呼叫一次 on_due

    背景 daemon thread 以 poll_seconds 為單位等待 Event，每次醒來都重新讀取時鐘；
    系統休眠後恢復時，逾期的提醒只觸發一次，下一次排在未來。
    """

    def __init__(
        self,
        on_due: Callable[[ReminderDue], None],
        clock: Callable[[], datetime] = local_now,
        poll_seconds: float = DEFAULT_POLL_SECONDS,
        zone: Optional[tzinfo] = None,
    ):
        self._on_due = on_due
        self._clock = clock
        self._poll_seconds = poll_seconds
        self._zone = zone
        self._lock = threading.RLock()
        self._stop = threading.Event()
        self._thread: Optional[threading.Thread] = None
        self._state = SchedulerState.IDLE
        self._hour: Optional[int] = None
        self._minute: Optional[int] = None
        self._next_fire_at: Optional[datetime] = None

    @property
    def state(self) -> SchedulerState:
        with self._lock:
            return self._state

    @property
    def next_fire_at(self) -> Optional[datetime]:
        with self._lock:
            return self._next_fire_at

    def start(self, hour: int, minute: int) -> bool:
        """啟動排程；已在執行中則不做任何事並回傳 False"""
        validate_fire_time(hour, minute)
        with self._lock:
            if self._state is not SchedulerState.IDLE:
                return False
            self._hour = hour
            self._minute = minute
            now = self._clock()
            self._next_fire_at = next_occurrence(now, hour, minute, self._zone)
            self._state = SchedulerState.ARMED
            self._stop.clear()
            first_wait = min((self._next_fire_at - now).total_seconds(), self._poll_seconds)
            self._thread = threading.Thread(
                target=self._run, args=(first_wait,), name="worklog-reminder", daemon=True
            )
            self._thread.start()
            logger.info("Reminder armed for %s", self._next_fire_at.strftime("%Y-%m-%d %H:%M"))
            return True

    def stop(self):
        with self._lock:
            thread = self._thread
            self._thread = None
            self._stop.set()
            self._state = SchedulerState.IDLE
            self._next_fire_at = None
        if thread and thread.is_alive() and thread is not threading.current_thread():
            thread.join(timeout=2.0)
        logger.info("Reminder scheduler stopped")

    def status(self) -> ReminderStatus:
        with self._lock:
            return ReminderStatus(
                state=self._state,
                fire_hour=self._hour,
                fire_minute=self._minute,
                next_fire_at=self._next_fire_at,
            )

    def seconds_until_due(self) -> Optional[float]:
        with self._lock:
            if self._next_fire_at is None:
                return None
            return (self._next_fire_at - self._clock()).total_seconds()

    def run_pending(self) -> bool:
        """到期則觸發，回傳是否有觸發"""
        with self._lock:
            if self._state is not SchedulerState.ARMED or self._next_fire_at is None:
                return False
            now = self._clock()
            if now < self._next_fire_at:
                return False
            scheduled = self._next_fire_at
            self._state = SchedulerState.FIRED

        event = ReminderDue(scheduled_for=scheduled, fired_at=now)
        if now - scheduled > timedelta(minutes=1):
            logger.info("Reminder for %s fired late (resumed at %s)", scheduled, now)
        try:
            self._on_due(event)
        except Exception as e:
            logger.error("Reminder callback failed: %s", e, exc_info=True)

        with self._lock:
            if self._state is SchedulerState.FIRED:
                base = max(self._clock(), scheduled)
                self._next_fire_at = next_occurrence(base, self._hour, self._minute, self._zone)
                self._state = SchedulerState.ARMED
                logger.info("Reminder re-armed for %s", self._next_fire_at.strftime("%Y-%m-%d %H:%M"))
        return True

    def _run(self, wait: float):
        while not self._stop.wait(wait):
            self.run_pending()
            remaining = self.seconds_until_due()
            if remaining is None:
                return
            wait = max(0.0, min(remaining, self._poll_seconds))
