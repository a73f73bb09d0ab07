"""
Recurring hydration reminders driven by ``QTimer`` on the Qt event loop.

The scheduler is either disarmed or armed with an interval. Arming needs
notification permission, replaces whatever timers were live and sends one
confirmation notice shortly afterwards. Deliveries are fire-and-forget: a
failed notification is logged and the next firing happens on schedule.
"""

from __future__ import annotations

import logging
from typing import List, Optional, Protocol

from PySide6 import QtCore

from .config import CONFIRMATION_DELAY_MS
from .errors import PermissionDenied, ValidationError
from .formatting import format_interval


logger = logging.getLogger(__name__)

REMINDER_TITLE = "\N{DROPLET} Hydration Reminder"
REMINDER_BODY = "Time to drink some water! Stay hydrated."
CONFIRMATION_BODY = "Reminder system active! You will be notified every {interval}."

MINUTE_MS = 60 * 1000
MAX_TIMER_MS = 2 ** 31 - 1

STATE_DISARMED = "disarmed"
STATE_ARMED = "armed"


class NotificationChannel(Protocol):
    def is_permission_granted(self) -> bool: ...

    def request_permission(self) -> bool: ...

    def send_notification(self, title: str, body: str) -> None: ...


class TimerHandle:
    """Owned reference to a live ``QTimer``; ``cancel()`` is the only way to release it."""

    def __init__(self, timer: QtCore.QTimer) -> None:
        self._timer: Optional[QtCore.QTimer] = timer

    @property
    def active(self) -> bool:
        return self._timer is not None and self._timer.isActive()

    @property
    def interval_ms(self) -> int:
        return self._timer.interval() if self._timer is not None else 0

    @property
    def single_shot(self) -> bool:
        return self._timer is not None and self._timer.isSingleShot()

    def cancel(self) -> None:
        if self._timer is None:
            return
        self._timer.stop()
        self._timer.deleteLater()
        self._timer = None


class ReminderScheduler(QtCore.QObject):
    armedChanged = QtCore.Signal(bool)
    reminderFired = QtCore.Signal()

    def __init__(self, notifier: NotificationChannel, *,
                 confirmation_delay_ms: int = CONFIRMATION_DELAY_MS,
                 minute_ms: int = MINUTE_MS,
                 parent: Optional[QtCore.QObject] = None) -> None:
        super().__init__(parent)
        self.notifier = notifier
        self.confirmation_delay_ms = confirmation_delay_ms
        self.minute_ms = minute_ms
        self.interval_minutes: Optional[int] = None
        self.recurring: Optional[TimerHandle] = None
        self.confirmation: Optional[TimerHandle] = None

    @property
    def state(self) -> str:
        return STATE_ARMED if self.interval_minutes is not None else STATE_DISARMED

    @property
    def is_armed(self) -> bool:
        return self.interval_minutes is not None

    def live_timers(self) -> List[TimerHandle]:
        return [handle for handle in (self.recurring, self.confirmation) if handle is not None and handle.active]

    def configure(self, enabled: bool, interval_minutes: int) -> None:
        """Bring the scheduler in line with the reminder settings."""
        if not enabled:
            self.disarm()
            return
        if self.is_armed and self.interval_minutes == interval_minutes:
            return
        self._ensure_permission()
        self.arm(interval_minutes)

    def _ensure_permission(self) -> None:
        if self.notifier.is_permission_granted():
            return
        logger.info("Requesting notification permission")
        if self.notifier.request_permission():
            return
        self.disarm()
        logger.warning("Notification permission not granted; reminders stay off")
        raise PermissionDenied("notification permission is required for reminders")

    def arm(self, interval_minutes: int) -> None:
        if isinstance(interval_minutes, bool) or not isinstance(interval_minutes, int) or interval_minutes < 1:
            raise ValidationError(f"reminder interval must be at least one minute, got {interval_minutes!r}")
        interval_ms = interval_minutes * self.minute_ms
        if interval_ms > MAX_TIMER_MS:
            raise ValidationError(f"reminder interval of {interval_minutes} minutes is too long for a timer")

        was_armed = self.is_armed
        self._cancel_timers()

        confirmation = QtCore.QTimer(self)
        confirmation.setSingleShot(True)
        confirmation.timeout.connect(lambda: self._send_confirmation(interval_ms))
        confirmation.start(max(0, self.confirmation_delay_ms))
        self.confirmation = TimerHandle(confirmation)

        recurring = QtCore.QTimer(self)
        recurring.setSingleShot(False)
        recurring.timeout.connect(self._send_reminder)
        recurring.start(interval_ms)
        self.recurring = TimerHandle(recurring)

        self.interval_minutes = interval_minutes
        logger.info("Reminders armed every %s", format_interval(interval_ms))
        if not was_armed:
            self.armedChanged.emit(True)

    def disarm(self) -> None:
        was_armed = self.is_armed
        self._cancel_timers()
        self.interval_minutes = None
        if was_armed:
            logger.info("Reminders disarmed")
            self.armedChanged.emit(False)

    def shutdown(self) -> None:
        self.disarm()

    def _cancel_timers(self) -> None:
        for handle in (self.recurring, self.confirmation):
            if handle is not None:
                handle.cancel()
        self.recurring = None
        self.confirmation = None

    def _send_confirmation(self, interval_ms: int) -> None:
        if self.confirmation is not None:
            self.confirmation.cancel()
            self.confirmation = None
        self._deliver(REMINDER_TITLE, CONFIRMATION_BODY.format(interval=format_interval(interval_ms)))

    def _send_reminder(self) -> None:
        logger.debug("Reminder timer fired")
        self._deliver(REMINDER_TITLE, REMINDER_BODY)
        self.reminderFired.emit()

    def _deliver(self, title: str, body: str) -> None:
        try:
            self.notifier.send_notification(title, body)
        except Exception:
            logger.exception("Failed to deliver reminder notification")
