"""Tests for the reminder scheduler state machine."""

from __future__ import annotations

import pytest
from PySide6.QtTest import QTest

from conftest import FakeNotifier
from hydra_tracker.errors import PermissionDenied, ValidationError
from hydra_tracker.reminders import (
    CONFIRMATION_BODY,
    REMINDER_BODY,
    REMINDER_TITLE,
    STATE_ARMED,
    STATE_DISARMED,
    ReminderScheduler,
)


@pytest.fixture()
def scheduler(qt_app, notifier):
    instance = ReminderScheduler(notifier, confirmation_delay_ms=2000)
    yield instance
    instance.shutdown()


def _recurring(scheduler):
    return [handle for handle in scheduler.live_timers() if not handle.single_shot]


def test_initially_disarmed(scheduler):
    assert scheduler.state == STATE_DISARMED
    assert scheduler.live_timers() == []


def test_arming_starts_recurring_and_confirmation(scheduler):
    scheduler.configure(True, 45)
    assert scheduler.state == STATE_ARMED
    assert scheduler.interval_minutes == 45
    assert scheduler.recurring.active
    assert scheduler.recurring.interval_ms == 45 * 60 * 1000
    assert scheduler.confirmation.active
    assert scheduler.confirmation.single_shot
    assert scheduler.confirmation.interval_ms == 2000


def test_rearm_with_new_interval_leaves_one_recurring_timer(scheduler):
    scheduler.configure(True, 30)
    old_recurring = scheduler.recurring
    old_confirmation = scheduler.confirmation

    scheduler.configure(True, 10)

    assert not old_recurring.active
    assert not old_confirmation.active
    recurring = _recurring(scheduler)
    assert len(recurring) == 1
    assert recurring[0].interval_ms == 10 * 60 * 1000


def test_same_interval_is_a_no_op(scheduler):
    scheduler.configure(True, 30)
    handle = scheduler.recurring
    scheduler.configure(True, 30)
    assert scheduler.recurring is handle


def test_disarm_cancels_everything(scheduler):
    scheduler.configure(True, 30)
    recurring, confirmation = scheduler.recurring, scheduler.confirmation
    scheduler.configure(False, 30)
    assert scheduler.state == STATE_DISARMED
    assert scheduler.live_timers() == []
    assert not recurring.active
    assert not confirmation.active


def test_armed_changed_signal(scheduler):
    seen = []
    scheduler.armedChanged.connect(seen.append)
    scheduler.configure(True, 30)
    scheduler.configure(True, 20)
    scheduler.configure(False, 20)
    scheduler.disarm()
    assert seen == [True, False]


def test_permission_requested_once_when_missing(qt_app):
    notifier = FakeNotifier(granted=False, grant_on_request=True)
    scheduler = ReminderScheduler(notifier)
    try:
        scheduler.configure(True, 60)
        assert notifier.permission_requests == 1
        assert scheduler.is_armed
    finally:
        scheduler.shutdown()


def test_permission_denied_stays_disarmed(qt_app):
    notifier = FakeNotifier(granted=False, grant_on_request=False)
    scheduler = ReminderScheduler(notifier)
    with pytest.raises(PermissionDenied):
        scheduler.configure(True, 60)
    assert notifier.permission_requests == 1
    assert scheduler.state == STATE_DISARMED
    assert scheduler.live_timers() == []


def test_permission_denied_while_armed_disarms(qt_app):
    notifier = FakeNotifier(granted=True)
    scheduler = ReminderScheduler(notifier)
    scheduler.configure(True, 60)
    notifier.granted = False
    with pytest.raises(PermissionDenied):
        scheduler.configure(True, 15)
    assert scheduler.state == STATE_DISARMED
    assert scheduler.live_timers() == []


def test_invalid_interval_rejected(scheduler):
    with pytest.raises(ValidationError):
        scheduler.arm(0)
    assert scheduler.state == STATE_DISARMED


def test_reminder_delivery(scheduler, notifier):
    fired = []
    scheduler.reminderFired.connect(lambda: fired.append(True))
    scheduler.configure(True, 60)
    scheduler._send_reminder()
    assert notifier.sent == [(REMINDER_TITLE, REMINDER_BODY)]
    assert fired == [True]


def test_confirmation_mentions_interval(scheduler, notifier):
    scheduler.configure(True, 90)
    scheduler._send_confirmation(90 * 60 * 1000)
    assert notifier.sent == [(REMINDER_TITLE, CONFIRMATION_BODY.format(interval="1 hour 30 minutes"))]
    assert scheduler.confirmation is None
    assert scheduler.recurring.active


def test_failed_delivery_keeps_schedule(qt_app):
    notifier = FakeNotifier(fail=True)
    scheduler = ReminderScheduler(notifier)
    try:
        scheduler.configure(True, 5)
        scheduler._send_reminder()
        scheduler._send_reminder()
        assert scheduler.is_armed
        assert scheduler.recurring.active
    finally:
        scheduler.shutdown()


def test_cancel_is_idempotent(scheduler):
    scheduler.configure(True, 5)
    handle = scheduler.recurring
    handle.cancel()
    handle.cancel()
    assert not handle.active
    assert handle.interval_ms == 0


def test_interval_too_long_for_a_timer_keeps_current_schedule(scheduler):
    scheduler.configure(True, 30)
    handle = scheduler.recurring
    with pytest.raises(ValidationError):
        scheduler.configure(True, 40000)
    assert scheduler.interval_minutes == 30
    assert scheduler.recurring is handle
    assert handle.active


def test_rearm_fires_only_on_the_new_interval(qt_app):
    notifier = FakeNotifier()
    # one "minute" is 10 ms here
    scheduler = ReminderScheduler(notifier, confirmation_delay_ms=0, minute_ms=10)
    fired = []
    scheduler.reminderFired.connect(lambda: fired.append(True))
    try:
        scheduler.configure(True, 1)
        QTest.qWait(60)
        assert fired

        del fired[:]
        scheduler.configure(True, 10)
        QTest.qWait(250)

        assert 1 <= len(fired) <= 2
        confirmation = (REMINDER_TITLE, CONFIRMATION_BODY.format(interval="less than a minute"))
        assert notifier.sent.count(confirmation) == 2
    finally:
        scheduler.shutdown()
