"""Tests for the tracker facade."""

from __future__ import annotations

from datetime import datetime, timedelta

import pytest

from conftest import FakeAutostart, FakeNotifier
from hydra_tracker.errors import OSIntegrationError, PermissionDenied, StoreError, ValidationError
from hydra_tracker.models import Settings
from hydra_tracker.reminders import ReminderScheduler
from hydra_tracker.sync import SettingsSynchronizer
from hydra_tracker.tracker import HydraTracker


@pytest.fixture()
def tracker(store, autostart, fixed_now):
    instance = HydraTracker(store, SettingsSynchronizer(store, autostart), clock=lambda: fixed_now)
    instance.load()
    return instance


@pytest.fixture()
def scheduled_tracker(qt_app, store, autostart, notifier, fixed_now):
    scheduler = ReminderScheduler(notifier)
    instance = HydraTracker(store, SettingsSynchronizer(store, autostart), scheduler, clock=lambda: fixed_now)
    yield instance
    scheduler.shutdown()


# ---- entries + stats ----


def test_add_water_then_daily_stats(tracker, fixed_now):
    tracker.add_water(2000)
    tracker.add_water(2000)
    stats = tracker.get_daily_stats()
    assert (stats.total_ml, stats.percentage, stats.entries_count) == (4000, 100, 2)
    assert stats.date == fixed_now.date()

    tracker.add_water(500)
    stats = tracker.get_daily_stats()
    assert (stats.total_ml, stats.percentage, stats.entries_count) == (4500, pytest.approx(112.5), 3)


@pytest.mark.parametrize("amount", [0, -250, 1.5])
def test_add_water_rejects_invalid_amount(tracker, amount):
    with pytest.raises(ValidationError):
        tracker.add_water(amount)
    assert tracker.today_entries() == []


def test_remove_entry_updates_stats(tracker):
    first = tracker.add_water(750)
    tracker.add_water(250)
    assert tracker.remove_entry(first.id) is True
    assert tracker.get_daily_stats().total_ml == 250
    assert tracker.remove_entry(first.id) is False


def test_today_entries_newest_first(tracker, fixed_now):
    tracker.add_water(100, fixed_now - timedelta(hours=2))
    tracker.add_water(200, fixed_now)
    tracker.add_water(300, fixed_now - timedelta(days=1))
    assert [e.amount_ml for e in tracker.today_entries()] == [200, 100]


def test_monthly_stats_use_current_goal(tracker):
    for day in (1, 2, 3):
        tracker.add_water(2000, datetime(2025, 3, day, 9, 0))
    tracker.add_water(100, datetime(2025, 3, 4, 9, 0))

    stats = tracker.get_monthly_stats(2025, 3)
    assert stats.days_goal_met == 0

    tracker.apply_settings_change(daily_goal_ml=2000)
    stats = tracker.get_monthly_stats(2025, 3)
    assert stats.days_goal_met == 3
    assert stats.current_streak == 0
    assert stats.best_streak == 3
    assert stats.average_ml == pytest.approx(6100 / 4)


def test_yearly_overview(tracker):
    tracker.add_water(1000, datetime(2025, 1, 31, 23, 0))
    tracker.add_water(1500, datetime(2025, 12, 1, 7, 0))
    tracker.add_water(9999, datetime(2026, 1, 1, 7, 0))
    overview = tracker.get_yearly_overview(2025)
    assert [m.total_ml for m in overview if m.total_ml] == [1000, 1500]
    assert overview[11].month == "December"


def test_goal_reached_only_on_crossing(tracker):
    tracker.add_water(3900)
    before = tracker.get_daily_stats()
    tracker.add_water(200)
    after = tracker.get_daily_stats()
    assert tracker.goal_reached(before, after)
    tracker.add_water(200)
    assert not tracker.goal_reached(after, tracker.get_daily_stats())


# ---- settings ----


def test_load_reconciles_autostart(store, fixed_now):
    store.save_settings(Settings(start_with_system=True))
    instance = HydraTracker(store, SettingsSynchronizer(store, FakeAutostart(enabled=False)), clock=lambda: fixed_now)
    settings = instance.load()
    assert settings.start_with_system is False
    assert store.get_settings().start_with_system is False


def test_apply_settings_change_persists(tracker, store):
    result = tracker.apply_settings_change(daily_goal_ml=2500, theme="light")
    assert result.daily_goal_ml == 2500
    assert tracker.settings == result
    assert store.get_settings() == result
    assert tracker.get_daily_stats().goal_ml == 2500


def test_invalid_change_touches_nothing(tracker, store, autostart):
    with pytest.raises(ValidationError):
        tracker.apply_settings_change(daily_goal_ml=0, start_with_system=True)
    assert autostart.calls == []
    assert store.get_settings() == Settings()
    assert tracker.settings == Settings()


def test_autostart_toggle(tracker, store, autostart):
    tracker.apply_settings_change(start_with_system=True)
    assert autostart.enabled is True
    assert store.get_settings().start_with_system is True


def test_autostart_failure_aborts_whole_change(store, fixed_now):
    autostart = FakeAutostart(fail=True)
    instance = HydraTracker(store, SettingsSynchronizer(store, autostart), clock=lambda: fixed_now)
    instance.load()
    with pytest.raises(OSIntegrationError):
        instance.apply_settings_change(start_with_system=True, daily_goal_ml=3000)
    assert store.get_settings() == Settings()
    assert instance.settings == Settings()


# ---- reminders ----


def test_load_arms_scheduler(scheduled_tracker):
    scheduled_tracker.load()
    assert scheduled_tracker.scheduler.is_armed
    assert scheduled_tracker.scheduler.interval_minutes == 60


def test_interval_change_rearms(scheduled_tracker):
    scheduled_tracker.load()
    old = scheduled_tracker.scheduler.recurring
    scheduled_tracker.apply_settings_change(reminder_interval_minutes=15)
    assert not old.active
    assert scheduled_tracker.scheduler.recurring.interval_ms == 15 * 60 * 1000


def test_unrelated_change_keeps_timer(scheduled_tracker):
    scheduled_tracker.load()
    handle = scheduled_tracker.scheduler.recurring
    scheduled_tracker.apply_settings_change(sound_enabled=False)
    assert scheduled_tracker.scheduler.recurring is handle


def test_disable_reminders_disarms(scheduled_tracker):
    scheduled_tracker.load()
    scheduled_tracker.apply_settings_change(reminder_enabled=False)
    assert not scheduled_tracker.scheduler.is_armed


def test_permission_denied_on_load_is_recorded(qt_app, store, autostart, fixed_now):
    scheduler = ReminderScheduler(FakeNotifier(granted=False))
    instance = HydraTracker(store, SettingsSynchronizer(store, autostart), scheduler, clock=lambda: fixed_now)
    instance.load()
    assert isinstance(instance.last_permission_error, PermissionDenied)
    assert not scheduler.is_armed


def test_permission_denied_on_change_still_persists(qt_app, store, autostart, fixed_now):
    store.save_settings(Settings(reminder_enabled=False))
    notifier = FakeNotifier(granted=False)
    scheduler = ReminderScheduler(notifier)
    instance = HydraTracker(store, SettingsSynchronizer(store, autostart), scheduler, clock=lambda: fixed_now)
    instance.load()

    with pytest.raises(PermissionDenied):
        instance.apply_settings_change(reminder_enabled=True)
    assert store.get_settings().reminder_enabled is True
    assert not scheduler.is_armed
    assert notifier.permission_requests == 1

    notifier.grant_on_request = True
    instance.apply_settings_change(reminder_enabled=False)
    instance.apply_settings_change(reminder_enabled=True)
    assert scheduler.is_armed
    assert instance.last_permission_error is None


def test_interval_longer_than_a_day_is_rejected_before_saving(scheduled_tracker, store):
    scheduled_tracker.load()
    handle = scheduled_tracker.scheduler.recurring
    with pytest.raises(ValidationError):
        scheduled_tracker.apply_settings_change(reminder_interval_minutes=40000)
    assert store.get_settings().reminder_interval_minutes == 60
    assert scheduled_tracker.scheduler.recurring is handle
    assert handle.active


def test_load_with_unreadable_settings_uses_defaults(qt_app, store, autostart, notifier, fixed_now,
                                                     monkeypatch):
    store.save_settings(Settings(daily_goal_ml=2500, reminder_enabled=False))
    failure = StoreError("failed to load settings: disk I/O error")

    def broken_get_settings():
        raise failure

    monkeypatch.setattr(store, "get_settings", broken_get_settings)
    scheduler = ReminderScheduler(notifier)
    instance = HydraTracker(store, SettingsSynchronizer(store, autostart), scheduler, clock=lambda: fixed_now)
    try:
        settings = instance.load()
        assert settings == Settings()
        assert instance.last_load_error is failure
        assert scheduler.is_armed
    finally:
        scheduler.shutdown()


def test_successful_load_clears_load_error(tracker):
    tracker.last_load_error = StoreError("stale")
    tracker.load()
    assert tracker.last_load_error is None
