"""Operations the presentation shell calls into."""

from __future__ import annotations

import logging
from datetime import date, datetime
from typing import Callable, List, Optional

from .errors import PermissionDenied, StoreError
from .models import DailyStats, MonthlyStats, Settings, WaterEntry
from .reminders import ReminderScheduler
from .stats import daily_stats, month_bounds, monthly_stats, yearly_overview
from .store import RecordStore
from .sync import SettingsSynchronizer


logger = logging.getLogger(__name__)

REMINDER_FIELDS = ("reminder_enabled", "reminder_interval_minutes")


class HydraTracker:
    """
    Glue between the record store, the statistics engine, the autostart
    synchronizer and the reminder scheduler.

    ``settings`` is the in-memory copy of the persisted settings row; it is
    only replaced after the store accepted the new value.
    """

    def __init__(self, store: RecordStore, synchronizer: SettingsSynchronizer,
                 scheduler: Optional[ReminderScheduler] = None,
                 clock: Callable[[], datetime] = datetime.now) -> None:
        self.store = store
        self.synchronizer = synchronizer
        self.scheduler = scheduler
        self.clock = clock
        self.settings = Settings()
        self.last_permission_error: Optional[PermissionDenied] = None
        self.last_load_error: Optional[StoreError] = None

    def today(self) -> date:
        return self.clock().date()

    def load(self) -> Settings:
        """Read and reconcile the settings, then start reminders; a broken store falls back to defaults."""
        self.last_load_error = None
        try:
            self.settings = self.synchronizer.reconcile(self.store.get_settings())
        except StoreError as exc:
            logger.error("Could not load settings, using defaults: %s", exc)
            self.last_load_error = exc
            self.settings = Settings()
        try:
            self._configure_scheduler()
        except PermissionDenied as exc:
            logger.warning("Reminders not started: %s", exc)
        return self.settings

    # ===== Entries ==========================================================

    def add_water(self, amount_ml: int, timestamp: Optional[datetime] = None) -> WaterEntry:
        entry = self.store.add_entry(amount_ml, timestamp or self.clock())
        logger.info("Added %d ml (entry %d)", entry.amount_ml, entry.id)
        return entry

    def remove_entry(self, entry_id: int) -> bool:
        removed = self.store.remove_entry(entry_id)
        if not removed:
            logger.info("Entry %d was already gone", entry_id)
        return removed

    def today_entries(self) -> List[WaterEntry]:
        return self.store.query_entries(self.today())

    # ===== Statistics =======================================================

    def get_daily_stats(self, day: Optional[date] = None) -> DailyStats:
        day = day or self.today()
        return daily_stats(self.store.query_entries(day), day, self.settings.daily_goal_ml)

    def get_monthly_stats(self, year: int, month: int) -> MonthlyStats:
        start, end = month_bounds(year, month)
        entries = self.store.query_range(start, end)
        return monthly_stats(entries, year, month, self.settings.daily_goal_ml)

    def get_yearly_overview(self, year: int) -> List[MonthlyStats]:
        entries = self.store.query_range(date(year, 1, 1), date(year, 12, 31))
        return yearly_overview(entries, year, self.settings.daily_goal_ml)

    @staticmethod
    def goal_reached(before: DailyStats, after: DailyStats) -> bool:
        return before.percentage < 100 <= after.percentage

    # ===== Settings =========================================================

    def apply_settings_change(self, **changes: object) -> Settings:
        """
        Validate, persist and apply a partial settings change.

        Nothing is written when validation or the autostart toggle fails. A
        refused notification permission is raised after the new settings
        were saved, with the scheduler left disarmed.
        """
        previous = self.settings
        candidate = previous.updated(**changes)

        if candidate.start_with_system != previous.start_with_system:
            candidate = self.synchronizer.set_start_with_system(candidate, candidate.start_with_system)
        else:
            self.store.save_settings(candidate)
        self.settings = candidate

        if any(getattr(candidate, name) != getattr(previous, name) for name in REMINDER_FIELDS):
            self._configure_scheduler()
        return candidate

    def _configure_scheduler(self) -> None:
        if self.scheduler is None:
            return
        self.last_permission_error = None
        try:
            self.scheduler.configure(self.settings.reminder_enabled, self.settings.reminder_interval_minutes)
        except PermissionDenied as exc:
            self.last_permission_error = exc
            raise

    def shutdown(self) -> None:
        if self.scheduler is not None:
            self.scheduler.shutdown()
        self.store.close()
