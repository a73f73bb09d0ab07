"""Record types shared by the store, the statistics engine and the shell."""

from __future__ import annotations

from dataclasses import dataclass, fields, replace
from datetime import date, datetime
from typing import Dict, Tuple

from .errors import ValidationError


THEMES = ("dark", "light")
TIMESTAMP_FORMAT = "%Y-%m-%d %H:%M:%S"
DATE_FORMAT = "%Y-%m-%d"

# Settings bounds shared by validation and the settings widgets. The interval
# cap keeps the timer period inside QTimer's signed 32-bit millisecond range.
MIN_GOAL_ML = 1
MAX_GOAL_ML = 50_000
MIN_INTERVAL_MINUTES = 1
MAX_INTERVAL_MINUTES = 24 * 60


# ===== Entries + derived statistics =========================================


@dataclass(frozen=True)
class WaterEntry:
    id: int
    amount_ml: int
    timestamp: datetime

    @property
    def date(self) -> date:
        return self.timestamp.date()

    def to_dict(self) -> Dict[str, object]:
        return {
            "id": self.id,
            "amount_ml": self.amount_ml,
            "timestamp": self.timestamp.strftime(TIMESTAMP_FORMAT),
            "date": self.date.strftime(DATE_FORMAT),
        }


@dataclass(frozen=True)
class DailyStats:
    date: date
    total_ml: int
    goal_ml: int
    entries_count: int
    percentage: float

    @property
    def goal_met(self) -> bool:
        return self.total_ml >= self.goal_ml

    @property
    def progress(self) -> float:
        """Fraction of the goal clamped to [0, 1] for progress widgets."""
        return min(1.0, max(0.0, self.percentage / 100.0))


@dataclass(frozen=True)
class MonthlyStats:
    month: str
    year: int
    days: Tuple[DailyStats, ...] = ()
    total_ml: int = 0
    average_ml: float = 0.0
    days_goal_met: int = 0
    current_streak: int = 0
    best_streak: int = 0


def validate_amount(amount_ml: object) -> int:
    if isinstance(amount_ml, bool) or not isinstance(amount_ml, int):
        raise ValidationError(f"amount must be a whole number of millilitres, got {amount_ml!r}")
    if amount_ml <= 0:
        raise ValidationError(f"amount must be positive, got {amount_ml}")
    return amount_ml


# ===== Settings =============================================================


@dataclass
class Settings:
    daily_goal_ml: int = 4000
    reminder_interval_minutes: int = 60
    reminder_enabled: bool = True
    sound_enabled: bool = True
    start_with_system: bool = False
    theme: str = "dark"  # dark, light

    def to_dict(self) -> Dict[str, object]:
        return {
            "daily_goal_ml": self.daily_goal_ml,
            "reminder_interval_minutes": self.reminder_interval_minutes,
            "reminder_enabled": self.reminder_enabled,
            "sound_enabled": self.sound_enabled,
            "start_with_system": self.start_with_system,
            "theme": self.theme,
        }

    @classmethod
    def from_dict(cls, data: object) -> "Settings":
        settings = cls()
        if not isinstance(data, dict):
            return settings

        def get_int(key: str, default: int) -> int:
            try:
                return int(data.get(key, default))
            except (TypeError, ValueError):
                return default

        settings.daily_goal_ml = get_int("daily_goal_ml", settings.daily_goal_ml)
        settings.reminder_interval_minutes = get_int(
            "reminder_interval_minutes", settings.reminder_interval_minutes
        )
        settings.reminder_enabled = bool(data.get("reminder_enabled", settings.reminder_enabled))
        settings.sound_enabled = bool(data.get("sound_enabled", settings.sound_enabled))
        settings.start_with_system = bool(data.get("start_with_system", settings.start_with_system))
        theme = str(data.get("theme", settings.theme))
        settings.theme = theme if theme in THEMES else settings.theme

        if not MIN_GOAL_ML <= settings.daily_goal_ml <= MAX_GOAL_ML:
            settings.daily_goal_ml = cls.daily_goal_ml
        if not MIN_INTERVAL_MINUTES <= settings.reminder_interval_minutes <= MAX_INTERVAL_MINUTES:
            settings.reminder_interval_minutes = cls.reminder_interval_minutes
        return settings

    def validate(self) -> None:
        for name in ("daily_goal_ml", "reminder_interval_minutes"):
            value = getattr(self, name)
            if isinstance(value, bool) or not isinstance(value, int):
                raise ValidationError(f"{name} must be an integer, got {value!r}")
        if not MIN_GOAL_ML <= self.daily_goal_ml <= MAX_GOAL_ML:
            raise ValidationError(
                f"daily goal must be between {MIN_GOAL_ML} and {MAX_GOAL_ML} ml, got {self.daily_goal_ml}"
            )
        if not MIN_INTERVAL_MINUTES <= self.reminder_interval_minutes <= MAX_INTERVAL_MINUTES:
            raise ValidationError(
                f"reminder interval must be between {MIN_INTERVAL_MINUTES} and {MAX_INTERVAL_MINUTES} minutes, "
                f"got {self.reminder_interval_minutes}"
            )
        for name in ("reminder_enabled", "sound_enabled", "start_with_system"):
            if not isinstance(getattr(self, name), bool):
                raise ValidationError(f"{name} must be true or false")
        if self.theme not in THEMES:
            raise ValidationError(f"theme must be one of {', '.join(THEMES)}, got {self.theme!r}")

    def updated(self, **changes: object) -> "Settings":
        """Return a validated copy with ``changes`` applied; ``self`` is untouched."""
        known = {f.name for f in fields(self)}
        unknown = sorted(set(changes) - known)
        if unknown:
            raise ValidationError(f"unknown setting(s): {', '.join(unknown)}")
        candidate = replace(self, **changes)
        candidate.validate()
        return candidate
