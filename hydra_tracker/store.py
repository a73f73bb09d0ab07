"""SQLite record store for water entries and the settings singleton."""

from __future__ import annotations

import logging
import sqlite3
from contextlib import contextmanager
from datetime import date, datetime
from pathlib import Path
from typing import Iterator, List, Optional, Union

from .errors import StoreError
from .models import DATE_FORMAT, TIMESTAMP_FORMAT, Settings, WaterEntry, validate_amount


logger = logging.getLogger(__name__)

SCHEMA = (
    """
    CREATE TABLE IF NOT EXISTS water_entries (
        id INTEGER PRIMARY KEY AUTOINCREMENT,
        amount_ml INTEGER NOT NULL CHECK (amount_ml > 0),
        timestamp TEXT NOT NULL,
        date TEXT NOT NULL
    )
    """,
    """
    CREATE TABLE IF NOT EXISTS settings (
        id INTEGER PRIMARY KEY CHECK (id = 1),
        daily_goal_ml INTEGER DEFAULT 4000,
        reminder_interval_minutes INTEGER DEFAULT 60,
        reminder_enabled INTEGER DEFAULT 1,
        sound_enabled INTEGER DEFAULT 1,
        start_with_system INTEGER DEFAULT 0,
        theme TEXT DEFAULT 'dark'
    )
    """,
    "INSERT OR IGNORE INTO settings (id) VALUES (1)",
    "CREATE INDEX IF NOT EXISTS idx_date ON water_entries(date)",
)


def _row_to_entry(row: sqlite3.Row) -> WaterEntry:
    return WaterEntry(
        id=int(row["id"]),
        amount_ml=int(row["amount_ml"]),
        timestamp=datetime.strptime(row["timestamp"], TIMESTAMP_FORMAT),
    )


class RecordStore:
    """Owns the single database connection used by this process."""

    def __init__(self, path: Union[str, Path]) -> None:
        self.path = path
        try:
            self._conn = sqlite3.connect(str(path))
            self._conn.row_factory = sqlite3.Row
            with self._conn:
                for statement in SCHEMA:
                    self._conn.execute(statement)
        except sqlite3.Error as exc:
            raise StoreError(f"could not open record store at {path}: {exc}") from exc
        logger.debug("Record store ready at %s", path)

    @contextmanager
    def _transaction(self, action: str) -> Iterator[sqlite3.Connection]:
        try:
            with self._conn:
                yield self._conn
        except sqlite3.Error as exc:
            logger.error("Store failure while trying to %s: %s", action, exc)
            raise StoreError(f"failed to {action}: {exc}") from exc

    def close(self) -> None:
        self._conn.close()

    # ----- entries -----

    def add_entry(self, amount_ml: int, timestamp: Optional[datetime] = None) -> WaterEntry:
        amount_ml = validate_amount(amount_ml)
        stamp = (timestamp or datetime.now()).replace(microsecond=0)
        with self._transaction("add entry") as conn:
            cursor = conn.execute(
                "INSERT INTO water_entries (amount_ml, timestamp, date) VALUES (?, ?, ?)",
                (amount_ml, stamp.strftime(TIMESTAMP_FORMAT), stamp.strftime(DATE_FORMAT)),
            )
            entry_id = cursor.lastrowid
        return WaterEntry(id=int(entry_id), amount_ml=amount_ml, timestamp=stamp)

    def remove_entry(self, entry_id: int) -> bool:
        with self._transaction("remove entry") as conn:
            cursor = conn.execute("DELETE FROM water_entries WHERE id = ?", (entry_id,))
        return cursor.rowcount > 0

    def query_entries(self, day: date) -> List[WaterEntry]:
        """Entries logged on ``day``, newest first."""
        with self._transaction("query entries") as conn:
            rows = conn.execute(
                "SELECT id, amount_ml, timestamp FROM water_entries "
                "WHERE date = ? ORDER BY timestamp DESC, id DESC",
                (day.strftime(DATE_FORMAT),),
            ).fetchall()
        return [_row_to_entry(row) for row in rows]

    def query_range(self, start: date, end: date) -> List[WaterEntry]:
        """Entries with ``start <= date <= end``, oldest first."""
        with self._transaction("query entries") as conn:
            rows = conn.execute(
                "SELECT id, amount_ml, timestamp FROM water_entries "
                "WHERE date BETWEEN ? AND ? ORDER BY timestamp, id",
                (start.strftime(DATE_FORMAT), end.strftime(DATE_FORMAT)),
            ).fetchall()
        return [_row_to_entry(row) for row in rows]

    # ----- settings -----

    def get_settings(self) -> Settings:
        with self._transaction("load settings") as conn:
            row = conn.execute(
                "SELECT daily_goal_ml, reminder_interval_minutes, reminder_enabled, "
                "sound_enabled, start_with_system, theme FROM settings WHERE id = 1"
            ).fetchone()
        if row is None:
            return Settings()
        return Settings.from_dict(dict(row))

    def save_settings(self, settings: Settings) -> None:
        settings.validate()
        with self._transaction("save settings") as conn:
            conn.execute(
                "UPDATE settings SET daily_goal_ml = ?, reminder_interval_minutes = ?, "
                "reminder_enabled = ?, sound_enabled = ?, start_with_system = ?, theme = ? "
                "WHERE id = 1",
                (
                    settings.daily_goal_ml,
                    settings.reminder_interval_minutes,
                    int(settings.reminder_enabled),
                    int(settings.sound_enabled),
                    int(settings.start_with_system),
                    settings.theme,
                ),
            )
