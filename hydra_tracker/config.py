"""Storage locations and application-wide constants."""

from __future__ import annotations

import logging
import os
import sys
from pathlib import Path
from typing import Optional

from . import APP_NAME


logger = logging.getLogger(__name__)

DATA_DIR_ENV = "HYDRA_TRACKER_HOME"
DATABASE_NAME = "hydra.db"
LOG_DIR_NAME = "logs"

CONFIRMATION_DELAY_MS = 2000
QUICK_ADD_AMOUNTS = (250, 500, 750, 1000)
TRAY_QUICK_ADD_AMOUNTS = (250, 500)


def platform_data_dir() -> Path:
    if sys.platform == "win32":
        base = os.environ.get("APPDATA")
        return Path(base) / APP_NAME if base else Path.home() / "AppData" / "Roaming" / APP_NAME
    if sys.platform == "darwin":
        return Path.home() / "Library" / "Application Support" / APP_NAME
    base = os.environ.get("XDG_DATA_HOME")
    root = Path(base) if base else Path.home() / ".local" / "share"
    return root / "hydra-tracker"


def determine_storage_root(override: Optional[str] = None) -> Path:
    """Ensure preferred storage directory exists, fallback to HOME if needed."""
    explicit = override or os.environ.get(DATA_DIR_ENV)
    preferred = Path(explicit).expanduser() if explicit else platform_data_dir()
    try:
        preferred.mkdir(parents=True, exist_ok=True)
        return preferred.resolve()
    except OSError as exc:
        fallback = Path.home() / ".hydra-tracker"
        fallback.mkdir(parents=True, exist_ok=True)
        logger.warning("Could not use %s (%s), falling back to %s", preferred, exc, fallback)
        return fallback


def database_path(storage_root: Path) -> Path:
    return storage_root / DATABASE_NAME


def log_dir(storage_root: Path) -> Path:
    return storage_root / LOG_DIR_NAME
