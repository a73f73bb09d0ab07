"""Keep the persisted start-with-system flag in step with the OS."""

from __future__ import annotations

import logging
from dataclasses import replace

from .autostart import Autostart
from .errors import OSIntegrationError
from .models import Settings
from .store import RecordStore


logger = logging.getLogger(__name__)


class SettingsSynchronizer:
    def __init__(self, store: RecordStore, autostart: Autostart) -> None:
        self.store = store
        self.autostart = autostart

    def reconcile(self, settings: Settings) -> Settings:
        """
        Overwrite ``start_with_system`` with the OS registration state.

        The OS is authoritative here: a registration removed by an uninstaller
        or another tool wins over what was persisted. The correction is saved
        right away. If the OS state cannot be read the persisted value stays.
        """
        try:
            actual = bool(self.autostart.is_enabled())
        except OSError as exc:
            logger.warning("Could not read autostart state, keeping persisted value: %s", exc)
            return settings

        if settings.start_with_system == actual:
            return settings

        logger.info(
            "Autostart flag out of sync (persisted=%s, system=%s); adopting system state",
            settings.start_with_system,
            actual,
        )
        corrected = replace(settings, start_with_system=actual)
        self.store.save_settings(corrected)
        return corrected

    def set_start_with_system(self, settings: Settings, enabled: bool) -> Settings:
        """Change OS registration first, persist only once that succeeded."""
        try:
            self.autostart.set_enabled(enabled)
        except OSIntegrationError as exc:
            logger.error("Failed to %s autostart: %s", "enable" if enabled else "disable", exc)
            raise

        updated = replace(settings, start_with_system=enabled)
        self.store.save_settings(updated)
        logger.info("Autostart %s", "enabled" if enabled else "disabled")
        return updated
