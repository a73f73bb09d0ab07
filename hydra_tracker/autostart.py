"""Start-with-system registration for Windows, Linux desktops and macOS."""

from __future__ import annotations

import logging
import os
import plistlib
import subprocess
import sys
from pathlib import Path
from typing import List, Optional

from . import APP_NAME
from .errors import OSIntegrationError


logger = logging.getLogger(__name__)

RUN_REGISTRY_PATH = r"Software\Microsoft\Windows\CurrentVersion\Run"
HIDDEN_FLAG = "--hidden"
LAUNCH_AGENT_LABEL = "com.hydra.tracker"


def get_launch_arguments() -> List[str]:
    """Command line that restarts this application minimised to the tray."""
    if getattr(sys, "frozen", False):
        return [str(Path(sys.executable).resolve()), HIDDEN_FLAG]
    python = Path(sys.executable).resolve()
    return [str(python), "-m", "hydra_tracker", HIDDEN_FLAG]


def get_launch_command() -> str:
    return subprocess.list2cmdline(get_launch_arguments())


class Autostart:
    """OS collaborator: report and change autostart registration."""

    def is_enabled(self) -> bool:
        raise NotImplementedError

    def enable(self) -> None:
        raise NotImplementedError

    def disable(self) -> None:
        raise NotImplementedError

    def set_enabled(self, enabled: bool) -> None:
        if enabled:
            self.enable()
        else:
            self.disable()


class WindowsRegistryAutostart(Autostart):
    """Value under ``HKCU\\...\\CurrentVersion\\Run``."""

    def __init__(self, value_name: str = APP_NAME) -> None:
        self.value_name = value_name

    def is_enabled(self) -> bool:
        import winreg

        command = get_launch_command()
        try:
            with winreg.OpenKey(winreg.HKEY_CURRENT_USER, RUN_REGISTRY_PATH, 0, winreg.KEY_READ) as key:
                value, _ = winreg.QueryValueEx(key, self.value_name)
                return value == command
        except OSError:
            return False

    def _write(self, enabled: bool) -> None:
        import winreg

        command = get_launch_command()
        try:
            key = winreg.OpenKey(winreg.HKEY_CURRENT_USER, RUN_REGISTRY_PATH, 0, winreg.KEY_SET_VALUE)
        except FileNotFoundError:
            key = winreg.CreateKey(winreg.HKEY_CURRENT_USER, RUN_REGISTRY_PATH)

        with key:
            try:
                if enabled:
                    winreg.SetValueEx(key, self.value_name, 0, winreg.REG_SZ, command)
                else:
                    winreg.DeleteValue(key, self.value_name)
            except FileNotFoundError:
                pass

    def enable(self) -> None:
        try:
            self._write(True)
        except OSError as exc:
            raise OSIntegrationError(f"failed to update autostart registry: {exc}") from exc

    def disable(self) -> None:
        try:
            self._write(False)
        except OSError as exc:
            raise OSIntegrationError(f"failed to update autostart registry: {exc}") from exc


class XdgAutostart(Autostart):
    """``.desktop`` file in the freedesktop autostart directory."""

    def __init__(self, autostart_dir: Optional[Path] = None) -> None:
        if autostart_dir is None:
            config_home = os.environ.get("XDG_CONFIG_HOME")
            base = Path(config_home) if config_home else Path.home() / ".config"
            autostart_dir = base / "autostart"
        self.entry_path = Path(autostart_dir) / "hydra-tracker.desktop"

    def desktop_entry(self) -> str:
        return "\n".join(
            [
                "[Desktop Entry]",
                "Type=Application",
                f"Name={APP_NAME}",
                "Comment=Water intake tracker",
                f"Exec={get_launch_command()}",
                "Terminal=false",
                "X-GNOME-Autostart-enabled=true",
                "",
            ]
        )

    def is_enabled(self) -> bool:
        try:
            text = self.entry_path.read_text(encoding="utf-8")
        except OSError:
            return False
        return "X-GNOME-Autostart-enabled=false" not in text and "Hidden=true" not in text

    def enable(self) -> None:
        try:
            self.entry_path.parent.mkdir(parents=True, exist_ok=True)
            self.entry_path.write_text(self.desktop_entry(), encoding="utf-8")
        except OSError as exc:
            raise OSIntegrationError(f"failed to write {self.entry_path}: {exc}") from exc

    def disable(self) -> None:
        try:
            self.entry_path.unlink()
        except FileNotFoundError:
            pass
        except OSError as exc:
            raise OSIntegrationError(f"failed to remove {self.entry_path}: {exc}") from exc


class LaunchAgentAutostart(Autostart):
    """Per-user LaunchAgent property list on macOS."""

    def __init__(self, agents_dir: Optional[Path] = None) -> None:
        agents_dir = agents_dir or Path.home() / "Library" / "LaunchAgents"
        self.plist_path = Path(agents_dir) / f"{LAUNCH_AGENT_LABEL}.plist"

    def is_enabled(self) -> bool:
        try:
            with self.plist_path.open("rb") as handle:
                data = plistlib.load(handle)
        except (OSError, plistlib.InvalidFileException):
            return False
        return bool(data.get("RunAtLoad", False))

    def enable(self) -> None:
        payload = {
            "Label": LAUNCH_AGENT_LABEL,
            "ProgramArguments": get_launch_arguments(),
            "RunAtLoad": True,
        }
        try:
            self.plist_path.parent.mkdir(parents=True, exist_ok=True)
            with self.plist_path.open("wb") as handle:
                plistlib.dump(payload, handle)
        except OSError as exc:
            raise OSIntegrationError(f"failed to write {self.plist_path}: {exc}") from exc

    def disable(self) -> None:
        try:
            self.plist_path.unlink()
        except FileNotFoundError:
            pass
        except OSError as exc:
            raise OSIntegrationError(f"failed to remove {self.plist_path}: {exc}") from exc


def for_platform(platform: Optional[str] = None) -> Autostart:
    platform = platform or sys.platform
    if platform == "win32":
        return WindowsRegistryAutostart()
    if platform == "darwin":
        return LaunchAgentAutostart()
    return XdgAutostart()
