"""Qt application bootstrap, tray icon and tray-balloon notifications."""

from __future__ import annotations

import logging
from typing import Callable, List, Optional

from PySide6 import QtCore, QtGui, QtWidgets

from .config import TRAY_QUICK_ADD_AMOUNTS
from .reminders import REMINDER_TITLE, ReminderScheduler
from .tracker import HydraTracker
from .ui import MainWindow


logger = logging.getLogger(__name__)

ACHIEVEMENT_BODY = "Daily goal reached. Achievement unlocked!"


def create_fallback_pixmap(size: int = 120) -> QtGui.QPixmap:
    """Draw a simple water droplet for the tray and window icon."""
    pixmap = QtGui.QPixmap(size, size)
    pixmap.fill(QtCore.Qt.transparent)

    painter = QtGui.QPainter(pixmap)
    painter.setRenderHint(QtGui.QPainter.Antialiasing)

    gradient = QtGui.QLinearGradient(0, 0, 0, size)
    gradient.setColorAt(0.0, QtGui.QColor(54, 178, 255))
    gradient.setColorAt(1.0, QtGui.QColor(28, 120, 240))

    path = QtGui.QPainterPath()
    path.moveTo(size / 2, size * 0.05)
    path.cubicTo(size * 0.1, size * 0.35, size * 0.2, size * 0.75, size / 2, size * 0.95)
    path.cubicTo(size * 0.8, size * 0.75, size * 0.9, size * 0.35, size / 2, size * 0.05)

    painter.fillPath(path, gradient)
    pen = QtGui.QPen(QtGui.QColor(20, 70, 160), 2)
    pen.setCosmetic(True)
    painter.setPen(pen)
    painter.drawPath(path)
    painter.end()

    return pixmap


class TrayNotifier:
    """Notification channel backed by tray balloon messages."""

    def __init__(self, tray: QtWidgets.QSystemTrayIcon, sound_enabled: Callable[[], bool]) -> None:
        self.tray = tray
        self.sound_enabled = sound_enabled

    def is_permission_granted(self) -> bool:
        return QtWidgets.QSystemTrayIcon.isSystemTrayAvailable() and QtWidgets.QSystemTrayIcon.supportsMessages()

    def request_permission(self) -> bool:
        # Desktop trays have no consent prompt; availability is the answer.
        return self.is_permission_granted()

    def send_notification(self, title: str, body: str) -> None:
        if not self.tray.isVisible():
            raise RuntimeError("tray icon is not visible")
        self.tray.showMessage(title, body, QtWidgets.QSystemTrayIcon.Information, 10_000)
        if self.sound_enabled():
            QtWidgets.QApplication.beep()


class TrayController(QtCore.QObject):
    """System-tray icon with quick-add commands and window access."""

    def __init__(self, tracker: HydraTracker, icon: QtGui.QIcon,
                 parent: Optional[QtCore.QObject] = None) -> None:
        super().__init__(parent)
        self.tracker = tracker
        self.window: Optional[MainWindow] = None

        self.tray = QtWidgets.QSystemTrayIcon(icon, parent)
        self.tray.setToolTip("Hydra Tracker")
        self.tray.activated.connect(self._handle_activated)

        self.menu = QtWidgets.QMenu()
        show_action = self.menu.addAction("Show")
        show_action.triggered.connect(self.show_window)
        for amount in TRAY_QUICK_ADD_AMOUNTS:
            action = self.menu.addAction(f"Quick Add {amount}ml")
            action.triggered.connect(lambda _checked=False, value=amount: self.quick_add(value))
        settings_action = self.menu.addAction("Settings")
        settings_action.triggered.connect(self.show_settings)
        self.menu.addSeparator()
        exit_action = self.menu.addAction("Quit")
        exit_action.triggered.connect(QtWidgets.QApplication.instance().quit)

        self.tray.setContextMenu(self.menu)
        self.tray.show()

    def attach_window(self, window: MainWindow) -> None:
        self.window = window

    def show_window(self) -> None:
        if self.window is not None:
            self.window.bring_to_front()

    def show_settings(self) -> None:
        if self.window is not None:
            self.window.show_settings()

    def quick_add(self, amount_ml: int) -> None:
        if self.window is not None:
            self.window.add_water(amount_ml)

    def _handle_activated(self, reason: QtWidgets.QSystemTrayIcon.ActivationReason) -> None:
        if reason == QtWidgets.QSystemTrayIcon.Trigger:
            self.show_window()


class HydraApplication(QtWidgets.QApplication):
    """Main application wrapper that owns the tray, the window and the scheduler."""

    def __init__(self, argv: List[str], tracker: HydraTracker, start_hidden: bool = False) -> None:
        super().__init__(argv)
        self.setQuitOnLastWindowClosed(False)
        self.setApplicationName("Hydra Tracker")

        icon = QtGui.QIcon(create_fallback_pixmap(64))
        self.setWindowIcon(icon)

        self.tracker = tracker
        self.tray = TrayController(tracker, icon)
        self.notifier = TrayNotifier(self.tray.tray, lambda: self.tracker.settings.sound_enabled)
        self.scheduler = ReminderScheduler(self.notifier, parent=self)
        tracker.scheduler = self.scheduler

        settings = tracker.load()

        self.window = MainWindow(tracker, QtWidgets.QApplication.beep)
        self.window.goalReached.connect(self._announce_goal)
        self.tray.attach_window(self.window)
        self.aboutToQuit.connect(self.tracker.shutdown)

        if tracker.last_load_error is not None:
            QtCore.QTimer.singleShot(300, self._report_load_problem)
        elif tracker.last_permission_error is not None:
            QtCore.QTimer.singleShot(300, self._report_permission_problem)

        logger.info("Started (goal %d ml, reminders %s)", settings.daily_goal_ml,
                    "on" if self.scheduler.is_armed else "off")
        if not start_hidden:
            self.window.show()

    def _announce_goal(self) -> None:
        try:
            self.notifier.send_notification(REMINDER_TITLE, ACHIEVEMENT_BODY)
        except RuntimeError as exc:
            logger.warning("Could not show achievement notification: %s", exc)

    def _report_load_problem(self) -> None:
        self.window.show_error("Could not read saved settings, defaults are in use", self.tracker.last_load_error)

    def _report_permission_problem(self) -> None:
        QtWidgets.QMessageBox.warning(
            self.window,
            "Hydra Tracker",
            "Notifications are not available, so reminders are off.\n"
            "Re-enable reminders in Settings once a system tray is available.",
        )
