"""Main window: Today, Analytics and Settings tabs."""

from __future__ import annotations

import logging
from typing import Callable, List, Optional, Tuple

from PySide6 import QtCore, QtGui, QtWidgets

from .config import QUICK_ADD_AMOUNTS
from .errors import HydraError, OSIntegrationError, PermissionDenied, StoreError, ValidationError
from .formatting import HEALTH_COLORS, format_litres, health_status, shift_month
from .models import MAX_GOAL_ML, MAX_INTERVAL_MINUTES, MIN_GOAL_ML, MIN_INTERVAL_MINUTES, MonthlyStats
from .tracker import HydraTracker


logger = logging.getLogger(__name__)


DARK_STYLESHEET = """
QWidget {
    background-color: #121826;
    color: #F2F4FF;
}
QTabWidget::pane {
    border: 1px solid rgba(255, 255, 255, 0.08);
    border-radius: 8px;
}
QTabBar::tab {
    background-color: #1C2235;
    padding: 8px 18px;
    color: #96B1FF;
}
QTabBar::tab:selected {
    background-color: #516BFF;
    color: #F2F4FF;
}
QGroupBox {
    border: 1px solid rgba(255, 255, 255, 0.08);
    border-radius: 8px;
    margin-top: 16px;
    font-weight: 600;
    padding: 12px;
}
QGroupBox::title {
    subcontrol-origin: margin;
    subcontrol-position: top left;
    padding: 0 6px;
    color: #96B1FF;
}
QLineEdit, QComboBox, QSpinBox, QListWidget {
    background-color: #1C2235;
    border: 1px solid rgba(255, 255, 255, 0.12);
    border-radius: 6px;
    padding: 4px 6px;
    color: #F2F4FF;
}
QPushButton {
    background-color: #1C2235;
    border: 1px solid rgba(255, 255, 255, 0.12);
    border-radius: 6px;
    padding: 6px 12px;
}
QPushButton#primaryButton {
    background-color: #516BFF;
    border-radius: 18px;
    padding: 10px 18px;
    font-weight: 600;
}
QPushButton#primaryButton:hover {
    background-color: #6D83FF;
}
QProgressBar {
    background-color: #1C2235;
    border-radius: 8px;
    text-align: center;
}
"""

LIGHT_STYLESHEET = """
QWidget {
    background-color: #F4F6FB;
    color: #1A2133;
}
QTabWidget::pane {
    border: 1px solid rgba(0, 0, 0, 0.10);
    border-radius: 8px;
}
QTabBar::tab {
    background-color: #E3E8F4;
    padding: 8px 18px;
    color: #3A4C8C;
}
QTabBar::tab:selected {
    background-color: #516BFF;
    color: #FFFFFF;
}
QGroupBox {
    border: 1px solid rgba(0, 0, 0, 0.10);
    border-radius: 8px;
    margin-top: 16px;
    font-weight: 600;
    padding: 12px;
}
QGroupBox::title {
    subcontrol-origin: margin;
    subcontrol-position: top left;
    padding: 0 6px;
    color: #3A4C8C;
}
QLineEdit, QComboBox, QSpinBox, QListWidget {
    background-color: #FFFFFF;
    border: 1px solid rgba(0, 0, 0, 0.15);
    border-radius: 6px;
    padding: 4px 6px;
}
QPushButton {
    background-color: #FFFFFF;
    border: 1px solid rgba(0, 0, 0, 0.15);
    border-radius: 6px;
    padding: 6px 12px;
}
QPushButton#primaryButton {
    background-color: #516BFF;
    color: #FFFFFF;
    border-radius: 18px;
    padding: 10px 18px;
    font-weight: 600;
}
QProgressBar {
    background-color: #E3E8F4;
    border-radius: 8px;
    text-align: center;
}
"""

STYLESHEETS = {"dark": DARK_STYLESHEET, "light": LIGHT_STYLESHEET}

TODAY_TAB, ANALYTICS_TAB, SETTINGS_TAB = range(3)


class WheelBlocker(QtCore.QObject):
    """Prevents wheel events from changing widget values."""

    def eventFilter(self, obj: QtCore.QObject, event: QtCore.QEvent) -> bool:  # type: ignore[override]
        if event.type() == QtCore.QEvent.Type.Wheel and isinstance(obj, QtWidgets.QWidget):
            event.ignore()
            return True
        return super().eventFilter(obj, event)


_wheel_blocker = WheelBlocker()


def disable_wheel_scrolling(widget: QtWidgets.QWidget) -> None:
    widget.installEventFilter(_wheel_blocker)


def heading_font(widget: QtWidgets.QWidget, point_size: int) -> QtGui.QFont:
    """Bold copy of the widget's platform font at ``point_size``."""
    font = QtGui.QFont(widget.font())
    font.setPointSize(point_size)
    font.setBold(True)
    return font


def build_form(title: str, rows: List[Tuple[str, QtWidgets.QWidget]]) -> QtWidgets.QGroupBox:
    group = QtWidgets.QGroupBox(title)
    form = QtWidgets.QFormLayout()
    form.setHorizontalSpacing(24)
    form.setVerticalSpacing(6)
    for label, widget in rows:
        form.addRow(label, widget)
    group.setLayout(form)
    return group


# ===== Analytics chart ======================================================


class DailyBarChart(QtWidgets.QWidget):
    """One bar per day of the month with a dashed goal line."""

    def __init__(self, parent: Optional[QtWidgets.QWidget] = None) -> None:
        super().__init__(parent)
        self.stats: Optional[MonthlyStats] = None
        self.days_in_month = 31
        self.setMinimumHeight(160)

    def set_stats(self, stats: MonthlyStats, days_in_month: int) -> None:
        self.stats = stats
        self.days_in_month = days_in_month
        self.update()

    def paintEvent(self, event: QtGui.QPaintEvent) -> None:  # type: ignore[override]
        painter = QtGui.QPainter(self)
        painter.setRenderHint(QtGui.QPainter.Antialiasing)
        rect = QtCore.QRectF(self.rect()).adjusted(8, 8, -8, -20)

        if not self.stats or not self.stats.days:
            painter.setPen(self.palette().color(QtGui.QPalette.WindowText))
            painter.drawText(rect, QtCore.Qt.AlignCenter, "No data for this month")
            return

        goal = self.stats.days[0].goal_ml
        peak = max([goal] + [day.total_ml for day in self.stats.days])
        slot = rect.width() / max(1, self.days_in_month)
        bar_width = max(2.0, slot * 0.7)

        for day in self.stats.days:
            height = rect.height() * day.total_ml / peak
            x = rect.left() + (day.date.day - 1) * slot + (slot - bar_width) / 2
            bar = QtCore.QRectF(x, rect.bottom() - height, bar_width, height)
            painter.fillRect(bar, QtGui.QColor(HEALTH_COLORS[health_status(day.percentage)]))

        goal_y = rect.bottom() - rect.height() * goal / peak
        pen = QtGui.QPen(QtGui.QColor("#96B1FF"), 1.2)
        pen.setStyle(QtCore.Qt.DashLine)
        pen.setCosmetic(True)
        painter.setPen(pen)
        painter.drawLine(QtCore.QPointF(rect.left(), goal_y), QtCore.QPointF(rect.right(), goal_y))

        painter.setPen(self.palette().color(QtGui.QPalette.WindowText))
        for label_day in (1, 10, 20, self.days_in_month):
            x = rect.left() + (label_day - 1) * slot
            painter.drawText(QtCore.QRectF(x, rect.bottom() + 2, slot * 2, 16), QtCore.Qt.AlignLeft, str(label_day))


# ===== Main window ==========================================================


class MainWindow(QtWidgets.QWidget):
    """Tracker window; closing it only hides it to the tray."""

    goalReached = QtCore.Signal()

    def __init__(self, tracker: HydraTracker, play_sound: Callable[[], None],
                 parent: Optional[QtWidgets.QWidget] = None) -> None:
        super().__init__(parent)
        self.tracker = tracker
        self.play_sound = play_sound
        self.setWindowTitle("Hydra Tracker")
        self.setMinimumSize(520, 640)

        today = tracker.today()
        self.selected_month = (today.year, today.month)

        self.tabs = QtWidgets.QTabWidget()
        self.tabs.addTab(self._build_today_tab(), "Today")
        self.tabs.addTab(self._build_analytics_tab(), "Analytics")
        self.tabs.addTab(self._build_settings_tab(), "Settings")
        self.tabs.currentChanged.connect(self._handle_tab_changed)

        layout = QtWidgets.QVBoxLayout(self)
        layout.setContentsMargins(12, 12, 12, 12)
        layout.addWidget(self.tabs)

        self.apply_theme(tracker.settings.theme)
        self.refresh_today()

    # ----- Today -----

    def _build_today_tab(self) -> QtWidgets.QWidget:
        tab = QtWidgets.QWidget()

        self.amount_label = QtWidgets.QLabel()
        self.amount_label.setAlignment(QtCore.Qt.AlignCenter)
        self.amount_label.setFont(heading_font(self, 28))

        self.goal_label = QtWidgets.QLabel()
        self.goal_label.setAlignment(QtCore.Qt.AlignCenter)

        self.progress_bar = QtWidgets.QProgressBar()
        self.progress_bar.setRange(0, 1000)
        self.progress_bar.setTextVisible(False)
        self.progress_bar.setFixedHeight(18)

        self.status_label = QtWidgets.QLabel()
        self.status_label.setAlignment(QtCore.Qt.AlignCenter)
        self.status_label.setFont(heading_font(self, 14))

        quick_row = QtWidgets.QHBoxLayout()
        for amount in QUICK_ADD_AMOUNTS:
            button = QtWidgets.QPushButton(f"{amount} ml")
            button.clicked.connect(lambda _checked=False, value=amount: self.add_water(value))
            quick_row.addWidget(button)

        self.custom_spin = QtWidgets.QSpinBox()
        self.custom_spin.setRange(0, 5000)
        self.custom_spin.setSingleStep(50)
        self.custom_spin.setSuffix(" ml")
        disable_wheel_scrolling(self.custom_spin)
        custom_button = QtWidgets.QPushButton("Add")
        custom_button.setObjectName("primaryButton")
        custom_button.clicked.connect(self._handle_custom_add)
        custom_row = QtWidgets.QHBoxLayout()
        custom_row.addWidget(self.custom_spin, stretch=1)
        custom_row.addWidget(custom_button)

        self.entries_list = QtWidgets.QListWidget()
        remove_button = QtWidgets.QPushButton("Remove selected")
        remove_button.clicked.connect(self._handle_remove_selected)

        layout = QtWidgets.QVBoxLayout(tab)
        layout.addWidget(self.amount_label)
        layout.addWidget(self.goal_label)
        layout.addWidget(self.progress_bar)
        layout.addWidget(self.status_label)
        layout.addLayout(quick_row)
        layout.addLayout(custom_row)
        layout.addWidget(QtWidgets.QLabel("Today's log"))
        layout.addWidget(self.entries_list, stretch=1)
        layout.addWidget(remove_button, alignment=QtCore.Qt.AlignRight)
        return tab

    def refresh_today(self) -> None:
        try:
            stats = self.tracker.get_daily_stats()
            entries = self.tracker.today_entries()
        except StoreError as exc:
            self.show_error("Could not load today's data", exc)
            return

        status = health_status(stats.percentage)
        color = HEALTH_COLORS[status]
        self.amount_label.setText(format_litres(stats.total_ml))
        self.amount_label.setStyleSheet(f"color: {color};")
        self.goal_label.setText(f"of {format_litres(stats.goal_ml)} goal  ({round(stats.percentage)}%)")
        self.progress_bar.setValue(int(stats.progress * 1000))
        self.progress_bar.setStyleSheet(f"QProgressBar::chunk {{ background-color: {color}; border-radius: 8px; }}")
        self.status_label.setText(status.upper())
        self.status_label.setStyleSheet(f"color: {color};")

        self.entries_list.clear()
        for entry in entries:
            item = QtWidgets.QListWidgetItem(f"{entry.timestamp:%H:%M}    {entry.amount_ml} ml")
            item.setData(QtCore.Qt.UserRole, entry.id)
            self.entries_list.addItem(item)

    def add_water(self, amount_ml: int) -> None:
        try:
            before = self.tracker.get_daily_stats()
            self.tracker.add_water(amount_ml)
            after = self.tracker.get_daily_stats()
        except ValidationError:
            self._sound()
            return
        except StoreError as exc:
            self.show_error("Could not save the entry", exc)
            return

        self._sound()
        if self.tracker.goal_reached(before, after):
            self.goalReached.emit()
        self.refresh_today()

    def _handle_custom_add(self) -> None:
        self.add_water(self.custom_spin.value())
        self.custom_spin.setValue(0)

    def _handle_remove_selected(self) -> None:
        item = self.entries_list.currentItem()
        if item is None:
            return
        try:
            self.tracker.remove_entry(int(item.data(QtCore.Qt.UserRole)))
        except StoreError as exc:
            self.show_error("Could not remove the entry", exc)
            return
        self._sound()
        self.refresh_today()

    # ----- Analytics -----

    def _build_analytics_tab(self) -> QtWidgets.QWidget:
        tab = QtWidgets.QWidget()

        prev_button = QtWidgets.QPushButton("<")
        prev_button.clicked.connect(lambda: self.navigate_month(-1))
        next_button = QtWidgets.QPushButton(">")
        next_button.clicked.connect(lambda: self.navigate_month(1))
        self.month_label = QtWidgets.QLabel()
        self.month_label.setAlignment(QtCore.Qt.AlignCenter)
        self.month_label.setFont(heading_font(self, 14))

        nav_row = QtWidgets.QHBoxLayout()
        nav_row.addWidget(prev_button)
        nav_row.addWidget(self.month_label, stretch=1)
        nav_row.addWidget(next_button)

        self.total_value = QtWidgets.QLabel()
        self.average_value = QtWidgets.QLabel()
        self.goal_days_value = QtWidgets.QLabel()
        self.current_streak_value = QtWidgets.QLabel()
        self.best_streak_value = QtWidgets.QLabel()

        summary = build_form(
            "Summary",
            [
                ("Total", self.total_value),
                ("Daily average", self.average_value),
                ("Days goal met", self.goal_days_value),
                ("Current streak", self.current_streak_value),
                ("Best streak", self.best_streak_value),
            ],
        )

        self.chart = DailyBarChart()

        layout = QtWidgets.QVBoxLayout(tab)
        layout.addLayout(nav_row)
        layout.addWidget(summary)
        layout.addWidget(self.chart, stretch=1)
        return tab

    def navigate_month(self, delta: int) -> None:
        self.selected_month = shift_month(*self.selected_month, delta)
        self.refresh_analytics()

    def refresh_analytics(self) -> None:
        year, month = self.selected_month
        try:
            stats = self.tracker.get_monthly_stats(year, month)
        except StoreError as exc:
            self.show_error("Could not load monthly statistics", exc)
            return

        days_in_month = QtCore.QDate(year, month, 1).daysInMonth()
        self.month_label.setText(f"{stats.month} {stats.year}")
        self.total_value.setText(format_litres(stats.total_ml))
        self.average_value.setText(format_litres(stats.average_ml))
        self.goal_days_value.setText(f"{stats.days_goal_met} / {days_in_month}")
        self.current_streak_value.setText(f"{stats.current_streak} days")
        self.best_streak_value.setText(f"{stats.best_streak} days")
        self.chart.set_stats(stats, days_in_month)

    def _handle_tab_changed(self, index: int) -> None:
        if index == TODAY_TAB:
            self.refresh_today()
        elif index == ANALYTICS_TAB:
            self.refresh_analytics()

    # ----- Settings -----

    def _build_settings_tab(self) -> QtWidgets.QWidget:
        settings = self.tracker.settings

        self.goal_spin = QtWidgets.QSpinBox()
        self.goal_spin.setRange(MIN_GOAL_ML, MAX_GOAL_ML)
        self.goal_spin.setSingleStep(250)
        self.goal_spin.setSuffix(" ml")
        self.goal_spin.setValue(settings.daily_goal_ml)

        self.interval_spin = QtWidgets.QSpinBox()
        self.interval_spin.setRange(MIN_INTERVAL_MINUTES, MAX_INTERVAL_MINUTES)
        self.interval_spin.setSuffix(" min")
        self.interval_spin.setValue(settings.reminder_interval_minutes)

        self.reminder_check = QtWidgets.QCheckBox("Send reminders")
        self.reminder_check.setChecked(settings.reminder_enabled)
        self.sound_check = QtWidgets.QCheckBox("Play sounds")
        self.sound_check.setChecked(settings.sound_enabled)
        self.autostart_check = QtWidgets.QCheckBox("Start with system")
        self.autostart_check.setChecked(settings.start_with_system)

        self.theme_combo = QtWidgets.QComboBox()
        self.theme_combo.addItem("Dark", "dark")
        self.theme_combo.addItem("Light", "light")
        self.theme_combo.setCurrentIndex(max(0, self.theme_combo.findData(settings.theme)))

        for widget in (self.goal_spin, self.interval_spin, self.theme_combo):
            disable_wheel_scrolling(widget)

        goal_group = build_form("Goal", [("Daily goal", self.goal_spin)])
        reminder_group = build_form(
            "Reminders",
            [
                ("Enabled", self.reminder_check),
                ("Interval", self.interval_spin),
                ("Sound", self.sound_check),
            ],
        )
        system_group = build_form(
            "System & Display",
            [
                ("Autostart", self.autostart_check),
                ("Theme", self.theme_combo),
            ],
        )

        self.goal_spin.editingFinished.connect(lambda: self.apply_settings(daily_goal_ml=self.goal_spin.value()))
        self.interval_spin.editingFinished.connect(
            lambda: self.apply_settings(reminder_interval_minutes=self.interval_spin.value())
        )
        self.reminder_check.toggled.connect(lambda checked: self.apply_settings(reminder_enabled=checked))
        self.sound_check.toggled.connect(lambda checked: self.apply_settings(sound_enabled=checked))
        self.autostart_check.toggled.connect(lambda checked: self.apply_settings(start_with_system=checked))
        self.theme_combo.currentIndexChanged.connect(
            lambda _index: self.apply_settings(theme=self.theme_combo.currentData())
        )

        tab = QtWidgets.QWidget()
        layout = QtWidgets.QVBoxLayout(tab)
        layout.addWidget(goal_group)
        layout.addWidget(reminder_group)
        layout.addWidget(system_group)
        layout.addStretch()
        return tab

    def apply_settings(self, **changes: object) -> None:
        current = self.tracker.settings
        if all(getattr(current, name) == value for name, value in changes.items()):
            return
        try:
            updated = self.tracker.apply_settings_change(**changes)
        except PermissionDenied as exc:
            self.show_error("Notification permission required for reminders. Check system settings.", exc)
            updated = self.tracker.settings
        except OSIntegrationError as exc:
            self.show_error("Failed to update autostart setting", exc)
            updated = self.tracker.settings
        except HydraError as exc:
            self.show_error("Could not save settings", exc)
            updated = self.tracker.settings

        self.sync_settings_widgets()
        self.apply_theme(updated.theme)
        self.refresh_today()

    def sync_settings_widgets(self) -> None:
        """Reset the settings controls to the in-memory settings without re-triggering saves."""
        settings = self.tracker.settings
        widgets = (
            self.goal_spin,
            self.interval_spin,
            self.reminder_check,
            self.sound_check,
            self.autostart_check,
            self.theme_combo,
        )
        for widget in widgets:
            widget.blockSignals(True)
        self.goal_spin.setValue(settings.daily_goal_ml)
        self.interval_spin.setValue(settings.reminder_interval_minutes)
        self.reminder_check.setChecked(settings.reminder_enabled)
        self.sound_check.setChecked(settings.sound_enabled)
        self.autostart_check.setChecked(settings.start_with_system)
        self.theme_combo.setCurrentIndex(max(0, self.theme_combo.findData(settings.theme)))
        for widget in widgets:
            widget.blockSignals(False)

    def apply_theme(self, theme: str) -> None:
        self.setStyleSheet(STYLESHEETS.get(theme, DARK_STYLESHEET))

    # ----- helpers -----

    def _sound(self) -> None:
        if self.tracker.settings.sound_enabled:
            self.play_sound()

    def show_error(self, message: str, exc: Exception) -> None:
        logger.error("%s: %s", message, exc)
        QtWidgets.QMessageBox.warning(self, "Hydra Tracker", f"{message}\n\n{exc}")

    def bring_to_front(self) -> None:
        self.show()
        self.raise_()
        self.activateWindow()

    def show_settings(self) -> None:
        self.tabs.setCurrentIndex(SETTINGS_TAB)
        self.bring_to_front()

    def closeEvent(self, event: QtGui.QCloseEvent) -> None:  # type: ignore[override]
        event.ignore()
        self.hide()
