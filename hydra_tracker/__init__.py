"""Desktop water-intake tracker with reminders and a system-tray presence."""

APP_NAME = "HydraTracker"
__version__ = "0.3.0"
