"""Command-line entry point."""

from __future__ import annotations

import argparse
import logging
import sys
from typing import Dict, List, Optional

from .autostart import HIDDEN_FLAG, for_platform
from .config import database_path, determine_storage_root, log_dir
from .errors import HydraError
from .logging_setup import setup_logging
from .models import THEMES
from .store import RecordStore
from .sync import SettingsSynchronizer
from .tracker import HydraTracker


logger = logging.getLogger(__name__)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="hydra-tracker", description="Desktop water intake tracker.")
    parser.add_argument("--data-dir", help="Directory for the database and logs (default: platform data dir).")
    parser.add_argument(HIDDEN_FLAG, dest="hidden", action="store_true",
                        help="Start minimised to the system tray.")
    parser.add_argument("--goal", type=int, help="Daily goal in millilitres.")
    parser.add_argument("--interval", type=int, help="Reminder interval in minutes.")
    parser.add_argument("--no-reminders", action="store_true", help="Turn reminder notifications off.")
    parser.add_argument("--theme", choices=THEMES, help="Colour theme.")
    parser.add_argument("-v", "--verbose", action="store_true", help="Log debug output to the console.")
    return parser


def settings_overrides(args: argparse.Namespace) -> Dict[str, object]:
    overrides: Dict[str, object] = {}
    if args.goal is not None:
        overrides["daily_goal_ml"] = args.goal
    if args.interval is not None:
        overrides["reminder_interval_minutes"] = args.interval
    if args.no_reminders:
        overrides["reminder_enabled"] = False
    if args.theme:
        overrides["theme"] = args.theme
    return overrides


def main(argv: Optional[List[str]] = None) -> int:
    parser = build_parser()
    args = parser.parse_args(sys.argv[1:] if argv is None else argv)

    storage_root = determine_storage_root(args.data_dir)
    setup_logging(log_dir(storage_root), verbose=args.verbose)

    try:
        store = RecordStore(database_path(storage_root))
        tracker = HydraTracker(store, SettingsSynchronizer(store, for_platform()))
        overrides = settings_overrides(args)
        if overrides:
            tracker.settings = store.get_settings()
            tracker.apply_settings_change(**overrides)
    except HydraError as exc:
        logger.error("Start-up failed: %s", exc)
        parser.exit(1, f"hydra-tracker: {exc}\n")

    from .app import HydraApplication

    app = HydraApplication(sys.argv[:1], tracker, start_hidden=args.hidden)
    return app.exec()
