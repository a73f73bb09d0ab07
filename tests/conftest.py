from __future__ import annotations

import os
from datetime import datetime
from pathlib import Path
from typing import List, Tuple

import pytest

os.environ.setdefault("QT_QPA_PLATFORM", "offscreen")

from PySide6 import QtWidgets  # noqa: E402

from hydra_tracker.errors import OSIntegrationError  # noqa: E402
from hydra_tracker.store import RecordStore  # noqa: E402


class FakeAutostart:
    def __init__(self, enabled: bool = False, fail: bool = False) -> None:
        self.enabled = enabled
        self.fail = fail
        self.calls: List[bool] = []

    def is_enabled(self) -> bool:
        return self.enabled

    def set_enabled(self, enabled: bool) -> None:
        self.calls.append(enabled)
        if self.fail:
            raise OSIntegrationError("registry is read-only")
        self.enabled = enabled

    def enable(self) -> None:
        self.set_enabled(True)

    def disable(self) -> None:
        self.set_enabled(False)


class FakeNotifier:
    def __init__(self, granted: bool = True, grant_on_request: bool = False, fail: bool = False) -> None:
        self.granted = granted
        self.grant_on_request = grant_on_request
        self.fail = fail
        self.permission_requests = 0
        self.sent: List[Tuple[str, str]] = []

    def is_permission_granted(self) -> bool:
        return self.granted

    def request_permission(self) -> bool:
        self.permission_requests += 1
        self.granted = self.grant_on_request
        return self.granted

    def send_notification(self, title: str, body: str) -> None:
        if self.fail:
            raise RuntimeError("notification daemon went away")
        self.sent.append((title, body))


@pytest.fixture(scope="session")
def qt_app():
    app = QtWidgets.QApplication.instance() or QtWidgets.QApplication([])
    yield app


@pytest.fixture()
def store(tmp_path: Path):
    record_store = RecordStore(tmp_path / "hydra.db")
    yield record_store
    record_store.close()


@pytest.fixture()
def autostart() -> FakeAutostart:
    return FakeAutostart()


@pytest.fixture()
def notifier() -> FakeNotifier:
    return FakeNotifier()


@pytest.fixture()
def fixed_now() -> datetime:
    return datetime(2025, 3, 14, 15, 30, 0)
