from __future__ import annotations
from datetime import date
from pathlib import Path

import faulthandler
import sys

from apptrack.core.crashlog import CrashLogManager, FaulthandlerBinder, NullBinder


class RecordingBinder:
    def __init__(self) -> None:
        self.bound = []

    def bind(self, path: Path) -> None:
        self.bound.append(path)


def _manager(tmp_path: Path) -> tuple[CrashLogManager, RecordingBinder]:
    binder = RecordingBinder()
    return CrashLogManager(tmp_path, binder=binder), binder


def test_filename_pattern(tmp_path: Path):
    mgr, _ = _manager(tmp_path)
    assert mgr.filename_for(date(2024, 3, 2)) == "CrashlogAsOn-02-03-2024.log"
    assert mgr.path_for(date(2024, 12, 31)) == tmp_path / "CrashlogAsOn-31-12-2024.log"


def test_rotation_scenario(tmp_path: Path):
    mgr, binder = _manager(tmp_path)
    yesterday = tmp_path / "CrashlogAsOn-01-03-2024.log"
    today_path = tmp_path / "CrashlogAsOn-02-03-2024.log"
    yesterday.write_text("SIGABRT ...", encoding="utf-8")

    assert mgr.capture_and_rotate(date(2024, 3, 2)) == ""
    assert not yesterday.exists()
    assert today_path.exists()
    assert today_path.read_text(encoding="utf-8") == ""
    assert binder.bound == [today_path]

    # the fault stream wrote into today's file
    today_path.write_text("trap", encoding="utf-8")
    assert mgr.capture_and_rotate(date(2024, 3, 2)) == "trap"
    assert today_path.exists()
    assert today_path.read_text(encoding="utf-8") == ""
    assert binder.bound == [today_path, today_path]


def test_older_files_are_never_touched(tmp_path: Path):
    mgr, _ = _manager(tmp_path)
    older = tmp_path / "CrashlogAsOn-28-02-2024.log"
    older.write_text("old crash", encoding="utf-8")
    assert mgr.capture_and_rotate(date(2024, 3, 2)) == ""
    assert older.read_text(encoding="utf-8") == "old crash"


def test_creates_missing_directory(tmp_path: Path):
    target = tmp_path / "nested" / "cache"
    mgr = CrashLogManager(target, binder=RecordingBinder())
    assert mgr.capture_and_rotate(date(2024, 1, 1)) == ""
    assert (target / "CrashlogAsOn-01-01-2024.log").exists()


def test_yesterday_crosses_month_and_year(tmp_path: Path):
    mgr, _ = _manager(tmp_path)
    dec31 = tmp_path / "CrashlogAsOn-31-12-2023.log"
    dec31.write_text("x", encoding="utf-8")
    mgr.capture_and_rotate(date(2024, 1, 1))
    assert not dec31.exists()


def test_peek_does_not_rotate(tmp_path: Path):
    mgr, binder = _manager(tmp_path)
    path = mgr.path_for(date(2024, 3, 2))
    path.write_text("fault", encoding="utf-8")
    assert mgr.peek(date(2024, 3, 2)) == "fault"
    assert path.read_text(encoding="utf-8") == "fault"
    assert binder.bound == []
    assert mgr.peek(date(2024, 3, 3)) == ""


def test_creation_failure_is_swallowed(tmp_path: Path):
    blocker = tmp_path / "not-a-dir"
    blocker.write_text("", encoding="utf-8")
    mgr = CrashLogManager(blocker / "logs", binder=RecordingBinder())
    assert mgr.capture_and_rotate(date(2024, 3, 2)) == ""


def test_undeletable_log_is_truncated(tmp_path: Path, monkeypatch):
    mgr, binder = _manager(tmp_path)
    path = mgr.path_for(date(2024, 3, 2))
    path.write_text("Fatal Python error", encoding="utf-8")

    def refuse(self, missing_ok=False):
        raise PermissionError("read-only")

    monkeypatch.setattr(Path, "unlink", refuse)
    assert mgr.capture_and_rotate(date(2024, 3, 2)) == "Fatal Python error"
    assert path.read_text(encoding="utf-8") == ""
    assert binder.bound == [path]


def test_null_binder_leaves_file_alone(tmp_path: Path):
    path = tmp_path / "CrashlogAsOn-02-03-2024.log"
    path.write_text("kept", encoding="utf-8")
    NullBinder().bind(path)
    assert path.read_text(encoding="utf-8") == "kept"


def test_uncaught_exception_reaches_the_log(tmp_path: Path, monkeypatch):
    monkeypatch.setattr(faulthandler, "enable", lambda **kwargs: None)
    monkeypatch.setattr(faulthandler, "disable", lambda: None)
    chained = []
    monkeypatch.setattr(sys, "excepthook", lambda *exc_info: chained.append(exc_info[0]))

    path = tmp_path / "CrashlogAsOn-02-03-2024.log"
    binder = FaulthandlerBinder()
    binder.bind(path)
    assert sys.excepthook == binder.excepthook

    try:
        raise ValueError("cart total went negative")
    except ValueError as e:
        sys.excepthook(type(e), e, e.__traceback__)

    assert chained == [ValueError]
    text = path.read_text(encoding="utf-8")
    assert "ValueError: cart total went negative" in text

    binder.close()
    assert sys.excepthook != binder.excepthook
    sys.excepthook(ValueError, ValueError("after close"), None)
    assert chained == [ValueError, ValueError]
    assert "after close" not in path.read_text(encoding="utf-8")
