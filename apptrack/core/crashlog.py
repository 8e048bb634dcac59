"""
Single-generation crash log kept in a dated file.

At most two files are ever referenced: yesterday's (always removed) and
today's (read, removed, recreated empty, then bound to the process fault
stream). Older files are never looked up.
"""
from __future__ import annotations
from datetime import date, timedelta
from pathlib import Path
from types import TracebackType
from typing import IO, Any, Callable, Optional, Protocol, Type
import faulthandler
import logging
import os
import sys
import traceback

logger = logging.getLogger(__name__)

DEFAULT_PREFIX = "CrashlogAsOn"


def default_log_directory() -> Path:
    return Path.home() / ".cache" / "apptrack"


class FaultStreamBinder(Protocol):
    def bind(self, path: Path) -> None: ...


class NullBinder:
    """Leaves the fault stream alone; for tooling that only inspects log files."""

    def bind(self, path: Path) -> None:
        pass


class FaulthandlerBinder:
    """
    Route crash output into the crash log file: fatal signals through
    faulthandler and uncaught Python exceptions through a chained
    sys.excepthook. With redirect_stderr the file also replaces file
    descriptor 2, so anything written to stderr ends up in the log.
    """

    def __init__(self, redirect_stderr: bool = False) -> None:
        self.redirect_stderr = redirect_stderr
        self._stream: Optional[IO[str]] = None
        self._previous_excepthook: Optional[Callable[..., Any]] = None

    def bind(self, path: Path) -> None:
        stream = open(path, "a+", encoding="utf-8")
        faulthandler.enable(file=stream, all_threads=True)
        if self.redirect_stderr:
            os.dup2(stream.fileno(), 2)
        previous, self._stream = self._stream, stream
        if previous is not None:
            previous.close()
        if self._previous_excepthook is None:
            self._previous_excepthook = sys.excepthook
            sys.excepthook = self.excepthook

    def excepthook(
        self,
        exc_type: Type[BaseException],
        exc: BaseException,
        tb: Optional[TracebackType],
    ) -> None:
        stream = self._stream
        if stream is not None and not stream.closed:
            traceback.print_exception(exc_type, exc, tb, file=stream)
            stream.flush()
        if self._previous_excepthook is not None:
            self._previous_excepthook(exc_type, exc, tb)

    def close(self) -> None:
        if self._previous_excepthook is not None and sys.excepthook == self.excepthook:
            sys.excepthook = self._previous_excepthook
        self._previous_excepthook = None
        if self._stream is not None:
            faulthandler.disable()
            self._stream.close()
            self._stream = None


class CrashLogManager:
    def __init__(
        self,
        directory: str | Path | None = None,
        binder: FaultStreamBinder | None = None,
        prefix: str = DEFAULT_PREFIX,
    ) -> None:
        self.directory = Path(directory) if directory is not None else default_log_directory()
        self.binder = binder or FaulthandlerBinder()
        self.prefix = prefix

    def filename_for(self, day: date) -> str:
        return f"{self.prefix}-{day:%d-%m-%Y}.log"

    def path_for(self, day: date) -> Path:
        return self.directory / self.filename_for(day)

    def capture_and_rotate(self, today: Optional[date] = None) -> str:
        """
        Return the text captured in today's log so far ("" if none) and start
        a fresh, empty log for today bound to the fault stream.
        """
        today = today or date.today()
        self._remove(self.path_for(today - timedelta(days=1)))

        path = self.path_for(today)
        text = self._read(path)
        self._remove(path)
        self._create(path)
        return text

    def peek(self, today: Optional[date] = None) -> str:
        """Read today's log without rotating it."""
        return self._read(self.path_for(today or date.today()))

    def _read(self, path: Path) -> str:
        if not path.exists():
            return ""
        try:
            return path.read_text(encoding="utf-8", errors="replace")
        except OSError as e:
            logger.warning("Could not read crash log %s: %s", path, e)
            return ""

    def _remove(self, path: Path) -> None:
        try:
            path.unlink()
        except FileNotFoundError:
            pass
        except OSError as e:
            logger.debug("Could not remove crash log %s: %s", path, e)

    def _create(self, path: Path) -> None:
        try:
            path.parent.mkdir(parents=True, exist_ok=True)
            # truncates when the old file could not be removed
            with open(path, "w", encoding="utf-8"):
                pass
            self.binder.bind(path)
        except (OSError, ValueError, RuntimeError) as e:
            logger.warning("Could not create crash log %s: %s", path, e)
