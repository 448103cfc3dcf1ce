"""Structured logging: console plus a JSON-lines event log."""

import json
import logging
import os
import sys
import threading
from dataclasses import asdict, dataclass
from datetime import datetime
from typing import IO, Any

from arivu.core.config import config


def _format_duration(seconds: float) -> str:
    if seconds < 0:
        return "0s"
    if seconds >= 60:
        m = int(seconds // 60)
        s = seconds % 60
        if s < 0.05:
            return f"{m}m"
        return f"{m}m {s:.0f}s" if s >= 1 else f"{m}m {s:.1f}s"
    if seconds >= 0.05:
        return f"{seconds:.1f}s"
    if seconds > 0:
        return "<0.1s"
    return "0s"


def _use_color() -> bool:
    if os.environ.get("NO_COLOR"):
        return False
    try:
        return sys.stderr.isatty()
    except Exception:
        return False


def _c(role: str) -> str:
    if not _use_color():
        return ""
    # 38;5;N = foreground 256-color
    codes = {
        "dim": "\033[38;5;239m",
        "source": "\033[38;5;81m",
        "ok": "\033[38;5;78m",
        "fail": "\033[38;5;203m",
        "duration": "\033[38;5;221m",
    }
    return codes.get(role, "")


def _reset() -> str:
    if not _use_color():
        return ""
    return "\033[0m"


@dataclass
class LogEvent:
    event_type: str
    timestamp: str
    data: dict[str, Any]

    def to_dict(self) -> dict:
        return asdict(self)

    def to_json(self) -> str:
        return json.dumps(self.to_dict(), default=str)


class ArivuLogger:
    def __init__(self):
        self.log_file = config.logs_dir / "arivu.log"
        self._file_lock = threading.Lock()
        self._log_file_handle: IO[str] | None = None
        self._file_disabled = False
        self._setup_console_logger()

    def _setup_console_logger(self):
        self.console = logging.getLogger("arivu")
        self.console.setLevel(logging.DEBUG)
        self._console_formatter = logging.Formatter(
            "%(asctime)s │ %(message)s", datefmt="%H:%M:%S"
        )
        if not self.console.handlers:
            handler = logging.StreamHandler()
            handler.setLevel(getattr(logging, config.log_level, logging.INFO))
            handler.setFormatter(self._console_formatter)
            self.console.addHandler(handler)

    def _file(self) -> IO[str] | None:
        if self._log_file_handle is None and not self._file_disabled:
            try:
                self.log_file.parent.mkdir(parents=True, exist_ok=True)
                self._log_file_handle = open(self.log_file, "a", encoding="utf-8")
            except OSError as e:
                self._file_disabled = True
                self.console.warning("Event log disabled (%s): %s", self.log_file, e)
        return self._log_file_handle

    def log_event(self, event: LogEvent) -> None:
        with self._file_lock:
            handle = self._file()
            if handle is None:
                return
            handle.write(event.to_json() + "\n")
            handle.flush()

    def _timestamp(self) -> str:
        return datetime.now().isoformat()

    def search_start(
        self, query: str, profile: str | None, adapters: list[str]
    ) -> None:
        self.log_event(
            LogEvent(
                event_type="SEARCH_START",
                timestamp=self._timestamp(),
                data={"query": query[:500], "profile": profile, "adapters": adapters},
            )
        )
        target = f"profile '{profile}'" if profile else "ad-hoc"
        self.console.info(
            f"Search: {query[:100]!r}  {target}  [{', '.join(adapters)}]"
        )

    def source_ok(self, adapter: str, count: int, duration_seconds: float) -> None:
        self.log_event(
            LogEvent(
                event_type="SOURCE_OK",
                timestamp=self._timestamp(),
                data={
                    "adapter": adapter,
                    "count": count,
                    "duration_seconds": round(duration_seconds, 3),
                },
            )
        )
        dur = f"{_c('duration')}{_format_duration(duration_seconds)}{_reset()}"
        self.console.info(
            f"  │ {_c('source')}{adapter}{_reset()}  {count} results  in {dur}  "
            f"{_c('ok')}[ok]{_reset()}"
        )

    def source_failed(self, adapter: str, error: str, is_timeout: bool) -> None:
        self.log_event(
            LogEvent(
                event_type="SOURCE_FAILED",
                timestamp=self._timestamp(),
                data={"adapter": adapter, "error": error[:500], "is_timeout": is_timeout},
            )
        )
        short = error.strip().replace("\n", " ")
        if len(short) > 80:
            short = short[:80] + "..."
        self.console.warning(
            f"  │ {_c('source')}{adapter}{_reset()}  {_c('fail')}[failed]{_reset()}  {short}"
        )

    def search_done(
        self,
        total_count: int,
        completed: list[str],
        failed: list[str],
        duration_seconds: float,
    ) -> None:
        self.log_event(
            LogEvent(
                event_type="SEARCH_DONE",
                timestamp=self._timestamp(),
                data={
                    "total_count": total_count,
                    "completed": completed,
                    "failed": failed,
                    "duration_seconds": round(duration_seconds, 3),
                },
            )
        )
        dur = f"{_c('duration')}{_format_duration(duration_seconds)}{_reset()}"
        status = "partial" if failed else "complete"
        self.console.info(
            f"Done: {total_count} results from {len(completed)} source(s)  "
            f"total {dur}  {status}"
        )

    def resolved(self, text: str, matches: list[str]) -> None:
        self.log_event(
            LogEvent(
                event_type="RESOLVE",
                timestamp=self._timestamp(),
                data={"input": text[:500], "matches": matches},
            )
        )

    def info(self, message: str, *args, **kwargs):
        self.console.info(message, *args, **_console_kwargs(kwargs))

    def warning(self, message: str, *args, **kwargs):
        self.log_event(
            LogEvent(
                event_type="WARNING",
                timestamp=self._timestamp(),
                data={"message": message[:500]},
            )
        )
        self.console.warning(message, *args, **_console_kwargs(kwargs))

    def debug(self, message: str, *args, **kwargs):
        self.log_event(
            LogEvent(event_type="DEBUG", timestamp=self._timestamp(), data={"message": message})
        )
        self.console.debug(message, *args, **_console_kwargs(kwargs))

    def close(self) -> None:
        with self._file_lock:
            if self._log_file_handle is not None:
                self._log_file_handle.close()
                self._log_file_handle = None


def _console_kwargs(kwargs: dict[str, Any]) -> dict[str, Any]:
    return {k: v for k, v in kwargs.items() if k in ("exc_info", "stack_info", "stacklevel", "extra")}


logger = ArivuLogger()
