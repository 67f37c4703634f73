"""Structured JSON logging for milesync."""

from __future__ import annotations

import json
import logging
import sys
import time
from collections.abc import Iterator
from contextlib import contextmanager
from datetime import datetime, timezone
from typing import Any


class JSONFormatter(logging.Formatter):
    def format(self, record: logging.LogRecord) -> str:  # noqa: D401
        entry: dict[str, Any] = {
            "timestamp": datetime.fromtimestamp(record.created, tz=timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }
        for attr in (
            "operation",
            "title",
            "due_date",
            "milestone_id",
            "duration_ms",
            "dry_run",
            "error",
        ):
            if hasattr(record, attr):
                entry[attr] = getattr(record, attr)
        reserved = set(logging.LogRecord("", 0, "", 0, "", (), None).__dict__) | {
            "message",
            "asctime",
        }
        for k, v in record.__dict__.items():
            if k not in reserved and not k.startswith("_") and k not in entry:
                entry[k] = v
        return json.dumps(entry, default=str)


class StructuredLogger:
    """Thin wrapper over a stdlib logger that attaches milesync fields.

    Fields passed as keywords end up on the record; :class:`JSONFormatter`
    renders them, the plain formatter drops them.
    """

    def __init__(
        self, name: str = "milesync", json_logging: bool = False, level: str = "INFO"
    ) -> None:
        self._logger = logging.getLogger(name)
        self._logger.setLevel(getattr(logging, level.upper(), logging.INFO))
        for h in list(self._logger.handlers):
            self._logger.removeHandler(h)
        handler = logging.StreamHandler(sys.stdout)
        handler.setFormatter(
            JSONFormatter()
            if json_logging
            else logging.Formatter("%(asctime)s %(levelname)s %(message)s")
        )
        self._logger.addHandler(handler)
        self._logger.propagate = False

    def log_milestone_action(
        self,
        action: str,
        title: str,
        due_date: str | None = None,
        milestone_id: str | None = None,
        dry_run: bool = False,
        **kw: Any,
    ) -> None:
        extra: dict[str, Any] = {
            "operation": f"milestone_{action}",
            "title": title,
            "dry_run": dry_run,
            **kw,
        }
        if due_date:
            extra["due_date"] = due_date
        if milestone_id:
            extra["milestone_id"] = milestone_id
        msg = (
            f"Title: {title} - Due Date: {due_date or 'none'}"
            + (f" (id {milestone_id})" if milestone_id else "")
            + (" [DRY]" if dry_run else "")
        )
        self._logger.info(msg, extra=extra)

    def log_error(self, message: str, error: str | None = None, **kw: Any) -> None:
        extra = dict(kw)
        if error:
            extra["error"] = error
        self._logger.error(message, extra=extra)

    def debug(self, message: str, **kw: Any) -> None:
        self._logger.debug(message, extra=kw)

    def info(self, message: str, **kw: Any) -> None:
        self._logger.info(message, extra=kw)

    @contextmanager
    def timed_operation(self, operation: str, **kw: Any) -> Iterator[None]:
        """Log ``<operation>_start``, then either the failure or the elapsed time."""
        self.info(f"{operation} started", operation=f"{operation}_start", **kw)
        start = time.perf_counter()
        try:
            yield
        except Exception as exc:
            self.log_error(f"operation {operation} failed", error=str(exc), **kw)
            raise
        elapsed = round((time.perf_counter() - start) * 1000, 2)
        self.info(
            f"{operation} finished in {elapsed:.2f}ms",
            operation=operation,
            duration_ms=elapsed,
            **kw,
        )


_current: StructuredLogger | None = None


def configure_logging(json_logging: bool = False, level: str = "INFO") -> StructuredLogger:
    """Install a fresh process-wide logger and return it."""
    global _current  # noqa: PLW0603
    _current = StructuredLogger(json_logging=json_logging, level=level)
    return _current


def get_logger() -> StructuredLogger:
    return _current or configure_logging()
