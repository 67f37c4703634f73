"""Pytest configuration for milesync tests.

Ensures the in-repo `src` directory is on `sys.path` so the package can be
imported without an editable install (`pip install -e .`), and provides
in-memory stand-ins for ``requests`` sessions so no test touches the
network.
"""

from __future__ import annotations

import json
import sys
import time
from collections.abc import Callable
from contextlib import nullcontext
from pathlib import Path
from typing import Any

import pytest
import requests

_TEST_START_TIMES: dict[str, float] = {}
_TEST_DURATIONS: list[tuple[str, float]] = []

ROOT = Path(__file__).resolve().parents[1]
SRC = ROOT / "src"
if str(SRC) not in sys.path:
    sys.path.insert(0, str(SRC))

import milesync.logging as milesync_logging  # noqa: E402


class DummyResponse:
    def __init__(
        self,
        status_code: int = 200,
        payload: Any = None,
        *,
        link: str | None = None,
        raw: bytes | None = None,
    ) -> None:
        self.status_code = status_code
        self.content = raw if raw is not None else json.dumps(payload).encode("utf-8")
        self.headers: dict[str, str] = {"Link": link} if link else {}
        self.closed = False

    @property
    def text(self) -> str:
        return self.content.decode("utf-8", errors="replace")

    @property
    def links(self) -> dict[str, dict[str, str]]:
        header = self.headers.get("Link")
        resolved: dict[str, dict[str, str]] = {}
        if header:
            for link in requests.utils.parse_header_links(header):
                key = link.get("rel") or link.get("url")
                resolved[key] = link
        return resolved

    def close(self) -> None:
        self.closed = True

    def __enter__(self) -> DummyResponse:
        return self

    def __exit__(self, *exc: object) -> None:
        self.close()


class DummySession:
    """Serves queued responses in order and records every request."""

    def __init__(self, responses: list[DummyResponse | Exception]):
        self._responses = list(responses)
        self.request_log: list[tuple[str, str, dict[str, Any]]] = []
        self.served: list[DummyResponse] = []
        self.headers: dict[str, str] = {}

    def request(self, method: str, url: str, **kwargs: Any) -> DummyResponse:
        self.request_log.append((method, url, kwargs))
        if not self._responses:
            raise AssertionError(f"No response queued for {method} {url}")
        nxt = self._responses.pop(0)
        if isinstance(nxt, Exception):
            raise nxt
        self.served.append(nxt)
        return nxt


@pytest.fixture
def make_session() -> Callable[[list[DummyResponse | Exception]], DummySession]:
    return DummySession


@pytest.fixture
def response() -> type[DummyResponse]:
    return DummyResponse


class RecordingLogger:
    """Captures StructuredLogger calls as ``(kind, message, fields)`` tuples."""

    def __init__(self) -> None:
        self.records: list[tuple[str, str, dict[str, Any]]] = []

    def info(self, message: str, **kw: Any) -> None:
        self.records.append(("info", message, kw))

    def debug(self, message: str, **kw: Any) -> None:
        self.records.append(("debug", message, kw))

    def log_error(self, message: str, error: str | None = None, **kw: Any) -> None:
        self.records.append(("error", message, {"error": error, **kw}))

    def log_milestone_action(
        self,
        action: str,
        title: str,
        due_date: str | None = None,
        milestone_id: str | None = None,
        dry_run: bool = False,
        **kw: Any,
    ) -> None:
        self.records.append(
            (
                action,
                title,
                {"due_date": due_date, "milestone_id": milestone_id, "dry_run": dry_run, **kw},
            )
        )

    def timed_operation(self, operation: str, **kw: Any) -> Any:
        self.records.append(("operation", f"{operation}_start", kw))
        return nullcontext()

    def messages(self, kind: str | None = None) -> list[str]:
        return [msg for k, msg, _ in self.records if kind is None or k == kind]


@pytest.fixture
def recording_logger() -> RecordingLogger:
    return RecordingLogger()


# --- Timing utilities to help identify slow/stalling tests ---


def pytest_runtest_setup(item):  # type: ignore
    _TEST_START_TIMES[item.nodeid] = time.perf_counter()


def pytest_runtest_teardown(item):  # type: ignore
    start = _TEST_START_TIMES.pop(item.nodeid, None)
    if start is not None:
        duration = time.perf_counter() - start
        _TEST_DURATIONS.append((item.nodeid, duration))


def pytest_sessionfinish(session, exitstatus):  # type: ignore
    if not _TEST_DURATIONS:
        return
    slow = sorted(_TEST_DURATIONS, key=lambda x: x[1], reverse=True)[:10]
    print("\n=== Slowest Tests (top 10) ===")
    for nodeid, secs in slow:
        print(f"{secs:0.3f}s  {nodeid}")
    total_time = sum(d for _, d in _TEST_DURATIONS)
    print(
        f"Total recorded test time: {total_time:0.3f}s over {len(_TEST_DURATIONS)} tests"
    )


@pytest.fixture(autouse=True)
def _reset_global_logger():
    # configure_logging binds a handler to whatever sys.stdout was at call time
    yield
    milesync_logging._current = None
