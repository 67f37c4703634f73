"""Error taxonomy & redaction helpers.

Every failure a sync run can surface derives from :class:`MilesyncError` so
callers (CLI, orchestrator, tests) can catch one type. The subclasses map
onto the stages of a run:

- ``InvalidCadence``  -> bad schedule configuration (non-fatal, run is a no-op)
- ``NetworkError``    -> transport failure talking to the remote API
- ``CollectionError`` -> pagination protocol violation (e.g. ``next`` cycle)
- ``DecodeError``     -> a page payload could not be decoded
- ``ProjectNotFound`` -> project lookup by name/namespace found nothing
- ``RemoteAPIError``  -> remote answered with an error payload or status

Public API:
- classify_error(exc) -> ErrorInfo
- redact(text, secrets=()) -> str
"""
from __future__ import annotations

import re
from collections.abc import Iterable
from dataclasses import dataclass
from typing import Any

_SENSITIVE_PATTERNS: list[re.Pattern[str]] = [
    re.compile(r"glpat-[A-Za-z0-9_\-]{20,}"),  # GitLab personal/project tokens
    re.compile(r"glcbt-[A-Za-z0-9_\-]{20,}"),  # CI job tokens
    re.compile(r"(PRIVATE-TOKEN:\s*)\S+", re.IGNORECASE),
]

_REDACTION_PLACEHOLDER = "<redacted>"


class MilesyncError(RuntimeError):
    """Base class for all errors raised by a sync run."""


class InvalidCadence(MilesyncError):
    def __init__(self, cadence: str):
        super().__init__(f"Incorrect interval: {cadence!r} (expected daily, weekly or monthly)")
        self.cadence = cadence


class NetworkError(MilesyncError):
    """Raised when the HTTP transport fails before a response is read."""


class CollectionError(MilesyncError):
    """Raised when a paginated collection violates the ``Link`` protocol."""


class DecodeError(MilesyncError):
    def __init__(self, message: str, *, url: str | None = None):
        super().__init__(message)
        self.url = url


class ProjectNotFound(MilesyncError):
    def __init__(self, name: str, namespace: str):
        super().__init__(f"project {namespace}/{name} not found")
        self.name = name
        self.namespace = namespace


class RemoteAPIError(MilesyncError):
    """Raised when the remote API returns an error instead of data."""

    def __init__(
        self,
        message: str,
        *,
        status: int | None = None,
        response_text: str | None = None,
    ):
        super().__init__(message)
        self.status = status
        self.response_text = response_text


@dataclass
class ErrorInfo:
    category: str
    message: str
    original_type: str
    transient: bool = False
    details: dict[str, Any] | None = None


def redact(text: str, secrets: Iterable[str] = ()) -> str:
    """Redact tokens in arbitrary text.

    Known token shapes are matched by pattern; ``secrets`` lets the caller
    pass the literal configured token as well.
    """
    if not text:
        return text
    redacted = text
    for secret in secrets:
        if secret:
            redacted = redacted.replace(secret, _REDACTION_PLACEHOLDER)
    for pat in _SENSITIVE_PATTERNS:
        if pat.groups:
            redacted = pat.sub(lambda m: m.group(1) + _REDACTION_PLACEHOLDER, redacted)
        else:
            redacted = pat.sub(_REDACTION_PLACEHOLDER, redacted)
    return redacted


_CATEGORIES: tuple[tuple[type[BaseException], str], ...] = (
    (InvalidCadence, "config"),
    (NetworkError, "network"),
    (CollectionError, "pagination"),
    (DecodeError, "decode"),
    (ProjectNotFound, "project"),
    (RemoteAPIError, "remote"),
)


def classify_error(exc: BaseException) -> ErrorInfo:
    """Map an exception onto a coarse category for logs and summaries.

    Network failures are the only transient category; remote errors become
    transient when the status is 429 or 5xx.
    """
    msg = redact(str(exc) if exc else "")
    name = exc.__class__.__name__
    for cls, category in _CATEGORIES:
        if isinstance(exc, cls):
            details: dict[str, Any] | None = None
            transient = category == "network"
            if isinstance(exc, RemoteAPIError) and exc.status is not None:
                details = {"status": exc.status}
                transient = exc.status == 429 or exc.status >= 500  # noqa: PLR2004
            return ErrorInfo(category, msg, name, transient=transient, details=details)
    return ErrorInfo("generic", msg, name)


__all__ = [
    "MilesyncError",
    "InvalidCadence",
    "NetworkError",
    "CollectionError",
    "DecodeError",
    "ProjectNotFound",
    "RemoteAPIError",
    "ErrorInfo",
    "classify_error",
    "redact",
]
