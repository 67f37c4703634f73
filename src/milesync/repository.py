"""Remote milestone repository.

Wraps the paginator with decoding: every page must be a JSON list of
milestone records. Pages are merged into a title-keyed dict with later
pages overwriting earlier ones, so a title collision keeps the last record
seen. Decoding is fail-fast; a single bad page discards the whole fetch.
"""

from __future__ import annotations

import json
from datetime import date
from typing import Any, Protocol

from .errors import DecodeError, ProjectNotFound, RemoteAPIError
from .models import MilestoneState, RemoteMilestone


class _PagingClient(Protocol):
    def paginate(self, path: str, *, params: dict[str, Any] | None = None) -> list[bytes]: ...

    def project_path(self, project_id: str) -> str: ...


def _decode_page(body: bytes, *, source: str) -> list[dict[str, Any]]:
    try:
        payload = json.loads(body)
    except (UnicodeDecodeError, ValueError) as exc:
        raise DecodeError(f"{source}: page is not valid JSON ({exc})", url=source) from exc
    if isinstance(payload, dict) and ("message" in payload or "error" in payload):
        message = payload.get("message") or payload.get("error")
        raise RemoteAPIError(
            f"{source}: api returned error {message}",
            response_text=body.decode("utf-8", errors="replace"),
        )
    if not isinstance(payload, list):
        raise DecodeError(
            f"{source}: expected a list of records, got {type(payload).__name__}", url=source
        )
    for record in payload:
        if not isinstance(record, dict):
            raise DecodeError(f"{source}: record is not an object: {record!r}", url=source)
    return payload


def _parse_due_date(raw: Any, *, source: str) -> date | None:
    if raw in (None, ""):
        return None
    try:
        return date.fromisoformat(str(raw).split("T", 1)[0])
    except ValueError as exc:
        raise DecodeError(f"{source}: invalid due_date {raw!r}", url=source) from exc


def decode_milestone(
    record: dict[str, Any], *, state: MilestoneState, source: str = ""
) -> RemoteMilestone:
    title = record.get("title")
    if not isinstance(title, str) or not title:
        raise DecodeError(f"{source}: milestone record without title: {record!r}", url=source)
    raw_id = record.get("id")
    if raw_id is None or isinstance(raw_id, bool):
        raise DecodeError(f"{source}: milestone {title!r} has no id", url=source)
    raw_state = record.get("state")
    try:
        record_state = MilestoneState(raw_state) if raw_state else state
    except ValueError as exc:
        raise DecodeError(f"{source}: unknown milestone state {raw_state!r}", url=source) from exc
    return RemoteMilestone(
        id=str(raw_id),
        title=title,
        due_date=_parse_due_date(record.get("due_date"), source=source),
        state=record_state,
    )


def index_by_title(
    pages: list[bytes], *, state: MilestoneState, source: str
) -> dict[str, RemoteMilestone]:
    milestones: dict[str, RemoteMilestone] = {}
    for number, body in enumerate(pages, start=1):
        page_source = f"{source} (page {number})"
        for record in _decode_page(body, source=page_source):
            milestone = decode_milestone(record, state=state, source=page_source)
            milestones[milestone.title] = milestone
    return milestones


def fetch_by_state(
    client: _PagingClient, project_id: str, state: MilestoneState | str
) -> dict[str, RemoteMilestone]:
    """Return the project's milestones in ``state`` keyed by title."""
    state = MilestoneState(state)
    path = f"{client.project_path(project_id)}/milestones"
    pages = client.paginate(path, params={"state": state.value})
    return index_by_title(pages, state=state, source=path)


def fetch_active(client: _PagingClient, project_id: str) -> dict[str, RemoteMilestone]:
    return fetch_by_state(client, project_id, MilestoneState.ACTIVE)


def fetch_closed(client: _PagingClient, project_id: str) -> dict[str, RemoteMilestone]:
    return fetch_by_state(client, project_id, MilestoneState.CLOSED)


def find_project_id(client: _PagingClient, name: str, namespace: str) -> str:
    """Resolve a project id by exact ``name`` and namespace ``path``."""
    pages = client.paginate("/projects", params={"search": name})
    for number, body in enumerate(pages, start=1):
        for project in _decode_page(body, source=f"/projects (page {number})"):
            ns = project.get("namespace")
            ns_path = ns.get("path") if isinstance(ns, dict) else None
            if project.get("id") is None:
                continue
            if project.get("name") == name and ns_path == namespace:
                return str(project["id"])
    raise ProjectNotFound(name, namespace)


__all__ = [
    "decode_milestone",
    "fetch_active",
    "fetch_by_state",
    "fetch_closed",
    "find_project_id",
    "index_by_title",
]
