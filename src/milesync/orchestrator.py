"""One end-to-end milestone sync pass.

Computes the desired milestones, fetches the remote active and closed
sets, reconciles them and applies the result. Each call builds its own
collections; nothing is shared between runs.
"""

from __future__ import annotations

import json
from datetime import date, datetime, timezone
from pathlib import Path
from typing import Any, Protocol, TypedDict

from .config import ConfigError, SyncConfig
from .env_auth import resolve_token
from .gitlab_rest import GitLabRestClient
from .logging import StructuredLogger, get_logger
from .models import Milestone, RemoteMilestone, sorted_by_title
from .periods import desired_milestones
from .reconcile import MilestoneMutator, apply_reconciliation, reconcile
from .repository import fetch_active, fetch_closed, find_project_id


class SyncClient(MilestoneMutator, Protocol):
    def paginate(self, path: str, *, params: dict[str, Any] | None = None) -> list[bytes]: ...

    def project_path(self, project_id: str) -> str: ...


class Totals(TypedDict):
    desired: int
    active: int
    closed: int
    created: int
    reactivated: int


class SyncSummary(TypedDict):
    generated_at: str
    dry_run: bool
    project_id: str
    cadence: str
    today: str
    desired: list[dict[str, str]]
    created: list[dict[str, str]]
    reactivated: list[dict[str, Any]]
    totals: Totals


def _milestone_entry(m: Milestone) -> dict[str, str]:
    return {"title": m.title, "due_date": m.due_date.isoformat()}


def _remote_entry(m: RemoteMilestone) -> dict[str, Any]:
    return {
        "id": m.id,
        "title": m.title,
        "due_date": m.due_date.isoformat() if m.due_date else None,
    }


def build_client(cfg: SyncConfig) -> GitLabRestClient:
    token = resolve_token(
        cfg.token, load_env=cfg.env_auth_load_dotenv, dotenv_path=cfg.env_auth_dotenv_path
    )
    if not token:
        raise ConfigError("no GitLab token configured (gitlab.token or GITLAB_TOKEN)")
    return GitLabRestClient(
        token=token,
        base_url=cfg.base_url,
        auth_header=cfg.auth_header,
        timeout=cfg.http_timeout,
    )


def resolve_project_id(cfg: SyncConfig, client: SyncClient) -> str:
    if cfg.project_id:
        return cfg.project_id
    if not (cfg.project_name and cfg.namespace):
        raise ConfigError("project_id or project_name + namespace is required")
    return find_project_id(client, cfg.project_name, cfg.namespace)


def sync_milestones(
    cfg: SyncConfig,
    *,
    client: SyncClient,
    today: date,
    dry_run: bool | None = None,
    logger: StructuredLogger | None = None,
) -> SyncSummary:
    log = logger or get_logger()
    cfg.validate()
    dry = cfg.dry_run_default if dry_run is None else dry_run
    desired = desired_milestones(cfg.cadence, cfg.lookahead, today, logger=log)
    active: dict[str, RemoteMilestone] = {}
    closed: dict[str, RemoteMilestone] = {}
    created: list[Milestone] = []
    reactivated: list[RemoteMilestone] = []
    if desired:
        project_id = resolve_project_id(cfg, client)
        with log.timed_operation("milestone_sync", project_id=project_id, dry_run=dry):
            active = fetch_active(client, project_id)
            closed = fetch_closed(client, project_id)
            result = reconcile(desired, active, closed)
            created, reactivated = apply_reconciliation(
                result, client, project_id, logger=log, dry_run=dry
            )
    else:
        project_id = cfg.project_id or ""
    return SyncSummary(
        generated_at=datetime.now(timezone.utc).isoformat(),
        dry_run=dry,
        project_id=project_id,
        cadence=cfg.cadence,
        today=today.isoformat(),
        desired=[_milestone_entry(m) for m in sorted_by_title(desired)],
        created=[_milestone_entry(m) for m in created],
        reactivated=[_remote_entry(m) for m in reactivated],
        totals=Totals(
            desired=len(desired),
            active=len(active),
            closed=len(closed),
            created=len(created),
            reactivated=len(reactivated),
        ),
    )


def write_summary(summary: SyncSummary, path: str | Path) -> Path:
    target = Path(path)
    target.write_text(json.dumps(summary, indent=2) + "\n", encoding="utf-8")
    return target


__all__ = [
    "SyncSummary",
    "build_client",
    "resolve_project_id",
    "sync_milestones",
    "write_summary",
]
