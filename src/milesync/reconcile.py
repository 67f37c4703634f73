"""Reconcile desired period milestones against the remote project.

Two derived sets come out of a comparison:

* ``to_create``     – desired titles with neither an active nor a closed
                      remote milestone
* ``to_reactivate`` – closed remote milestones whose title is desired again

Closed milestones are reactivated whatever their due date. Active and
closed sets are assumed disjoint, as the remote state machine guarantees.

:func:`reconcile` is pure. :func:`apply_reconciliation` performs the
mutations serially in ascending title order and stops at the first failure;
already applied changes are not rolled back. Re-running is safe because
created milestones show up as active on the next pass.
"""

from __future__ import annotations

from collections.abc import Mapping
from datetime import date
from typing import Protocol

from .logging import StructuredLogger, get_logger
from .models import Milestone, ReconciliationResult, RemoteMilestone, sorted_by_title


class MilestoneMutator(Protocol):
    def create_milestone(self, project_id: str, *, title: str, due_date: str) -> None: ...

    def activate_milestone(self, project_id: str, milestone_id: str) -> None: ...


def reconcile(
    desired: Mapping[str, Milestone],
    active: Mapping[str, RemoteMilestone],
    closed: Mapping[str, RemoteMilestone],
) -> ReconciliationResult:
    to_reactivate = {title: m for title, m in closed.items() if title in desired}
    to_create = {
        title: m
        for title, m in desired.items()
        if title not in active and title not in to_reactivate
    }
    return ReconciliationResult(to_create=to_create, to_reactivate=to_reactivate)


def _due(value: date | None) -> str | None:
    return value.isoformat() if value is not None else None


def create_missing(
    to_create: Mapping[str, Milestone],
    client: MilestoneMutator,
    project_id: str,
    *,
    logger: StructuredLogger | None = None,
    dry_run: bool = False,
) -> list[Milestone]:
    log = logger or get_logger()
    if not to_create:
        log.info("No milestone creation needed")
        return []
    ordered: list[Milestone] = sorted_by_title(dict(to_create))
    log.info("New milestones:")
    for milestone in ordered:
        log.log_milestone_action(
            "create", milestone.title, _due(milestone.due_date), dry_run=dry_run
        )
    if not dry_run:
        for milestone in ordered:
            client.create_milestone(
                project_id, title=milestone.title, due_date=milestone.due_date.isoformat()
            )
    return ordered


def reactivate_closed(
    to_reactivate: Mapping[str, RemoteMilestone],
    client: MilestoneMutator,
    project_id: str,
    *,
    logger: StructuredLogger | None = None,
    dry_run: bool = False,
) -> list[RemoteMilestone]:
    log = logger or get_logger()
    if not to_reactivate:
        log.info("No milestone reactivation needed")
        return []
    ordered: list[RemoteMilestone] = sorted_by_title(dict(to_reactivate))
    log.info("Reactivating milestones:")
    for milestone in ordered:
        log.log_milestone_action(
            "reactivate",
            milestone.title,
            _due(milestone.due_date),
            milestone_id=milestone.id,
            dry_run=dry_run,
        )
    if not dry_run:
        for milestone in ordered:
            client.activate_milestone(project_id, milestone.id)
    return ordered


def apply_reconciliation(
    result: ReconciliationResult,
    client: MilestoneMutator,
    project_id: str,
    *,
    logger: StructuredLogger | None = None,
    dry_run: bool = False,
) -> tuple[list[Milestone], list[RemoteMilestone]]:
    """Create then reactivate; returns what was (or would be) applied."""
    created = create_missing(
        result.to_create, client, project_id, logger=logger, dry_run=dry_run
    )
    reactivated = reactivate_closed(
        result.to_reactivate, client, project_id, logger=logger, dry_run=dry_run
    )
    return created, reactivated


def format_report(result: ReconciliationResult) -> list[str]:
    lines: list[str] = []
    if result.in_sync:
        lines.append("[reconcile] No changes needed")
        return lines
    lines.append(
        f"[reconcile] create={len(result.to_create)} reactivate={len(result.to_reactivate)}"
    )
    for m in sorted_by_title(result.to_create):
        lines.append(f"  create: {m.title} :: due {m.due_date.isoformat()}")
    for r in sorted_by_title(result.to_reactivate):
        lines.append(f"  reactivate: {r.title} :: id {r.id} (due {_due(r.due_date) or 'none'})")
    return lines


__all__ = [
    "MilestoneMutator",
    "apply_reconciliation",
    "create_missing",
    "format_report",
    "reactivate_closed",
    "reconcile",
]
