from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date
from enum import Enum
from typing import Any


class MilestoneState(str, Enum):
    ACTIVE = "active"
    CLOSED = "closed"


@dataclass(frozen=True)
class Milestone:
    """A locally computed period milestone; ``title`` is the natural key."""

    title: str
    due_date: date

    def __post_init__(self) -> None:
        if not self.title:
            raise ValueError("milestone title must not be empty")


@dataclass(frozen=True)
class RemoteMilestone:
    """Milestone as decoded from the remote API."""

    id: str
    title: str
    due_date: date | None
    state: MilestoneState


@dataclass(frozen=True)
class ReconciliationResult:
    to_create: dict[str, Milestone] = field(default_factory=dict)
    to_reactivate: dict[str, RemoteMilestone] = field(default_factory=dict)

    @property
    def in_sync(self) -> bool:
        return not self.to_create and not self.to_reactivate


def sorted_by_title(entries: dict[str, Milestone] | dict[str, RemoteMilestone]) -> list[Any]:
    """Return the values of a title-keyed mapping in ascending title order."""
    return [entries[title] for title in sorted(entries)]


__all__ = [
    "Milestone",
    "MilestoneState",
    "RemoteMilestone",
    "ReconciliationResult",
    "sorted_by_title",
]
