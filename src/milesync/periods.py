"""Period calculator: the desired milestones for a cadence and look-ahead.

All functions here are pure; ``today`` is always an argument so identical
inputs yield identical output.
"""

from __future__ import annotations

import calendar
from datetime import date, timedelta

from .errors import InvalidCadence
from .logging import StructuredLogger, get_logger
from .models import Milestone

CADENCES = ("daily", "weekly", "monthly")

_SUNDAY = 6  # date.weekday()


def last_day_of_week(day: date) -> date:
    """Return the Sunday closing the ISO week containing ``day``."""
    return day + timedelta(days=_SUNDAY - day.weekday())


def last_day_of_month(year: int, month: int) -> date:
    return date(year, month, calendar.monthrange(year, month)[1])


def add_months(day: date, months: int) -> tuple[int, int]:
    """Return ``(year, month)`` of the month ``months`` after ``day``'s month."""
    index = day.year * 12 + (day.month - 1) + months
    return index // 12, index % 12 + 1


def _daily(lookahead: int, today: date) -> dict[str, Milestone]:
    milestones: dict[str, Milestone] = {}
    for i in range(lookahead):
        day = today + timedelta(days=i)
        title = day.isoformat()
        milestones[title] = Milestone(title=title, due_date=day)
    return milestones


def _weekly(lookahead: int, today: date) -> dict[str, Milestone]:
    milestones: dict[str, Milestone] = {}
    cursor = today
    for _ in range(lookahead):
        sunday = last_day_of_week(cursor)
        iso_year, iso_week, _weekday = sunday.isocalendar()
        title = f"{iso_year}-w{iso_week:02d}"
        milestones[title] = Milestone(title=title, due_date=sunday)
        cursor = sunday + timedelta(days=7)
    return milestones


def _monthly(lookahead: int, today: date) -> dict[str, Milestone]:
    milestones: dict[str, Milestone] = {}
    for i in range(lookahead):
        year, month = add_months(today, i)
        title = f"{year:04d}-{month:02d}"
        milestones[title] = Milestone(title=title, due_date=last_day_of_month(year, month))
    return milestones


_BUILDERS = {
    "daily": _daily,
    "weekly": _weekly,
    "monthly": _monthly,
}


def compute_milestones(cadence: str, lookahead: int, today: date) -> dict[str, Milestone]:
    """Return the desired milestones keyed by title.

    Raises :class:`InvalidCadence` for an unknown cadence and ``ValueError``
    for a non-positive look-ahead.
    """
    builder = _BUILDERS.get(cadence)
    if builder is None:
        raise InvalidCadence(cadence)
    if isinstance(lookahead, bool) or not isinstance(lookahead, int) or lookahead <= 0:
        raise ValueError(f"lookahead must be a positive integer, got {lookahead!r}")
    return builder(lookahead, today)


def desired_milestones(
    cadence: str,
    lookahead: int,
    today: date,
    *,
    logger: StructuredLogger | None = None,
) -> dict[str, Milestone]:
    """Like :func:`compute_milestones` but an unknown cadence yields ``{}``."""
    try:
        return compute_milestones(cadence, lookahead, today)
    except InvalidCadence as exc:
        (logger or get_logger()).log_error(
            "Error: Incorrect interval", error=str(exc), cadence=cadence
        )
        return {}


__all__ = [
    "CADENCES",
    "add_months",
    "compute_milestones",
    "desired_milestones",
    "last_day_of_month",
    "last_day_of_week",
]
