"""Loan period rules: issue/due date handling and the overdue check."""

from __future__ import annotations

import calendar
from datetime import date, datetime
from typing import Optional


def today_iso(today: Optional[date] = None) -> str:
    """Return ``today`` (or the current local date) as ``YYYY-MM-DD``."""
    return (today or date.today()).isoformat()


def parse_iso_date(value: str) -> Optional[date]:
    """Parse the date part of an ISO string; None for empty or malformed input."""
    if not value:
        return None
    text = value.strip()
    try:
        return date.fromisoformat(text[:10])
    except ValueError:
        pass
    try:
        return datetime.fromisoformat(text).date()
    except ValueError:
        return None


def _add_months(year: int, month: int, months: int) -> tuple[int, int]:
    index = year * 12 + (month - 1) + months
    return index // 12, index % 12 + 1


def compute_due_date(issue: date) -> date:
    """Due date for a book issued on ``issue``.

    Moves to the first day of the next month, steps one more month
    forward and takes the last day of that month, e.g. 2024-01-20 is due
    on 2024-03-31.
    """
    year, month = _add_months(issue.year, issue.month, 1)
    year, month = _add_months(year, month, 1)
    return date(year, month, calendar.monthrange(year, month)[1])


def due_date_for(issue_date: str) -> str:
    """String form of :func:`compute_due_date`; empty if ``issue_date`` does not parse."""
    issue = parse_iso_date(issue_date)
    if issue is None:
        return ""
    return compute_due_date(issue).isoformat()
