# LedgerLens - Financial dashboard metrics from general-ledger journal entries
# Copyright (c) 2025 Maxence Bernard (maxencebernardhub)
# Licensed under the MIT License. See LICENSE file for details.

"""
Period helpers for LedgerLens.

This module defines a Period value object and derives the pair of comparison
windows (current and previous) used by the dashboard, together with the
labelling function that buckets entries into chart series keys.

All boundaries are UTC instants. Every ``end`` is exclusive, so an entry
stamped exactly on a boundary belongs to the window that starts there.

Comparison ranges
-----------------
- week    : ISO week containing ``now`` (Monday 00:00) vs the preceding week,
            bucketed by ISO week key (YYYY-Www).
- month   : calendar month containing ``now`` vs the preceding month,
            bucketed by month key (YYYY-MM).
- quarter : calendar quarter containing ``now`` vs the preceding quarter,
            bucketed by month key.
- year    : 1 January through the end of today vs 1 January of the prior
            year through the end of the same calendar day last year,
            bucketed by month key.
"""

import logging
from collections.abc import Callable
from dataclasses import dataclass
from datetime import date, datetime, time, timedelta, timezone
from typing import Optional

from .models import COMPARISON_RANGES

logger = logging.getLogger(__name__)

LabelFn = Callable[[Optional[datetime]], Optional[str]]


@dataclass(frozen=True)
class Period:
    """A reporting window ``[start, end)`` with a human-readable label."""

    start: datetime
    end: datetime
    label: str

    def contains(self, ts: Optional[datetime]) -> bool:
        return ts is not None and self.start <= to_utc(ts) < self.end


@dataclass(frozen=True)
class ComparisonWindows:
    """Current and previous windows plus the chart labelling function."""

    compare_range: str
    current: Period
    previous: Period
    label_fn: LabelFn


def _now() -> datetime:
    """Return the current UTC instant (isolated for easier testing)."""
    return datetime.now(timezone.utc)


def utc_today() -> date:
    """Current calendar date in UTC."""
    return _now().date()


def to_utc(ts: datetime) -> datetime:
    """Return ``ts`` as an aware UTC datetime; naive values are read as UTC."""
    if ts.tzinfo is None:
        return ts.replace(tzinfo=timezone.utc)
    return ts.astimezone(timezone.utc)


def start_of_day(d: date) -> datetime:
    """Midnight UTC at the start of ``d``."""
    return datetime.combine(d, time.min, tzinfo=timezone.utc)


def _add_months(d: date, months: int) -> date:
    """Shift a first-of-month date by a number of months."""
    index = d.year * 12 + (d.month - 1) + months
    return date(index // 12, index % 12 + 1, 1)


def month_key(ts: Optional[datetime]) -> Optional[str]:
    """Bucket key ``YYYY-MM`` for a timestamp, None when it is missing."""
    if ts is None:
        return None
    ts = to_utc(ts)
    return f"{ts.year:04d}-{ts.month:02d}"


def iso_week_key(ts: Optional[datetime]) -> Optional[str]:
    """Bucket key ``YYYY-Www``; the year is the one holding the week's Thursday."""
    if ts is None:
        return None
    iso_year, iso_week, _ = to_utc(ts).date().isocalendar()
    return f"{iso_year:04d}-W{iso_week:02d}"


def normalize_compare_range(compare_range: Optional[str]) -> str:
    """Return a supported comparison range, falling back to ``month``."""
    value = (compare_range or "").strip().lower()
    if value in COMPARISON_RANGES:
        return value
    logger.warning("Unknown comparison range %r, falling back to 'month'.", compare_range)
    return "month"


def _week_windows(today: date) -> tuple[Period, Period]:
    current_start = start_of_day(today - timedelta(days=today.weekday()))
    current_end = current_start + timedelta(days=7)
    previous_start = current_start - timedelta(days=7)
    return (
        Period(start=current_start, end=current_end, label="Current week"),
        Period(start=previous_start, end=current_start, label="Previous week"),
    )


def _month_windows(today: date) -> tuple[Period, Period]:
    first = today.replace(day=1)
    current_start = start_of_day(first)
    current_end = start_of_day(_add_months(first, 1))
    previous_start = start_of_day(_add_months(first, -1))
    return (
        Period(start=current_start, end=current_end, label="Current month"),
        Period(start=previous_start, end=current_start, label="Previous month"),
    )


def _quarter_windows(today: date) -> tuple[Period, Period]:
    first = date(today.year, 3 * ((today.month - 1) // 3) + 1, 1)
    current_start = start_of_day(first)
    current_end = start_of_day(_add_months(first, 3))
    previous_start = start_of_day(_add_months(first, -3))
    return (
        Period(start=current_start, end=current_end, label="Current quarter"),
        Period(start=previous_start, end=current_start, label="Previous quarter"),
    )


def _year_windows(today: date) -> tuple[Period, Period]:
    current_start = start_of_day(date(today.year, 1, 1))
    current_end = start_of_day(today + timedelta(days=1))

    # Same calendar day last year; 29 February rolls over into March.
    last_year = today.year - 1
    previous_start = start_of_day(date(last_year, 1, 1))
    previous_end = start_of_day(date(last_year, today.month, 1) + timedelta(days=today.day))

    return (
        Period(start=current_start, end=current_end, label="Year to date"),
        Period(start=previous_start, end=previous_end, label="Prior year to date"),
    )


def build_windows(
    compare_range: Optional[str],
    now: Optional[datetime] = None,
) -> ComparisonWindows:
    """
    Build the current and previous comparison windows around ``now``.

    Parameters
    ----------
    compare_range:
        One of ``week``, ``month``, ``quarter``, ``year``. Unknown values
        fall back to ``month``.
    now:
        Reference instant. Defaults to the current UTC time; naive values
        are read as UTC.

    Returns
    -------
    ComparisonWindows
        Windows with exclusive end bounds and the label function used to
        bucket the current window's entries for charting.
    """
    range_key = normalize_compare_range(compare_range)
    today = to_utc(now if now is not None else _now()).date()

    if range_key == "week":
        current, previous = _week_windows(today)
        label_fn: LabelFn = iso_week_key
    elif range_key == "quarter":
        current, previous = _quarter_windows(today)
        label_fn = month_key
    elif range_key == "year":
        current, previous = _year_windows(today)
        label_fn = month_key
    else:
        current, previous = _month_windows(today)
        label_fn = month_key

    logger.debug(
        "Windows for %s: current [%s, %s), previous [%s, %s)",
        range_key,
        current.start.isoformat(),
        current.end.isoformat(),
        previous.start.isoformat(),
        previous.end.isoformat(),
    )

    return ComparisonWindows(
        compare_range=range_key,
        current=current,
        previous=previous,
        label_fn=label_fn,
    )
