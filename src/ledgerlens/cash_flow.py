# LedgerLens - Financial dashboard metrics from general-ledger journal entries
# Copyright (c) 2025 Maxence Bernard (maxencebernardhub)
# Licensed under the MIT License. See LICENSE file for details.

"""
Direct-method cash-flow statement for LedgerLens.

The classifier works entry by entry:

1. collect the lines posted to cash or bank accounts; entries without any
   are not cash transactions and are skipped;
2. net the cash impact over those lines (debit - credit, positive means an
   inflow); entries netting to zero are cash-to-cash transfers and are
   skipped;
3. pick the dominant non-cash line, i.e. the one with the largest
   max(debit, credit), keeping the earliest line on ties;
4. attribute the entry to the section of that line's account (see
   accounts.classify_account_to_section), or to Operating when the entry
   has no non-cash line.

``classify_entries`` does not filter by status, currency or date: that is
the job of the caller, or of ``build_cash_flow_statement`` which applies
the report filters (single currency, inclusive day range) first.
"""

import logging
from collections.abc import Sequence
from datetime import date, datetime, timedelta
from typing import Optional

from .accounts import classify_account_to_section, is_cash_like
from .models import (
    CashFlowSection,
    CashFlowStatement,
    ClassifiedRow,
    JournalEntry,
    JournalEntryLine,
)
from .periods import Period, start_of_day, to_utc, utc_today

logger = logging.getLogger(__name__)

ZERO_IMPACT_TOLERANCE = 1e-9
DEFAULT_LOOKBACK_DAYS = 30
PREFERRED_CURRENCY = "USD"


def _line_magnitude(line: JournalEntryLine) -> float:
    return max(line.debit_amount, line.credit_amount)


def _dominant_line(lines: Sequence[JournalEntryLine]) -> Optional[JournalEntryLine]:
    dominant: Optional[JournalEntryLine] = None
    for line in lines:
        if dominant is None or _line_magnitude(line) > _line_magnitude(dominant):
            dominant = line
    return dominant


def classify_entry(entry: JournalEntry) -> Optional[ClassifiedRow]:
    """Classify one entry, or return None when it has no net cash impact."""
    lines = entry.journal_entry_lines
    cash_lines = [line for line in lines if is_cash_like(line.chart_of_account)]
    if not cash_lines:
        return None

    cash_impact = sum(line.debit_amount - line.credit_amount for line in cash_lines)
    if abs(cash_impact) < ZERO_IMPACT_TOLERANCE:
        return None

    non_cash = [line for line in lines if not is_cash_like(line.chart_of_account)]
    dominant = _dominant_line(non_cash)
    if dominant is None:
        section = CashFlowSection.OPERATING
    else:
        section = classify_account_to_section(dominant.chart_of_account)

    return ClassifiedRow(
        entry_id=entry.id,
        date=entry.transaction_date,
        reference=entry.reference_number,
        description=entry.description,
        section=section,
        cash_impact=cash_impact,
        currency=entry.currency or "-",
    )


def _row_sort_key(row: ClassifiedRow) -> tuple[bool, datetime]:
    if row.date is None:
        return (True, datetime.min)
    return (False, to_utc(row.date).replace(tzinfo=None))


def classify_entries(entries: Sequence[JournalEntry]) -> list[ClassifiedRow]:
    """Classify every cash-affecting entry; rows are sorted by date."""
    if not isinstance(entries, (list, tuple)):
        raise TypeError(
            f"entries must be a list of JournalEntry, got {type(entries).__name__}."
        )

    rows = [row for row in map(classify_entry, entries) if row is not None]
    return sorted(rows, key=_row_sort_key)


def summarize_sections(
    rows: Sequence[ClassifiedRow], currency: Optional[str] = None
) -> CashFlowStatement:
    """Sum the cash impact of the rows per section."""
    totals = {section: 0.0 for section in CashFlowSection}
    for row in rows:
        totals[row.section] += row.cash_impact

    return CashFlowStatement(
        rows=list(rows),
        operating=totals[CashFlowSection.OPERATING],
        investing=totals[CashFlowSection.INVESTING],
        financing=totals[CashFlowSection.FINANCING],
        currency=currency,
    )


def default_cash_flow_range(
    today: Optional[date] = None, lookback_days: int = DEFAULT_LOOKBACK_DAYS
) -> tuple[date, date]:
    """Report range ending today (UTC) and starting ``lookback_days`` earlier."""
    if today is None:
        today = utc_today()
    return today - timedelta(days=lookback_days), today


def choose_cash_flow_currency(
    entries: Sequence[JournalEntry], preferred: str = PREFERRED_CURRENCY
) -> Optional[str]:
    """Pick the report currency: ``preferred`` if present, else the first seen."""
    codes = list(dict.fromkeys(e.currency for e in entries if e.currency))
    if preferred.upper() in codes:
        return preferred.upper()
    return codes[0] if codes else None


def filter_entries_for_cash_flow(
    entries: Sequence[JournalEntry],
    currency: str,
    start: date,
    end: date,
) -> list[JournalEntry]:
    """
    Keep entries in ``currency`` dated within the inclusive day range.

    Raises
    ------
    ValueError
        If ``end`` is before ``start``.
    """
    if end < start:
        raise ValueError("Cash-flow range end date cannot be before start date.")

    period = Period(
        start=start_of_day(start),
        end=start_of_day(end + timedelta(days=1)),
        label=f"{start.isoformat()} to {end.isoformat()}",
    )
    code = (currency or "").strip().upper()
    return [
        e
        for e in entries
        if e.currency == code and period.contains(e.transaction_date)
    ]


def build_cash_flow_statement(
    entries: Sequence[JournalEntry],
    currency: str,
    start: date,
    end: date,
) -> CashFlowStatement:
    """Filter entries to one currency and day range, then classify them."""
    selected = filter_entries_for_cash_flow(entries, currency, start, end)
    rows = classify_entries(selected)
    logger.debug(
        "Cash flow %s %s..%s: %d entries in range, %d classified rows",
        currency,
        start.isoformat(),
        end.isoformat(),
        len(selected),
        len(rows),
    )
    return summarize_sections(rows, currency=(currency or "").strip().upper() or None)
