# LedgerLens - Financial dashboard metrics from general-ledger journal entries
# Copyright (c) 2025 Maxence Bernard (maxencebernardhub)
# Licensed under the MIT License. See LICENSE file for details.

"""
Core aggregation engine for LedgerLens.

This module derives the dashboard metrics from a flat list of double-entry
journal entries. It is a pure computation layer: no I/O, no caching, and the
input entries are never mutated. Every call recomputes all intermediate
results from scratch.

The engine orchestrates four responsibilities:

1. Currency guard
   ---------------
   ``select_single_currency()`` keeps the POSTED entries and, when they use
   more than one currency code, narrows the working set to the first code
   encountered. The chosen currency and the number of dropped entries are
   reported on the result instead of being hidden.

2. Flows
   ------
   ``compute_flows()`` recognizes revenue and expense strictly inside a
   window ``[start, end)``:

   - accrual basis: revenue = max(0, credit - debit) on revenue accounts,
     expense = max(0, debit - credit) on expense accounts;
   - cash basis: only lines tagged with a payment method count, for their
     full credit (revenue) or debit (expense) amount.

   VAT input/output accounts never count as revenue or expense.

3. As-of balances
   ---------------
   ``ending_balance_as_of()`` sums a balance-sheet account from inception up
   to an exclusive end instant. Cash and receivables are debit-natured,
   payables are credit-natured. These are point-in-time balances, not flows.

4. Dashboard
   ----------
   ``process_dashboard_data()`` combines the above with the comparison
   windows from periods.py and produces a DashboardMetrics value, including
   the monthly chart series of the current window and percentage changes
   versus the previous window.

Notes
-----
Percentage changes against a zero or non-finite previous value are 0.
The expense change is negated (higher expenses are reported as a negative
change), matching the dashboard's presentation convention.
"""

import logging
import math
from collections.abc import Callable, Sequence
from dataclasses import dataclass
from datetime import datetime
from typing import Optional

from .accounts import is_cash_like, is_expense, is_payable, is_receivable, is_revenue, is_vat
from .models import (
    BASES,
    AccountSummary,
    Basis,
    ChartOfAccount,
    ComparisonRange,
    DashboardMetrics,
    JournalEntry,
    MetricChanges,
    MonthlyPoint,
)
from .periods import LabelFn, Period, build_windows, to_utc

logger = logging.getLogger(__name__)

AccountPredicate = Callable[[Optional[ChartOfAccount]], bool]


@dataclass(frozen=True)
class CurrencySelection:
    """POSTED entries retained by the currency guard."""

    entries: list[JournalEntry]
    currency: Optional[str]
    dropped: int = 0


@dataclass(frozen=True)
class FlowResult:
    """
    Revenue and expense recognized inside one window.

    Attributes
    ----------
    revenues / expenses :
        One AccountSummary per contributing account, in first-seen order.
    series :
        Revenue and expense per chart label ({label: {"revenue", "expense"}}).
        Every label of an in-window entry is present, even with zero values.
    """

    revenues: list[AccountSummary]
    expenses: list[AccountSummary]
    total_revenue: float
    total_expense: float
    net_profit: float
    series: dict[str, dict[str, float]]


def pct_change(current: float, previous: float) -> float:
    """Percentage change of ``current`` vs ``previous``, 0 when undefined."""
    if not math.isfinite(previous) or previous == 0:
        return 0.0
    value = (current - previous) / abs(previous) * 100
    return value if math.isfinite(value) else 0.0


def normalize_basis(basis: Optional[str]) -> str:
    """Return a supported accounting basis, falling back to ``accrual``."""
    value = (basis or "").strip().lower()
    if value in BASES:
        return value
    logger.warning("Unknown accounting basis %r, falling back to 'accrual'.", basis)
    return "accrual"


def _ensure_entry_list(entries: Sequence[JournalEntry]) -> None:
    if not isinstance(entries, (list, tuple)):
        raise TypeError(
            f"entries must be a list of JournalEntry, got {type(entries).__name__}."
        )


def select_single_currency(entries: Sequence[JournalEntry]) -> CurrencySelection:
    """
    Keep POSTED entries, narrowed to a single currency.

    When the POSTED entries carry more than one distinct currency code, only
    the entries in the first code seen (in input order) are kept. Entries
    without a currency code are kept only when no narrowing is needed.
    """
    _ensure_entry_list(entries)

    posted = [e for e in entries if e.is_posted]
    codes = list(dict.fromkeys(e.currency for e in posted if e.currency))

    if len(codes) <= 1:
        return CurrencySelection(entries=posted, currency=codes[0] if codes else None)

    selected = codes[0]
    kept = [e for e in posted if e.currency == selected]
    dropped = len(posted) - len(kept)
    logger.warning(
        "Entries use %d currencies (%s); keeping %s only, %d entries dropped.",
        len(codes),
        ", ".join(codes),
        selected,
        dropped,
    )
    return CurrencySelection(entries=kept, currency=selected, dropped=dropped)


def _account_key(account: ChartOfAccount) -> str:
    return account.id or account.account_no or account.account_name


def _bump(
    summaries: dict[str, AccountSummary],
    account: ChartOfAccount,
    account_type: str,
    debit: float,
    credit: float,
    amount: float,
) -> None:
    key = _account_key(account)
    summary = summaries.get(key)
    if summary is None:
        summary = AccountSummary(
            account_name=account.account_name,
            account_no=account.account_no,
            account_type=account_type,
        )
        summaries[key] = summary
    summary.total_debit += debit
    summary.total_credit += credit
    summary.balance += amount


def compute_flows(
    entries: Sequence[JournalEntry],
    basis: str,
    period: Period,
    label_fn: LabelFn,
) -> FlowResult:
    """Recognize revenue and expense for POSTED entries inside ``period``.

    Entries whose date is missing, outside ``[period.start, period.end)`` or
    without a chart label are skipped. See the module docstring for the
    accrual and cash recognition rules.
    """
    revenues: dict[str, AccountSummary] = {}
    expenses: dict[str, AccountSummary] = {}
    series: dict[str, dict[str, float]] = {}

    for entry in entries:
        if not entry.is_posted or not period.contains(entry.transaction_date):
            continue

        label = label_fn(entry.transaction_date)
        if label is None:
            continue
        bucket = series.setdefault(label, {"revenue": 0.0, "expense": 0.0})

        for line in entry.journal_entry_lines:
            account = line.chart_of_account
            if account is None or is_vat(account):
                continue

            debit = line.debit_amount
            credit = line.credit_amount

            if is_revenue(account):
                if basis == "accrual":
                    amount = max(0.0, credit - debit)
                else:
                    amount = credit if line.payment_method and credit > 0 else 0.0
                if amount > 0:
                    bucket["revenue"] += amount
                    _bump(revenues, account, "Revenue", debit, credit, amount)

            if is_expense(account):
                if basis == "accrual":
                    amount = max(0.0, debit - credit)
                else:
                    amount = debit if line.payment_method and debit > 0 else 0.0
                if amount > 0:
                    bucket["expense"] += amount
                    _bump(expenses, account, "Expense", debit, credit, amount)

    revenue_list = list(revenues.values())
    expense_list = list(expenses.values())
    total_revenue = sum(r.balance for r in revenue_list)
    total_expense = sum(e.balance for e in expense_list)

    return FlowResult(
        revenues=revenue_list,
        expenses=expense_list,
        total_revenue=total_revenue,
        total_expense=total_expense,
        net_profit=total_revenue - total_expense,
        series=series,
    )


def ending_balance_as_of(
    entries: Sequence[JournalEntry],
    predicate: AccountPredicate,
    end_exclusive: datetime,
    credit_normal: bool = False,
) -> float:
    """
    Balance of the matching accounts from inception up to ``end_exclusive``.

    Debit-normal accounts sum ``debit - credit``; credit-normal accounts
    (``credit_normal=True``) sum ``credit - debit``. Only POSTED entries
    with a valid date strictly before ``end_exclusive`` are included.
    """
    end = to_utc(end_exclusive)
    balance = 0.0
    for entry in entries:
        if not entry.is_posted or entry.transaction_date is None:
            continue
        if to_utc(entry.transaction_date) >= end:
            continue
        for line in entry.journal_entry_lines:
            if not predicate(line.chart_of_account):
                continue
            if credit_normal:
                balance += line.credit_amount - line.debit_amount
            else:
                balance += line.debit_amount - line.credit_amount
    return balance


def cash_balance_as_of(entries: Sequence[JournalEntry], end_exclusive: datetime) -> float:
    return ending_balance_as_of(entries, is_cash_like, end_exclusive)


def receivables_as_of(entries: Sequence[JournalEntry], end_exclusive: datetime) -> float:
    return ending_balance_as_of(entries, is_receivable, end_exclusive)


def payables_as_of(entries: Sequence[JournalEntry], end_exclusive: datetime) -> float:
    return ending_balance_as_of(entries, is_payable, end_exclusive, credit_normal=True)


def build_monthly_data(series: dict[str, dict[str, float]]) -> list[MonthlyPoint]:
    """Chart points sorted by label key."""
    return [
        MonthlyPoint(
            month=key,
            revenue=series[key]["revenue"],
            expense=series[key]["expense"],
            profit=series[key]["revenue"] - series[key]["expense"],
        )
        for key in sorted(series)
    ]


def process_dashboard_data(
    entries: Sequence[JournalEntry],
    basis: Basis = "accrual",
    compare_range: ComparisonRange = "month",
    now: Optional[datetime] = None,
) -> DashboardMetrics:
    """Compute the dashboard metrics for a list of journal entries.

    Steps:
        1. Keep POSTED entries and narrow them to a single currency.
        2. Build the current and previous comparison windows around ``now``.
        3. Compute revenue/expense flows for both windows.
        4. Compute as-of cash at both window ends, and receivables/payables
           at the current window end.
        5. Build the chart series from the current window only.
        6. Compute percentage changes versus the previous window.

    Args:
        entries: Parsed journal entries (see io.parse_journal_entries).
        basis: ``accrual`` or ``cash``; unknown values fall back to accrual.
        compare_range: ``week``, ``month``, ``quarter`` or ``year``;
            unknown values fall back to month.
        now: Reference instant, defaults to the current UTC time.

    Returns:
        A DashboardMetrics value whose amounts are all in
        ``DashboardMetrics.currency``.

    Raises:
        TypeError: if ``entries`` is not a list or tuple.
    """
    selection = select_single_currency(entries)
    working = selection.entries
    basis_key = normalize_basis(basis)
    windows = build_windows(compare_range, now)

    current = compute_flows(working, basis_key, windows.current, windows.label_fn)
    previous = compute_flows(working, basis_key, windows.previous, windows.label_fn)

    cash_current = cash_balance_as_of(working, windows.current.end)
    cash_previous = cash_balance_as_of(working, windows.previous.end)
    receivables = receivables_as_of(working, windows.current.end)
    payables = payables_as_of(working, windows.current.end)

    logger.debug(
        "Dashboard (%s, %s): %d working entries, revenue %.2f, expense %.2f",
        basis_key,
        windows.compare_range,
        len(working),
        current.total_revenue,
        current.total_expense,
    )

    changes = MetricChanges(
        revenue=pct_change(current.total_revenue, previous.total_revenue),
        expense=-pct_change(current.total_expense, previous.total_expense) or 0.0,
        profit=pct_change(current.net_profit, previous.net_profit),
        cash=pct_change(cash_current, cash_previous),
    )

    return DashboardMetrics(
        revenues=current.revenues,
        expenses=current.expenses,
        total_revenue=current.total_revenue,
        total_expense=current.total_expense,
        net_profit=current.net_profit,
        cash_balance=cash_current,
        receivables=receivables,
        payables=payables,
        monthly_data=build_monthly_data(current.series),
        changes=changes,
        currency=selection.currency,
        dropped_entries=selection.dropped,
    )
