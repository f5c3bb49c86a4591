# LedgerLens - Financial dashboard metrics from general-ledger journal entries
# Copyright (c) 2025 Maxence Bernard (maxencebernardhub)
# Licensed under the MIT License. See LICENSE file for details.

"""
View utilities for LedgerLens.

This module turns the engine's dataclasses into pandas DataFrames ready for
console display or CSV export, and provides the small formatters used when
rendering amounts and chart labels.

The main views are:

- KPIs:               revenue, expenses, net profit and cash with their
                      change versus the previous window,
- account breakdowns: revenue or expense per account with its share of the
                      total (the "by category" charts),
- monthly trend:      revenue, expense and profit per chart bucket,
- quick stats:        ratios from ratios.py,
- cash flow:          statement summary per section and the detail rows.

The computation itself is performed by ``engine.process_dashboard_data`` and
``cash_flow.build_cash_flow_statement``. This module only reshapes results.
"""

import calendar
from collections.abc import Sequence

import pandas as pd

from .models import AccountSummary, CashFlowStatement, ClassifiedRow, DashboardMetrics
from .ratios import RatioResult

KPI_COLUMNS = ["key", "label", "value", "change", "trend", "subtitle"]
ACCOUNT_COLUMNS = [
    "account_no",
    "account_name",
    "account_type",
    "total_debit",
    "total_credit",
    "balance",
    "share_pct",
]
MONTHLY_COLUMNS = ["month", "label", "revenue", "expense", "profit"]
CASH_FLOW_ROW_COLUMNS = [
    "date",
    "reference",
    "description",
    "section",
    "cash_impact",
    "currency",
]


# ---------------------------------------------------------------------------
# Formatters
# ---------------------------------------------------------------------------


def format_currency(amount: float, currency: str = "USD") -> str:
    """Format an amount with its currency code and no decimals (``USD 1,235``)."""
    code = currency or "USD"
    sign = "-" if round(amount) < 0 else ""
    return f"{sign}{code} {abs(amount):,.0f}"


def format_short(amount: float, currency: str = "USD") -> str:
    """Compact amount for chart axes: ``1.2M``, ``3.4K`` or the full amount."""
    if abs(amount) >= 1_000_000:
        return f"{amount / 1_000_000:.1f}M"
    if abs(amount) >= 1_000:
        return f"{amount / 1_000:.1f}K"
    return format_currency(amount, currency)


def format_month_label(value: str) -> str:
    """Render a ``YYYY-MM`` key as ``Mon YYYY``; other labels are returned as-is."""
    if not value:
        return ""
    parts = value.split("-")
    if len(parts) != 2:
        return value
    year, month = parts
    if not (year.isdigit() and month.isdigit()) or not 1 <= int(month) <= 12:
        return value
    return f"{calendar.month_abbr[int(month)]} {int(year)}"


# ---------------------------------------------------------------------------
# Dashboard views
# ---------------------------------------------------------------------------


def kpis_to_dataframe(metrics: DashboardMetrics, compare_range: str) -> pd.DataFrame:
    """Headline KPIs with their change versus the previous window."""
    subtitle = f"vs last {compare_range}"
    kpis = [
        ("total_revenue", "Total Revenue", metrics.total_revenue, metrics.changes.revenue),
        ("total_expense", "Total Expenses", metrics.total_expense, metrics.changes.expense),
        ("net_profit", "Net Profit", metrics.net_profit, metrics.changes.profit),
        ("cash_balance", "Cash Balance", metrics.cash_balance, metrics.changes.cash),
    ]
    rows = [
        {
            "key": key,
            "label": label,
            "value": value,
            "change": round(change, 1),
            "trend": "up" if change >= 0 else "down",
            "subtitle": subtitle,
        }
        for key, label, value, change in kpis
    ]
    return pd.DataFrame(rows, columns=KPI_COLUMNS)


def account_summaries_to_dataframe(summaries: Sequence[AccountSummary]) -> pd.DataFrame:
    """
    Per-account breakdown with each account's share of the total.

    Chart values are clamped at zero (``max(0, balance)``) before computing
    ``share_pct``, matching what the category charts display.
    """
    if not summaries:
        return pd.DataFrame(columns=ACCOUNT_COLUMNS)

    df = pd.DataFrame(
        [
            {
                "account_no": s.account_no,
                "account_name": s.account_name,
                "account_type": s.account_type,
                "total_debit": s.total_debit,
                "total_credit": s.total_credit,
                "balance": s.balance,
            }
            for s in summaries
        ]
    )
    chart_values = df["balance"].clip(lower=0.0)
    total = float(chart_values.sum())
    df["share_pct"] = chart_values / total * 100 if total > 0 else 0.0
    return df[ACCOUNT_COLUMNS]


def monthly_to_dataframe(metrics: DashboardMetrics) -> pd.DataFrame:
    """Chart series of the current window, one row per bucket."""
    if not metrics.monthly_data:
        return pd.DataFrame(columns=MONTHLY_COLUMNS)

    rows = [
        {
            "month": p.month,
            "label": format_month_label(p.month),
            "revenue": p.revenue,
            "expense": p.expense,
            "profit": p.profit,
        }
        for p in metrics.monthly_data
    ]
    return pd.DataFrame(rows, columns=MONTHLY_COLUMNS)


def ratios_to_dataframe(ratios: Sequence[RatioResult], decimals: int) -> pd.DataFrame:
    """
    Convert a list of RatioResult objects into a pandas DataFrame.

    The resulting DataFrame has the columns key, label, value, unit, notes.
    Values are rounded to ``decimals``, or NaN when not computable.
    """
    if not ratios:
        return pd.DataFrame(columns=["key", "label", "value", "unit", "notes"])

    rows: list[dict[str, object]] = []
    for r in ratios:
        value = float("nan") if r.value is None else round(r.value, decimals)
        rows.append(
            {
                "key": r.key,
                "label": r.label,
                "value": value,
                "unit": r.unit,
                "notes": r.notes,
            }
        )
    return pd.DataFrame(rows, columns=["key", "label", "value", "unit", "notes"])


# ---------------------------------------------------------------------------
# Cash-flow views
# ---------------------------------------------------------------------------


def cash_flow_summary_to_dataframe(statement: CashFlowStatement) -> pd.DataFrame:
    """Statement summary: one amount per section plus the net change in cash."""
    return pd.DataFrame(
        [
            {"section": "Operating Activities", "amount": statement.operating},
            {"section": "Investing Activities", "amount": statement.investing},
            {"section": "Financing Activities", "amount": statement.financing},
            {"section": "Net Change in Cash", "amount": statement.net_change},
        ],
        columns=["section", "amount"],
    )


def cash_flow_rows_to_dataframe(rows: Sequence[ClassifiedRow]) -> pd.DataFrame:
    """Detail table of classified entries, in the order given."""
    if not rows:
        return pd.DataFrame(columns=CASH_FLOW_ROW_COLUMNS)

    data = [
        {
            "date": r.date.date().isoformat() if r.date is not None else "",
            "reference": r.reference,
            "description": r.description,
            "section": r.section.value,
            "cash_impact": r.cash_impact,
            "currency": r.currency,
        }
        for r in rows
    ]
    return pd.DataFrame(data, columns=CASH_FLOW_ROW_COLUMNS)
