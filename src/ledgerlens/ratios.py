# LedgerLens - Financial dashboard metrics from general-ledger journal entries
# Copyright (c) 2025 Maxence Bernard (maxencebernardhub)
# Licensed under the MIT License. See LICENSE file for details.


"""
Quick-stats ratios for LedgerLens.

This module complements the engine (engine.py) with the small set of KPIs
shown next to the dashboard charts:

- profit margin  : net profit / revenue, in percent,
- expense ratio  : expenses / revenue, in percent,
- receivables    : as-of accounts receivable, with its position
                   ("Owed to you" or "Credit balance"),
- payables       : as-of accounts payable, with its position
                   ("You owe" or "Overpayment").

Percent ratios are 0 when revenue is not positive. Receivables are
debit-natured and payables credit-natured, so a negative value means the
balance sits on the unusual side (customer prepayments, supplier
overpayments).
"""

from dataclasses import dataclass
from typing import Optional

from .models import DashboardMetrics


@dataclass(frozen=True)
class RatioResult:
    """
    Computed ratio or KPI as returned by this module.

    Attributes:
        key: Internal identifier (e.g. 'profit_margin_pct').
        label: Human-readable label for display.
        value: Numeric value (float) or None if not computable.
        unit: Unit hint ('percent' or 'amount').
        notes: Human-readable position or description.
    """

    key: str
    label: str
    value: Optional[float]
    unit: str
    notes: str


def safe_percent(numerator: float, denominator: float) -> float:
    """``numerator / denominator * 100``, or 0 when the denominator is not positive."""
    if denominator > 0:
        return numerator / denominator * 100
    return 0.0


def receivables_position(receivables: float) -> str:
    return "Owed to you" if receivables >= 0 else "Credit balance"


def payables_position(payables: float) -> str:
    return "You owe" if payables >= 0 else "Overpayment"


def compute_quick_stats(metrics: DashboardMetrics) -> list[RatioResult]:
    """Compute the quick-stats KPIs for one DashboardMetrics value."""
    return [
        RatioResult(
            key="receivables",
            label="Accounts Receivable",
            value=metrics.receivables,
            unit="amount",
            notes=receivables_position(metrics.receivables),
        ),
        RatioResult(
            key="payables",
            label="Accounts Payable",
            value=metrics.payables,
            unit="amount",
            notes=payables_position(metrics.payables),
        ),
        RatioResult(
            key="profit_margin_pct",
            label="Profit Margin",
            value=safe_percent(metrics.net_profit, metrics.total_revenue),
            unit="percent",
            notes="Net profit / Revenue",
        ),
        RatioResult(
            key="expense_ratio_pct",
            label="Expense Ratio",
            value=safe_percent(metrics.total_expense, metrics.total_revenue),
            unit="percent",
            notes="Expenses / Revenue",
        ),
    ]
