# LedgerLens - Financial dashboard metrics from general-ledger journal entries
# Copyright (c) 2025 Maxence Bernard (maxencebernardhub)
# Licensed under the MIT License. See LICENSE file for details.

"""
Domain objects for LedgerLens.

This module defines the typed structures exchanged between the parsing layer
(io.py), the aggregation engine (engine.py), the cash-flow classifier
(cash_flow.py) and the presentation helpers (views.py).

Input objects
-------------
- ChartOfAccount   : classification metadata attached to a journal line.
- JournalEntryLine : one debit/credit leg of a journal entry.
- JournalEntry     : one double-entry accounting transaction.

Input objects are frozen dataclasses: the engine only ever reads them.
Amounts are already coerced to floats and timestamps to timezone-aware
datetimes (or None when the wire value could not be parsed).

Output objects
--------------
- AccountSummary    : per-account revenue/expense roll-up for one window.
- MonthlyPoint      : one point of the charting time series.
- MetricChanges     : percentage changes versus the previous window.
- DashboardMetrics  : the complete result of process_dashboard_data().
- ClassifiedRow     : one cash-affecting entry attributed to a section.
- CashFlowStatement : classified rows plus per-section totals.
"""

from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from typing import Literal, Optional

Basis = Literal["accrual", "cash"]
ComparisonRange = Literal["week", "month", "quarter", "year"]

BASES: tuple[str, ...] = ("accrual", "cash")
COMPARISON_RANGES: tuple[str, ...] = ("week", "month", "quarter", "year")

POSTED = "POSTED"


class AccountRole(Enum):
    """Role of an account as inferred from its free-text metadata."""

    CASH = "cash"
    REVENUE = "revenue"
    EXPENSE = "expense"
    RECEIVABLE = "receivable"
    PAYABLE = "payable"
    VAT = "vat"


class CashFlowSection(str, Enum):
    """Section of the cash-flow statement an entry is attributed to."""

    OPERATING = "Operating"
    INVESTING = "Investing"
    FINANCING = "Financing"


@dataclass(frozen=True)
class ChartOfAccount:
    """Chart-of-accounts entry attached to a journal line."""

    account_name: str = ""
    account_no: str = ""
    account_type: str = ""
    financial_statement: str = ""
    id: Optional[str] = None


@dataclass(frozen=True)
class JournalEntryLine:
    """One leg of a journal entry."""

    debit_amount: float
    credit_amount: float
    chart_of_account: Optional[ChartOfAccount]
    payment_method: Optional[str] = None
    description: str = ""
    id: Optional[str] = None


@dataclass(frozen=True)
class JournalEntry:
    """
    One double-entry accounting transaction.

    Attributes
    ----------
    transaction_date :
        Timezone-aware timestamp, or None when the raw value could not be
        parsed. Entries without a date never match any window.
    status :
        Upper-cased status. Only ``"POSTED"`` entries are aggregated.
    currency :
        Upper-cased currency code, or an empty string when absent.
    """

    id: str
    transaction_date: Optional[datetime]
    reference_number: str
    description: str
    status: str
    currency: str
    journal_entry_lines: tuple[JournalEntryLine, ...] = ()

    @property
    def is_posted(self) -> bool:
        return self.status == POSTED


@dataclass
class AccountSummary:
    """Revenue or expense roll-up of one account inside one window."""

    account_name: str
    account_no: str
    account_type: str
    total_debit: float = 0.0
    total_credit: float = 0.0
    balance: float = 0.0


@dataclass(frozen=True)
class MonthlyPoint:
    """One bucket of the charting series (month or ISO week label)."""

    month: str
    revenue: float
    expense: float
    profit: float


@dataclass(frozen=True)
class MetricChanges:
    """
    Percentage changes versus the previous comparable window.

    ``expense`` follows the dashboard convention: an increase in expenses
    is reported as a negative value.
    """

    revenue: float = 0.0
    expense: float = 0.0
    profit: float = 0.0
    cash: float = 0.0


@dataclass(frozen=True)
class DashboardMetrics:
    """
    Result of one dashboard computation.

    Flow quantities (revenues, expenses, totals, net_profit, monthly_data)
    cover the current window only. Balance quantities (cash_balance,
    receivables, payables) are as-of balances at the end of the current
    window.

    ``currency`` is the single currency every amount is denominated in
    (None when no entry carried a currency code) and ``dropped_entries``
    counts the posted entries discarded because they used another currency.
    """

    revenues: list[AccountSummary]
    expenses: list[AccountSummary]
    total_revenue: float
    total_expense: float
    net_profit: float
    cash_balance: float
    receivables: float
    payables: float
    monthly_data: list[MonthlyPoint]
    changes: MetricChanges
    currency: Optional[str] = None
    dropped_entries: int = 0


@dataclass(frozen=True)
class ClassifiedRow:
    """One cash-affecting journal entry attributed to a cash-flow section."""

    entry_id: str
    date: Optional[datetime]
    reference: str
    description: str
    section: CashFlowSection
    cash_impact: float
    currency: str


@dataclass(frozen=True)
class CashFlowStatement:
    """Classified rows sorted by date, with per-section totals."""

    rows: list[ClassifiedRow]
    operating: float = 0.0
    investing: float = 0.0
    financing: float = 0.0
    currency: Optional[str] = None

    @property
    def net_change(self) -> float:
        return self.operating + self.investing + self.financing
