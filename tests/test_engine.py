import logging
import math
import typing
from datetime import datetime, timezone

import pytest

from ledgerlens.engine import (
    cash_balance_as_of,
    compute_flows,
    payables_as_of,
    pct_change,
    process_dashboard_data,
    select_single_currency,
)
from ledgerlens.models import (
    Basis,
    ChartOfAccount,
    ComparisonRange,
    JournalEntry,
    JournalEntryLine,
    MonthlyPoint,
)
from ledgerlens.periods import Period, month_key

UTC = timezone.utc
NOW = datetime(2025, 3, 19, 12, 0, tzinfo=UTC)

CASH = ChartOfAccount("Cash", "1000", "Asset", "Balance Sheet", id="acc-cash")
SALES = ChartOfAccount("Sales Revenue", "4000", "Revenue", "Income Statement", id="acc-sales")
SERVICES = ChartOfAccount("Service Revenue", "4100", "Revenue", "Income Statement", id="acc-svc")
SUPPLIES = ChartOfAccount(
    "Office Supplies Expense", "6100", "Expense", "Income Statement", id="acc-supplies"
)
RECEIVABLE = ChartOfAccount("Accounts Receivable", "1100", "Current Asset", "Balance Sheet", id="acc-ar")
PAYABLE = ChartOfAccount("Accounts Payable", "2000", "Current Liability", "Balance Sheet", id="acc-ap")
VAT_OUTPUT = ChartOfAccount("VAT Output", "2200", "Revenue", "Balance Sheet", id="acc-vat")
VAT_INPUT = ChartOfAccount("VAT Input", "1300", "Expense", "Balance Sheet", id="acc-vat-in")


def _line(account, debit: float = 0.0, credit: float = 0.0, payment_method=None) -> JournalEntryLine:
    return JournalEntryLine(
        debit_amount=debit,
        credit_amount=credit,
        chart_of_account=account,
        payment_method=payment_method,
    )


def _entry(entry_id: str, when, *lines, currency: str = "USD", status: str = "POSTED") -> JournalEntry:
    return JournalEntry(
        id=entry_id,
        transaction_date=when,
        reference_number=f"JE-{entry_id}",
        description=f"Entry {entry_id}",
        status=status,
        currency=currency,
        journal_entry_lines=tuple(lines),
    )


def _cash_sale(entry_id: str, when, amount: float, currency: str = "USD") -> JournalEntry:
    return _entry(
        entry_id,
        when,
        _line(CASH, debit=amount),
        _line(SALES, credit=amount),
        currency=currency,
    )


def test_cash_sale_is_revenue_and_cash() -> None:
    """A posted cash sale in the current month yields revenue, profit and cash."""
    entries = [_cash_sale("1", datetime(2025, 3, 10, tzinfo=UTC), 100.0)]

    metrics = process_dashboard_data(entries, "accrual", "month", now=NOW)

    assert metrics.total_revenue == pytest.approx(100.0)
    assert metrics.total_expense == pytest.approx(0.0)
    assert metrics.net_profit == pytest.approx(100.0)
    assert metrics.cash_balance == pytest.approx(100.0)
    assert metrics.currency == "USD"
    assert metrics.dropped_entries == 0

    assert len(metrics.revenues) == 1
    summary = metrics.revenues[0]
    assert summary.account_name == "Sales Revenue"
    assert summary.account_type == "Revenue"
    assert summary.total_credit == pytest.approx(100.0)
    assert summary.balance == pytest.approx(100.0)

    assert metrics.monthly_data == [MonthlyPoint("2025-03", 100.0, 0.0, 100.0)]


def test_expense_on_credit_increases_payables() -> None:
    """Office supplies bought on account: expense and payables, no revenue."""
    entries = [
        _entry(
            "1",
            datetime(2025, 3, 5, tzinfo=UTC),
            _line(SUPPLIES, debit=50.0),
            _line(PAYABLE, credit=50.0),
        )
    ]

    metrics = process_dashboard_data(entries, "accrual", "month", now=NOW)

    assert metrics.total_expense == pytest.approx(50.0)
    assert metrics.total_revenue == pytest.approx(0.0)
    assert metrics.net_profit == pytest.approx(-50.0)
    assert metrics.payables == pytest.approx(50.0)
    assert metrics.receivables == pytest.approx(0.0)
    assert metrics.cash_balance == pytest.approx(0.0)


def test_net_profit_is_revenue_minus_expense() -> None:
    entries = [
        _cash_sale("1", datetime(2025, 3, 2, tzinfo=UTC), 310.25),
        _entry(
            "2",
            datetime(2025, 3, 3, tzinfo=UTC),
            _line(RECEIVABLE, debit=89.9),
            _line(SERVICES, credit=89.9),
        ),
        _entry(
            "3",
            datetime(2025, 3, 4, tzinfo=UTC),
            _line(SUPPLIES, debit=42.1),
            _line(CASH, credit=42.1),
        ),
    ]

    metrics = process_dashboard_data(entries, "accrual", "month", now=NOW)

    assert metrics.net_profit == metrics.total_revenue - metrics.total_expense
    assert metrics.receivables == pytest.approx(89.9)
    assert metrics.cash_balance == pytest.approx(310.25 - 42.1)


def test_window_includes_start_and_excludes_end() -> None:
    """Boundary timestamps belong to the window that starts there."""
    period = Period(
        start=datetime(2025, 3, 1, tzinfo=UTC),
        end=datetime(2025, 4, 1, tzinfo=UTC),
        label="March",
    )
    on_start = _cash_sale("start", datetime(2025, 3, 1, tzinfo=UTC), 10.0)
    on_end = _cash_sale("end", datetime(2025, 4, 1, tzinfo=UTC), 1000.0)

    flows = compute_flows([on_start, on_end], "accrual", period, month_key)

    assert flows.total_revenue == pytest.approx(10.0)
    assert list(flows.series) == ["2025-03"]


def test_previous_window_end_is_not_double_counted() -> None:
    """An entry at the current month's first instant is current, not previous."""
    entries = [_cash_sale("1", datetime(2025, 3, 1, tzinfo=UTC), 100.0)]

    metrics = process_dashboard_data(entries, "accrual", "month", now=NOW)

    assert metrics.total_revenue == pytest.approx(100.0)
    # Previous month revenue is 0, so the change is guarded to 0.
    assert metrics.changes.revenue == 0.0


@pytest.mark.parametrize("basis", ["accrual", "cash"])
def test_vat_lines_are_never_revenue(basis: str) -> None:
    entries = [
        _entry(
            "1",
            datetime(2025, 3, 10, tzinfo=UTC),
            _line(CASH, debit=20.0, payment_method="CASH"),
            _line(VAT_OUTPUT, credit=20.0, payment_method="CASH"),
        )
    ]

    metrics = process_dashboard_data(entries, basis, "month", now=NOW)

    assert metrics.total_revenue == 0.0
    assert metrics.revenues == []
    assert metrics.cash_balance == pytest.approx(20.0)


def test_cash_basis_requires_payment_method() -> None:
    """Cash basis only recognizes lines tagged with a payment method."""
    when = datetime(2025, 3, 10, tzinfo=UTC)
    entries = [
        _entry(
            "paid",
            when,
            _line(CASH, debit=100.0, payment_method="BANK_TRANSFER"),
            _line(SALES, credit=100.0, payment_method="BANK_TRANSFER"),
        ),
        _entry(
            "invoiced",
            when,
            _line(RECEIVABLE, debit=200.0),
            _line(SALES, credit=200.0),
        ),
    ]

    cash = process_dashboard_data(entries, "cash", "month", now=NOW)
    accrual = process_dashboard_data(entries, "accrual", "month", now=NOW)

    assert cash.total_revenue == pytest.approx(100.0)
    assert accrual.total_revenue == pytest.approx(300.0)


@pytest.mark.parametrize(("basis", "expected"), [("cash", 70.0), ("accrual", 100.0)])
def test_expense_recognition_by_basis(basis: str, expected: float) -> None:
    """Cash basis counts paid expense lines only; VAT input never counts."""
    when = datetime(2025, 3, 10, tzinfo=UTC)
    entries = [
        _entry(
            "paid",
            when,
            _line(SUPPLIES, debit=70.0, payment_method="CASH"),
            _line(CASH, credit=70.0, payment_method="CASH"),
        ),
        _entry(
            "on-account",
            when,
            _line(SUPPLIES, debit=30.0),
            _line(PAYABLE, credit=30.0),
        ),
        _entry(
            "vat",
            when,
            _line(VAT_INPUT, debit=15.0, payment_method="CASH"),
            _line(CASH, credit=15.0, payment_method="CASH"),
        ),
    ]

    metrics = process_dashboard_data(entries, basis, "month", now=NOW)

    assert metrics.total_expense == pytest.approx(expected)
    assert [s.account_name for s in metrics.expenses] == ["Office Supplies Expense"]
    assert metrics.net_profit == pytest.approx(-expected)


def test_quarter_range_compares_calendar_quarters() -> None:
    """Q1 2025 is compared with Q4 2024, both bucketed by month."""
    entries = [
        _cash_sale("q4", datetime(2024, 12, 15, tzinfo=UTC), 50.0),
        _cash_sale("q1", datetime(2025, 1, 10, tzinfo=UTC), 100.0),
    ]

    metrics = process_dashboard_data(entries, "accrual", "quarter", now=NOW)

    assert metrics.total_revenue == pytest.approx(100.0)
    assert metrics.changes.revenue == pytest.approx(100.0)
    assert [p.month for p in metrics.monthly_data] == ["2025-01"]


def test_expense_change_without_previous_expense_is_plain_zero() -> None:
    entries = [
        _entry("mar", datetime(2025, 3, 10, tzinfo=UTC), _line(SUPPLIES, debit=40.0), _line(CASH, credit=40.0)),
    ]

    metrics = process_dashboard_data(entries, "accrual", "month", now=NOW)

    assert metrics.changes.expense == 0.0
    assert math.copysign(1.0, metrics.changes.expense) == 1.0


def test_dashboard_options_are_typed_as_literals() -> None:
    hints = typing.get_type_hints(process_dashboard_data)

    assert hints["basis"] == Basis
    assert hints["compare_range"] == ComparisonRange


def test_accrual_ignores_net_debits_on_revenue_accounts() -> None:
    """A refund debiting a revenue account does not create negative revenue."""
    entries = [
        _entry(
            "refund",
            datetime(2025, 3, 10, tzinfo=UTC),
            _line(SALES, debit=30.0),
            _line(CASH, credit=30.0),
        )
    ]

    metrics = process_dashboard_data(entries, "accrual", "month", now=NOW)

    assert metrics.total_revenue == 0.0
    assert metrics.cash_balance == pytest.approx(-30.0)


def test_account_summaries_aggregate_lines_per_account() -> None:
    when = datetime(2025, 3, 10, tzinfo=UTC)
    entries = [
        _cash_sale("1", when, 100.0),
        _cash_sale("2", when, 50.0),
        _entry("3", when, _line(CASH, debit=25.0), _line(SERVICES, credit=25.0)),
    ]

    metrics = process_dashboard_data(entries, "accrual", "month", now=NOW)

    assert [s.account_name for s in metrics.revenues] == ["Sales Revenue", "Service Revenue"]
    assert metrics.revenues[0].balance == pytest.approx(150.0)
    assert metrics.revenues[0].total_credit == pytest.approx(150.0)
    assert metrics.total_revenue == pytest.approx(175.0)


def test_balances_are_as_of_not_windowed_by_start() -> None:
    """Cash includes history before the window but nothing after its end."""
    entries = [
        _cash_sale("old", datetime(2024, 6, 1, tzinfo=UTC), 500.0),
        _cash_sale("now", datetime(2025, 3, 10, tzinfo=UTC), 100.0),
        _cash_sale("future", datetime(2025, 4, 2, tzinfo=UTC), 70.0),
    ]

    metrics = process_dashboard_data(entries, "accrual", "month", now=NOW)

    assert metrics.total_revenue == pytest.approx(100.0)
    assert metrics.cash_balance == pytest.approx(600.0)
    # Previous month-end cash is 500, so cash grew by 20%.
    assert metrics.changes.cash == pytest.approx(20.0)


def test_payables_are_credit_normal() -> None:
    entries = [
        _entry("bill", datetime(2025, 1, 5, tzinfo=UTC), _line(SUPPLIES, debit=80.0), _line(PAYABLE, credit=80.0)),
        _entry("pay", datetime(2025, 2, 5, tzinfo=UTC), _line(PAYABLE, debit=30.0), _line(CASH, credit=30.0)),
    ]

    end = datetime(2025, 3, 1, tzinfo=UTC)

    assert payables_as_of(entries, end) == pytest.approx(50.0)
    assert cash_balance_as_of(entries, end) == pytest.approx(-30.0)


def test_expense_change_is_negated() -> None:
    """Higher expenses are reported as a negative change."""
    entries = [
        _entry("feb", datetime(2025, 2, 10, tzinfo=UTC), _line(SUPPLIES, debit=100.0), _line(CASH, credit=100.0)),
        _entry("mar", datetime(2025, 3, 10, tzinfo=UTC), _line(SUPPLIES, debit=150.0), _line(CASH, credit=150.0)),
        _cash_sale("sale-feb", datetime(2025, 2, 11, tzinfo=UTC), 200.0),
        _cash_sale("sale-mar", datetime(2025, 3, 11, tzinfo=UTC), 300.0),
    ]

    metrics = process_dashboard_data(entries, "accrual", "month", now=NOW)

    assert metrics.changes.expense == pytest.approx(-50.0)
    assert metrics.changes.revenue == pytest.approx(50.0)
    assert metrics.changes.profit == pytest.approx(50.0)


def test_pct_change_zero_guard() -> None:
    assert pct_change(5.0, 0.0) == 0.0
    assert pct_change(0.0, 0.0) == 0.0
    assert pct_change(5.0, float("nan")) == 0.0
    assert pct_change(5.0, float("inf")) == 0.0
    assert pct_change(150.0, 100.0) == pytest.approx(50.0)
    assert pct_change(50.0, -100.0) == pytest.approx(150.0)


def test_currency_narrowing_keeps_first_currency(caplog) -> None:
    """With USD, USD, ZWL the ZWL entry is absent from every figure."""
    when = datetime(2025, 3, 10, tzinfo=UTC)
    entries = [
        _cash_sale("1", when, 100.0, currency="USD"),
        _cash_sale("2", when, 50.0, currency="USD"),
        _cash_sale("3", when, 1_000_000.0, currency="ZWL"),
    ]

    with caplog.at_level(logging.WARNING, logger="ledgerlens.engine"):
        metrics = process_dashboard_data(entries, "accrual", "month", now=NOW)

    assert metrics.currency == "USD"
    assert metrics.dropped_entries == 1
    assert metrics.total_revenue == pytest.approx(150.0)
    assert metrics.cash_balance == pytest.approx(150.0)
    assert metrics.revenues[0].balance == pytest.approx(150.0)
    assert metrics.monthly_data[0].revenue == pytest.approx(150.0)
    assert "ZWL" in caplog.text


def test_select_single_currency_keeps_posted_entries_only() -> None:
    """Draft entries neither count nor trigger currency narrowing."""
    when = datetime(2025, 3, 10, tzinfo=UTC)
    entries = [
        _entry("draft", when, _line(CASH, debit=10.0), currency="EUR", status="DRAFT"),
        _cash_sale("posted", when, 20.0, currency="USD"),
    ]

    selection = select_single_currency(entries)

    assert [e.id for e in selection.entries] == ["posted"]
    assert selection.currency == "USD"
    assert selection.dropped == 0


def test_non_posted_and_undated_entries_are_ignored() -> None:
    entries = [
        _entry("draft", datetime(2025, 3, 10, tzinfo=UTC), _line(CASH, debit=40.0), _line(SALES, credit=40.0), status="DRAFT"),
        _cash_sale("undated", None, 60.0),
        _cash_sale("ok", datetime(2025, 3, 10, tzinfo=UTC), 5.0),
    ]

    metrics = process_dashboard_data(entries, "accrual", "month", now=NOW)

    assert metrics.total_revenue == pytest.approx(5.0)
    assert metrics.cash_balance == pytest.approx(5.0)


def test_year_range_series_is_sorted_by_month() -> None:
    entries = [
        _cash_sale("mar", datetime(2025, 3, 1, tzinfo=UTC), 30.0),
        _cash_sale("jan", datetime(2025, 1, 15, tzinfo=UTC), 10.0),
        _entry(
            "transfer",
            datetime(2025, 2, 3, tzinfo=UTC),
            _line(CASH, debit=5.0),
            _line(ChartOfAccount("Main Bank", "1010", "Asset"), credit=5.0),
        ),
    ]

    metrics = process_dashboard_data(entries, "accrual", "year", now=NOW)

    assert [p.month for p in metrics.monthly_data] == ["2025-01", "2025-02", "2025-03"]
    assert metrics.monthly_data[1] == MonthlyPoint("2025-02", 0.0, 0.0, 0.0)


def test_unknown_basis_falls_back_to_accrual(caplog) -> None:
    entries = [_entry("1", datetime(2025, 3, 10, tzinfo=UTC), _line(RECEIVABLE, debit=10.0), _line(SALES, credit=10.0))]

    with caplog.at_level(logging.WARNING, logger="ledgerlens.engine"):
        metrics = process_dashboard_data(entries, "barter", "month", now=NOW)

    assert metrics.total_revenue == pytest.approx(10.0)
    assert "barter" in caplog.text


@pytest.mark.parametrize("bad", [None, "entries", {"data": []}, 42])
def test_non_list_input_raises_type_error(bad) -> None:
    with pytest.raises(TypeError):
        process_dashboard_data(bad, now=NOW)


def test_empty_input_gives_zero_metrics() -> None:
    metrics = process_dashboard_data([], now=NOW)

    assert metrics.total_revenue == 0.0
    assert metrics.net_profit == 0.0
    assert metrics.monthly_data == []
    assert metrics.currency is None
