# LedgerLens - Financial dashboard metrics from general-ledger journal entries
# Copyright (c) 2025 Maxence Bernard (maxencebernardhub)
# Licensed under the MIT License. See LICENSE file for details.

"""
LedgerLens
----------

A Python library and command-line tool that turns general-ledger journal
entries (as delivered by an accounting API) into the figures a small
business dashboard needs.

Main capabilities:
- revenue, expense, net profit and cash KPIs for a week, month, quarter or
  year-to-date window, compared with the previous window,
- accrual and cash accounting bases,
- as-of balances for cash, accounts receivable and accounts payable,
- per-account revenue/expense breakdowns and a monthly (or weekly) trend,
- quick stats (profit margin, expense ratio, receivable/payable positions),
- a direct-method cash-flow statement split into Operating, Investing and
  Financing activities,
- a single-currency guard that reports which entries were left out.

LedgerLens separates computation (engine, cash_flow), configuration (TOML),
and presentation (CLI, pandas views), making it suitable for scripting and
automation as well as for feeding a web dashboard.


Version: 0.1.0

Usage:
    python -m ledgerlens.cli --help
"""

__all__ = ["engine", "cash_flow", "views", "io"]

__version__ = "0.1.0"
