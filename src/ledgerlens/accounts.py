# LedgerLens - Financial dashboard metrics from general-ledger journal entries
# Copyright (c) 2025 Maxence Bernard (maxencebernardhub)
# Licensed under the MIT License. See LICENSE file for details.

"""
Account utilities for LedgerLens.

The chart of accounts delivered by the accounting API carries free-text
metadata only (account name, number, type and financial statement). This
module maps that text onto account roles using ordered substring and regex
predicates.

Responsibilities:
- Detect cash/bank, revenue, expense, receivable, payable and VAT accounts.
- Map an account onto the set of AccountRole values it plays.
- Attribute a counter-account to a cash-flow statement section.

The predicates are heuristics. An account whose name or type does not follow
the expected wording is not recognized; callers then fall back to zero
recognition (engine) or to the Operating section (cash-flow classifier).
"""

import re
from typing import Optional

from .models import AccountRole, CashFlowSection, ChartOfAccount

CASH_ACCOUNT_HINTS: tuple[str, ...] = ("cash and cash equivalents", "cash", "bank")
CASH_ACCOUNT_NO = "1000"

_RECEIVABLE_RE = re.compile(r"accounts?\s*receivable", re.IGNORECASE)
_PAYABLE_RE = re.compile(r"accounts?\s*payable", re.IGNORECASE)
_VAT_RE = re.compile(r"vat\s*(input|output)", re.IGNORECASE)


def is_cash_like(account: Optional[ChartOfAccount]) -> bool:
    """True for cash or bank accounts, including account number 1000."""
    if account is None:
        return False
    name = account.account_name.lower()
    if any(hint in name for hint in CASH_ACCOUNT_HINTS):
        return True
    return account.account_no.strip() == CASH_ACCOUNT_NO


def is_revenue(account: Optional[ChartOfAccount]) -> bool:
    return account is not None and "revenue" in account.account_type.lower()


def is_expense(account: Optional[ChartOfAccount]) -> bool:
    return account is not None and "expense" in account.account_type.lower()


def is_receivable(account: Optional[ChartOfAccount]) -> bool:
    return account is not None and bool(_RECEIVABLE_RE.search(account.account_name))


def is_payable(account: Optional[ChartOfAccount]) -> bool:
    return account is not None and bool(_PAYABLE_RE.search(account.account_name))


def is_vat(account: Optional[ChartOfAccount]) -> bool:
    """VAT input/output accounts, excluded from revenue/expense recognition."""
    return account is not None and bool(_VAT_RE.search(account.account_name))


def account_roles(account: Optional[ChartOfAccount]) -> frozenset[AccountRole]:
    """Return every role the account plays; roles are not mutually exclusive."""
    if account is None:
        return frozenset()

    checks = (
        (AccountRole.CASH, is_cash_like),
        (AccountRole.REVENUE, is_revenue),
        (AccountRole.EXPENSE, is_expense),
        (AccountRole.RECEIVABLE, is_receivable),
        (AccountRole.PAYABLE, is_payable),
        (AccountRole.VAT, is_vat),
    )
    return frozenset(role for role, check in checks if check(account))


def classify_account_to_section(account: Optional[ChartOfAccount]) -> CashFlowSection:
    """Attribute a counter-account to a cash-flow statement section.

    The checks overlap on real-world data, so their order matters:

    1. income statement accounts                    -> Operating
    2. non-current / fixed / property / equipment /
       intangible assets                            -> Investing
    3. equity, long-term or non-current liabilities -> Financing
    4. account numbers starting with 3, or with 2
       when the type does not mention "current"     -> Financing
    5. current assets / current liabilities         -> Operating
    6. anything else                                -> Operating
    """
    if account is None:
        return CashFlowSection.OPERATING

    statement = account.financial_statement.lower()
    acc_type = account.account_type.lower()
    number = account.account_no.strip()

    if "income" in statement:
        return CashFlowSection.OPERATING

    if "non" in acc_type and "asset" in acc_type:
        return CashFlowSection.INVESTING
    if any(word in acc_type for word in ("fixed", "property", "equipment", "intangible")):
        return CashFlowSection.INVESTING

    if (
        "equity" in acc_type
        or ("long" in acc_type and "liability" in acc_type)
        or ("non" in acc_type and "liability" in acc_type)
    ):
        return CashFlowSection.FINANCING

    if number.startswith("3"):
        return CashFlowSection.FINANCING
    if number.startswith("2") and "current" not in acc_type:
        return CashFlowSection.FINANCING

    if "current asset" in acc_type or "current liability" in acc_type:
        return CashFlowSection.OPERATING

    return CashFlowSection.OPERATING
