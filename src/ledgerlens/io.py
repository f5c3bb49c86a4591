# LedgerLens - Financial dashboard metrics from general-ledger journal entries
# Copyright (c) 2025 Maxence Bernard (maxencebernardhub)
# Licensed under the MIT License. See LICENSE file for details.

"""
I/O module for LedgerLens.

This module handles reading journal entries as delivered by the accounting
API and normalizing them into the typed structures defined in models.py.
All numeric and date coercion rules live here, so the engine can assume
clean floats and timezone-aware datetimes.

Expected input format
---------------------
The accounting API answers with a JSON envelope:

    {"success": true, "message": "...", "data": [<journal entry>, ...]}

A bare JSON list of journal entries is accepted as well.

Each journal entry uses camelCase keys:

    id, transactionDate, referenceNumber, description, status,
    currency ({"code": "USD", ...} or a plain code string),
    journalEntryLines: [
        {debitAmount, creditAmount, paymentMethod, description,
         chartOfAccount: {id, accountNo, accountName, accountType,
                          financialStatement}}
    ]

Coercion rules
--------------
- ``debitAmount`` / ``creditAmount`` are decimal strings on the wire.
  Thousands separators are stripped; absent, empty, non-numeric or
  non-finite values become 0.0.
- ``transactionDate`` is parsed as an ISO timestamp and converted to UTC.
  Values without an offset are read as UTC. Unparseable values become None.
- ``status`` and the currency code are upper-cased and stripped.

Output schema for ``entries_to_frame``
--------------------------------------
One row per journal line, with the columns listed in LINE_COLUMNS.
"""

import json
import math
import os
from collections.abc import Mapping, Sequence
from datetime import datetime
from typing import Any, Optional, Union

import pandas as pd

from .models import ChartOfAccount, JournalEntry, JournalEntryLine

LINE_COLUMNS: list[str] = [
    "entry_id",
    "date",
    "reference",
    "status",
    "currency",
    "account_no",
    "account_name",
    "account_type",
    "financial_statement",
    "debit",
    "credit",
    "payment_method",
]


def parse_amount(value: Any) -> float:
    """Coerce a wire amount to a finite float, defaulting to 0.0."""
    if value is None or isinstance(value, bool):
        return 0.0
    if isinstance(value, str):
        value = value.replace(",", "").strip()
        if not value:
            return 0.0
    try:
        number = float(pd.to_numeric(value, errors="coerce"))
    except (TypeError, ValueError):
        return 0.0
    return number if math.isfinite(number) else 0.0


def parse_transaction_date(value: Any) -> Optional[datetime]:
    """Parse an ISO timestamp to an aware UTC datetime, or None if invalid."""
    if value is None or value == "":
        return None
    try:
        ts = pd.to_datetime(value, utc=True, errors="coerce")
    except (TypeError, ValueError, OverflowError):
        return None
    if pd.isna(ts):
        return None
    return ts.to_pydatetime()


def _text(value: Any) -> str:
    if value is None:
        return ""
    return str(value)


def _currency_code(raw: Any) -> str:
    if isinstance(raw, Mapping):
        raw = raw.get("code")
    return _text(raw).strip().upper()


def parse_chart_of_account(raw: Any) -> Optional[ChartOfAccount]:
    """Build a ChartOfAccount from its wire form (None when absent)."""
    if not isinstance(raw, Mapping):
        return None
    account_id = raw.get("id")
    return ChartOfAccount(
        account_name=_text(raw.get("accountName")),
        account_no=_text(raw.get("accountNo")),
        account_type=_text(raw.get("accountType")),
        financial_statement=_text(raw.get("financialStatement")),
        id=_text(account_id) if account_id not in (None, "") else None,
    )


def parse_journal_entry_line(raw: Mapping[str, Any]) -> JournalEntryLine:
    payment_method = raw.get("paymentMethod")
    line_id = raw.get("id")
    return JournalEntryLine(
        debit_amount=parse_amount(raw.get("debitAmount")),
        credit_amount=parse_amount(raw.get("creditAmount")),
        chart_of_account=parse_chart_of_account(raw.get("chartOfAccount")),
        payment_method=_text(payment_method) if payment_method else None,
        description=_text(raw.get("description")),
        id=_text(line_id) if line_id not in (None, "") else None,
    )


def parse_journal_entry(raw: Mapping[str, Any]) -> JournalEntry:
    """
    Build a JournalEntry from one element of the API ``data`` array.

    Raises
    ------
    ValueError
        If the entry or one of its lines is not a JSON object.
    """
    if not isinstance(raw, Mapping):
        raise ValueError(
            f"Invalid journal entry: expected an object, got {type(raw).__name__}."
        )

    raw_lines = raw.get("journalEntryLines") or []
    if not isinstance(raw_lines, Sequence) or isinstance(raw_lines, str):
        raise ValueError(
            f"Invalid journalEntryLines for entry {raw.get('id')!r}: "
            "expected a list."
        )

    lines = []
    for raw_line in raw_lines:
        if not isinstance(raw_line, Mapping):
            raise ValueError(
                f"Invalid journal entry line in entry {raw.get('id')!r}: "
                "expected an object."
            )
        lines.append(parse_journal_entry_line(raw_line))

    return JournalEntry(
        id=_text(raw.get("id")),
        transaction_date=parse_transaction_date(raw.get("transactionDate")),
        reference_number=_text(raw.get("referenceNumber")),
        description=_text(raw.get("description")),
        status=_text(raw.get("status")).strip().upper(),
        currency=_currency_code(raw.get("currency")),
        journal_entry_lines=tuple(lines),
    )


def parse_journal_entries(raw_entries: Any) -> list[JournalEntry]:
    """
    Parse the ``data`` array of an API response.

    Raises
    ------
    TypeError
        If ``raw_entries`` is not a list.
    ValueError
        If an element is malformed (see ``parse_journal_entry``).
    """
    if not isinstance(raw_entries, list):
        raise TypeError(
            "Journal entries must be a list, "
            f"got {type(raw_entries).__name__}."
        )
    return [parse_journal_entry(raw) for raw in raw_entries]


def parse_api_response(payload: Any) -> list[JournalEntry]:
    """
    Unwrap an API envelope ``{success, message, data}`` (or a bare list).

    Raises
    ------
    ValueError
        If the API reported a failure or ``data`` is not a list.
    """
    if isinstance(payload, list):
        return parse_journal_entries(payload)

    if not isinstance(payload, Mapping):
        raise ValueError(
            "Invalid journal entries payload: expected an object or a list."
        )

    if not payload.get("success", False):
        message = payload.get("message") or "Failed to fetch journal entries"
        raise ValueError(str(message))

    data = payload.get("data")
    if not isinstance(data, list):
        raise ValueError("Invalid journal entries payload: 'data' must be a list.")

    return parse_journal_entries(data)


def read_journal_entries(path: Union[str, "os.PathLike[str]"]) -> list[JournalEntry]:
    """
    Read journal entries from a JSON file saved from the accounting API.

    Raises
    ------
    FileNotFoundError
        If the file does not exist.
    ValueError
        If the file is not valid JSON or the payload is malformed.
    """
    if not os.path.isfile(path):
        raise FileNotFoundError(f"Journal entries file not found: {path}")

    with open(path, encoding="utf-8") as fh:
        try:
            payload = json.load(fh)
        except json.JSONDecodeError as exc:
            raise ValueError(f"Invalid JSON in journal entries file: {path}") from exc

    return parse_api_response(payload)


def entries_to_frame(entries: Sequence[JournalEntry]) -> pd.DataFrame:
    """Flatten journal entries into a long-format DataFrame (one row per line)."""
    rows: list[dict[str, Any]] = []
    for entry in entries:
        for line in entry.journal_entry_lines:
            account = line.chart_of_account or ChartOfAccount()
            rows.append(
                {
                    "entry_id": entry.id,
                    "date": entry.transaction_date,
                    "reference": entry.reference_number,
                    "status": entry.status,
                    "currency": entry.currency,
                    "account_no": account.account_no,
                    "account_name": account.account_name,
                    "account_type": account.account_type,
                    "financial_statement": account.financial_statement,
                    "debit": line.debit_amount,
                    "credit": line.credit_amount,
                    "payment_method": line.payment_method,
                }
            )

    if not rows:
        return pd.DataFrame(columns=LINE_COLUMNS)

    df = pd.DataFrame(rows, columns=LINE_COLUMNS)
    df["date"] = pd.to_datetime(df["date"], utc=True)
    return df
