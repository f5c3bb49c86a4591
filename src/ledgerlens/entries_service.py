# LedgerLens - Financial dashboard metrics from general-ledger journal entries
# Copyright (c) 2025 Maxence Bernard (maxencebernardhub)
# Licensed under the MIT License. See LICENSE file for details.


"""
High-level services for obtaining journal entries.

This module sits between:
- the data sources that deliver journal entries (a JSON export of the
  accounting API, or entries already held in memory), and
- user-facing layers such as the CLI.

Responsibilities
----------------
1) Data sources
   - ``JournalEntrySource`` is the capability handed to callers of the
     engine. Fetching, authentication and caching belong to the source,
     never to the engine.
   - ``JsonFileSource`` reads an API response saved to disk.
   - ``InMemorySource`` wraps already-parsed entries (tests, notebooks).

2) Currency selection for the dashboard
   - ``available_currencies`` lists the codes present in the entries.
   - ``filter_by_currency`` applies the dashboard currency choice
     (``ALL`` or a specific code) before the engine runs.
   - ``resolve_display_currency`` decides which code amounts are shown in.

Design notes
------------
The engine still guards against mixed currencies on its own (see
engine.select_single_currency). Choosing a currency here is the explicit,
caller-side way of deciding which one is reported.
"""

import logging
import os
from collections.abc import Sequence
from dataclasses import dataclass
from pathlib import Path
from typing import Optional, Protocol, Union

from .io import read_journal_entries
from .models import JournalEntry

logger = logging.getLogger(__name__)

ALL_CURRENCIES = "ALL"
DEFAULT_DISPLAY_CURRENCY = "USD"


class JournalEntrySource(Protocol):
    """Anything able to deliver the current list of journal entries."""

    def fetch(self) -> list[JournalEntry]: ...


@dataclass(frozen=True)
class JsonFileSource:
    """Journal entries read from a JSON export of the accounting API."""

    path: Path

    def fetch(self) -> list[JournalEntry]:
        entries = read_journal_entries(self.path)
        logger.info("Loaded %d journal entries from %s", len(entries), self.path)
        return entries


@dataclass(frozen=True)
class InMemorySource:
    """Journal entries that are already parsed."""

    entries: tuple[JournalEntry, ...] = ()

    def fetch(self) -> list[JournalEntry]:
        return list(self.entries)


def source_from_path(path: Union[str, "os.PathLike[str]"]) -> JsonFileSource:
    return JsonFileSource(path=Path(path))


def load_journal_entries(source: JournalEntrySource) -> list[JournalEntry]:
    """Fetch entries from a source and check the result is a list."""
    entries = source.fetch()
    if not isinstance(entries, list):
        raise TypeError(
            f"Journal entry source returned {type(entries).__name__}, expected a list."
        )
    return entries


def available_currencies(entries: Sequence[JournalEntry]) -> list[str]:
    """Distinct currency codes, in order of first appearance."""
    return list(dict.fromkeys(e.currency for e in entries if e.currency))


def filter_by_currency(
    entries: Sequence[JournalEntry], choice: Optional[str]
) -> list[JournalEntry]:
    """Apply the dashboard currency choice (``ALL`` keeps everything)."""
    code = (choice or ALL_CURRENCIES).strip().upper()
    if code == ALL_CURRENCIES:
        return list(entries)
    return [e for e in entries if e.currency == code]


def resolve_display_currency(
    filtered: Sequence[JournalEntry], choice: Optional[str]
) -> str:
    """
    Currency code used to display amounts.

    A specific choice is used as-is. For ``ALL``, the first filtered entry's
    currency is used, falling back to USD.
    """
    code = (choice or ALL_CURRENCIES).strip().upper()
    if code != ALL_CURRENCIES:
        return code
    if filtered and filtered[0].currency:
        return filtered[0].currency
    return DEFAULT_DISPLAY_CURRENCY
