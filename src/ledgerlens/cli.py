# LedgerLens - Financial dashboard metrics from general-ledger journal entries
# Copyright (c) 2025 Maxence Bernard (maxencebernardhub)
# Licensed under the MIT License. See LICENSE file for details.

"""
Command-Line Interface (CLI) for LedgerLens.

This module wires together the main building blocks of LedgerLens:

- configuration (entries file, dashboard and cash-flow options, display),
- journal entries loading (entries_service / io),
- dashboard engine (engine.process_dashboard_data),
- cash-flow classifier (cash_flow.build_cash_flow_statement),
- view helpers (tabular rendering and CSV export).

The CLI is intentionally thin: it does not implement accounting logic
itself. It orchestrates the underlying modules based on command-line
arguments and configuration files.


Commands
--------

``dashboard``
    Revenue, expenses, net profit and cash for the current comparison
    window, their change versus the previous window, the per-account
    breakdowns, the monthly trend and the quick stats.

    Options:

    - ``--basis accrual|cash``
    - ``--range week|month|quarter|year``
    - ``--currency ALL|<code>``

``cash-flow``
    Direct-method cash-flow statement for one currency and an inclusive
    date range (default: the last 30 days).

    Options:

    - ``--currency <code>`` (default: USD when present, else the first code)
    - ``--from-date YYYY-MM-DD`` / ``--to-date YYYY-MM-DD``


Configuration and overrides
---------------------------

By default, the CLI reads ``ledgerlens_config.toml`` in the current
working directory (built-in defaults apply if it does not exist). Use
``--config PATH`` to point at another file. ``--entries PATH`` overrides
``[source].entries_file``; ``--display-mode`` and ``--output`` override the
``[display]`` section; ``--log-level`` overrides ``[logging].level``.


Display modes and output
------------------------

- ``table``: print results to stdout (pandas.DataFrame.to_string),
- ``csv``:   write CSV files only,
- ``both``:  do both.

CSV files are written to ``--output DIR`` (or ``[display].output_dir``)
with timestamp-based names, e.g. ``dashboard_kpis_YYYY-MM-DD-HH-MM-SS.csv``
or ``cash_flow_statement_YYYY-MM-DD-HH-MM-SS.csv``.


Examples
--------

    ledgerlens --entries data/journal_entries.json dashboard --range year
    ledgerlens dashboard --basis cash --currency USD --display-mode both
    ledgerlens cash-flow --currency ZWL --from-date 2025-01-01 --to-date 2025-03-31
"""

import argparse
import logging
from datetime import date, datetime
from pathlib import Path
from typing import Optional

import pandas as pd

from . import __version__
from .cash_flow import (
    build_cash_flow_statement,
    choose_cash_flow_currency,
    default_cash_flow_range,
)
from .config import DISPLAY_MODES, LOG_LEVELS, AppConfig, load_app_config
from .engine import process_dashboard_data
from .entries_service import (
    available_currencies,
    filter_by_currency,
    load_journal_entries,
    resolve_display_currency,
    source_from_path,
)
from .models import BASES, COMPARISON_RANGES, JournalEntry
from .ratios import compute_quick_stats
from .views import (
    account_summaries_to_dataframe,
    cash_flow_rows_to_dataframe,
    cash_flow_summary_to_dataframe,
    format_currency,
    kpis_to_dataframe,
    monthly_to_dataframe,
    ratios_to_dataframe,
)

logger = logging.getLogger(__name__)


def _build_parser() -> argparse.ArgumentParser:
    """Create and configure the argument parser for the CLI."""
    ap = argparse.ArgumentParser(
        prog="ledgerlens",
        description=(
            "LedgerLens - financial dashboard metrics and cash-flow statements "
            "derived from general-ledger journal entries."
        ),
    )

    # Generic options
    ap.add_argument(
        "--version",
        action="store_true",
        help="Show the installed version of ledgerlens and exit.",
    )
    ap.add_argument(
        "--config",
        dest="config_path",
        help=(
            "Path to the TOML configuration file. If omitted, "
            "'ledgerlens_config.toml' in the current directory is used when present."
        ),
    )
    ap.add_argument(
        "--entries",
        dest="entries_path",
        metavar="JSON_PATH",
        help=(
            "JSON export of the journal-entries API. Overrides "
            "[source].entries_file from the configuration."
        ),
    )
    ap.add_argument(
        "--log-level",
        dest="log_level",
        choices=LOG_LEVELS,
        help="Override [logging].level from the configuration.",
    )
    ap.add_argument(
        "--display-mode",
        dest="display_mode",
        choices=DISPLAY_MODES,
        help=(
            "Override [display].mode. 'table' prints results to stdout, "
            "'csv' writes CSV files only, 'both' does both."
        ),
    )
    ap.add_argument(
        "--output",
        dest="output_dir",
        help="Output directory for CSV files. Overrides [display].output_dir.",
    )

    subparsers = ap.add_subparsers(
        dest="command",
        metavar="command",
        help="'dashboard' or 'cash-flow'.",
    )

    # ------------------------------------------------------------------
    # dashboard
    # ------------------------------------------------------------------
    dashboard = subparsers.add_parser(
        "dashboard",
        help="Revenue/expense KPIs, balances, trends and quick stats.",
    )
    dashboard.add_argument(
        "--basis",
        choices=BASES,
        help="Accounting basis. Overrides [dashboard].basis.",
    )
    dashboard.add_argument(
        "--range",
        dest="compare_range",
        choices=COMPARISON_RANGES,
        help="Comparison range. Overrides [dashboard].compare_range.",
    )
    dashboard.add_argument(
        "--currency",
        help="'ALL' or a currency code. Overrides [dashboard].currency.",
    )

    # ------------------------------------------------------------------
    # cash-flow
    # ------------------------------------------------------------------
    cash_flow = subparsers.add_parser(
        "cash-flow",
        help="Direct-method cash-flow statement for one currency.",
    )
    cash_flow.add_argument(
        "--currency",
        help=(
            "Currency code of the statement. Defaults to [cash_flow].currency, "
            "then USD when present, then the first code in the data."
        ),
    )
    cash_flow.add_argument(
        "--from-date",
        dest="from_date",
        help="Start date (YYYY-MM-DD, inclusive). Defaults to today minus the lookback.",
    )
    cash_flow.add_argument(
        "--to-date",
        dest="to_date",
        help="End date (YYYY-MM-DD, inclusive). Defaults to today.",
    )

    return ap


def _parse_optional_date(value: Optional[str]) -> Optional[date]:
    """
    Parse an optional CLI date argument (YYYY-MM-DD).

    Raises
    ------
    SystemExit
        If the date format is invalid.
    """
    if value is None:
        return None

    try:
        return date.fromisoformat(value)
    except ValueError as exc:
        msg = f"Invalid date format: {value!r}. Expected YYYY-MM-DD."
        raise SystemExit(msg) from exc


def _load_entries(
    parser: argparse.ArgumentParser, args: argparse.Namespace, config: AppConfig
) -> list[JournalEntry]:
    entries_path = Path(args.entries_path) if args.entries_path else config.entries_file
    if entries_path is None:
        parser.error(
            "No journal entries file configured. Either set [source].entries_file "
            "in the configuration or provide --entries."
        )

    try:
        entries = load_journal_entries(source_from_path(entries_path))
    except (FileNotFoundError, ValueError, TypeError) as exc:
        raise SystemExit(str(exc)) from exc

    print(f"Journal entries loaded: {len(entries)}")
    if not entries:
        print("Warning: the journal entries file does not contain any entry.")
    return entries


def _write_csv(frames: dict[str, pd.DataFrame], output_dir: Path) -> None:
    output_dir.mkdir(parents=True, exist_ok=True)
    timestamp = datetime.now().strftime("%Y-%m-%d-%H-%M-%S")
    for name, df in frames.items():
        path = output_dir / f"{name}_{timestamp}.csv"
        df.to_csv(path, index=False)
        print(f"Wrote {path} ({len(df)} rows)")


def _render(
    sections: list[tuple[str, str, pd.DataFrame]],
    display_mode: str,
    output_dir: Path,
) -> None:
    """Print ``(title, file_stem, frame)`` sections and/or write them as CSV."""
    if display_mode in {"table", "both"}:
        for title, _, df in sections:
            print()
            print(f"=== {title} ===")
            if df.empty:
                print("No data available.")
            else:
                print(df.to_string(index=False))

    if display_mode in {"csv", "both"}:
        _write_csv({stem: df for _, stem, df in sections}, output_dir)


def _handle_dashboard(
    args: argparse.Namespace,
    config: AppConfig,
    entries: list[JournalEntry],
    display_mode: str,
    output_dir: Path,
) -> None:
    """
    Handle the 'dashboard' command.

    This function:
    - applies the currency choice (ALL or a specific code),
    - runs the dashboard engine for the selected basis and range,
    - renders KPIs, account breakdowns, monthly trend and quick stats.
    """
    basis = args.basis or config.dashboard.basis
    compare_range = args.compare_range or config.dashboard.compare_range
    choice = (args.currency or config.dashboard.currency).strip().upper()

    filtered = filter_by_currency(entries, choice)
    metrics = process_dashboard_data(filtered, basis, compare_range)
    display_currency = metrics.currency or resolve_display_currency(filtered, choice)

    print(
        f"Dashboard: {basis} basis, {compare_range} comparison, "
        f"currency {display_currency} "
        f"(available: {', '.join(available_currencies(entries)) or 'none'})"
    )
    if metrics.dropped_entries:
        print(
            f"Warning: {metrics.dropped_entries} posted entries in other currencies "
            f"were ignored. Use --currency to pick one explicitly."
        )
    print(
        f"Net profit: {format_currency(metrics.net_profit, display_currency)} | "
        f"Cash balance: {format_currency(metrics.cash_balance, display_currency)}"
    )

    decimals = config.display.decimals
    sections = [
        ("KPIs", "dashboard_kpis", kpis_to_dataframe(metrics, compare_range).round(decimals)),
        (
            "Revenue by account",
            "dashboard_revenues",
            account_summaries_to_dataframe(metrics.revenues).round(decimals),
        ),
        (
            "Expenses by account",
            "dashboard_expenses",
            account_summaries_to_dataframe(metrics.expenses).round(decimals),
        ),
        ("Monthly trend", "dashboard_trend", monthly_to_dataframe(metrics).round(decimals)),
        (
            "Quick stats",
            "dashboard_quick_stats",
            ratios_to_dataframe(compute_quick_stats(metrics), decimals),
        ),
    ]
    _render(sections, display_mode, output_dir)


def _handle_cash_flow(
    args: argparse.Namespace,
    config: AppConfig,
    entries: list[JournalEntry],
    display_mode: str,
    output_dir: Path,
) -> None:
    """
    Handle the 'cash-flow' command.

    This function:
    - resolves the statement currency and the inclusive date range,
    - classifies cash-affecting entries into Operating/Investing/Financing,
    - renders the statement summary and the detail rows.
    """
    default_start, default_end = default_cash_flow_range(
        lookback_days=config.cash_flow.lookback_days
    )
    start = _parse_optional_date(args.from_date) or default_start
    end = _parse_optional_date(args.to_date) or default_end

    currency = (
        args.currency
        or config.cash_flow.currency
        or choose_cash_flow_currency(entries)
    )
    if not currency:
        print("No currency found in the journal entries; nothing to report.")
        return

    try:
        statement = build_cash_flow_statement(entries, currency, start, end)
    except ValueError as exc:
        raise SystemExit(str(exc)) from exc

    code = statement.currency or currency
    print(f"Cash flow statement: {start.isoformat()} to {end.isoformat()}, currency {code}")
    print(
        f"Net change in cash: {format_currency(statement.net_change, code)} "
        f"({len(statement.rows)} cash transactions)"
    )

    decimals = config.display.decimals
    sections = [
        (
            "Cash flow statement",
            "cash_flow_statement",
            cash_flow_summary_to_dataframe(statement).round(decimals),
        ),
        (
            "Details",
            "cash_flow_details",
            cash_flow_rows_to_dataframe(statement.rows).round(decimals),
        ),
    ]
    _render(sections, display_mode, output_dir)


def main(argv: Optional[list[str]] = None) -> None:
    """Entry point for the LedgerLens CLI.

    This function parses command-line arguments, loads the configuration,
    configures logging, loads journal entries from the configured JSON
    export and dispatches to the requested command.
    """
    parser = _build_parser()
    args = parser.parse_args(argv)

    # --version: short-circuit and exit early.
    if args.version:
        print(f"ledgerlens version {__version__}")
        return

    if args.command is None:
        parser.error("A command is required: 'dashboard' or 'cash-flow'.")

    # 1) Load configuration
    try:
        config = load_app_config(args.config_path)
    except (FileNotFoundError, ValueError) as exc:
        raise SystemExit(str(exc)) from exc

    # 2) Logging
    logging.basicConfig(
        level=args.log_level or config.log_level,
        format="%(levelname)s %(name)s: %(message)s",
    )

    # 3) Display options: config values overridden by CLI if provided.
    display_mode = args.display_mode or config.display.mode
    output_dir = Path(args.output_dir) if args.output_dir else config.display.output_dir

    # 4) Journal entries
    entries = _load_entries(parser, args, config)

    # 5) Dispatch
    if args.command == "dashboard":
        _handle_dashboard(args, config, entries, display_mode, output_dir)
    elif args.command == "cash-flow":
        _handle_cash_flow(args, config, entries, display_mode, output_dir)


if __name__ == "__main__":
    main()
