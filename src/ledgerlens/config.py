# LedgerLens - Financial dashboard metrics from general-ledger journal entries
# Copyright (c) 2025 Maxence Bernard (maxencebernardhub)
# Licensed under the MIT License. See LICENSE file for details.

"""
Configuration helpers for LedgerLens.

This module is responsible for:
- loading the application configuration from a TOML file,
- validating the dashboard, cash-flow, display and logging options,
- exposing typed dataclasses used by the rest of the application.
"""

from collections.abc import Mapping
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Optional

import tomllib  # Python 3.11+

from .models import BASES, COMPARISON_RANGES

DEFAULT_CONFIG_FILE = "ledgerlens_config.toml"
DISPLAY_MODES: tuple[str, ...] = ("table", "csv", "both")
LOG_LEVELS: tuple[str, ...] = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")


@dataclass(frozen=True)
class DashboardConfig:
    """Options of the dashboard computation."""

    basis: str = "accrual"
    compare_range: str = "month"
    currency: str = "ALL"


@dataclass(frozen=True)
class CashFlowConfig:
    """Options of the cash-flow statement report."""

    currency: Optional[str] = None
    lookback_days: int = 30


@dataclass(frozen=True)
class DisplayConfig:
    """Rendering options shared by all commands."""

    mode: str = "table"
    output_dir: Path = Path("data/output")
    decimals: int = 2


@dataclass(frozen=True)
class AppConfig:
    """
    Application-wide configuration for LedgerLens.

    This aggregates:
    - where journal entries are read from,
    - dashboard options (basis, comparison range, currency choice),
    - cash-flow report options,
    - display and logging options.
    """

    entries_file: Optional[Path] = None
    dashboard: DashboardConfig = DashboardConfig()
    cash_flow: CashFlowConfig = CashFlowConfig()
    display: DisplayConfig = DisplayConfig()
    log_level: str = "WARNING"


def _load_toml(path: Path) -> dict[str, Any]:
    """
    Load a TOML file and return its content as a dictionary.

    Raises:
        FileNotFoundError: if the file does not exist.
        ValueError: if the TOML content cannot be parsed.
    """
    if not path.is_file():
        raise FileNotFoundError(f"Config file not found: {path}")

    try:
        return tomllib.loads(path.read_text(encoding="utf-8"))
    except tomllib.TOMLDecodeError as exc:
        raise ValueError(f"Failed to parse TOML config file: {path}") from exc


def _section(raw: Mapping[str, Any], name: str) -> Mapping[str, Any]:
    section = raw.get(name) or {}
    if not isinstance(section, Mapping):
        raise ValueError(f"Config section [{name}] must be a table.")
    return section


def _choice(value: Any, allowed: tuple[str, ...], setting: str) -> str:
    text = str(value).strip().lower()
    if text not in allowed:
        raise ValueError(
            f"Invalid value {value!r} for '{setting}'. "
            f"Expected one of: {', '.join(allowed)}."
        )
    return text


def _int(value: Any, setting: str, minimum: int = 0) -> int:
    try:
        number = int(value)
    except (TypeError, ValueError) as exc:
        raise ValueError(
            f"Invalid value for '{setting}' in the configuration. Expected an integer."
        ) from exc
    if number < minimum:
        raise ValueError(f"'{setting}' must be >= {minimum}, got {number}.")
    return number


def parse_app_config(raw: Mapping[str, Any], base_dir: Path) -> AppConfig:
    """
    Build an AppConfig from parsed TOML data.

    Relative paths are resolved against ``base_dir``.

    Raises:
        ValueError: if a section is not a table or a value is invalid.
    """
    # 1) Source
    source_section = _section(raw, "source")
    entries_raw = source_section.get("entries_file")
    entries_file = (base_dir / str(entries_raw)).resolve() if entries_raw else None

    # 2) Dashboard
    dashboard_section = _section(raw, "dashboard")
    dashboard = DashboardConfig(
        basis=_choice(dashboard_section.get("basis", "accrual"), BASES, "dashboard.basis"),
        compare_range=_choice(
            dashboard_section.get("compare_range", "month"),
            COMPARISON_RANGES,
            "dashboard.compare_range",
        ),
        currency=str(dashboard_section.get("currency") or "ALL").strip().upper(),
    )

    # 3) Cash flow
    cash_flow_section = _section(raw, "cash_flow")
    cash_flow_currency = cash_flow_section.get("currency")
    cash_flow = CashFlowConfig(
        currency=str(cash_flow_currency).strip().upper() if cash_flow_currency else None,
        lookback_days=_int(
            cash_flow_section.get("lookback_days", 30), "cash_flow.lookback_days"
        ),
    )

    # 4) Display
    display_section = _section(raw, "display")
    output_raw = display_section.get("output_dir") or "data/output"
    display = DisplayConfig(
        mode=_choice(display_section.get("mode", "table"), DISPLAY_MODES, "display.mode"),
        output_dir=(base_dir / str(output_raw)).resolve(),
        decimals=_int(display_section.get("decimals", 2), "display.decimals"),
    )

    # 5) Logging
    logging_section = _section(raw, "logging")
    log_level = str(logging_section.get("level", "WARNING")).strip().upper()
    if log_level not in LOG_LEVELS:
        raise ValueError(
            f"Invalid value {log_level!r} for 'logging.level'. "
            f"Expected one of: {', '.join(LOG_LEVELS)}."
        )

    return AppConfig(
        entries_file=entries_file,
        dashboard=dashboard,
        cash_flow=cash_flow,
        display=display,
        log_level=log_level,
    )


def load_app_config(config_path: Optional[str] = None) -> AppConfig:
    """
    Load the LedgerLens application configuration from a TOML file.

    Expected sections in the TOML file (all optional)
    -------------------------------------------------
    [source]
        entries_file: JSON export of the journal-entries API.

    [dashboard]
        basis ("accrual" | "cash"), compare_range ("week" | "month" |
        "quarter" | "year"), currency ("ALL" or a currency code).

    [cash_flow]
        currency (defaults to USD when present, else the first code seen),
        lookback_days (length of the default report range, default 30).

    [display]
        mode ("table" | "csv" | "both"), output_dir, decimals.

    [logging]
        level (DEBUG, INFO, WARNING, ERROR, CRITICAL).

    Notes
    -----
    - When ``config_path`` is None and ``ledgerlens_config.toml`` does not
      exist in the current directory, built-in defaults are returned.
    - All file paths are resolved relative to the directory of the TOML
      file itself.

    Raises:
        FileNotFoundError: if an explicit ``config_path`` does not exist.
        ValueError: if the configuration is invalid.
    """
    if config_path is None:
        config_file = Path(DEFAULT_CONFIG_FILE).resolve()
        if not config_file.is_file():
            return parse_app_config({}, base_dir=config_file.parent)
    else:
        config_file = Path(config_path).resolve()

    raw = _load_toml(config_file)
    return parse_app_config(raw, base_dir=config_file.parent)
