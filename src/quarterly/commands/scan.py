"""Configuration for the scan command.

Example config file (scan.yaml):

    data_source: "csv"
    source_params:
      file_path: "es_1m.csv"
    symbols:            # Optional for csv
      - "ES"
    date_range:         # Optional for csv, required for yahoo
      start: "2024-03-01"
      end: "2024-03-08"
    granularity: "1m"
    divider:
      use_custom_session: true
      start_hour: 9
      start_minute: 30
      end_hour: 16
      end_minute: 0
      local_timezone: "America/New_York"
      lon_start_hour: 7   # Any {syd,asia,lon,ny}_{start,end}_{hour,min}
    logging:
      level: "DEBUG"
"""

from __future__ import annotations

import logging
from datetime import datetime, timezone
from pathlib import Path
from typing import Any
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

import yaml
from pydantic import ValidationError

from quarterly.exceptions import ConfigError
from quarterly.types import DateRange, DividerConfig, ScanConfig, Symbol

# Valid data sources
VALID_DATA_SOURCES = frozenset(["csv", "yahoo"])

VALID_LOG_LEVELS = frozenset(["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"])


def _parse_datetime(value: str | datetime) -> datetime:
    """Parse a datetime string or pass through datetime objects.

    :param value: ISO format string or datetime object.
    :returns: Timezone-aware datetime (UTC if no timezone specified).
    :raises ConfigError: If parsing fails.
    """
    if isinstance(value, datetime):
        if value.tzinfo is None:
            return value.replace(tzinfo=timezone.utc)
        return value

    try:
        dt = datetime.fromisoformat(str(value).replace("Z", "+00:00"))
        if dt.tzinfo is None:
            dt = dt.replace(tzinfo=timezone.utc)
        return dt
    except ValueError:
        pass

    try:
        dt = datetime.strptime(str(value), "%Y-%m-%d")
        return dt.replace(tzinfo=timezone.utc)
    except ValueError as e:
        raise ConfigError(f"Invalid datetime format: {value}") from e


def parse_session_hours(value: str) -> dict[str, int]:
    """Parse an ``HH:MM-HH:MM`` custom session string into divider fields.

    :param value: Session string, e.g. "09:30-16:00".
    :returns: Mapping with start_hour, start_minute, end_hour, end_minute.
    :raises ConfigError: If the string is malformed.
    """
    try:
        start, end = value.split("-")
        start_hour, start_minute = (int(part) for part in start.split(":"))
        end_hour, end_minute = (int(part) for part in end.split(":"))
    except ValueError as e:
        raise ConfigError(f"Invalid session '{value}', expected HH:MM-HH:MM") from e
    return {
        "start_hour": start_hour,
        "start_minute": start_minute,
        "end_hour": end_hour,
        "end_minute": end_minute,
    }


def build_divider_config(raw: dict[str, Any]) -> DividerConfig:
    """Validate a ``divider`` mapping into a DividerConfig.

    :param raw: Mapping of DividerConfig field names to values.
    :returns: Validated DividerConfig.
    :raises ConfigError: If a key is unknown, a value has the wrong type, or
        the timezone is not a known IANA zone.
    """
    unknown = sorted(set(raw) - set(DividerConfig.model_fields))
    if unknown:
        raise ConfigError(f"Unknown divider settings: {', '.join(unknown)}")

    try:
        config = DividerConfig(**raw)
    except ValidationError as e:
        raise ConfigError(f"Invalid divider settings: {e}") from e

    if config.local_timezone is not None:
        try:
            ZoneInfo(config.local_timezone)
        except (ZoneInfoNotFoundError, ValueError) as e:
            raise ConfigError(f"Unknown timezone '{config.local_timezone}'") from e
    return config


def load_scan_config(config_path: str | Path) -> ScanConfig:
    """Parse and validate a scan configuration file.

    :param config_path: Path to YAML configuration file.
    :returns: Validated ScanConfig object.
    :raises ConfigError: If file cannot be read or config is invalid.
    """
    config_path = Path(config_path)

    # Read and parse YAML
    try:
        with open(config_path) as f:
            raw_config = yaml.safe_load(f)
    except FileNotFoundError as e:
        raise ConfigError(f"Configuration file not found: {config_path}") from e
    except yaml.YAMLError as e:
        raise ConfigError(f"Invalid YAML in configuration file: {e}") from e

    if not isinstance(raw_config, dict):
        raise ConfigError("Configuration must be a YAML mapping")

    # Parse data_source
    if "data_source" not in raw_config:
        raise ConfigError("Missing required field: data_source")
    data_source = str(raw_config["data_source"]).lower()
    if data_source not in VALID_DATA_SOURCES:
        raise ConfigError(
            f"Invalid data_source '{raw_config['data_source']}'. "
            f"Valid options: {sorted(VALID_DATA_SOURCES)}"
        )

    # Parse source_params (optional)
    source_params: dict[str, Any] = raw_config.get("source_params") or {}
    if not isinstance(source_params, dict):
        raise ConfigError("'source_params' must be a mapping")
    if data_source == "csv" and not source_params.get("file_path"):
        raise ConfigError("'source_params.file_path' is required for csv data")

    # Parse symbols (optional)
    raw_symbols = raw_config.get("symbols") or []
    if not isinstance(raw_symbols, list):
        raise ConfigError("'symbols' must be a list")
    symbols = [Symbol(str(s)) for s in raw_symbols]
    if data_source == "yahoo" and not symbols:
        raise ConfigError("'symbols' must be a non-empty list for yahoo data")

    # Parse date_range (optional)
    date_range: DateRange | None = None
    raw_date_range = raw_config.get("date_range")
    if raw_date_range is not None:
        if not isinstance(raw_date_range, dict):
            raise ConfigError("'date_range' must be a mapping with 'start' and 'end'")
        if "start" not in raw_date_range or "end" not in raw_date_range:
            raise ConfigError("'date_range' must contain 'start' and 'end'")

        start_dt = _parse_datetime(raw_date_range["start"])
        end_dt = _parse_datetime(raw_date_range["end"])
        if start_dt >= end_dt:
            raise ConfigError("'date_range.start' must be before 'date_range.end'")
        date_range = DateRange(start=start_dt, end=end_dt)
    elif data_source == "yahoo":
        raise ConfigError("'date_range' is required for yahoo data")

    # Parse granularity (optional)
    granularity = str(raw_config.get("granularity", "1m"))

    # Parse divider (optional)
    raw_divider = raw_config.get("divider") or {}
    if not isinstance(raw_divider, dict):
        raise ConfigError("'divider' must be a mapping")
    divider = build_divider_config(raw_divider)

    # Parse logging (optional)
    raw_logging = raw_config.get("logging") or {}
    if not isinstance(raw_logging, dict):
        raise ConfigError("'logging' must be a mapping")
    log_level = str(raw_logging.get("level", "INFO")).upper()
    if log_level not in VALID_LOG_LEVELS:
        raise ConfigError(
            f"Invalid logging.level '{log_level}'. "
            f"Valid options: {sorted(VALID_LOG_LEVELS)}"
        )

    return ScanConfig(
        data_source=data_source,
        source_params=source_params,
        symbols=symbols,
        date_range=date_range,
        granularity=granularity,
        divider=divider,
        log_level=log_level,
    )


def configure_logging(level: str) -> None:
    """Configure root logging for command-line runs."""
    logging.basicConfig(
        level=getattr(logging, level.upper(), logging.INFO),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
