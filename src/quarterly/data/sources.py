"""Data source implementations for feeding bars to the divider.

This module provides an abstract interface for data sources and concrete
implementations for CSV files and Yahoo Finance.
"""

from __future__ import annotations

import csv
import logging
from abc import ABC, abstractmethod
from datetime import datetime, timezone
from pathlib import Path
from typing import TYPE_CHECKING, Any, Iterator

from quarterly.exceptions import DataSourceError
from quarterly.types import Bar, DateRange, Symbol

if TYPE_CHECKING:
    from quarterly.types import ScanConfig

logger = logging.getLogger(__name__)


class DataSource(ABC):
    """Abstract base class for data sources.

    All data source implementations must inherit from this class and implement
    the `fetch_bars` method.
    """

    @abstractmethod
    def fetch_bars(
        self,
        symbols: list[Symbol],
        date_range: DateRange | None,
        granularity: str,
    ) -> Iterator[Bar]:
        """Fetch bar data for the given symbols and time range.

        :param symbols: Symbols to fetch (empty = all available, where supported).
        :param date_range: Time range to fetch (inclusive start, exclusive end),
            or None for everything available.
        :param granularity: Bar granularity (e.g., "1m", "5m", "1h").
        :returns: Iterator of Bar objects in chronological order.
        :raises DataSourceError: If fetching fails.
        """
        ...


def _in_range(ts: datetime, date_range: DateRange | None) -> bool:
    if date_range is None:
        return True
    return date_range.start <= ts < date_range.end


class CSVDataSource(DataSource):
    """Data source that reads bar data from CSV files.

    Expected CSV format (default columns):
    - timestamp: ISO format datetime string
    - high, low, close: Prices (empty cells are allowed and read as missing)
    - symbol, open, volume: Optional

    :param source_params: Required parameters:
        - file_path: Path to the CSV file.
        Optional parameters:
        - symbol_col: Column name for symbol (default: "symbol")
        - timestamp_col: Column name for timestamp (default: "timestamp")
        - open_col: Column name for open price (default: "open")
        - high_col: Column name for high price (default: "high")
        - low_col: Column name for low price (default: "low")
        - close_col: Column name for close price (default: "close")
        - volume_col: Column name for volume (default: "volume")
        - delimiter: CSV delimiter (default: ",")
        - timestamp_format: strptime format for timestamps (default: ISO format)
    """

    def __init__(self, source_params: dict[str, Any] | None = None) -> None:
        """Initialize CSV data source.

        :param source_params: Configuration with file_path and optional column mappings.
        :raises DataSourceError: If file_path is not provided.
        """
        self.params = source_params or {}
        self.file_path = self.params.get("file_path")
        if not self.file_path:
            raise DataSourceError("CSVDataSource requires 'file_path' in source_params")

        # Column name mappings with defaults
        self.symbol_col = self.params.get("symbol_col", "symbol")
        self.timestamp_col = self.params.get("timestamp_col", "timestamp")
        self.open_col = self.params.get("open_col", "open")
        self.high_col = self.params.get("high_col", "high")
        self.low_col = self.params.get("low_col", "low")
        self.close_col = self.params.get("close_col", "close")
        self.volume_col = self.params.get("volume_col", "volume")
        self.delimiter = self.params.get("delimiter", ",")
        self.timestamp_format = self.params.get("timestamp_format")

    def _parse_timestamp(self, ts_str: str) -> datetime:
        try:
            if self.timestamp_format:
                ts = datetime.strptime(ts_str, self.timestamp_format)
            else:
                ts = datetime.fromisoformat(ts_str.replace("Z", "+00:00"))
        except ValueError as e:
            raise DataSourceError(f"Failed to parse timestamp '{ts_str}': {e}") from e
        if ts.tzinfo is None:
            ts = ts.replace(tzinfo=timezone.utc)
        return ts

    @staticmethod
    def _parse_price(row: dict[str, str], column: str) -> float | None:
        raw = row.get(column)
        if raw is None or raw.strip() == "":
            return None
        try:
            return float(raw)
        except ValueError:
            logger.debug("Unparsable %s %r treated as missing", column, raw)
            return None

    def fetch_bars(
        self,
        symbols: list[Symbol],
        date_range: DateRange | None,
        granularity: str,
    ) -> Iterator[Bar]:
        """Read bar data from CSV file.

        :param symbols: List of symbols to filter (empty = all rows).
        :param date_range: Time range to filter, or None for all rows.
        :param granularity: Ignored for CSV source.
        :returns: Iterator of Bar objects.
        :raises DataSourceError: If reading fails.
        """
        path = Path(self.file_path)
        if not path.exists():
            raise DataSourceError(f"CSV file not found: {self.file_path}")

        symbol_set = set(str(s) for s in symbols) if symbols else None

        try:
            with open(path, newline="", encoding="utf-8") as f:
                reader = csv.DictReader(f, delimiter=self.delimiter)

                for row in reader:
                    bar_symbol = row.get(self.symbol_col) or None
                    if symbol_set and bar_symbol not in symbol_set:
                        continue

                    ts_str = row.get(self.timestamp_col)
                    if not ts_str:
                        continue
                    ts = self._parse_timestamp(ts_str)
                    if not _in_range(ts, date_range):
                        continue

                    yield Bar(
                        symbol=Symbol(bar_symbol) if bar_symbol else None,
                        timestamp=ts,
                        open=self._parse_price(row, self.open_col),
                        high=self._parse_price(row, self.high_col),
                        low=self._parse_price(row, self.low_col),
                        close=self._parse_price(row, self.close_col),
                        volume=self._parse_price(row, self.volume_col),
                    )

        except csv.Error as e:
            raise DataSourceError(f"CSV parsing error: {e}") from e
        except OSError as e:
            raise DataSourceError(f"Failed to read CSV file: {e}") from e


class YahooDataSource(DataSource):
    """Data source that fetches intraday data from Yahoo Finance via yfinance.

    :param source_params: Optional parameters for configuring the source.
        - timeout: Request timeout in seconds (default: 30)
    """

    # Map our granularity format to yfinance interval format
    GRANULARITY_MAP = {
        "1m": "1m",
        "5m": "5m",
        "15m": "15m",
        "1h": "60m",
        "60m": "60m",
    }

    def __init__(self, source_params: dict[str, Any] | None = None) -> None:
        self.params = source_params or {}
        self.timeout = self.params.get("timeout", 30)

    def fetch_bars(
        self,
        symbols: list[Symbol],
        date_range: DateRange | None,
        granularity: str,
    ) -> Iterator[Bar]:
        """Fetch bar data from Yahoo Finance.

        :param symbols: Symbols to fetch (at least one).
        :param date_range: Time range to fetch (required).
        :param granularity: Bar granularity.
        :returns: Iterator of Bar objects.
        :raises DataSourceError: If fetching fails.
        """
        try:
            import yfinance as yf
        except ImportError as e:
            raise DataSourceError(
                "yfinance is not installed. Install it with: pip install yfinance"
            ) from e

        if not symbols:
            raise DataSourceError("YahooDataSource requires at least one symbol")
        if date_range is None:
            raise DataSourceError("YahooDataSource requires a date_range")

        interval = self.GRANULARITY_MAP.get(granularity)
        if interval is None:
            raise DataSourceError(
                f"Unsupported granularity '{granularity}'. "
                f"Supported: {list(self.GRANULARITY_MAP.keys())}"
            )

        start_str = date_range.start.strftime("%Y-%m-%d")
        end_str = date_range.end.strftime("%Y-%m-%d")

        for symbol in symbols:
            try:
                ticker = yf.Ticker(str(symbol))
                df = ticker.history(
                    start=start_str,
                    end=end_str,
                    interval=interval,
                    timeout=self.timeout,
                )
            except Exception as e:
                raise DataSourceError(
                    f"Failed to fetch data for symbol '{symbol}': {e}"
                ) from e

            if df.empty:
                logger.warning("No data returned for %s", symbol)
                continue

            for timestamp, row in df.iterrows():
                ts = timestamp.to_pydatetime()
                if ts.tzinfo is None:
                    ts = ts.replace(tzinfo=timezone.utc)

                yield Bar(
                    symbol=symbol,
                    timestamp=ts,
                    open=float(row["Open"]),
                    high=float(row["High"]),
                    low=float(row["Low"]),
                    close=float(row["Close"]),
                    volume=float(row["Volume"]),
                )


def resolve_data_source(config: ScanConfig) -> DataSource:
    """Construct a data source from configuration.

    :param config: ScanConfig with data_source and source_params.
    :returns: DataSource instance for the specified type.
    :raises DataSourceError: If data_source type is unrecognized.
    """
    source_type = config.data_source.lower()

    if source_type == "csv":
        return CSVDataSource(config.source_params)
    elif source_type == "yahoo":
        return YahooDataSource(config.source_params)
    else:
        raise DataSourceError(
            f"Unrecognized data source type: '{config.data_source}'. "
            f"Supported types: csv, yahoo"
        )
