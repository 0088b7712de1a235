"""Bar feeding and source management module."""

from quarterly.data.sources import (CSVDataSource, DataSource, YahooDataSource,
                                    resolve_data_source)

__all__ = [
    "DataSource",
    "CSVDataSource",
    "YahooDataSource",
    "resolve_data_source",
]
