"""
Exceptions raised while building or querying the rate and dividend tables.

Every failure is fatal for the table being built: a rate table with an
unverified gap is not safe to hand to a pricing model, so nothing here is
retried or replaced with a default value.
"""


class MarketDataError(Exception):
    """Base class for all rate/dividend table errors."""


class InvalidConstructionArgument(MarketDataError, ValueError):
    """The caller's earliest date is before the historical floor or in the future."""


class MalformedSourceData(MarketDataError):
    """A row of a source series could not be parsed."""

    def __init__(self, series_name: str, line: str):
        self.series_name = series_name
        self.line = line
        super().__init__(f"Invalid data in series {series_name}: {line!r}")


class SeriesFetchError(MalformedSourceData):
    """The raw text of a source series could not be retrieved."""

    def __init__(self, series_name: str, url: str, reason: str):
        self.url = url
        self.reason = reason
        super().__init__(series_name, f"fetch of {url} failed: {reason}")


class AllDataMissing(MarketDataError):
    """A source series has no usable observation inside the table's date range."""

    def __init__(self, series_name: str):
        self.series_name = series_name
        super().__init__(f"All data is missing for series {series_name}")


class GridConstructionError(MarketDataError):
    """The dense grid could not be allocated or completed."""


class OutOfRange(MarketDataError, ValueError):
    """A query asked for a date or duration the table does not cover."""
