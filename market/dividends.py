"""
Provides the daily S&P 500 dividend yield.

The dividend yield is a crucial input for options pricing models that account
for dividends (Black-Scholes-Merton), as it affects the cost of carry for
holding the underlying. The source is the monthly S&P 500 dividend yield
series on Nasdaq Data Link (formerly Quandl), which is interpolated to a
daily series: linearly between monthly prints, and held flat after the last
print up to today.
"""

import asyncio
import logging
import time
from datetime import date
from typing import Optional

import numpy as np
import pandas as pd

from clients.http_client import fetch_series_text
from config import DIVIDEND_SERIES_NAME, DIVIDEND_YIELD_URL, NASDAQ_DATA_LINK_API_KEY
from utils.parsing import SourceSeries, parse_series
from .grid import as_date, build_dividend_grid, check_date_in_range, check_earliest_date, date_index

logger = logging.getLogger(__name__)


def fetch_and_parse_dividend_series() -> SourceSeries:
    """
    Downloads the monthly dividend yield series and parses it.

    The series has no missing-value marker, so every row must hold a number.
    """
    params = {"api_key": NASDAQ_DATA_LINK_API_KEY} if NASDAQ_DATA_LINK_API_KEY else None
    text = fetch_series_text(DIVIDEND_YIELD_URL, DIVIDEND_SERIES_NAME, params=params)
    source = parse_series(text, DIVIDEND_SERIES_NAME, missing_values=())
    logger.info(f"Read {len(source.observations)} observations for {DIVIDEND_SERIES_NAME}")
    return source


class DividendYieldTable:
    """Dividend yield (percent) for every calendar day from `first_date` to `last_date`."""

    def __init__(self, series: SourceSeries, earliest_date: date, today: Optional[date] = None):
        started = time.perf_counter()
        today = as_date(today) if today else date.today()
        earliest_date = check_earliest_date(earliest_date, today)

        self.first_date, dividends = build_dividend_grid(series, earliest_date, today)
        self.last_date = today
        dividends.setflags(write=False)
        self._dividends = dividends

        logger.info(
            f"Dividend yield table built from {self.first_date:%Y-%m-%d} to {self.last_date:%Y-%m-%d} "
            f"in {time.perf_counter() - started:.3f}s"
        )

    @classmethod
    async def load(cls, earliest_date: date, today: Optional[date] = None) -> "DividendYieldTable":
        """Fetches the dividend series and builds the table from it."""
        today = as_date(today) if today else date.today()
        check_earliest_date(earliest_date, today)
        series = await asyncio.to_thread(fetch_and_parse_dividend_series)
        return cls(series, earliest_date, today=today)

    @classmethod
    def from_nasdaq(cls, earliest_date: date, today: Optional[date] = None) -> "DividendYieldTable":
        return asyncio.run(cls.load(earliest_date, today=today))

    @property
    def num_rows(self) -> int:
        return self._dividends.shape[0]

    def dividend_yield(self, requested_date: date) -> float:
        """
        Returns the dividend yield on `requested_date`.

        Raises:
            OutOfRange: the date is outside [first_date, last_date].
        """
        requested_date = check_date_in_range(requested_date, self.first_date, self.last_date)
        return float(self._dividends[date_index(requested_date, self.first_date)])

    def to_series(self) -> pd.Series:
        index = pd.date_range(self.first_date, self.last_date, freq="D", name="date")
        return pd.Series(np.array(self._dividends), index=index, name=DIVIDEND_SERIES_NAME)
