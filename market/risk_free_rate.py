"""
Builds a daily risk-free interest rate surface from the FRED LIBOR series.

FRED publishes one series per money-market term (overnight, 1 week, 1, 2, 3,
6 and 12 months), only on business days and with occasional holes. This
module fetches those series in parallel, then turns them into a dense table
with a rate for EVERY calendar day from the table's first date up to today,
and for EVERY loan duration from 1 to 360 days:

- Gaps down a duration's column (weekends, holidays, missing prints) are
  filled by linear interpolation between the surrounding business days, and
  held flat before the first and after the last known print.
- Durations FRED does not publish are linearly interpolated across the term
  structure of the same day.
- Finally every rate is converted from the money-market Act/360 simple rate
  convention to the continuously compounded Act/365 convention used by the
  Black-Scholes formula.

The result is a read-only table answering `risk_free_rate(date, duration)` in
constant time.
"""

import asyncio
import logging
import time
from datetime import date
from typing import Dict, Mapping, Optional

import numpy as np
import pandas as pd

from clients.http_client import fetch_series_text
from config import (
    FRED_GRAPH_URL,
    FRED_MISSING_VALUES,
    FRED_OBSERVATION_START,
    FRED_RATE_SERIES,
    MAX_DURATION_DAYS,
    MIN_DURATION_DAYS,
    RATE_QUOTE_SCALE,
)
from utils.parsing import SourceSeries, parse_series
from .grid import (
    as_date,
    build_rate_grid,
    check_date_in_range,
    check_duration,
    check_earliest_date,
    convert_day_count,
    date_index,
    resolve_first_date,
)

logger = logging.getLogger(__name__)


def build_fred_params(series_name: str, end_date: date) -> dict:
    """Query parameters for the fredgraph CSV download of one series."""
    return {
        "id": series_name,
        "cosd": FRED_OBSERVATION_START,
        "coed": end_date.isoformat(),
    }


def fetch_and_parse_fred_series(series_name: str, duration: int, end_date: date) -> SourceSeries:
    """Downloads one FRED series and parses it. Runs in a worker thread."""
    text = fetch_series_text(FRED_GRAPH_URL, series_name, params=build_fred_params(series_name, end_date))
    source = parse_series(text, series_name, missing_values=FRED_MISSING_VALUES, duration=duration)
    if source.observations.empty:
        logger.warning(f"No observations for {series_name} ({duration} days)")
    else:
        logger.info(
            f"Read {len(source.observations)} observations for {series_name} ({duration} days) "
            f"from {source.first_date:%Y-%m-%d} to {source.last_date:%Y-%m-%d}"
        )
    return source


async def fetch_rate_series(
    series_names: Mapping[int, str] = FRED_RATE_SERIES,
    end_date: Optional[date] = None,
) -> Dict[int, SourceSeries]:
    """
    Fetches and parses every rate series concurrently, one task per series.

    Returns only once every series has been read. The first failure aborts
    the whole fetch and propagates to the caller.

    Returns:
        A dict mapping duration (days) to its parsed SourceSeries.
    """
    end_date = end_date or date.today()
    durations = list(series_names)
    results = await asyncio.gather(*(
        asyncio.to_thread(fetch_and_parse_fred_series, series_names[duration], duration, end_date)
        for duration in durations
    ))
    return dict(zip(durations, results))


class RiskFreeRateTable:
    """
    Risk-free rate for any calendar date and any duration from 1 to 360 days.

    Rows run from `first_date` (the latest of the caller's earliest date and
    the first date of every source series) to `last_date` (today, at
    construction). Rates are continuously compounded Act/365, in the same
    units the source published (percent for FRED).
    """

    def __init__(
        self,
        series: Mapping[int, SourceSeries],
        earliest_date: date,
        today: Optional[date] = None,
        quote_scale: float = RATE_QUOTE_SCALE,
    ):
        """
        Builds the table from already parsed source series.

        Args:
            series: One SourceSeries per duration in days. Durations 1 and 360
                are required.
            earliest_date: Earliest date the caller is interested in.
            today: Last date of the table. Defaults to the current date.
            quote_scale: 1.0 applies the conversion to the published value; 100.0
                evaluates it on percent quotes divided by 100 and rescales.
        """
        started = time.perf_counter()
        today = as_date(today) if today else date.today()
        earliest_date = check_earliest_date(earliest_date, today)

        self.first_date = resolve_first_date(earliest_date, series.values())
        self.last_date = today
        logger.info(f"Starting date for risk free rate table will be: {self.first_date:%Y-%m-%d}")
        logger.info(f"Ending date for risk free rate table will be: {self.last_date:%Y-%m-%d}")

        rates = build_rate_grid(series, self.first_date, self.last_date)
        convert_day_count(rates, quote_scale)
        rates.setflags(write=False)
        self._rates = rates

        logger.info(
            f"Risk free rate table built: {self.num_rows} days x {MAX_DURATION_DAYS} durations "
            f"in {time.perf_counter() - started:.3f}s"
        )

    @classmethod
    async def load(
        cls,
        earliest_date: date,
        today: Optional[date] = None,
        series_names: Mapping[int, str] = FRED_RATE_SERIES,
    ) -> "RiskFreeRateTable":
        """Fetches the FRED series and builds the table from them."""
        today = as_date(today) if today else date.today()
        # Fail before touching the network if the request can never succeed.
        check_earliest_date(earliest_date, today)
        series = await fetch_rate_series(series_names, end_date=today)
        table = cls(series, earliest_date, today=today)
        # The raw series are large for multi-decade daily data and no longer needed.
        series.clear()
        logger.debug("Released raw FRED series")
        return table

    @classmethod
    def from_fred(cls, earliest_date: date, today: Optional[date] = None) -> "RiskFreeRateTable":
        """Synchronous wrapper around `load` for callers without an event loop."""
        return asyncio.run(cls.load(earliest_date, today=today))

    @property
    def num_rows(self) -> int:
        return self._rates.shape[0]

    def risk_free_rate(self, requested_date: date, duration: int) -> float:
        """
        Returns the risk-free rate for a loan of `duration` days starting on
        `requested_date`.

        Raises:
            OutOfRange: the date is outside [first_date, last_date] or the
                duration is outside 1..360.
        """
        requested_date = check_date_in_range(requested_date, self.first_date, self.last_date)
        duration = check_duration(duration)
        return float(self._rates[date_index(requested_date, self.first_date), duration])

    def to_frame(self) -> pd.DataFrame:
        """The whole table as a DataFrame: one row per date, one column per duration."""
        index = pd.date_range(self.first_date, self.last_date, freq="D", name="date")
        columns = pd.RangeIndex(MIN_DURATION_DAYS, MAX_DURATION_DAYS + 1, name="duration")
        return pd.DataFrame(np.array(self._rates[:, MIN_DURATION_DAYS:]), index=index, columns=columns)
