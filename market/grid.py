"""
Dense date-indexed grids built from sparse, irregular source series.

A grid has one row for EVERY calendar day (weekends and holidays included)
between a first and a last date. Row `i` holds the data for
`first_date + i days`. The rate grid additionally has one column per loan
duration 0..360 (column 0 is never used); the dividend grid is one dimensional.

Construction is a strict pipeline, each step needing the previous one's output:

1.  Allocate the grid, every cell NaN ("unknown").
2.  Scatter each source series into its column and fill that column's gaps:
    leading and trailing gaps are held flat at the nearest known value,
    interior gaps are linearly interpolated between the surrounding values.
3.  (rates) Fill the durations no source series covers by interpolating
    across each row, anchored on the source durations.
4.  (rates) Convert every cell from a simple Act/360 rate into a continuously
    compounded Act/365 rate.

NaN never leaves this module: the builders either return fully populated grids
or raise.
"""

import logging
from datetime import date, datetime
from typing import Iterable, Mapping, Optional, Tuple

import numpy as np
import pandas as pd
from scipy.interpolate import interp1d

from config import EARLIEST_ALLOWED_DATE, MAX_DURATION_DAYS, MIN_DURATION_DAYS
from market.errors import (
    AllDataMissing,
    GridConstructionError,
    InvalidConstructionArgument,
    OutOfRange,
)
from utils.parsing import SourceSeries

logger = logging.getLogger(__name__)

NUM_DURATION_COLUMNS = MAX_DURATION_DAYS + 1


# --- Date / index arithmetic ---

def as_date(value) -> date:
    """Normalizes a date, datetime or pandas Timestamp to a calendar date."""
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    raise TypeError(f"Expected a date, got {type(value).__name__}")


def date_index(requested_date: date, first_date: date) -> int:
    """Row of `requested_date` in a grid starting at `first_date`."""
    return (as_date(requested_date) - first_date).days


def check_earliest_date(earliest_date: date, today: date) -> date:
    """
    Validates the earliest date a caller wants the table to start at.

    Raises:
        InvalidConstructionArgument: the date precedes EARLIEST_ALLOWED_DATE
            or is after today.
    """
    earliest_date = as_date(earliest_date)
    if earliest_date < EARLIEST_ALLOWED_DATE:
        raise InvalidConstructionArgument(
            f"earliest date ({earliest_date}) is before {EARLIEST_ALLOWED_DATE}"
        )
    if earliest_date > today:
        raise InvalidConstructionArgument(
            f"earliest date ({earliest_date}) is after today ({today})"
        )
    return earliest_date


def check_duration(duration: int) -> int:
    if isinstance(duration, bool) or not isinstance(duration, (int, np.integer)):
        raise OutOfRange(f"duration must be an integer number of days, not {duration!r}")
    if not MIN_DURATION_DAYS <= duration <= MAX_DURATION_DAYS:
        raise OutOfRange(
            f"duration must be between {MIN_DURATION_DAYS} and {MAX_DURATION_DAYS}, not {duration}"
        )
    return int(duration)


def check_date_in_range(requested_date, first_date: date, last_date: date) -> date:
    requested_date = as_date(requested_date)
    if requested_date < first_date:
        raise OutOfRange(
            f"requested date ({requested_date}) is before earliest available ({first_date})"
        )
    if requested_date > last_date:
        raise OutOfRange(
            f"requested date ({requested_date}) is after latest available ({last_date})"
        )
    return requested_date


def resolve_first_date(earliest_date: date, series: Iterable[SourceSeries]) -> date:
    """
    Latest first date over the caller's earliest date and every series.

    The table must not claim data earlier than any contributing series starts.
    """
    first_date = earliest_date
    for source in series:
        if source.first_date is None:
            raise AllDataMissing(source.name)
        if source.first_date > first_date:
            first_date = source.first_date
    return first_date


# --- Grid Allocator ---

def allocate_grid(first_date: date, last_date: date, num_columns: Optional[int] = None) -> np.ndarray:
    """
    Allocates a NaN filled grid with one row per calendar day in
    [first_date, last_date]. One dimensional when `num_columns` is None.

    Raises:
        GridConstructionError: last_date is before first_date.
    """
    num_rows = (last_date - first_date).days + 1
    if num_rows <= 0:
        raise GridConstructionError(
            f"Cannot allocate a grid from {first_date} to {last_date}: {num_rows} rows"
        )
    shape = num_rows if num_columns is None else (num_rows, num_columns)
    return np.full(shape, np.nan, dtype="float64")


# --- Column Interpolator ---

def scatter_observations(
    column: np.ndarray,
    observations: pd.Series,
    first_date: date,
    last_date: date,
) -> int:
    """
    Writes the known observations dated within [first_date, last_date] into
    `column` at their date index. Observations outside the range are dropped,
    not clamped. Returns the number of values written.
    """
    start, end = pd.Timestamp(first_date), pd.Timestamp(last_date)
    in_range = observations[(observations.index >= start) & (observations.index <= end)].dropna()
    rows = (in_range.index - start).days.to_numpy()
    column[rows] = in_range.to_numpy(dtype="float64")
    return len(rows)


def fill_gaps(values: np.ndarray, series_name: str) -> np.ndarray:
    """
    Replaces every NaN in the 1-D array `values`, in place.

    Rows before the first known value take that value, rows after the last
    known value take that value, and each interior run of NaN's between known
    values at i and j becomes
        values[k] = values[i] + (k - i) / (j - i) * (values[j] - values[i])

    Raises:
        AllDataMissing: `values` has no known value to anchor on.
    """
    known = np.flatnonzero(~np.isnan(values))
    if known.size == 0:
        raise AllDataMissing(series_name)

    first_known, last_known = known[0], known[-1]
    values[:first_known] = values[first_known]
    values[last_known + 1:] = values[last_known]

    gaps = np.flatnonzero(np.isnan(values))
    if gaps.size:
        line = interp1d(known, values[known], kind="linear", assume_sorted=True)
        values[gaps] = line(gaps)
    return values


def interpolate_column(
    grid: np.ndarray,
    column: int,
    source: SourceSeries,
    first_date: date,
    last_date: date,
) -> None:
    """Scatters one rate series into grid[:, column] and fills its gaps."""
    written = scatter_observations(grid[:, column], source.observations, first_date, last_date)
    logger.debug(f"{source.name}: {written} observations copied into duration {column}")
    fill_gaps(grid[:, column], source.name)


# --- Row Interpolator ---

def interpolate_rows(grid: np.ndarray, anchor_durations: Iterable[int]) -> None:
    """
    Fills the durations with no source series by interpolating across every
    row, using the (already complete) source duration columns as anchors.

    Raises:
        GridConstructionError: durations MIN_DURATION_DAYS and MAX_DURATION_DAYS
            are not both complete anchor columns.
    """
    anchors = np.array(sorted(set(anchor_durations)), dtype=int)
    if anchors.size == 0 or anchors[0] != MIN_DURATION_DAYS or anchors[-1] != MAX_DURATION_DAYS:
        raise GridConstructionError(
            f"Duration interpolation needs anchors at {MIN_DURATION_DAYS} and "
            f"{MAX_DURATION_DAYS} days, got {anchors.tolist()}"
        )
    anchor_values = grid[:, anchors]
    if np.isnan(anchor_values).any():
        raise GridConstructionError("Duration anchor columns still contain unknown values")

    targets = np.setdiff1d(np.arange(MIN_DURATION_DAYS, MAX_DURATION_DAYS + 1), anchors)
    if targets.size == 0:
        return
    surface = interp1d(anchors, anchor_values, kind="linear", axis=1, assume_sorted=True)
    grid[:, targets] = surface(targets)


# --- Day-Count Converter ---

def convert_day_count(grid: np.ndarray, quote_scale: float = 1.0) -> None:
    """
    Converts every cell for durations 1..360, in place, from a simple Act/360
    rate r into the continuously compounded Act/365 rate
        r' = (360 / duration) * ln(1 + r * duration / 365)

    The formula is applied to r / quote_scale and the result multiplied back,
    so percent quotes (scale 100) stay in percent.

    Raises:
        GridConstructionError: the conversion produced a non-finite value.
    """
    durations = np.arange(MIN_DURATION_DAYS, MAX_DURATION_DAYS + 1, dtype="float64")
    rates = grid[:, MIN_DURATION_DAYS:] / quote_scale
    with np.errstate(invalid="ignore", divide="ignore"):
        converted = (360.0 / durations) * np.log(1.0 + rates * durations / 365.0)
    if not np.isfinite(converted).all():
        raise GridConstructionError("Day count conversion produced non-finite rates")
    grid[:, MIN_DURATION_DAYS:] = converted * quote_scale


# --- Builders ---

def build_rate_grid(
    series: Mapping[int, SourceSeries],
    first_date: date,
    last_date: date,
) -> np.ndarray:
    """
    Builds the complete (not yet day count converted) rate grid from one
    source series per duration.

    Returns:
        An array of shape (num_rows, 361). Column 0 is NaN, every other cell
        holds a finite rate in the units the series were published in.
    """
    grid = allocate_grid(first_date, last_date, NUM_DURATION_COLUMNS)
    for duration, source in series.items():
        if not MIN_DURATION_DAYS <= duration <= MAX_DURATION_DAYS:
            raise GridConstructionError(f"Series {source.name} has invalid duration {duration}")
        if source.duration is not None and source.duration != duration:
            raise GridConstructionError(
                f"Series {source.name} is a {source.duration} day series but was given for duration {duration}"
            )
        interpolate_column(grid, duration, source, first_date, last_date)
    interpolate_rows(grid, series.keys())
    return grid


def build_dividend_grid(
    source: SourceSeries,
    earliest_date: date,
    last_date: date,
) -> Tuple[date, np.ndarray]:
    """
    Builds the dividend yield grid, which starts at the first known
    observation on or after `earliest_date` and ends at `last_date`.

    Raises:
        AllDataMissing: no known observation in [earliest_date, last_date].
    """
    start, end = pd.Timestamp(earliest_date), pd.Timestamp(last_date)
    observations = source.observations
    retained = observations[(observations.index >= start) & (observations.index <= end)].dropna()
    if retained.empty:
        raise AllDataMissing(source.name)

    first_date = retained.index[0].date()
    grid = allocate_grid(first_date, last_date)
    scatter_observations(grid, retained, first_date, last_date)
    fill_gaps(grid, source.name)
    return first_date, grid
