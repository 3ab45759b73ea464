from dataclasses import dataclass
from datetime import date
from typing import Iterable, Optional

import numpy as np
import pandas as pd

from market.errors import MalformedSourceData

DATE_FORMAT = "%Y-%m-%d"


@dataclass(frozen=True, eq=False)
class SourceSeries:
    """
    One named source series, as read from a data provider.

    `observations` is a float Series indexed by a sorted DatetimeIndex with
    unique dates. NaN marks a day the provider explicitly reported as missing.
    `duration` is the instrument term in days for rate series, None otherwise.
    """
    name: str
    observations: pd.Series
    duration: Optional[int] = None

    @property
    def first_date(self) -> Optional[date]:
        if self.observations.empty:
            return None
        return self.observations.index[0].date()

    @property
    def last_date(self) -> Optional[date]:
        if self.observations.empty:
            return None
        return self.observations.index[-1].date()


def parse_series(
    text: str,
    series_name: str,
    missing_values: Iterable[str] = (".",),
    duration: Optional[int] = None,
) -> SourceSeries:
    """
    Parses a two column `date,value` CSV blob into a SourceSeries.

    The first line is a header and is skipped, as are blank lines. Dates are
    ISO formatted (YYYY-MM-DD). Values listed in `missing_values` become NaN;
    anything else that is not a finite number is an error.

    Example:
        'DATE,USDONTD156N\\n2021-01-04,0.08\\n2021-01-05,.\\n'
        -> observations {2021-01-04: 0.08, 2021-01-05: NaN}

    Raises:
        MalformedSourceData: for a row with a field count other than 2, an
            unparseable date or an unparseable value. The whole series is
            rejected, there is no partial ingestion.
    """
    missing_values = tuple(missing_values)
    rows = []
    for line in text.splitlines()[1:]:
        line = line.strip()
        if not line:
            continue
        fields = line.split(",")
        if len(fields) != 2:
            raise MalformedSourceData(series_name, line)
        rows.append((line, fields[0].strip(), fields[1].strip()))

    if not rows:
        empty = pd.Series([], index=pd.DatetimeIndex([]), dtype="float64", name=series_name)
        return SourceSeries(series_name, empty, duration)

    raw = pd.DataFrame(rows, columns=["line", "date", "value"])

    dates = pd.to_datetime(raw["date"], format=DATE_FORMAT, errors="coerce")
    bad_dates = dates.isna()
    if bad_dates.any():
        raise MalformedSourceData(series_name, raw.loc[bad_dates, "line"].iloc[0])

    is_missing = raw["value"].isin(missing_values)
    values = pd.to_numeric(raw["value"].where(~is_missing), errors="coerce")
    bad_values = ~is_missing & ~np.isfinite(values)
    if bad_values.any():
        raise MalformedSourceData(series_name, raw.loc[bad_values, "line"].iloc[0])

    observations = pd.Series(
        values.to_numpy(dtype="float64"),
        index=pd.DatetimeIndex(dates),
        name=series_name,
    )
    # Some providers publish newest first, and a repeated date keeps the last value read.
    observations = observations[~observations.index.duplicated(keep="last")].sort_index()
    return SourceSeries(series_name, observations, duration)
