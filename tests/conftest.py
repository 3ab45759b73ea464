from datetime import date

import numpy as np
import pandas as pd
import pytest

from utils.parsing import SourceSeries


def _make_series(name, points, duration=None):
    """Builds a SourceSeries from (date, value-or-None) pairs."""
    index = pd.DatetimeIndex([pd.Timestamp(d) for d, _ in points])
    values = [np.nan if v is None else float(v) for _, v in points]
    observations = pd.Series(values, index=index, dtype="float64", name=name).sort_index()
    return SourceSeries(name, observations, duration)


@pytest.fixture
def make_series():
    return _make_series


@pytest.fixture
def jan():
    """date(2021, 1, day) shorthand."""
    return lambda day: date(2021, 1, day)


@pytest.fixture
def three_rate_series(jan):
    """Durations 1, 30 and 360 over 2021-01-01 .. 2021-01-10."""
    return {
        1: _make_series("ON", [(jan(1), 1.0), (jan(10), 1.0)], duration=1),
        30: _make_series("1M", [(jan(1), None), (jan(5), 1.2)], duration=30),
        360: _make_series("12M", [(jan(1), 1.5), (jan(10), 1.6)], duration=360),
    }


@pytest.fixture
def fred_csv():
    """Renders (iso-date, value-text) rows as a two column CSV download."""
    def _render(series_name, rows):
        lines = [f"observation_date,{series_name}"] + [f"{d},{v}" for d, v in rows]
        return "\n".join(lines) + "\n"
    return _render
