import asyncio
from datetime import date

import pytest

import market.dividends as dividends_module
import market.risk_free_rate as risk_free_rate_module
from market.dividends import DividendYieldTable
from market.errors import OutOfRange, SeriesFetchError
from market.risk_free_rate import RiskFreeRateTable
from market.state import MarketRates


@pytest.fixture
def market_rates(three_rate_series, make_series, jan):
    rates = RiskFreeRateTable(three_rate_series, jan(1), today=jan(10))
    dividends = DividendYieldTable(
        make_series("DIV", [(date(2020, 12, 1), 1.6), (jan(1), 1.5)]),
        date(2020, 12, 1),
        today=jan(10),
    )
    return MarketRates(rates, dividends)


class TestPricingInputs:
    """Rate and yield for an option expiry."""

    def test_matches_table_lookups(self, market_rates, jan):
        rate, dividend_yield = market_rates.pricing_inputs(jan(5), date(2021, 2, 4))
        assert rate == market_rates.rates.risk_free_rate(jan(5), 30)
        assert dividend_yield == market_rates.dividends.dividend_yield(jan(5))
        assert dividend_yield == 1.5

    def test_expiry_today_is_out_of_range(self, market_rates, jan):
        with pytest.raises(OutOfRange):
            market_rates.pricing_inputs(jan(5), jan(5))

    def test_expiry_beyond_360_days_is_out_of_range(self, market_rates, jan):
        with pytest.raises(OutOfRange):
            market_rates.pricing_inputs(jan(5), date(2022, 1, 1))

    def test_date_outside_rate_table(self, market_rates):
        with pytest.raises(OutOfRange):
            market_rates.pricing_inputs(date(2020, 12, 15), date(2021, 1, 15))


class TestLoad:
    """Concurrent construction of both tables."""

    def test_load_builds_both_tables(self, monkeypatch, fred_csv, jan):
        monkeypatch.setattr(
            risk_free_rate_module,
            "fetch_series_text",
            lambda url, series_name, params=None, timeout=None: fred_csv(series_name, [("2021-01-04", "0.10")]),
        )
        monkeypatch.setattr(
            dividends_module,
            "fetch_series_text",
            lambda url, series_name, params=None, timeout=None: "Date,Value\n2021-01-01,1.5\n",
        )
        market_rates = asyncio.run(MarketRates.load(jan(1), jan(1), today=jan(10)))
        assert market_rates.rates.first_date == jan(4)
        assert market_rates.dividends.first_date == jan(1)
        assert market_rates.dividends.dividend_yield(jan(10)) == 1.5

    def test_any_failure_propagates(self, monkeypatch, fred_csv, jan):
        monkeypatch.setattr(
            risk_free_rate_module,
            "fetch_series_text",
            lambda url, series_name, params=None, timeout=None: fred_csv(series_name, [("2021-01-04", "0.10")]),
        )

        def fail(url, series_name, params=None, timeout=None):
            raise SeriesFetchError(series_name, url, "timed out")

        monkeypatch.setattr(dividends_module, "fetch_series_text", fail)
        with pytest.raises(SeriesFetchError):
            asyncio.run(MarketRates.load(jan(1), jan(1), today=jan(10)))

    def test_failure_cancels_the_other_load(self, monkeypatch, jan):
        cancelled = []

        async def never_finishes(earliest_date, today=None):
            try:
                await asyncio.Event().wait()
            except asyncio.CancelledError:
                cancelled.append(earliest_date)
                raise

        async def fails(earliest_date, today=None):
            await asyncio.sleep(0)
            raise SeriesFetchError("DIV", "https://data.nasdaq.com", "timed out")

        monkeypatch.setattr(RiskFreeRateTable, "load", never_finishes)
        monkeypatch.setattr(DividendYieldTable, "load", fails)

        async def run():
            with pytest.raises(SeriesFetchError):
                await MarketRates.load(jan(1), jan(2), today=jan(10))
            # still inside the loop: asyncio.run has not cleaned up yet
            await asyncio.sleep(0)
            await asyncio.sleep(0)
            assert cancelled == [jan(1)]

        asyncio.run(run())
