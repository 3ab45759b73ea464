# rate_tables/market/state.py

import asyncio
import logging
from datetime import date
from typing import Optional, Tuple

from .dividends import DividendYieldTable
from .grid import as_date
from .risk_free_rate import RiskFreeRateTable

logger = logging.getLogger(__name__)


class MarketRates:
    """
    The market inputs an option pricing model needs besides prices: the
    risk-free rate term structure and the dividend yield.

    Both tables are built once and are read-only afterwards, so a single
    instance can be shared freely between threads and tasks.
    """

    def __init__(self, rates: RiskFreeRateTable, dividends: DividendYieldTable):
        self.rates = rates
        self.dividends = dividends

    @classmethod
    async def load(
        cls,
        rates_earliest_date: date,
        dividends_earliest_date: date,
        today: Optional[date] = None,
    ) -> "MarketRates":
        """
        Builds the rate and dividend tables concurrently.

        If either load fails the other one is cancelled, the exception
        propagates and no instance is created.
        """
        today = as_date(today) if today else date.today()
        logger.info("Loading risk free rates and dividend yields...")
        tasks = [
            asyncio.create_task(RiskFreeRateTable.load(rates_earliest_date, today=today)),
            asyncio.create_task(DividendYieldTable.load(dividends_earliest_date, today=today)),
        ]
        try:
            rates, dividends = await asyncio.gather(*tasks)
        except BaseException:
            for task in tasks:
                task.cancel()
            raise
        return cls(rates, dividends)

    def pricing_inputs(self, as_of: date, expiry: date) -> Tuple[float, float]:
        """
        Returns (risk_free_rate, dividend_yield) for an option observed on
        `as_of` that expires on `expiry`.

        Raises:
            OutOfRange: `as_of` is not covered by both tables, or the option
                has fewer than 1 or more than 360 days to expiry.
        """
        as_of, expiry = as_date(as_of), as_date(expiry)
        days_to_expiry = (expiry - as_of).days
        risk_free_rate = self.rates.risk_free_rate(as_of, days_to_expiry)
        dividend_yield = self.dividends.dividend_yield(as_of)
        logger.debug(
            f"{as_of}: {days_to_expiry} days to expiry, "
            f"risk free rate {risk_free_rate:.4f}, dividend yield {dividend_yield:.4f}"
        )
        return risk_free_rate, dividend_yield
