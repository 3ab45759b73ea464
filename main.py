import asyncio
import logging
from datetime import date

import config

from market.state import MarketRates

# Set up the root logger according to the configuration.
# This allows for consistent logging across all modules.
logging.basicConfig(level=config.LOG_LEVEL, format=config.LOG_FORMAT)
logger = logging.getLogger(__name__)


async def main():
    """
    Builds the risk-free rate and dividend yield tables and logs a few lookups.

    This function is responsible for:
    1. Fetching every FRED rate series and the dividend yield series concurrently.
    2. Building both dense, read-only tables.
    3. Reading sample rates for several durations and sample dividend yields.

    Any fetch, parse or construction failure propagates and ends the run.
    """
    today = date.today()
    market_rates = await MarketRates.load(
        config.RATES_EARLIEST_DATE,
        config.DIVIDENDS_EARLIEST_DATE,
        today=today,
    )
    rates, dividends = market_rates.rates, market_rates.dividends

    for duration in config.SAMPLE_DURATIONS:
        rate = rates.risk_free_rate(config.SAMPLE_DATE, duration)
        logger.info(f"Risk free rate on {config.SAMPLE_DATE} for {duration} days: {rate:.4f}%")
    logger.info(f"Risk free rate today for 200 days: {rates.risk_free_rate(today, 200):.4f}%")

    logger.info(f"Dividend yield on {config.SAMPLE_DATE}: {dividends.dividend_yield(config.SAMPLE_DATE):.4f}%")
    logger.info(f"Dividend yield today: {dividends.dividend_yield(today):.4f}%")


if __name__ == "__main__":
    # asyncio.run() starts the event loop and runs the main() coroutine until it completes.
    asyncio.run(main())
