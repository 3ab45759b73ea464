# rate_tables/config.py

import os
from datetime import date
from dotenv import load_dotenv

# --- Load Environment Variables ---
load_dotenv(override=True)


# --- FRED Interest Rate Series ---
# Public fredgraph CSV endpoint, no API key required.
FRED_GRAPH_URL = "https://fred.stlouisfed.org/graph/fredgraph.csv"
# First observation date requested from FRED. The table itself starts later.
FRED_OBSERVATION_START = "1985-01-01"
# Duration of the money-market instrument in days -> FRED series id.
# Durations 1 and 360 must be present: they anchor the duration-axis interpolation.
FRED_RATE_SERIES = {
    1: "USDONTD156N",
    7: "USD1WKD156N",
    30: "USD1MTD156N",
    60: "USD2MTD156N",
    90: "USD3MTD156N",
    180: "USD6MTD156N",
    360: "USD12MD156N",
}
# Cell values FRED uses for "no observation that day".
FRED_MISSING_VALUES = (".", "")
# The day-count formula applies to rates as published (FRED: percent).
# Set to 100.0 to evaluate it on decimal rates r / 100 and rescale to percent.
RATE_QUOTE_SCALE = 1.0


# --- S&P 500 Dividend Yield ---
DIVIDEND_YIELD_URL = "https://data.nasdaq.com/api/v3/datasets/MULTPL/SP500_DIV_YIELD_MONTH.csv"
DIVIDEND_SERIES_NAME = "MULTPL/SP500_DIV_YIELD_MONTH"
NASDAQ_DATA_LINK_API_KEY = os.getenv("NASDAQ_DATA_LINK_API_KEY")


# --- HTTP ---
HTTP_TIMEOUT_SECONDS = float(os.getenv("HTTP_TIMEOUT_SECONDS", "30"))
USER_AGENT = "FRED-RATE-TABLES"


# --- Table Construction ---
# Callers may not ask for a table starting before this date.
EARLIEST_ALLOWED_DATE = date(2000, 1, 1)
# Durations (in days) answerable by the risk free rate table.
MIN_DURATION_DAYS = 1
MAX_DURATION_DAYS = 360


# --- Demo Run (main.py) ---
RATES_EARLIEST_DATE = date.fromisoformat(os.getenv("RATES_EARLIEST_DATE", "2000-01-01"))
DIVIDENDS_EARLIEST_DATE = date.fromisoformat(os.getenv("DIVIDENDS_EARLIEST_DATE", "2010-01-01"))
SAMPLE_DATE = date(2020, 6, 15)
SAMPLE_DURATIONS = (1, 9, 47, 200, 360)


# --- Logging Configuration ---
LOG_FORMAT = "%(asctime)s - %(levelname)s - %(name)s - %(message)s"
LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO")
