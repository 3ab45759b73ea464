import logging
from typing import Optional

import requests

from config import HTTP_TIMEOUT_SECONDS, USER_AGENT
from market.errors import SeriesFetchError

log = logging.getLogger(__name__)


def _default_headers() -> dict:
    return {
        "Accept": "text/csv",
        "User-Agent": USER_AGENT,
    }


def fetch_series_text(
    url: str,
    series_name: str,
    params: Optional[dict] = None,
    timeout: float = HTTP_TIMEOUT_SECONDS,
) -> str:
    """Fetches the raw CSV text of one source series.

    Any network or HTTP status failure is reported as a SeriesFetchError for
    `series_name`, chained to the underlying requests exception.

    Raises:
        SeriesFetchError: the request failed or returned a non 2xx status.
    """
    log.info(f"Reading {series_name}")
    try:
        response = requests.get(url, params=params, headers=_default_headers(), timeout=timeout)
        response.raise_for_status()
    except requests.RequestException as e:
        log.error(f"Failed to fetch {series_name} from {url}. Error: {e}")
        raise SeriesFetchError(series_name, url, str(e)) from e
    return response.text
