"""HTTP utilities for downloading published dataset files."""

from typing import Tuple

import requests
from requests.adapters import HTTPAdapter
from urllib3.util.retry import Retry


def get_http_session(
    total: int = 3,
    backoff: float = 0.5,
    statuses: Tuple[int, ...] = (429, 500, 502, 503, 504),
) -> requests.Session:
    """Create a persistent HTTP session with retries and exponential backoff.

    Transient HTTP errors (429/5xx) are retried; any other non-success status
    is left for the caller to inspect.

    Args:
        total: Max retries for connect/read/status failures (default: 3)
        backoff: Backoff factor - sleep grows as 0.5, 1.0, 2.0, ... (default: 0.5)
        statuses: HTTP status codes that should trigger a retry

    Returns:
        A requests.Session with mounted retry-enabled adapters

    Example:
        >>> session = get_http_session()
        >>> response = session.get("https://example.org/data/gdp_consolidado.csv")
        >>> response.ok
        True
    """
    retry = Retry(
        total=total,
        read=total,
        connect=total,
        backoff_factor=backoff,
        status_forcelist=statuses,
        allowed_methods=frozenset(["GET", "HEAD"]),
        raise_on_status=False,
    )

    sess = requests.Session()
    adapter = HTTPAdapter(max_retries=retry)

    sess.mount("https://", adapter)
    sess.mount("http://", adapter)

    return sess
