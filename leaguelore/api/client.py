"""HTTP client and rate limiter for the Sleeper API.

This module centralizes HTTP concerns for the read-only repository:
- Simple monotonically-timed rate limiting (min interval between calls)
- Resilient requests.Session with retries and backoff for transient errors
- A tiny JSON helper bound to the configured base URL

Retry policy lives here, never in the analytics engine. Failures that survive
the retries surface as ``UpstreamError``.
"""

from __future__ import annotations

import logging
import time
from typing import Any

import requests
from requests.adapters import HTTPAdapter
from urllib3.util.retry import Retry

from leaguelore.constants import DEFAULT_BASE_URL, DEFAULT_MIN_INTERVAL_SEC
from leaguelore.errors import UpstreamError

logger = logging.getLogger(__name__)


class RateLimiter:
    """Wall-clock based rate limiter using a minimum interval between calls.

    Ensures at least ``min_interval_sec`` seconds elapse between consecutive
    ``wait()`` calls.
    """

    def __init__(self, min_interval_sec: float | None = None) -> None:
        self.min_interval = (
            float(min_interval_sec) if min_interval_sec else DEFAULT_MIN_INTERVAL_SEC
        )
        self._last = 0.0

    def wait(self) -> None:
        now = time.monotonic()
        if self._last:
            elapsed = now - self._last
            if elapsed < self.min_interval:
                time.sleep(self.min_interval - elapsed)
        self._last = time.monotonic()


class SleeperClient:
    """Thin wrapper around requests.Session for the Sleeper API.

    - base_url: defaults to https://api.sleeper.com/v1
    - rpm_limit: translated to a minimum interval of 60 / rpm seconds
    - min_interval_ms: explicit minimum interval in milliseconds (wins if larger)

    Only GET + JSON is implemented because analytics only needs reads.
    """

    def __init__(
        self,
        base_url: str | None = None,
        rpm_limit: float | None = None,
        min_interval_ms: float | None = None,
        timeout: float = 20.0,
        session: requests.Session | None = None,
    ) -> None:
        self.base_url = (base_url or DEFAULT_BASE_URL).rstrip("/")
        self.timeout = timeout
        min_interval = None
        if rpm_limit and rpm_limit > 0:
            min_interval = max(min_interval or 0.0, 60.0 / rpm_limit)
        if min_interval_ms and min_interval_ms > 0:
            ms = float(min_interval_ms) / 1000.0
            min_interval = max(min_interval or 0.0, ms)
        self.rate = RateLimiter(min_interval)

        if session is None:
            session = requests.Session()
            # Configure safe-idempotent retries for transient errors
            retry = Retry(
                total=5,
                connect=3,
                read=3,
                backoff_factor=0.5,
                status_forcelist=(408, 429, 500, 502, 503, 504),
                allowed_methods=("GET",),
                raise_on_status=False,
            )
            adapter = HTTPAdapter(max_retries=retry)
            session.mount("http://", adapter)
            session.mount("https://", adapter)
        session.headers.update({"User-Agent": "leaguelore-analytics/1.0"})
        self.session = session

    def get_json(self, path: str) -> Any:
        """GET ``base_url + path`` and return decoded JSON.

        Raises UpstreamError on transport failures and non-2xx responses
        (after retries).
        """
        if not path.startswith("/"):
            path = "/" + path
        self.rate.wait()
        url = self.base_url + path
        logger.debug("GET %s", url)
        try:
            r = self.session.get(url, timeout=self.timeout)
            r.raise_for_status()
        except requests.HTTPError as exc:
            status = exc.response.status_code if exc.response is not None else None
            raise UpstreamError(
                f"Sleeper API returned {status} for {path}", details={"status": status}
            ) from exc
        except requests.RequestException as exc:
            raise UpstreamError(f"Sleeper API request failed for {path}: {exc}") from exc
        try:
            return r.json()
        except ValueError as exc:
            raise UpstreamError(f"Sleeper API returned invalid JSON for {path}") from exc
