import time
from collections.abc import Callable

import httpx

from venuewatch.fetching.exceptions import FetchError
from venuewatch.logging.logger import Log
from venuewatch.throttling.rate_limiter import RateLimiter


class HttpClient:
    """Polite page downloader: shared rate limiter, per-request timeout, retries."""

    def __init__(
        self,
        *,
        rate_limiter: RateLimiter,
        timeout_seconds: float,
        retries: int,
        user_agent: str,
        transport: httpx.BaseTransport | None = None,
        sleep: Callable[[float], None] = time.sleep,
    ) -> None:
        self._rate_limiter = rate_limiter
        self._retries = retries
        self._sleep = sleep
        self._client = httpx.Client(
            timeout=timeout_seconds,
            follow_redirects=True,
            headers={"User-Agent": user_agent},
            transport=transport,
        )

    def get(self, url: str) -> bytes:
        """Return the response body for url.

        Raises:
            FetchError: after the final attempt fails.
        """
        last_error = ""
        for attempt in range(self._retries + 1):
            self._rate_limiter.wait()
            try:
                response = self._client.get(url)
            except httpx.TimeoutException:
                last_error = "Request timeout"
            except httpx.HTTPError as exc:
                last_error = f"{type(exc).__name__}: {exc}"
            else:
                if response.is_success:
                    return response.content
                last_error = f"HTTP {response.status_code}"
                if response.status_code < 500 and response.status_code != 429:
                    break
            if attempt < self._retries:
                Log.debug(f"Retrying {url} after error: {last_error}")
                self._sleep(1.0 * (attempt + 1))
        raise FetchError(f"{url}: {last_error}")

    def close(self) -> None:
        self._client.close()
