"""HTTP fetching for documentation collaborators.

Wraps an ``aiohttp`` session with a request timeout and exponential backoff
for transient failures, so a slow upstream surfaces as a ``FetchError``
instead of stalling the request loop.
"""

import asyncio
import logging
import random
from typing import Any, Dict, Optional

import aiohttp

from config import HttpConfig
from .errors import FetchError, NotFoundError

logger = logging.getLogger(__name__)

RETRYABLE_STATUS_CODES = {408, 429, 500, 502, 503, 504}


class HttpFetcher:
    """Asynchronous HTTP client with timeout and retry handling."""

    def __init__(self,
                 timeout: float = 20.0,
                 max_retries: int = 2,
                 retry_delay: float = 0.5,
                 max_retry_delay: float = 8.0,
                 user_agent: str = "rust-doc-mcp/0.1.0"):
        """Initialize fetcher.

        Args:
            timeout: Total request timeout in seconds
            max_retries: Maximum number of retry attempts
            retry_delay: Base delay between retries (seconds)
            max_retry_delay: Maximum delay between retries (seconds)
            user_agent: User agent string
        """
        self.timeout = timeout
        self.max_retries = max_retries
        self.retry_delay = retry_delay
        self.max_retry_delay = max_retry_delay
        self.user_agent = user_agent
        self.session: Optional[aiohttp.ClientSession] = None

    @classmethod
    def from_config(cls, config: HttpConfig) -> 'HttpFetcher':
        return cls(
            timeout=config.timeout,
            max_retries=config.max_retries,
            retry_delay=config.retry_delay,
            user_agent=config.user_agent
        )

    async def __aenter__(self):
        await self._ensure_session()
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        await self.close()

    async def _ensure_session(self) -> aiohttp.ClientSession:
        if self.session is None or self.session.closed:
            self.session = aiohttp.ClientSession(
                timeout=aiohttp.ClientTimeout(total=self.timeout),
                headers={'User-Agent': self.user_agent}
            )
        return self.session

    async def close(self):
        """Close the underlying session."""
        if self.session:
            await self.session.close()
            self.session = None

    def _calculate_retry_delay(self, attempt: int) -> float:
        """Calculate exponential backoff delay with jitter."""
        base_delay = self.retry_delay * (2 ** attempt)
        jitter = random.uniform(0.1, 0.3) * base_delay
        return min(base_delay + jitter, self.max_retry_delay)

    def _is_retryable_error(self, exception: Optional[Exception], status_code: Optional[int] = None) -> bool:
        """Determine if an error is retryable."""
        if status_code is not None and status_code in RETRYABLE_STATUS_CODES:
            return True

        if isinstance(exception, (asyncio.TimeoutError, aiohttp.ServerTimeoutError)):
            return True

        # Connection problems are retried; client errors like 404 are not
        return isinstance(exception, (aiohttp.ClientConnectionError,
                                      aiohttp.ServerDisconnectedError))

    async def _request(self, url: str, as_json: bool,
                       headers: Optional[Dict[str, str]] = None,
                       params: Optional[Dict[str, Any]] = None) -> Any:
        session = await self._ensure_session()
        last_error: Optional[str] = None
        last_status: Optional[int] = None

        for attempt in range(self.max_retries + 1):
            try:
                logger.debug(f"Fetching {url} (attempt {attempt + 1}/{self.max_retries + 1})")
                async with session.get(url, headers=headers, params=params, allow_redirects=True) as response:
                    if response.status == 404:
                        raise NotFoundError(url)

                    if response.status >= 400:
                        last_status = response.status
                        last_error = f"HTTP {response.status}"
                        if self._is_retryable_error(None, response.status) and attempt < self.max_retries:
                            delay = self._calculate_retry_delay(attempt)
                            logger.warning(f"Retryable status {response.status} for {url}, retrying in {delay:.2f}s")
                            await asyncio.sleep(delay)
                            continue
                        break

                    if as_json:
                        return await response.json(content_type=None)
                    return await response.text()

            except (asyncio.TimeoutError, aiohttp.ClientError) as e:
                last_error = str(e) or type(e).__name__
                if attempt < self.max_retries and self._is_retryable_error(e):
                    delay = self._calculate_retry_delay(attempt)
                    logger.warning(f"Error fetching {url}: {last_error}, retrying in {delay:.2f}s")
                    await asyncio.sleep(delay)
                    continue
                break

        raise FetchError(url, last_error or "Unknown error", status=last_status)

    async def get_text(self, url: str, headers: Optional[Dict[str, str]] = None) -> str:
        """GET ``url`` and return the body as text."""
        return await self._request(url, as_json=False, headers=headers)

    async def get_json(self, url: str, headers: Optional[Dict[str, str]] = None,
                       params: Optional[Dict[str, Any]] = None) -> Any:
        """GET ``url`` and return the decoded JSON body."""
        return await self._request(url, as_json=True, headers=headers, params=params)
