import httpx
import logging
from typing import Optional, Dict

# Default timeout configuration (in seconds)
DEFAULT_TIMEOUT = 10.0
DEFAULT_CONNECT_TIMEOUT = 5.0

# Browser-like request headers; callers may override or extend them
DEFAULT_HEADERS: Dict[str, str] = {
    "User-Agent": "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 (KHTML, like Gecko) Chrome/119.0.0.0 Safari/537.36",
    "Accept": "text/html,application/xhtml+xml,application/xml;q=0.9,image/webp,*/*;q=0.8",
    "Connection": "keep-alive",
}

logger = logging.getLogger(__name__)


async def fetch_url(
    url: str,
    timeout: Optional[float] = None,
    connect_timeout: Optional[float] = None,
    headers: Optional[Dict[str, str]] = None,
):
    """
    Fetches the content of a URL with configurable timeouts.

    Args:
        url: The URL to fetch
        timeout: Total request timeout in seconds (default: 10s)
        connect_timeout: Connection timeout in seconds (default: 5s)
        headers: Optional dictionary of HTTP headers

    Returns:
        httpx.Response object
    """
    logger.debug(f"HTTP GET {url} (timeout: {timeout or DEFAULT_TIMEOUT}s)")

    timeout_config = httpx.Timeout(
        timeout=timeout or DEFAULT_TIMEOUT,
        connect=connect_timeout or DEFAULT_CONNECT_TIMEOUT
    )

    try:
        async with httpx.AsyncClient(timeout=timeout_config, follow_redirects=True) as client:
            response = await client.get(url, headers=headers)
            logger.debug(f"HTTP {response.status_code} {url} ({len(response.content)} bytes)")
            # Don't raise for status - callers decide what an error code means
            return response
    except httpx.TimeoutException as e:
        logger.warning(f"HTTP timeout for {url}: {e}")
        raise
    except httpx.RequestError as e:
        logger.warning(f"HTTP request error for {url}: {e}")
        raise


class ReadmeFetcher:
    """Fetches auxiliary plugin files, translating every failure to ``None``.

    A fresh client is opened per request, so one instance can be shared by
    concurrent plugin checks.
    """

    def __init__(
        self,
        headers: Optional[Dict[str, str]] = None,
        timeout: Optional[float] = None,
        connect_timeout: Optional[float] = None,
    ):
        self.headers = dict(DEFAULT_HEADERS if headers is None else headers)
        self.timeout = timeout
        self.connect_timeout = connect_timeout

    async def fetch(self, url: str) -> Optional[str]:
        try:
            response = await fetch_url(
                url,
                timeout=self.timeout,
                connect_timeout=self.connect_timeout,
                headers=self.headers,
            )
        except (httpx.HTTPError, httpx.InvalidURL) as e:
            logger.debug(f"Readme unavailable at {url}: {e}")
            return None

        if not response.is_success:
            logger.debug(f"Readme unavailable at {url}: HTTP {response.status_code}")
            return None
        return response.text
