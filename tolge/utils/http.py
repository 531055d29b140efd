"""
HTTP utilities for Tolge.
"""
import asyncio
import logging
from typing import Callable, Dict, Optional, Tuple

import aiohttp
import async_timeout
import backoff

from tolge.core.errors import ChallengePageError, FetchError

# Configure logging
logger = logging.getLogger(__name__)

REQUEST_TIMEOUT = 60  # seconds
MAX_ATTEMPTS = 3
RETRY_DELAY = 2.0  # seconds, fixed between challenge retries

DEFAULT_USER_AGENT = (
    'Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 '
    '(KHTML, like Gecko) Chrome/124.0.0.0 Safari/537.36'
)

CHALLENGE_STATUSES = {403, 503}
CHALLENGE_MARKERS = (
    'checking your browser',
    'just a moment',
    'cf-browser-verification',
    'cf-challenge',
    'enable javascript and cookies',
    'attention required',
    'ddos protection by',
)

ChallengeDetector = Callable[[int, str], bool]


def browser_headers(user_agent: str = DEFAULT_USER_AGENT) -> Dict[str, str]:
    """
    Build a request header set resembling a desktop browser.

    Args:
        user_agent: User-Agent string to send

    Returns:
        Header dictionary
    """
    return {
        'User-Agent': user_agent,
        'Accept': 'text/html,application/xhtml+xml,application/xml;q=0.9,image/avif,image/webp,*/*;q=0.8',
        'Accept-Language': 'en-US,en;q=0.9',
        'Accept-Encoding': 'gzip, deflate',
        'Cache-Control': 'no-cache',
        'Pragma': 'no-cache',
        'Upgrade-Insecure-Requests': '1',
        'Sec-Fetch-Dest': 'document',
        'Sec-Fetch-Mode': 'navigate',
        'Sec-Fetch-Site': 'none',
        'Sec-Fetch-User': '?1',
        'DNT': '1',
        'Connection': 'keep-alive',
    }


def is_challenge_page(status: int, body: str) -> bool:
    """
    Default bot-challenge detector.

    Args:
        status: HTTP status code
        body: Response body

    Returns:
        True for 403/503 responses that carry a known challenge phrase
    """
    if status not in CHALLENGE_STATUSES:
        return False
    lowered = body[:20000].lower()
    return any(marker in lowered for marker in CHALLENGE_MARKERS)


def never_challenge(status: int, body: str) -> bool:
    """Detector that disables challenge retries."""
    return False


class PageFetcher:
    """
    Downloads article pages with a browser-like request signature.

    Challenge pages are retried a fixed number of times with a fixed delay;
    any other non-success status fails at once.
    """
    def __init__(
        self,
        timeout: float = REQUEST_TIMEOUT,
        max_attempts: int = MAX_ATTEMPTS,
        retry_delay: float = RETRY_DELAY,
        user_agent: str = DEFAULT_USER_AGENT,
        challenge_detector: ChallengeDetector = is_challenge_page,
    ):
        self.timeout = timeout
        self.max_attempts = max_attempts
        self.retry_delay = retry_delay
        self.headers = browser_headers(user_agent)
        self.challenge_detector = challenge_detector
        self._session: Optional[aiohttp.ClientSession] = None

    @property
    def session(self) -> aiohttp.ClientSession:
        """
        Lazy initialization of aiohttp session.

        Returns:
            aiohttp.ClientSession: The HTTP session
        """
        if self._session is None or self._session.closed:
            self._session = aiohttp.ClientSession(headers=self.headers)
        return self._session

    async def close(self):
        """Close aiohttp session."""
        if self._session is not None:
            await self._session.close()
            self._session = None

    async def __aenter__(self):
        return self

    async def __aexit__(self, exc_type, exc, tb):
        await self.close()

    async def _request(self, url: str) -> Tuple[int, str]:
        """
        Perform a single GET request.

        Args:
            url: Page URL

        Returns:
            Tuple of (status code, body text)
        """
        async with async_timeout.timeout(self.timeout):
            async with self.session.get(url, allow_redirects=True) as response:
                body = await response.text(errors='replace')
                return response.status, body

    async def _fetch_once(self, url: str) -> str:
        try:
            status, body = await self._request(url)
        except (aiohttp.ClientError, asyncio.TimeoutError) as e:
            raise FetchError(url, f"Network error fetching {url}: {str(e) or type(e).__name__}") from e

        if self.challenge_detector(status, body):
            logger.warning(f"Challenge page from {url} (status {status})")
            raise ChallengePageError(url, f"Site returned a bot-challenge page (status {status})", status)

        if not 200 <= status < 300:
            raise FetchError(url, f"Failed to fetch {url}: HTTP {status}", status)

        return body

    async def fetch(self, url: str) -> str:
        """
        Fetch a page, retrying while the site serves a challenge page.

        Args:
            url: Page URL

        Returns:
            The HTML body

        Raises:
            FetchError: on network failure, non-success status, or when the
                challenge persists for all attempts (ChallengePageError)
        """
        retrying = backoff.on_exception(
            backoff.constant,
            ChallengePageError,
            max_tries=self.max_attempts,
            interval=self.retry_delay,
            jitter=None,
            logger=logger,
        )(self._fetch_once)
        return await retrying(url)


class RenderingProxyFetcher(PageFetcher):
    """
    Fetches pages through a headless-browser rendering service.

    Used for sites that only serve content after running their challenge
    scripts in a real browser.
    """
    def __init__(
        self,
        token: str,
        endpoint: str = 'https://chrome.browserless.io/content',
        wait_ms: int = 3000,
        **kwargs,
    ):
        super().__init__(**kwargs)
        self.token = token
        self.endpoint = endpoint
        self.wait_ms = wait_ms

    async def _request(self, url: str) -> Tuple[int, str]:
        payload = {'url': url, 'token': self.token, 'waitFor': self.wait_ms}
        async with async_timeout.timeout(self.timeout):
            async with self.session.post(
                self.endpoint,
                json=payload,
                headers={'Cache-Control': 'no-cache', 'Content-Type': 'application/json'},
            ) as response:
                body = await response.text(errors='replace')
                if response.status >= 400:
                    logger.error(f"Rendering proxy failed for {url}: {response.status}")
                return response.status, body
