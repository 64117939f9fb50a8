"""
URL download sub-routine with its own fixed-delay retry loop.

Used to fetch result files the remote service hands back by URL, and by the
HTTP layer to fetch source images supplied by URL instead of upload.

Each attempt is bounded by the request timeout and a maximum content length;
the body is streamed so an oversized response is aborted as soon as the
limit is crossed.
"""

import asyncio
from dataclasses import dataclass
from typing import Awaitable, Callable, Optional

import httpx
import structlog

from tryon_gateway.config import Settings
from tryon_gateway.inference.exceptions import DownloadError, DownloadExhausted
from tryon_gateway.monitoring.metrics import downloads_total
from tryon_gateway.retry.policy import BackoffPolicy

logger = structlog.get_logger(__name__)

DEFAULT_HEADERS = {
    "Accept": "image/*, application/octet-stream",
    "User-Agent": "TryOnGateway/0.1",
}


@dataclass(frozen=True)
class DownloadedFile:
    """Bytes of a fetched URL plus the content type the server declared."""

    content: bytes
    content_type: str


class ImageDownloader:
    """
    Fetch binary content by URL with bounded retries.

    Attributes:
        timeout: Per-attempt time bound in seconds
        max_bytes: Maximum accepted body size
        policy: Attempt budget and fixed inter-attempt delay
    """

    def __init__(
        self,
        timeout: float = 60.0,
        max_bytes: int = 10 * 1024 * 1024,
        policy: Optional[BackoffPolicy] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    ):
        self.timeout = timeout
        self.max_bytes = max_bytes
        self.policy = policy or BackoffPolicy.fixed(max_attempts=3, delay=1.0)
        self._transport = transport
        self._sleep = sleep
        self._client: Optional[httpx.AsyncClient] = None

    @classmethod
    def from_settings(cls, settings: Settings, **kwargs) -> "ImageDownloader":
        return cls(
            timeout=settings.REQUEST_TIMEOUT,
            max_bytes=settings.DOWNLOAD_MAX_BYTES,
            policy=BackoffPolicy.fixed(
                max_attempts=settings.DOWNLOAD_ATTEMPTS,
                delay=settings.DOWNLOAD_RETRY_DELAY,
            ),
            **kwargs,
        )

    async def _get_client(self) -> httpx.AsyncClient:
        """Get or create the async HTTP client."""
        if self._client is None or self._client.is_closed:
            self._client = httpx.AsyncClient(
                timeout=httpx.Timeout(self.timeout),
                headers=DEFAULT_HEADERS,
                follow_redirects=True,
                transport=self._transport,
            )
            logger.debug("Created new httpx AsyncClient for downloads")
        return self._client

    async def download(self, url: str) -> DownloadedFile:
        """
        Fetch `url`, retrying with a fixed delay.

        Raises:
            DownloadExhausted: Every attempt failed (invalid URL, non-2xx,
                transport error, timeout or oversized body)
        """
        last_error: Optional[BaseException] = None

        for attempt in range(1, self.policy.max_attempts + 1):
            try:
                downloaded = await asyncio.wait_for(self._fetch(url), timeout=self.timeout)
            # InvalidURL is not an HTTPError; an unparseable URL counts as a failed attempt
            except (httpx.HTTPError, httpx.InvalidURL, DownloadError, asyncio.TimeoutError) as e:
                last_error = e
                if self.policy.is_last(attempt):
                    break
                delay = self.policy.delay_for(attempt)
                downloads_total.labels(outcome="retry").inc()
                logger.warning(
                    "Download failed, retrying",
                    url=url,
                    attempt=attempt,
                    attempts_left=self.policy.max_attempts - attempt,
                    delay=delay,
                    error=str(e) or type(e).__name__,
                )
                await self._sleep(delay)
                continue

            downloads_total.labels(outcome="success").inc()
            logger.info(
                "Downloaded file",
                url=url,
                size=len(downloaded.content),
                content_type=downloaded.content_type,
                attempt=attempt,
            )
            return downloaded

        downloads_total.labels(outcome="exhausted").inc()
        logger.error(
            "Download exhausted",
            url=url,
            attempts=self.policy.max_attempts,
            error=str(last_error) or type(last_error).__name__,
        )
        raise DownloadExhausted(url, self.policy.max_attempts, last_error)

    async def _fetch(self, url: str) -> DownloadedFile:
        client = await self._get_client()
        async with client.stream("GET", url) as response:
            if not 200 <= response.status_code < 300:
                raise DownloadError(
                    f"Request failed with status code {response.status_code}",
                    details={"url": url, "status": response.status_code},
                )

            declared = response.headers.get("content-length")
            if declared and declared.isdigit() and int(declared) > self.max_bytes:
                raise DownloadError(
                    f"Content length {declared} exceeds limit of {self.max_bytes} bytes",
                    details={"url": url, "content_length": int(declared)},
                )

            body = bytearray()
            async for chunk in response.aiter_bytes():
                body.extend(chunk)
                if len(body) > self.max_bytes:
                    raise DownloadError(
                        f"Body exceeds limit of {self.max_bytes} bytes",
                        details={"url": url},
                    )

            content_type = response.headers.get("content-type", "application/octet-stream")
        return DownloadedFile(
            content=bytes(body),
            content_type=content_type.split(";")[0].strip(),
        )

    async def close(self):
        """Close the HTTP client connection."""
        if self._client and not self._client.is_closed:
            await self._client.aclose()
            logger.debug("Closed download client")
