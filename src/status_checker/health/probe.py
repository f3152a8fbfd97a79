"""Probe: a single liveness check against one endpoint.

A probe performs exactly one request and reports the outcome as a value.
It never retries, sleeps or loops; that is the job of the retrying round.

Author: StatusChecker Team
Version: 1.0.0
"""

import asyncio
import logging
import time
from dataclasses import dataclass, field
from typing import Optional, Protocol

import aiohttp

logger = logging.getLogger(__name__)


@dataclass
class ProbeResult:
    """Result of a single probe."""
    endpoint: str
    ok: bool
    attempt: int = 0
    status_code: Optional[int] = None
    error: Optional[str] = None
    response_time: float = 0.0
    timestamp: float = field(default_factory=time.time)


class Probe(Protocol):
    """Anything that can check one endpoint once."""

    async def check(self, endpoint: str, attempt: int = 0) -> ProbeResult: ...  # pragma: no cover


class HttpProbe:
    """HTTP GET probe built on aiohttp.

    Any HTTP response counts as success, whatever its status code. Connection
    errors, invalid URLs and timeouts count as failure.
    """

    def __init__(self, session: Optional[aiohttp.ClientSession] = None,
                 timeout: float = 10.0):
        """Initialize the probe.

        Args:
            session: Shared client session; one is created lazily when omitted
            timeout: Total request timeout in seconds
        """
        self.timeout = timeout
        self._session = session
        self._owns_session = session is None

    def _get_session(self) -> aiohttp.ClientSession:
        if self._session is None or self._session.closed:
            self._session = aiohttp.ClientSession(
                timeout=aiohttp.ClientTimeout(total=self.timeout)
            )
            self._owns_session = True
        return self._session

    async def check(self, endpoint: str, attempt: int = 0) -> ProbeResult:
        """Perform one GET against ``endpoint``.

        Args:
            endpoint: URL to check
            attempt: Attempt number within the current round

        Returns:
            Probe result carrying either a status code or an error
        """
        start_time = time.monotonic()
        session = self._get_session()

        try:
            timeout = aiohttp.ClientTimeout(total=self.timeout)
            async with session.get(endpoint, timeout=timeout) as response:
                result = ProbeResult(
                    endpoint=endpoint,
                    ok=True,
                    attempt=attempt,
                    status_code=response.status,
                    response_time=time.monotonic() - start_time,
                )
                # The status line decides the outcome; the body is never read
                response.release()
        except asyncio.TimeoutError:
            result = ProbeResult(
                endpoint=endpoint,
                ok=False,
                attempt=attempt,
                error=f"timeout after {self.timeout}s",
                response_time=time.monotonic() - start_time,
            )
        except (aiohttp.ClientError, OSError, ValueError) as e:
            result = ProbeResult(
                endpoint=endpoint,
                ok=False,
                attempt=attempt,
                error=str(e) or e.__class__.__name__,
                response_time=time.monotonic() - start_time,
            )

        if result.ok:
            logger.info("%s is up, status code: %d", endpoint, result.status_code)
        else:
            logger.warning("Error checking link %s: %s", endpoint, result.error)
        return result

    async def close(self) -> None:
        """Close the session if this probe created it."""
        if self._owns_session and self._session is not None and not self._session.closed:
            await self._session.close()

    async def __aenter__(self) -> "HttpProbe":
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        await self.close()
