"""
Cached, time-bounded session to the remote inference service.

A single session handle is shared by every request. It is created lazily,
reused until it reaches its maximum age, and discarded by the client on any
call failure (a failed call is assumed to have tainted the remote session).

Construction is a blocking network handshake; it is raced against the request
timeout and, on timeout, nothing is cached. Concurrent requests that find the
slot empty wait on one in-flight construction instead of each building their
own.
"""

import asyncio
import time
from contextlib import AbstractContextManager
from typing import Any, Awaitable, Callable, Mapping, Optional, Protocol, Sequence

import structlog

from tryon_gateway.inference.exceptions import InferenceError, SessionError, SessionTimeout
from tryon_gateway.models.inputs import InputImage
from tryon_gateway.monitoring.metrics import session_builds_total

logger = structlog.get_logger(__name__)


class RemoteSession(Protocol):
    """
    Protocol for a connected handle to the remote inference service.

    Implementations wrap a concrete RPC client (see GradioSession).
    """

    def stage(self, inputs: Mapping[str, InputImage]) -> AbstractContextManager[dict[str, Any]]:
        """
        Turn raw payloads into binary handles the remote protocol accepts.

        The handles are valid until the context exits.
        """
        ...

    async def call(self, api_name: str, args: Sequence[Any]) -> Any:
        """Invoke a named procedure with positional arguments; return its data."""
        ...


SessionFactory = Callable[[], Awaitable[RemoteSession]]


class SessionCache:
    """
    Owner of the single CachedSession slot.

    Attributes:
        max_age: Seconds a session may be used to start new calls
        timeout: Bound on session construction in seconds
    """

    def __init__(
        self,
        factory: SessionFactory,
        max_age: float = 300.0,
        timeout: float = 60.0,
        clock: Callable[[], float] = time.monotonic,
    ):
        self._factory = factory
        self.max_age = max_age
        self.timeout = timeout
        self._clock = clock
        self._session: Optional[RemoteSession] = None
        self._created_at: Optional[float] = None
        self._build_lock = asyncio.Lock()

    @property
    def session(self) -> Optional[RemoteSession]:
        return self._session

    def age(self) -> Optional[float]:
        """Age of the cached session in seconds, or None when absent."""
        if self._session is None or self._created_at is None:
            return None
        return self._clock() - self._created_at

    def _fresh(self) -> Optional[RemoteSession]:
        age = self.age()
        if age is not None and age < self.max_age:
            return self._session
        return None

    def invalidate(self, reason: str = "requested") -> None:
        """Discard the cached session, if any."""
        if self._session is not None:
            logger.info("Invalidating remote session", reason=reason, age=round(self.age() or 0.0, 2))
        self._session = None
        self._created_at = None

    async def get_session(self) -> RemoteSession:
        """
        Return the cached session if still fresh, else build a new one.

        Raises:
            SessionTimeout: Construction exceeded `timeout`
            SessionError: Construction failed
        """
        session = self._fresh()
        if session is not None:
            logger.debug("Using cached remote session", age=round(self.age() or 0.0, 2))
            return session

        try:
            return await asyncio.wait_for(self._build(), timeout=self.timeout)
        except asyncio.TimeoutError as e:
            session_builds_total.labels(outcome="timeout").inc()
            logger.warning("Remote session construction timed out", timeout=self.timeout)
            raise SessionTimeout(
                f"Session initialization timeout after {self.timeout}s",
                details={"timeout": self.timeout},
            ) from e

    async def _build(self) -> RemoteSession:
        async with self._build_lock:
            # Another request may have finished a build while we waited
            session = self._fresh()
            if session is not None:
                return session

            if self._session is not None:
                logger.info("Remote session expired", age=round(self.age() or 0.0, 2), max_age=self.max_age)
                self.invalidate(reason="expired")

            logger.info("Creating new remote session")
            try:
                session = await self._factory()
            except InferenceError:
                session_builds_total.labels(outcome="error").inc()
                raise
            except Exception as e:
                session_builds_total.labels(outcome="error").inc()
                logger.warning("Remote session construction failed", error=str(e), error_type=type(e).__name__)
                raise SessionError(
                    f"Failed to initialize remote session: {e}",
                    details={"error_type": type(e).__name__},
                ) from e

            self._session = session
            self._created_at = self._clock()
            session_builds_total.labels(outcome="success").inc()
            logger.info("Remote session initialized")
            return session
