"""
Resilient client for the remote virtual try-on procedure.

Each submission runs a bounded retry loop:

1. From the second attempt on, discard the cached session first
2. Acquire a session (cached if fresh, otherwise rebuilt under a timeout)
3. Stage the raw payloads as remote binary handles
4. Clamp the denoising steps to the known remote maximum
5. Call the procedure, racing it against 2x the request timeout
6. Normalize the response to base64; on a retryable failure invalidate the
   session and back off exponentially before the next attempt

Result-shape failures are terminal: the call succeeded, the payload did not.
"""

import asyncio
import re
import time
from typing import Any, Awaitable, Callable, Mapping, Optional

import structlog

from tryon_gateway.config import Settings
from tryon_gateway.inference.base_client import BaseInferenceClient
from tryon_gateway.inference.downloader import ImageDownloader
from tryon_gateway.inference.envelope import ResultNormalizer
from tryon_gateway.inference.exceptions import (
    ExhaustedRetries,
    InferenceError,
    ParameterOutOfBounds,
    RemoteCallError,
    RemoteCallTimeout,
    ResultShapeError,
)
from tryon_gateway.inference.session import RemoteSession, SessionCache, SessionFactory
from tryon_gateway.models.enums import InputRole
from tryon_gateway.models.inputs import InferenceParams, InputImage
from tryon_gateway.models.outputs import NormalizedResult
from tryon_gateway.monitoring.metrics import inference_attempts_total, inference_latency_seconds
from tryon_gateway.retry.metadata import RetryMetadata
from tryon_gateway.retry.policy import BackoffPolicy

logger = structlog.get_logger(__name__)

OUT_OF_BOUNDS_PATTERN = re.compile(r"Value (\d+) is greater than maximum value (\d+)")

REQUIRED_ROLES = (InputRole.FRONT.value, InputRole.GARMENT.value)


class InferenceClient(BaseInferenceClient):
    """
    Try-on client with session caching, retries and result normalization.

    Attributes:
        sessions: Owner of the shared remote session
        normalizer: Reduces remote payloads to base64
        policy: Retry budget and exponential backoff
        call_timeout: Bound on one remote procedure call (seconds)
        api_name: Remote procedure name
    """

    def __init__(
        self,
        sessions: SessionCache,
        normalizer: ResultNormalizer,
        policy: BackoffPolicy,
        call_timeout: float = 120.0,
        api_name: str = "/tryon",
        denoising_steps: int = 40,
        denoising_steps_max: int = 40,
        seed: int = -1,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    ):
        self.sessions = sessions
        self.normalizer = normalizer
        self.policy = policy
        self.call_timeout = call_timeout
        self.api_name = api_name
        self.denoising_steps = denoising_steps
        self.seed = seed
        self._steps_ceiling = denoising_steps_max
        self._sleep = sleep

        logger.info(
            "Inference client initialized",
            api_name=api_name,
            max_attempts=policy.max_attempts,
            call_timeout=call_timeout,
            session_max_age=sessions.max_age,
        )

    @classmethod
    def from_settings(
        cls,
        settings: Settings,
        session_factory: SessionFactory,
        downloader: Optional[ImageDownloader] = None,
        **kwargs,
    ) -> "InferenceClient":
        sessions = SessionCache(
            session_factory,
            max_age=settings.SESSION_MAX_AGE,
            timeout=settings.REQUEST_TIMEOUT,
        )
        normalizer = ResultNormalizer(downloader or ImageDownloader.from_settings(settings))
        return cls(
            sessions=sessions,
            normalizer=normalizer,
            policy=BackoffPolicy.exponential(settings),
            call_timeout=settings.REQUEST_TIMEOUT * 2,
            api_name=settings.TRYON_API_NAME,
            denoising_steps=settings.DENOISING_STEPS,
            denoising_steps_max=settings.DENOISING_STEPS_MAX,
            seed=settings.SEED,
            **kwargs,
        )

    @property
    def steps_ceiling(self) -> int:
        return self._steps_ceiling

    def clamp_steps(self, requested: Optional[int] = None) -> int:
        """Denoising steps to send: requested (or default), capped at the ceiling."""
        steps = requested if requested is not None else self.denoising_steps
        return min(steps, self._steps_ceiling)

    def _lower_steps_ceiling(self, maximum: int) -> None:
        if maximum < self._steps_ceiling:
            logger.warning(
                "Remote reported a lower denoising steps maximum, adjusting",
                previous=self._steps_ceiling,
                maximum=maximum,
            )
            self._steps_ceiling = maximum

    async def submit(
        self,
        inputs: Mapping[str, InputImage],
        params: Optional[InferenceParams] = None,
    ) -> NormalizedResult:
        missing = [role for role in REQUIRED_ROLES if role not in inputs]
        if missing:
            raise ValueError(f"Missing input roles: {', '.join(missing)}")
        params = params or InferenceParams()

        start_time = time.perf_counter()
        failures: list[dict] = []
        last_error: Optional[InferenceError] = None
        attempt = 0

        for attempt in range(1, self.policy.max_attempts + 1):
            logger.info("Processing attempt", attempt=attempt, max_attempts=self.policy.max_attempts)

            if attempt > 1:
                self.sessions.invalidate(reason="retry")

            try:
                image = await self._attempt(inputs, params)

            except ResultShapeError as e:
                failures.append({"attempt": attempt, "kind": e.kind, "error": e.message})
                inference_attempts_total.labels(outcome="unusable_result").inc()
                self._finish(start_time, attempt, succeeded=False, failures=failures)
                logger.error("Remote result unusable", attempt=attempt, kind=e.kind, error=e.message)
                raise

            except InferenceError as e:
                last_error = e
                failures.append({"attempt": attempt, "kind": e.kind, "error": e.message})
                inference_attempts_total.labels(outcome="failure").inc()
                logger.warning(
                    "Attempt failed",
                    attempt=attempt,
                    max_attempts=self.policy.max_attempts,
                    kind=e.kind,
                    error=e.message,
                )

                if isinstance(e, ParameterOutOfBounds):
                    self._lower_steps_ceiling(e.maximum)

                # Any failure may have left the remote session unusable
                self.sessions.invalidate(reason=e.kind)

                if self.policy.is_last(attempt):
                    break

                delay = self.policy.delay_for(attempt)
                logger.info("Waiting before retry", attempt=attempt, delay=delay)
                await self._sleep(delay)
                continue

            inference_attempts_total.labels(outcome="success").inc()
            metadata = self._finish(start_time, attempt, succeeded=True, failures=failures)
            logger.info(
                "Inference succeeded",
                attempt=attempt,
                retries_used=metadata.retries_used,
                total_latency_ms=metadata.total_latency_ms,
            )
            return NormalizedResult(image_base64=image, attempts=attempt)

        inference_attempts_total.labels(outcome="exhausted").inc()
        metadata = self._finish(start_time, attempt, succeeded=False, failures=failures)
        logger.error(
            "Inference retries exhausted",
            total_attempts=metadata.total_attempts,
            total_latency_ms=metadata.total_latency_ms,
            failure_kinds=[f["kind"] for f in metadata.failures],
        )
        raise ExhaustedRetries(attempt, last_error)

    def _finish(
        self, start_time: float, attempts: int, succeeded: bool, failures: list[dict]
    ) -> RetryMetadata:
        elapsed = time.perf_counter() - start_time
        inference_latency_seconds.labels(success=str(succeeded).lower()).observe(elapsed)
        return RetryMetadata(
            total_attempts=attempts,
            succeeded=succeeded,
            total_latency_ms=int(elapsed * 1000),
            failures=list(failures),
        )

    async def _attempt(self, inputs: Mapping[str, InputImage], params: InferenceParams) -> str:
        """
        One attempt: session, staging, call and normalization.

        Errors outside the InferenceError taxonomy (staging I/O, SDK file
        handling) are wrapped as RemoteCallError so they stay retryable.
        """
        session = await self.sessions.get_session()
        try:
            with session.stage(inputs) as handles:
                args = self.build_arguments(handles, params)
                logger.debug("Sending request to remote service", denoising_steps=args[5], seed=args[6])
                data = await self._call(session, args)
            return await self.normalizer.normalize(data)
        except InferenceError:
            raise
        except Exception as e:
            raise RemoteCallError(
                f"Attempt failed: {e}",
                details={"error_type": type(e).__name__},
            ) from e

    def build_arguments(self, handles: Mapping[str, Any], params: InferenceParams) -> list[Any]:
        """Positional argument list of the try-on procedure."""
        return [
            {
                "background": handles[InputRole.FRONT.value],
                "layers": [],
                "composite": None,
            },
            handles[InputRole.GARMENT.value],
            params.garment_description,
            params.auto_mask,
            params.auto_crop,
            self.clamp_steps(params.denoising_steps),
            params.seed if params.seed is not None else self.seed,
        ]

    async def _call(self, session: RemoteSession, args: list[Any]) -> Any:
        try:
            result = await asyncio.wait_for(
                session.call(self.api_name, args),
                timeout=self.call_timeout,
            )
        except asyncio.TimeoutError as e:
            raise RemoteCallTimeout(
                f"Prediction timeout after {self.call_timeout}s",
                details={"timeout": self.call_timeout},
            ) from e
        except InferenceError:
            raise
        except Exception as e:
            bounds = OUT_OF_BOUNDS_PATTERN.search(str(e))
            if bounds:
                raise ParameterOutOfBounds(
                    str(e),
                    value=int(bounds.group(1)),
                    maximum=int(bounds.group(2)),
                ) from e
            raise RemoteCallError(
                f"Remote call failed: {e}",
                details={"error_type": type(e).__name__},
            ) from e

        if result is None:
            raise RemoteCallError("Invalid result data received from remote service")
        return result

    async def health_check(self) -> bool:
        """Check that a session can be obtained (may build one)."""
        try:
            await self.sessions.get_session()
            return True
        except InferenceError as e:
            logger.warning("Remote health check failed", kind=e.kind, error=e.message)
            return False

    async def close(self):
        self.sessions.invalidate(reason="shutdown")
        await self.normalizer.downloader.close()
