"""
In-memory guard against duplicate and overlapping submissions.

The remote try-on worker is a single, slow GPU process. Every redundant
submission costs a full inference run, so the gate refuses:

1. **Exact duplicates**: a payload whose signature matches any in-flight
   submission (from any caller) younger than the duplicate window.
2. **Rapid resubmissions**: a second submission from the same caller inside
   the cooldown window, whatever its payload.

The gate is best-effort and process-local. It does not deduplicate across
processes and a restart forgets everything; it is a cost/UX throttle, not a
correctness guarantee.

Usage:
    >>> gate = RequestGate(duplicate_window=10.0, resubmit_cooldown=5.0)
    >>> with gate.admit(caller_id, payload_signature(inputs)):
    ...     result = await client.submit(inputs, params)
"""

import hashlib
import threading
import time
from contextlib import contextmanager
from dataclasses import dataclass
from typing import Callable, Iterator, Mapping, Optional, Union

import structlog

from tryon_gateway.config import Settings
from tryon_gateway.gate.exceptions import RejectionError
from tryon_gateway.models.enums import RejectionReason
from tryon_gateway.models.inputs import InputImage
from tryon_gateway.monitoring.metrics import gate_pending_submissions, gate_rejections_total

logger = structlog.get_logger(__name__)


@dataclass(frozen=True)
class PendingSubmission:
    """An accepted submission that has not been released yet."""

    signature: str
    submitted_at: float


@dataclass(frozen=True)
class Accepted:
    """The gate recorded the submission; the caller must release it."""

    caller_id: str
    signature: str


@dataclass(frozen=True)
class Rejected:
    """
    The gate refused the submission.

    Attributes:
        reason: Rule that refused it
        retry_after: Seconds until the blocking entry ages out of its window
    """

    reason: RejectionReason
    retry_after: float


GateDecision = Union[Accepted, Rejected]


def payload_signature(inputs: Mapping[str, InputImage]) -> str:
    """
    Derive a caller-independent signature for a set of payloads.

    Hashes the sorted (role, filename, content digest) triples so two
    submissions collide only when every role carries the same file.
    """
    digest = hashlib.sha256()
    for role in sorted(inputs):
        image = inputs[role]
        digest.update(role.encode("utf-8"))
        digest.update(b"\x00")
        digest.update((image.filename or "").encode("utf-8"))
        digest.update(b"\x00")
        digest.update(hashlib.sha256(image.data).digest())
    return digest.hexdigest()


class RequestGate:
    """
    Tracks in-flight submissions per caller and per payload signature.

    At most one PendingSubmission exists per caller. The check-then-record
    step of `try_acquire` holds a lock and never awaits, so two concurrent
    submissions from one caller can never both be accepted.

    Attributes:
        duplicate_window: Seconds an identical signature counts as in flight
        resubmit_cooldown: Seconds a caller must wait between submissions
    """

    def __init__(
        self,
        duplicate_window: float = 10.0,
        resubmit_cooldown: float = 5.0,
        clock: Callable[[], float] = time.monotonic,
    ):
        self.duplicate_window = duplicate_window
        self.resubmit_cooldown = resubmit_cooldown
        self._clock = clock
        self._pending: dict[str, PendingSubmission] = {}
        self._lock = threading.Lock()

    @classmethod
    def from_settings(cls, settings: Settings) -> "RequestGate":
        return cls(
            duplicate_window=settings.DUPLICATE_WINDOW,
            resubmit_cooldown=settings.RESUBMIT_COOLDOWN,
        )

    def try_acquire(self, caller_id: str, signature: str) -> GateDecision:
        """
        Accept and record a submission, or say why it is refused.

        On acceptance any stale entry for the caller is overwritten.
        """
        with self._lock:
            now = self._clock()

            for pending in self._pending.values():
                age = now - pending.submitted_at
                if pending.signature == signature and age < self.duplicate_window:
                    return self._reject(
                        caller_id, RejectionReason.DUPLICATE_IN_FLIGHT, self.duplicate_window - age
                    )

            own = self._pending.get(caller_id)
            if own is not None:
                age = now - own.submitted_at
                if age < self.resubmit_cooldown:
                    return self._reject(
                        caller_id, RejectionReason.RESUBMISSION_TOO_SOON, self.resubmit_cooldown - age
                    )

            self._pending[caller_id] = PendingSubmission(signature=signature, submitted_at=now)
            gate_pending_submissions.set(len(self._pending))

        logger.info(
            "Submission accepted",
            caller_id=caller_id,
            signature=signature[:12],
            superseded=own is not None,
        )
        return Accepted(caller_id=caller_id, signature=signature)

    def _reject(self, caller_id: str, reason: RejectionReason, retry_after: float) -> Rejected:
        gate_rejections_total.labels(reason=reason.name.lower()).inc()
        logger.warning(
            "Submission rejected",
            caller_id=caller_id,
            reason=reason.value,
            retry_after=round(retry_after, 2),
        )
        return Rejected(reason=reason, retry_after=retry_after)

    def release(self, caller_id: str) -> bool:
        """Forget the caller's submission. Returns whether one was tracked."""
        with self._lock:
            removed = self._pending.pop(caller_id, None)
            gate_pending_submissions.set(len(self._pending))
        if removed is not None:
            logger.debug("Submission released", caller_id=caller_id)
        return removed is not None

    def clear(self) -> int:
        """Drop every tracked submission. Returns how many were dropped."""
        with self._lock:
            count = len(self._pending)
            self._pending.clear()
            gate_pending_submissions.set(0)
        logger.warning("Request gate cleared", cleared=count)
        return count

    def pending(self, caller_id: str) -> Optional[PendingSubmission]:
        with self._lock:
            return self._pending.get(caller_id)

    def __len__(self) -> int:
        with self._lock:
            return len(self._pending)

    @contextmanager
    def admit(self, caller_id: str, signature: str) -> Iterator[Accepted]:
        """
        Scoped acquisition: raise on rejection, always release on exit.

        Raises:
            DuplicateInFlight: Same payload already in flight
            ResubmissionTooSoon: Caller is inside the cooldown window
        """
        decision = self.try_acquire(caller_id, signature)
        if isinstance(decision, Rejected):
            raise RejectionError.for_reason(
                decision.reason,
                caller_id,
                details={"retry_after": round(decision.retry_after, 2)},
            )
        try:
            yield decision
        finally:
            self.release(caller_id)
