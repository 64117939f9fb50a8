"""Fixtures and fakes for unit tests.

The fakes stand in for the remote Gradio Space so the retry loop, session
cache and request gate can be driven deterministically.
"""

from contextlib import contextmanager
from typing import Any, Optional

import pytest

from tryon_gateway.inference.session import SessionCache


class FakeClock:
    """Monotonic clock the test advances by hand."""

    def __init__(self, start: float = 1000.0):
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


class FakeSession:
    """RemoteSession double that answers from a shared script."""

    def __init__(self, remote: "ScriptedRemote", number: int):
        self.remote = remote
        self.number = number

    @contextmanager
    def stage(self, inputs):
        self.remote.staged.append(sorted(inputs))
        yield {role: f"handle:{role}" for role in inputs}

    async def call(self, api_name: str, args) -> Any:
        self.remote.calls.append((self.number, api_name, list(args)))
        outcome = self.remote.script.pop(0)
        if isinstance(outcome, BaseException):
            raise outcome
        return outcome


class ScriptedRemote:
    """
    Remote service double.

    Each entry of `script` is consumed by one call: an exception instance is
    raised, anything else is returned as the call's data.
    """

    def __init__(self, script: Optional[list] = None):
        self.script = list(script or [])
        self.calls: list[tuple[int, str, list]] = []
        self.staged: list[list[str]] = []
        self.sessions_built = 0
        # Cached session observed at each construction; set by bind()
        self.cached_at_build: list[Any] = []
        self._cache: Optional[SessionCache] = None

    def bind(self, cache: SessionCache) -> None:
        self._cache = cache

    async def factory(self) -> FakeSession:
        if self._cache is not None:
            self.cached_at_build.append(self._cache.session)
        self.sessions_built += 1
        return FakeSession(self, self.sessions_built)


class RecordingSleep:
    """Async sleep replacement that records requested delays."""

    def __init__(self):
        self.delays: list[float] = []

    async def __call__(self, delay: float) -> None:
        self.delays.append(delay)


@pytest.fixture
def fake_clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def recording_sleep() -> RecordingSleep:
    return RecordingSleep()
