"""Shared test fixtures.

Provides a controllable clock, a recording sleep, a scripted httpx
transport and envelope builders used across the resilience, HTTP and
resource tests.
"""

import random
from typing import Any, Callable, List, Optional

import httpx
import pytest

from cfclient.core.resilience import ResiliencePipeline, get_resilience_preset
from cfclient.factory import reset_client_factory_for_testing

BASE_URL = "https://api.cloudflare.test/client/v4/"


# ---------------------------------------------------------------------------
# Time control
# ---------------------------------------------------------------------------


class FakeClock:
    """Monotonic clock advanced explicitly by tests (or by fake_sleep)."""

    def __init__(self, start: float = 1000.0):
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def sleeps() -> List[float]:
    """Delays requested from fake_sleep, in order."""
    return []


@pytest.fixture
def fake_sleep(sleeps, clock):
    """Sleep that returns immediately and advances the fake clock."""

    async def _sleep(seconds: float) -> None:
        sleeps.append(seconds)
        clock.advance(seconds)

    return _sleep


# ---------------------------------------------------------------------------
# HTTP fakes
# ---------------------------------------------------------------------------


def envelope(
    result: Any = None,
    *,
    success: bool = True,
    errors: Optional[list] = None,
    result_info: Optional[dict] = None,
) -> dict:
    """Build a Cloudflare response envelope."""
    body = {
        "success": success,
        "errors": errors or [],
        "messages": [],
        "result": result,
    }
    if result_info is not None:
        body["result_info"] = result_info
    return body


class ScriptedTransport:
    """Replays scripted steps in order and records every request.

    A step is an ``httpx.Response``, an exception to raise, or a callable
    ``(request) -> Response`` (sync or async). The last step repeats once
    the script runs out. Static responses are copied per request so a
    repeated step can be replayed.
    """

    def __init__(self, *steps: Any):
        self.steps = list(steps)
        self.requests: List[httpx.Request] = []

    @property
    def calls(self) -> int:
        return len(self.requests)

    async def handler(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        step = self.steps.pop(0) if len(self.steps) > 1 else self.steps[0]
        if isinstance(step, BaseException):
            raise step
        if callable(step):
            response = step(request)
            if not isinstance(response, httpx.Response):
                response = await response
            return response
        return httpx.Response(step.status_code, headers=step.headers, content=step.content)

    def transport(self) -> httpx.MockTransport:
        return httpx.MockTransport(self.handler)


@pytest.fixture
def make_envelope() -> Callable[..., dict]:
    return envelope


@pytest.fixture
def scripted() -> Callable[..., ScriptedTransport]:
    """Factory for ScriptedTransport instances."""
    return ScriptedTransport


@pytest.fixture
def make_http():
    """Factory for an AsyncClient bound to a transport."""
    def _make(transport: httpx.AsyncBaseTransport) -> httpx.AsyncClient:
        return httpx.AsyncClient(base_url=BASE_URL, transport=transport)

    return _make


@pytest.fixture
def make_pipeline(clock, fake_sleep):
    """Factory for a pipeline on the testing preset with fake time.

    Keyword arguments override ResilienceConfig fields.
    """

    def _make(name: str = "test", **overrides: Any) -> ResiliencePipeline:
        config = get_resilience_preset("testing").with_overrides(**overrides)
        return ResiliencePipeline(
            config,
            name=name,
            rng=random.Random(42),
            sleep_func=fake_sleep,
            clock=clock,
        )

    return _make


@pytest.fixture(autouse=True)
def _isolate_client_factory():
    """Each test starts with a fresh client factory singleton."""
    reset_client_factory_for_testing()
    yield
    reset_client_factory_for_testing()
