"""Shared pytest fixtures for mcp-x-query tests."""

import json
from types import SimpleNamespace
from typing import Any

import httpx
import openai
import pytest

XAI_URL = "https://api.x.ai/v1/responses"


class FakeClock:
    """Manually advanced clock, in seconds."""

    def __init__(self, start: float = 1_000_000.0):
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


class FakeResponses:
    """Stands in for AsyncOpenAI.responses; plays outcomes in order."""

    def __init__(self, outcomes: list[Any]):
        self.outcomes = list(outcomes)
        self.calls: list[dict[str, Any]] = []

    async def create(self, **kwargs: Any) -> Any:
        self.calls.append(kwargs)
        outcome = self.outcomes.pop(0) if len(self.outcomes) > 1 else self.outcomes[0]
        if isinstance(outcome, BaseException):
            raise outcome
        if not isinstance(outcome, str) and outcome is not None:
            outcome = json.dumps(outcome)
        return SimpleNamespace(output_text=outcome)


class FakeCompletions:
    """Stands in for AsyncOpenAI.chat.completions."""

    def __init__(self, outcome: Any):
        self.outcome = outcome
        self.calls: list[dict[str, Any]] = []

    async def create(self, **kwargs: Any) -> Any:
        self.calls.append(kwargs)
        if isinstance(self.outcome, BaseException):
            raise self.outcome
        message = SimpleNamespace(content=self.outcome)
        return SimpleNamespace(choices=[SimpleNamespace(message=message)])


def make_fake_openai(outcomes: list[Any], vision: Any = "") -> SimpleNamespace:
    return SimpleNamespace(
        responses=FakeResponses(outcomes),
        chat=SimpleNamespace(completions=FakeCompletions(vision)),
    )


def status_error(
    cls: type[openai.APIStatusError], status: int, headers: dict[str, str] | None = None
) -> openai.APIStatusError:
    """Build a real openai status error around an httpx response."""
    request = httpx.Request("POST", XAI_URL)
    response = httpx.Response(status, headers=headers or {}, request=request)
    return cls(f"HTTP {status}", response=response, body=None)


def timeout_error() -> openai.APITimeoutError:
    return openai.APITimeoutError(request=httpx.Request("POST", XAI_URL))


def connection_error() -> openai.APIConnectionError:
    return openai.APIConnectionError(request=httpx.Request("POST", XAI_URL))


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


TWEET = {
    "id": "1234567890",
    "url": "https://x.com/testuser/status/1234567890",
    "author": {"username": "testuser", "display_name": "Test User", "verified": False},
    "text": "Hello world",
    "created_at": "2025-01-01T00:00:00Z",
    "metrics": {"likes": 10, "retweets": 2, "replies": 1},
    "is_retweet": False,
}


@pytest.fixture
def tweet_payload() -> dict[str, Any]:
    return json.loads(json.dumps(TWEET))
