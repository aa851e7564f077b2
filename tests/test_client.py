import json

import openai
import pytest
from pydantic import BaseModel

from tests.conftest import make_fake_openai, status_error, timeout_error
from xquery.schemas import Tweet, TweetArray, UserProfile
from xquery.services.circuit_breaker import (
    CircuitBreaker,
    CircuitBreakerConfig,
    CircuitState,
)
from xquery.services.client import GrokClient, XSearchParams, to_json_schema
from xquery.services.errors import (
    AuthenticationError,
    CircuitOpenError,
    RateLimitError,
    RequestTimeoutError,
    ResponseFormatError,
    SchemaValidationError,
    ServiceError,
)


class Point(BaseModel):
    x: int
    y: int


class Node(BaseModel):
    children: list["Node"] = []


def make_client(outcomes, vision="", threshold=5, clock=None):
    fake = make_fake_openai(outcomes, vision)
    breaker_kwargs = {"clock": clock} if clock else {}
    breaker = CircuitBreaker(
        config=CircuitBreakerConfig(failure_threshold=threshold), **breaker_kwargs
    )
    return GrokClient("xai-test", circuit_breaker=breaker, openai_client=fake), fake


def _has_ref(node) -> bool:
    if isinstance(node, dict):
        return "$ref" in node or "$defs" in node or any(_has_ref(v) for v in node.values())
    if isinstance(node, list):
        return any(_has_ref(v) for v in node)
    return False


class TestJsonSchema:
    @pytest.mark.parametrize("model", [Tweet, TweetArray, UserProfile])
    def test_flattened(self, model):
        schema = to_json_schema(model)
        assert not _has_ref(schema)
        assert schema["type"] == "object"

    def test_nested_fields_inlined(self):
        schema = to_json_schema(TweetArray)
        tweet = schema["properties"]["tweets"]["items"]
        assert tweet["properties"]["author"]["properties"]["username"]["type"] == "string"

    def test_recursive_model_rejected(self):
        with pytest.raises(ValueError):
            to_json_schema(Node)


class TestQuery:
    async def test_returns_validated_model(self):
        client, fake = make_client([{"x": 1, "y": 2}])
        result = await client.query("prompt", Point, "point")
        assert result == Point(x=1, y=2)
        assert client.circuit_breaker.state is CircuitState.CLOSED

    async def test_request_shape(self):
        client, fake = make_client([{"x": 1, "y": 2}])
        await client.query(
            "find it",
            Point,
            "point",
            XSearchParams(allowed_x_handles=["jack"], from_date="2025-01-01"),
        )
        call = fake.responses.calls[0]
        assert call["input"] == [{"role": "user", "content": "find it"}]
        assert call["tools"] == [
            {"type": "x_search", "allowed_x_handles": ["jack"], "from_date": "2025-01-01"}
        ]
        assert call["max_output_tokens"] == 16384
        fmt = call["text"]["format"]
        assert fmt["type"] == "json_schema"
        assert fmt["name"] == "point"
        assert fmt["strict"] is False
        assert fmt["schema"]["required"] == ["x", "y"]

    async def test_empty_output(self):
        client, _ = make_client([""])
        with pytest.raises(ResponseFormatError, match="no text output"):
            await client.query("p", Point, "point")

    async def test_truncated_json_includes_tail(self):
        text = '{"x": 1, "y": ' + "9" * 300
        text = text[:-1] + ' "unterminated'
        client, _ = make_client([text])
        with pytest.raises(ResponseFormatError) as exc_info:
            await client.query("p", Point, "point")
        message = str(exc_info.value)
        assert "malformed" in message
        assert message.endswith(text[-200:])
        assert not isinstance(exc_info.value, SchemaValidationError)

    async def test_schema_violation_is_not_coerced(self):
        client, _ = make_client([json.dumps({"x": 1, "y": "not a number"})])
        with pytest.raises(SchemaValidationError) as exc_info:
            await client.query("p", Point, "point")
        assert exc_info.value.schema_name == "point"
        assert exc_info.value.errors[0]["loc"] == ("y",)
        # The upstream answered, so the breaker saw a success
        assert client.circuit_breaker.failure_count == 0

    async def test_missing_field_is_schema_error(self):
        client, _ = make_client([{"x": 1}])
        with pytest.raises(SchemaValidationError):
            await client.query("p", Point, "point")

    async def test_auth_error_classified(self):
        client, _ = make_client([status_error(openai.AuthenticationError, 401)])
        with pytest.raises(AuthenticationError):
            await client.query("p", Point, "point")

    @pytest.mark.parametrize(
        "exc_factory, expected",
        [
            (lambda: status_error(openai.AuthenticationError, 401), AuthenticationError),
            (lambda: status_error(openai.PermissionDeniedError, 403), AuthenticationError),
            (lambda: status_error(openai.RateLimitError, 429), RateLimitError),
        ],
    )
    async def test_non_transient_failures_never_open_circuit(self, exc_factory, expected):
        client, fake = make_client([exc_factory()], threshold=3)
        for _ in range(10):
            with pytest.raises(expected):
                await client.query("p", Point, "point")
        assert client.circuit_breaker.state is CircuitState.CLOSED
        assert client.circuit_breaker.failure_count == 0
        assert len(fake.responses.calls) == 10

    async def test_transient_failures_open_circuit_and_fail_fast(self):
        client, fake = make_client(
            [status_error(openai.InternalServerError, 500)], threshold=3
        )
        for _ in range(3):
            with pytest.raises(ServiceError):
                await client.query("p", Point, "point")
        assert client.circuit_breaker.state is CircuitState.OPEN

        with pytest.raises(CircuitOpenError):
            await client.query("p", Point, "point")
        # Rejected locally, no fourth upstream call
        assert len(fake.responses.calls) == 3

    async def test_timeout_counts_as_transient(self):
        client, _ = make_client([timeout_error()], threshold=1)
        with pytest.raises(RequestTimeoutError):
            await client.query("p", Point, "point")
        assert client.circuit_breaker.state is CircuitState.OPEN

    async def test_probe_success_closes_circuit(self, clock):
        client, fake = make_client(
            [timeout_error(), {"x": 3, "y": 4}], threshold=1, clock=clock
        )
        with pytest.raises(RequestTimeoutError):
            await client.query("p", Point, "point")

        clock.advance(30.0)
        result = await client.query("p", Point, "point")
        assert result.x == 3
        assert client.circuit_breaker.state is CircuitState.CLOSED

    async def test_get_status(self):
        client, _ = make_client([{"x": 1, "y": 2}])
        status = client.get_status()
        assert status["circuit_breaker"]["state"] == "closed"


class TestAnalyzeMedia:
    async def test_describes_allowed_image(self):
        client, fake = make_client([{}], vision="  A sunset over the sea  ")
        summary = await client.analyze_media(
            "https://pbs.twimg.com/media/abc.jpg", "image", "look at this"
        )
        assert summary == "A sunset over the sea"
        call = fake.chat.completions.calls[0]
        assert call["model"] == "grok-2-vision-1212"
        assert call["timeout"] == 30.0
        content = call["messages"][0]["content"]
        assert content[1]["image_url"]["url"] == "https://pbs.twimg.com/media/abc.jpg"
        assert "look at this" in content[0]["text"]

    @pytest.mark.parametrize(
        "url",
        [
            "",
            "https://evil.example.com/a.jpg",
            "https://pbs.twimg.com.evil.com/a.jpg",
            "not a url",
            "file:///etc/passwd",
        ],
    )
    async def test_rejects_urls_outside_allowlist(self, url):
        client, fake = make_client([{}], vision="should not be used")
        assert await client.analyze_media(url, "image") == ""
        assert fake.chat.completions.calls == []

    async def test_failures_degrade_to_empty(self):
        client, _ = make_client([{}], vision=status_error(openai.InternalServerError, 500))
        assert await client.analyze_media("https://video.twimg.com/v.jpg", "video") == ""

        client, _ = make_client([{}], vision=status_error(openai.RateLimitError, 429))
        assert await client.analyze_media("https://pbs.twimg.com/a.jpg", "image") == ""

    async def test_auth_failure_is_raised(self):
        client, _ = make_client(
            [{}], vision=status_error(openai.AuthenticationError, 401)
        )
        with pytest.raises(AuthenticationError):
            await client.analyze_media("https://pbs.twimg.com/a.jpg", "image")

    async def test_media_failures_do_not_touch_breaker(self):
        client, _ = make_client([{}], vision=timeout_error(), threshold=1)
        await client.analyze_media("https://pbs.twimg.com/a.jpg", "image")
        assert client.circuit_breaker.state is CircuitState.CLOSED


async def test_close_is_safe_without_http_client():
    client, _ = make_client([{}])
    async with client:
        pass
