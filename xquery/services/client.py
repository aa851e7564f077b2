"""
GrokClient - Query client for the Grok API (x.ai) with resilience patterns.

Grok exposes an OpenAI-compatible endpoint, so requests go through the
openai SDK pointed at api.x.ai. The SDK owns transport concerns (timeout,
automatic retries with backoff on 429/5xx). This module owns the rest:

- CircuitBreaker gate before every structured query
- One-shot error classification into the service taxonomy
- JSON parsing and pydantic validation of the structured output
- Best-effort media description through the vision model
"""

import json
from typing import Any, Literal, TypeVar
from urllib.parse import urlsplit

import httpx
import openai
from loguru import logger
from pydantic import BaseModel, ValidationError

from xquery.services.circuit_breaker import CircuitBreaker
from xquery.services.errors import (
    GROK_SERVICE_ID,
    ErrorKind,
    ResponseFormatError,
    SchemaValidationError,
    classify_error,
)

M = TypeVar("M", bound=BaseModel)

DEFAULT_BASE_URL = "https://api.x.ai/v1"
DEFAULT_MODEL = "grok-4-1-fast-non-reasoning"
DEFAULT_VISION_MODEL = "grok-2-vision-1212"

# Only Twitter/X CDN hosts may be handed to the vision model
ALLOWED_MEDIA_DOMAINS = frozenset({"pbs.twimg.com", "video.twimg.com", "ton.twimg.com"})

MALFORMED_EXCERPT_CHARS = 200


class XSearchParams(BaseModel):
    """Optional filters forwarded to the x_search tool. Unset fields are not sent."""

    allowed_x_handles: list[str] | None = None
    excluded_x_handles: list[str] | None = None
    from_date: str | None = None  # YYYY-MM-DD
    to_date: str | None = None  # YYYY-MM-DD
    enable_video_understanding: bool | None = None

    def to_tool(self) -> dict[str, Any]:
        return {"type": "x_search", **self.model_dump(exclude_none=True)}


def to_json_schema(model: type[BaseModel]) -> dict[str, Any]:
    """
    Convert a pydantic model to a flat JSON Schema.

    Grok's structured output rejects $ref/$defs nodes, so every reference is
    inlined. Recursive models cannot be flattened and raise ValueError.
    """
    schema = model.model_json_schema()
    defs: dict[str, Any] = schema.pop("$defs", {})

    def resolve(node: Any, stack: tuple[str, ...]) -> Any:
        if isinstance(node, list):
            return [resolve(item, stack) for item in node]
        if not isinstance(node, dict):
            return node

        ref = node.get("$ref")
        if ref is None:
            return {key: resolve(value, stack) for key, value in node.items()}

        name = ref.rsplit("/", 1)[-1]
        if name in stack:
            raise ValueError(f"Recursive schema reference '{name}' cannot be inlined")
        if name not in defs:
            raise ValueError(f"Unknown schema reference '{ref}'")
        inlined = resolve(defs[name], stack + (name,))
        # Sibling keywords next to $ref (e.g. description) take precedence
        for key, value in node.items():
            if key != "$ref":
                inlined[key] = resolve(value, stack)
        return inlined

    return resolve(schema, ())


class GrokClient:
    """
    Structured query client for Grok.

    Usage:
        async with GrokClient(api_key) as grok:
            profile = await grok.query(
                prompt="Retrieve the profile of @jack ...",
                schema=UserProfile,
                schema_name="user_profile",
                search_params=XSearchParams(allowed_x_handles=["jack"]),
            )

    One instance (and therefore one CircuitBreaker) is shared by every tool.
    """

    def __init__(
        self,
        api_key: str,
        base_url: str = DEFAULT_BASE_URL,
        model: str = DEFAULT_MODEL,
        vision_model: str = DEFAULT_VISION_MODEL,
        timeout: float = 60.0,
        vision_timeout: float = 30.0,
        max_retries: int = 3,
        max_output_tokens: int = 16384,
        circuit_breaker: CircuitBreaker | None = None,
        openai_client: Any | None = None,
    ):
        self._api_key = api_key
        self._base_url = base_url
        self._model = model
        self._vision_model = vision_model
        self._timeout = timeout
        self._vision_timeout = vision_timeout
        self._max_retries = max_retries
        self._max_output_tokens = max_output_tokens
        self._circuit_breaker = circuit_breaker or CircuitBreaker(GROK_SERVICE_ID)

        # SDK and HTTP client (lazy initialization unless injected)
        self._openai = openai_client
        self._http_client: httpx.AsyncClient | None = None

    @property
    def circuit_breaker(self) -> CircuitBreaker:
        return self._circuit_breaker

    def _get_openai(self) -> Any:
        """Get or create the OpenAI-compatible SDK client."""
        if self._openai is None:
            self._http_client = httpx.AsyncClient(
                timeout=httpx.Timeout(self._timeout),
                follow_redirects=True,
            )
            self._openai = openai.AsyncOpenAI(
                api_key=self._api_key,
                base_url=self._base_url,
                max_retries=self._max_retries,
                timeout=self._timeout,
                http_client=self._http_client,
            )
        return self._openai

    async def query(
        self,
        prompt: str,
        schema: type[M],
        schema_name: str,
        search_params: XSearchParams | None = None,
    ) -> M:
        """
        Send a prompt to Grok and return its answer validated against schema.

        Args:
            prompt: Instruction sent as the user message
            schema: Pydantic model describing the expected JSON
            schema_name: Name of the structured-output format
            search_params: Optional x_search filters

        Returns:
            An instance of schema

        Raises:
            CircuitOpenError: If the circuit breaker is open (no request made)
            AuthenticationError: If the API key is rejected
            RateLimitError: If the rate limit persists after SDK retries
            RequestTimeoutError: If the request timed out
            ResponseFormatError: If the payload is empty or not JSON
            SchemaValidationError: If the JSON does not match schema
            ServiceError: For any other upstream failure
        """
        wire_schema = to_json_schema(schema)
        tool = (search_params or XSearchParams()).to_tool()

        self._circuit_breaker.check()

        client = self._get_openai()
        try:
            response = await client.responses.create(
                model=self._model,
                input=[{"role": "user", "content": prompt}],
                tools=[tool],
                max_output_tokens=self._max_output_tokens,
                text={
                    "format": {
                        "type": "json_schema",
                        "name": schema_name,
                        "schema": wire_schema,
                        # optional fields may be absent; pydantic does the validation
                        "strict": False,
                    }
                },
            )
        except Exception as e:
            error = classify_error(e, GROK_SERVICE_ID, timeout=self._timeout)
            if error.is_transient:
                self._circuit_breaker.on_failure()
            logger.debug(f"Grok query '{schema_name}' failed ({error.kind.value}): {error}")
            raise error from e

        self._circuit_breaker.on_success()

        text = getattr(response, "output_text", None)
        if not text:
            raise ResponseFormatError("Grok returned no text output.")

        try:
            parsed = json.loads(text)
        except json.JSONDecodeError as e:
            # Usually the output hit max_output_tokens and was cut off
            excerpt = text[-MALFORMED_EXCERPT_CHARS:]
            raise ResponseFormatError(
                "Grok response JSON is malformed (likely truncated). "
                f"Last {MALFORMED_EXCERPT_CHARS} chars: ...{excerpt}"
            ) from e

        try:
            return schema.model_validate(parsed)
        except ValidationError as e:
            raise SchemaValidationError(
                schema_name, e.errors(include_url=False, include_context=False)
            ) from e

    async def analyze_media(
        self,
        media_url: str,
        media_type: Literal["image", "video", "gif"],
        tweet_text: str | None = None,
    ) -> str:
        """
        Describe an image or video thumbnail with the vision model.

        Best effort: returns "" for URLs outside ALLOWED_MEDIA_DOMAINS and for
        any failure except authentication, which is raised.
        """
        if not media_url:
            return ""

        try:
            parts = urlsplit(media_url)
            hostname = parts.hostname
        except ValueError:
            parts, hostname = None, None

        if parts is None or parts.scheme not in ("http", "https") or not hostname:
            logger.warning(f"analyze_media blocked: invalid URL {media_url!r}")
            return ""
        if hostname not in ALLOWED_MEDIA_DOMAINS:
            logger.warning(f"analyze_media blocked: domain {hostname!r} not in allowlist")
            return ""

        context = (
            f'This media comes from a tweet with the following text: "{tweet_text}". '
            if tweet_text
            else ""
        )
        if media_type == "video":
            prompt = (
                f"{context}Describe in detail what this video thumbnail shows "
                "(subject, context, important visual elements)."
            )
        else:
            prompt = (
                f"{context}Describe in detail the content of this image "
                "(subject, visible text, context, important elements)."
            )

        client = self._get_openai()
        try:
            response = await client.chat.completions.create(
                model=self._vision_model,
                messages=[
                    {
                        "role": "user",
                        "content": [
                            {"type": "text", "text": prompt},
                            {"type": "image_url", "image_url": {"url": media_url}},
                        ],
                    }
                ],
                max_tokens=512,
                timeout=self._vision_timeout,
            )
        except Exception as e:
            error = classify_error(e, GROK_SERVICE_ID, timeout=self._vision_timeout)
            if error.kind is ErrorKind.AUTH:
                raise error from e
            logger.warning(f"analyze_media failed for {media_url}: {error}")
            return ""

        if not response.choices:
            return ""
        content = response.choices[0].message.content
        return content.strip() if content else ""

    def get_status(self) -> dict[str, Any]:
        """Get health status of the upstream guard."""
        return {
            "model": self._model,
            "circuit_breaker": self._circuit_breaker.get_status(),
        }

    async def close(self) -> None:
        """Close the HTTP client and cleanup resources."""
        if self._http_client:
            await self._http_client.aclose()
            self._http_client = None
            self._openai = None
        logger.debug("GrokClient closed")

    async def __aenter__(self) -> "GrokClient":
        """Async context manager entry."""
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        """Async context manager exit."""
        await self.close()
