import re
import time
from typing import Any, Awaitable, Iterable

from loguru import logger
from mcp.server.fastmcp.exceptions import ToolError
from pydantic import BaseModel

from xquery.exceptions import InvalidInputError
from xquery.services.errors import (
    AuthenticationError,
    CircuitOpenError,
    RateLimitError,
)

_TWEET_URL = re.compile(r"(?:x\.com|twitter\.com)/\w+/status/(\d+)")
_LIST_URL = re.compile(r"(?:x\.com|twitter\.com)/i/lists/(\d+)")
_NUMERIC = re.compile(r"^\d+$")


def extract_tweet_id(value: str) -> str:
    """
    Extract a tweet ID from a status URL, or validate a raw numeric ID.

    Supports:
    - https://x.com/user/status/1234567890
    - https://twitter.com/user/status/1234567890
    - 1234567890
    """
    match = _TWEET_URL.search(value)
    if match:
        return match.group(1)
    # Anything else must be purely numeric, it ends up inside a prompt
    tweet_id = value.strip()
    if not _NUMERIC.match(tweet_id):
        raise InvalidInputError(
            f'Invalid tweet ID: "{tweet_id}". '
            "Expected a numeric ID or a Twitter/X status URL."
        )
    return tweet_id


def extract_list_id(value: str) -> str:
    """Extract a list ID from an x.com/i/lists/<id> URL, or validate a raw ID."""
    match = _LIST_URL.search(value)
    if match:
        return match.group(1)
    list_id = value.strip()
    if not _NUMERIC.match(list_id):
        raise InvalidInputError(
            f'Invalid list ID: "{list_id}". '
            "Expected a numeric ID or a Twitter/X list URL."
        )
    return list_id


def sanitize_username(value: str) -> str:
    """Strip whitespace and a leading @."""
    return value.strip().removeprefix("@")


def escape_for_prompt(value: str) -> str:
    """Replace angle brackets so user text cannot close a <query> delimiter."""
    return value.strip().replace("<", "‹").replace(">", "›")


def date_range_clause(from_date: str | None, to_date: str | None) -> str:
    if not from_date and not to_date:
        return ""
    return f" between {from_date or 'the beginning'} and {to_date or 'now'}"


def compute_next_cursor(tweets: Iterable[Any]) -> str | None:
    """
    Return the numerically smallest tweet id (the oldest tweet), or None.

    Non-numeric ids are skipped.
    """
    cursor: int | None = None
    for tweet in tweets:
        try:
            tweet_id = int(tweet.id)
        except (TypeError, ValueError):
            continue
        if cursor is None or tweet_id < cursor:
            cursor = tweet_id
    return None if cursor is None else str(cursor)


async def run_tool(tool_name: str, call: Awaitable[BaseModel]) -> dict[str, Any]:
    """
    Await a tool call and convert the outcome for the MCP host.

    Features:
    - Logs tool entry, duration and outcome
    - Logs failures differently per error kind
    - Re-raises every failure as ToolError so the host gets an isError reply
    """
    log = logger.bind(tool=tool_name)
    started = time.monotonic()
    log.debug(f"Entering {tool_name}")

    try:
        result = await call
    except AuthenticationError as e:
        # Operator must fix the key
        log.error(f"Authentication error: {e}")
        raise ToolError(f"Error: {e}") from e
    except RateLimitError as e:
        log.warning(f"Rate limit exceeded: {e}")
        raise ToolError(f"Error: {e}") from e
    except CircuitOpenError as e:
        log.warning(
            f"Circuit open, Grok API unavailable "
            f"(retry in {e.reset_after_seconds:.1f}s)"
        )
        raise ToolError(f"Error: {e}") from e
    except Exception as e:
        log.error(f"Tool error: {type(e).__name__}: {e}")
        raise ToolError(f"Error: {e}") from e

    log.info(f"{tool_name} succeeded in {time.monotonic() - started:.2f}s")
    return result.model_dump(mode="json")
