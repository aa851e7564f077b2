"""
mcp-x-query entry point.

Validates XAI_API_KEY (fatal when missing or malformed), builds the shared
GrokClient and caches, then serves the MCP tools over stdio. stdout belongs
to the transport, so every log line goes to stderr.
"""

import asyncio
import sys
from datetime import timedelta
from pathlib import Path

from loguru import logger

from xquery.app import create_server
from xquery.exceptions import ConfigurationError
from xquery.schemas.user import UserProfile
from xquery.services.cache import PersistentTtlCache, TtlCache
from xquery.services.circuit_breaker import CircuitBreaker, CircuitBreakerConfig
from xquery.services.client import GrokClient
from xquery.settings import Settings, global_settings, validate_api_key


def configure_logging(settings: Settings) -> None:
    """Send loguru output to stderr only."""
    logger.remove()
    logger.add(
        sys.stderr,
        level=settings.log_level.upper(),
        serialize=settings.log_json,
        backtrace=False,
    )


async def serve(settings: Settings) -> None:
    """Run the MCP server until the host closes stdin."""
    circuit_breaker = CircuitBreaker(
        config=CircuitBreakerConfig(
            failure_threshold=settings.circuit_failure_threshold,
            retry_timeout=timedelta(seconds=settings.circuit_retry_timeout),
        )
    )
    client = GrokClient(
        api_key=settings.xai_api_key,
        base_url=settings.xai_base_url,
        model=settings.grok_model,
        vision_model=settings.grok_vision_model,
        timeout=settings.grok_timeout,
        vision_timeout=settings.grok_vision_timeout,
        max_retries=settings.grok_max_retries,
        max_output_tokens=settings.grok_max_output_tokens,
        circuit_breaker=circuit_breaker,
    )
    trending_cache: PersistentTtlCache[dict] = PersistentTtlCache(
        ttl=timedelta(seconds=settings.trending_cache_ttl),
        file_path=Path(settings.cache_dir) / "trending.json",
    )
    profile_cache: TtlCache[str, UserProfile] = TtlCache(
        ttl=timedelta(seconds=settings.profile_cache_ttl)
    )

    server = create_server(client, trending_cache, profile_cache)

    try:
        logger.info("MCP server started. Listening on stdio.")
        await server.run_stdio_async()
    finally:
        logger.info(f"Shutting down, upstream status: {client.get_status()}")
        await client.close()


def main() -> None:
    configure_logging(global_settings)

    try:
        validate_api_key(global_settings.xai_api_key)
    except ConfigurationError as e:
        logger.critical(e.detail)
        sys.exit(1)

    try:
        asyncio.run(serve(global_settings))
    except KeyboardInterrupt:
        logger.info("Received interrupt signal, shutting down...")


if __name__ == "__main__":
    main()
