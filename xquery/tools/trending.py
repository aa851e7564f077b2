"""
Trending tool: get_trending, cached per category and country.
"""

from loguru import logger

from xquery.schemas.analysis import TrendingTopics
from xquery.services.cache import TtlCache, make_key
from xquery.services.client import GrokClient
from xquery.utils import escape_for_prompt


async def get_trending(
    client: GrokClient,
    category: str | None = None,
    country: str | None = None,
    cache: TtlCache[str, dict] | None = None,
) -> TrendingTopics:
    """
    Currently trending topics, optionally filtered.

    The cache stores plain dicts so that PersistentTtlCache can write them
    to disk; hits are validated back into TrendingTopics.
    """
    cache_key = make_key("trending", category, country)

    if cache is not None:
        cached = cache.get(cache_key)
        if cached is not None:
            logger.debug(f"get_trending cache hit for '{cache_key}'")
            return TrendingTopics.model_validate(cached)

    category_clause = (
        f' in the "{escape_for_prompt(category)}" category' if category else ""
    )
    country_clause = f" in {escape_for_prompt(country)}" if country else ""

    prompt = f"""What are the current trending topics on Twitter/X{category_clause}{country_clause} right now?
Return as a JSON object with a "topics" array of trending topics.
For each topic include: name (the trending hashtag or topic),
tweet_count (approximate number of tweets if known), category (if classifiable),
and a brief description of why it's trending.
Return at least 10 trending topics if available."""

    # Trending is platform-wide, no x_search handle filter
    result = await client.query(prompt, TrendingTopics, "trending_topics")

    if cache is not None:
        cache.set(cache_key, result.model_dump(mode="json"))
    return result
