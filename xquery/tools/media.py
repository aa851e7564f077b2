"""
Media enrichment: attach a vision-model description to tweet media.
"""

import asyncio

from xquery.schemas.tweet import Media, Tweet
from xquery.services.client import GrokClient


async def _describe(client: GrokClient, item: Media, tweet_text: str) -> Media:
    # Videos are described from their thumbnail frame when one exists
    url = (item.thumbnail_url or item.url) if item.type == "video" else item.url
    if not url:
        return item
    summary = await client.analyze_media(url, item.type, tweet_text)
    if not summary:
        return item
    return item.model_copy(update={"media_summary": summary})


async def enrich_tweet_media(client: GrokClient, tweet: Tweet) -> Tweet:
    """Describe every media item of one tweet concurrently."""
    if not tweet.media:
        return tweet
    tweet.media = list(
        await asyncio.gather(*(_describe(client, item, tweet.text) for item in tweet.media))
    )
    return tweet


async def enrich_tweets_media(client: GrokClient, tweets: list[Tweet]) -> list[Tweet]:
    return list(await asyncio.gather(*(enrich_tweet_media(client, t) for t in tweets)))
