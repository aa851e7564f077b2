"""
Tweet tools: get_tweet, get_tweet_replies, search_tweets, get_thread.
"""

from loguru import logger

from xquery.exceptions import NotFoundError
from xquery.schemas.tweet import Thread, Tweet, TweetArray
from xquery.services.client import GrokClient, XSearchParams
from xquery.tools.media import enrich_tweet_media, enrich_tweets_media
from xquery.utils import date_range_clause, escape_for_prompt, extract_tweet_id

VERBOSE_THREAD_CAP = 10


async def get_tweet(client: GrokClient, tweet_id_or_url: str) -> Tweet:
    """Retrieve one tweet (media described by the vision model)."""
    tweet_id = extract_tweet_id(tweet_id_or_url)

    # Grok must answer id="" for a missing tweet instead of inventing one
    prompt = f"""Retrieve the tweet with ID {tweet_id} from Twitter/X.
IMPORTANT: If the tweet does not exist, is deleted, or is inaccessible, return an object with id set to empty string "" and all other fields as empty/zero values. Do NOT fabricate tweet content.
If found, include: id (must be "{tweet_id}"), url, author (username, display_name, verified), text, created_at,
metrics (likes, retweets, replies, views/bookmarks if available), media if any, in_reply_to if reply, is_retweet, language.
The tweet URL should be https://x.com/<username>/status/{tweet_id}."""

    result = await client.query(prompt, Tweet, "tweet")

    if not result.id or result.id != tweet_id:
        raise NotFoundError(
            f'Tweet not found: ID "{tweet_id}" does not exist, '
            "has been deleted, or is not accessible."
        )

    return await enrich_tweet_media(client, result)


async def get_tweet_replies(
    client: GrokClient,
    tweet_id_or_url: str,
    max_results: int = 10,
    from_date: str | None = None,
    to_date: str | None = None,
) -> TweetArray:
    """Most engaged replies to a tweet."""
    tweet_id = extract_tweet_id(tweet_id_or_url)

    prompt = f"""Find the replies to tweet ID {tweet_id} on Twitter/X{date_range_clause(from_date, to_date)}.
Return up to {max_results} replies as a JSON object with a "tweets" array.
Each reply should include: id, url, author (username, display_name, verified), text, created_at,
metrics (likes, retweets, replies), in_reply_to (tweet_id: "{tweet_id}"), is_retweet: false.
Sort replies by engagement (most liked/replied first)."""

    # Replies come from any account, no handle filter
    return await client.query(
        prompt,
        TweetArray,
        "tweet_array",
        XSearchParams(from_date=from_date, to_date=to_date),
    )


async def search_tweets(
    client: GrokClient,
    query: str,
    max_results: int = 10,
    from_date: str | None = None,
    to_date: str | None = None,
    enrich_media: bool = False,
) -> TweetArray:
    """Full-text search (Twitter operators supported)."""
    prompt = f"""Search Twitter/X for tweets matching the query below{date_range_clause(from_date, to_date)}.
<query>{escape_for_prompt(query)}</query>
Return up to {max_results} relevant tweets as a JSON object with a "tweets" array.
For each tweet include: id, url, author (username, display_name, verified), text, created_at,
metrics (likes, retweets, replies, views if available), media if any, is_retweet, language.
Sort by relevance and engagement."""

    result = await client.query(
        prompt,
        TweetArray,
        "tweet_array",
        XSearchParams(from_date=from_date, to_date=to_date),
    )
    if enrich_media:
        result.tweets = await enrich_tweets_media(client, result.tweets)
    return result


async def get_thread(
    client: GrokClient,
    tweet_id_or_url: str,
    max_tweets: int | None = None,
    verbose: bool = False,
) -> Thread | TweetArray:
    """
    Reconstruct the conversation thread around any tweet in it.

    The lean Thread shape is the default. verbose=True returns full tweets
    but is capped at VERBOSE_THREAD_CAP, even when a larger max is requested.
    """
    tweet_id = extract_tweet_id(tweet_id_or_url)

    requested = max_tweets or (VERBOSE_THREAD_CAP if verbose else 20)
    if verbose and requested > VERBOSE_THREAD_CAP:
        logger.debug(f"get_thread verbose capped at {VERBOSE_THREAD_CAP} (asked {requested})")
        requested = VERBOSE_THREAD_CAP

    if verbose:
        fields = """For each tweet include: id, url, author (username, display_name, verified, profile_image_url), text, created_at,
metrics (likes, retweets, replies, views, bookmarks), media (type, url, alt_text if available),
quoted_tweet (id, url, author, text, metrics) if applicable, in_reply_to if applicable, is_retweet, language."""
    else:
        fields = """For each tweet include: id, url, author (username, display_name, verified), text (max 300 chars, truncate if longer),
created_at, metrics (likes, retweets, replies), in_reply_to if applicable."""

    prompt = f"""Retrieve the conversation thread containing tweet ID {tweet_id} on Twitter/X.
Steps:
1. Find tweet ID {tweet_id}.
2. Walk UP the reply chain (follow in_reply_to) to find all ancestor tweets up to the root, regardless of author.
3. Include direct replies that are part of this conversation chain.
4. Return at most {requested} tweets total, prioritizing the direct ancestor chain (root → tweet ID {tweet_id}).

Return as a JSON object with a "tweets" array sorted chronologically (root first).
{fields}"""

    if verbose:
        result: Thread | TweetArray = await client.query(prompt, TweetArray, "tweet_array")
    else:
        result = await client.query(prompt, Thread, "thread")

    if not result.tweets:
        raise NotFoundError(
            f'Tweet not found: ID "{tweet_id}" does not exist, '
            "is private, or has been deleted."
        )
    return result
