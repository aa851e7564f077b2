"""
User tools: get_user_profile, get_user_tweets, get_user_mentions, extract_links.
"""

from loguru import logger

from xquery.schemas.analysis import LinkExtract
from xquery.schemas.tweet import TweetArray
from xquery.schemas.user import UserProfile
from xquery.services.cache import TtlCache, make_key
from xquery.services.client import GrokClient, XSearchParams
from xquery.tools.media import enrich_tweets_media
from xquery.utils import date_range_clause, sanitize_username


async def get_user_profile(
    client: GrokClient,
    username: str,
    cache: TtlCache[str, UserProfile] | None = None,
) -> UserProfile:
    """Public profile of a user, cached per username when a cache is given."""
    username = sanitize_username(username)
    cache_key = make_key("profile", username)

    if cache is not None:
        cached = cache.get(cache_key)
        if cached is not None:
            logger.debug(f"get_user_profile cache hit for @{username}")
            return cached

    prompt = f"""Retrieve the Twitter/X profile information for @{username}.
Return as a JSON object with: username, display_name, bio, location (if available),
website (if available), verified (blue checkmark or other verification), profile_image_url (if available),
banner_url (if available), followers_count, following_count, tweet_count, created_at (account creation date if known),
and pinned_tweet (if they have one pinned)."""

    profile = await client.query(
        prompt,
        UserProfile,
        "user_profile",
        XSearchParams(allowed_x_handles=[username]),
    )

    if cache is not None:
        cache.set(cache_key, profile)
    return profile


async def get_user_tweets(
    client: GrokClient,
    username: str,
    max_results: int = 10,
    from_date: str | None = None,
    to_date: str | None = None,
    enrich_media: bool = False,
) -> TweetArray:
    """Recent tweets and retweets from a user, newest first."""
    username = sanitize_username(username)

    prompt = f"""Retrieve up to {max_results} recent tweets from @{username} on Twitter/X{date_range_clause(from_date, to_date)}.
Return as a JSON object with a "tweets" array.
Include original tweets and retweets. For each tweet include: id, url, author (username: "{username}", display_name, verified),
text, created_at, metrics (likes, retweets, replies, views if available), media if any, is_retweet.
Sort by most recent first."""

    result = await client.query(
        prompt,
        TweetArray,
        "tweet_array",
        XSearchParams(
            allowed_x_handles=[username], from_date=from_date, to_date=to_date
        ),
    )
    if enrich_media:
        result.tweets = await enrich_tweets_media(client, result.tweets)
    return result


async def get_user_mentions(
    client: GrokClient,
    username: str,
    max_results: int = 10,
    from_date: str | None = None,
    to_date: str | None = None,
) -> TweetArray:
    """Tweets from other accounts mentioning a user."""
    username = sanitize_username(username)

    prompt = f"""Find up to {max_results} recent tweets mentioning @{username} on Twitter/X{date_range_clause(from_date, to_date)}.
Return as a JSON object with a "tweets" array.
For each tweet include: id, url, author (username, display_name, verified), text, created_at,
metrics (likes, retweets, replies, views if available), media if any, is_retweet, language.
Only return tweets from other accounts that mention @{username} — exclude tweets authored by @{username} themselves.
Sort by most recent first."""

    # Mentions come from any account, no handle filter
    return await client.query(
        prompt,
        TweetArray,
        "tweet_array",
        XSearchParams(from_date=from_date, to_date=to_date),
    )


async def extract_links(
    client: GrokClient,
    username: str,
    max_tweets: int = 50,
    from_date: str | None = None,
    to_date: str | None = None,
) -> LinkExtract:
    """External links shared by a user, deduplicated and summarized."""
    username = sanitize_username(username)

    prompt = f"""Retrieve the {max_tweets} most recent tweets from @{username} on Twitter/X{date_range_clause(from_date, to_date)}.

Extract every external URL shared in those tweets (ignore t.co wrappers — resolve to the final destination URL).
Exclude Twitter/X internal links (x.com, twitter.com) and media attachments.

Return a JSON object with:
- username: "{username}"
- total_links: exact count of distinct external links found
- links: array of all links, each with:
    url: full resolved URL
    domain: domain name only (e.g. "arxiv.org", "reuters.com")
    title: page title or anchor text if available (omit if unknown)
    summary: 1–2 sentences describing what the link is about, based on context from the tweet text
    shared_at: ISO 8601 timestamp of the tweet (omit if unknown)
    tweet_id: ID of the tweet that shared this link (omit if unknown)

Deduplicate: if the same URL appears in multiple tweets, include it once with the earliest shared_at.
If no external links are found, return total_links: 0 and an empty links array."""

    return await client.query(
        prompt,
        LinkExtract,
        "link_extract",
        XSearchParams(
            allowed_x_handles=[username], from_date=from_date, to_date=to_date
        ),
    )
