"""
List tool: get_list_tweets with cursor pagination.
"""

from xquery.schemas.tweet import TweetArray, TweetPage
from xquery.services.client import GrokClient, XSearchParams
from xquery.tools.media import enrich_tweets_media
from xquery.utils import compute_next_cursor, date_range_clause, extract_list_id


async def get_list_tweets(
    client: GrokClient,
    list_id: str,
    max_results: int = 10,
    from_date: str | None = None,
    to_date: str | None = None,
    cursor: str | None = None,
    enrich_media: bool = False,
) -> TweetPage:
    """
    Recent tweets from a list, newest first.

    next_cursor is the id of the oldest tweet on the page; passing it back as
    cursor fetches strictly older tweets.
    """
    list_id = extract_list_id(list_id)

    cursor_clause = (
        f" Only return tweets with a numeric ID strictly less than {cursor}"
        " (pagination: older tweets only)."
        if cursor
        else ""
    )

    prompt = f"""Retrieve up to {max_results} recent tweets from Twitter/X list with ID {list_id}{date_range_clause(from_date, to_date)}.{cursor_clause}
Return as a JSON object with a "tweets" array.
For each tweet include: id, url, author (username, display_name, verified), text, created_at,
metrics (likes, retweets, replies, views if available), media if any, is_retweet, language.
Sort by most recent first."""

    result = await client.query(
        prompt,
        TweetArray,
        "tweet_array",
        XSearchParams(from_date=from_date, to_date=to_date),
    )

    tweets = result.tweets
    if enrich_media:
        tweets = await enrich_tweets_media(client, tweets)

    return TweetPage(tweets=tweets, next_cursor=compute_next_cursor(tweets))
