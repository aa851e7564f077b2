"""
Analysis tools: analyze_sentiment, analyze_thread.

A single query does both the x_search retrieval and the analysis; Grok gets
the corpus through x_search and answers with the structured result.
"""

from xquery.schemas.analysis import SentimentAnalysis, ThreadAnalysis
from xquery.services.client import GrokClient, XSearchParams
from xquery.utils import date_range_clause, escape_for_prompt, extract_tweet_id

NOTABLE_TWEET_FIELDS = (
    'id, url, text, author (username only, no @), sentiment ("positive"/"negative"/"neutral"), '
    "reason (why it's notable)"
)


async def analyze_sentiment(
    client: GrokClient,
    query: str,
    max_tweets: int = 30,
    from_date: str | None = None,
    to_date: str | None = None,
    language: str | None = None,
) -> SentimentAnalysis:
    """Collective sentiment of tweets about a topic."""
    # Language goes in as a separate instruction: lang:xx inside the quoted
    # query is easy for the model to ignore
    lang_clause = ""
    if language:
        lang = escape_for_prompt(language)
        lang_clause = (
            f'\nIMPORTANT: Restrict results to tweets written in language "{lang}" — '
            f"apply the lang:{lang} Twitter search operator to your x_search query."
        )

    prompt = f"""Search Twitter/X for {max_tweets} recent tweets about the topic below{date_range_clause(from_date, to_date)}.{lang_clause}
<query>{escape_for_prompt(query)}</query>

Analyze the sentiment of this corpus and return a structured JSON object with exactly these fields:
- query: the topic you analyzed (string)
- total_tweets_analyzed: exact count of tweets you analyzed (integer)
- overall_sentiment: one of "positive", "negative", "neutral", "mixed"
- sentiment_score: float from -1.0 (very negative) to 1.0 (very positive)
- sentiment_breakdown: object with positive_pct, negative_pct, neutral_pct (each 0–100, sum must equal 100)
- dominant_topics: array of 3–7 main sub-topics or themes found in the tweets
- dominant_emotions: array of dominant emotions detected (e.g. "excitement", "frustration", "hope", "anger", "admiration")
- summary: 2–4 sentence narrative describing the overall discourse, key opinions, and context
- notable_tweets: array of 3–5 representative tweets, each with:
    {NOTABLE_TWEET_FIELDS}

Base your analysis strictly on the tweets retrieved. Do not fabricate content."""

    return await client.query(
        prompt,
        SentimentAnalysis,
        "sentiment_analysis",
        XSearchParams(from_date=from_date, to_date=to_date),
    )


async def analyze_thread(
    client: GrokClient,
    tweet_id_or_url: str,
    max_tweets: int = 20,
) -> ThreadAnalysis:
    """Sentiment, arguments and topics of a whole thread."""
    tweet_id = extract_tweet_id(tweet_id_or_url)

    prompt = f"""Retrieve the full Twitter/X conversation thread containing tweet ID {tweet_id}.
Collect up to {max_tweets} tweets from the thread (starting with the root tweet, then key replies in chronological order).

Then analyze the thread and return a structured JSON object with exactly these fields:
- thread_author: username of the person who started the thread (no @)
- root_tweet_id: ID of the first tweet in the thread
- root_tweet_url: URL of the root tweet (https://x.com/<author>/status/<id>)
- total_tweets: number of tweets you actually analyzed
- overall_sentiment: one of "positive", "negative", "neutral", "mixed"
- sentiment_score: float from -1.0 (very negative) to 1.0 (very positive)
- sentiment_breakdown: object with positive_pct, negative_pct, neutral_pct (sum = 100)
- main_topics: array of 3–6 main topics or themes discussed across the thread
- key_arguments: array of distinct arguments or positions expressed (3–6 items)
- summary: 2–4 sentence narrative describing the thread content, tone, and main takeaways
- notable_tweets: array of 3–5 representative tweets, each with:
    {NOTABLE_TWEET_FIELDS}

Base your analysis strictly on the tweets retrieved. Do not fabricate content."""

    return await client.query(prompt, ThreadAnalysis, "thread_analysis")
