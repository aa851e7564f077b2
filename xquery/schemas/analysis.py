"""
Analysis result types using Pydantic models.

Trending topics, sentiment analysis, thread analysis and link extraction.
"""

from typing import Literal

from pydantic import BaseModel, Field

from xquery.schemas.tweet import Count, TweetId

Sentiment = Literal["positive", "negative", "neutral"]
OverallSentiment = Literal["positive", "negative", "neutral", "mixed"]


class TrendingTopic(BaseModel):
    """A single trending topic."""

    name: str
    tweet_count: Count | None = None
    category: str | None = None
    description: str | None = None


class TrendingTopics(BaseModel):
    topics: list[TrendingTopic]


class SentimentBreakdown(BaseModel):
    """Percentage split of the analyzed corpus."""

    positive_pct: float = Field(description="Percentage of positive tweets (0-100)")
    negative_pct: float = Field(description="Percentage of negative tweets (0-100)")
    neutral_pct: float = Field(description="Percentage of neutral tweets (0-100)")


class NotableTweet(BaseModel):
    """A representative tweet picked from the corpus."""

    id: TweetId
    url: str
    text: str
    author: str = Field(description="Twitter username (without @)")
    sentiment: Sentiment
    reason: str = Field(description="Why this tweet is representative or notable")


class SentimentAnalysis(BaseModel):
    query: str
    total_tweets_analyzed: int
    overall_sentiment: OverallSentiment
    sentiment_score: float = Field(description="From -1.0 (very negative) to 1.0 (very positive)")
    sentiment_breakdown: SentimentBreakdown
    dominant_topics: list[str]
    dominant_emotions: list[str]
    summary: str
    notable_tweets: list[NotableTweet]


class ThreadAnalysis(BaseModel):
    thread_author: str = Field(description="Username of the thread starter (without @)")
    root_tweet_id: TweetId
    root_tweet_url: str
    total_tweets: int
    overall_sentiment: OverallSentiment
    sentiment_score: float = Field(description="From -1.0 (very negative) to 1.0 (very positive)")
    sentiment_breakdown: SentimentBreakdown
    main_topics: list[str]
    key_arguments: list[str]
    summary: str
    notable_tweets: list[NotableTweet]


class ExtractedLink(BaseModel):
    """An external link shared by a user."""

    url: str
    domain: str = Field(description="Domain name, e.g. arxiv.org")
    title: str | None = None
    summary: str = Field(description="What the link is about (1-2 sentences)")
    shared_at: str | None = None
    tweet_id: TweetId | None = None


class LinkExtract(BaseModel):
    username: str
    total_links: int
    links: list[ExtractedLink]
