"""
Response models for the tools.
"""

from xquery.schemas.analysis import (
    ExtractedLink,
    LinkExtract,
    NotableTweet,
    SentimentAnalysis,
    SentimentBreakdown,
    ThreadAnalysis,
    TrendingTopic,
    TrendingTopics,
)
from xquery.schemas.tweet import (
    Author,
    InReplyTo,
    Media,
    Metrics,
    QuotedTweet,
    Thread,
    ThreadTweet,
    Tweet,
    TweetArray,
    TweetPage,
)
from xquery.schemas.user import UserProfile

__all__ = [
    # Tweets
    "Author",
    "InReplyTo",
    "Media",
    "Metrics",
    "QuotedTweet",
    "Thread",
    "ThreadTweet",
    "Tweet",
    "TweetArray",
    "TweetPage",
    # Users
    "UserProfile",
    # Analysis
    "ExtractedLink",
    "LinkExtract",
    "NotableTweet",
    "SentimentAnalysis",
    "SentimentBreakdown",
    "ThreadAnalysis",
    "TrendingTopic",
    "TrendingTopics",
]
