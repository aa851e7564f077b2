"""
Tool call sites. Each builds a prompt, optionally consults a cache, and
asks the shared GrokClient for a validated result.
"""

from xquery.tools.analysis import analyze_sentiment, analyze_thread
from xquery.tools.lists import get_list_tweets
from xquery.tools.trending import get_trending
from xquery.tools.tweets import get_thread, get_tweet, get_tweet_replies, search_tweets
from xquery.tools.users import (
    extract_links,
    get_user_mentions,
    get_user_profile,
    get_user_tweets,
)

__all__ = [
    "analyze_sentiment",
    "analyze_thread",
    "extract_links",
    "get_list_tweets",
    "get_thread",
    "get_trending",
    "get_tweet",
    "get_tweet_replies",
    "get_user_mentions",
    "get_user_profile",
    "get_user_tweets",
    "search_tweets",
]
