"""
MCP server: registers the twelve tools on a FastMCP instance.

Every tool goes through run_tool(), which turns any failure into an MCP
error reply and logs it according to its kind.
"""

from typing import Annotated, Any

from mcp.server.fastmcp import FastMCP
from pydantic import Field

from xquery import tools
from xquery.schemas.user import UserProfile
from xquery.services.cache import TtlCache
from xquery.services.client import GrokClient
from xquery.utils import run_tool

SERVER_NAME = "mcp-x-query"

_Date = Annotated[str, Field(pattern=r"^\d{4}-\d{2}-\d{2}$")]
FromDate = Annotated[_Date | None, Field(description="Start date in YYYY-MM-DD format")]
ToDate = Annotated[_Date | None, Field(description="End date in YYYY-MM-DD format")]
TweetRef = Annotated[str, Field(description="Tweet ID or full URL (x.com/twitter.com)")]
Username = Annotated[str, Field(description="Twitter/X username (with or without @)")]
MaxResults = Annotated[
    int, Field(ge=1, le=100, description="Maximum number of tweets to return (default: 10)")
]
EnrichMedia = Annotated[
    bool,
    Field(
        description="When true, each tweet's media items are analysed with Grok Vision "
        "and a media_summary field is added. Increases latency."
    ),
]


def create_server(
    client: GrokClient,
    trending_cache: TtlCache[str, dict] | None = None,
    profile_cache: TtlCache[str, UserProfile] | None = None,
) -> FastMCP:
    """Build the MCP server around one shared GrokClient."""
    mcp = FastMCP(SERVER_NAME)

    @mcp.tool(
        name="get_tweet",
        description="Retrieve a single tweet by its ID or URL (full data: media, quoted tweet, metrics)",
    )
    async def get_tweet(tweet_id_or_url: TweetRef) -> dict[str, Any]:
        return await run_tool("get_tweet", tools.get_tweet(client, tweet_id_or_url))

    @mcp.tool(
        name="get_tweet_replies",
        description="Get replies to a tweet by its ID or URL, with optional date range (from_date/to_date)",
    )
    async def get_tweet_replies(
        tweet_id_or_url: TweetRef,
        max_results: MaxResults = 10,
        from_date: FromDate = None,
        to_date: ToDate = None,
    ) -> dict[str, Any]:
        return await run_tool(
            "get_tweet_replies",
            tools.get_tweet_replies(client, tweet_id_or_url, max_results, from_date, to_date),
        )

    @mcp.tool(
        name="get_user_tweets",
        description="Get recent tweets from a Twitter/X user, with optional date range "
        "and enrich_media (Grok Vision analysis)",
    )
    async def get_user_tweets(
        username: Username,
        max_results: MaxResults = 10,
        from_date: FromDate = None,
        to_date: ToDate = None,
        enrich_media: EnrichMedia = False,
    ) -> dict[str, Any]:
        return await run_tool(
            "get_user_tweets",
            tools.get_user_tweets(
                client, username, max_results, from_date, to_date, enrich_media
            ),
        )

    @mcp.tool(
        name="get_user_profile",
        description="Get the profile information of a Twitter/X user",
    )
    async def get_user_profile(username: Username) -> dict[str, Any]:
        return await run_tool(
            "get_user_profile",
            tools.get_user_profile(client, username, cache=profile_cache),
        )

    @mcp.tool(
        name="search_tweets",
        description="Search Twitter/X for tweets matching a query, with optional date range "
        "and enrich_media (Grok Vision analysis)",
    )
    async def search_tweets(
        query: Annotated[str, Field(description="Search query (supports Twitter search operators)")],
        max_results: MaxResults = 10,
        from_date: FromDate = None,
        to_date: ToDate = None,
        enrich_media: EnrichMedia = False,
    ) -> dict[str, Any]:
        return await run_tool(
            "search_tweets",
            tools.search_tweets(client, query, max_results, from_date, to_date, enrich_media),
        )

    @mcp.tool(
        name="get_thread",
        description="Retrieve the full conversation thread for any tweet. "
        "Use verbose:true for complete fields (media, quoted_tweet, etc.)",
    )
    async def get_thread(
        tweet_id_or_url: Annotated[
            str, Field(description="ID or URL of any tweet in the thread (start, middle, or end)")
        ],
        max_tweets: Annotated[
            Annotated[int, Field(ge=1, le=50)] | None,
            Field(
                description="Maximum number of tweets to return (default: 20, verbose: 10 max)",
            ),
        ] = None,
        verbose: Annotated[
            bool, Field(description="Return full tweet objects instead of the lean thread shape")
        ] = False,
    ) -> dict[str, Any]:
        return await run_tool(
            "get_thread", tools.get_thread(client, tweet_id_or_url, max_tweets, verbose)
        )

    @mcp.tool(
        name="get_trending",
        description="Get currently trending topics on Twitter/X, with optional category "
        "and country/region filter",
    )
    async def get_trending(
        category: Annotated[
            str | None,
            Field(description="Optional category filter (e.g. 'technology', 'sports', 'politics')"),
        ] = None,
        country: Annotated[
            str | None, Field(description="Optional country or region (e.g. 'France', 'Japan')")
        ] = None,
    ) -> dict[str, Any]:
        return await run_tool(
            "get_trending",
            tools.get_trending(client, category, country, cache=trending_cache),
        )

    @mcp.tool(
        name="analyze_sentiment",
        description="Analyze the sentiment of tweets about a topic or query: returns overall "
        "sentiment, score, breakdown, dominant topics/emotions, and representative tweets",
    )
    async def analyze_sentiment(
        query: Annotated[
            str, Field(description="Topic or search query to analyze (supports Twitter operators)")
        ],
        max_tweets: Annotated[
            int, Field(ge=5, le=100, description="Number of tweets to analyze (default: 30)")
        ] = 30,
        from_date: FromDate = None,
        to_date: ToDate = None,
        language: Annotated[
            str | None, Field(description="Filter by language code (e.g. 'fr', 'en')")
        ] = None,
    ) -> dict[str, Any]:
        return await run_tool(
            "analyze_sentiment",
            tools.analyze_sentiment(client, query, max_tweets, from_date, to_date, language),
        )

    @mcp.tool(
        name="analyze_thread",
        description="Retrieve a full Twitter/X thread and analyze its sentiment, "
        "key arguments, topics, and tone",
    )
    async def analyze_thread(
        tweet_id_or_url: Annotated[
            str, Field(description="ID or URL of any tweet in the thread to analyze")
        ],
        max_tweets: Annotated[
            int,
            Field(
                ge=2,
                le=50,
                description="Maximum number of thread tweets to include in the analysis (default: 20)",
            ),
        ] = 20,
    ) -> dict[str, Any]:
        return await run_tool(
            "analyze_thread", tools.analyze_thread(client, tweet_id_or_url, max_tweets)
        )

    @mcp.tool(
        name="extract_links",
        description="Extract and summarize all external links shared by a Twitter/X user, "
        "with optional date range",
    )
    async def extract_links(
        username: Annotated[
            str, Field(description="Twitter/X username to scan (with or without @)")
        ],
        max_tweets: Annotated[
            int,
            Field(
                ge=1,
                le=100,
                description="Number of recent tweets to scan for links (default: 50, max: 100)",
            ),
        ] = 50,
        from_date: FromDate = None,
        to_date: ToDate = None,
    ) -> dict[str, Any]:
        return await run_tool(
            "extract_links",
            tools.extract_links(client, username, max_tweets, from_date, to_date),
        )

    @mcp.tool(
        name="get_user_mentions",
        description="Get recent tweets mentioning a Twitter/X user (@username), "
        "with optional date range",
    )
    async def get_user_mentions(
        username: Annotated[
            str,
            Field(description="Twitter/X username to find mentions for (with or without @)"),
        ],
        max_results: MaxResults = 10,
        from_date: FromDate = None,
        to_date: ToDate = None,
    ) -> dict[str, Any]:
        return await run_tool(
            "get_user_mentions",
            tools.get_user_mentions(client, username, max_results, from_date, to_date),
        )

    @mcp.tool(
        name="get_list_tweets",
        description="Get recent tweets from a Twitter/X list by its ID or URL, with optional "
        "date range and cursor-based pagination",
    )
    async def get_list_tweets(
        list_id: Annotated[
            str,
            Field(
                description='Twitter/X list ID (numeric, e.g. "1234567890") or full list URL '
                '(e.g. "https://x.com/i/lists/1234567890")'
            ),
        ],
        max_results: MaxResults = 10,
        from_date: FromDate = None,
        to_date: ToDate = None,
        cursor: Annotated[
            Annotated[str, Field(pattern=r"^\d+$")] | None,
            Field(
                description="Pagination cursor: tweet ID returned as next_cursor in the previous "
                "response. Pass it to fetch the next (older) page."
            ),
        ] = None,
        enrich_media: EnrichMedia = False,
    ) -> dict[str, Any]:
        return await run_tool(
            "get_list_tweets",
            tools.get_list_tweets(
                client, list_id, max_results, from_date, to_date, cursor, enrich_media
            ),
        )

    return mcp
