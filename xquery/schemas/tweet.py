"""
Tweet response models.

These models double as the structured-output schema sent to Grok (see
GrokClient.query) and as the validator for its answer. Grok is loose with
types, so a few fields are normalized before validation:

- tweet ids may come back as numbers
- media types may use Twitter API names ("photo", "animated_gif")
- in_reply_to is sometimes "" instead of null for non-replies
- counts may be fractional approximations, and profile flags may be strings
"""

from typing import Annotated, Any, Literal

from pydantic import BaseModel, BeforeValidator, Field


def _coerce_id(value: Any) -> Any:
    if isinstance(value, (int, float)) and not isinstance(value, bool):
        return str(int(value))
    return value


def _coerce_media_type(value: Any) -> str:
    if not isinstance(value, str):
        return "image"
    aliases = {"photo": "image", "animated_gif": "gif"}
    value = aliases.get(value.lower(), value.lower())
    return value if value in ("image", "video", "gif") else "image"


def _object_or_none(value: Any) -> Any:
    return value if isinstance(value, dict) else None


def _coerce_flag(value: Any) -> Any:
    if value is None:
        return False
    if isinstance(value, str):
        return value.strip().lower() in ("true", "1", "yes")
    return value


TweetId = Annotated[str, BeforeValidator(_coerce_id)]
MediaType = Annotated[Literal["image", "video", "gif"], BeforeValidator(_coerce_media_type)]
# Grok sometimes returns "true"/"false" strings or null for flags
Flag = Annotated[bool, BeforeValidator(_coerce_flag)]
# Approximate counts can come back fractional
Count = int | float


class Media(BaseModel):
    """An image, video or GIF attached to a tweet."""

    type: MediaType
    url: str
    thumbnail_url: str | None = None  # video only
    alt_text: str | None = None
    media_summary: str | None = None  # filled in by vision enrichment, not by x_search


class Author(BaseModel):
    username: str
    display_name: str
    verified: bool
    profile_image_url: str | None = None


class InReplyTo(BaseModel):
    tweet_id: str | None = None
    username: str


class Metrics(BaseModel):
    likes: Count
    retweets: Count
    replies: Count
    views: Count | None = None
    bookmarks: Count | None = None


class QuotedTweet(BaseModel):
    """Quoted tweet, flat: it never carries its own quoted_tweet."""

    id: TweetId
    url: str
    author: Author
    text: str
    created_at: str
    metrics: Metrics
    media: list[Media] | None = None
    is_retweet: bool


class Tweet(BaseModel):
    """Full tweet shape used by most tools."""

    id: TweetId
    url: str
    author: Author
    text: str
    created_at: str  # ISO 8601
    metrics: Metrics
    media: list[Media] | None = None
    quoted_tweet: QuotedTweet | None = None
    in_reply_to: Annotated[InReplyTo | None, BeforeValidator(_object_or_none)] = None
    is_retweet: bool
    language: str | None = None  # BCP-47


class TweetArray(BaseModel):
    tweets: list[Tweet]


class TweetPage(TweetArray):
    """A page of tweets; pass next_cursor back to fetch older ones."""

    next_cursor: str | None = None


class ThreadAuthor(BaseModel):
    username: str
    display_name: str
    verified: bool


class ThreadMetrics(BaseModel):
    likes: Count
    retweets: Count
    replies: Count


class ThreadTweet(BaseModel):
    """Lean tweet shape for threads, keeps long threads inside the output budget."""

    id: TweetId
    url: str
    author: ThreadAuthor
    text: str
    created_at: str
    metrics: ThreadMetrics
    in_reply_to: Annotated[InReplyTo | None, BeforeValidator(_object_or_none)] = None


class Thread(BaseModel):
    """Thread tweets, root first."""

    tweets: list[ThreadTweet] = Field(description="Tweets sorted chronologically")
