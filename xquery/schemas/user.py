"""
User profile model returned by get_user_profile.
"""

from pydantic import BaseModel

from xquery.schemas.tweet import Count, Flag, Tweet


class UserProfile(BaseModel):
    username: str
    display_name: str
    bio: str | None = None
    location: str | None = None
    website: str | None = None
    verified: Flag  # any verification badge
    profile_image_url: str | None = None
    banner_url: str | None = None
    followers_count: Count
    following_count: Count | None = None
    tweet_count: Count | None = None
    created_at: str | None = None
    pinned_tweet: Tweet | None = None
