from typing import Any, Dict, List, Optional
from .base import PlatformPublisher, ProfileParser
from ..models.oauth_models import PostContent, PostResult, PublishTargets, UserProfile

TWEET_URL = "https://api.twitter.com/2/tweets"
MAX_TWEET_LENGTH = 280
ELLIPSIS = "..."

def compose_tweet_text(caption: str, hashtags: Optional[List[str]] = None) -> str:
    """
    Build tweet text: caption, a blank line, then the hashtags.

    Text over 280 characters is cut so that it ends in '...' and is exactly
    280 characters long.
    """
    text = caption
    if hashtags:
        text += "\n\n" + " ".join(hashtags)
    if len(text) > MAX_TWEET_LENGTH:
        text = text[:MAX_TWEET_LENGTH - len(ELLIPSIS)] + ELLIPSIS
    return text

class TwitterProfileParser(ProfileParser):
    platform = "twitter"

    def parse(self, data: Dict[str, Any]) -> Optional[UserProfile]:
        user = data.get("data") or {}
        if not user.get("id"):
            return None
        return UserProfile(
            user_id=str(user["id"]),
            username=user.get("username") or str(user["id"]),
            display_name=user.get("name"),
            profile_picture=user.get("profile_image_url")
        )

class TwitterPublisher(PlatformPublisher):
    platform = "twitter"

    async def _publish(self, access_token: str, content: PostContent,
                       targets: PublishTargets) -> PostResult:
        await self.rate_limiter.wait("tweets")
        response = await self.api_client.post(
            TWEET_URL,
            json_body={"text": compose_tweet_text(content.caption, content.hashtags)},
            headers=self.bearer(access_token)
        )
        if not response.ok:
            return self.failure(response.error_message("detail", "title") or "Failed to tweet")

        data = response.data if isinstance(response.data, dict) else {}
        return self.success((data.get("data") or {}).get("id"))
