from typing import Any, Dict, Optional
from .base import PlatformPublisher, ProfileParser
from ..models.oauth_models import PostContent, PostResult, PublishTargets, UserProfile

GRAPH_URL = "https://graph.facebook.com/v18.0"

class FacebookProfileParser(ProfileParser):
    platform = "facebook"

    def parse(self, data: Dict[str, Any]) -> Optional[UserProfile]:
        if not data.get("id"):
            return None
        picture = (data.get("picture") or {}).get("data") or {}
        return UserProfile(
            user_id=str(data["id"]),
            username=data.get("name") or str(data["id"]),
            display_name=data.get("name"),
            profile_picture=picture.get("url")
        )

class FacebookPublisher(PlatformPublisher):
    """Posts to a Facebook Page: text to the feed, images to the photos edge."""

    platform = "facebook"

    def validate(self, content: PostContent, targets: PublishTargets) -> Optional[str]:
        if not targets.facebook_page_id:
            return "Facebook Page ID required"
        return None

    async def _publish(self, access_token: str, content: PostContent,
                       targets: PublishTargets) -> PostResult:
        page_id = targets.facebook_page_id
        edge = "photos" if content.image_url else "feed"

        body = {
            "access_token": access_token,
            "message": content.caption
        }
        if content.image_url:
            body["url"] = content.image_url
        if content.link:
            body["link"] = content.link

        await self.rate_limiter.wait(edge)
        response = await self.api_client.post(
            f"{GRAPH_URL}/{page_id}/{edge}",
            json_body=body,
            headers={"Content-Type": "application/json"}
        )
        if not response.ok:
            return self.failure(response.error_message("error.message") or "Failed to post")

        data = response.data if isinstance(response.data, dict) else {}
        return self.success(data.get("id") or data.get("post_id"))
