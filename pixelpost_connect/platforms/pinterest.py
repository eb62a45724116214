from typing import Any, Dict, Optional
from .base import PlatformPublisher, ProfileParser
from ..models.oauth_models import PostContent, PostResult, PublishTargets, UserProfile

PINS_URL = "https://api.pinterest.com/v5/pins"

class PinterestProfileParser(ProfileParser):
    platform = "pinterest"

    def parse(self, data: Dict[str, Any]) -> Optional[UserProfile]:
        # user_account carries no numeric id; the username is the stable identifier
        if not data.get("username"):
            return None
        return UserProfile(
            user_id=data["username"],
            username=data["username"],
            display_name=data["username"],
            profile_picture=data.get("profile_image")
        )

class PinterestPublisher(PlatformPublisher):
    platform = "pinterest"

    def validate(self, content: PostContent, targets: PublishTargets) -> Optional[str]:
        if not targets.pinterest_board_id:
            return "Pinterest Board ID required"
        if not content.image_url:
            return "Pinterest requires an image"
        return None

    async def _publish(self, access_token: str, content: PostContent,
                       targets: PublishTargets) -> PostResult:
        pin = {
            "board_id": targets.pinterest_board_id,
            "media_source": {
                "source_type": "image_url",
                "url": content.image_url
            },
            "description": content.caption
        }
        if content.link:
            pin["link"] = content.link

        await self.rate_limiter.wait("pins")
        response = await self.api_client.post(PINS_URL, json_body=pin, headers=self.bearer(access_token))
        if not response.ok:
            return self.failure(response.error_message("message") or "Failed to create pin")

        data = response.data if isinstance(response.data, dict) else {}
        return self.success(data.get("id"))
