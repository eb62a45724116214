from typing import Any, Dict, Optional
from .base import PlatformPublisher, ProfileParser
from ..models.oauth_models import PostContent, PostResult, PublishTargets, UserProfile
from ..utils.logger import get_logger

logger = get_logger(__name__)

CREATE_MEDIA_URL = "https://graph.instagram.com/me/media"
PUBLISH_MEDIA_URL = "https://graph.instagram.com/me/media_publish"

class InstagramProfileParser(ProfileParser):
    platform = "instagram"

    def parse(self, data: Dict[str, Any]) -> Optional[UserProfile]:
        if not data.get("id"):
            return None
        return UserProfile(
            user_id=str(data["id"]),
            username=data.get("username") or str(data["id"])
        )

class InstagramPublisher(PlatformPublisher):
    """
    Instagram content publishing is two-phase:
    1. Create a media container holding the caption and media URL
    2. Publish the container

    A container created in step 1 is left in place if step 2 fails.
    """

    platform = "instagram"

    def validate(self, content: PostContent, targets: PublishTargets) -> Optional[str]:
        if not content.image_url and not content.video_url:
            return "Instagram requires an image or video"
        return None

    async def create_media_container(self, access_token: str, content: PostContent) -> Dict[str, Any]:
        """
        Create a media container for an Instagram post.

        Returns:
            Dictionary with either container_id or error
        """
        params = {
            "access_token": access_token,
            "caption": content.caption
        }
        if content.image_url:
            params["image_url"] = content.image_url
        else:
            params["video_url"] = content.video_url
            params["media_type"] = "VIDEO"

        await self.rate_limiter.wait("media")
        response = await self.api_client.post(CREATE_MEDIA_URL, params=params)
        container_id = response.data.get("id") if isinstance(response.data, dict) else None
        if not response.ok or not container_id:
            return {"error": response.error_message("error.message") or "Failed to create media"}
        return {"container_id": str(container_id)}

    async def publish_media(self, access_token: str, container_id: str) -> Dict[str, Any]:
        """
        Publish media using container ID.

        Returns:
            Dictionary with either post_id or error
        """
        await self.rate_limiter.wait("media_publish")
        response = await self.api_client.post(
            PUBLISH_MEDIA_URL,
            params={
                "access_token": access_token,
                "creation_id": container_id
            }
        )
        if not response.ok:
            return {"error": response.error_message("error.message") or "Failed to publish"}
        return {"post_id": response.data.get("id") if isinstance(response.data, dict) else None}

    async def _publish(self, access_token: str, content: PostContent,
                       targets: PublishTargets) -> PostResult:
        container = await self.create_media_container(access_token, content)
        if "error" in container:
            return self.failure(container["error"])

        logger.debug(f"Created Instagram container {container['container_id']}")

        result = await self.publish_media(access_token, container["container_id"])
        if "error" in result:
            logger.warning(f"Instagram container {container['container_id']} left unpublished")
            return self.failure(result["error"])
        return self.success(result["post_id"])
