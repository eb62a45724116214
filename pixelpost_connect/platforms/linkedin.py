from typing import Any, Dict, Optional
from .base import PlatformPublisher, ProfileParser
from ..models.oauth_models import PostContent, PostResult, PublishTargets, UserProfile

UGC_POSTS_URL = "https://api.linkedin.com/v2/ugcPosts"

def _localized(field: Any) -> str:
    if not isinstance(field, dict):
        return ""
    return (field.get("localized") or {}).get("en_US") or ""

class LinkedInProfileParser(ProfileParser):
    platform = "linkedin"

    def parse(self, data: Dict[str, Any]) -> Optional[UserProfile]:
        if not data.get("id"):
            return None
        full_name = f"{_localized(data.get('firstName'))} {_localized(data.get('lastName'))}".strip()
        return UserProfile(
            user_id=str(data["id"]),
            username=full_name or str(data["id"]),
            display_name=full_name or None
        )

class LinkedInPublisher(PlatformPublisher):
    platform = "linkedin"

    def validate(self, content: PostContent, targets: PublishTargets) -> Optional[str]:
        if not targets.linkedin_person_urn:
            return "LinkedIn Person URN required"
        return None

    @staticmethod
    def build_ugc_post(person_urn: str, content: PostContent) -> Dict[str, Any]:
        return {
            "author": person_urn,
            "lifecycleState": "PUBLISHED",
            "specificContent": {
                "com.linkedin.ugc.ShareContent": {
                    "shareCommentary": {
                        "text": content.caption
                    },
                    "shareMediaCategory": "IMAGE" if content.image_url else "NONE"
                }
            },
            "visibility": {
                "com.linkedin.ugc.MemberNetworkVisibility": "PUBLIC"
            }
        }

    async def _publish(self, access_token: str, content: PostContent,
                       targets: PublishTargets) -> PostResult:
        headers = self.bearer(access_token)
        headers["X-Restli-Protocol-Version"] = "2.0.0"

        await self.rate_limiter.wait("ugcPosts")
        response = await self.api_client.post(
            UGC_POSTS_URL,
            json_body=self.build_ugc_post(targets.linkedin_person_urn, content),
            headers=headers
        )
        if not response.ok:
            return self.failure(response.error_message("message") or "Failed to post")

        data = response.data if isinstance(response.data, dict) else {}
        return self.success(data.get("id"))
