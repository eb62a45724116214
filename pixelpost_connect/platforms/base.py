from abc import ABC, abstractmethod
from typing import Any, Dict, Optional
from ..models.oauth_models import PostContent, PostResult, PublishTargets, UserProfile
from ..utils.http import ApiClient
from ..utils.rate_limiter import RateLimiter
from ..utils.logger import get_logger

logger = get_logger(__name__)

class ProfileParser(ABC):
    """Turns one platform's profile response into a UserProfile."""

    platform: str = ""

    @abstractmethod
    def parse(self, data: Dict[str, Any]) -> Optional[UserProfile]:
        """Return the normalized profile, or None when the response carries no user id."""
        pass

class PlatformPublisher(ABC):
    """
    Publishes PostContent to one platform.

    Subclasses implement validate() for configuration errors, which are
    reported before any network call, and _publish() for the API calls.
    """

    platform: str = ""

    def __init__(self, token_lifecycle, api_client: ApiClient,
                 rate_limiter: Optional[RateLimiter] = None):
        self.token_lifecycle = token_lifecycle
        self.api_client = api_client
        self.rate_limiter = rate_limiter or RateLimiter(platform=self.platform)

    @property
    def display_name(self) -> str:
        from ..core.registry import get_platform_config
        return get_platform_config(self.platform).display_name

    def validate(self, content: PostContent, targets: PublishTargets) -> Optional[str]:
        return None

    @abstractmethod
    async def _publish(self, access_token: str, content: PostContent,
                       targets: PublishTargets) -> PostResult:
        pass

    async def publish(self, content: PostContent, targets: Optional[PublishTargets] = None) -> PostResult:
        targets = targets or PublishTargets()

        config_error = self.validate(content, targets)
        if config_error:
            logger.info(f"Skipping {self.platform}: {config_error}")
            return self.failure(config_error)

        try:
            # Resolved per publish so a token expiring mid-batch is refreshed here
            access_token = await self.token_lifecycle.get_valid_access_token(self.platform)
            if not access_token:
                return self.failure("Not authenticated")

            result = await self._publish(access_token, content, targets)
            if result.success:
                logger.info(f"Published to {self.platform}: {result.post_id}")
            else:
                logger.warning(f"Publishing to {self.platform} failed: {result.error}")
            return result

        except Exception:
            logger.error(f"{self.display_name} post error", exc_info=True)
            return self.failure(f"Failed to post to {self.display_name}")

    def failure(self, error: str) -> PostResult:
        return PostResult(success=False, error=error, platform=self.platform)

    def success(self, post_id: Any) -> PostResult:
        return PostResult(
            success=True,
            post_id=str(post_id) if post_id is not None else None,
            platform=self.platform
        )

    @staticmethod
    def bearer(access_token: str) -> Dict[str, str]:
        return {
            "Authorization": f"Bearer {access_token}",
            "Content-Type": "application/json"
        }
