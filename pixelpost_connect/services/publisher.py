from typing import Dict, List, Optional
import asyncio
from ..core.registry import normalize_platform
from ..core.token_lifecycle import TokenLifecycleManager
from ..exceptions import UnsupportedPlatformError
from ..models.oauth_models import PostContent, PostResult, PublishTargets
from ..platforms import PUBLISHERS, PlatformPublisher
from ..utils.http import ApiClient
from ..utils.logger import get_logger

logger = get_logger(__name__)

class MultiPlatformPublisher:
    """Fans one post out to several platforms; one platform failing never affects another."""

    def __init__(self, token_lifecycle: TokenLifecycleManager, api_client: Optional[ApiClient] = None):
        self.token_lifecycle = token_lifecycle
        self.api_client = api_client or ApiClient()
        self._publishers: Dict[str, PlatformPublisher] = {}

    def get_publisher(self, platform: str) -> PlatformPublisher:
        platform = normalize_platform(platform)
        if platform not in self._publishers:
            self._publishers[platform] = PUBLISHERS[platform](self.token_lifecycle, self.api_client)
        return self._publishers[platform]

    async def post_to_platform(self, platform: str, content: PostContent,
                               targets: Optional[PublishTargets] = None) -> PostResult:
        try:
            publisher = self.get_publisher(platform)
        except UnsupportedPlatformError:
            logger.warning(f"Unsupported platform requested: {platform}")
            return PostResult(success=False, platform=platform, error="Unsupported platform")
        return await publisher.publish(content, targets)

    async def post_to_multiple_platforms(self, platforms: List[str], content: PostContent,
                                         targets: Optional[PublishTargets] = None) -> List[PostResult]:
        """
        Publish content to each platform in the list.

        Returns:
            One PostResult per requested platform, in the order requested
        """
        targets = targets or PublishTargets()
        logger.info(f"Publishing to {len(platforms)} platform(s): {', '.join(platforms)}")
        results = await asyncio.gather(
            *(self.post_to_platform(platform, content, targets) for platform in platforms)
        )
        succeeded = sum(1 for result in results if result.success)
        logger.info(f"Published to {succeeded}/{len(results)} platform(s)")
        return list(results)
