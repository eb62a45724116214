from datetime import timedelta
from typing import Dict, Optional
from ..core.token_lifecycle import TokenLifecycleManager
from ..config import get_settings
from ..utils.logger import get_logger

logger = get_logger(__name__)

class TokenRefreshService:
    def __init__(self, token_lifecycle: TokenLifecycleManager,
                 expiry_threshold: Optional[timedelta] = None):
        self.token_lifecycle = token_lifecycle
        # Refresh tokens that will expire within the threshold
        self.expiry_threshold = expiry_threshold or timedelta(
            hours=get_settings().TOKEN_REFRESH_THRESHOLD_HOURS
        )

    async def check_and_refresh_tokens(self) -> Dict[str, bool]:
        """Check all stored tokens and refresh those nearing expiration."""
        try:
            logger.info("=== Starting Token Refresh Check ===")
            results = await self.token_lifecycle.refresh_expiring(self.expiry_threshold)

            for platform, refreshed in results.items():
                if refreshed:
                    logger.info(f"Successfully refreshed {platform} token")
                else:
                    logger.error(f"Failed to refresh {platform} token")

            logger.info(f"Token refresh check completed ({len(results)} token(s) due)")
            return results

        except Exception as e:
            logger.error(f"Error during token refresh check: {str(e)}")
            return {}
