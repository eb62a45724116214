from typing import Callable, Dict, Optional
from datetime import datetime, timedelta, timezone
import asyncio
from .registry import get_platform_config, normalize_platform, supported_platforms
from .secure_storage import SecureStorage, is_token_expired
from .token_proxy import TokenProxy
from ..exceptions import StorageError, TokenProxyError
from ..models.oauth_models import OAuthToken, TokenGrant
from ..utils.logger import get_logger, preview

logger = get_logger(__name__)

def token_from_grant(platform: str, grant: TokenGrant, now: datetime,
                     previous: Optional[OAuthToken] = None) -> OAuthToken:
    """
    Build a stored token from a proxy grant.

    Missing expires_in falls back to the platform's default lifetime. When a
    previous token is given, its refresh token, scope and remote user are
    carried over wherever the grant leaves them out.
    """
    lifetime = grant.expires_in or get_platform_config(platform).token_lifetime
    return OAuthToken(
        access_token=grant.access_token,
        refresh_token=grant.refresh_token or (previous.refresh_token if previous else None),
        expires_at=now + timedelta(seconds=lifetime),
        token_type=grant.token_type or "Bearer",
        scope=grant.scope or (previous.scope if previous else None),
        user_id=previous.user_id if previous else None,
        username=previous.username if previous else None,
    )

class TokenLifecycleManager:
    """Hands out currently valid access tokens, refreshing expired ones through the token proxy."""

    def __init__(self, store: SecureStorage, token_proxy: TokenProxy,
                 clock: Optional[Callable[[], datetime]] = None):
        self.store = store
        self.token_proxy = token_proxy
        self.clock = clock or (lambda: datetime.now(timezone.utc))
        self._locks: Dict[str, asyncio.Lock] = {}

    def _get_lock(self, platform: str) -> asyncio.Lock:
        """Get or create the refresh lock for a platform."""
        if platform not in self._locks:
            self._locks[platform] = asyncio.Lock()
        return self._locks[platform]

    def is_expired(self, token: OAuthToken) -> bool:
        return is_token_expired(token, self.clock())

    async def refresh(self, platform: str, current_token: OAuthToken) -> Optional[OAuthToken]:
        """
        Refresh a token through the proxy and replace the stored one.

        Returns None, without any network call, when the token has no refresh
        token, and when the platform is disconnected before the new token
        lands. Proxy or storage failures are logged and also return None.
        Concurrent refreshes of one platform are serialized; a caller that
        waited on the lock gets the token the first caller stored.
        """
        platform = normalize_platform(platform)
        if not current_token.can_refresh:
            logger.info(f"No refresh token available for {platform}; re-authorization required")
            return None

        async with self._get_lock(platform):
            stored = await self.store.get_token(platform)
            if stored is None:
                logger.info(f"{platform} was disconnected, skipping refresh")
                return None
            if stored.access_token != current_token.access_token and not self.is_expired(stored):
                logger.debug(f"{platform} token already refreshed by a concurrent caller")
                return stored

            try:
                logger.debug(f"Refreshing {platform} token {preview(current_token.access_token)}")
                grant = await self.token_proxy.refresh_token(platform, current_token.refresh_token)
                new_token = token_from_grant(platform, grant, self.clock(), previous=current_token)
                if not await self.store.replace_token(platform, new_token):
                    logger.info(f"{platform} was disconnected during refresh, discarding new token")
                    return None
                logger.info(f"Refreshed {platform} token, expires at {new_token.expires_at}")
                return new_token

            except TokenProxyError as e:
                logger.error(f"Token refresh failed for {platform}: {str(e)}")
                return None
            except StorageError as e:
                logger.error(f"Refreshed {platform} token could not be stored: {str(e)}")
                return None
            except Exception:
                logger.error(f"Error refreshing {platform} token", exc_info=True)
                return None

    async def get_valid_token(self, platform: str) -> Optional[OAuthToken]:
        token = await self.store.get_token(platform)
        if not token:
            logger.debug(f"No token stored for {platform}")
            return None
        if self.is_expired(token):
            logger.debug(f"{platform} token expired at {token.expires_at}")
            return await self.refresh(platform, token)
        return token

    async def get_valid_access_token(self, platform: str) -> Optional[str]:
        """Return a usable access token for the platform, or None when there is none."""
        token = await self.get_valid_token(platform)
        return token.access_token if token else None

    async def is_connected(self, platform: str) -> bool:
        return await self.get_valid_token(platform) is not None

    async def refresh_expiring(self, within: timedelta) -> Dict[str, bool]:
        """
        Refresh every stored token that expires within the given window.

        Returns:
            Mapping of platform to whether its refresh succeeded; platforms with
            no token, no expiry or plenty of time left are not included
        """
        results: Dict[str, bool] = {}
        horizon = self.clock() + within
        for platform in supported_platforms():
            token = await self.store.get_token(platform)
            if not token or token.expires_at is None:
                continue
            if not is_token_expired(token, horizon):
                continue
            logger.info(f"{platform} token expires at {token.expires_at}, refreshing")
            results[platform] = await self.refresh(platform, token) is not None
        return results
