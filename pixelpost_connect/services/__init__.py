from .publisher import MultiPlatformPublisher
from .token_refresh_service import TokenRefreshService

__all__ = ['MultiPlatformPublisher', 'TokenRefreshService']
