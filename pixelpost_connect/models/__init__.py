"""
Pydantic models shared by the client core and the token proxy.
"""

from .oauth_models import (
    OAuthToken,
    ConnectedAccount,
    PlatformConfig,
    UserProfile,
    PostContent,
    PublishTargets,
    PostResult,
    ConnectionState,
    ConnectionResult,
    DisconnectResult,
    TokenGrant,
    TokenExchangeRequest,
    TokenRefreshRequest,
    TokenRevokeRequest,
    TokenRevokeResponse,
)

__all__ = [
    'OAuthToken',
    'ConnectedAccount',
    'PlatformConfig',
    'UserProfile',
    'PostContent',
    'PublishTargets',
    'PostResult',
    'ConnectionState',
    'ConnectionResult',
    'DisconnectResult',
    'TokenGrant',
    'TokenExchangeRequest',
    'TokenRefreshRequest',
    'TokenRevokeRequest',
    'TokenRevokeResponse',
]
