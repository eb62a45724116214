"""
Core OAuth functionality.
"""

from .registry import Platform, get_platform_config, normalize_platform, supported_platforms
from .db import SqliteSecureStore
from .secure_storage import SecureStorage, create_secure_storage
from .token_proxy import TokenProxy, HttpTokenProxy
from .auth_session import AuthorizationSession, AuthSessionResult, LoopbackAuthorizationSession
from .token_lifecycle import TokenLifecycleManager
from .oauth_flow import OAuthOrchestrator, AuthorizationAttempt

__all__ = [
    'Platform',
    'get_platform_config',
    'normalize_platform',
    'supported_platforms',
    'SqliteSecureStore',
    'SecureStorage',
    'create_secure_storage',
    'TokenProxy',
    'HttpTokenProxy',
    'AuthorizationSession',
    'AuthSessionResult',
    'LoopbackAuthorizationSession',
    'TokenLifecycleManager',
    'OAuthOrchestrator',
    'AuthorizationAttempt',
]
