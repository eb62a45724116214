"""
Static per-platform OAuth configuration.

Client ids come from settings; everything else is a fixed platform fact.
Client secrets never appear here, they live only in the token proxy.
"""

from enum import Enum
from typing import Dict, List, Optional, Union
from ..config import get_settings, Settings
from ..exceptions import UnsupportedPlatformError
from ..models.oauth_models import PlatformConfig

DAY = 60 * 60 * 24

class Platform(str, Enum):
    INSTAGRAM = "instagram"
    FACEBOOK = "facebook"
    TWITTER = "twitter"
    LINKEDIN = "linkedin"
    PINTEREST = "pinterest"

OAUTH_SCOPES: Dict[str, List[str]] = {
    "instagram": [
        "instagram_basic",
        "instagram_content_publish",
        "instagram_manage_comments",
        "instagram_manage_insights",
        "pages_show_list",
        "pages_read_engagement",
    ],
    "facebook": [
        "public_profile",
        "email",
        "pages_show_list",
        "pages_read_engagement",
        "pages_manage_posts",
        "publish_to_groups",
    ],
    "twitter": [
        "tweet.read",
        "tweet.write",
        "users.read",
        "offline.access",  # required for a refresh token
    ],
    "linkedin": [
        "r_liteprofile",
        "r_emailaddress",
        "w_member_social",
    ],
    "pinterest": [
        "read_public",
        "write_public",
        "read_private",
    ],
}

OAUTH_ENDPOINTS: Dict[str, Dict[str, Optional[str]]] = {
    "instagram": {
        "authorization": "https://api.instagram.com/oauth/authorize",
        "token": "https://api.instagram.com/oauth/access_token",
        "refresh": "https://graph.instagram.com/refresh_access_token",
        "revoke": None,
    },
    "facebook": {
        "authorization": "https://www.facebook.com/v18.0/dialog/oauth",
        "token": "https://graph.facebook.com/v18.0/oauth/access_token",
        "refresh": "https://graph.facebook.com/v18.0/oauth/access_token",
        "revoke": "https://graph.facebook.com/v18.0/me/permissions",
    },
    "twitter": {
        "authorization": "https://twitter.com/i/oauth2/authorize",
        "token": "https://api.twitter.com/2/oauth2/token",
        "refresh": "https://api.twitter.com/2/oauth2/token",
        "revoke": "https://api.twitter.com/2/oauth2/revoke",
    },
    "linkedin": {
        "authorization": "https://www.linkedin.com/oauth/v2/authorization",
        "token": "https://www.linkedin.com/oauth/v2/accessToken",
        # Standard LinkedIn apps get no refresh token; expiry means re-authorization
        "refresh": None,
        "revoke": None,
    },
    "pinterest": {
        "authorization": "https://api.pinterest.com/oauth/",
        "token": "https://api.pinterest.com/v5/oauth/token",
        "refresh": "https://api.pinterest.com/v5/oauth/token",
        "revoke": None,
    },
}

PROFILE_ENDPOINTS: Dict[str, str] = {
    "instagram": "https://graph.instagram.com/me?fields=id,username,account_type,media_count",
    "facebook": "https://graph.facebook.com/me?fields=id,name,email,picture",
    "twitter": "https://api.twitter.com/2/users/me?user.fields=profile_image_url,username,name",
    "linkedin": "https://api.linkedin.com/v2/me?projection=(id,firstName,lastName,profilePicture)",
    "pinterest": "https://api.pinterest.com/v5/user_account",
}

# Seconds, used when the token response carries no expires_in
TOKEN_LIFETIME: Dict[str, int] = {
    "instagram": 60 * DAY,
    "facebook": 60 * DAY,
    "twitter": 60 * 60 * 2,
    "linkedin": 60 * DAY,
    "pinterest": 30 * DAY,
}

PKCE_PLATFORMS = {"twitter"}

DISPLAY_NAMES: Dict[str, str] = {
    "instagram": "Instagram",
    "facebook": "Facebook",
    "twitter": "Twitter",
    "linkedin": "LinkedIn",
    "pinterest": "Pinterest",
}

def normalize_platform(platform: Union[str, Platform]) -> str:
    """Return the lowercase identifier, raising for anything outside the fixed set."""
    value = platform.value if isinstance(platform, Platform) else str(platform).lower()
    if value not in OAUTH_ENDPOINTS:
        raise UnsupportedPlatformError(str(platform))
    return value

def supported_platforms() -> List[str]:
    return [platform.value for platform in Platform]

def get_platform_config(platform: Union[str, Platform], settings: Optional[Settings] = None) -> PlatformConfig:
    """
    Get the immutable configuration for a platform.

    Args:
        platform: One of instagram, facebook, twitter, linkedin, pinterest
        settings: Settings to read the client id from (defaults to get_settings())

    Returns:
        PlatformConfig for the platform

    Raises:
        UnsupportedPlatformError: For any other identifier
    """
    name = normalize_platform(platform)
    settings = settings or get_settings()
    endpoints = OAUTH_ENDPOINTS[name]
    use_pkce = name in PKCE_PLATFORMS

    return PlatformConfig(
        platform=name,
        display_name=DISPLAY_NAMES[name],
        client_id=settings.get_platform_credentials(name)["client_id"],
        scopes=list(OAUTH_SCOPES[name]),
        authorization_endpoint=endpoints["authorization"],
        token_endpoint=endpoints["token"],
        refresh_endpoint=endpoints["refresh"],
        revoke_endpoint=endpoints["revoke"],
        response_type="code",
        use_pkce=use_pkce,
        code_challenge_method="S256" if use_pkce else None,
        token_lifetime=TOKEN_LIFETIME[name],
        profile_endpoint=PROFILE_ENDPOINTS[name],
    )
