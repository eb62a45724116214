"""
Server-side calls to each platform's token endpoints.

These are the only functions that ever see a client secret.
"""

from typing import Any, Dict, Optional, Tuple
import aiohttp
from ..config import Settings
from ..core.registry import OAUTH_ENDPOINTS
from ..exceptions import ApiError, CredentialsError
from ..utils.http import ApiClient, ApiResponse
from ..utils.logger import get_logger, preview

logger = get_logger(__name__)

REFRESHABLE_PLATFORMS = ("twitter", "linkedin", "pinterest")

def client_credentials(settings: Settings, platform: str) -> Tuple[str, str]:
    creds = settings.get_platform_credentials(platform)
    if not creds.get("client_secret"):
        raise CredentialsError(f"{platform.upper()}_CLIENT_SECRET is not configured")
    return creds["client_id"], creds["client_secret"]

def _token_payload(platform: str, response: ApiResponse) -> Dict[str, Any]:
    if not response.ok:
        logger.error(f"{platform} token endpoint returned {response.status}: {response.text}")
        raise ApiError(response.text or f"{platform} token endpoint returned {response.status}", response.status)
    if not isinstance(response.data, dict) or not response.data.get("access_token"):
        raise ApiError(f"{platform} token endpoint returned no access token", response.status)
    return response.data

async def exchange_code(api_client: ApiClient, settings: Settings, platform: str,
                        code: str, redirect_uri: str,
                        code_verifier: Optional[str] = None) -> Dict[str, Any]:
    """Exchange an authorization code at the platform's token endpoint."""
    client_id, client_secret = client_credentials(settings, platform)
    token_url = OAUTH_ENDPOINTS[platform]["token"]
    logger.debug(f"Exchanging {platform} code {preview(code)}")

    if platform == "facebook":
        response = await api_client.get(token_url, params={
            "client_id": client_id,
            "client_secret": client_secret,
            "redirect_uri": redirect_uri,
            "code": code
        })
    elif platform == "twitter":
        if not code_verifier:
            raise ValueError("code_verifier is required for twitter")
        response = await api_client.post(
            token_url,
            data={
                "code": code,
                "grant_type": "authorization_code",
                "client_id": client_id,
                "redirect_uri": redirect_uri,
                "code_verifier": code_verifier
            },
            auth=aiohttp.BasicAuth(client_id, client_secret)
        )
    elif platform == "pinterest":
        response = await api_client.post(
            token_url,
            data={
                "grant_type": "authorization_code",
                "code": code,
                "redirect_uri": redirect_uri
            },
            auth=aiohttp.BasicAuth(client_id, client_secret)
        )
    else:
        # instagram and linkedin take the secret in the form body
        response = await api_client.post(token_url, data={
            "grant_type": "authorization_code",
            "code": code,
            "redirect_uri": redirect_uri,
            "client_id": client_id,
            "client_secret": client_secret
        })

    return _token_payload(platform, response)

async def refresh_token(api_client: ApiClient, settings: Settings, platform: str,
                        refresh_token: str) -> Dict[str, Any]:
    """Trade a refresh token for a new token; only twitter, linkedin and pinterest issue them."""
    if platform not in REFRESHABLE_PLATFORMS:
        raise ValueError(f"{platform} does not support refresh tokens")

    client_id, client_secret = client_credentials(settings, platform)
    token_url = OAUTH_ENDPOINTS[platform]["refresh"] or OAUTH_ENDPOINTS[platform]["token"]
    form = {
        "grant_type": "refresh_token",
        "refresh_token": refresh_token
    }

    if platform == "linkedin":
        form.update({"client_id": client_id, "client_secret": client_secret})
        response = await api_client.post(token_url, data=form)
    else:
        if platform == "twitter":
            form["client_id"] = client_id
        response = await api_client.post(token_url, data=form, auth=aiohttp.BasicAuth(client_id, client_secret))

    return _token_payload(platform, response)

async def revoke_token(api_client: ApiClient, settings: Settings, platform: str,
                       access_token: str) -> bool:
    """
    Revoke an access token.

    Returns:
        True when the platform was called, False for platforms with no revocation endpoint
    """
    revoke_url = OAUTH_ENDPOINTS[platform]["revoke"]
    if not revoke_url:
        logger.debug(f"{platform} has no revocation endpoint, nothing to do")
        return False

    if platform == "facebook":
        response = await api_client.delete(revoke_url, params={"access_token": access_token})
    else:
        client_id, client_secret = client_credentials(settings, platform)
        response = await api_client.post(
            revoke_url,
            data={
                "token": access_token,
                "token_type_hint": "access_token",
                "client_id": client_id
            },
            auth=aiohttp.BasicAuth(client_id, client_secret)
        )

    if not response.ok:
        raise ApiError(response.text or f"{platform} revocation returned {response.status}", response.status)
    return True
