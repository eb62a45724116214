from fastapi import APIRouter, Depends, HTTPException, Security
from fastapi.security.api_key import APIKeyHeader
from starlette.status import HTTP_403_FORBIDDEN
import secrets
from ..config import get_settings, Settings
from ..core.registry import normalize_platform
from ..exceptions import ApiError, CredentialsError, UnsupportedPlatformError
from ..models.oauth_models import (
    TokenGrant, TokenExchangeRequest, TokenRefreshRequest,
    TokenRevokeRequest, TokenRevokeResponse
)
from ..utils.http import ApiClient
from ..utils.logger import get_logger
from . import token_grants

logger = get_logger(__name__)

API_KEY_NAME = "x-api-key"
api_key_header = APIKeyHeader(name=API_KEY_NAME, auto_error=False)

def get_api_client() -> ApiClient:
    return ApiClient()

async def verify_api_key(
    api_key: str = Security(api_key_header),
    settings: Settings = Depends(get_settings)
) -> None:
    """Require the configured x-api-key; open when TOKEN_PROXY_API_KEY is unset."""
    if not settings.TOKEN_PROXY_API_KEY:
        return
    if not api_key or not secrets.compare_digest(api_key, settings.TOKEN_PROXY_API_KEY):
        logger.warning("Rejected token proxy request with a missing or invalid API key")
        raise HTTPException(
            status_code=HTTP_403_FORBIDDEN,
            detail="Could not validate API key"
        )

router = APIRouter(dependencies=[Depends(verify_api_key)])

def _platform(platform: str) -> str:
    try:
        return normalize_platform(platform)
    except UnsupportedPlatformError as e:
        raise HTTPException(status_code=400, detail=str(e))

def _to_http_error(operation: str, platform: str, error: Exception) -> HTTPException:
    if isinstance(error, CredentialsError):
        logger.error(f"Cannot {operation} {platform} token: {str(error)}")
        return HTTPException(status_code=500, detail=f"{platform} OAuth credentials are not configured")
    if not isinstance(error, ApiError):
        return HTTPException(status_code=400, detail=str(error))
    logger.error(f"{platform} token {operation} failed: {str(error)}")
    return HTTPException(status_code=502, detail=str(error))

@router.post("/exchange", response_model=TokenGrant, response_model_exclude_none=True)
async def exchange_code(
    request: TokenExchangeRequest,
    settings: Settings = Depends(get_settings),
    api_client: ApiClient = Depends(get_api_client)
) -> TokenGrant:
    platform = _platform(request.platform)
    try:
        data = await token_grants.exchange_code(
            api_client, settings, platform,
            request.code, request.redirect_uri, request.code_verifier
        )
        logger.info(f"Exchanged {platform} authorization code")
        return TokenGrant.model_validate(data)
    except (ApiError, CredentialsError, ValueError) as e:
        raise _to_http_error("exchange", platform, e)

@router.post("/refresh", response_model=TokenGrant, response_model_exclude_none=True)
async def refresh_token(
    request: TokenRefreshRequest,
    settings: Settings = Depends(get_settings),
    api_client: ApiClient = Depends(get_api_client)
) -> TokenGrant:
    platform = _platform(request.platform)
    try:
        data = await token_grants.refresh_token(api_client, settings, platform, request.refresh_token)
        logger.info(f"Refreshed {platform} token")
        return TokenGrant.model_validate(data)
    except (ApiError, CredentialsError, ValueError) as e:
        raise _to_http_error("refresh", platform, e)

@router.post("/revoke", response_model=TokenRevokeResponse)
async def revoke_token(
    request: TokenRevokeRequest,
    settings: Settings = Depends(get_settings),
    api_client: ApiClient = Depends(get_api_client)
) -> TokenRevokeResponse:
    platform = _platform(request.platform)
    try:
        revoked = await token_grants.revoke_token(api_client, settings, platform, request.access_token)
        return TokenRevokeResponse(platform=platform, revoked=revoked)
    except (ApiError, CredentialsError, ValueError) as e:
        raise _to_http_error("revoke", platform, e)
