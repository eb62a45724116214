from abc import ABC, abstractmethod
from typing import Dict, Optional
from pydantic import ValidationError
from ..config import get_settings
from ..exceptions import TokenProxyError
from ..models.oauth_models import (
    TokenGrant, TokenExchangeRequest, TokenRefreshRequest, TokenRevokeRequest
)
from ..utils.http import ApiClient
from ..utils.logger import get_logger, preview

logger = get_logger(__name__)

class TokenProxy(ABC):
    """Server-side collaborator that holds client secrets and talks to token endpoints."""

    @abstractmethod
    async def exchange_code(self, platform: str, code: str, redirect_uri: str,
                            code_verifier: Optional[str] = None) -> TokenGrant:
        """Exchange an authorization code for a token."""
        pass

    @abstractmethod
    async def refresh_token(self, platform: str, refresh_token: str) -> TokenGrant:
        """Trade a refresh token for a new token."""
        pass

    @abstractmethod
    async def revoke_token(self, platform: str, access_token: str) -> None:
        """Revoke an access token; best effort."""
        pass

class HttpTokenProxy(TokenProxy):
    """TokenProxy speaking JSON to the pixelpost_connect token proxy server."""

    def __init__(self, base_url: Optional[str] = None, api_key: Optional[str] = None,
                 api_client: Optional[ApiClient] = None):
        settings = get_settings()
        self.base_url = (base_url or settings.TOKEN_PROXY_URL).rstrip('/')
        self.api_key = api_key if api_key is not None else settings.TOKEN_PROXY_API_KEY
        self.api_client = api_client or ApiClient()

    def _headers(self) -> Dict[str, str]:
        headers = {"Content-Type": "application/json", "Accept": "application/json"}
        if self.api_key:
            headers["x-api-key"] = self.api_key
        return headers

    async def _call(self, operation: str, body: Dict) -> Dict:
        response = await self.api_client.post(
            f"{self.base_url}/{operation}",
            json_body=body,
            headers=self._headers()
        )
        if not response.ok:
            detail = response.error_message("detail", "error.message", "error") or response.text
            logger.error(f"Token proxy {operation} failed with status {response.status}: {detail}")
            raise TokenProxyError(operation, response.status, detail)
        if not isinstance(response.data, dict):
            raise TokenProxyError(operation, response.status, "Response body is not a JSON object")
        return response.data

    @staticmethod
    def _grant(operation: str, data: Dict) -> TokenGrant:
        try:
            return TokenGrant.model_validate(data)
        except ValidationError as e:
            raise TokenProxyError(operation, None, f"Malformed token response: {e}") from e

    async def exchange_code(self, platform: str, code: str, redirect_uri: str,
                            code_verifier: Optional[str] = None) -> TokenGrant:
        logger.debug(f"Exchanging {platform} code {preview(code)} (PKCE: {'yes' if code_verifier else 'no'})")
        request = TokenExchangeRequest(
            platform=platform,
            code=code,
            redirect_uri=redirect_uri,
            code_verifier=code_verifier
        )
        data = await self._call("exchange", request.model_dump(by_alias=True, exclude_none=True))
        return self._grant("exchange", data)

    async def refresh_token(self, platform: str, refresh_token: str) -> TokenGrant:
        logger.debug(f"Refreshing {platform} token with refresh token {preview(refresh_token)}")
        request = TokenRefreshRequest(platform=platform, refresh_token=refresh_token)
        data = await self._call("refresh", request.model_dump(by_alias=True))
        return self._grant("refresh", data)

    async def revoke_token(self, platform: str, access_token: str) -> None:
        request = TokenRevokeRequest(platform=platform, access_token=access_token)
        await self._call("revoke", request.model_dump(by_alias=True))
