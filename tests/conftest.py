import os

os.environ['ENVIRONMENT'] = 'testing'
os.environ['STORAGE_BACKEND'] = 'encrypted'
os.environ['TWITTER_CLIENT_ID'] = 'test_twitter_client'
os.environ['FACEBOOK_CLIENT_ID'] = 'test_facebook_client'
os.environ.pop('TOKEN_PROXY_API_KEY', None)

import pytest
from datetime import datetime, timedelta, timezone
from typing import Any, Callable, Dict, List, Optional, Tuple
from urllib.parse import urlparse, parse_qs
from cryptography.fernet import Fernet
from pixelpost_connect.core.auth_session import AuthorizationSession, AuthSessionResult
from pixelpost_connect.core.db import SqliteSecureStore
from pixelpost_connect.core.secure_storage import SecureStorage
from pixelpost_connect.core.token_proxy import TokenProxy
from pixelpost_connect.models.oauth_models import OAuthToken, TokenGrant
from pixelpost_connect.utils.crypto import FernetEncryption
from pixelpost_connect.utils.http import ApiResponse

NOW = datetime(2026, 1, 15, 12, 0, tzinfo=timezone.utc)

class FakeApiClient:
    """Records every request and answers from a (method, url) table; unknown URLs get a 404."""

    def __init__(self):
        self.responses: Dict[Tuple[str, str], Any] = {}
        self.calls: List[Dict[str, Any]] = []

    def add(self, method: str, url: str, status: int = 200, data: Any = None, text: str = ""):
        self.responses[(method, url)] = ApiResponse(status=status, data=data, text=text)

    def fail(self, method: str, url: str, error: Exception):
        self.responses[(method, url)] = error

    def calls_to(self, url: str) -> List[Dict[str, Any]]:
        return [call for call in self.calls if call['url'] == url]

    async def request(self, method: str, url: str, **kwargs) -> ApiResponse:
        self.calls.append({'method': method, 'url': url, **kwargs})
        response = self.responses.get((method, url))
        if isinstance(response, Exception):
            raise response
        return response or ApiResponse(status=404, data=None, text="not found")

    async def get(self, url: str, **kwargs) -> ApiResponse:
        return await self.request("GET", url, **kwargs)

    async def post(self, url: str, **kwargs) -> ApiResponse:
        return await self.request("POST", url, **kwargs)

    async def delete(self, url: str, **kwargs) -> ApiResponse:
        return await self.request("DELETE", url, **kwargs)

class FakeTokenProxy(TokenProxy):
    def __init__(self):
        self.exchange_calls: List[Dict[str, Any]] = []
        self.refresh_calls: List[Dict[str, Any]] = []
        self.revoke_calls: List[Dict[str, Any]] = []
        self.grant = TokenGrant(access_token="new_access_token", refresh_token="new_refresh_token", expires_in=7200)
        self.exchange_error: Optional[Exception] = None
        self.refresh_error: Optional[Exception] = None
        self.revoke_error: Optional[Exception] = None
        self._refresh_count = 0

    async def exchange_code(self, platform, code, redirect_uri, code_verifier=None):
        self.exchange_calls.append({
            'platform': platform,
            'code': code,
            'redirect_uri': redirect_uri,
            'code_verifier': code_verifier
        })
        if self.exchange_error:
            raise self.exchange_error
        return self.grant

    async def refresh_token(self, platform, refresh_token):
        self.refresh_calls.append({'platform': platform, 'refresh_token': refresh_token})
        if self.refresh_error:
            raise self.refresh_error
        self._refresh_count += 1
        return TokenGrant(access_token=f"refreshed_access_token_{self._refresh_count}", expires_in=7200)

    async def revoke_token(self, platform, access_token):
        self.revoke_calls.append({'platform': platform, 'access_token': access_token})
        if self.revoke_error:
            raise self.revoke_error

class FakeAuthSession(AuthorizationSession):
    """Ends the browser session with whatever the responder returns for the opened URL."""

    def __init__(self, responder: Callable[[str, str], AuthSessionResult]):
        self.responder = responder
        self.opened: List[str] = []

    async def open(self, authorization_url, redirect_uri):
        self.opened.append(authorization_url)
        return self.responder(authorization_url, redirect_uri)

def query_params(url: str) -> Dict[str, str]:
    return {key: values[0] for key, values in parse_qs(urlparse(url).query).items()}

def approve(code: str = "auth_code"):
    """Responder that redirects back with a code and the state from the authorization URL."""
    def responder(authorization_url, redirect_uri):
        state = query_params(authorization_url)['state']
        return AuthSessionResult(type="success", url=f"{redirect_uri}?code={code}&state={state}")
    return responder

def make_token(access_token: str = "test_access_token", refresh_token: Optional[str] = "test_refresh_token",
               expires_in: Optional[timedelta] = timedelta(hours=2), **kwargs) -> OAuthToken:
    return OAuthToken(
        access_token=access_token,
        refresh_token=refresh_token,
        expires_at=NOW + expires_in if expires_in is not None else None,
        **kwargs
    )

@pytest.fixture
def clock():
    return lambda: NOW

@pytest.fixture
def storage(tmp_path):
    """Provide an encrypted SecureStorage backed by a temporary database."""
    store = SecureStorage(SqliteSecureStore(
        str(tmp_path / 'secure_store.db'),
        FernetEncryption(Fernet(Fernet.generate_key()))
    ))
    yield store
    store.close()

@pytest.fixture
def api_client():
    return FakeApiClient()

@pytest.fixture
def token_proxy():
    return FakeTokenProxy()
