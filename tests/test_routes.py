import pytest
import aiohttp
from fastapi.testclient import TestClient
from pixelpost_connect.config import Settings, get_settings
from pixelpost_connect.core.registry import OAUTH_ENDPOINTS
from pixelpost_connect.core.token_proxy import HttpTokenProxy
from pixelpost_connect.exceptions import TokenProxyError
from pixelpost_connect.main import app
from pixelpost_connect.routes.token_routes import get_api_client
from conftest import FakeApiClient

TOKEN_RESPONSE = {
    "access_token": "platform_access_token",
    "refresh_token": "platform_refresh_token",
    "expires_in": 7200,
    "token_type": "bearer",
    "scope": "tweet.read tweet.write"
}

def proxy_settings(**overrides) -> Settings:
    values = {
        "ENVIRONMENT": "testing",
        "TOKEN_PROXY_API_KEY": None,
        "TWITTER_CLIENT_ID": "twitter_client",
        "TWITTER_CLIENT_SECRET": "twitter_secret",
        "FACEBOOK_CLIENT_ID": "facebook_client",
        "FACEBOOK_CLIENT_SECRET": "facebook_secret",
        "INSTAGRAM_CLIENT_SECRET": "instagram_secret",
        "LINKEDIN_CLIENT_SECRET": "linkedin_secret",
        "PINTEREST_CLIENT_SECRET": None,
    }
    values.update(overrides)
    return Settings(**values)

@pytest.fixture
def platform_api():
    return FakeApiClient()

@pytest.fixture
def client_factory(platform_api):
    def build(settings: Settings = None):
        app.dependency_overrides[get_settings] = lambda: settings or proxy_settings()
        app.dependency_overrides[get_api_client] = lambda: platform_api
        return TestClient(app)
    yield build
    app.dependency_overrides.clear()

def test_health(client_factory):
    response = client_factory().get("/health")
    assert response.status_code == 200
    assert response.json()["status"] == "healthy"

def test_twitter_exchange_uses_pkce_and_basic_auth(client_factory, platform_api):
    platform_api.add("POST", OAUTH_ENDPOINTS["twitter"]["token"], data=TOKEN_RESPONSE)

    response = client_factory().post("/oauth/token/exchange", json={
        "platform": "twitter",
        "code": "auth_code",
        "redirectUri": "http://127.0.0.1:8765/oauth/callback",
        "codeVerifier": "verifier123"
    })

    assert response.status_code == 200
    assert response.json()["access_token"] == "platform_access_token"
    assert response.json()["expires_in"] == 7200

    call = platform_api.calls[0]
    assert call["data"]["code_verifier"] == "verifier123"
    assert call["data"]["grant_type"] == "authorization_code"
    assert "client_secret" not in call["data"]
    assert call["auth"] == aiohttp.BasicAuth("twitter_client", "twitter_secret")

def test_facebook_exchange_is_a_get(client_factory, platform_api):
    platform_api.add("GET", OAUTH_ENDPOINTS["facebook"]["token"], data={"access_token": "fb_token", "expires_in": 5183944})

    response = client_factory().post("/oauth/token/exchange", json={
        "platform": "facebook",
        "code": "auth_code",
        "redirectUri": "http://127.0.0.1:8765/oauth/callback"
    })

    assert response.status_code == 200
    params = platform_api.calls[0]["params"]
    assert params["client_secret"] == "facebook_secret"
    assert params["code"] == "auth_code"

def test_missing_client_secret(client_factory, platform_api):
    response = client_factory().post("/oauth/token/exchange", json={
        "platform": "pinterest",
        "code": "auth_code",
        "redirectUri": "http://127.0.0.1:8765/oauth/callback"
    })

    assert response.status_code == 500
    assert platform_api.calls == []

def test_platform_rejection_is_bad_gateway(client_factory, platform_api):
    platform_api.add("POST", OAUTH_ENDPOINTS["linkedin"]["token"], status=400,
                     data={"error": "invalid_grant"}, text='{"error": "invalid_grant"}')

    response = client_factory().post("/oauth/token/exchange", json={
        "platform": "linkedin",
        "code": "expired_code",
        "redirectUri": "http://127.0.0.1:8765/oauth/callback"
    })

    assert response.status_code == 502
    assert "invalid_grant" in response.json()["detail"]

def test_unsupported_platform(client_factory):
    response = client_factory().post("/oauth/token/exchange", json={
        "platform": "myspace",
        "code": "auth_code",
        "redirectUri": "http://127.0.0.1:8765/oauth/callback"
    })
    assert response.status_code == 400

def test_refresh(client_factory, platform_api):
    platform_api.add("POST", OAUTH_ENDPOINTS["twitter"]["refresh"], data=TOKEN_RESPONSE)

    response = client_factory().post("/oauth/token/refresh", json={
        "platform": "twitter",
        "refreshToken": "old_refresh_token"
    })

    assert response.status_code == 200
    form = platform_api.calls[0]["data"]
    assert form == {
        "grant_type": "refresh_token",
        "refresh_token": "old_refresh_token",
        "client_id": "twitter_client"
    }

@pytest.mark.parametrize("platform", ["instagram", "facebook"])
def test_refresh_unsupported_for_long_lived_tokens(client_factory, platform_api, platform):
    response = client_factory().post("/oauth/token/refresh", json={
        "platform": platform,
        "refreshToken": "anything"
    })
    assert response.status_code == 400
    assert platform_api.calls == []

def test_revoke_twitter(client_factory, platform_api):
    platform_api.add("POST", OAUTH_ENDPOINTS["twitter"]["revoke"], data={"revoked": True})

    response = client_factory().post("/oauth/token/revoke", json={
        "platform": "twitter",
        "accessToken": "access"
    })

    assert response.json() == {"platform": "twitter", "revoked": True}
    assert platform_api.calls[0]["data"]["token"] == "access"

def test_revoke_facebook_deletes_permissions(client_factory, platform_api):
    platform_api.add("DELETE", OAUTH_ENDPOINTS["facebook"]["revoke"], data={"success": True})

    response = client_factory().post("/oauth/token/revoke", json={
        "platform": "facebook",
        "accessToken": "access"
    })

    assert response.json()["revoked"] is True
    assert platform_api.calls[0]["params"] == {"access_token": "access"}

def test_revoke_without_endpoint_is_acknowledged(client_factory, platform_api):
    response = client_factory().post("/oauth/token/revoke", json={
        "platform": "linkedin",
        "accessToken": "access"
    })

    assert response.status_code == 200
    assert response.json() == {"platform": "linkedin", "revoked": False}
    assert platform_api.calls == []

def test_api_key_required_when_configured(client_factory, platform_api):
    platform_api.add("POST", OAUTH_ENDPOINTS["twitter"]["revoke"], data={})
    client = client_factory(proxy_settings(TOKEN_PROXY_API_KEY="proxy_key"))
    body = {"platform": "twitter", "accessToken": "access"}

    assert client.post("/oauth/token/revoke", json=body).status_code == 403
    assert client.post("/oauth/token/revoke", json=body, headers={"x-api-key": "wrong"}).status_code == 403
    assert client.post("/oauth/token/revoke", json=body, headers={"x-api-key": "proxy_key"}).status_code == 200

# Client side of the proxy

@pytest.mark.asyncio
async def test_http_token_proxy_exchange():
    api_client = FakeApiClient()
    api_client.add("POST", "http://proxy.test/oauth/token/exchange", data=TOKEN_RESPONSE)
    proxy = HttpTokenProxy(base_url="http://proxy.test/oauth/token/", api_key="proxy_key", api_client=api_client)

    grant = await proxy.exchange_code("twitter", "auth_code", "http://127.0.0.1:8765/oauth/callback", "verifier123")

    assert grant.access_token == "platform_access_token"
    assert grant.expires_in == 7200
    call = api_client.calls[0]
    assert call["headers"]["x-api-key"] == "proxy_key"
    assert call["json_body"] == {
        "platform": "twitter",
        "code": "auth_code",
        "redirectUri": "http://127.0.0.1:8765/oauth/callback",
        "codeVerifier": "verifier123"
    }

@pytest.mark.asyncio
async def test_http_token_proxy_errors():
    api_client = FakeApiClient()
    api_client.add("POST", "http://proxy.test/refresh", status=502, data={"detail": "invalid_grant"})
    api_client.add("POST", "http://proxy.test/exchange", data={"token_type": "bearer"})
    proxy = HttpTokenProxy(base_url="http://proxy.test", api_key="", api_client=api_client)

    with pytest.raises(TokenProxyError) as error:
        await proxy.refresh_token("twitter", "refresh")
    assert error.value.status == 502
    assert error.value.detail == "invalid_grant"

    with pytest.raises(TokenProxyError):
        await proxy.exchange_code("facebook", "code", "http://127.0.0.1:8765/oauth/callback")

    assert "x-api-key" not in api_client.calls[0]["headers"]
