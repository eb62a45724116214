import pytest
import asyncio
from datetime import timedelta
from pixelpost_connect.core.token_lifecycle import TokenLifecycleManager
from pixelpost_connect.exceptions import TokenProxyError
from pixelpost_connect.services.token_refresh_service import TokenRefreshService
from conftest import NOW, make_token

@pytest.fixture
def lifecycle(storage, token_proxy, clock):
    return TokenLifecycleManager(storage, token_proxy, clock=clock)

@pytest.mark.asyncio
async def test_valid_token_is_returned_without_refresh(lifecycle, storage, token_proxy):
    await storage.store_token("twitter", make_token(expires_in=timedelta(hours=1)))

    assert await lifecycle.get_valid_access_token("twitter") == "test_access_token"
    assert token_proxy.refresh_calls == []

@pytest.mark.asyncio
async def test_missing_token(lifecycle, token_proxy):
    assert await lifecycle.get_valid_access_token("pinterest") is None
    assert not await lifecycle.is_connected("pinterest")
    assert token_proxy.refresh_calls == []

@pytest.mark.asyncio
async def test_token_without_expiry_is_always_valid(lifecycle, storage, token_proxy):
    await storage.store_token("facebook", make_token(refresh_token=None, expires_in=None))

    assert await lifecycle.get_valid_access_token("facebook") == "test_access_token"
    assert token_proxy.refresh_calls == []

@pytest.mark.asyncio
async def test_expired_token_is_refreshed(lifecycle, storage, token_proxy):
    await storage.store_token("twitter", make_token(
        expires_in=timedelta(minutes=2), scope="tweet.read tweet.write", user_id="42", username="pixelpost"
    ))

    access_token = await lifecycle.get_valid_access_token("twitter")

    assert access_token == "refreshed_access_token_1"
    assert token_proxy.refresh_calls == [{"platform": "twitter", "refresh_token": "test_refresh_token"}]

    stored = await storage.get_token("twitter")
    assert stored.access_token == "refreshed_access_token_1"
    # The grant carried no refresh token or scope, so both are kept
    assert stored.refresh_token == "test_refresh_token"
    assert stored.scope == "tweet.read tweet.write"
    assert stored.user_id == "42"
    assert stored.expires_at == NOW + timedelta(seconds=7200)

@pytest.mark.asyncio
async def test_expired_token_without_refresh_token(lifecycle, storage, token_proxy):
    await storage.store_token("linkedin", make_token(refresh_token=None, expires_in=timedelta(hours=-1)))

    assert await lifecycle.get_valid_access_token("linkedin") is None
    assert token_proxy.refresh_calls == []

@pytest.mark.asyncio
async def test_refresh_without_refresh_token_makes_no_call(lifecycle, token_proxy):
    assert await lifecycle.refresh("linkedin", make_token(refresh_token=None)) is None
    assert token_proxy.refresh_calls == []

@pytest.mark.asyncio
async def test_refresh_of_disconnected_platform_stores_nothing(lifecycle, storage, token_proxy):
    assert await lifecycle.refresh("twitter", make_token(expires_in=timedelta(hours=-1))) is None
    assert token_proxy.refresh_calls == []
    assert await storage.get_token("twitter") is None

@pytest.mark.asyncio
async def test_failed_refresh_keeps_stored_token(lifecycle, storage, token_proxy):
    expired = make_token(expires_in=timedelta(hours=-1))
    await storage.store_token("pinterest", expired)
    token_proxy.refresh_error = TokenProxyError("refresh", 502, "invalid_grant")

    assert await lifecycle.get_valid_access_token("pinterest") is None
    assert await storage.get_token("pinterest") == expired

@pytest.mark.asyncio
async def test_concurrent_refreshes_call_proxy_once(lifecycle, storage, token_proxy):
    await storage.store_token("twitter", make_token(expires_in=timedelta(hours=-1)))

    original_refresh = token_proxy.refresh_token

    async def slow_refresh(platform, refresh_token):
        await asyncio.sleep(0.01)
        return await original_refresh(platform, refresh_token)

    token_proxy.refresh_token = slow_refresh

    results = await asyncio.gather(
        lifecycle.get_valid_access_token("twitter"),
        lifecycle.get_valid_access_token("twitter"),
        lifecycle.get_valid_access_token("twitter"),
    )

    assert results == ["refreshed_access_token_1"] * 3
    assert len(token_proxy.refresh_calls) == 1

@pytest.mark.asyncio
async def test_refresh_service_refreshes_expiring_tokens(lifecycle, storage, token_proxy):
    await storage.store_token("twitter", make_token(expires_in=timedelta(hours=1)))
    await storage.store_token("linkedin", make_token(refresh_token=None, expires_in=timedelta(hours=3)))
    await storage.store_token("pinterest", make_token(expires_in=timedelta(days=20)))
    await storage.store_token("facebook", make_token(expires_in=None))

    service = TokenRefreshService(lifecycle, expiry_threshold=timedelta(hours=48))
    results = await service.check_and_refresh_tokens()

    assert results == {"twitter": True, "linkedin": False}
    assert [call["platform"] for call in token_proxy.refresh_calls] == ["twitter"]
