from dataclasses import dataclass, field
from typing import Callable, Dict, List, Optional
from datetime import datetime, timezone
from urllib.parse import urlparse, parse_qs
import asyncio
from requests_oauthlib import OAuth2Session
from .auth_session import AuthorizationSession
from .pkce import generate_code_verifier, generate_code_challenge, generate_state, verify_state
from .registry import get_platform_config, normalize_platform
from .secure_storage import SecureStorage
from .token_lifecycle import token_from_grant
from .token_proxy import TokenProxy
from ..config import get_settings, Settings
from ..exceptions import StorageError, UnsupportedPlatformError
from ..models.oauth_models import (
    ConnectedAccount, ConnectionResult, ConnectionState, DisconnectResult,
    PlatformConfig, UserProfile
)
from ..platforms import get_profile_parser
from ..utils.http import ApiClient
from ..utils.logger import get_logger

logger = get_logger(__name__)

@dataclass
class AuthorizationAttempt:
    """
    State of one in-flight connect attempt.

    The PKCE verifier lives here and nowhere else; it is cleared as soon as
    the code exchange has been attempted or the attempt ends.
    """
    platform: str
    state: str
    redirect_uri: str
    authorization_url: str
    code_verifier: Optional[str] = field(default=None, repr=False)
    connection_state: ConnectionState = ConnectionState.IDLE
    history: List[ConnectionState] = field(default_factory=list)

    def transition(self, new_state: ConnectionState) -> None:
        logger.debug(f"{self.platform} connect: {self.connection_state.value} -> {new_state.value}")
        self.history.append(self.connection_state)
        self.connection_state = new_state

def build_authorization_url(config: PlatformConfig, redirect_uri: str, state: str,
                            code_challenge: Optional[str] = None) -> str:
    """Authorization request URL for the code grant, with S256 PKCE parameters when a challenge is given."""
    session = OAuth2Session(
        client_id=config.client_id,
        redirect_uri=redirect_uri,
        scope=config.scopes,
        state=state
    )
    extra_params = {}
    if code_challenge:
        extra_params = {
            "code_challenge": code_challenge,
            "code_challenge_method": config.code_challenge_method or "S256"
        }
    authorization_url, _ = session.authorization_url(config.authorization_endpoint, state=state, **extra_params)
    return authorization_url

def _first(params: Dict[str, List[str]], name: str) -> Optional[str]:
    values = params.get(name)
    return values[0] if values else None

class OAuthOrchestrator:
    """
    Drives the authorization code flow for one platform at a time:
    build URL -> browser session -> callback -> proxy exchange -> profile -> persist.
    """

    def __init__(self, store: SecureStorage, token_proxy: TokenProxy,
                 auth_session: AuthorizationSession,
                 settings: Optional[Settings] = None,
                 api_client: Optional[ApiClient] = None,
                 clock: Optional[Callable[[], datetime]] = None):
        self.store = store
        self.token_proxy = token_proxy
        self.auth_session = auth_session
        self.settings = settings or get_settings()
        self.api_client = api_client or ApiClient()
        self.clock = clock or (lambda: datetime.now(timezone.utc))
        # One redirect listener, so one browser session at a time
        self._lock = asyncio.Lock()

    @property
    def redirect_uri(self) -> str:
        return self.settings.OAUTH_REDIRECT_URI

    def start_authorization(self, platform: str) -> AuthorizationAttempt:
        """
        Begin a connect attempt.

        Returns:
            AuthorizationAttempt holding the URL to open, the state to expect
            back and, for PKCE platforms, the code verifier
        """
        config = get_platform_config(platform, self.settings)
        state = generate_state()
        code_verifier = generate_code_verifier() if config.use_pkce else None
        code_challenge = generate_code_challenge(code_verifier) if code_verifier else None

        attempt = AuthorizationAttempt(
            platform=config.platform,
            state=state,
            redirect_uri=self.redirect_uri,
            authorization_url=build_authorization_url(config, self.redirect_uri, state, code_challenge),
            code_verifier=code_verifier
        )
        attempt.transition(ConnectionState.AUTHORIZATION_REQUESTED)
        logger.info(f"Starting {config.platform} authorization (PKCE: {'yes' if config.use_pkce else 'no'})")
        return attempt

    def _fail(self, attempt: AuthorizationAttempt, reason: str) -> ConnectionResult:
        attempt.code_verifier = None
        attempt.transition(ConnectionState.FAILED)
        logger.warning(f"{attempt.platform} connect failed: {reason}")
        return ConnectionResult(success=False, state=ConnectionState.FAILED, error=reason)

    def _cancel(self, attempt: AuthorizationAttempt) -> ConnectionResult:
        attempt.code_verifier = None
        attempt.transition(ConnectionState.CANCELLED)
        logger.info(f"{attempt.platform} connect cancelled by the user")
        return ConnectionResult(success=False, state=ConnectionState.CANCELLED, error="Authentication cancelled")

    async def fetch_user_profile(self, platform: str, access_token: str) -> Optional[UserProfile]:
        """Fetch and normalize the remote profile the token was issued for; None on any failure."""
        try:
            config = get_platform_config(platform, self.settings)
            response = await self.api_client.get(
                config.profile_endpoint,
                headers={"Authorization": f"Bearer {access_token}"}
            )
            if not response.ok:
                logger.error(f"Profile fetch failed for {platform}: {response.status}")
                return None
            if not isinstance(response.data, dict):
                logger.error(f"Profile response for {platform} is not a JSON object")
                return None
            return get_profile_parser(platform).parse(response.data)
        except Exception:
            logger.error(f"Error fetching {platform} user profile", exc_info=True)
            return None

    async def complete_authorization(self, attempt: AuthorizationAttempt, callback_url: str) -> ConnectionResult:
        """Finish an attempt from the redirect URL the browser session ended on."""
        try:
            return await self._complete(attempt, callback_url)
        except StorageError as e:
            logger.error(f"Could not store {attempt.platform} credentials: {str(e)}")
            return self._fail(attempt, "Failed to store account credentials")
        except Exception:
            logger.error(f"OAuth authentication error for {attempt.platform}", exc_info=True)
            return self._fail(attempt, "Authentication failed")

    async def _complete(self, attempt: AuthorizationAttempt, callback_url: str) -> ConnectionResult:
        platform = attempt.platform
        params = parse_qs(urlparse(callback_url).query)

        error = _first(params, "error")
        if error:
            return self._fail(attempt, _first(params, "error_description") or error)

        if not verify_state(attempt.state, _first(params, "state")):
            return self._fail(attempt, "Invalid state parameter")

        code = _first(params, "code")
        if not code:
            return self._fail(attempt, "No authorization code received")
        attempt.transition(ConnectionState.CODE_RECEIVED)

        try:
            grant = await self.token_proxy.exchange_code(
                platform,
                code,
                attempt.redirect_uri,
                attempt.code_verifier
            )
        except Exception as e:
            logger.error(f"Token exchange error for {platform}: {str(e)}")
            return self._fail(attempt, "Failed to exchange code for token")
        finally:
            attempt.code_verifier = None

        now = self.clock()
        token = token_from_grant(platform, grant, now)
        attempt.transition(ConnectionState.TOKEN_EXCHANGED)

        profile = await self.fetch_user_profile(platform, token.access_token)
        if not profile:
            return self._fail(attempt, "Failed to fetch user profile")
        attempt.transition(ConnectionState.PROFILE_FETCHED)

        token = token.model_copy(update={"user_id": profile.user_id, "username": profile.username})
        account = ConnectedAccount(
            id=f"{platform}_{profile.user_id}",
            platform=platform,
            user_id=profile.user_id,
            username=profile.username,
            display_name=profile.display_name,
            profile_picture=profile.profile_picture,
            connected_at=now,
            expires_at=token.expires_at,
            scopes=get_platform_config(platform, self.settings).scopes
        )
        await self.store.save_connection(platform, token, account)

        attempt.transition(ConnectionState.CONNECTED)
        logger.info(f"Connected {platform} account {account.username}")
        return ConnectionResult(success=True, state=ConnectionState.CONNECTED, account=account)

    async def authenticate(self, platform: str) -> ConnectionResult:
        """Run the whole connect flow for a platform through the browser session."""
        try:
            platform = normalize_platform(platform)
        except UnsupportedPlatformError as e:
            return ConnectionResult(success=False, state=ConnectionState.FAILED, error=str(e))

        async with self._lock:
            attempt = None
            try:
                attempt = self.start_authorization(platform)
                attempt.transition(ConnectionState.AWAITING_CALLBACK)
                session_result = await self.auth_session.open(attempt.authorization_url, attempt.redirect_uri)

                if session_result.type in ("cancel", "dismiss"):
                    return self._cancel(attempt)
                if session_result.type != "success" or not session_result.url:
                    if session_result.error:
                        logger.error(f"Authorization session error: {session_result.error}")
                    return self._fail(attempt, "Authentication failed")

                return await self.complete_authorization(attempt, session_result.url)

            except Exception:
                logger.error(f"OAuth authentication error for {platform}", exc_info=True)
                if attempt is not None:
                    return self._fail(attempt, "Authentication failed")
                return ConnectionResult(success=False, state=ConnectionState.FAILED, error="Authentication failed")

    async def disconnect(self, platform: str) -> DisconnectResult:
        """Revoke (best effort) and forget the platform's token and account. Safe to repeat."""
        try:
            platform = normalize_platform(platform)
            token = await self.store.get_token(platform)

            if token and token.access_token:
                try:
                    await self.token_proxy.revoke_token(platform, token.access_token)
                except Exception as e:
                    # Revocation failure shouldn't prevent disconnection
                    logger.warning(f"Token revocation failed for {platform}, continuing with disconnection: {str(e)}")

            await self.store.remove_connected_account(platform)
            logger.info(f"Disconnected {platform}")
            return DisconnectResult(success=True)

        except UnsupportedPlatformError as e:
            return DisconnectResult(success=False, error=str(e))
        except Exception:
            logger.error(f"Error disconnecting {platform}", exc_info=True)
            return DisconnectResult(success=False, error="Failed to disconnect")
