from pydantic import BaseModel, ConfigDict, Field
from typing import Optional, List
from datetime import datetime, timezone
from enum import Enum

def utcnow() -> datetime:
    return datetime.now(timezone.utc)

class OAuthToken(BaseModel):
    """Access token issued to one user on one platform."""
    access_token: str
    refresh_token: Optional[str] = None
    expires_at: Optional[datetime] = None  # None for tokens that never expire
    token_type: str = "Bearer"
    scope: Optional[str] = None
    user_id: Optional[str] = None
    username: Optional[str] = None

    @property
    def can_refresh(self) -> bool:
        return bool(self.refresh_token)

class ConnectedAccount(BaseModel):
    """User-facing record of a connected platform account."""
    id: str
    platform: str
    user_id: str
    username: str
    display_name: Optional[str] = None
    profile_picture: Optional[str] = None
    connected_at: datetime = Field(default_factory=utcnow)
    expires_at: Optional[datetime] = None
    scopes: List[str] = Field(default_factory=list)

class PlatformConfig(BaseModel):
    """Static OAuth and API facts for one platform."""
    model_config = ConfigDict(frozen=True)

    platform: str
    display_name: str
    client_id: str
    scopes: List[str]
    authorization_endpoint: str
    token_endpoint: str
    refresh_endpoint: Optional[str] = None
    revoke_endpoint: Optional[str] = None
    response_type: str = "code"
    use_pkce: bool = False
    code_challenge_method: Optional[str] = None
    token_lifetime: int
    profile_endpoint: str

class UserProfile(BaseModel):
    """Normalized profile returned by a platform's profile endpoint."""
    user_id: str
    username: str
    display_name: Optional[str] = None
    profile_picture: Optional[str] = None

class PostContent(BaseModel):
    """One piece of content to publish."""
    caption: str
    image_url: Optional[str] = None
    video_url: Optional[str] = None
    link: Optional[str] = None
    hashtags: List[str] = Field(default_factory=list)

class PublishTargets(BaseModel):
    """Externally supplied destinations some platforms need."""
    facebook_page_id: Optional[str] = None
    linkedin_person_urn: Optional[str] = None
    pinterest_board_id: Optional[str] = None

class PostResult(BaseModel):
    """Outcome of publishing to one platform."""
    success: bool
    platform: str
    post_id: Optional[str] = None
    error: Optional[str] = None

class ConnectionState(str, Enum):
    IDLE = "idle"
    AUTHORIZATION_REQUESTED = "authorization_requested"
    AWAITING_CALLBACK = "awaiting_callback"
    CODE_RECEIVED = "code_received"
    TOKEN_EXCHANGED = "token_exchanged"
    PROFILE_FETCHED = "profile_fetched"
    CONNECTED = "connected"
    FAILED = "failed"
    CANCELLED = "cancelled"

class ConnectionResult(BaseModel):
    """Outcome of a connect attempt."""
    success: bool
    state: ConnectionState
    account: Optional[ConnectedAccount] = None
    error: Optional[str] = None

class DisconnectResult(BaseModel):
    success: bool
    error: Optional[str] = None

class TokenGrant(BaseModel):
    """Token payload returned by the token proxy."""
    model_config = ConfigDict(extra="ignore")

    access_token: str
    refresh_token: Optional[str] = None
    expires_in: Optional[int] = None
    token_type: Optional[str] = None
    scope: Optional[str] = None

class TokenExchangeRequest(BaseModel):
    """Request body for the token proxy's code exchange."""
    model_config = ConfigDict(populate_by_name=True)

    platform: str
    code: str
    redirect_uri: str = Field(alias="redirectUri")
    code_verifier: Optional[str] = Field(default=None, alias="codeVerifier")

class TokenRefreshRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    platform: str
    refresh_token: str = Field(alias="refreshToken")

class TokenRevokeRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    platform: str
    access_token: str = Field(alias="accessToken")

class TokenRevokeResponse(BaseModel):
    platform: str
    revoked: bool
