from typing import Dict, List, Optional
from datetime import datetime, timedelta, timezone
import json
from pydantic import ValidationError
from .db import SqliteSecureStore
from .registry import normalize_platform
from ..config import get_settings, Settings
from ..exceptions import StorageError
from ..models.oauth_models import OAuthToken, ConnectedAccount
from ..utils.crypto import FernetEncryption, Obfuscation
from ..utils.key_manager import resolve_fernet
from ..utils.logger import get_logger

logger = get_logger(__name__)

KEY_PREFIX = "pixelpost_"

STORAGE_KEYS: Dict[str, str] = {
    "INSTAGRAM_TOKEN": "pixelpost_instagram_token",
    "FACEBOOK_TOKEN": "pixelpost_facebook_token",
    "TWITTER_TOKEN": "pixelpost_twitter_token",
    "LINKEDIN_TOKEN": "pixelpost_linkedin_token",
    "PINTEREST_TOKEN": "pixelpost_pinterest_token",
    "USER_DATA": "pixelpost_user_data",
    "CONNECTED_ACCOUNTS": "pixelpost_connected_accounts",
    "APP_SETTINGS": "pixelpost_app_settings",
}

EXPIRY_BUFFER = timedelta(minutes=5)

def token_key(platform: str) -> str:
    return f"{KEY_PREFIX}{normalize_platform(platform)}_token"

def is_token_expired(token: OAuthToken, now: Optional[datetime] = None) -> bool:
    """
    Check whether a token should be treated as expired.

    Tokens count as expired from five minutes before their expiry instant.
    Tokens without an expiry never expire by this check.
    """
    if token.expires_at is None:
        return False
    now = now or datetime.now(timezone.utc)
    expires_at = token.expires_at
    if expires_at.tzinfo is None:
        expires_at = expires_at.replace(tzinfo=timezone.utc)
    return now >= expires_at - EXPIRY_BUFFER

class SecureStorage:
    """
    Platform-keyed storage of OAuth tokens and the connected account list.

    Reads never raise: a storage failure reads as "nothing stored".
    Writes raise StorageError so callers can report the failure.
    """

    def __init__(self, backend: SqliteSecureStore):
        self.backend = backend

    @property
    def is_secure(self) -> bool:
        """False when running on the obfuscated fallback tier."""
        return self.backend.is_secure

    # Tokens

    async def store_token(self, platform: str, token: OAuthToken) -> None:
        logger.debug(f"Storing {platform} token (refresh token: {'yes' if token.refresh_token else 'no'})")
        self.backend.set(token_key(platform), token.model_dump_json())

    async def replace_token(self, platform: str, token: OAuthToken) -> bool:
        """Overwrite the stored token only if one is still there; False means the platform was disconnected."""
        return self.backend.update(token_key(platform), token.model_dump_json())

    async def get_token(self, platform: str) -> Optional[OAuthToken]:
        try:
            raw = self.backend.get(token_key(platform))
            if not raw:
                return None
            return OAuthToken.model_validate_json(raw)
        except (StorageError, ValidationError) as e:
            logger.error(f"Error getting {platform} token: {str(e)}")
            return None

    async def delete_token(self, platform: str) -> None:
        self.backend.delete(token_key(platform))
        logger.debug(f"Deleted token for platform {platform}")

    # Connected accounts

    def _read_accounts(self) -> List[ConnectedAccount]:
        raw = self.backend.get(STORAGE_KEYS["CONNECTED_ACCOUNTS"])
        if not raw:
            return []
        try:
            return [ConnectedAccount.model_validate(item) for item in json.loads(raw)]
        except (ValueError, TypeError) as e:
            raise StorageError(f"Corrupt connected account list: {e}") from e

    def _accounts_for_write(self) -> List[ConnectedAccount]:
        try:
            return self._read_accounts()
        except StorageError as e:
            logger.warning(f"Connected account list unreadable, rewriting it: {str(e)}")
            return []

    @staticmethod
    def _dump_accounts(accounts: List[ConnectedAccount]) -> str:
        return json.dumps([account.model_dump(mode="json") for account in accounts])

    async def store_connected_accounts(self, accounts: List[ConnectedAccount]) -> None:
        self.backend.set(STORAGE_KEYS["CONNECTED_ACCOUNTS"], self._dump_accounts(accounts))

    async def get_connected_accounts(self) -> List[ConnectedAccount]:
        try:
            return self._read_accounts()
        except StorageError as e:
            logger.error(f"Error reading connected accounts: {str(e)}")
            return []

    async def add_connected_account(self, account: ConnectedAccount) -> None:
        """Add an account, replacing any existing account for the same platform."""
        accounts = [a for a in self._accounts_for_write() if a.platform != account.platform]
        accounts.append(account)
        await self.store_connected_accounts(accounts)

    async def save_connection(self, platform: str, token: OAuthToken, account: ConnectedAccount) -> None:
        """Persist a token and its account record together; neither is written if either fails."""
        accounts = [a for a in self._accounts_for_write() if a.platform != account.platform]
        accounts.append(account)
        self.backend.write_batch(
            {
                token_key(platform): token.model_dump_json(),
                STORAGE_KEYS["CONNECTED_ACCOUNTS"]: self._dump_accounts(accounts),
            },
            [],
        )
        logger.debug(f"Saved {platform} connection for account {account.id}")

    async def remove_connected_account(self, platform: str) -> None:
        """Remove the platform's account entry and delete its token in one transaction."""
        platform = normalize_platform(platform)
        accounts = [a for a in self._accounts_for_write() if a.platform != platform]
        self.backend.write_batch(
            {STORAGE_KEYS["CONNECTED_ACCOUNTS"]: self._dump_accounts(accounts)},
            [token_key(platform)],
        )
        logger.debug(f"Removed {platform} account and token")

    async def clear_all_secure_data(self) -> None:
        """Wipe every key this store owns (full logout)."""
        keys = set(STORAGE_KEYS.values())
        keys.update(key for key in self.backend.keys() if key.startswith(KEY_PREFIX))
        self.backend.write_batch({}, sorted(keys))
        logger.info("Cleared all secure data")

    def close(self) -> None:
        self.backend.close()

    @staticmethod
    def is_token_expired(token: OAuthToken, now: Optional[datetime] = None) -> bool:
        return is_token_expired(token, now)

def create_secure_storage(settings: Optional[Settings] = None) -> SecureStorage:
    """Build the storage tier selected by STORAGE_BACKEND."""
    settings = settings or get_settings()
    if settings.STORAGE_BACKEND == "obfuscated":
        codec = Obfuscation()
    else:
        codec = FernetEncryption(resolve_fernet(settings.ENCRYPTION_KEY, settings.KEY_PATH))
    return SecureStorage(SqliteSecureStore(settings.STORAGE_PATH, codec))
