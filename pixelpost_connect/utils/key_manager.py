from pathlib import Path
from typing import Optional
from cryptography.fernet import Fernet
import os
import stat
from .logger import get_logger

logger = get_logger(__name__)

class KeyManager:
    """Loads or creates the Fernet key protecting the encrypted storage tier."""

    def __init__(self, key_path: str):
        self.key_path = Path(key_path)
        self.key_path.parent.mkdir(parents=True, exist_ok=True)
        self.key = self._load_or_create_key()

        # Set file permissions to be readable only by owner
        os.chmod(self.key_path, stat.S_IRUSR | stat.S_IWUSR)

    def _load_or_create_key(self) -> bytes:
        if self.key_path.exists():
            key = self.key_path.read_bytes().strip()
            if self._is_valid_key(key):
                return key
            logger.warning(f"Invalid key format found at {self.key_path}, generating new key")

        key = Fernet.generate_key()
        self.key_path.write_bytes(key)
        logger.info(f"Created new storage key at {self.key_path}")
        return key

    @staticmethod
    def _is_valid_key(key: bytes) -> bool:
        try:
            Fernet(key)
            return True
        except (ValueError, TypeError):
            return False

    def get_fernet(self) -> Fernet:
        return Fernet(self.key)

def resolve_fernet(encryption_key: Optional[str], key_path: str) -> Fernet:
    """
    Build the Fernet instance for storage.

    An explicit ENCRYPTION_KEY wins; otherwise the key file is loaded or created.
    """
    if encryption_key:
        try:
            return Fernet(encryption_key.encode())
        except (ValueError, TypeError) as e:
            logger.error(f"Invalid encryption key format: {str(e)}")
            raise ValueError("Encryption key must be 32 url-safe base64-encoded bytes")
    return KeyManager(key_path).get_fernet()
