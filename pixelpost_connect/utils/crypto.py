from cryptography.fernet import Fernet, InvalidToken
from urllib.parse import quote, unquote
import base64
from .logger import get_logger

logger = get_logger(__name__)

class FernetEncryption:
    """Encrypts stored values with Fernet (AES-128-CBC + HMAC)."""

    is_secure = True

    def __init__(self, fernet: Fernet):
        self.cipher_suite = fernet

    def encrypt(self, data: str) -> str:
        """Encrypt string data."""
        if not isinstance(data, str):
            raise ValueError(f"Data must be string, got {type(data)}")
        return self.cipher_suite.encrypt(data.encode()).decode()

    def decrypt(self, encrypted_data: str) -> str:
        """Decrypt encrypted string."""
        if not isinstance(encrypted_data, str):
            raise ValueError(f"Encrypted data must be string, got {type(encrypted_data)}")
        try:
            return self.cipher_suite.decrypt(encrypted_data.encode()).decode()
        except InvalidToken:
            logger.error("Decryption error: value was not encrypted with the current key")
            raise

class Obfuscation:
    """
    Reversible base64 encoding for hosts with no usable key storage.

    This is NOT encryption. Anyone who can read the storage file can read the
    tokens. It only keeps values from being readable at a glance.
    """

    is_secure = False

    def encrypt(self, data: str) -> str:
        if not isinstance(data, str):
            raise ValueError(f"Data must be string, got {type(data)}")
        return base64.b64encode(quote(data, safe="").encode()).decode()

    def decrypt(self, encrypted_data: str) -> str:
        return unquote(base64.b64decode(encrypted_data.encode()).decode())
