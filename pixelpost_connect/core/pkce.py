"""
PKCE (RFC 7636) verifier/challenge pairs and anti-CSRF state tokens.
"""

from typing import Optional
import base64
import hashlib
import secrets

MIN_VERIFIER_BYTES = 32

def _urlsafe_b64(raw: bytes) -> str:
    return base64.urlsafe_b64encode(raw).decode('utf-8').rstrip('=')

def generate_code_verifier(num_bytes: int = MIN_VERIFIER_BYTES) -> str:
    """Random URL-safe verifier; 32 bytes encode to 43 characters, the RFC minimum."""
    if num_bytes < MIN_VERIFIER_BYTES:
        raise ValueError(f"Code verifier needs at least {MIN_VERIFIER_BYTES} random bytes")
    return _urlsafe_b64(secrets.token_bytes(num_bytes))

def generate_code_challenge(verifier: str) -> str:
    """S256 challenge: BASE64URL(SHA256(ASCII(verifier))) without padding."""
    return _urlsafe_b64(hashlib.sha256(verifier.encode('ascii')).digest())

def generate_state(num_bytes: int = 16) -> str:
    return _urlsafe_b64(secrets.token_bytes(num_bytes))

def verify_state(expected: str, received: Optional[str]) -> bool:
    """Constant-time comparison of the state sent with the one returned."""
    if not expected or not received:
        return False
    return secrets.compare_digest(expected.encode('utf-8'), received.encode('utf-8'))
