"""
Exception types shared across the package.
"""

from typing import Optional


class PixelPostError(Exception):
    """Base class for errors raised inside pixelpost_connect."""


class UnsupportedPlatformError(PixelPostError, ValueError):
    """Raised when a platform identifier is not one of the supported five."""

    def __init__(self, platform: str):
        super().__init__(f"Unsupported platform: {platform}")
        self.platform = platform


class StorageError(PixelPostError):
    """Raised when the secure storage tier cannot be written."""


class ApiError(PixelPostError):
    """Raised when a platform API returns an unusable response."""

    def __init__(self, message: str, status: Optional[int] = None):
        super().__init__(message)
        self.status = status


class TokenProxyError(PixelPostError):
    """Raised when the token proxy rejects an exchange, refresh or revoke call."""

    def __init__(self, operation: str, status: Optional[int] = None, detail: Optional[str] = None):
        super().__init__(f"Token {operation} failed ({status}): {detail}")
        self.operation = operation
        self.status = status
        self.detail = detail


class CredentialsError(PixelPostError):
    """Raised by the token proxy server when a platform's client secret is not configured."""
