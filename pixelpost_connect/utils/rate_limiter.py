from typing import Dict, Optional
import time
import asyncio
from .logger import get_logger
from ..config import get_settings

logger = get_logger(__name__)

class RateLimiter:
    """Per-platform spacing of publish requests, tracked per endpoint."""

    def __init__(self, platform: str, requests_per_second: Optional[float] = None):
        """
        Initialize rate limiter for specific platform.

        Args:
            platform: Platform identifier (e.g., 'twitter', 'facebook')
            requests_per_second: Override for PUBLISH_RATE_LIMIT
        """
        self.platform = platform
        self.requests_per_second = requests_per_second or get_settings().PUBLISH_RATE_LIMIT
        self.last_request: Dict[str, float] = {}
        self._lock = asyncio.Lock()

        logger.debug(f"Initialized rate limiter for {platform} with {self.requests_per_second} requests/second")

    async def wait(self, endpoint: str) -> None:
        """
        Wait if necessary to respect rate limits.

        Args:
            endpoint: API endpoint identifier
        """
        async with self._lock:
            key = f"{self.platform}:{endpoint}"
            last = self.last_request.get(key)
            if last is not None:
                min_interval = 1 / self.requests_per_second
                elapsed = time.monotonic() - last
                if elapsed < min_interval:
                    wait_time = min_interval - elapsed
                    logger.debug(f"Rate limit wait for {key}: {wait_time:.2f}s")
                    await asyncio.sleep(wait_time)
            self.last_request[key] = time.monotonic()
