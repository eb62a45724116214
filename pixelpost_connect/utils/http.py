from typing import Any, Dict, Optional
from dataclasses import dataclass
import json
import aiohttp
from .logger import get_logger
from ..config import get_settings

logger = get_logger(__name__)

@dataclass
class ApiResponse:
    """Status and decoded body of a platform or proxy response."""
    status: int
    data: Any = None
    text: str = ""

    @property
    def ok(self) -> bool:
        return 200 <= self.status < 300

    def error_message(self, *paths: str) -> Optional[str]:
        """
        Pull a human readable error out of the body.

        Args:
            paths: Dotted paths tried in order, e.g. "error.message", "detail"

        Returns:
            First non-empty string found, or None
        """
        if not isinstance(self.data, dict):
            return None
        for path in paths:
            value: Any = self.data
            for part in path.split("."):
                if not isinstance(value, dict):
                    value = None
                    break
                value = value.get(part)
            if isinstance(value, str) and value:
                return value
        return None

class ApiClient:
    """Thin aiohttp wrapper returning ApiResponse objects instead of raising on HTTP errors."""

    def __init__(self, timeout: Optional[int] = None):
        self.timeout = aiohttp.ClientTimeout(total=timeout or get_settings().HTTP_TIMEOUT)

    async def request(
        self,
        method: str,
        url: str,
        *,
        params: Optional[Dict[str, Any]] = None,
        json_body: Optional[Dict[str, Any]] = None,
        data: Optional[Dict[str, Any]] = None,
        headers: Optional[Dict[str, str]] = None,
        auth: Optional[aiohttp.BasicAuth] = None
    ) -> ApiResponse:
        logger.debug(f"{method} {url}")
        async with aiohttp.ClientSession(timeout=self.timeout) as session:
            async with session.request(
                method,
                url,
                params=params,
                json=json_body,
                data=data,
                headers=headers,
                auth=auth
            ) as response:
                text = await response.text()
                try:
                    body = json.loads(text) if text else None
                except json.JSONDecodeError:
                    body = None
                logger.debug(f"{method} {url} -> {response.status}")
                return ApiResponse(status=response.status, data=body, text=text)

    async def get(self, url: str, **kwargs) -> ApiResponse:
        return await self.request("GET", url, **kwargs)

    async def post(self, url: str, **kwargs) -> ApiResponse:
        return await self.request("POST", url, **kwargs)

    async def delete(self, url: str, **kwargs) -> ApiResponse:
        return await self.request("DELETE", url, **kwargs)
