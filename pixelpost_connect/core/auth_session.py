from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Optional
from urllib.parse import urlparse
import asyncio
import webbrowser
from aiohttp import web
from ..config import get_settings
from ..utils.logger import get_logger

logger = get_logger(__name__)

CALLBACK_PAGE = """<!DOCTYPE html>
<html>
<head><title>PixelPost</title></head>
<body>
<p>Authorization complete. You can close this window and return to PixelPost.</p>
</body>
</html>"""

@dataclass
class AuthSessionResult:
    """How a browser authorization session ended."""
    type: str  # "success", "cancel", "dismiss" or "error"
    url: Optional[str] = None
    error: Optional[str] = None

class AuthorizationSession(ABC):
    """An external, user-facing browser session that ends on the redirect URI."""

    @abstractmethod
    async def open(self, authorization_url: str, redirect_uri: str) -> AuthSessionResult:
        pass

class LoopbackAuthorizationSession(AuthorizationSession):
    """
    Opens the system browser and captures the redirect on a local listener.

    The redirect URI must be an http URI on a loopback host, e.g.
    http://127.0.0.1:8765/oauth/callback. A session that receives no redirect
    within the timeout is reported as dismissed.
    """

    def __init__(self, timeout: Optional[int] = None, open_browser=webbrowser.open):
        self.timeout = timeout or get_settings().AUTH_SESSION_TIMEOUT
        self.open_browser = open_browser

    async def open(self, authorization_url: str, redirect_uri: str) -> AuthSessionResult:
        parsed = urlparse(redirect_uri)
        if parsed.scheme != "http" or not parsed.hostname or not parsed.port:
            return AuthSessionResult(type="error", error=f"Redirect URI is not a loopback URI: {redirect_uri}")

        loop = asyncio.get_running_loop()
        callback: asyncio.Future = loop.create_future()

        async def handle_callback(request: web.Request) -> web.Response:
            if not callback.done():
                callback.set_result(str(request.url))
            return web.Response(text=CALLBACK_PAGE, content_type="text/html")

        app = web.Application()
        app.router.add_get(parsed.path or "/", handle_callback)
        runner = web.AppRunner(app)
        await runner.setup()
        try:
            site = web.TCPSite(runner, parsed.hostname, parsed.port)
            await site.start()
            logger.debug(f"Listening for OAuth redirect on {redirect_uri}")

            if not self.open_browser(authorization_url):
                return AuthSessionResult(type="error", error="Could not open a browser")

            try:
                url = await asyncio.wait_for(callback, timeout=self.timeout)
            except asyncio.TimeoutError:
                logger.info("Authorization session timed out waiting for the redirect")
                return AuthSessionResult(type="dismiss")
            return AuthSessionResult(type="success", url=url)

        except OSError as e:
            logger.error(f"Cannot listen on {redirect_uri}: {str(e)}")
            return AuthSessionResult(type="error", error=str(e))
        finally:
            await runner.cleanup()
