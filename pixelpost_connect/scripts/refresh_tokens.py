import asyncio
from ..core.secure_storage import create_secure_storage
from ..core.token_lifecycle import TokenLifecycleManager
from ..core.token_proxy import HttpTokenProxy
from ..services.token_refresh_service import TokenRefreshService
from ..utils.logger import get_logger

logger = get_logger(__name__)

async def main():
    storage = create_secure_storage()
    try:
        service = TokenRefreshService(TokenLifecycleManager(storage, HttpTokenProxy()))
        results = await service.check_and_refresh_tokens()
        failed = [platform for platform, refreshed in results.items() if not refreshed]
        if failed:
            logger.warning(f"Re-authorization needed for: {', '.join(failed)}")
    finally:
        storage.close()

if __name__ == "__main__":
    asyncio.run(main())
