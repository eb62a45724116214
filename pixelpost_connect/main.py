from fastapi import FastAPI, HTTPException, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from contextlib import asynccontextmanager
from datetime import datetime, timezone
import uvicorn
from .routes.token_routes import router as token_router
from .config import get_settings, PLATFORMS
from .utils.logger import get_logger

# Initialize settings and logger
settings = get_settings()
logger = get_logger(__name__)

@asynccontextmanager
async def lifespan(app: FastAPI):
    """Lifespan context manager for startup and shutdown events."""
    logger.info(f"Starting token proxy in {settings.ENVIRONMENT} environment")
    logger.info(f"API key required: {'yes' if settings.TOKEN_PROXY_API_KEY else 'no'}")

    logger.debug("Token proxy configuration:")
    logger.debug(f"Server Host: {settings.SERVER_HOST}")
    logger.debug(f"Server Port: {settings.SERVER_PORT}")
    logger.debug(f"Allowed Origins: {settings.ALLOWED_ORIGINS}")
    for platform in PLATFORMS:
        creds = settings.oauth_credentials[platform]
        logger.debug(f"- {platform} client secret configured: {'Yes' if creds.get('client_secret') else 'No'}")

    yield

    logger.info("Shutting down token proxy")

app = FastAPI(
    title="PixelPost Token Proxy",
    description="Holds platform client secrets and performs OAuth token exchange, refresh and revocation",
    version="1.0.0",
    docs_url="/docs" if settings.ENVIRONMENT != "production" else None,
    redoc_url="/redoc" if settings.ENVIRONMENT != "production" else None,
    lifespan=lifespan
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=False,
    allow_methods=["POST", "GET"],
    allow_headers=["*"],
    max_age=600,
)

app.include_router(
    token_router,
    prefix="/oauth/token",
    tags=["oauth-token"],
)

@app.get("/health")
async def health_check():
    """Health check endpoint for monitoring."""
    return {
        "status": "healthy",
        "environment": settings.ENVIRONMENT,
        "timestamp": datetime.now(timezone.utc).isoformat(),
        "platforms": list(PLATFORMS)
    }

@app.exception_handler(HTTPException)
async def http_exception_handler(request: Request, exc: HTTPException):
    logger.error(f"HTTP error occurred on {request.url.path}: {exc.detail}")
    return JSONResponse(
        status_code=exc.status_code,
        content={"detail": exc.detail}
    )

@app.exception_handler(Exception)
async def general_exception_handler(request: Request, exc: Exception):
    logger.error(f"Unhandled error occurred: {str(exc)}", exc_info=exc)
    return JSONResponse(
        status_code=500,
        content={"detail": "Internal server error"}
    )

if __name__ == "__main__":
    log_config = uvicorn.config.LOGGING_CONFIG
    log_config["formatters"]["access"]["fmt"] = settings.LOG_FORMAT

    uvicorn.run(
        "pixelpost_connect.main:app",
        host=settings.SERVER_HOST,
        port=settings.SERVER_PORT,
        reload=settings.ENVIRONMENT == "development",
        workers=1 if settings.ENVIRONMENT == "development" else settings.WORKERS,
        log_level=settings.LOG_LEVEL.lower(),
        log_config=log_config
    )
