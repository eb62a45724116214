from pydantic_settings import BaseSettings, SettingsConfigDict
from typing import Dict, List, Optional
from dotenv import load_dotenv
from functools import lru_cache

# Load environment variables
load_dotenv()

PLATFORMS = ("instagram", "facebook", "twitter", "linkedin", "pinterest")

class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", case_sensitive=True, extra="ignore")

    # Server Configuration (token proxy)
    SERVER_HOST: str = "0.0.0.0"
    SERVER_PORT: int = 8000
    DEBUG: bool = False
    ENVIRONMENT: str = "development"
    ALLOWED_ORIGINS: str = "*"
    WORKERS: int = 1

    # OAuth flow
    OAUTH_REDIRECT_URI: str = "http://127.0.0.1:8765/oauth/callback"
    TOKEN_PROXY_URL: str = "http://localhost:8000/oauth/token"
    TOKEN_PROXY_API_KEY: Optional[str] = None
    AUTH_SESSION_TIMEOUT: int = 300
    HTTP_TIMEOUT: int = 30

    # Public client ids
    INSTAGRAM_CLIENT_ID: str = "YOUR_INSTAGRAM_APP_ID"
    FACEBOOK_CLIENT_ID: str = "YOUR_FACEBOOK_APP_ID"
    TWITTER_CLIENT_ID: str = "YOUR_TWITTER_CLIENT_ID"
    LINKEDIN_CLIENT_ID: str = "YOUR_LINKEDIN_CLIENT_ID"
    PINTEREST_CLIENT_ID: str = "YOUR_PINTEREST_APP_ID"

    # Client secrets, only read by the token proxy server
    INSTAGRAM_CLIENT_SECRET: Optional[str] = None
    FACEBOOK_CLIENT_SECRET: Optional[str] = None
    TWITTER_CLIENT_SECRET: Optional[str] = None
    LINKEDIN_CLIENT_SECRET: Optional[str] = None
    PINTEREST_CLIENT_SECRET: Optional[str] = None

    # Secure storage
    STORAGE_PATH: str = "data/secure_store.db"
    STORAGE_BACKEND: str = "encrypted"
    ENCRYPTION_KEY: Optional[str] = None
    KEY_PATH: str = "data/.keys/fernet.key"

    # Publishing / maintenance
    PUBLISH_RATE_LIMIT: float = 1.0
    TOKEN_REFRESH_THRESHOLD_HOURS: int = 48

    # Logging
    LOG_LEVEL: str = "INFO"
    LOG_FORMAT: str = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
    LOG_FILE: str = "pixelpost_connect.log"

    @property
    def oauth_credentials(self) -> Dict:
        """Get all OAuth credentials organized by platform."""
        return {
            platform: {
                "client_id": getattr(self, f"{platform.upper()}_CLIENT_ID"),
                "client_secret": getattr(self, f"{platform.upper()}_CLIENT_SECRET"),
                "redirect_uri": self.OAUTH_REDIRECT_URI
            }
            for platform in PLATFORMS
        }

    @property
    def cors_origins(self) -> List[str]:
        """Get CORS origins as list."""
        if self.ENVIRONMENT == "development":
            return ["*"]
        return [origin.strip() for origin in self.ALLOWED_ORIGINS.split(",") if origin.strip()]

    def get_platform_credentials(self, platform: str) -> Dict:
        """Get credentials for a specific platform."""
        creds = self.oauth_credentials.get(platform)
        if not creds:
            raise ValueError(f"No credentials found for platform: {platform}")
        return creds

    def validate_environment(self) -> None:
        if self.ENVIRONMENT not in ["development", "production", "testing"]:
            raise ValueError("Invalid environment")

        if self.STORAGE_BACKEND not in ["encrypted", "obfuscated"]:
            raise ValueError("STORAGE_BACKEND must be 'encrypted' or 'obfuscated'")

        if self.ENVIRONMENT == "production":
            if not self.TOKEN_PROXY_API_KEY:
                raise ValueError("TOKEN_PROXY_API_KEY must be set in production")
            if self.STORAGE_BACKEND != "encrypted":
                raise ValueError("Only the encrypted storage backend is allowed in production")

# Create cached settings instance
@lru_cache()
def get_settings() -> Settings:
    """Get cached settings instance."""
    settings = Settings()
    settings.validate_environment()
    return settings
