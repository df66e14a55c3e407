"""Application configuration using Pydantic Settings"""

import logging
from functools import lru_cache
from pathlib import Path

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from core.errors import ConfigurationError

logger = logging.getLogger(__name__)


class Settings(BaseSettings):
    """Application settings with environment variable support

    Credentials default to empty so the server can boot without them; each
    upstream call checks what it needs through ``require``.
    """

    model_config = SettingsConfigDict(
        env_file=Path(__file__).parent.parent / ".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # Twitch OAuth / Helix
    twitch_client_id: str = Field(default="", description="Twitch OAuth Client ID")
    twitch_client_secret: str = Field(default="", description="Twitch OAuth Client Secret")
    twitch_user_login: str = Field(default="", description="Login name of the site's channel")

    # YouTube Data API
    youtube_api_key: str = Field(default="", description="YouTube Data API v3 key")
    youtube_max_results: int = Field(default=12, ge=1, le=50, description="Search page size")

    # Fourthwall Storefront
    fourthwall_storefront_token: str = Field(default="", description="Storefront API token")
    fourthwall_checkout_domain: str = Field(default="", description="Checkout domain of the shop")
    fourthwall_collections: dict[str, str] = Field(
        default_factory=lambda: {"all": "All Products"},
        description="Collection slug -> display name, shown on the merch page",
    )
    fourthwall_default_collection: str = Field(default="all", description="Default collection")
    fourthwall_currency: str = Field(default="USD", description="Checkout currency")

    # Server URLs
    site_url: str = Field(default="http://localhost:3000", description="Public site origin")
    frontend_url: str = Field(default="http://localhost:3000", description="Frontend URL for CORS")

    # Upstream behaviour
    upstream_timeout: float = Field(default=10.0, gt=0, description="Per-call timeout (seconds)")
    schedule_limit: int = Field(default=3, ge=1, description="Max schedule segments returned")

    # Environment
    environment: str = Field(default="development", description="Environment name")
    debug: bool = Field(default=False, description="Expose upstream error detail in responses")
    log_level: str = Field(default="INFO", description="Logging level")

    # Server Configuration
    host: str = Field(default="0.0.0.0", description="Server host")
    port: int = Field(default=8000, description="Server port")

    @field_validator("log_level")
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        """Validate log level is a valid logging level"""
        valid_levels = ["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]
        v_upper = v.upper()
        if v_upper not in valid_levels:
            logger.warning(f"Invalid log level '{v}', defaulting to INFO")
            return "INFO"
        return v_upper

    @field_validator("site_url", "frontend_url")
    @classmethod
    def strip_trailing_slash(cls, v: str) -> str:
        return v.rstrip("/")

    def require(self, name: str) -> str:
        """Return a configured value or raise ConfigurationError when it is empty."""
        value = getattr(self, name)
        if not value:
            logger.error(f"Missing required setting: {name.upper()}")
            raise ConfigurationError(f"{name.upper()} is not configured")
        return value

    @property
    def cors_origins(self) -> list[str]:
        """Get CORS allowed origins"""
        return [self.frontend_url]

    @property
    def oauth_redirect_uri(self) -> str:
        """Callback registered with Twitch for the authorization-code grant"""
        return f"{self.site_url}/api/twitch/auth"

    @property
    def is_production(self) -> bool:
        """Check if running in production environment"""
        return self.environment.lower() == "production"

    @property
    def is_development(self) -> bool:
        """Check if running in development environment"""
        return self.environment.lower() == "development"


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance"""
    return Settings()
