"""
Configuration management for the Concert Wishlist API.

Loads settings from .env via pydantic-settings.

Notes:
    - Ticketmaster credentials are only needed for band import and sync
    - validate_production_settings() enforces a JWT secret and strict CORS in production
"""
import logging

from pydantic_settings import BaseSettings, SettingsConfigDict
from typing import List

logger = logging.getLogger(__name__)


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    # ── Database ────────────────────────────────────────────────────
    database_url: str = "sqlite:///./data/concerts.db"

    # ── Ticketmaster Discovery API ──────────────────────────────────
    ticketmaster_api_key: str = ""
    ticketmaster_base_url: str = "https://app.ticketmaster.com/discovery/v2"
    # ISO codes sent as countryCode on every event search
    ticketmaster_countries: str = "DE,AT,NL,DK,BE,NO,CH,ES,SE,FI,PL,GB"
    ticketmaster_timeout_seconds: float = 15.0
    ticketmaster_search_limit: int = 20

    # ── Application ─────────────────────────────────────────────────
    environment: str = "development"

    # ── Auth (JWT) ──────────────────────────────────────────────────
    jwt_secret: str = ""
    jwt_issuer: str = "concerts-api"
    jwt_access_ttl_minutes: int = 60

    # ── Rate Limiting ───────────────────────────────────────────────
    # 5 requests per 15 minutes per IP and route
    rate_limit_max_requests: int = 5
    rate_limit_window_seconds: int = 900

    # ── CORS ────────────────────────────────────────────────────────
    cors_origins: str = "http://localhost:3000,http://127.0.0.1:3000,http://localhost:5173,http://127.0.0.1:5173"

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",  # allow unknown .env keys without crashing
    )

    @property
    def cors_origins_list(self) -> List[str]:
        """Parse CORS origins from comma-separated string."""
        return [origin.strip() for origin in self.cors_origins.split(",")]

    @property
    def ticketmaster_country_codes(self) -> List[str]:
        """Parse the Ticketmaster country filter from comma-separated string."""
        return [code.strip().upper() for code in self.ticketmaster_countries.split(",") if code.strip()]

    def validate_production_settings(self):
        """
        Validate settings for production safety.

        Called during app startup.
        """
        if self.environment == "production":
            if "*" in self.cors_origins:
                raise ValueError(
                    "CORS_ORIGINS must not contain '*' in production. "
                    "Set explicit allowed origins."
                )
            if not self.jwt_secret:
                raise ValueError(
                    "JWT_SECRET must be set in production. "
                    "It is used to verify access tokens on every protected route."
                )
            if not self.ticketmaster_api_key:
                raise ValueError(
                    "TICKETMASTER_API_KEY must be set in production. "
                    "Band import and concert sync depend on it."
                )
            logger.info("Production settings validated")
        else:
            warnings = []
            if not self.jwt_secret:
                warnings.append("JWT_SECRET is empty (protected routes will fail)")
            if not self.ticketmaster_api_key:
                warnings.append("TICKETMASTER_API_KEY is empty (sync disabled)")
            if "*" in self.cors_origins:
                warnings.append("CORS_ORIGINS contains '*' (open access)")
            for w in warnings:
                logger.warning(w)


# Global settings instance
settings = Settings()
