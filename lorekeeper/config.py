"""
Application configuration.

Loads settings from environment variables with sensible defaults.
"""

from __future__ import annotations

from functools import lru_cache

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment."""
    
    model_config = SettingsConfigDict(
        env_prefix="LOREKEEPER_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )
    
    # ==========================================================================
    # Environment
    # ==========================================================================
    
    environment: str = "development"
    debug: bool = False
    log_level: str = "INFO"
    
    # ==========================================================================
    # Authentication
    # ==========================================================================
    
    jwt_secret_key: str = "dev-jwt-secret-change-in-production"
    jwt_algorithm: str = "HS256"
    jwt_access_token_expire_minutes: int = 30
    password_hash_iterations: int = 100_000
    
    # Bootstrap admin account, created at startup when both are set
    admin_email: str = ""
    admin_password: str = ""
    
    # ==========================================================================
    # Requests
    # ==========================================================================
    
    body_read_timeout_seconds: float = 10.0
    
    # ==========================================================================
    # Helpers
    # ==========================================================================
    
    @property
    def is_production(self) -> bool:
        return self.environment == "production"
    
    @property
    def bootstrap_admin(self) -> bool:
        """Whether an admin account should be seeded at startup."""
        return bool(self.admin_email and self.admin_password)


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()
