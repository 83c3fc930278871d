"""Application configuration."""
from functools import lru_cache
from typing import Literal

from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    """Application settings loaded from environment."""

    # Database
    database_url: str

    # Hosted auth provider (Supabase)
    supabase_url: str
    supabase_anon_key: str
    password_reset_redirect_url: str = "http://localhost:3000/auth/update-password"

    # RAWG catalog
    rawg_api_key: str | None = None
    rawg_base_url: str = "https://api.rawg.io/api"
    catalog_page_size: int = 20
    cover_page_size: int = 12
    catalog_cache_ttl_seconds: int = 3600
    placeholder_image_url: str = "https://via.placeholder.com/300x400?text=No+Cover"

    # Collection view
    page_size: int = 20

    # Queue: what happens to hidden pending games when the visible list is reordered
    queue_hidden_policy: Literal["preserve", "append"] = "preserve"

    # Server
    host: str = "0.0.0.0"
    port: int = 8080
    debug: bool = False

    @property
    def auth_base_url(self) -> str:
        """Base URL of the auth REST API."""
        return f"{self.supabase_url.rstrip('/')}/auth/v1"

    class Config:
        env_file = ".env"
        env_file_encoding = "utf-8"


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()
