"""
Service configuration, read from the environment and an optional .env file.

Every tunable lives on Settings; code reads it through get_settings().
"""

from functools import lru_cache
from pathlib import Path
from typing import List, Literal

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


PROJECT_ROOT = Path(__file__).resolve().parents[2]


class Settings(BaseSettings):
    """
    Wardrobe service configuration. Field names map to upper-case env vars.

    Required:
        - SUPABASE_URL: Supabase project URL
        - SUPABASE_SERVICE_KEY: Supabase service role key
        - SUPABASE_JWT_SECRET: JWT secret used to verify user tokens

    Optional:
        - HOST: Server host (default: 0.0.0.0)
        - PORT: Server port (default: 8080)
        - GEMINI_API_KEY: Gemini key for vision, styling and image generation
        - PHOTOROOM_API_KEY: Photoroom key for background removal
        - ENVIRONMENT: Environment name (development, staging, production)
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # ==========================================================================
    # Environment
    # ==========================================================================
    environment: str = Field(default="development", description="Environment name")
    debug: bool = Field(default=False, description="Debug mode")

    @property
    def is_development(self) -> bool:
        return self.environment.lower() in ("development", "dev", "local")

    @property
    def is_production(self) -> bool:
        return self.environment.lower() in ("production", "prod")

    # ==========================================================================
    # Server
    # ==========================================================================
    host: str = Field(default="0.0.0.0", description="Server host")
    port: int = Field(default=8080, description="Server port")

    # The Expo dev server and web preview
    cors_origins: List[str] = Field(
        default=[
            "http://localhost:8081",
            "http://localhost:19006",
            "http://127.0.0.1:8081",
        ],
        description="Allowed CORS origins, a list or a comma-separated string"
    )

    @field_validator("cors_origins", mode="before")
    @classmethod
    def parse_cors_origins(cls, v):
        if isinstance(v, str):
            return [origin.strip() for origin in v.split(",") if origin.strip()]
        return v

    # ==========================================================================
    # Supabase
    # ==========================================================================
    supabase_url: str = Field(..., description="Supabase project URL")
    supabase_service_key: str = Field(..., description="Supabase service role key")
    supabase_jwt_secret: str = Field(..., description="JWT secret for token verification (from Supabase dashboard)")

    # Storage buckets
    wardrobe_bucket: str = Field(default="wardrobe-images", description="Bucket for original item photos")
    isolated_bucket: str = Field(default="isolated-images", description="Bucket for isolated garment images")
    visualizations_bucket: str = Field(
        default="outfit-visualizations",
        description="Bucket for generated try-on images"
    )
    personal_models_bucket: str = Field(
        default="personal-models",
        description="Bucket for generated personal model images"
    )

    # ==========================================================================
    # Gemini
    # ==========================================================================
    gemini_api_key: str = Field(default="", description="Gemini API key")
    gemini_text_model: str = Field(
        default="gemini-2.0-flash",
        description="Model used for clothing analysis and outfit styling"
    )
    gemini_image_model: str = Field(
        default="gemini-3-pro-image-preview",
        description="Model used for product shots, personal models and try-on"
    )

    # ==========================================================================
    # Photoroom
    # ==========================================================================
    photoroom_api_key: str = Field(default="", description="Photoroom API key")
    photoroom_api_url: str = Field(
        default="https://sdk.photoroom.com/v1/segment",
        description="Photoroom segmentation endpoint"
    )
    photoroom_timeout_seconds: int = Field(
        default=30,
        description="Timeout for Photoroom requests (seconds)"
    )

    # ==========================================================================
    # Upload Pipeline
    # ==========================================================================
    clean_image_strategy: Literal["generate", "remove_background"] = Field(
        default="generate",
        description="How the isolated garment image is produced: Gemini product shot or Photoroom cutout"
    )
    upload_session_ttl_seconds: int = Field(
        default=3600,
        description="How long detected items wait for selection before the session expires"
    )
    upload_max_bytes: int = Field(
        default=15 * 1024 * 1024,
        description="Largest accepted photo upload"
    )
    image_fetch_timeout_seconds: int = Field(
        default=20,
        description="Timeout when downloading stored images for try-on (seconds)"
    )

    # ==========================================================================
    # Outfits
    # ==========================================================================
    min_wardrobe_items_for_outfit: int = Field(
        default=3,
        description="Wardrobe size required before outfits can be suggested"
    )


@lru_cache
def get_settings() -> Settings:
    """
    Cached process-wide settings.

    A .env at the repository root is read when present; real environment
    variables take precedence over it.
    """
    env_file = PROJECT_ROOT / ".env"
    return Settings(_env_file=env_file if env_file.is_file() else None)


def get_settings_for_testing(**overrides) -> Settings:
    """Uncached settings with placeholder Supabase credentials plus ``overrides``."""
    values = {
        "supabase_url": "https://test.supabase.co",
        "supabase_service_key": "test-key",
        "supabase_jwt_secret": "test-jwt-secret-with-enough-length-for-hs256",
        "environment": "testing",
        "debug": True,
    }
    values.update(overrides)
    return Settings(**values)
