"""
Centralized Configuration Module using Pydantic Settings

This module provides type-safe, environment-based configuration for the
AI result cache pipeline. All configuration is centralized here to ensure
consistency across modules.

Architectural Decision: Pydantic Settings for type safety and validation
- Environment variable loading with .env support
- Type validation at startup (fail fast on misconfiguration)
- Section views (settings.cache, settings.media, ...) for readable call sites
"""

from typing import Literal

from pydantic import AliasChoices, Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from lingua_cache.core.config import constants


class GeminiSettings(BaseSettings):
    """
    Google Gemini endpoint configuration.

    STAGE-0.1: Model endpoint configuration
    """

    GEMINI_API_KEY: str | None = Field(default=None, description="Gemini API key")
    GEMINI_MODEL: str = Field(default="gemini-2.5-flash-lite", description="Gemini model name")
    GEMINI_TEXT_TIMEOUT: int = Field(default=constants.GEMINI_TEXT_TIMEOUT)
    GEMINI_AUDIO_TIMEOUT: int = Field(default=constants.GEMINI_AUDIO_TIMEOUT)
    MODEL_INLINE_PAYLOAD_LIMIT: int = Field(default=constants.MODEL_INLINE_PAYLOAD_LIMIT)

    model_config = SettingsConfigDict(env_prefix="", case_sensitive=True)


class ObjectStoreSettings(BaseSettings):
    """
    S3-compatible object storage (DigitalOcean Spaces, MinIO, AWS S3).

    STAGE-0.2: L2 cache backend configuration
    """

    SPACES_ENDPOINT: str | None = Field(default=None, description="Object store endpoint URL")
    SPACES_BUCKET: str | None = Field(default=None, description="Bucket holding cached results")
    SPACES_KEY: str | None = Field(default=None, description="Access key id")
    SPACES_SECRET: str | None = Field(default=None, description="Secret access key")
    SPACES_REGION: str = Field(default="us-east-1", description="Signing region")
    OBJECT_STORE_TIMEOUT: int = Field(default=constants.OBJECT_STORE_TIMEOUT)

    model_config = SettingsConfigDict(env_prefix="", case_sensitive=True)


class CacheSettings(BaseSettings):
    """
    Caching configuration for the two-tier strategy.

    STAGE-2: Cache TTL configuration
    """

    CACHE_L1_MAX_SIZE: int = Field(default=constants.L1_CACHE_MAX_SIZE)
    CACHE_L1_TTL: int = Field(default=constants.L1_CACHE_TTL)
    SNAPSHOT_CACHE_TTL: int = Field(default=constants.SNAPSHOT_CACHE_TTL)
    SINGLE_FLIGHT_ENABLED: bool = Field(default=True)

    model_config = SettingsConfigDict(env_prefix="", case_sensitive=True)


class MediaSettings(BaseSettings):
    """
    Media ingestion and transcoding thresholds.

    STAGE-3: Media limits
    """

    MEDIA_DOWNLOAD_TIMEOUT: int = Field(default=constants.MEDIA_DOWNLOAD_TIMEOUT)
    MEDIA_MAX_REDIRECTS: int = Field(default=constants.MEDIA_MAX_REDIRECTS)
    AUDIO_MAX_BYTES: int = Field(default=constants.AUDIO_MAX_BYTES)
    IMAGE_MAX_BYTES: int = Field(default=constants.IMAGE_MAX_BYTES)
    TRANSCODE_THRESHOLD_BYTES: int = Field(default=constants.TRANSCODE_THRESHOLD_BYTES)
    FFMPEG_BINARY: str = Field(default="ffmpeg")
    TRANSCODE_TIMEOUT_BASE: float = Field(default=30.0)
    TRANSCODE_TIMEOUT_PER_MB: float = Field(default=2.0)

    model_config = SettingsConfigDict(env_prefix="", case_sensitive=True)


class LoggingSettings(BaseSettings):
    """
    Logging configuration for structured logging.

    STAGE-L: Logging configuration
    """

    LOG_LEVEL: str = Field(default="INFO", description="Logging level")
    LOG_FORMAT: Literal["json", "console"] = Field(default="json", description="Log output format")

    model_config = SettingsConfigDict(env_prefix="", case_sensitive=True)


class ApplicationSettings(BaseSettings):
    """
    General application settings.

    STAGE-0: Application initialization
    """

    ENVIRONMENT: Literal["development", "staging", "production", "test"] = Field(default="development")
    APP_NAME: str = Field(default="Lingua AI Result Cache")
    APP_VERSION: str = Field(default="1.0.0")
    API_BASE_PATH: str = Field(default="/api/ai")
    API_HOST: str = Field(default="0.0.0.0")
    API_PORT: int = Field(default=8000)

    model_config = SettingsConfigDict(env_prefix="", case_sensitive=True)


class Settings(BaseSettings):
    """
    Main settings class that aggregates all configuration sections.

    STAGE-0: Centralized configuration initialization

    Usage:
        from lingua_cache.core.config.settings import get_settings

        settings = get_settings()
        bucket = settings.object_store.SPACES_BUCKET
        threshold = settings.media.TRANSCODE_THRESHOLD_BYTES
    """

    # Gemini
    GEMINI_API_KEY: str | None = Field(
        default=None,
        validation_alias=AliasChoices("GEMINI_API_KEY", "GOOGLE_API_KEY"),
        description="Gemini API key (GOOGLE_API_KEY accepted as fallback)",
    )
    GEMINI_MODEL: str = Field(default="gemini-2.5-flash-lite")
    GEMINI_TEXT_TIMEOUT: int = Field(default=constants.GEMINI_TEXT_TIMEOUT)
    GEMINI_AUDIO_TIMEOUT: int = Field(default=constants.GEMINI_AUDIO_TIMEOUT)
    MODEL_INLINE_PAYLOAD_LIMIT: int = Field(default=constants.MODEL_INLINE_PAYLOAD_LIMIT)

    # Object store
    SPACES_ENDPOINT: str | None = Field(default=None)
    SPACES_BUCKET: str | None = Field(default=None)
    SPACES_KEY: str | None = Field(default=None)
    SPACES_SECRET: str | None = Field(default=None)
    SPACES_REGION: str = Field(default="us-east-1")
    OBJECT_STORE_TIMEOUT: int = Field(default=constants.OBJECT_STORE_TIMEOUT)

    # Cache
    CACHE_L1_MAX_SIZE: int = Field(default=constants.L1_CACHE_MAX_SIZE)
    CACHE_L1_TTL: int = Field(default=constants.L1_CACHE_TTL)
    SNAPSHOT_CACHE_TTL: int = Field(default=constants.SNAPSHOT_CACHE_TTL)
    SINGLE_FLIGHT_ENABLED: bool = Field(default=True)

    # Media
    MEDIA_DOWNLOAD_TIMEOUT: int = Field(default=constants.MEDIA_DOWNLOAD_TIMEOUT)
    MEDIA_MAX_REDIRECTS: int = Field(default=constants.MEDIA_MAX_REDIRECTS)
    AUDIO_MAX_BYTES: int = Field(default=constants.AUDIO_MAX_BYTES)
    IMAGE_MAX_BYTES: int = Field(default=constants.IMAGE_MAX_BYTES)
    TRANSCODE_THRESHOLD_BYTES: int = Field(default=constants.TRANSCODE_THRESHOLD_BYTES)
    FFMPEG_BINARY: str = Field(default="ffmpeg")
    TRANSCODE_TIMEOUT_BASE: float = Field(default=30.0)
    TRANSCODE_TIMEOUT_PER_MB: float = Field(default=2.0)

    # Logging
    LOG_LEVEL: str = Field(default="INFO")
    LOG_FORMAT: Literal["json", "console"] = Field(default="json")

    # Application
    ENVIRONMENT: Literal["development", "staging", "production", "test"] = Field(default="development")
    APP_NAME: str = Field(default="Lingua AI Result Cache")
    APP_VERSION: str = Field(default="1.0.0")
    API_BASE_PATH: str = Field(default="/api/ai")
    API_HOST: str = Field(default="0.0.0.0")
    API_PORT: int = Field(default=8000)

    @field_validator("LOG_LEVEL")
    @classmethod
    def validate_log_level(cls, v):
        """Validate log level."""
        valid_levels = ["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]
        if v.upper() not in valid_levels:
            raise ValueError(f"LOG_LEVEL must be one of {valid_levels}")
        return v.upper()

    @field_validator(
        "CACHE_L1_MAX_SIZE",
        "CACHE_L1_TTL",
        "AUDIO_MAX_BYTES",
        "IMAGE_MAX_BYTES",
        "TRANSCODE_THRESHOLD_BYTES",
        "MODEL_INLINE_PAYLOAD_LIMIT",
        "OBJECT_STORE_TIMEOUT",
        "MEDIA_DOWNLOAD_TIMEOUT",
    )
    @classmethod
    def validate_positive(cls, v, info):
        """Sizes, capacities and timeouts must be positive."""
        if v <= 0:
            raise ValueError(f"{info.field_name} must be positive")
        return v

    # Nested configuration views
    @property
    def gemini(self) -> GeminiSettings:
        """Get Gemini settings."""
        return GeminiSettings(
            GEMINI_API_KEY=self.GEMINI_API_KEY,
            GEMINI_MODEL=self.GEMINI_MODEL,
            GEMINI_TEXT_TIMEOUT=self.GEMINI_TEXT_TIMEOUT,
            GEMINI_AUDIO_TIMEOUT=self.GEMINI_AUDIO_TIMEOUT,
            MODEL_INLINE_PAYLOAD_LIMIT=self.MODEL_INLINE_PAYLOAD_LIMIT,
        )

    @property
    def object_store(self) -> ObjectStoreSettings:
        """Get object store settings."""
        return ObjectStoreSettings(
            SPACES_ENDPOINT=self.SPACES_ENDPOINT,
            SPACES_BUCKET=self.SPACES_BUCKET,
            SPACES_KEY=self.SPACES_KEY,
            SPACES_SECRET=self.SPACES_SECRET,
            SPACES_REGION=self.SPACES_REGION,
            OBJECT_STORE_TIMEOUT=self.OBJECT_STORE_TIMEOUT,
        )

    @property
    def cache(self) -> CacheSettings:
        """Get cache settings."""
        return CacheSettings(
            CACHE_L1_MAX_SIZE=self.CACHE_L1_MAX_SIZE,
            CACHE_L1_TTL=self.CACHE_L1_TTL,
            SNAPSHOT_CACHE_TTL=self.SNAPSHOT_CACHE_TTL,
            SINGLE_FLIGHT_ENABLED=self.SINGLE_FLIGHT_ENABLED,
        )

    @property
    def media(self) -> MediaSettings:
        """Get media ingestion settings."""
        return MediaSettings(
            MEDIA_DOWNLOAD_TIMEOUT=self.MEDIA_DOWNLOAD_TIMEOUT,
            MEDIA_MAX_REDIRECTS=self.MEDIA_MAX_REDIRECTS,
            AUDIO_MAX_BYTES=self.AUDIO_MAX_BYTES,
            IMAGE_MAX_BYTES=self.IMAGE_MAX_BYTES,
            TRANSCODE_THRESHOLD_BYTES=self.TRANSCODE_THRESHOLD_BYTES,
            FFMPEG_BINARY=self.FFMPEG_BINARY,
            TRANSCODE_TIMEOUT_BASE=self.TRANSCODE_TIMEOUT_BASE,
            TRANSCODE_TIMEOUT_PER_MB=self.TRANSCODE_TIMEOUT_PER_MB,
        )

    @property
    def logging(self) -> LoggingSettings:
        """Get logging settings."""
        return LoggingSettings(LOG_LEVEL=self.LOG_LEVEL, LOG_FORMAT=self.LOG_FORMAT)

    @property
    def app(self) -> ApplicationSettings:
        """Get application settings."""
        return ApplicationSettings(
            ENVIRONMENT=self.ENVIRONMENT,
            APP_NAME=self.APP_NAME,
            APP_VERSION=self.APP_VERSION,
            API_BASE_PATH=self.API_BASE_PATH,
            API_HOST=self.API_HOST,
            API_PORT=self.API_PORT,
        )

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=True,
        populate_by_name=True,
        extra="ignore",
    )


# Global settings instance (singleton pattern)
_settings: Settings | None = None


def get_settings() -> Settings:
    """
    Get the global settings instance (singleton).

    STAGE-0.3: Settings initialization

    Returns:
        Settings: Global settings instance
    """
    global _settings

    if _settings is None:
        _settings = Settings()

    return _settings


def reload_settings() -> Settings:
    """
    Reload settings (useful for testing).

    Returns:
        Settings: New settings instance
    """
    global _settings
    _settings = Settings()
    return _settings
