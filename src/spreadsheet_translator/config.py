"""Configuration management for the spreadsheet translator.

This module provides centralized configuration using pydantic-settings.
All configuration options can be set via environment variables with the
SPT_ prefix, or via a .env file in the project root.

Environment Variables:
    SPT_OPENAI_API_KEY: OpenAI API key (required for translation)
    SPT_OPENAI_MODEL: Model used for translation (default: gpt-4o-mini)
    SPT_OPENAI_TEMPERATURE: Sampling temperature (default: 0.1)
    SPT_OPENAI_MAX_TOKENS: Maximum tokens per backend response (default: 8192)
    SPT_BATCH_SIZE: Cells per backend request (default: 50)
    SPT_BATCH_DELAY_MS: Pause between batches in milliseconds (default: 100)
    SPT_MAX_FILE_SIZE_MB: Maximum workbook upload size in MB (default: 20)
    SPT_MAX_CELLS_PER_SHEET: Largest grid accepted per sheet (default: 50000)
    SPT_DEFAULT_TARGET_LANGUAGE: Default target language code (default: hi-IN)
    SPT_DEFAULT_TONE: Default tone (default: neutral)
    SPT_DEFAULT_DOMAIN: Default content domain (default: admin)
    SPT_DEFAULT_QUALITY: Default quality level (default: balanced)
    SPT_LOG_LEVEL: Logging level (default: INFO)
    SPT_DEBUG: Enable debug mode (default: false)
    SPT_CORS_ORIGINS: Comma-separated CORS origins (default: *)
    SPT_SERVER_HOST: Server bind host (default: 0.0.0.0)
    SPT_SERVER_PORT: Server bind port (default: 8000)
"""

import logging
from typing import Any

from pydantic import SecretStr, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from spreadsheet_translator.sheet_document import (
    Domain,
    QualityLevel,
    TargetLanguage,
    Tone,
    TranslationSettings,
)


class Settings(BaseSettings):
    """Application settings loaded from environment variables.

    Sensitive values like API keys use SecretStr to prevent accidental
    logging.

    Example .env file:
        SPT_OPENAI_API_KEY=sk-...
        SPT_BATCH_SIZE=25
        SPT_LOG_LEVEL=DEBUG
    """

    model_config = SettingsConfigDict(
        env_prefix="SPT_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # =========================================================================
    # OpenAI / Backend Settings
    # =========================================================================

    openai_api_key: SecretStr = SecretStr("")
    """OpenAI API key. Required for translation."""

    openai_model: str = "gpt-4o-mini"
    """Model used to translate cell batches."""

    openai_temperature: float = 0.1
    """Temperature for sampling. Kept low so batches stay line-aligned."""

    openai_max_tokens: int = 8192
    """Maximum tokens for one batch response."""

    # =========================================================================
    # Batching Settings
    # =========================================================================

    batch_size: int = 50
    """Number of cells sent to the backend in one request."""

    batch_delay_ms: int = 100
    """Pause between consecutive batches, in milliseconds."""

    # =========================================================================
    # Input Limits
    # =========================================================================

    max_file_size_mb: int = 20
    """Maximum workbook upload size in megabytes."""

    max_cells_per_sheet: int = 50_000
    """Largest grid (rows x columns) accepted for one sheet."""

    # =========================================================================
    # Translation Defaults
    # =========================================================================

    default_target_language: TargetLanguage = TargetLanguage.HINDI
    default_tone: Tone = Tone.NEUTRAL
    default_domain: Domain = Domain.ADMIN
    default_quality: QualityLevel = QualityLevel.BALANCED

    # =========================================================================
    # Logging Settings
    # =========================================================================

    log_level: str = "INFO"
    """Logging level: DEBUG, INFO, WARNING, ERROR, or CRITICAL."""

    debug: bool = False
    """Enable debug mode with additional error details."""

    # =========================================================================
    # Server Settings
    # =========================================================================

    cors_origins: str = "*"
    """Comma-separated list of allowed CORS origins, or * for all."""

    server_host: str = "0.0.0.0"
    """Host address for the server to bind to."""

    server_port: int = 8000
    """Port for the server to listen on."""

    # =========================================================================
    # Validators
    # =========================================================================

    @field_validator("log_level")
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        """Validate log level is a valid Python logging level."""
        valid_levels = {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}
        upper_v = v.upper()
        if upper_v not in valid_levels:
            raise ValueError(
                f"Invalid log level: {v}. Must be one of: {', '.join(valid_levels)}"
            )
        return upper_v

    @field_validator("batch_size")
    @classmethod
    def validate_batch_size(cls, v: int) -> int:
        """Validate batch size is within what one prompt can carry."""
        if not 1 <= v <= 500:
            raise ValueError(f"batch_size must be between 1 and 500, got {v}")
        return v

    @field_validator("batch_delay_ms")
    @classmethod
    def validate_batch_delay(cls, v: int) -> int:
        if v < 0:
            raise ValueError(f"batch_delay_ms must not be negative, got {v}")
        return v

    @field_validator("openai_temperature")
    @classmethod
    def validate_temperature(cls, v: float) -> float:
        if not 0.0 <= v <= 2.0:
            raise ValueError(f"openai_temperature must be between 0.0 and 2.0, got {v}")
        return v

    @field_validator("max_file_size_mb")
    @classmethod
    def validate_file_size(cls, v: int) -> int:
        """Validate file size is positive and reasonable."""
        if not 1 <= v <= 500:
            raise ValueError(f"max_file_size_mb must be between 1 and 500, got {v}")
        return v

    @field_validator("max_cells_per_sheet")
    @classmethod
    def validate_max_cells(cls, v: int) -> int:
        if v < 1:
            raise ValueError(f"max_cells_per_sheet must be at least 1, got {v}")
        return v

    @field_validator("server_port")
    @classmethod
    def validate_port(cls, v: int) -> int:
        """Validate port is in valid range."""
        if not 1 <= v <= 65535:
            raise ValueError(f"server_port must be between 1 and 65535, got {v}")
        return v

    # =========================================================================
    # Computed Properties
    # =========================================================================

    @property
    def max_file_size_bytes(self) -> int:
        """Get max file size in bytes."""
        return self.max_file_size_mb * 1024 * 1024

    @property
    def batch_delay_seconds(self) -> float:
        """Get the inter-batch delay in seconds."""
        return self.batch_delay_ms / 1000

    @property
    def cors_origins_list(self) -> list[str]:
        """Get CORS origins as a list."""
        if self.cors_origins == "*":
            return ["*"]
        return [origin.strip() for origin in self.cors_origins.split(",")]

    @property
    def log_level_int(self) -> int:
        """Get log level as integer for logging module."""
        level: int = getattr(logging, self.log_level)
        return level

    def get_openai_api_key(self) -> str:
        """Get the OpenAI API key value.

        Returns:
            The API key string. Returns empty string if not set.
        """
        return self.openai_api_key.get_secret_value()

    def default_translation_settings(self) -> TranslationSettings:
        """Build the translation settings used when a request omits them."""
        return TranslationSettings(
            target_language=self.default_target_language,
            tone=self.default_tone,
            domain=self.default_domain,
            quality=self.default_quality,
        )

    def to_safe_dict(self) -> dict[str, Any]:
        """Convert settings to dictionary with sensitive values masked."""
        return {
            "openai_api_key": "***" if self.get_openai_api_key() else "(not set)",
            "openai_model": self.openai_model,
            "openai_temperature": self.openai_temperature,
            "openai_max_tokens": self.openai_max_tokens,
            "batch_size": self.batch_size,
            "batch_delay_ms": self.batch_delay_ms,
            "max_file_size_mb": self.max_file_size_mb,
            "max_cells_per_sheet": self.max_cells_per_sheet,
            "default_target_language": self.default_target_language.value,
            "default_tone": self.default_tone.value,
            "default_domain": self.default_domain.value,
            "default_quality": self.default_quality.value,
            "log_level": self.log_level,
            "debug": self.debug,
            "cors_origins": self.cors_origins,
            "server_host": self.server_host,
            "server_port": self.server_port,
        }


def validate_settings_on_startup(s: Settings) -> None:
    """Log warnings for settings that are valid but not production ready.

    Args:
        s: Settings instance to validate.
    """
    logger = logging.getLogger(__name__)

    if not s.get_openai_api_key():
        logger.warning(
            "OPENAI_API_KEY is not configured. Translation requests will fail. "
            "Set SPT_OPENAI_API_KEY environment variable."
        )

    if s.cors_origins == "*" and not s.debug:
        logger.warning(
            "CORS is configured to allow all origins (*). "
            "Consider restricting this in production."
        )

    logger.info(
        f"Configuration loaded: log_level={s.log_level}, debug={s.debug}, "
        f"model={s.openai_model}, batch_size={s.batch_size}, "
        f"batch_delay_ms={s.batch_delay_ms}"
    )


settings = Settings()
