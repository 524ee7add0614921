from __future__ import annotations

from dataclasses import dataclass

from pydantic_settings import BaseSettings, SettingsConfigDict


class AppSettings(BaseSettings):
    model_config = SettingsConfigDict(
        env_file=".env", env_file_encoding="utf-8", extra="ignore"
    )

    ENV: str = "development"
    LOG_LEVEL: str = "INFO"
    LOG_FORMAT: str = "json"

    GEMINI_API_KEY: str | None = None
    GEMINI_MODEL: str = "gemini-2.5-flash"
    GEMINI_API_BASE: str = "https://generativelanguage.googleapis.com/v1beta"
    # 0 disables the bound and leaves the call to the HTTP client defaults.
    GEMINI_TIMEOUT_SECONDS: float = 120.0

    THIN_CONTENT_THRESHOLD: int = 500


settings = AppSettings()


@dataclass(frozen=True)
class GeminiConfig:
    """Typed configuration for the generative text API."""

    api_key: str | None
    model: str
    api_base: str
    timeout_seconds: float | None

    @classmethod
    def from_settings(cls, source: AppSettings | None = None) -> GeminiConfig:
        """Create a GeminiConfig from application settings."""
        source = source or settings
        timeout = source.GEMINI_TIMEOUT_SECONDS
        return cls(
            api_key=source.GEMINI_API_KEY,
            model=source.GEMINI_MODEL,
            api_base=source.GEMINI_API_BASE,
            timeout_seconds=timeout if timeout and timeout > 0 else None,
        )

    @property
    def is_valid(self) -> bool:
        """Check if the configuration is usable."""
        return bool(self.api_key and self.model and self.api_base)

    @property
    def endpoint(self) -> str:
        return f"{self.api_base.rstrip('/')}/models/{self.model}:generateContent"
