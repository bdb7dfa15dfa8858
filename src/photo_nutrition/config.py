"""Application configuration."""

import os

from pydantic_settings import BaseSettings, SettingsConfigDict

from photo_nutrition.errors import ServerConfigError

_ENVIRONMENT = os.getenv("ENVIRONMENT", "local")

DEFAULT_REFERER_URL = "https://nutrinoteplus.vercel.app"


class Settings(BaseSettings):
    """Application settings loaded from environment variables.

    Both API keys are required to serve requests but optional at import time, so a
    misconfigured deployment answers with a configuration error instead of failing
    to boot.
    """

    openrouter_api_key: str | None = None
    usda_api_key: str | None = None
    ai_base_url: str = "https://ai.hackclub.com/proxy/v1"
    vision_model: str = "google/gemini-2.5-flash"
    estimation_model: str = "google/gemini-2.5-flash"
    fdc_base_url: str = "https://api.nal.usda.gov/fdc/v1"
    vercel_url: str | None = None
    app_title: str = "NutriNote+"
    request_timeout_seconds: float = 60.0
    item_timeout_seconds: float | None = None
    plausibility_checks: bool = True
    log_level: str = "INFO"
    environment: str = _ENVIRONMENT

    model_config = SettingsConfigDict(
        env_file=(f".env.{_ENVIRONMENT}", ".env"),
        extra="ignore",
    )

    @property
    def referer_url(self) -> str:
        """Origin string sent upstream for attribution."""
        if self.vercel_url:
            return f"https://{self.vercel_url}"
        return DEFAULT_REFERER_URL

    def missing_secrets(self) -> list[str]:
        """Return the names of required secrets that are not configured."""
        missing = []
        if not self.openrouter_api_key:
            missing.append("OPENROUTER_API_KEY")
        if not self.usda_api_key:
            missing.append("USDA_API_KEY")
        return missing

    def require_secrets(self) -> None:
        """Raise a configuration error when a required secret is absent."""
        missing = self.missing_secrets()
        if missing:
            raise ServerConfigError(f"Missing configuration: {', '.join(missing)}")
