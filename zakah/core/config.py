from functools import lru_cache
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment with defaults.

    Environment variable mapping follows pydantic's rules (e.g., APP_NAME, DEBUG, RATE_PROVIDER, EXCHANGE_API_KEY, HTTP_TIMEOUT_SECONDS).
    """

    model_config = SettingsConfigDict(env_file=".env", case_sensitive=False)

    # Basic app metadata
    app_name: str = "Zakah Calculator"
    debug: bool = False
    version: str = "0.1.0"

    # Exchange rate sources
    # Allowed: 'external-http' (exchangerate-api with fallback chain), 'static' (fixed fallback rates only)
    rate_provider: str = "external-http"
    historical_rates_base_url: str = "https://v6.exchangerate-api.com/v6"
    exchange_api_key: str = ""  # historical lookups are skipped when empty
    latest_rates_url: str = "https://api.exchangerate-api.com/v4/latest"
    http_timeout_seconds: float = 5.0

    # Request coalescing for live cash conversion
    debounce_seconds: float = 0.5

    # How long clients should keep an error message on screen
    error_display_seconds: int = 5

    def init_post_load(self) -> None:
        """Validate derived fields."""
        allowed = {"external-http", "static"}
        if self.rate_provider not in allowed:
            raise ValueError(
                f"Unsupported rate_provider '{self.rate_provider}'. Allowed: {allowed}"
            )
        if self.http_timeout_seconds <= 0:
            raise ValueError("http_timeout_seconds must be positive")
        if self.debounce_seconds < 0:
            raise ValueError("debounce_seconds cannot be negative")


@lru_cache
def get_settings() -> Settings:
    settings = Settings()
    settings.init_post_load()
    return settings
