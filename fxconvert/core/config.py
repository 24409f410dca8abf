from functools import lru_cache
from typing import Optional

from pydantic import AnyHttpUrl, SecretStr, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from fxconvert.core.errors import ConfigurationError


class Settings(BaseSettings):
    """Application settings loaded from environment with defaults.

    Environment variable mapping follows pydantic's rules (e.g., DEBUG,
    EXCHANGE_API_KEY, EXCHANGE_API_BASE_URL, RATES_CACHE_TTL_SECONDS).
    """

    model_config = SettingsConfigDict(
        env_file=".env", case_sensitive=False, extra="ignore"
    )

    # Basic app metadata
    app_name: str = "Currency Converter"
    debug: bool = False
    version: str = "1.0.0"

    # Remote exchange-rate service
    exchange_api_base_url: AnyHttpUrl = "https://v6.exchangerate-api.com/v6"  # type: ignore[assignment]
    exchange_api_key: Optional[SecretStr] = None

    # Response cache
    rates_cache_ttl_seconds: int = 3600  # 1 hour

    @field_validator("rates_cache_ttl_seconds")
    @classmethod
    def positive_ttl(cls, v: int) -> int:
        if v <= 0:
            raise ValueError("rates_cache_ttl_seconds must be positive")
        return v

    @property
    def api_base_url(self) -> str:
        return str(self.exchange_api_base_url).rstrip("/")

    def require_api_key(self) -> str:
        """Return the plain API key or fail if none was configured."""
        key = self.exchange_api_key.get_secret_value() if self.exchange_api_key else ""
        if not key.strip():
            raise ConfigurationError(
                "No API key configured; set EXCHANGE_API_KEY in the environment or .env"
            )
        return key.strip()


@lru_cache
def get_settings() -> Settings:
    return Settings()
