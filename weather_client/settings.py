import os
from collections.abc import Mapping

from dotenv import load_dotenv
from pydantic import BaseModel, ConfigDict, Field, model_validator

load_dotenv()

DEFAULT_WEATHER_URL = (
    "https://api.open-meteo.com/v1/forecast"
    "?latitude=52.28&longitude=13.62&hourly=temperature_2m&current_weather=true"
)


class Settings(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    # Endpoint
    weather_url: str = Field(default=DEFAULT_WEATHER_URL, alias="WEATHER_URL")
    user_agent: str = Field(default="weather-client/0.1", alias="USER_AGENT")

    # Cache Configuration
    cache_ttl_seconds: float = Field(default=30.0, gt=0, alias="CACHE_TTL_SECONDS")
    cache_max_size: int = Field(default=100, ge=1, alias="CACHE_MAX_SIZE")

    # Retry / Timeout Configuration
    max_retries: int = Field(default=5, ge=1, alias="MAX_RETRIES")
    base_backoff_seconds: float = Field(
        default=2.0, ge=0, alias="BASE_BACKOFF_SECONDS"
    )
    per_attempt_timeout_seconds: float = Field(
        default=30.0, gt=0, alias="PER_ATTEMPT_TIMEOUT_SECONDS"
    )

    # Circuit Breaker Configuration (threshold defaults to 2 * max_retries)
    circuit_failure_threshold: int | None = Field(
        default=None, ge=1, alias="CIRCUIT_FAILURE_THRESHOLD"
    )
    circuit_cooldown_seconds: float = Field(
        default=60.0, ge=0, alias="CIRCUIT_COOLDOWN_SECONDS"
    )

    # Logging
    log_level: str = Field(default="INFO", alias="LOG_LEVEL")
    debug: bool = Field(default=False, alias="DEBUG")

    @model_validator(mode="after")
    def _derive_failure_threshold(self) -> "Settings":
        if self.circuit_failure_threshold is None:
            self.circuit_failure_threshold = 2 * self.max_retries
        return self

    @classmethod
    def from_env(cls, environ: Mapping[str, str] | None = None) -> "Settings":
        """Build settings from environment variables (after .env is loaded)."""
        environ = os.environ if environ is None else environ
        aliases = {
            field.alias for field in cls.model_fields.values() if field.alias
        }
        return cls.model_validate(
            {key: value for key, value in environ.items() if key in aliases}
        )


global_settings = Settings.from_env()
