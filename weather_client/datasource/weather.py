"""
Open-Meteo current weather data source.

API Documentation: https://open-meteo.com/en/docs
Free, no API key required.
"""

from dataclasses import dataclass

from loguru import logger
from pydantic import BaseModel, ConfigDict, ValidationError

from weather_client.services.errors import (
    CircuitOpenError,
    DeserializationError,
    ErrorKind,
    FetchError,
    PermanentHttpError,
)
from weather_client.services.pipeline import FetchPipeline


class CurrentWeather(BaseModel):
    """Current weather block of the forecast response."""

    model_config = ConfigDict(extra="ignore")

    time: str = ""
    temperature: float = 0.0
    windspeed: float = 0.0
    winddirection: float = 0.0

    def __str__(self) -> str:
        return (
            "Current Weather:\n"
            f"Time: {self.time}\n"
            f"Temperature: {self.temperature}°C\n"
            f"Wind Speed: {self.windspeed} km/h at {self.winddirection} Degrees"
        )


class WeatherInfo(BaseModel):
    """Forecast response for one location."""

    model_config = ConfigDict(extra="ignore")

    latitude: float = 0.0
    longitude: float = 0.0
    elevation: float = 0.0
    generationtime_ms: float = 0.0
    current_weather: CurrentWeather | None = None

    def __str__(self) -> str:
        lines = [
            f"Latitude: {self.latitude}, Longitude: {self.longitude}, "
            f"Elevation: {self.elevation}",
            f"Generation Time (ms): {self.generationtime_ms}",
        ]
        if self.current_weather is not None:
            lines.append(str(self.current_weather))
        return "\n".join(lines)


@dataclass(frozen=True)
class WeatherResult:
    """Weather data or the reason there is none."""

    data: WeatherInfo | None = None
    error_message: str = ""
    error: FetchError | None = None

    @property
    def is_success(self) -> bool:
        return self.data is not None


def describe_error(error: FetchError) -> str:
    """User facing message for a failed fetch."""
    if isinstance(error, CircuitOpenError):
        return (
            "Persistent error querying the web service, "
            f"not retrying for {error.reset_after_seconds:.0f}s."
        )
    if isinstance(error, PermanentHttpError):
        return f"Error querying the web service. Status code: {error.status_code}"
    if error.kind == ErrorKind.TRANSIENT:
        return f"The web service could not be reached: {error}"
    return f"Error querying the web service: {error}"


class WeatherDataClient:
    """Fetches forecast JSON through the pipeline and maps it onto WeatherInfo."""

    def __init__(self, pipeline: FetchPipeline):
        self.pipeline = pipeline

    async def get(self, url: str) -> WeatherResult:
        result = await self.pipeline.fetch(url)

        if result.error is not None:
            logger.error(f"Failed to fetch weather data: {result.error}")
            return WeatherResult(
                error_message=describe_error(result.error),
                error=result.error,
            )

        assert result.response is not None
        try:
            data = WeatherInfo.model_validate_json(result.response.body)
        except ValidationError as e:
            error = DeserializationError(
                f"Error deserializing JSON: {e.error_count()} problem(s)",
                url=url,
            )
            error.__cause__ = e
            logger.error(
                f"Failed to parse weather data from {url}: "
                f"{e.error_count()} error(s)"
            )
            return WeatherResult(error_message=str(error), error=error)

        return WeatherResult(data=data)
