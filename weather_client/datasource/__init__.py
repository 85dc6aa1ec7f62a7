"""
Open-Meteo data source for current weather.
"""

from weather_client.datasource.weather import (
    CurrentWeather,
    WeatherDataClient,
    WeatherInfo,
    WeatherResult,
)

__all__ = ["CurrentWeather", "WeatherDataClient", "WeatherInfo", "WeatherResult"]
