"""
Weather client entry point.
Fetches current weather through the resilient fetch pipeline in a loop.
"""

import asyncio
import sys
from datetime import datetime

from loguru import logger

from weather_client.datasource import WeatherDataClient
from weather_client.services import FetchPipeline
from weather_client.settings import global_settings


async def main() -> None:
    logger.remove()
    logger.add(sys.stderr, level=global_settings.log_level)

    print("### Weather HTTP Client ###")

    async with FetchPipeline.from_settings(global_settings) as pipeline:
        client = WeatherDataClient(pipeline)

        while True:
            result = await client.get(global_settings.weather_url)

            if result.is_success:
                print()
                print(f"{datetime.now()} \n{result.data}")
            else:
                print(f"Error downloading weather data: {result.error_message}")

            key = await asyncio.to_thread(
                input, "\nPress Enter to repeat or X to exit... "
            )
            if key.strip().lower() == "x":
                break

    print("\nGoodbye!")


if __name__ == "__main__":
    try:
        asyncio.run(main())
    except (KeyboardInterrupt, EOFError):
        logger.info("Interrupted, exiting")
