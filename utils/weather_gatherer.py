"""
Periodic collection of current weather conditions.
Fetches weatherapi.com once a minute and keeps only samples that differ
from the previous one.
"""
import asyncio
import httpx
import logging
from datetime import datetime, timezone
from typing import Optional
from config.collector_config import CollectorConfig
from constants.kart_timer_api_endpoints import CURRENT_WEATHER_API_URL
from feed_pydantic_models.weather_api import RawWeatherData
from api_pydantic_models.weather import WeatherSample
from utils.weather_store import WeatherTimelineStore

logger = logging.getLogger(__name__)


def convert_raw_to_weather_sample(raw: RawWeatherData, timestamp_utc: datetime) -> WeatherSample:
    """
    Convert a weatherapi.com response to a weather sample.

    Args:
        raw: Parsed API response
        timestamp_utc: Capture time to stamp the sample with

    Returns:
        WeatherSample with the current readings
    """
    current = raw.current
    return WeatherSample(
        timestamp_utc=timestamp_utc,
        temp_c=current.temp_c,
        is_day=current.is_day == 1,
        condition_code=current.condition.code,
        condition_text=current.condition.text,
        wind_kph=current.wind_kph,
        wind_degree=current.wind_degree,
        pressure_mb=current.pressure_mb,
        precipitation_mm=current.precip_mm,
        humidity=current.humidity,
        cloud=current.cloud,
        feels_like_c=current.feelslike_c,
        dew_point_c=current.dewpoint_c,
    )


class WeatherRetriever:
    """Fetches current conditions for one location."""

    def __init__(
        self,
        api_key: Optional[str] = None,
        location: Optional[str] = None,
        client: Optional[httpx.AsyncClient] = None,
    ):
        self.api_key = api_key or CollectorConfig.WEATHER_API_KEY
        self.location = location or CollectorConfig.WEATHER_LOCATION
        self._client = client or httpx.AsyncClient(timeout=CollectorConfig.HTTP_TIMEOUT)

    async def get_weather(self) -> WeatherSample:
        parameters = {
            "key": self.api_key,
            "q": self.location,
        }
        response = await self._client.get(CURRENT_WEATHER_API_URL, params=parameters)
        response.raise_for_status()

        raw = RawWeatherData.model_validate_json(response.text)
        return convert_raw_to_weather_sample(raw, datetime.now(timezone.utc))

    async def aclose(self) -> None:
        await self._client.aclose()


class WeatherGatherer:
    """
    Appends novel weather samples to the timeline at a fixed cadence.
    Errors are logged and never change the cadence.
    """

    def __init__(
        self,
        retriever: WeatherRetriever,
        store: WeatherTimelineStore,
        interval_seconds: Optional[float] = None,
    ):
        self._retriever = retriever
        self._store = store
        self.interval_seconds = (
            interval_seconds if interval_seconds is not None else CollectorConfig.WEATHER_POLL_INTERVAL_SECONDS
        )
        self._last_sample: Optional[WeatherSample] = None
        self._is_running = False

    @property
    def last_sample(self) -> Optional[WeatherSample]:
        return self._last_sample

    async def gather_once(self) -> bool:
        """
        Fetch one sample and store it if the conditions changed.

        Returns:
            True if the sample was appended to the timeline
        """
        try:
            sample = await self._retriever.get_weather()

            if self._last_sample is not None and self._last_sample.comparison_key() == sample.comparison_key():
                logger.debug("Weather unchanged since %s, skipping sample", self._last_sample.timestamp_utc)
                return False

            self._store.append(sample)
            self._last_sample = sample
            logger.info(
                "Stored weather sample: %s C, %s mm, cloud %s%%, wind %s kph",
                sample.temp_c, sample.precipitation_mm, sample.cloud, sample.wind_kph,
            )
            return True
        except Exception:
            logger.exception("Error when trying to gather weather data")
            return False

    async def run(self) -> None:
        self._is_running = True
        logger.info("Started gathering weather data.")
        while self._is_running:
            await self.gather_once()
            await asyncio.sleep(self.interval_seconds)

    def stop(self) -> None:
        self._is_running = False
        logger.info("Stopped gathering weather data.")
