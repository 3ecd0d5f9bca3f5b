import asyncio
import logging
from typing import List, Optional
from config.collector_config import CollectorConfig
from utils.database import DatabaseManager
from utils.lap_repository import LapRepository
from utils.telemetry_poller import TelemetryPoller
from utils.weather_gatherer import WeatherGatherer, WeatherRetriever
from utils.weather_store import WeatherTimelineStore

logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s %(levelname)s [%(name)s] %(message)s"
)

logger = logging.getLogger(__name__)


class Collector:
    """Wires the stores and the two periodic loops together."""

    def __init__(self):
        self.weather_store = WeatherTimelineStore()
        self.repository = LapRepository(self.weather_store)
        self.retriever = WeatherRetriever()
        self.weather_gatherer = WeatherGatherer(self.retriever, self.weather_store)
        self.telemetry_poller = TelemetryPoller(self.repository)
        self._tasks: List[asyncio.Task] = []

    async def startup(self, db_path: Optional[str] = None) -> None:
        """Open the database and start both loops."""
        await DatabaseManager.initialize(db_path)
        if not CollectorConfig.WEATHER_API_KEY:
            logger.warning("KARTMAN_WEATHER_API_KEY is not set, weather requests will fail")

        self._tasks = [
            asyncio.create_task(self.weather_gatherer.run(), name="weather-gatherer"),
            asyncio.create_task(self.telemetry_poller.run(), name="telemetry-poller"),
        ]

    async def shutdown(self) -> None:
        """Stop both loops and release connections."""
        self.weather_gatherer.stop()
        self.telemetry_poller.stop()
        for task in self._tasks:
            task.cancel()
        await asyncio.gather(*self._tasks, return_exceptions=True)
        self._tasks = []

        await self.retriever.aclose()
        await self.telemetry_poller.aclose()
        await DatabaseManager.close()

    async def wait(self) -> None:
        await asyncio.gather(*self._tasks)


async def main() -> None:
    collector = Collector()
    await collector.startup()
    try:
        await collector.wait()
    finally:
        await collector.shutdown()


if __name__ == "__main__":
    try:
        asyncio.run(main())
    except KeyboardInterrupt:
        logger.info("Interrupted, exiting")
