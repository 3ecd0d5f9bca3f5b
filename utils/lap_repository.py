"""
Lap deduplication and persistence.
Keeps every distinct lap exactly once and correlates each new session with
the weather observed just before its first lap.
"""
import asyncio
import logging
from datetime import date
from decimal import Decimal
from typing import List, Optional, Set
from config.collector_config import CollectorConfig
from api_pydantic_models.lap_data import LapEntry, LapIdentity, ShortEntry
from api_pydantic_models.session_info import InvalidSessionInfoError, SessionInfo, Sky, Weather, Wind
from api_pydantic_models.weather import WeatherSample
from utils.weather_store import WeatherTimelineStore
from utils.database import (
    get_laps_for_day,
    get_laps_for_session,
    get_session_info_from_db,
    get_top_laps,
    insert_lap_entry,
    upsert_session_info,
)

logger = logging.getLogger(__name__)


def classify_weather(sample: WeatherSample) -> SessionInfo:
    """
    Derive the session weather buckets from a weather sample.

    Args:
        sample: Weather observed before the session started

    Returns:
        SessionInfo with weather, sky, wind and air temperature set
    """
    if sample.precipitation_mm > 2:
        weather = Weather.WET
    elif sample.precipitation_mm > 1:
        weather = Weather.DAMP
    else:
        weather = Weather.DRY

    if sample.cloud < 15:
        sky = Sky.CLEAR
    elif sample.cloud < 70:
        sky = Sky.CLOUDY
    else:
        sky = Sky.OVERCAST

    wind = Wind.NO_WIND if sample.wind_kph < 15 else Wind.WIND

    return SessionInfo(weather=weather, sky=sky, wind=wind, air_temp_c=sample.temp_c)


class LapRepository:
    """
    Idempotent lap storage.

    The identity cache and the set of weather-correlated sessions live for
    the lifetime of the process and start empty. The unique index on
    (day, session, kart, lap) keeps re-ingested laps out after a restart.
    """

    def __init__(self, weather_store: WeatherTimelineStore, min_lap_time: Optional[Decimal] = None):
        self._weather_store = weather_store
        self.min_lap_time = min_lap_time if min_lap_time is not None else CollectorConfig.MIN_LAP_TIME
        self._cache: Set[LapIdentity] = set()
        self._weather_handled_sessions: Set[str] = set()
        self._lock = asyncio.Lock()

    def is_known(self, day: date, entry: LapEntry) -> bool:
        return entry.identity(day) in self._cache

    def is_weather_handled(self, session_id: str) -> bool:
        return session_id in self._weather_handled_sessions

    async def save_lap(self, day: date, entry: LapEntry) -> bool:
        """
        Store a lap unless it was already seen.

        Args:
            day: Calendar day the lap belongs to
            entry: Parsed lap

        Returns:
            True if a new row was written to the database
        """
        if entry.time < self.min_lap_time:
            return False

        identity = entry.identity(day)
        if identity in self._cache:
            return False

        await self._correlate_weather(entry)

        inserted = await insert_lap_entry(day, entry)
        self._cache.add(identity)
        if inserted:
            logger.info(
                "Saved lap: session=%s kart=%s lap=%s time=%s",
                entry.session_id, entry.kart, entry.lap, entry.time,
            )
        return inserted

    async def _correlate_weather(self, entry: LapEntry) -> None:
        session_id = entry.session_id
        if session_id in self._weather_handled_sessions:
            return

        async with self._lock:
            if session_id in self._weather_handled_sessions:
                return

            try:
                weather = self._weather_store.most_recent_before(entry.recorded_at_utc)
                if weather is not None:
                    info = classify_weather(weather)
                    await upsert_session_info(
                        session_id, info, weather_data=weather.model_dump_json(), overwrite=False
                    )
                    logger.info(
                        "Session %s correlated with weather from %s: %s",
                        session_id, weather.timestamp_utc, info,
                    )
                else:
                    logger.info("No weather sample before session %s", session_id)
            except Exception:
                logger.exception("Error when correlating weather for session %s", session_id)

            # Older sessions may have no sample at all, retrying would not help.
            self._weather_handled_sessions.add(session_id)

    async def update_session_info(self, session_id: str, info: SessionInfo) -> None:
        """
        Merge hand-entered session metadata.
        Only the fields that are set overwrite stored values.

        Raises:
            InvalidSessionInfoError: If no field is set
        """
        if not info.is_valid:
            raise InvalidSessionInfoError(f"Session info update for {session_id} carries no values")

        try:
            await upsert_session_info(session_id, info)
        except Exception:
            logger.exception("Error when updating session info for session %s", session_id)

    async def get_session_info(self, session_id: str) -> Optional[SessionInfo]:
        return await get_session_info_from_db(session_id)

    async def get_history_for_day(self, day: date) -> List[LapEntry]:
        return await get_laps_for_day(day)

    async def get_top_times(self, top: int) -> List[LapEntry]:
        return await get_top_laps(top)

    async def get_history_for_session(self, session_id: str) -> List[LapEntry]:
        return await get_laps_for_session(session_id)

    async def get_kart_history_for_day(self, day: date, session: int, kart: str) -> List[ShortEntry]:
        """Lap times of one kart in one session of the given day."""
        history = await get_laps_for_day(day)
        return [
            ShortEntry(lap=entry.lap, time=entry.time)
            for entry in history
            if entry.session == session and entry.kart == kart
        ]
