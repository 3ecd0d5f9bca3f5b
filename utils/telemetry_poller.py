"""
Polling of the kart-timer live screen.
Detects unchanged content, tracks session/day boundaries and forwards
every parsed lap to the repository.
"""
import asyncio
import hashlib
import httpx
import logging
from datetime import date, datetime, timedelta, timezone
from decimal import Decimal, InvalidOperation
from typing import Any, Callable, List, Optional
from config.collector_config import CollectorConfig
from constants.kart_timer_api_endpoints import LIVE_SCREEN_API_URL
from feed_pydantic_models.kart_timer import RawFeed, RawHeadInfo
from api_pydantic_models.lap_data import LapEntry
from utils.lap_repository import LapRepository

logger = logging.getLogger(__name__)

# Positions inside a result row
KART_INDEX = 2
LAP_INDEX = 3
TIME_INDEX = 6


def parse_lap_time(value: Any) -> Optional[Decimal]:
    """Lap time as a decimal, or None if the field is empty or not a finite number."""
    if value is None:
        return None
    text = str(value).strip()
    if not text:
        return None
    try:
        time = Decimal(text)
    except InvalidOperation:
        return None
    return time if time.is_finite() else None


def parse_lap_row(row: Any, head: RawHeadInfo, recorded_at_utc: datetime) -> Optional[LapEntry]:
    """
    Convert one positional result row into a lap.

    Args:
        row: Heterogeneous row from the feed
        head: Head block carrying the session number and track length
        recorded_at_utc: Capture time, the feed has no per-row timestamps

    Returns:
        LapEntry, or None if the row has no usable time or cannot be coerced
    """
    if not isinstance(row, list) or len(row) <= TIME_INDEX:
        return None

    time = parse_lap_time(row[TIME_INDEX])
    if time is None:
        return None

    try:
        kart = row[KART_INDEX]
        if kart is None:
            raise ValueError("kart is missing")
        return LapEntry(
            recorded_at_utc=recorded_at_utc,
            session=int(head.number),
            total_length=head.len,
            kart=str(kart),
            lap=int(str(row[LAP_INDEX])),
            time=time,
        )
    except (TypeError, ValueError) as e:
        logger.warning("Error when trying to parse data for lap entry: %s, row=%s", e, row)
        return None


def parse_lap_rows(feed: RawFeed, recorded_at_utc: datetime) -> List[LapEntry]:
    entries = (parse_lap_row(row, feed.headinfo, recorded_at_utc) for row in feed.results)
    return [entry for entry in entries if entry is not None]


def fingerprint(content: str) -> str:
    return hashlib.sha256(content.encode("utf-8")).hexdigest()


class TelemetryPoller:
    """
    Sequential poller of the live screen.

    When day-end detection is enabled, a feed that stays unchanged outside
    operating hours marks the day as ended: polling slows down and rows of
    the last seen session are ignored until a different session shows up.
    """

    def __init__(
        self,
        repository: LapRepository,
        client: Optional[httpx.AsyncClient] = None,
        feed_url: str = LIVE_SCREEN_API_URL,
        interval_seconds: Optional[float] = None,
        idle_interval_seconds: Optional[float] = None,
        day_end_detection: Optional[bool] = None,
        clock: Callable[[], datetime] = lambda: datetime.now(timezone.utc),
    ):
        self._repository = repository
        self._client = client or httpx.AsyncClient(timeout=CollectorConfig.HTTP_TIMEOUT)
        self.feed_url = feed_url
        self.interval_seconds = (
            interval_seconds if interval_seconds is not None else CollectorConfig.TELEMETRY_POLL_INTERVAL_SECONDS
        )
        self.idle_interval_seconds = (
            idle_interval_seconds if idle_interval_seconds is not None else CollectorConfig.IDLE_POLL_INTERVAL_SECONDS
        )
        self.day_end_detection = (
            day_end_detection if day_end_detection is not None else CollectorConfig.DAY_END_DETECTION_ENABLED
        )
        self._clock = clock

        self._previous_hash: Optional[str] = None
        self._last_telemetry_at: Optional[datetime] = None
        self._last_session: Optional[str] = None
        self.day_ended = False
        self._is_running = False

    @property
    def last_telemetry_at(self) -> Optional[datetime]:
        return self._last_telemetry_at

    def is_outside_operating_hours(self, now: datetime) -> bool:
        return now.hour < CollectorConfig.START_HOUR_UTC or now.hour >= CollectorConfig.END_HOUR_UTC

    def is_telemetry_stale(self, now: datetime) -> bool:
        if self._last_telemetry_at is None:
            return True
        return now - self._last_telemetry_at > timedelta(hours=CollectorConfig.STALE_TELEMETRY_HOURS)

    def check_day_ended(self) -> bool:
        """Set the day-ended flag when the feed went quiet after hours."""
        if not self.day_end_detection:
            return False
        now = self._clock()
        if self.is_outside_operating_hours(now) and self.is_telemetry_stale(now):
            if not self.day_ended:
                logger.info("No telemetry since %s, marking the day as ended", self._last_telemetry_at)
            self.day_ended = True
            return True
        return False

    async def fetch_content(self) -> str:
        response = await self._client.get(self.feed_url)
        response.raise_for_status()
        return response.text

    async def poll_once(self) -> int:
        """
        Run one polling tick.

        Returns:
            Number of laps handed to the repository without error
        """
        try:
            content = await self.fetch_content()

            content_hash = fingerprint(content)
            if content_hash == self._previous_hash:
                return 0
            self._previous_hash = content_hash
            now = self._clock()
            self._last_telemetry_at = now

            feed = RawFeed.model_validate_json(content)

            # TODO: a day without any session makes the first session of the next day look stale and get skipped.
            if self.day_ended and self._last_session == feed.headinfo.number:
                logger.debug("Day ended and session %s is unchanged, ignoring rows", feed.headinfo.number)
                return 0

            if self.day_ended:
                logger.info("New session %s after the day ended, resuming", feed.headinfo.number)
                self.day_ended = False

            self._last_session = feed.headinfo.number

            entries = parse_lap_rows(feed, now)
            return await self._forward(now.date(), entries)
        except Exception:
            logger.exception("Error when trying to gather data")
            return 0

    async def _forward(self, day: date, entries: List[LapEntry]) -> int:
        forwarded = 0
        for entry in entries:
            try:
                await self._repository.save_lap(day, entry)
                forwarded += 1
            except Exception:
                logger.exception("Error when saving lap: session=%s kart=%s lap=%s", entry.session, entry.kart, entry.lap)
        return forwarded

    async def run(self) -> None:
        self._is_running = True
        logger.info("Started gathering history data.")
        while self._is_running:
            self.check_day_ended()
            await self.poll_once()
            # Slow cadence lasts until a different session clears the flag.
            await asyncio.sleep(self.idle_interval_seconds if self.day_ended else self.interval_seconds)

    def stop(self) -> None:
        self._is_running = False
        logger.info("Stopped gathering history data.")

    async def aclose(self) -> None:
        await self._client.aclose()
