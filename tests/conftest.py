"""
Pytest fixtures for the lap-timing collector tests.
"""
from datetime import datetime, timezone
from decimal import Decimal

import pytest

from api_pydantic_models.lap_data import LapEntry
from api_pydantic_models.weather import WeatherSample
from utils.database import DatabaseManager


BASE_TIME = datetime(2024, 6, 15, 12, 0, 0, tzinfo=timezone.utc)


def make_weather_sample(timestamp_utc: datetime = BASE_TIME, **overrides) -> WeatherSample:
    values = {
        "temp_c": Decimal("24.1"),
        "is_day": True,
        "condition_code": 1000,
        "condition_text": "Sunny",
        "wind_kph": Decimal("8.3"),
        "wind_degree": Decimal("240"),
        "pressure_mb": Decimal("1014"),
        "precipitation_mm": Decimal("0"),
        "humidity": Decimal("61"),
        "cloud": Decimal("10"),
        "feels_like_c": Decimal("25.0"),
        "dew_point_c": Decimal("16.2"),
    }
    values.update(overrides)
    return WeatherSample(timestamp_utc=timestamp_utc, **values)


def make_lap(
    recorded_at_utc: datetime = BASE_TIME,
    session: int = 12,
    kart: str = "7",
    lap: int = 1,
    time: str = "61.234",
) -> LapEntry:
    return LapEntry(
        recorded_at_utc=recorded_at_utc,
        session=session,
        total_length="1100",
        kart=kart,
        lap=lap,
        time=Decimal(time),
    )


@pytest.fixture
def weather_sample_factory():
    """Build weather samples with sensible defaults."""
    return make_weather_sample


@pytest.fixture
def lap_factory():
    """Build lap entries with sensible defaults."""
    return make_lap


@pytest.fixture
async def database(tmp_path):
    """Fresh SQLite database per test."""
    await DatabaseManager.initialize(str(tmp_path / "kartman.db"))
    yield DatabaseManager
    await DatabaseManager.close()
