"""
Tests for the SQLite schema and session upserts.
"""
from datetime import date
from decimal import Decimal

from api_pydantic_models.session_info import SessionInfo, Sky, TrackTemp, Weather
from utils.database import (
    _MIGRATIONS,
    get_session_info_from_db,
    insert_lap_entry,
    upsert_session_info,
)


DAY = date(2024, 6, 15)


async def test_migration_creates_tables(database):
    async with database.get_connection() as conn:
        cursor = await conn.execute("SELECT name FROM sqlite_master WHERE type='table'")
        names = {row[0] for row in await cursor.fetchall()}

    assert {"schema_version", "data", "session"} <= names


async def test_migration_idempotent(database):
    await database.migrate()
    await database.migrate()

    async with database.get_connection() as conn:
        cursor = await conn.execute("SELECT COUNT(*) FROM schema_version")
        row = await cursor.fetchone()

    assert row[0] == len(_MIGRATIONS)


async def test_unique_identity_makes_insert_idempotent(database, lap_factory):
    entry = lap_factory()

    assert await insert_lap_entry(DAY, entry) is True
    assert await insert_lap_entry(DAY, entry) is False

    async with database.get_connection() as conn:
        cursor = await conn.execute("SELECT COUNT(*) FROM data")
        row = await cursor.fetchone()
    assert row[0] == 1


async def test_same_lap_on_another_day_is_new(database, lap_factory):
    entry = lap_factory()

    await insert_lap_entry(DAY, entry)
    assert await insert_lap_entry(date(2024, 6, 16), entry) is True


async def test_overwrite_upsert_applies_set_fields_only(database):
    await upsert_session_info("1-1", SessionInfo(weather=Weather.DRY, sky=Sky.CLOUDY))
    await upsert_session_info("1-1", SessionInfo(weather=Weather.DAMP, track_temp_c=Decimal("41.5")))

    info = await get_session_info_from_db("1-1")
    assert info.weather == Weather.DAMP
    assert info.sky == Sky.CLOUDY
    assert info.track_temp_c == Decimal("41.5")


async def test_fill_only_upsert_keeps_existing_values(database):
    await upsert_session_info("1-1", SessionInfo(weather=Weather.WET, track_temp_approximation=TrackTemp.HOT))
    await upsert_session_info(
        "1-1", SessionInfo(weather=Weather.DRY, sky=Sky.CLEAR), weather_data="{}", overwrite=False
    )

    info = await get_session_info_from_db("1-1")
    assert info.weather == Weather.WET
    assert info.sky == Sky.CLEAR
    assert info.track_temp_approximation == TrackTemp.HOT


async def test_missing_session(database):
    assert await get_session_info_from_db("0-0") is None
