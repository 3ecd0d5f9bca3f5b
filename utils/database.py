"""
Database utility functions for SQLite operations.
Handles connection management, schema migrations and the lap/session queries.
"""
import aiosqlite
import logging
from typing import Dict, List, Optional
from contextlib import asynccontextmanager
from datetime import date, datetime
from decimal import Decimal
from config.database_config import DatabaseConfig
from api_pydantic_models.lap_data import LapEntry
from api_pydantic_models.session_info import SessionInfo

logger = logging.getLogger(__name__)


# -----------------------------
# Schema
# -----------------------------

_MIGRATIONS: Dict[int, str] = {
    1: """
        CREATE TABLE IF NOT EXISTS data (
            id              INTEGER PRIMARY KEY AUTOINCREMENT,
            session_id      TEXT    NOT NULL,
            day             TEXT    NOT NULL,
            recorded_at_utc TEXT    NOT NULL,
            session         INTEGER NOT NULL,
            total_length    TEXT,
            kart            TEXT    NOT NULL,
            lap             INTEGER NOT NULL,
            time            NUMERIC NOT NULL
        );

        CREATE UNIQUE INDEX IF NOT EXISTS idx_data_identity ON data (day, session, kart, lap);
        CREATE INDEX IF NOT EXISTS idx_data_session_id ON data (session_id);
        CREATE INDEX IF NOT EXISTS idx_data_day ON data (day);
        CREATE INDEX IF NOT EXISTS idx_data_time ON data (time);
    """,
    2: """
        CREATE TABLE IF NOT EXISTS session (
            id                       TEXT NOT NULL,
            weather                  INTEGER,
            sky                      INTEGER,
            wind                     INTEGER,
            air_temp                 NUMERIC,
            track_temp               NUMERIC,
            track_temp_approximation INTEGER,
            track_config             INTEGER
        );

        CREATE UNIQUE INDEX IF NOT EXISTS idx_session_id ON session (id);
        CREATE INDEX IF NOT EXISTS idx_session_weather ON session (weather);
        CREATE INDEX IF NOT EXISTS idx_session_sky ON session (sky);
        CREATE INDEX IF NOT EXISTS idx_session_wind ON session (wind);
        CREATE INDEX IF NOT EXISTS idx_session_track_config ON session (track_config);
    """,
    3: """
        ALTER TABLE session ADD COLUMN weather_data TEXT;
    """,
}

# SessionInfo field -> session table column
_SESSION_COLUMNS: Dict[str, str] = {
    "weather": "weather",
    "sky": "sky",
    "wind": "wind",
    "air_temp_c": "air_temp",
    "track_temp_c": "track_temp",
    "track_temp_approximation": "track_temp_approximation",
    "track_config": "track_config",
}


class DatabaseManager:
    """Manager class for the shared SQLite connection."""

    _connection: Optional[aiosqlite.Connection] = None

    @classmethod
    async def initialize(cls, db_path: Optional[str] = None) -> aiosqlite.Connection:
        """
        Open the database and bring the schema up to date.
        Call once at startup; later calls reuse the open connection.
        """
        if cls._connection is None:
            path = db_path or DatabaseConfig.get_database_path()
            connection = await aiosqlite.connect(path)
            connection.row_factory = aiosqlite.Row
            cls._connection = connection
            await cls.migrate()
            logger.info("Database opened at %s", path)
        return cls._connection

    @classmethod
    async def migrate(cls) -> None:
        """Apply every migration newer than the recorded schema version."""
        db = cls._connection
        await db.execute("CREATE TABLE IF NOT EXISTS schema_version (version INTEGER PRIMARY KEY)")
        cursor = await db.execute("SELECT MAX(version) FROM schema_version")
        row = await cursor.fetchone()
        current = row[0] or 0

        for version in sorted(_MIGRATIONS):
            if version <= current:
                continue
            await db.executescript(_MIGRATIONS[version])
            await db.execute("INSERT INTO schema_version (version) VALUES (?)", (version,))
            await db.commit()
            logger.info("Applied schema migration %d", version)

    @classmethod
    async def close(cls) -> None:
        """Close the database connection."""
        if cls._connection:
            await cls._connection.close()
            cls._connection = None

    @classmethod
    @asynccontextmanager
    async def get_connection(cls):
        """
        Context manager for database access.
        Opens the database on first use.
        """
        connection = await cls.initialize()
        yield connection


def _row_to_lap_entry(row: aiosqlite.Row) -> LapEntry:
    return LapEntry(
        recorded_at_utc=datetime.fromisoformat(row["recorded_at_utc"]),
        session=row["session"],
        total_length=row["total_length"] or "",
        kart=row["kart"],
        lap=row["lap"],
        time=Decimal(str(row["time"])),
    )


def _to_db_value(value):
    if isinstance(value, Decimal):
        return str(value)
    if isinstance(value, int):
        return int(value)
    return value


_LAP_COLUMNS = "recorded_at_utc, session, total_length, kart, lap, time"


# -----------------------------
# Lap helpers
# -----------------------------

async def insert_lap_entry(day: date, entry: LapEntry) -> bool:
    """
    Insert a lap unless one with the same (day, session, kart, lap) exists.

    Returns:
        True if a new row was written, False if it was already stored
    """
    async with DatabaseManager.get_connection() as conn:
        query = """
            INSERT OR IGNORE INTO data (
                session_id, day, recorded_at_utc, session, total_length, kart, lap, time
            ) VALUES (?, ?, ?, ?, ?, ?, ?, ?)
        """
        cursor = await conn.execute(
            query,
            (
                entry.session_id,
                day.isoformat(),
                entry.recorded_at_utc.isoformat(),
                entry.session,
                entry.total_length,
                entry.kart,
                entry.lap,
                str(entry.time),
            ),
        )
        await conn.commit()
        return cursor.rowcount == 1


async def get_laps_for_day(day: date) -> List[LapEntry]:
    async with DatabaseManager.get_connection() as conn:
        query = f"""
            SELECT {_LAP_COLUMNS}
            FROM data
            WHERE day = ?
            ORDER BY id
        """
        cursor = await conn.execute(query, (day.isoformat(),))
        rows = await cursor.fetchall()
        return [_row_to_lap_entry(row) for row in rows]


async def get_top_laps(top: int) -> List[LapEntry]:
    async with DatabaseManager.get_connection() as conn:
        query = f"""
            SELECT {_LAP_COLUMNS}
            FROM data
            ORDER BY time, id
            LIMIT ?
        """
        cursor = await conn.execute(query, (top,))
        rows = await cursor.fetchall()
        return [_row_to_lap_entry(row) for row in rows]


async def get_laps_for_session(session_id: str) -> List[LapEntry]:
    async with DatabaseManager.get_connection() as conn:
        query = f"""
            SELECT {_LAP_COLUMNS}
            FROM data
            WHERE session_id = ?
            ORDER BY id
        """
        cursor = await conn.execute(query, (session_id,))
        rows = await cursor.fetchall()
        return [_row_to_lap_entry(row) for row in rows]


# -----------------------------
# Session helpers
# -----------------------------

async def get_session_info_from_db(session_id: str) -> Optional[SessionInfo]:
    async with DatabaseManager.get_connection() as conn:
        query = """
            SELECT weather, sky, wind, air_temp, track_temp, track_temp_approximation, track_config
            FROM session
            WHERE id = ?
        """
        cursor = await conn.execute(query, (session_id,))
        row = await cursor.fetchone()
        if row is None:
            return None

        return SessionInfo(
            weather=row["weather"],
            sky=row["sky"],
            wind=row["wind"],
            air_temp_c=Decimal(str(row["air_temp"])) if row["air_temp"] is not None else None,
            track_temp_c=Decimal(str(row["track_temp"])) if row["track_temp"] is not None else None,
            track_temp_approximation=row["track_temp_approximation"],
            track_config=row["track_config"],
        )


async def get_session_weather_data(session_id: str) -> Optional[str]:
    """Raw JSON of the weather sample a session was correlated with."""
    async with DatabaseManager.get_connection() as conn:
        cursor = await conn.execute("SELECT weather_data FROM session WHERE id = ?", (session_id,))
        row = await cursor.fetchone()
        return row["weather_data"] if row is not None else None


async def upsert_session_info(
    session_id: str,
    info: SessionInfo,
    weather_data: Optional[str] = None,
    overwrite: bool = True,
) -> None:
    """
    Merge the set fields of `info` into the session row, creating it if needed.
    Fields that are None are never written.

    Args:
        session_id: Session identifier
        info: Sparse session metadata
        weather_data: Serialized weather sample kept for audit
        overwrite: If False, only columns that are still NULL get filled
    """
    values = {
        column: _to_db_value(getattr(info, field))
        for field, column in _SESSION_COLUMNS.items()
        if getattr(info, field) is not None
    }
    if weather_data is not None:
        values["weather_data"] = weather_data

    columns = ", ".join(["id", *values])
    placeholders = ", ".join("?" for _ in range(len(values) + 1))
    if values:
        if overwrite:
            assignments = ", ".join(f"{column} = excluded.{column}" for column in values)
        else:
            assignments = ", ".join(f"{column} = COALESCE(session.{column}, excluded.{column})" for column in values)
        conflict = f"DO UPDATE SET {assignments}"
    else:
        conflict = "DO NOTHING"

    query = f"""
        INSERT INTO session ({columns})
        VALUES ({placeholders})
        ON CONFLICT (id) {conflict}
    """
    async with DatabaseManager.get_connection() as conn:
        await conn.execute(query, (session_id, *values.values()))
        await conn.commit()
