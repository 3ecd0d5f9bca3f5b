"""
Pydantic models for lap records.
These models represent laps as they flow from the timing feed into storage.
"""
from pydantic import BaseModel, ConfigDict
from datetime import date, datetime
from decimal import Decimal


class LapIdentity(BaseModel):
    """
    Deduplication key of a lap.
    At most one lap with a given identity is ever stored.
    """
    model_config = ConfigDict(frozen=True)

    day: date
    session: int
    kart: str
    lap: int


class LapEntry(BaseModel):
    """
    One completed lap, stamped with the time it was captured.
    The session number is assigned by the feed and repeats every day.
    """
    model_config = ConfigDict(frozen=True)

    recorded_at_utc: datetime
    session: int
    total_length: str
    kart: str
    lap: int
    time: Decimal

    @property
    def session_id(self) -> str:
        """
        Session key that is unique across days.
        Prefixes the session number with the number of days since 0001-01-01.
        """
        day_number = self.recorded_at_utc.date().toordinal() - 1
        return f"{day_number}-{self.session}"

    def identity(self, day: date) -> LapIdentity:
        return LapIdentity(day=day, session=self.session, kart=self.kart, lap=self.lap)


class ShortEntry(BaseModel):
    """Lap number and time of a single kart."""
    lap: int
    time: Decimal
