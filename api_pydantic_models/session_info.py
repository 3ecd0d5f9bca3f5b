"""
Pydantic models for per-session metadata.
Weather buckets are derived automatically, track fields are entered by hand.
"""
from pydantic import BaseModel
from enum import IntEnum
from decimal import Decimal
from typing import Optional


class Weather(IntEnum):
    DRY = 1
    DAMP = 2
    WET = 3
    EXTRA_WET = 4


class Sky(IntEnum):
    CLEAR = 1
    CLOUDY = 2
    OVERCAST = 3


class Wind(IntEnum):
    NO_WIND = 1
    WIND = 2


class TrackTemp(IntEnum):
    COLD = 1
    COOL = 2
    WARM = 3
    HOT = 4


class TrackConfig(IntEnum):
    SHORT = 1
    LONG = 2
    SHORT_REVERSE = 3
    LONG_REVERSE = 4


class SessionInfo(BaseModel):
    """
    Session metadata.
    Every field is optional so the model doubles as a sparse update:
    only the fields that are set get written.
    """
    weather: Optional[Weather] = None
    sky: Optional[Sky] = None
    wind: Optional[Wind] = None
    air_temp_c: Optional[Decimal] = None
    track_temp_c: Optional[Decimal] = None
    track_temp_approximation: Optional[TrackTemp] = None
    track_config: Optional[TrackConfig] = None

    @property
    def is_valid(self) -> bool:
        """An update has to carry at least one value."""
        return any(value is not None for value in self.model_dump().values())


class InvalidSessionInfoError(ValueError):
    """Raised when a session info update carries no values."""
