"""
Pydantic models for weather observations.
"""
from pydantic import BaseModel, ConfigDict
from datetime import datetime
from decimal import Decimal


class WeatherComparisonKey(BaseModel):
    """
    Every reading of a weather sample except its capture time.
    Two samples with equal keys describe the same conditions.
    """
    model_config = ConfigDict(frozen=True)

    temp_c: Decimal
    is_day: bool
    condition_code: int
    condition_text: str
    wind_kph: Decimal
    wind_degree: Decimal
    pressure_mb: Decimal
    precipitation_mm: Decimal
    humidity: Decimal
    cloud: Decimal
    feels_like_c: Decimal
    dew_point_c: Decimal


class WeatherSample(WeatherComparisonKey):
    """Weather conditions captured at a point in time (UTC)."""
    timestamp_utc: datetime

    def comparison_key(self) -> WeatherComparisonKey:
        return WeatherComparisonKey(**self.model_dump(exclude={"timestamp_utc"}))
