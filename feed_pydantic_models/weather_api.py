"""
Pydantic models for weatherapi.com current conditions responses.
Matches the structure returned by https://api.weatherapi.com/v1/current.json
"""
from pydantic import BaseModel
from decimal import Decimal


class RawCondition(BaseModel):
    code: int
    text: str


class RawCurrent(BaseModel):
    temp_c: Decimal
    is_day: int
    condition: RawCondition
    wind_kph: Decimal
    wind_degree: Decimal
    pressure_mb: Decimal
    precip_mm: Decimal
    humidity: Decimal
    cloud: Decimal
    feelslike_c: Decimal
    dewpoint_c: Decimal


class RawWeatherData(BaseModel):
    """Response wrapper for the current conditions API."""
    current: RawCurrent
