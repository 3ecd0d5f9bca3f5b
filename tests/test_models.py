"""
Tests for lap and weather model helpers.
"""
from datetime import date, datetime, timedelta, timezone
from decimal import Decimal

from api_pydantic_models.lap_data import LapIdentity
from api_pydantic_models.session_info import SessionInfo, Wind


def test_session_id_prefixes_day_number(lap_factory):
    entry = lap_factory(recorded_at_utc=datetime(2024, 1, 1, 10, 0, tzinfo=timezone.utc), session=5)
    assert entry.session_id == "738885-5"


def test_session_id_changes_with_day(lap_factory):
    first = lap_factory(recorded_at_utc=datetime(2024, 1, 1, 10, 0, tzinfo=timezone.utc))
    second = lap_factory(recorded_at_utc=datetime(2024, 1, 2, 10, 0, tzinfo=timezone.utc))
    assert first.session_id != second.session_id


def test_identity_is_hashable(lap_factory):
    entry = lap_factory()
    identity = entry.identity(date(2024, 6, 15))

    assert identity == LapIdentity(day=date(2024, 6, 15), session=12, kart="7", lap=1)
    assert identity in {identity}


def test_comparison_key_ignores_timestamp(weather_sample_factory):
    first = weather_sample_factory()
    second = weather_sample_factory(first.timestamp_utc + timedelta(minutes=1))

    assert first.comparison_key() == second.comparison_key()


def test_comparison_key_sees_condition_changes(weather_sample_factory):
    first = weather_sample_factory()
    second = weather_sample_factory(first.timestamp_utc, condition_text="Light rain")

    assert first.comparison_key() != second.comparison_key()


def test_session_info_validity():
    assert SessionInfo().is_valid is False
    assert SessionInfo(wind=Wind.WIND).is_valid is True
    assert SessionInfo(air_temp_c=Decimal("0")).is_valid is True
