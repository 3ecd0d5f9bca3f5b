"""
Unit tests for the weather timeline store.
"""
import threading
from datetime import datetime, timedelta, timezone

import pytest

from utils.weather_store import WeatherTimelineStore


def _ts(seconds: int) -> datetime:
    return datetime(2024, 6, 15, 12, 0, 0, tzinfo=timezone.utc) + timedelta(seconds=seconds)


class TestMostRecentBefore:
    @pytest.fixture
    def store(self, weather_sample_factory) -> WeatherTimelineStore:
        store = WeatherTimelineStore()
        for seconds in (10, 20, 30):
            store.append(weather_sample_factory(_ts(seconds)))
        return store

    def test_returns_latest_sample_before_timestamp(self, store):
        assert store.most_recent_before(_ts(25)).timestamp_utc == _ts(20)

    def test_nothing_before_first_sample(self, store):
        assert store.most_recent_before(_ts(5)) is None

    def test_is_strictly_before(self, store):
        assert store.most_recent_before(_ts(30)).timestamp_utc == _ts(20)
        assert store.most_recent_before(_ts(10)) is None

    def test_after_last_sample(self, store):
        assert store.most_recent_before(_ts(3600)).timestamp_utc == _ts(30)

    def test_empty_store(self):
        assert WeatherTimelineStore().most_recent_before(_ts(0)) is None


def test_out_of_order_appends_are_sorted(weather_sample_factory):
    store = WeatherTimelineStore()
    for seconds in (30, 10, 20):
        store.append(weather_sample_factory(_ts(seconds)))

    assert store.oldest().timestamp_utc == _ts(10)
    assert store.most_recent_before(_ts(25)).timestamp_utc == _ts(20)


def test_same_capture_time_replaces_sample(weather_sample_factory):
    store = WeatherTimelineStore()
    store.append(weather_sample_factory(_ts(10), condition_text="Sunny"))
    store.append(weather_sample_factory(_ts(10), condition_text="Mist"))

    assert len(store) == 1
    assert store.most_recent_before(_ts(11)).condition_text == "Mist"


def test_compaction_keeps_most_recent_samples(weather_sample_factory):
    store = WeatherTimelineStore()
    base = weather_sample_factory(_ts(0))
    for i in range(20001):
        store.append(base.model_copy(update={"timestamp_utc": _ts(i * 60)}))

    assert len(store) <= 10001
    assert len(store) == 10000
    assert store.oldest().timestamp_utc == _ts(10001 * 60)

    assert store.most_recent_before(_ts(15000 * 60 + 30)).timestamp_utc == _ts(15000 * 60)
    assert store.most_recent_before(_ts(20000 * 60 + 1)).timestamp_utc == _ts(20000 * 60)
    assert store.most_recent_before(_ts(10001 * 60)) is None


def test_compaction_with_small_bounds(weather_sample_factory):
    store = WeatherTimelineStore(upper_bound=4, lower_bound=2)
    for seconds in range(5):
        store.append(weather_sample_factory(_ts(seconds)))

    assert len(store) == 2
    assert store.oldest().timestamp_utc == _ts(3)

    store.append(weather_sample_factory(_ts(5)))
    assert len(store) == 3


def test_bounds_are_validated():
    with pytest.raises(ValueError):
        WeatherTimelineStore(upper_bound=10, lower_bound=20)


def test_lookups_during_compaction_see_a_whole_view(weather_sample_factory):
    store = WeatherTimelineStore(upper_bound=100, lower_bound=50)
    base = weather_sample_factory(_ts(0))
    appended = [0]
    done = threading.Event()

    def writer():
        for i in range(5000):
            store.append(base.model_copy(update={"timestamp_utc": _ts(i * 60)}))
            appended[0] = i + 1
        done.set()

    thread = threading.Thread(target=writer)
    thread.start()

    mismatches = []
    while not done.is_set():
        newest = appended[0] - 1
        if newest < 0:
            continue
        # Either the sample is still retained and found exactly, or it was compacted away.
        found = store.most_recent_before(_ts(newest * 60 + 30))
        if found is not None and found.timestamp_utc != _ts(newest * 60):
            mismatches.append((newest, found.timestamp_utc))
        assert len(store) <= store.upper_bound

    thread.join()
    assert mismatches == []
    assert len(store) <= store.upper_bound
    assert store.most_recent_before(_ts(4999 * 60 + 30)).timestamp_utc == _ts(4999 * 60)
