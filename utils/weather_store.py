"""
In-memory timeline of weather samples.
Answers "what was the weather just before time T" for session correlation.
"""
import bisect
import logging
import threading
from datetime import datetime
from typing import List, Optional
from api_pydantic_models.weather import WeatherSample

logger = logging.getLogger(__name__)

UPPER_BOUND = 20000
LOWER_BOUND = 10000


class WeatherTimelineStore:
    """
    Weather samples ordered by capture time.

    Holds at most `upper_bound` samples; once that is exceeded only the most
    recent `lower_bound` are kept. Lookups for times older than the oldest
    retained sample return None.
    """

    def __init__(self, upper_bound: int = UPPER_BOUND, lower_bound: int = LOWER_BOUND):
        if lower_bound > upper_bound:
            raise ValueError("lower_bound must not exceed upper_bound")
        self.upper_bound = upper_bound
        self.lower_bound = lower_bound
        self._timestamps: List[datetime] = []
        self._samples: List[WeatherSample] = []
        self._lock = threading.Lock()

    def __len__(self) -> int:
        with self._lock:
            return len(self._samples)

    def append(self, sample: WeatherSample) -> None:
        """Add a sample. A sample with an already stored capture time replaces it."""
        with self._lock:
            index = bisect.bisect_left(self._timestamps, sample.timestamp_utc)
            if index < len(self._timestamps) and self._timestamps[index] == sample.timestamp_utc:
                self._samples[index] = sample
                return

            self._timestamps.insert(index, sample.timestamp_utc)
            self._samples.insert(index, sample)

            if len(self._samples) > self.upper_bound:
                self._compact()

    def _compact(self) -> None:
        # Caller holds the lock. Both lists are rebuilt and swapped together.
        dropped = len(self._samples) - self.lower_bound
        timestamps = self._timestamps[-self.lower_bound:]
        samples = self._samples[-self.lower_bound:]
        self._timestamps, self._samples = timestamps, samples
        logger.info("Weather timeline compacted, dropped %d oldest samples", dropped)

    def most_recent_before(self, timestamp: datetime) -> Optional[WeatherSample]:
        """Latest sample captured strictly before `timestamp`, or None."""
        with self._lock:
            index = bisect.bisect_left(self._timestamps, timestamp)
            if index == 0:
                return None
            return self._samples[index - 1]

    def oldest(self) -> Optional[WeatherSample]:
        with self._lock:
            return self._samples[0] if self._samples else None
