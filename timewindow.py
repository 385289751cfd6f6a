"""
Skyport Climate Agent - Control Window

Daily on/off window arithmetic. A window either sits inside one day
(Contiguous) or wraps across midnight (Split); both answer "is t inside"
and "how long until the next boundary".
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass
from datetime import datetime, time
from typing import Tuple

SECONDS_PER_DAY = 24 * 60 * 60

TIME_FORMATS = ("%H:%M", "%H:%M:%S")


def _seconds(t: time) -> int:
    return t.hour * 3600 + t.minute * 60 + t.second


def _truncate(t: time) -> time:
    return t.replace(microsecond=0, tzinfo=None)


def seconds_until_next(t: time, first: time, second: time) -> int:
    """
    Seconds from t until the next of two ordered boundaries on a 24h circle.

    Past both boundaries the answer is the first boundary tomorrow.
    """
    now = _seconds(t)
    if t < first:
        return _seconds(first) - now
    elif t < second:
        return _seconds(second) - now
    else:
        return SECONDS_PER_DAY - (now - _seconds(first))


class TimeWindow(ABC):
    """A daily control window. Build with TimeWindow.from_bounds()."""

    @property
    @abstractmethod
    def boundaries(self) -> Tuple[time, time]:
        """The two boundaries in the order next_transition walks them."""

    @abstractmethod
    def contains(self, t: time) -> bool:
        """Whether t is inside the window, boundaries included."""

    def next_transition(self, t: time) -> int:
        """Seconds until the window is next entered or left. Always > 0."""
        first, second = self.boundaries
        return seconds_until_next(_truncate(t), first, second)

    @staticmethod
    def from_bounds(begin: time, end: time) -> "TimeWindow":
        begin, end = _truncate(begin), _truncate(end)
        if begin < end:
            return Contiguous(begin, end)
        return Split(end, begin)


@dataclass(frozen=True)
class Contiguous(TimeWindow):
    """Active on [begin, end] within a single day."""
    begin: time
    end: time

    @property
    def boundaries(self) -> Tuple[time, time]:
        return (self.begin, self.end)

    def contains(self, t: time) -> bool:
        t = _truncate(t)
        return self.begin <= t <= self.end


@dataclass(frozen=True)
class Split(TimeWindow):
    """Active up to end and again from begin, wrapping midnight."""
    end: time
    begin: time

    @property
    def boundaries(self) -> Tuple[time, time]:
        return (self.end, self.begin)

    def contains(self, t: time) -> bool:
        t = _truncate(t)
        return t <= self.end or t >= self.begin


def parse_time_of_day(value: str) -> time:
    """Parse 'HH:MM' or 'HH:MM:SS'. Raises ValueError."""
    for fmt in TIME_FORMATS:
        try:
            return datetime.strptime(value.strip(), fmt).time()
        except ValueError:
            continue
    raise ValueError(f"Invalid time of day: {value!r}")


def parse_window(begin: str, end: str) -> TimeWindow:
    return TimeWindow.from_bounds(parse_time_of_day(begin), parse_time_of_day(end))
