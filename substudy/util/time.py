"""Millisecond-precision subtitle time.

All cue arithmetic in substudy works on integer milliseconds so that parsing
and formatting ``HH:MM:SS,mmm`` is exact and never drifts the way float
seconds do.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from functools import total_ordering

from ..errors import MalformedTimestamp


_TIMESTAMP_RE = re.compile(r"^(\d+):(\d{2}):(\d{2}),(\d{3})$")

_MS_PER_SECOND = 1000
_MS_PER_MINUTE = 60 * _MS_PER_SECOND
_MS_PER_HOUR = 60 * _MS_PER_MINUTE


@total_ordering
@dataclass(frozen=True)
class Time:
    """A non-negative offset from a track's zero point, in milliseconds."""

    ms: int

    def __post_init__(self) -> None:
        if not isinstance(self.ms, int) or isinstance(self.ms, bool):
            raise TypeError(f"Time expects an int number of milliseconds, got {self.ms!r}")
        if self.ms < 0:
            raise ValueError(f"Time cannot be negative: {self.ms}")

    @classmethod
    def parse(cls, text: str) -> "Time":
        """Parse ``HH:MM:SS,mmm`` (hours may have any number of digits)."""
        m = _TIMESTAMP_RE.match(text.strip())
        if m is None:
            raise MalformedTimestamp(text)
        hours, minutes, seconds, millis = (int(g) for g in m.groups())
        if minutes > 59:
            raise MalformedTimestamp(text, f"minutes out of range: {minutes}")
        if seconds > 59:
            raise MalformedTimestamp(text, f"seconds out of range: {seconds}")
        return cls(
            hours * _MS_PER_HOUR
            + minutes * _MS_PER_MINUTE
            + seconds * _MS_PER_SECOND
            + millis
        )

    @classmethod
    def from_seconds(cls, seconds: float) -> "Time":
        """Round float seconds (as used by Whisper JSON) to the nearest ms."""
        return cls(max(0, int(round(seconds * _MS_PER_SECOND))))

    @property
    def seconds(self) -> float:
        return self.ms / _MS_PER_SECOND

    def format(self) -> str:
        """Format as ``HH:MM:SS,mmm``; exact inverse of :meth:`parse`."""
        hours, rem = divmod(self.ms, _MS_PER_HOUR)
        minutes, rem = divmod(rem, _MS_PER_MINUTE)
        seconds, millis = divmod(rem, _MS_PER_SECOND)
        return f"{hours:02d}:{minutes:02d}:{seconds:02d},{millis:03d}"

    def saturating_sub(self, other: "Time") -> "Time":
        """Subtract, clamping at zero instead of going negative."""
        return Time(max(0, self.ms - other.ms))

    def __add__(self, other: "Time") -> "Time":
        if not isinstance(other, Time):
            return NotImplemented
        return Time(self.ms + other.ms)

    def __sub__(self, other: "Time") -> "Time":
        if not isinstance(other, Time):
            return NotImplemented
        return self.saturating_sub(other)

    def __lt__(self, other: "Time") -> bool:
        if not isinstance(other, Time):
            return NotImplemented
        return self.ms < other.ms

    def __str__(self) -> str:
        return self.format()


ZERO = Time(0)
