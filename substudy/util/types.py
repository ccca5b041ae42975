"""Core data types for the substudy subtitle pipeline.

This module defines the values passed between the parser, the cleaner, the
alignment engine and the serializer. All of them are plain values with no
back-references, so they can be shared freely between threads.
"""

from __future__ import annotations

import bisect
from dataclasses import dataclass, field
from datetime import timedelta
from typing import Iterator, List, Optional, Sequence, Tuple

import srt

from .time import Time


def _as_lines(lines: Sequence[str]) -> Tuple[str, ...]:
    if isinstance(lines, str):
        raise TypeError("cue lines must be a sequence of strings, not a single string")
    return tuple(lines)


@dataclass(frozen=True)
class Cue:
    """One timed subtitle entry.

    Attributes:
        start: Time the cue appears
        end: Time the cue disappears (exclusive)
        lines: Text lines in on-screen order

    Invariant: end >= start (zero-length cues are legal but never displayed)
    """
    start: Time
    end: Time
    lines: Tuple[str, ...] = ()

    def __post_init__(self) -> None:
        object.__setattr__(self, "lines", _as_lines(self.lines))
        if self.end < self.start:
            raise ValueError(f"cue ends before it starts: {self.start} --> {self.end}")

    @property
    def duration(self) -> Time:
        return self.end - self.start

    def with_lines(self, lines: Sequence[str]) -> "Cue":
        return Cue(self.start, self.end, _as_lines(lines))


@dataclass(frozen=True)
class BilingualCue:
    """A half-open interval ``[start, end)`` carrying text from both tracks.

    Either payload may be empty when that track has nothing on screen during
    the interval.
    """
    start: Time
    end: Time
    foreign_lines: Tuple[str, ...] = ()
    native_lines: Tuple[str, ...] = ()

    def __post_init__(self) -> None:
        object.__setattr__(self, "foreign_lines", _as_lines(self.foreign_lines))
        object.__setattr__(self, "native_lines", _as_lines(self.native_lines))
        if self.end < self.start:
            raise ValueError(f"cue ends before it starts: {self.start} --> {self.end}")

    @property
    def lines(self) -> Tuple[str, ...]:
        """Foreign lines stacked above native lines."""
        return self.foreign_lines + self.native_lines

    def to_cue(self) -> Cue:
        return Cue(self.start, self.end, self.lines)


def _compose_srt(cues: Sequence[Cue]) -> str:
    """Render cues as SRT, numbering 1..N in the given order.

    Indices are assigned here and ``reindex`` is disabled, because
    ``srt.compose`` would otherwise re-sort by (start, end) and break the
    stable start order produced by the parser.
    """
    items = [
        srt.Subtitle(
            index=i,
            start=timedelta(milliseconds=cue.start.ms),
            end=timedelta(milliseconds=cue.end.ms),
            content="\n".join(cue.lines),
        )
        for i, cue in enumerate(cues, 1)
    ]
    return srt.compose(items, reindex=False)


@dataclass
class SubtitleFile:
    """A single-language subtitle track.

    Attributes:
        cues: Cues ordered by start time (overlap between cues is allowed)
        source_file: Optional path or identifier of where the cues came from
    """
    cues: List[Cue] = field(default_factory=list)
    source_file: Optional[str] = field(default=None, compare=False)

    def __len__(self) -> int:
        return len(self.cues)

    def __iter__(self) -> Iterator[Cue]:
        return iter(self.cues)

    def __str__(self) -> str:
        return self.to_srt()

    def find(self, at: Time) -> Optional[Cue]:
        """Return the cue on screen at ``at`` (latest-starting if several)."""
        # Cues are sorted by start, so only those left of the insertion
        # point can contain ``at``.
        idx = bisect.bisect_right(self.cues, at, key=lambda cue: cue.start)
        for i in range(idx - 1, -1, -1):
            cue = self.cues[i]
            if cue.start <= at < cue.end:
                return cue
        return None

    def to_srt(self) -> str:
        return _compose_srt(self.cues)


@dataclass
class BilingualFile:
    """Output of the alignment engine: strictly increasing bilingual cues."""
    cues: List[BilingualCue] = field(default_factory=list)

    def __len__(self) -> int:
        return len(self.cues)

    def __iter__(self) -> Iterator[BilingualCue]:
        return iter(self.cues)

    def __str__(self) -> str:
        return self.to_srt()

    def to_subtitle_file(self) -> SubtitleFile:
        return SubtitleFile([cue.to_cue() for cue in self.cues])

    def to_srt(self) -> str:
        return _compose_srt([cue.to_cue() for cue in self.cues])
