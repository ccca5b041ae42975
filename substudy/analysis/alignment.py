"""Combination of a foreign and a native subtitle track into one bilingual track.

Subtitle files for the same video are rarely cue-aligned: the two languages
split dialog differently and time it independently. Rather than pairing cues,
we cut the timeline at every cue boundary from either file and record, for
each elementary interval, which text each track shows. Adjacent intervals
showing the same pair of texts are then merged back together.

Intervals are half-open, ``[start, end)``: at a point where one track's cue
ends and the other's begins, only the beginning cue is active.
"""

from __future__ import annotations

import logging
from typing import Any, Dict, List, Optional, Sequence, Tuple

from ..util.time import Time
from ..util.types import BilingualCue, BilingualFile, Cue, SubtitleFile


logger = logging.getLogger(__name__)

Lines = Tuple[str, ...]


class _TrackCursor:
    """Monotonic cursor over one start-sorted cue list.

    ``advance(t)`` must be called with non-decreasing ``t``. Each cue is
    entered and left once, so a full sweep is linear in the cue count (plus
    the size of the active set, which is tiny for real subtitle files).
    """

    def __init__(self, cues: Sequence[Cue]):
        self._cues = cues
        self._next = 0
        # Indices of cues started and not yet ended, in file order
        self._active: List[int] = []

    def active(self, t: Time) -> Optional[int]:
        """Index of the cue on screen during the interval starting at ``t``."""
        cues = self._cues
        while self._next < len(cues) and cues[self._next].start <= t:
            self._active.append(self._next)
            self._next += 1
        self._active = [i for i in self._active if cues[i].end > t]
        if not self._active:
            return None
        # Overlapping cues: the most recently started one wins
        return max(self._active, key=lambda i: (cues[i].start, i))

    def advance(self, t: Time) -> Lines:
        """Return the lines on screen during the interval starting at ``t``."""
        index = self.active(t)
        return self._cues[index].lines if index is not None else ()


def _boundary_points(*files: SubtitleFile) -> List[Time]:
    """Every distinct cue start and end from ``files``, ascending."""
    points = set()
    for subtitle in files:
        for cue in subtitle.cues:
            points.add(cue.start)
            points.add(cue.end)
    return sorted(points)


def _merge_runs(cues: List[BilingualCue]) -> List[BilingualCue]:
    """Coalesce touching cues that carry identical (foreign, native) text.

    Cues separated by a gap are never merged: that would claim coverage
    neither input has.
    """
    merged: List[BilingualCue] = []
    for cue in cues:
        if merged:
            prev = merged[-1]
            if (
                prev.end == cue.start
                and prev.foreign_lines == cue.foreign_lines
                and prev.native_lines == cue.native_lines
            ):
                merged[-1] = BilingualCue(prev.start, cue.end, prev.foreign_lines, prev.native_lines)
                continue
        merged.append(cue)
    return merged


def _reemit(subtitle: SubtitleFile, *, foreign: bool) -> BilingualFile:
    """Bilingual view of a single track, the other side left empty.

    Runs the same sweep as the two-track case so overlaps and zero-length
    cues are resolved identically, then joins the pieces of each source cue
    back together. Well-formed input comes back cue for cue.
    """
    points = _boundary_points(subtitle)
    cursor = _TrackCursor(subtitle.cues)

    pieces: List[Tuple[int, Time, Time]] = []
    for start, end in zip(points, points[1:]):
        index = cursor.active(start)
        if index is None:
            continue
        if pieces and pieces[-1][0] == index and pieces[-1][2] == start:
            pieces[-1] = (index, pieces[-1][1], end)
        else:
            pieces.append((index, start, end))

    cues: List[BilingualCue] = []
    for index, start, end in pieces:
        lines = subtitle.cues[index].lines
        if foreign:
            cues.append(BilingualCue(start, end, lines, ()))
        else:
            cues.append(BilingualCue(start, end, (), lines))
    return BilingualFile(cues)


def combine_files(
    foreign: SubtitleFile,
    native: SubtitleFile,
    metadata: Optional[Dict[str, Any]] = None,
) -> BilingualFile:
    """Merge a foreign and a native subtitle file into one bilingual timeline.

    Uses a sweep over all cue boundaries with one cursor per track:

    1. Collect every start/end point from both files, sorted and unique.
    2. For each consecutive pair of points, find the active cue of each track.
    3. Emit a bilingual cue per interval, skipping intervals where neither
       track shows anything.
    4. Merge runs of touching cues with identical text pairs.

    Args:
        foreign: Cleaned foreign-language subtitles (sorted by start)
        native: Cleaned native-language subtitles (sorted by start)
        metadata: Optional metadata dict; sweep statistics are stored under
            ``metadata["combine"]``

    Returns:
        BilingualFile whose cues are strictly increasing and non-overlapping.
        If one input is empty, the other is re-emitted cue for cue, with
        overlaps resolved and zero-length cues dropped as above.
    """
    if not foreign.cues or not native.cues:
        result = _reemit(foreign, foreign=True) if foreign.cues else _reemit(native, foreign=False)
        logger.info("One input is empty; re-emitting %d cue(s) unchanged", len(result))
        if metadata is not None:
            metadata["combine"] = {
                "foreign_cues": len(foreign.cues),
                "native_cues": len(native.cues),
                "intervals": 0,
                "output_cues": len(result),
            }
        return result

    points = _boundary_points(foreign, native)
    foreign_cursor = _TrackCursor(foreign.cues)
    native_cursor = _TrackCursor(native.cues)

    raw: List[BilingualCue] = []
    for start, end in zip(points, points[1:]):
        foreign_lines = foreign_cursor.advance(start)
        native_lines = native_cursor.advance(start)
        if not foreign_lines and not native_lines:
            # Gap in both tracks
            continue
        raw.append(BilingualCue(start, end, foreign_lines, native_lines))

    combined = _merge_runs(raw)
    logger.info(
        "Combined %d foreign and %d native cues into %d bilingual cues (%d intervals)",
        len(foreign.cues),
        len(native.cues),
        len(combined),
        len(raw),
    )

    if metadata is not None:
        metadata["combine"] = {
            "foreign_cues": len(foreign.cues),
            "native_cues": len(native.cues),
            "intervals": len(raw),
            "output_cues": len(combined),
        }

    return BilingualFile(combined)
