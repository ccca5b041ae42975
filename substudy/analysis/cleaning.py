"""Removal of non-dialog content from parsed subtitle files.

The cleaner is a best-effort filter: it drops markup, empty cues and cues
that are almost certainly credits or uploader tags, and tidies whitespace.
It never touches cue timing. Recall matters more than precision here, so
anything with real words in it survives unless an explicit credits pattern
matches.

Rules run per cue in a fixed order. Each rule takes the cue's lines and
returns either new lines or ``None`` to drop the cue, which skips the rules
after it.
"""

from __future__ import annotations

import logging
import re
from typing import Any, Callable, Dict, List, Optional, Tuple

from ..util.types import Cue, SubtitleFile


logger = logging.getLogger(__name__)

Lines = Tuple[str, ...]
CleaningRule = Callable[[Lines], Optional[Lines]]


# Examples: "<i>", "</i>", "<font color=\"#ffff00\">"; a bare "<3" is left alone
_ANGLE_TAG_RE = re.compile(r"</?[A-Za-z][^<>]*>")
# ASS/SSA overrides that leak into SRT: "{\an8}", "{\pos(10,20)}", "{i}"
_BRACE_TAG_RE = re.compile(r"\{[^{}]*\}")

_URL_RE = re.compile(
    r"(?i)(?:https?://\S+|www\.\S+|\b[\w-]+(?:\.[\w-]+)*\.(?:com|org|net|tv|info|io|ru|co|me)\b\S*)"
)

_CREDITS_RE = re.compile(
    r"(?i)^\W*(?:"
    r"(?:subtitles?|subtitled|subs|captions?|captioned|synced|sync|synchronized|"
    r"resync(?:ed)?|corrected|corrections|translated|translation|transcript|"
    r"transcribed|ripped|encoded|timing|edited)"
    r"(?:\s+(?:and|&)\s+\w+)?\s+by"
    r"|downloaded\s+from"
    r")"
    # followed by a short name, not the rest of a sentence
    r"\s+[^\s,?]+(?:\s+[^\s,?]+){0,2}\W*$"
)

# Only as a domain: "opensubtitles.org", not "did you check opensubtitles?"
_SUBTITLE_SITES_RE = re.compile(
    r"(?i)\b(?:opensubtitles|addic7ed|subscene|podnapisi|yifysubtitles|tvsubtitles|subtitulos)"
    r"\.(?:com|org|net|info|tv|si|ro)\b"
)


def _has_alpha(text: str) -> bool:
    return any(ch.isalpha() for ch in text)


def strip_markup(line: str) -> str:
    """Remove inline formatting tags without touching the text around them."""
    # Examples: "<i>Hello</i>" → "Hello", "{\an8}Up here" → "Up here"
    # Repeat until stable so that "<<i>b>" cannot leave a new tag behind
    prev = None
    s = line
    while prev != s:
        prev = s
        s = _ANGLE_TAG_RE.sub("", s)
        s = _BRACE_TAG_RE.sub("", s)
    return s.strip()


def is_credits_line(line: str) -> bool:
    """Return True for lines that look like uploader tags, URLs or credits.

    Examples that match: "www.addic7ed.com", "-- ♪ --", "Subtitles by FanGroup",
    "Synced & corrected by someone", "Downloaded from OpenSubtitles".
    """
    s = line.strip()
    if _CREDITS_RE.search(s) or _SUBTITLE_SITES_RE.search(s):
        return True
    # Whatever is left once URLs are gone must contain letters to be dialog
    return not _has_alpha(_URL_RE.sub(" ", s))


def collapse_whitespace(line: str) -> str:
    """Collapse runs of whitespace into single spaces and trim."""
    # Examples: "Hello   world  " → "Hello world", "\tHi\t there" → "Hi there"
    return re.sub(r"\s+", " ", line).strip()


def _drop_empty(lines: Lines) -> Optional[Lines]:
    if not any(line.strip() for line in lines):
        return None
    return lines


def _strip_markup(lines: Lines) -> Optional[Lines]:
    stripped = tuple(s for s in (strip_markup(line) for line in lines) if s)
    return stripped or None


def _drop_credits(lines: Lines) -> Optional[Lines]:
    if len(lines) == 1 and is_credits_line(lines[0]):
        return None
    return lines


def _collapse_whitespace(lines: Lines) -> Optional[Lines]:
    collapsed = tuple(s for s in (collapse_whitespace(line) for line in lines) if s)
    return collapsed or None


CLEANING_RULES: List[Tuple[str, CleaningRule]] = [
    ("empty", _drop_empty),
    ("markup", _strip_markup),
    ("credits", _drop_credits),
    ("whitespace", _collapse_whitespace),
]


def clean_cue(cue: Cue, removed: Optional[Dict[str, int]] = None) -> Optional[Cue]:
    """Apply every cleaning rule to one cue.

    Args:
        cue: Cue to clean
        removed: Optional per-rule removal counter, updated in place

    Returns:
        The cleaned cue (same timing), or None if a rule dropped it
    """
    lines: Lines = cue.lines
    for name, rule in CLEANING_RULES:
        result = rule(lines)
        if result is None:
            if removed is not None:
                removed[name] = removed.get(name, 0) + 1
            return None
        lines = result
    return cue if lines == cue.lines else cue.with_lines(lines)


def clean_subtitle_file(
    subtitle: SubtitleFile,
    metadata: Optional[Dict[str, Any]] = None,
) -> SubtitleFile:
    """Remove non-dialog content from a subtitle file.

    Args:
        subtitle: Parsed subtitle file
        metadata: Optional metadata dict; per-rule removal counts are stored
            under ``metadata["cleaning"]``

    Returns:
        A new SubtitleFile; cue order and timing are unchanged
    """
    removed: Dict[str, int] = {name: 0 for name, _ in CLEANING_RULES}
    cleaned: List[Cue] = []
    for cue in subtitle.cues:
        result = clean_cue(cue, removed)
        if result is not None:
            cleaned.append(result)

    for name, count in removed.items():
        if count:
            logger.debug("Rule %r removed %d cue(s)", name, count)
    logger.info(
        "Cleaned %s: kept %d of %d cues",
        subtitle.source_file or "subtitles",
        len(cleaned),
        len(subtitle.cues),
    )

    if metadata is not None:
        metadata["cleaning"] = {
            "cues_before": len(subtitle.cues),
            "cues_after": len(cleaned),
            "removed_by_rule": removed,
        }

    return SubtitleFile(cleaned, source_file=subtitle.source_file)
