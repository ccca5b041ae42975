"""Exception types raised by substudy.

Every failure the package reports deliberately derives from ``SubstudyError``
so the CLI can turn it into a one-line message and a non-zero exit status.
None of these are retried: they describe bad input, not transient trouble.
"""

from __future__ import annotations

from typing import Optional


class SubstudyError(Exception):
    """Base class for all substudy errors."""


class UndecodableFile(SubstudyError):
    """No candidate text encoding could decode the subtitle bytes."""

    def __init__(self, tried: list[str]):
        self.tried = list(tried)
        super().__init__(
            "could not decode subtitle file (tried: {})".format(", ".join(self.tried))
        )


class MalformedTimestamp(SubstudyError, ValueError):
    """A timestamp did not match ``HH:MM:SS,mmm`` or had a field out of range."""

    def __init__(self, text: str, reason: str = "expected HH:MM:SS,mmm"):
        self.text = text
        super().__init__(f"malformed timestamp {text!r}: {reason}")


class MalformedCue(SubstudyError):
    """A cue block was structurally invalid.

    ``position`` is the 1-based block number in the source file (or the
    segment number for imported formats).
    """

    def __init__(self, position: Optional[int], reason: str):
        self.position = position
        self.reason = reason
        if position is None:
            super().__init__(f"malformed cue: {reason}")
        else:
            super().__init__(f"malformed cue #{position}: {reason}")


class InvalidLanguageCode(SubstudyError):
    """Unrecognized ISO 639 language code."""

    def __init__(self, code: str):
        self.code = code
        super().__init__(f"unknown language code: {code!r}")


class MediaError(SubstudyError):
    """ffprobe/ffmpeg failed or could not be run."""


class ServiceError(SubstudyError):
    """The remote transcription/translation service failed or replied badly."""
