"""Clients for the remote transcription and translation service."""

from .transcription import (
    transcribe_video,
    transcribe_to_subtitle_file,
)

from .translation import (
    translate_subtitle_file,
)

__all__ = [
    "transcribe_video",
    "transcribe_to_subtitle_file",
    "translate_subtitle_file",
]
