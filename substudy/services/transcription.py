"""Transcription of a video's audio through the OpenAI speech-to-text API."""

from __future__ import annotations

import logging
import tempfile
from pathlib import Path
from typing import Any, Optional, Union

import openai

from .. import config
from ..analysis.cleaning import clean_subtitle_file
from ..errors import MalformedCue, ServiceError
from ..media.probe import extract_audio
from ..parsers.whisper import WhisperJson, import_whisper_json
from ..util.types import SubtitleFile
from .openai_client import load_openai_client

logger = logging.getLogger(__name__)

# Whisper only reads roughly the last 224 tokens of its prompt
MAX_PROMPT_CHARS = 800


def _prompt_from_example(example_text: str) -> Optional[str]:
    """Use the tail of the example text as a vocabulary/style hint."""
    text = " ".join(example_text.split())
    if not text:
        return None
    return text[-MAX_PROMPT_CHARS:]


def _payload(response: Any) -> Any:
    if hasattr(response, "model_dump"):
        return response.model_dump()
    return response


def transcribe_video(
    video: Union[str, Path],
    example_text: str,
    *,
    client: Any = None,
    model: Optional[str] = None,
    audio_stream: Optional[int] = None,
) -> WhisperJson:
    """
    Transcribe a video's audio and return the Whisper ``verbose_json`` result.

    Args:
        video: Path to the video (or audio) file
        example_text: Text similar to what is spoken, passed as a prompt
        client: OpenAI client; built from configuration when omitted
        model: Transcription model (default from configuration)
        audio_stream: ffprobe index of the audio stream to use

    Raises:
        MediaError: If the audio cannot be extracted
        ServiceError: If the API call fails or returns something unusable
    """
    client = client or load_openai_client()
    model = model or config.TRANSCRIPTION_MODEL

    options = {"response_format": "verbose_json"}
    prompt = _prompt_from_example(example_text)
    if prompt:
        options["prompt"] = prompt

    with tempfile.TemporaryDirectory(prefix="substudy-") as tmp:
        audio_path = extract_audio(video, Path(tmp) / "audio.mp3", stream_index=audio_stream)
        logger.info("Transcribing %s with %s", video, model)
        try:
            with open(audio_path, "rb") as audio_file:
                response = client.audio.transcriptions.create(model=model, file=audio_file, **options)
        except openai.OpenAIError as exc:
            raise ServiceError(f"transcription failed: {exc}") from exc

    try:
        return WhisperJson.from_dict(_payload(response))
    except MalformedCue as exc:
        raise ServiceError(f"unexpected transcription response: {exc}") from exc


def transcribe_to_subtitle_file(
    video: Union[str, Path],
    example_text: str,
    **kwargs: Any,
) -> SubtitleFile:
    """Transcribe and convert the result into cleaned subtitles."""
    whisper = transcribe_video(video, example_text, **kwargs)
    return clean_subtitle_file(import_whisper_json(whisper))
