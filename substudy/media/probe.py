"""ffprobe/ffmpeg wrappers: stream listing and audio extraction.

The subtitle core never calls into this module; it serves the ``list tracks``
and ``transcribe`` commands.
"""

from __future__ import annotations

import json
import logging
import subprocess
from dataclasses import dataclass
from enum import Enum
from pathlib import Path
from typing import List, Optional, Sequence, Union

from babelfish import Language  # type: ignore

from .. import config
from ..errors import MediaError
from ..util.lang import language_from_tag


logger = logging.getLogger(__name__)


class CodecKind(str, Enum):
	AUDIO = "audio"
	VIDEO = "video"
	SUBTITLE = "subtitle"
	OTHER = "other"

	@classmethod
	def from_codec_type(cls, codec_type: Optional[str]) -> "CodecKind":
		try:
			return cls((codec_type or "").lower())
		except ValueError:
			return cls.OTHER


@dataclass(frozen=True)
class StreamInfo:
	index: int
	kind: CodecKind
	language: Optional[Language] = None
	codec_name: Optional[str] = None

	@property
	def language_code(self) -> str:
		"""ISO 639-3 code, or '??' when the container does not say."""
		return self.language.alpha3 if self.language is not None else "??"


def _run(cmd: Sequence[str]) -> subprocess.CompletedProcess:
	"""Run an ffmpeg-family command, turning every failure into MediaError."""
	logger.debug("Running %s", " ".join(cmd))
	try:
		return subprocess.run(
			list(cmd),
			check=True,
			stdout=subprocess.PIPE,
			stderr=subprocess.PIPE,
			text=True,
			timeout=config.MEDIA_TIMEOUT_SECONDS,
		)
	except FileNotFoundError as exc:
		raise MediaError(f"{cmd[0]} not found; is ffmpeg installed?") from exc
	except subprocess.TimeoutExpired as exc:
		raise MediaError(f"{cmd[0]} timed out after {exc.timeout} seconds") from exc
	except subprocess.CalledProcessError as exc:
		detail = (exc.stderr or "").strip().splitlines()
		raise MediaError(f"{cmd[0]} failed: {detail[-1] if detail else f'exit status {exc.returncode}'}") from exc


def list_streams(path: Union[str, Path]) -> List[StreamInfo]:
	"""List the streams of a media file in container order."""
	result = _run([
		config.FFPROBE_BIN,
		"-v",
		"error",
		"-show_streams",
		"-of",
		"json",
		str(path),
	])
	try:
		payload = json.loads(result.stdout or "{}")
	except json.JSONDecodeError as exc:
		raise MediaError(f"could not read ffprobe output for {path}") from exc

	streams: List[StreamInfo] = []
	for raw in payload.get("streams") or []:
		if not isinstance(raw, dict) or not isinstance(raw.get("index"), int):
			continue
		tags = raw.get("tags") or {}
		streams.append(StreamInfo(
			index=raw["index"],
			kind=CodecKind.from_codec_type(raw.get("codec_type")),
			language=language_from_tag(tags.get("language")),
			codec_name=raw.get("codec_name"),
		))
	return streams


def extract_audio(
	video: Union[str, Path],
	output: Union[str, Path],
	*,
	stream_index: Optional[int] = None,
) -> Path:
	"""Write one audio stream of ``video`` as mono 16 kHz MP3, suitable for speech models.

	By default the first audio stream is used.
	"""
	out = Path(output)
	stream = f"0:{stream_index}" if stream_index is not None else "0:a:0"
	_run([
		config.FFMPEG_BIN,
		"-y",
		"-v",
		"error",
		"-i",
		str(video),
		"-map",
		stream,
		"-vn",
		"-ac",
		"1",
		"-ar",
		"16000",
		"-b:a",
		"64k",
		str(out),
	])
	return out
