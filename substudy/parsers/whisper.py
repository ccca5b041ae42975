"""Import of Whisper ``verbose_json`` transcripts.

Both the OpenAI transcription endpoint and local Whisper tools emit a JSON
document with a ``segments`` list, each segment carrying float ``start`` and
``end`` seconds and its ``text``. Only those fields are used here.
"""

from __future__ import annotations

import json
import logging
import math
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Optional, Union

from ..errors import MalformedCue
from ..util.time import Time
from ..util.types import Cue, SubtitleFile
from .decode import decode_subtitle_bytes


logger = logging.getLogger(__name__)


@dataclass
class WhisperSegment:
	start: float
	end: float
	text: str


@dataclass
class WhisperJson:
	segments: List[WhisperSegment] = field(default_factory=list)
	text: str = ""
	language: Optional[str] = None

	@classmethod
	def from_dict(cls, payload: Any) -> "WhisperJson":
		"""Validate a decoded JSON payload."""
		if not isinstance(payload, dict):
			raise MalformedCue(None, "Whisper JSON must be an object")
		raw_segments = payload.get("segments")
		if not isinstance(raw_segments, list):
			raise MalformedCue(None, "Whisper JSON has no 'segments' list")

		segments: List[WhisperSegment] = []
		for position, raw in enumerate(raw_segments, 1):
			if not isinstance(raw, dict):
				raise MalformedCue(position, "segment is not an object")
			start, end, text = raw.get("start"), raw.get("end"), raw.get("text")
			if not _is_number(start) or not _is_number(end):
				raise MalformedCue(position, "segment needs numeric 'start' and 'end'")
			if not isinstance(text, str):
				raise MalformedCue(position, "segment needs a 'text' string")
			segments.append(WhisperSegment(float(start), float(end), text))

		language = payload.get("language")
		return cls(
			segments=segments,
			text=payload.get("text") or "",
			language=language if isinstance(language, str) else None,
		)

	@classmethod
	def from_bytes(cls, data: bytes) -> "WhisperJson":
		try:
			payload = json.loads(decode_subtitle_bytes(data))
		except json.JSONDecodeError as exc:
			raise MalformedCue(None, f"invalid Whisper JSON: {exc}") from exc
		return cls.from_dict(payload)

	@classmethod
	def from_path(cls, path: Union[str, Path]) -> "WhisperJson":
		return cls.from_bytes(Path(path).read_bytes())

	def to_dict(self) -> Dict[str, Any]:
		return {
			"text": self.text,
			"language": self.language,
			"segments": [
				{"id": i, "start": s.start, "end": s.end, "text": s.text}
				for i, s in enumerate(self.segments)
			],
		}


def _is_number(value: Any) -> bool:
	# json.loads accepts NaN and Infinity
	return isinstance(value, (int, float)) and not isinstance(value, bool) and math.isfinite(value)


def import_whisper_json(whisper: WhisperJson) -> SubtitleFile:
	"""Convert Whisper segments to cues, one cue per non-blank segment."""
	cues: List[Cue] = []
	for segment in whisper.segments:
		lines = tuple(line.strip() for line in segment.text.splitlines() if line.strip())
		if not lines:
			continue
		start = Time.from_seconds(segment.start)
		end = Time.from_seconds(segment.end)
		cues.append(Cue(start, max(start, end), lines))

	skipped = len(whisper.segments) - len(cues)
	if skipped:
		logger.debug("Skipped %d blank Whisper segment(s)", skipped)
	cues.sort(key=lambda cue: cue.start)
	return SubtitleFile(cues)
