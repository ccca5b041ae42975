"""Project-level configuration read from the environment.

Values can be set in the environment or in a ``.env`` file in the working
directory:
- SUBSTUDY_LOG_LEVEL: logging level for messages on stderr (default WARNING)
- OPENAI_API_KEY: key for the transcription/translation service
- SUBSTUDY_TRANSCRIPTION_MODEL / SUBSTUDY_TRANSLATION_MODEL: model names
- SUBSTUDY_TRANSLATION_BATCH_SIZE: cues sent per translation request
- SUBSTUDY_FFMPEG / SUBSTUDY_FFPROBE: paths to the ffmpeg binaries
- SUBSTUDY_MEDIA_TIMEOUT / SUBSTUDY_OPENAI_TIMEOUT: timeouts in seconds
"""

import os
from typing import Final, Optional

from dotenv import load_dotenv

load_dotenv()


def _int_env(name: str, default: int) -> int:
	raw = os.getenv(name)
	if raw is None or not raw.strip():
		return default
	try:
		return int(raw)
	except ValueError:
		raise ValueError(f"{name} must be an integer, got {raw!r}") from None


def openai_api_key() -> Optional[str]:
	"""Return the OpenAI API key, if one is configured (read on every call)."""
	return os.getenv("OPENAI_API_KEY") or None


LOG_LEVEL: Final[str] = os.getenv("SUBSTUDY_LOG_LEVEL", "WARNING").upper()
TRANSCRIPTION_MODEL: Final[str] = os.getenv("SUBSTUDY_TRANSCRIPTION_MODEL", "whisper-1")
TRANSLATION_MODEL: Final[str] = os.getenv("SUBSTUDY_TRANSLATION_MODEL", "gpt-4o-mini")
TRANSLATION_BATCH_SIZE: Final[int] = _int_env("SUBSTUDY_TRANSLATION_BATCH_SIZE", 40)
FFMPEG_BIN: Final[str] = os.getenv("SUBSTUDY_FFMPEG", "ffmpeg")
FFPROBE_BIN: Final[str] = os.getenv("SUBSTUDY_FFPROBE", "ffprobe")
MEDIA_TIMEOUT_SECONDS: Final[int] = _int_env("SUBSTUDY_MEDIA_TIMEOUT", 600)
OPENAI_TIMEOUT_SECONDS: Final[int] = _int_env("SUBSTUDY_OPENAI_TIMEOUT", 120)
