"""Decoding of subtitle bytes whose text encoding is unknown.

Subtitle files in the wild are UTF-8 more often than not, but a large share
is still written in legacy single- and multi-byte codepages. We try a short,
ordered list of candidates and accept the first one that decodes strictly.
"""

from __future__ import annotations

import codecs
import logging
from typing import Iterator, List, Optional, Tuple

import chardet  # type: ignore

from ..errors import UndecodableFile


logger = logging.getLogger(__name__)

_BOMS: Tuple[Tuple[bytes, str], ...] = (
	(codecs.BOM_UTF8, "utf-8-sig"),
	(codecs.BOM_UTF16_LE, "utf-16"),
	(codecs.BOM_UTF16_BE, "utf-16"),
)

# Tried in this order after UTF-8 and the detector's guess. Earlier entries
# reject more byte values, so they go first.
FALLBACK_ENCODINGS: Tuple[str, ...] = (
	"cp1252",
	"cp1250",
	"cp1251",
	"shift_jis",
	"gb18030",
)

MIN_DETECTOR_CONFIDENCE = 0.5


def _canonical(name: str) -> Optional[str]:
	try:
		return codecs.lookup(name).name
	except LookupError:
		return None


def _detected_encoding(data: bytes) -> Optional[str]:
	"""Return chardet's guess for ``data`` if it is confident enough."""
	detected = chardet.detect(data)
	encoding = detected.get("encoding")
	confidence = detected.get("confidence") or 0.0
	if encoding and confidence >= MIN_DETECTOR_CONFIDENCE:
		logger.debug("chardet guessed %s (confidence %.2f)", encoding, confidence)
		return encoding
	return None


def _raw_candidates(data: bytes) -> Iterator[str]:
	for bom, codec in _BOMS:
		if data.startswith(bom):
			yield codec
			break
	yield "utf-8"
	# Only reached once the cheap candidates have failed
	detected = _detected_encoding(data)
	if detected:
		yield detected
	yield from FALLBACK_ENCODINGS


def _iter_candidates(data: bytes) -> Iterator[str]:
	# De-duplicate on the codec's canonical name, keeping the first spelling
	seen = set()
	for name in _raw_candidates(data):
		key = _canonical(name)
		if key is None or key in seen:
			continue
		seen.add(key)
		yield name


def candidate_encodings(data: bytes) -> List[str]:
	"""List the encodings ``decode_subtitle_bytes`` may try, in order."""
	return list(_iter_candidates(data))


def decode_subtitle_bytes(data: bytes) -> str:
	"""Decode raw subtitle bytes to text.

	chardet only runs when the BOM codec and strict UTF-8 both fail.

	Raises:
		UndecodableFile: if no candidate encoding decodes ``data`` strictly
	"""
	tried: List[str] = []
	for encoding in _iter_candidates(data):
		tried.append(encoding)
		try:
			text = data.decode(encoding)
		except UnicodeDecodeError:
			continue
		if len(tried) > 1:
			logger.info("Decoded subtitle bytes as %s", encoding)
		return text[1:] if text.startswith("\ufeff") else text
	raise UndecodableFile(tried)
