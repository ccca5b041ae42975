"""Subtitle parsers for common formats (SRT, VTT, ASS) producing SubtitleFiles.

SRT is parsed by hand because we need exact control over what counts as a
malformed block and where the error is reported. WebVTT and ASS/SSA go
through their libraries and are only ever imported, never emitted.
"""

from __future__ import annotations

import io
import logging
from pathlib import Path
from typing import List, Optional, Tuple, Union

import pysubs2
import webvtt

from ..analysis.cleaning import clean_subtitle_file
from ..errors import MalformedCue, MalformedTimestamp
from ..util.time import Time
from ..util.types import Cue, SubtitleFile
from .decode import decode_subtitle_bytes


logger = logging.getLogger(__name__)

ARROW = "-->"


def _split_blocks(text: str) -> List[List[str]]:
	"""Split SRT text into blocks of trimmed, non-blank lines.

	Any run of blank or whitespace-only lines separates two blocks.
	"""
	blocks: List[List[str]] = []
	current: List[str] = []
	for raw in text.split("\n"):
		line = raw.strip()
		if line:
			current.append(line)
		elif current:
			blocks.append(current)
			current = []
	if current:
		blocks.append(current)
	return blocks


def _parse_timing_line(line: str, position: int) -> Tuple[Time, Time]:
	"""Parse ``start --> end``; anything after the end token (positions) is ignored."""
	if ARROW not in line:
		raise MalformedCue(position, f"expected '{ARROW}' in timing line {line!r}")
	start_str, rest = line.split(ARROW, 1)
	end_tokens = rest.split()
	try:
		start = Time.parse(start_str)
		end = Time.parse(end_tokens[0] if end_tokens else "")
	except MalformedTimestamp as exc:
		raise MalformedCue(position, str(exc)) from exc
	return start, end


def _parse_block(lines: List[str], position: int) -> Cue:
	"""Turn one block into a Cue. The index line, if any, is not trusted."""
	if ARROW in lines[0]:
		timing_line, text_lines = lines[0], lines[1:]
	elif len(lines) >= 2:
		timing_line, text_lines = lines[1], lines[2:]
	else:
		raise MalformedCue(position, "missing timing line")

	start, end = _parse_timing_line(timing_line, position)
	if not text_lines:
		raise MalformedCue(position, "cue has no text")
	if end < start:
		logger.warning("Cue #%d ends before it starts (%s --> %s); treating as zero-length", position, start, end)
		end = start
	return Cue(start, end, tuple(text_lines))


def parse_srt_text(text: str, source_file: Optional[str] = None) -> SubtitleFile:
	"""Parse SRT text into a SubtitleFile sorted (stably) by start time.

	A malformed final block is dropped, since truncated tails are common;
	a malformed block anywhere else raises ``MalformedCue``.
	"""
	if text.startswith("\ufeff"):
		text = text[1:]
	text = text.replace("\r\n", "\n").replace("\r", "\n")

	blocks = _split_blocks(text)
	cues: List[Cue] = []
	for position, lines in enumerate(blocks, 1):
		try:
			cues.append(_parse_block(lines, position))
		except MalformedCue as exc:
			if position != len(blocks):
				raise
			logger.warning("Ignoring truncated block at end of file: %s", exc)

	cues.sort(key=lambda cue: cue.start)
	return SubtitleFile(cues, source_file=source_file)


def parse_srt_bytes(data: bytes, source_file: Optional[str] = None) -> SubtitleFile:
	"""Decode SRT bytes of unknown encoding and parse them."""
	return parse_srt_text(decode_subtitle_bytes(data), source_file=source_file)


def _text_lines(text: str) -> Tuple[str, ...]:
	return tuple(line.strip() for line in text.splitlines() if line.strip())


def parse_vtt_bytes(data: bytes, source_file: Optional[str] = None) -> SubtitleFile:
	"""Parse WebVTT bytes into a SubtitleFile."""
	text_content = decode_subtitle_bytes(data)
	try:
		vtt = webvtt.from_buffer(io.StringIO(text_content))
	except Exception as exc:
		raise MalformedCue(None, f"invalid WebVTT: {exc}") from exc

	cues: List[Cue] = []
	for position, caption in enumerate(vtt, 1):
		lines = _text_lines("\n".join(caption.lines))
		if not lines:
			continue
		# WebVTT uses HH:MM:SS.mmm
		try:
			start = Time.parse(caption.start.replace(".", ","))
			end = Time.parse(caption.end.replace(".", ","))
		except MalformedTimestamp as exc:
			raise MalformedCue(position, str(exc)) from exc
		cues.append(Cue(start, max(start, end), lines))

	cues.sort(key=lambda cue: cue.start)
	return SubtitleFile(cues, source_file=source_file)


def parse_ass_bytes(data: bytes, source_file: Optional[str] = None) -> SubtitleFile:
	"""Parse ASS/SSA bytes into a SubtitleFile, dropping styling."""
	text_content = decode_subtitle_bytes(data)
	try:
		subs = pysubs2.SSAFile.from_string(text_content)
	except Exception as exc:
		raise MalformedCue(None, f"invalid ASS/SSA: {exc}") from exc

	cues: List[Cue] = []
	for event in subs:
		if event.is_comment:
			continue
		# pysubs2 uses milliseconds; plaintext turns \N into newlines
		lines = _text_lines(event.plaintext)
		if not lines:
			continue
		start = Time(max(0, event.start))
		end = Time(max(0, event.end))
		cues.append(Cue(start, max(start, end), lines))

	cues.sort(key=lambda cue: cue.start)
	return SubtitleFile(cues, source_file=source_file)


def parse_subtitle_bytes(data: bytes, ext: str, source_file: Optional[str] = None) -> SubtitleFile:
	"""Parse subtitle bytes according to ``ext`` ('srt' | 'vtt' | 'ass' | 'ssa').

	Unknown extensions are parsed as SRT.
	"""
	ext = ext.lower().lstrip(".")
	if ext == "vtt":
		return parse_vtt_bytes(data, source_file=source_file)
	if ext in ("ass", "ssa"):
		return parse_ass_bytes(data, source_file=source_file)
	if ext != "srt":
		logger.debug("Unknown subtitle extension %r, parsing as SRT", ext)
	return parse_srt_bytes(data, source_file=source_file)


def load_subtitle_file(path: Union[str, Path], *, clean: bool = True) -> SubtitleFile:
	"""Read a subtitle file from disk, parse it and (by default) clean it."""
	p = Path(path)
	subtitle = parse_subtitle_bytes(p.read_bytes(), p.suffix, source_file=str(p))
	logger.info("Loaded %d cues from %s", len(subtitle), p)
	if clean:
		subtitle = clean_subtitle_file(subtitle)
	return subtitle
