"""substudy CLI - subtitle tools for students of foreign languages.

Commands:
  - clean: Remove things that don't look like dialog from a subtitle file
  - combine: Combine foreign and native subtitles into one bilingual file
  - import whisper-json / vtt / ass: Convert other formats to SRT
  - list tracks: List the audio, video and subtitle streams of a video
  - transcribe: Transcribe a video's audio with the remote speech model
  - translate: Translate a subtitle file with the remote chat model

Every command prints its result (SRT unless noted) to standard output.
Subtitles are read as SRT unless the extension says .vtt/.ass/.ssa; most
legacy encodings are detected automatically.
"""

from __future__ import annotations

import json
import logging
from contextlib import contextmanager
from enum import Enum
from pathlib import Path
from typing import Iterator

import typer
from rich import print
from rich.console import Console
from rich.markup import escape
from rich.table import Table

from . import config
from .analysis.alignment import combine_files
from .errors import SubstudyError
from .media.probe import list_streams
from .parsers.subtitles import load_subtitle_file, parse_ass_bytes, parse_vtt_bytes
from .parsers.whisper import WhisperJson, import_whisper_json
from .util.lang import parse_language


logger = logging.getLogger(__name__)

app = typer.Typer(add_completion=False, no_args_is_help=True, help="Subtitle tools for students of foreign languages.")
import_app = typer.Typer(no_args_is_help=True, help="Import subtitles from other formats.")
list_app = typer.Typer(no_args_is_help=True, help="List information about a file.")
app.add_typer(import_app, name="import")
app.add_typer(list_app, name="list")

err_console = Console(stderr=True)


class TranscriptionFormat(str, Enum):
	srt = "srt"
	whisper_json = "whisper-json"


@contextmanager
def _reporting_errors() -> Iterator[None]:
	"""Turn expected failures into a one-line message and exit status 1."""
	try:
		yield
	except (SubstudyError, OSError) as exc:
		logger.debug("Command failed", exc_info=True)
		err_console.print(f"[red]error:[/red] {escape(str(exc))}")
		raise typer.Exit(code=1) from exc


def _emit(text: str) -> None:
	# Plain echo: subtitle text may contain [brackets] rich would read as markup
	typer.echo(text, nl=False)


@app.callback()
def main(
	verbose: bool = typer.Option(False, "--verbose", "-v", help="Log progress to stderr"),
) -> None:
	"""Subtitle tools for students of foreign languages."""
	level = logging.DEBUG if verbose else config.LOG_LEVEL
	logging.basicConfig(level=level, format="%(asctime)s %(levelname)s %(name)s: %(message)s")


@app.command(name="clean")
def clean_cmd(
	subs: Path = typer.Argument(..., exists=True, dir_okay=False, help="Subtitle file to clean"),
) -> None:
	"""Clean a subtitle file, removing things that don't look like dialog."""
	with _reporting_errors():
		_emit(load_subtitle_file(subs).to_srt())


@app.command(name="combine")
def combine_cmd(
	foreign_subs: Path = typer.Argument(..., exists=True, dir_okay=False, help="Foreign language subtitles"),
	native_subs: Path = typer.Argument(..., exists=True, dir_okay=False, help="Native language subtitles"),
) -> None:
	"""Combine two subtitle files into a single bilingual subtitle file."""
	with _reporting_errors():
		foreign = load_subtitle_file(foreign_subs)
		native = load_subtitle_file(native_subs)
		_emit(combine_files(foreign, native).to_srt())


@import_app.command(name="whisper-json")
def import_whisper_json_cmd(
	whisper_json: Path = typer.Argument(..., exists=True, dir_okay=False, help="Whisper verbose_json file"),
) -> None:
	"""Import subtitles from a Whisper JSON file."""
	with _reporting_errors():
		_emit(import_whisper_json(WhisperJson.from_path(whisper_json)).to_srt())


@import_app.command(name="vtt")
def import_vtt_cmd(
	vtt: Path = typer.Argument(..., exists=True, dir_okay=False, help="WebVTT file"),
) -> None:
	"""Import subtitles from a WebVTT file."""
	with _reporting_errors():
		_emit(parse_vtt_bytes(vtt.read_bytes(), source_file=str(vtt)).to_srt())


@import_app.command(name="ass")
def import_ass_cmd(
	ass: Path = typer.Argument(..., exists=True, dir_okay=False, help="ASS/SSA file"),
) -> None:
	"""Import subtitles from an ASS/SSA file, dropping styling."""
	with _reporting_errors():
		_emit(parse_ass_bytes(ass.read_bytes(), source_file=str(ass)).to_srt())


@list_app.command(name="tracks")
def list_tracks_cmd(
	video: Path = typer.Argument(..., exists=True, dir_okay=False, help="Path to the video"),
) -> None:
	"""List the various audio and video tracks in a video file."""
	with _reporting_errors():
		streams = list_streams(video)
	table = Table(title=f"Tracks in {escape(video.name)}")
	for col in ["#", "language", "kind", "codec"]:
		table.add_column(col)
	for stream in streams:
		table.add_row(
			f"#{stream.index}",
			stream.language_code,
			stream.kind.value,
			escape(stream.codec_name or ""),
		)
	print(table)


@app.command(name="transcribe")
def transcribe_cmd(
	video: Path = typer.Argument(..., exists=True, dir_okay=False, help="Path to the video"),
	example_text: Path = typer.Option(..., "--example-text", exists=True, dir_okay=False, help="Text related to or similar to the audio"),
	format: TranscriptionFormat = typer.Option(TranscriptionFormat.srt, "--format", help="Output format"),
	audio_stream: int | None = typer.Option(None, "--audio-stream", help="Stream index of the audio track (see 'list tracks')"),
) -> None:
	"""Transcribe subtitles from a video's audio."""
	from .services.transcription import transcribe_video

	with _reporting_errors():
		text = example_text.read_text(encoding="utf-8")
		whisper = transcribe_video(video, text, audio_stream=audio_stream)
		if format == TranscriptionFormat.whisper_json:
			_emit(json.dumps(whisper.to_dict(), indent=2, ensure_ascii=False) + "\n")
		else:
			_emit(import_whisper_json(whisper).to_srt())


@app.command(name="translate")
def translate_cmd(
	foreign_subs: Path = typer.Argument(..., exists=True, dir_okay=False, help="Subtitle file to translate"),
	native_lang: str = typer.Option(..., "--native-lang", help="Target language code, e.g. 'en'"),
) -> None:
	"""Translate subtitles into your native language."""
	from .services.translation import translate_subtitle_file

	with _reporting_errors():
		language = parse_language(native_lang)
		subtitle = load_subtitle_file(foreign_subs)
		_emit(translate_subtitle_file(subtitle, language).to_srt())
