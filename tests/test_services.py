import json
from pathlib import Path
from types import SimpleNamespace

import openai
import pytest

from substudy.errors import ServiceError
from substudy.services import transcription, translation
from substudy.services.openai_client import load_openai_client
from substudy.util.lang import parse_language
from substudy.util.time import Time
from substudy.util.types import Cue, SubtitleFile


def _reply(content, refusal=None):
    message = SimpleNamespace(content=content, refusal=refusal)
    return SimpleNamespace(choices=[SimpleNamespace(message=message)], usage=None)


class UppercaseCompletions:
    """Answers each translation request by upper-casing the cue lines."""

    def __init__(self):
        self.calls = []

    def create(self, **kwargs):
        self.calls.append(kwargs)
        request = json.loads(kwargs["messages"][-1]["content"])
        translations = [
            {"id": cue["id"], "lines": [line.upper() for line in cue["lines"]]}
            for cue in request["cues"]
        ]
        return _reply("```json\n" + json.dumps({"translations": translations}) + "\n```")


class CannedCompletions:
    def __init__(self, response):
        self.response = response

    def create(self, **kwargs):
        if isinstance(self.response, Exception):
            raise self.response
        return self.response


def _chat_client(completions):
    return SimpleNamespace(chat=SimpleNamespace(completions=completions))


SPANISH = SubtitleFile([
    Cue(Time(0), Time(1000), ("hola",)),
    Cue(Time(1000), Time(2500), ("¿qué tal?", "bien")),
    Cue(Time(3000), Time(4000), ("adiós",)),
])


def test_translation_keeps_timing_and_batches(monkeypatch) -> None:
    completions = UppercaseCompletions()
    result = translation.translate_subtitle_file(
        SPANISH, parse_language("en"), client=_chat_client(completions), model="test-model", batch_size=2
    )

    assert [(c.start, c.end) for c in result] == [(c.start, c.end) for c in SPANISH]
    assert [c.lines for c in result] == [("HOLA",), ("¿QUÉ TAL?", "BIEN"), ("ADIÓS",)]
    assert len(completions.calls) == 2
    assert completions.calls[0]["model"] == "test-model"
    assert "English" in completions.calls[0]["messages"][0]["content"]


def test_empty_file_needs_no_client(monkeypatch) -> None:
    monkeypatch.delenv("OPENAI_API_KEY", raising=False)
    result = translation.translate_subtitle_file(SubtitleFile([]), parse_language("en"))
    assert result.cues == []


@pytest.mark.parametrize(
    "content",
    [
        "not json at all",
        json.dumps({"answer": []}),
        json.dumps({"translations": [{"id": 0, "lines": ["only one"]}]}),
        json.dumps({"translations": [{"id": 0, "lines": []}, {"id": 1, "lines": ["x"]}, {"id": 2, "lines": ["y"]}]}),
    ],
)
def test_unusable_translation_reply(content) -> None:
    client = _chat_client(CannedCompletions(_reply(content)))
    with pytest.raises(ServiceError):
        translation.translate_subtitle_file(SPANISH, parse_language("en"), client=client)


def test_invented_cue_id_in_later_batch_is_rejected() -> None:
    replies = [
        _reply(json.dumps({"translations": [{"id": 0, "lines": ["hello"]}]})),
        _reply(json.dumps({"translations": [{"id": 1, "lines": ["how are you?"]}, {"id": 0, "lines": ["GARBAGE"]}]})),
        _reply(json.dumps({"translations": [{"id": 2, "lines": ["bye"]}]})),
    ]

    class SequencedCompletions:
        def create(self, **kwargs):
            return replies.pop(0)

    with pytest.raises(ServiceError, match="unknown cue ids"):
        translation.translate_subtitle_file(
            SPANISH, parse_language("en"), client=_chat_client(SequencedCompletions()), batch_size=1
        )


def test_translation_refusal_and_api_error() -> None:
    refused = _chat_client(CannedCompletions(_reply(None, refusal="no")))
    with pytest.raises(ServiceError, match="refused"):
        translation.translate_subtitle_file(SPANISH, parse_language("en"), client=refused)

    failing = _chat_client(CannedCompletions(openai.OpenAIError("boom")))
    with pytest.raises(ServiceError, match="boom"):
        translation.translate_subtitle_file(SPANISH, parse_language("en"), client=failing)


def test_translation_lines_given_as_string() -> None:
    reply = json.dumps({"translations": [
        {"id": 0, "lines": "hello"},
        {"id": 1, "lines": "how are you?\nfine"},
        {"id": 2, "lines": ["bye"]},
    ]})
    client = _chat_client(CannedCompletions(_reply(reply)))
    result = translation.translate_subtitle_file(SPANISH, parse_language("en"), client=client)
    assert result.cues[1].lines == ("how are you?", "fine")


def test_missing_api_key(monkeypatch) -> None:
    monkeypatch.delenv("OPENAI_API_KEY", raising=False)
    with pytest.raises(ServiceError, match="OPENAI_API_KEY"):
        load_openai_client()


class FakeTranscriptions:
    def __init__(self, payload):
        self.payload = payload
        self.calls = []

    def create(self, **kwargs):
        self.calls.append({key: value for key, value in kwargs.items() if key != "file"})
        assert kwargs["file"].read() == b"audio"
        return self.payload


def _fake_extract_audio(video, output, *, stream_index=None):
    Path(output).write_bytes(b"audio")
    return Path(output)


def test_transcribe_video(monkeypatch) -> None:
    monkeypatch.setattr(transcription, "extract_audio", _fake_extract_audio)
    transcriptions = FakeTranscriptions({
        "text": "Hola. www.subs.com",
        "segments": [
            {"start": 0.0, "end": 1.2, "text": " Hola."},
            {"start": 1.2, "end": 2.0, "text": " www.subs.com"},
        ],
    })
    client = SimpleNamespace(audio=SimpleNamespace(transcriptions=transcriptions))

    whisper = transcription.transcribe_video("movie.mkv", "  Hola   amigo ", client=client, model="whisper-test")
    assert [s.text for s in whisper.segments] == [" Hola.", " www.subs.com"]
    assert transcriptions.calls[0] == {
        "model": "whisper-test",
        "response_format": "verbose_json",
        "prompt": "Hola amigo",
    }

    subtitle = transcription.transcribe_to_subtitle_file("movie.mkv", "", client=client)
    assert subtitle.cues == [Cue(Time(0), Time(1200), ("Hola.",))]
    assert "prompt" not in transcriptions.calls[1]


def test_transcription_errors_become_service_errors(monkeypatch) -> None:
    monkeypatch.setattr(transcription, "extract_audio", _fake_extract_audio)

    bad_payload = SimpleNamespace(audio=SimpleNamespace(transcriptions=FakeTranscriptions({"text": "no segments"})))
    with pytest.raises(ServiceError):
        transcription.transcribe_video("movie.mkv", "", client=bad_payload)

    class Failing:
        def create(self, **kwargs):
            raise openai.OpenAIError("quota exceeded")

    failing = SimpleNamespace(audio=SimpleNamespace(transcriptions=Failing()))
    with pytest.raises(ServiceError, match="quota exceeded"):
        transcription.transcribe_video("movie.mkv", "", client=failing)
