"""Translation of subtitle files through an OpenAI chat model.

Cues are sent in batches as JSON objects ``{"id": n, "lines": [...]}``; the
model must answer with the same ids. Timing is never sent and never changes:
each translated cue keeps the start and end of its source cue.
"""

from __future__ import annotations

import json
import logging
from typing import Any, Dict, List, Optional, Sequence, Tuple

import openai
from babelfish import Language  # type: ignore

from .. import config
from ..errors import ServiceError
from ..util.lang import language_name
from ..util.types import Cue, SubtitleFile
from .openai_client import (
    clean_json_response,
    extract_chat_completion_text,
    load_openai_client,
    log_usage,
)

logger = logging.getLogger(__name__)

SYSTEM_PROMPT = (
    "You translate film and TV subtitles for language learners. "
    "Translate each cue into {language}, keeping the meaning close to the original "
    "so a learner can compare the two. Keep each cue separate and do not merge or "
    "split cues. Reply with a JSON object of the form "
    '{{"translations": [{{"id": <id>, "lines": ["<line>", ...]}}, ...]}} '
    "containing every id you were given."
)


def _batches(cues: Sequence[Cue], size: int) -> List[List[Tuple[int, Cue]]]:
    numbered = list(enumerate(cues))
    return [numbered[i:i + size] for i in range(0, len(numbered), size)]


def _parse_translations(content: str, expected_ids: Sequence[int]) -> Dict[int, Tuple[str, ...]]:
    """Validate the model's JSON reply and map cue id to translated lines."""
    try:
        payload = json.loads(clean_json_response(content))
    except json.JSONDecodeError as exc:
        raise ServiceError(f"translation reply is not valid JSON: {exc}") from exc

    items = payload.get("translations") if isinstance(payload, dict) else None
    if not isinstance(items, list):
        raise ServiceError("translation reply has no 'translations' list")

    translated: Dict[int, Tuple[str, ...]] = {}
    for item in items:
        if not isinstance(item, dict) or not isinstance(item.get("id"), int):
            raise ServiceError(f"malformed translation entry: {item!r}")
        lines = item.get("lines")
        if isinstance(lines, str):
            lines = lines.splitlines()
        if not isinstance(lines, list):
            raise ServiceError(f"translation for cue {item['id']} has no lines")
        cleaned = tuple(str(line).strip() for line in lines if str(line).strip())
        if not cleaned:
            raise ServiceError(f"translation for cue {item['id']} is empty")
        translated[item["id"]] = cleaned

    unexpected = sorted(set(translated) - set(expected_ids))
    if unexpected:
        raise ServiceError(f"translation reply has unknown cue ids {unexpected}")
    missing = [i for i in expected_ids if i not in translated]
    if missing:
        raise ServiceError(f"translation reply is missing cue ids {missing}")
    return translated


def _translate_batch(
    client: Any,
    model: str,
    batch: List[Tuple[int, Cue]],
    target: str,
) -> Dict[int, Tuple[str, ...]]:
    request = {"cues": [{"id": i, "lines": list(cue.lines)} for i, cue in batch]}
    try:
        response = client.chat.completions.create(
            model=model,
            messages=[
                {"role": "system", "content": SYSTEM_PROMPT.format(language=target)},
                {"role": "user", "content": json.dumps(request, ensure_ascii=False)},
            ],
            response_format={"type": "json_object"},
            temperature=0.2,
        )
    except openai.OpenAIError as exc:
        raise ServiceError(f"translation request failed: {exc}") from exc

    log_usage(response)
    content, refusal = extract_chat_completion_text(response)
    if refusal:
        raise ServiceError(f"translation refused: {refusal}")
    if not content:
        raise ServiceError("translation reply was empty")
    return _parse_translations(content, [i for i, _ in batch])


def translate_subtitle_file(
    subtitle: SubtitleFile,
    native_lang: Language,
    *,
    client: Any = None,
    model: Optional[str] = None,
    batch_size: Optional[int] = None,
) -> SubtitleFile:
    """
    Translate every cue of ``subtitle`` into ``native_lang``.

    Args:
        subtitle: Cleaned foreign-language subtitles
        native_lang: Target language
        client: OpenAI client; built from configuration when omitted
        model: Chat model (default from configuration)
        batch_size: Cues per request (default from configuration)

    Returns:
        A SubtitleFile with the same timing and translated lines

    Raises:
        ServiceError: If a request fails or a reply cannot be matched to its cues
    """
    if not subtitle.cues:
        return SubtitleFile([], source_file=subtitle.source_file)

    client = client or load_openai_client()
    model = model or config.TRANSLATION_MODEL
    size = max(1, batch_size or config.TRANSLATION_BATCH_SIZE)
    target = language_name(native_lang)

    translated: Dict[int, Tuple[str, ...]] = {}
    batches = _batches(subtitle.cues, size)
    for n, batch in enumerate(batches, 1):
        logger.info("Translating batch %d/%d (%d cues) into %s", n, len(batches), len(batch), target)
        translated.update(_translate_batch(client, model, batch, target))

    cues = [cue.with_lines(translated[i]) for i, cue in enumerate(subtitle.cues)]
    return SubtitleFile(cues, source_file=subtitle.source_file)
