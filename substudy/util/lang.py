"""ISO 639 language codes, backed by Babelfish."""

from __future__ import annotations

from typing import Optional

from babelfish import Error as BabelfishError  # type: ignore
from babelfish import Language  # type: ignore

from ..errors import InvalidLanguageCode


def parse_language(code: str) -> Language:
    """Convert common language codes (e.g., 'en', 'pt-BR', 'eng') to a Babelfish Language.

    Raises:
        InvalidLanguageCode: if the code is not a known ISO 639 language
    """
    cleaned = (code or "").strip()
    if not cleaned:
        raise InvalidLanguageCode(code)
    try:
        return Language.fromietf(cleaned)
    except (ValueError, BabelfishError):
        pass
    try:
        # ISO 639-3 codes that have no IETF form, e.g. 'yue'
        return Language(cleaned.lower())
    except (ValueError, BabelfishError):
        pass
    try:
        # ISO 639-2/B codes, common in video containers: 'fre', 'ger', 'chi'
        return Language.fromalpha3b(cleaned.lower())
    except (ValueError, BabelfishError) as exc:
        raise InvalidLanguageCode(code) from exc


def language_from_tag(tag: Optional[str]) -> Optional[Language]:
    """Lenient variant for container metadata: 'und', blanks and junk become None."""
    if not tag or tag.strip().lower() in ("und", "unk", "mis", "zxx", "mul"):
        return None
    try:
        return parse_language(tag)
    except InvalidLanguageCode:
        return None


def language_name(language: Language) -> str:
    """English name of the language, for prompts and display."""
    return language.name
