"""OpenAI client construction and response helpers."""

from __future__ import annotations

import logging
from typing import Any, Optional, Tuple

from openai import OpenAI

from .. import config
from ..errors import ServiceError

logger = logging.getLogger(__name__)


def load_openai_client(api_key: Optional[str] = None, timeout: Optional[float] = None) -> Any:
    """
    Build an OpenAI client.

    Args:
        api_key: Explicit key; falls back to ``OPENAI_API_KEY``
        timeout: Request timeout in seconds (default from configuration)

    Raises:
        ServiceError: If no API key is available
    """
    key = api_key or config.openai_api_key()
    if not key:
        raise ServiceError("OPENAI_API_KEY is not set; it is required for transcription and translation")
    return OpenAI(api_key=key, timeout=timeout or config.OPENAI_TIMEOUT_SECONDS)


def clean_json_response(content: str) -> str:
    """
    Strip markdown code fences from an LLM response so it parses as JSON.
    """
    return content.replace("```json", "").replace("```", "").strip()


def extract_chat_completion_text(response: Any) -> Tuple[Optional[str], Optional[str]]:
    """
    Extract text content from an OpenAI Chat Completions response.

    Returns:
        (content, refusal)
    """
    try:
        message = response.choices[0].message
    except (AttributeError, IndexError) as e:
        logger.error(f"Failed to extract content from response: {e}")
        return None, "Invalid response format"

    refusal = getattr(message, "refusal", None)
    if refusal:
        return None, refusal

    content = message.content
    if isinstance(content, list):
        content = "".join(
            part["text"] for part in content if isinstance(part, dict) and "text" in part
        )
    if content:
        return content.strip(), None
    return None, None


def log_usage(response: Any) -> None:
    usage = getattr(response, "usage", None)
    if usage is None:
        return
    logger.debug(
        "Token usage - Prompt: %s, Completion: %s, Total: %s",
        getattr(usage, "prompt_tokens", "?"),
        getattr(usage, "completion_tokens", "?"),
        getattr(usage, "total_tokens", "?"),
    )
