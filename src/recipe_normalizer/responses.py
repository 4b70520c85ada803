"""Tagged model-response variants and conversions into them.

The normalizer accepts exactly two shapes of input:

- ``StructuredJson``: an already-parsed JSON value, with any raw text that
  came alongside it
- ``PlainText``: the raw text payload of a model response

Provider response bodies (Gemini ``candidates``, OpenAI ``output`` or
``choices``, or a bare ``{"text": ...}``) are unwrapped into one of these
by ``unwrap_envelope``.
"""

from __future__ import annotations

import json
from dataclasses import dataclass
from typing import Any


@dataclass(frozen=True)
class StructuredJson:
    """A parsed JSON value returned by the model."""

    data: Any
    text: str = ""


@dataclass(frozen=True)
class PlainText:
    """Raw text returned by the model."""

    text: str


ModelResponse = StructuredJson | PlainText


def as_model_response(json: Any = None, text: str | None = None) -> ModelResponse:
    """Build the variant for a ``json``/``text`` pair.

    A JSON value that is itself a string is treated as text.

    Args:
        json: Parsed JSON value, if any
        text: Raw text payload, if any

    Returns:
        ``StructuredJson`` when a non-string JSON value is given, else ``PlainText``
    """
    raw_text = text if isinstance(text, str) else ""
    if json is not None and not isinstance(json, str):
        return StructuredJson(json, text=raw_text)
    if isinstance(json, str) and not raw_text:
        raw_text = json
    return PlainText(raw_text)


def _gemini_text(payload: dict[str, Any]) -> str | None:
    candidates = payload.get("candidates")
    if not isinstance(candidates, list) or not candidates:
        return None
    first = candidates[0]
    content = first.get("content") if isinstance(first, dict) else None
    parts = content.get("parts") if isinstance(content, dict) else None
    if not isinstance(parts, list):
        return None
    texts = [
        str(part["text"]) for part in parts if isinstance(part, dict) and part.get("text")
    ]
    return "\n\n".join(texts) if texts else None


def _responses_text(payload: dict[str, Any]) -> str | None:
    output = payload.get("output")
    if not isinstance(output, list) or not output or not isinstance(output[0], dict):
        return None
    content = output[0].get("content")
    if not isinstance(content, list) or not content or not isinstance(content[0], dict):
        return None
    text = content[0].get("text")
    return str(text) if text else None


def _chat_text(payload: dict[str, Any]) -> str | None:
    choices = payload.get("choices")
    if not isinstance(choices, list) or not choices or not isinstance(choices[0], dict):
        return None
    message = choices[0].get("message")
    content = message.get("content") if isinstance(message, dict) else None
    return content if isinstance(content, str) and content else None


def unwrap_envelope(payload: Any) -> ModelResponse:
    """Convert a provider response body into a model-response variant.

    Args:
        payload: Decoded response body, or the raw text when it was not JSON

    Returns:
        ``PlainText`` holding the model's text when the body is a known
        envelope, otherwise ``StructuredJson`` wrapping the body itself

    Example:
        >>> unwrap_envelope({"candidates": [{"content": {"parts": [{"text": "Soup"}]}}]})
        PlainText(text='Soup')
    """
    if isinstance(payload, str):
        return PlainText(payload)
    if isinstance(payload, dict):
        if isinstance(payload.get("text"), str):
            return PlainText(payload["text"])
        for unwrap in (_gemini_text, _responses_text, _chat_text):
            text = unwrap(payload)
            if text is not None:
                return PlainText(text)
    if payload is None:
        return PlainText("")
    return StructuredJson(payload)


def read_model_output(raw: str) -> ModelResponse:
    """Interpret saved model output, such as a file passed to the CLI.

    Text that decodes as JSON is unwrapped as an envelope; anything else is
    plain text.
    """
    try:
        decoded = json.loads(raw)
    except ValueError:
        return PlainText(raw)
    response = unwrap_envelope(decoded)
    if isinstance(response, StructuredJson):
        return StructuredJson(response.data, text=raw)
    return response
