"""Normalize provider completion responses into one canonical form.

Two provider shapes are recognised:

- OpenAI-style: ``{"choices": [{"message": {"content": ..., "tool_calls": [...]}}]}``
- Anthropic-style: ``{"content": [{"type": "text", ...}, {"type": "tool_use", ...}]}``

Anything else parses as ``UnknownShape`` and normalizes to an empty response.
``normalize_response`` never raises.
"""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass
from typing import Any, Union

from .models import NormalizedResponse, ToolCall

logger = logging.getLogger(__name__)


@dataclass
class OpenAIShape:
    """``choices[0].message`` of a chat-completions response."""

    message: dict


@dataclass
class AnthropicShape:
    """Typed content blocks of a messages-API response."""

    blocks: list


@dataclass
class UnknownShape:
    raw: Any


ResponseShape = Union[OpenAIShape, AnthropicShape, UnknownShape]


def detect_shape(raw: Any) -> ResponseShape:
    """Classify a raw provider response."""
    if not isinstance(raw, dict):
        return UnknownShape(raw)

    choices = raw.get("choices")
    if isinstance(choices, list) and choices:
        first = choices[0]
        if isinstance(first, dict) and isinstance(first.get("message"), dict):
            return OpenAIShape(first["message"])

    blocks = raw.get("content")
    if isinstance(blocks, list):
        return AnthropicShape(blocks)

    return UnknownShape(raw)


def _arguments_to_text(arguments: Any) -> str:
    if arguments is None:
        return "{}"
    if isinstance(arguments, str):
        return arguments
    try:
        return json.dumps(arguments, ensure_ascii=False)
    except (TypeError, ValueError):
        return "{}"


def _openai_tool_call(entry: Any) -> ToolCall | None:
    """Accept both the nested ``function`` form and the flat canonical form."""
    if not isinstance(entry, dict):
        return None
    call_id = entry.get("id")
    function = entry.get("function")
    if isinstance(function, dict):
        name = function.get("name")
        arguments = function.get("arguments")
    else:
        name = entry.get("tool_name") or entry.get("name")
        arguments = entry.get("arguments_text", entry.get("arguments"))
    if not isinstance(name, str) or not name:
        return None
    return ToolCall(
        id=str(call_id) if call_id is not None else "",
        tool_name=name,
        arguments_text=_arguments_to_text(arguments),
    )


def _normalize_openai(shape: OpenAIShape) -> NormalizedResponse:
    content = shape.message.get("content")
    if not isinstance(content, str):
        content = None
    raw_calls = shape.message.get("tool_calls") or []
    if not isinstance(raw_calls, list):
        raw_calls = []
    tool_calls = [tc for tc in (_openai_tool_call(e) for e in raw_calls) if tc is not None]
    return NormalizedResponse(content=content, tool_calls=tool_calls)


def _normalize_anthropic(shape: AnthropicShape) -> NormalizedResponse:
    text = ""
    tool_calls: list[ToolCall] = []
    for block in shape.blocks:
        if not isinstance(block, dict):
            continue
        block_type = block.get("type")
        if block_type == "text" and isinstance(block.get("text"), str):
            text += block["text"]
        elif block_type == "tool_use" and isinstance(block.get("name"), str):
            block_id = block.get("id")
            tool_calls.append(ToolCall(
                id=str(block_id) if block_id is not None else "",
                tool_name=block["name"],
                arguments_text=_arguments_to_text(block.get("input")),
            ))
    return NormalizedResponse(content=text or None, tool_calls=tool_calls)


def normalize_response(raw: Any) -> NormalizedResponse:
    """Convert a raw provider response to ``NormalizedResponse``."""
    shape = detect_shape(raw)
    if isinstance(shape, OpenAIShape):
        return _normalize_openai(shape)
    if isinstance(shape, AnthropicShape):
        return _normalize_anthropic(shape)
    if isinstance(shape, UnknownShape):
        logger.debug("Unrecognised response shape: %r", type(raw).__name__)
        return NormalizedResponse()
    raise AssertionError(f"Unhandled response shape: {shape!r}")
