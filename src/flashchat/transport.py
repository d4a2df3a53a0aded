"""Completion transports for the supported LLM providers.

A transport takes the canonical transcript plus the tool catalog, converts
them to the provider's wire format, and returns the provider's raw response
as a plain dict. Normalization happens later in ``flashchat.normalize``.
"""

from __future__ import annotations

import json
import logging
from typing import Any, Protocol

import anthropic
import openai
from anthropic import AsyncAnthropic
from openai import AsyncOpenAI

from .config import Config, get_api_key
from .models import Message

logger = logging.getLogger(__name__)

OPENROUTER_BASE_URL = "https://openrouter.ai/api/v1"
OLLAMA_BASE_URL = "http://localhost:11434/v1"


class TransportError(Exception):
    """The completion request failed (network, auth, provider error)."""
    pass


class Transport(Protocol):
    async def complete(self, messages: list[Message], tools: list[dict] | None = None) -> dict: ...


def _decode_arguments(arguments_text: str) -> dict:
    try:
        decoded = json.loads(arguments_text or "{}")
    except json.JSONDecodeError:
        return {}
    return decoded if isinstance(decoded, dict) else {}


# ---------------------------------------------------------------------------
# Anthropic
# ---------------------------------------------------------------------------

def _flatten_tool_traffic(msg: Message, converted: list[dict]) -> None:
    """Append a tool call or tool result as plain text, merging same-role turns."""
    if msg.role == "tool":
        role = "user"
        text = f"[{msg.tool_name or 'tool'} result] {msg.content or ''}"
    else:
        role = "assistant"
        lines = [msg.content] if msg.content else []
        lines.extend(f"[called {tc.tool_name}({tc.arguments_text})]" for tc in msg.tool_calls)
        text = "\n".join(lines)
    previous = converted[-1] if converted else None
    if previous is not None and previous["role"] == role and isinstance(previous["content"], str):
        previous["content"] = f"{previous['content']}\n{text}" if previous["content"] else text
    else:
        converted.append({"role": role, "content": text})


def to_anthropic_messages(messages: list[Message], with_tools: bool = True) -> tuple[str, list[dict]]:
    """Split out the system prompt and convert the rest to messages-API form.

    Consecutive tool results are grouped into one user message, as the API
    expects all results for an assistant turn together. Without tools the
    API refuses tool_use/tool_result blocks, so that traffic becomes text.
    """
    system_prompt = ""
    converted: list[dict] = []
    for msg in messages:
        if msg.role == "system":
            system_prompt = msg.content or ""
        elif not with_tools and (msg.role == "tool" or (msg.role == "assistant" and msg.tool_calls)):
            _flatten_tool_traffic(msg, converted)
        elif msg.role == "tool":
            block = {
                "type": "tool_result",
                "tool_use_id": msg.tool_call_id or "",
                "content": msg.content or "",
            }
            previous = converted[-1] if converted else None
            if (
                previous is not None
                and previous["role"] == "user"
                and isinstance(previous["content"], list)
                and all(b.get("type") == "tool_result" for b in previous["content"])
            ):
                previous["content"].append(block)
            else:
                converted.append({"role": "user", "content": [block]})
        elif msg.role == "assistant" and msg.tool_calls:
            blocks: list[dict] = []
            if msg.content:
                blocks.append({"type": "text", "text": msg.content})
            for tc in msg.tool_calls:
                blocks.append({
                    "type": "tool_use",
                    "id": tc.id,
                    "name": tc.tool_name,
                    "input": _decode_arguments(tc.arguments_text),
                })
            converted.append({"role": "assistant", "content": blocks})
        else:
            converted.append({"role": msg.role, "content": msg.content or ""})
    return system_prompt, converted


class AnthropicTransport:
    """Anthropic messages API; responses come back as content blocks."""

    def __init__(
        self,
        model: str,
        *,
        api_key: str | None = None,
        base_url: str | None = None,
        max_tokens: int = 4096,
        timeout: float | None = 90.0,
        client: AsyncAnthropic | None = None,
    ):
        self.model = model
        self.max_tokens = max_tokens
        self._client = client or AsyncAnthropic(
            api_key=api_key,
            base_url=base_url or None,
            timeout=timeout,
        )

    async def complete(self, messages: list[Message], tools: list[dict] | None = None) -> dict:
        system_prompt, converted = to_anthropic_messages(messages, with_tools=bool(tools))
        params: dict[str, Any] = {
            "model": self.model,
            "max_tokens": self.max_tokens,
            "messages": converted,
        }
        if system_prompt:
            params["system"] = system_prompt
        if tools:
            params["tools"] = tools
        logger.debug("Anthropic request: %d message(s), %d tool(s)", len(converted), len(tools or []))
        try:
            response = await self._client.messages.create(**params)
        except anthropic.APIError as e:
            raise TransportError(f"Anthropic request failed: {e}") from e
        return response.model_dump()


# ---------------------------------------------------------------------------
# OpenAI-compatible
# ---------------------------------------------------------------------------

def to_openai_messages(messages: list[Message]) -> list[dict]:
    converted: list[dict] = []
    for msg in messages:
        if msg.role == "tool":
            converted.append({
                "role": "tool",
                "tool_call_id": msg.tool_call_id or "",
                "content": msg.content or "",
            })
        elif msg.role == "assistant" and msg.tool_calls:
            converted.append({
                "role": "assistant",
                "content": msg.content,
                "tool_calls": [
                    {
                        "id": tc.id,
                        "type": "function",
                        "function": {"name": tc.tool_name, "arguments": tc.arguments_text or "{}"},
                    }
                    for tc in msg.tool_calls
                ],
            })
        else:
            converted.append({"role": msg.role, "content": msg.content or ""})
    return converted


def to_openai_tools(tools: list[dict]) -> list[dict]:
    return [
        {
            "type": "function",
            "function": {
                "name": t["name"],
                "description": t["description"],
                "parameters": t["input_schema"],
            },
        }
        for t in tools
    ]


class OpenAITransport:
    """Chat-completions API (OpenAI, OpenRouter, Ollama, custom servers)."""

    def __init__(
        self,
        model: str,
        *,
        api_key: str | None = None,
        base_url: str | None = None,
        max_tokens: int = 4096,
        timeout: float | None = 90.0,
        default_headers: dict[str, str] | None = None,
        client: AsyncOpenAI | None = None,
    ):
        self.model = model
        self.max_tokens = max_tokens
        self._client = client or AsyncOpenAI(
            api_key=api_key,
            base_url=base_url or None,
            timeout=timeout,
            default_headers=default_headers,
        )

    async def complete(self, messages: list[Message], tools: list[dict] | None = None) -> dict:
        params: dict[str, Any] = {
            "model": self.model,
            "max_tokens": self.max_tokens,
            "messages": to_openai_messages(messages),
        }
        if tools:
            params["tools"] = to_openai_tools(tools)
        logger.debug("Chat completion request: %d message(s), %d tool(s)", len(messages), len(tools or []))
        try:
            response = await self._client.chat.completions.create(**params)
        except openai.APIError as e:
            raise TransportError(f"LLM request failed: {e}") from e
        return response.model_dump()


def create_transport(config: Config, api_key: str | None = None) -> Transport:
    """Build the transport for the configured provider."""
    provider = config.provider
    api_key = api_key or get_api_key(provider)
    if not config.model:
        raise ValueError("No model configured. Run 'flashchat config --model <name>'.")

    if provider == "anthropic":
        if not api_key:
            raise ValueError(
                "ANTHROPIC_API_KEY environment variable not set. "
                "Get your API key from https://console.anthropic.com/"
            )
        return AnthropicTransport(
            config.model,
            api_key=api_key,
            base_url=config.base_url or None,
            max_tokens=config.max_tokens,
            timeout=config.request_timeout,
        )

    headers = None
    if provider == "openai":
        if not api_key:
            raise ValueError("OPENAI_API_KEY environment variable not set.")
        base_url = config.base_url or None
    elif provider == "openrouter":
        if not api_key:
            raise ValueError("OPENROUTER_API_KEY environment variable not set.")
        base_url = config.base_url or OPENROUTER_BASE_URL
        headers = {"HTTP-Referer": "https://flashmath.app", "X-Title": "FlashMath"}
    elif provider == "ollama":
        api_key = api_key or "ollama"
        base_url = config.base_url or OLLAMA_BASE_URL
    elif provider == "custom":
        if not config.base_url:
            raise ValueError("A base URL is required for the custom provider.")
        api_key = api_key or "not-needed"
        base_url = config.base_url
    else:
        raise ValueError(f"Unknown provider '{provider}'")

    return OpenAITransport(
        config.model,
        api_key=api_key,
        base_url=base_url,
        max_tokens=config.max_tokens,
        timeout=config.request_timeout,
        default_headers=headers,
    )
