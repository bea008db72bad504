"""OpenAI-compatible model adapter.

Talks to any ``/v1/chat/completions`` server (OpenAI, vLLM, llama.cpp,
LM Studio) via httpx, with a bearer key read from the environment.
"""

from __future__ import annotations

import logging
import os
from typing import Any

import httpx

from contracts.api import Message, Role, ToolCall, ToolCallFunction
from contracts.model import ModelAdapter

logger = logging.getLogger(__name__)


class OpenAICompatAdapter(ModelAdapter):
    """Async adapter for OpenAI-style chat completion endpoints."""

    def __init__(
        self,
        base_url: str = "https://api.openai.com",
        api_key: str | None = None,
        api_key_env: str = "OPENAI_API_KEY",
        timeout: float = 120.0,
    ) -> None:
        self._base_url = base_url.rstrip("/")
        self._api_key = api_key if api_key is not None else os.environ.get(api_key_env, "")
        self._timeout = timeout

    async def chat(
        self,
        messages: list[Message],
        model: str,
        tools: list[dict[str, Any]] | None = None,
    ) -> Message:
        payload: dict[str, Any] = {
            "model": model,
            "messages": [self._to_openai(m) for m in messages],
        }
        if tools:
            payload["tools"] = tools
            payload["tool_choice"] = "auto"

        headers = {}
        if self._api_key:
            headers["Authorization"] = f"Bearer {self._api_key}"

        logger.debug("POST %s/v1/chat/completions model=%s tools=%d", self._base_url, model, len(tools or []))
        async with httpx.AsyncClient(timeout=self._timeout) as client:
            resp = await client.post(
                f"{self._base_url}/v1/chat/completions", json=payload, headers=headers
            )
            resp.raise_for_status()

        return self._from_openai_response(resp.json())

    # ── format helpers ───────────────────────────────────────────────

    @staticmethod
    def _to_openai(msg: Message) -> dict[str, Any]:
        m: dict[str, Any] = {"role": msg.role.value, "content": msg.content}
        if msg.tool_calls:
            m["tool_calls"] = [tc.model_dump() for tc in msg.tool_calls]
        if msg.tool_call_id is not None:
            m["tool_call_id"] = msg.tool_call_id
        return m

    @staticmethod
    def _from_openai_response(data: dict[str, Any]) -> Message:
        choices = data.get("choices") or [{}]
        msg_data = choices[0].get("message", {})
        tool_calls: list[ToolCall] | None = None

        raw_calls = msg_data.get("tool_calls")
        if raw_calls:
            tool_calls = [
                ToolCall(
                    id=tc.get("id", f"call_{i}"),
                    type=tc.get("type", "function"),
                    function=ToolCallFunction(
                        name=tc.get("function", {}).get("name", ""),
                        arguments=tc.get("function", {}).get("arguments") or "{}",
                    ),
                )
                for i, tc in enumerate(raw_calls)
            ]

        return Message(
            role=Role.ASSISTANT,
            content=msg_data.get("content") or None,
            tool_calls=tool_calls,
        )
