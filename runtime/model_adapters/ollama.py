"""Ollama model adapter.

Proxies chat requests to a local Ollama instance via httpx.  Model families
without native tool support get the tool list injected into the system
prompt instead; their text replies are left for the output normalizer.
"""

from __future__ import annotations

import json
import logging
from typing import Any

import httpx

from contracts.api import Message, Role, ToolCall, ToolCallFunction
from contracts.model import ModelAdapter

logger = logging.getLogger(__name__)

# Families known to NOT support Ollama native tool calling
_NO_NATIVE_TOOLS = {"gemma3", "gemma2", "gemma", "phi3"}


def _model_family(model: str) -> str:
    """Extract model family from model name, e.g. 'gemma3:12b' -> 'gemma3'."""
    return model.split(":")[0].split("/")[-1]


def _build_tool_prompt(tools: list[dict[str, Any]]) -> str:
    """Build a system prompt section describing available tools."""
    lines = [
        "\n\n## Tools",
        "If one of these tools would answer the request, reply with ONLY a tool call:",
        '<tool_call>{"name": "tool_name", "arguments": {"arg": "value"}}</tool_call>',
        "Otherwise answer normally.",
        "Available tools:\n",
    ]
    for tool in tools:
        fn = tool.get("function", {})
        params = fn.get("parameters", {})
        required = params.get("required", [])
        lines.append(f"- **{fn.get('name', '')}**: {fn.get('description', '')}")
        for pname, pdef in params.get("properties", {}).items():
            req = " (required)" if pname in required else ""
            lines.append(f"    - {pname}: {pdef.get('type', 'any')}, {pdef.get('description', '')}{req}")
    return "\n".join(lines)


class OllamaAdapter(ModelAdapter):
    """Async adapter for the Ollama /api/chat endpoint."""

    def __init__(self, base_url: str = "http://localhost:11434", timeout: float = 300.0) -> None:
        self._base_url = base_url.rstrip("/")
        self._timeout = timeout

    async def chat(
        self,
        messages: list[Message],
        model: str,
        tools: list[dict[str, Any]] | None = None,
    ) -> Message:
        """Send messages to Ollama and return the assistant response."""
        native = bool(tools) and _model_family(model) not in _NO_NATIVE_TOOLS
        prompt_tools = bool(tools) and not native

        payload: dict[str, Any] = {
            "model": model,
            "messages": self._build_messages(messages, prompt_tools),
            "stream": False,
        }

        if prompt_tools:
            tool_prompt = _build_tool_prompt(tools or [])
            for msg in payload["messages"]:
                if msg["role"] == "system":
                    msg["content"] = (msg.get("content") or "") + tool_prompt
                    break
            else:
                payload["messages"].insert(0, {"role": "system", "content": tool_prompt})
        elif native:
            payload["tools"] = tools

        logger.debug("POST %s/api/chat model=%s native_tools=%s", self._base_url, model, native)
        async with httpx.AsyncClient(timeout=self._timeout) as client:
            resp = await client.post(f"{self._base_url}/api/chat", json=payload)
            resp.raise_for_status()

        return self._from_ollama_response(resp.json())

    # ── format helpers ───────────────────────────────────────────────

    @staticmethod
    def _build_messages(messages: list[Message], prompt_tools: bool) -> list[dict[str, Any]]:
        """Convert PetalKit Messages to Ollama format.

        When prompt_tools=True (model doesn't support native tools):
        - Assistant messages with tool_calls → assistant text in the tag form
        - Tool result messages → user message with "Tool result: ..."
        """
        out: list[dict[str, Any]] = []
        for msg in messages:
            m: dict[str, Any] = {"role": msg.role.value}
            if msg.content is not None:
                m["content"] = msg.content

            if prompt_tools:
                if msg.role == Role.TOOL:
                    m["role"] = "user"
                    m["content"] = f"Tool result: {msg.content}"
                elif msg.tool_calls:
                    tc = msg.tool_calls[0]
                    call_json = json.dumps({
                        "name": tc.function.name,
                        "arguments": json.loads(tc.function.arguments or "{}"),
                    })
                    text = msg.content or ""
                    m["content"] = f"{text}\n<tool_call>{call_json}</tool_call>".strip()
            else:
                if msg.tool_calls:
                    m["tool_calls"] = [
                        {
                            "function": {
                                "name": tc.function.name,
                                "arguments": json.loads(tc.function.arguments or "{}"),
                            }
                        }
                        for tc in msg.tool_calls
                    ]
                if msg.tool_call_id is not None:
                    m["tool_call_id"] = msg.tool_call_id
            out.append(m)

        return out

    @staticmethod
    def _from_ollama_response(data: dict[str, Any]) -> Message:
        """Convert an Ollama chat response into a PetalKit Message.

        Only native tool calls are lifted out; calls written into the text
        stay in ``content`` for the normalizer.
        """
        msg_data = data.get("message", {})
        content = msg_data.get("content") or None
        tool_calls: list[ToolCall] | None = None

        raw_calls = msg_data.get("tool_calls")
        if raw_calls:
            tool_calls = []
            for i, tc in enumerate(raw_calls):
                fn = tc.get("function", {})
                args = fn.get("arguments", {})
                tool_calls.append(
                    ToolCall(
                        id=tc.get("id", f"call_{i}"),
                        type="function",
                        function=ToolCallFunction(
                            name=fn.get("name", ""),
                            arguments=json.dumps(args) if isinstance(args, dict) else str(args),
                        ),
                    )
                )

        return Message(role=Role.ASSISTANT, content=content, tool_calls=tool_calls)
