"""Unit tests for the Ollama and OpenAI-compatible model adapters."""

from __future__ import annotations

import json
from typing import Any
from unittest.mock import AsyncMock, patch

import httpx
import pytest

from contracts.api import Message, Role, ToolCall, ToolCallFunction
from runtime.model_adapters.ollama import OllamaAdapter, _build_tool_prompt, _model_family
from runtime.model_adapters.openai_compat import OpenAICompatAdapter
from runtime.tools.catalog import CANVAS_GRADES


# ── helpers ─────────────────────────────────────────────────────────

TOOLS = [CANVAS_GRADES.as_function()]


def _response(url: str, body: dict[str, Any]) -> httpx.Response:
    return httpx.Response(200, json=body, request=httpx.Request("POST", url))


def _sent_payload(mock: AsyncMock) -> dict[str, Any]:
    return mock.call_args.kwargs["json"]


# ── Ollama: response parsing ────────────────────────────────────────


class TestOllamaResponse:
    def test_native_tool_call_lifted(self) -> None:
        data = {
            "message": {
                "role": "assistant",
                "content": "",
                "tool_calls": [
                    {"function": {"name": "petalFetchCanvasGradesTool", "arguments": {"courseName": "EECS 281"}}}
                ],
            }
        }
        msg = OllamaAdapter._from_ollama_response(data)
        assert msg.role == Role.ASSISTANT
        assert msg.content is None
        assert msg.tool_calls is not None
        assert msg.tool_calls[0].id == "call_0"
        assert json.loads(msg.tool_calls[0].function.arguments) == {"courseName": "EECS 281"}

    def test_text_tool_call_left_for_normalizer(self) -> None:
        content = '<tool_call>{"name": "petalNotesTool", "arguments": {}}</tool_call>'
        msg = OllamaAdapter._from_ollama_response({"message": {"role": "assistant", "content": content}})
        assert msg.content == content
        assert msg.tool_calls is None

    def test_plain_answer(self) -> None:
        msg = OllamaAdapter._from_ollama_response({"message": {"content": "Paris."}})
        assert msg.content == "Paris."
        assert msg.tool_calls is None


# ── Ollama: request building ────────────────────────────────────────


class TestOllamaRequest:
    def test_model_family(self) -> None:
        assert _model_family("gemma3:12b") == "gemma3"
        assert _model_family("library/llama3.1:8b") == "llama3.1"

    def test_tool_prompt_lists_parameters(self) -> None:
        prompt = _build_tool_prompt(TOOLS)
        assert "<tool_call>" in prompt
        assert "**petalFetchCanvasGradesTool**" in prompt
        assert "courseName: string" in prompt
        assert "(required)" in prompt

    def test_prompt_mode_rewrites_tool_turns(self) -> None:
        messages = [
            Message(role=Role.USER, content="grades?"),
            Message(
                role=Role.ASSISTANT,
                tool_calls=[
                    ToolCall(
                        id="c1",
                        function=ToolCallFunction(
                            name="petalFetchCanvasGradesTool", arguments='{"courseName": "EECS"}'
                        ),
                    )
                ],
            ),
            Message(role=Role.TOOL, content="A-", tool_call_id="c1"),
        ]
        out = OllamaAdapter._build_messages(messages, prompt_tools=True)
        assert out[1]["content"].startswith("<tool_call>")
        assert out[2] == {"role": "user", "content": "Tool result: A-"}

    @pytest.mark.asyncio
    async def test_native_family_sends_tools(self) -> None:
        adapter = OllamaAdapter("http://ollama:11434/")
        mock = AsyncMock(return_value=_response("http://ollama:11434/api/chat", {"message": {"content": "ok"}}))
        with patch.object(httpx.AsyncClient, "post", mock):
            msg = await adapter.chat([Message(role=Role.USER, content="hi")], "llama3.1:8b", tools=TOOLS)
        assert msg.content == "ok"
        assert mock.call_args.args[0] == "http://ollama:11434/api/chat"
        payload = _sent_payload(mock)
        assert payload["tools"] == TOOLS
        assert payload["stream"] is False

    @pytest.mark.asyncio
    async def test_non_native_family_gets_prompt(self) -> None:
        adapter = OllamaAdapter()
        mock = AsyncMock(return_value=_response("http://localhost:11434/api/chat", {"message": {"content": "ok"}}))
        messages = [
            Message(role=Role.SYSTEM, content="You are helpful."),
            Message(role=Role.USER, content="grades?"),
        ]
        with patch.object(httpx.AsyncClient, "post", mock):
            await adapter.chat(messages, "phi3:mini", tools=TOOLS)
        payload = _sent_payload(mock)
        assert "tools" not in payload
        assert payload["messages"][0]["content"].startswith("You are helpful.")
        assert "petalFetchCanvasGradesTool" in payload["messages"][0]["content"]

    @pytest.mark.asyncio
    async def test_no_tools_sends_neither(self) -> None:
        adapter = OllamaAdapter()
        mock = AsyncMock(return_value=_response("http://localhost:11434/api/chat", {"message": {"content": "ok"}}))
        with patch.object(httpx.AsyncClient, "post", mock):
            await adapter.chat([Message(role=Role.USER, content="hi")], "gemma3:4b")
        payload = _sent_payload(mock)
        assert "tools" not in payload
        assert payload["messages"] == [{"role": "user", "content": "hi"}]


# ── OpenAI-compatible ───────────────────────────────────────────────


class TestOpenAICompatAdapter:
    def test_parses_tool_calls(self) -> None:
        data = {
            "choices": [
                {
                    "message": {
                        "role": "assistant",
                        "content": None,
                        "tool_calls": [
                            {
                                "id": "call_abc",
                                "type": "function",
                                "function": {
                                    "name": "petalGenericCanvasCoursesTool",
                                    "arguments": "{}",
                                },
                            }
                        ],
                    }
                }
            ]
        }
        msg = OpenAICompatAdapter._from_openai_response(data)
        assert msg.tool_calls is not None
        assert msg.tool_calls[0].id == "call_abc"
        assert msg.tool_calls[0].function.name == "petalGenericCanvasCoursesTool"

    def test_empty_choices(self) -> None:
        msg = OpenAICompatAdapter._from_openai_response({"choices": []})
        assert msg.content is None
        assert msg.tool_calls is None

    @pytest.mark.asyncio
    async def test_posts_with_bearer_and_tool_choice(self) -> None:
        adapter = OpenAICompatAdapter("http://lm:1234/", api_key="sk-test")
        body = {"choices": [{"message": {"role": "assistant", "content": "hello"}}]}
        mock = AsyncMock(return_value=_response("http://lm:1234/v1/chat/completions", body))
        with patch.object(httpx.AsyncClient, "post", mock):
            msg = await adapter.chat([Message(role=Role.USER, content="hi")], "gpt-4o-mini", tools=TOOLS)
        assert msg.content == "hello"
        assert mock.call_args.args[0] == "http://lm:1234/v1/chat/completions"
        assert mock.call_args.kwargs["headers"] == {"Authorization": "Bearer sk-test"}
        payload = _sent_payload(mock)
        assert payload["tool_choice"] == "auto"
        assert payload["messages"] == [{"role": "user", "content": "hi"}]

    def test_key_from_environment(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("PETALKIT_TEST_KEY", "from-env")
        adapter = OpenAICompatAdapter(api_key_env="PETALKIT_TEST_KEY")
        assert adapter._api_key == "from-env"

    @pytest.mark.asyncio
    async def test_http_error_propagates(self) -> None:
        adapter = OpenAICompatAdapter("http://lm:1234", api_key="")
        failing = httpx.Response(500, request=httpx.Request("POST", "http://lm:1234/v1/chat/completions"))
        with patch.object(httpx.AsyncClient, "post", AsyncMock(return_value=failing)):
            with pytest.raises(httpx.HTTPStatusError):
                await adapter.chat([Message(role=Role.USER, content="hi")], "m")
