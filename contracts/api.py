"""OpenAI-compatible API contracts."""

from __future__ import annotations

from enum import Enum
from typing import Any

from pydantic import BaseModel

from contracts.tool_sdk import ResultStatus, SuggestedAction


class Role(str, Enum):
    SYSTEM = "system"
    USER = "user"
    ASSISTANT = "assistant"
    TOOL = "tool"


class ToolCallFunction(BaseModel):
    name: str
    arguments: str  # JSON-encoded string


class ToolCall(BaseModel):
    id: str
    type: str = "function"
    function: ToolCallFunction


class Message(BaseModel):
    role: Role
    content: str | None = None
    tool_calls: list[ToolCall] | None = None
    tool_call_id: str | None = None


class ChatRequest(BaseModel):
    model: str = "default"
    messages: list[Message]
    tools: list[dict[str, Any]] | None = None
    temperature: float | None = None
    max_tokens: int | None = None
    stream: bool = False


class TraceMeta(BaseModel):
    """Trace metadata appended to every response."""

    request_id: str
    triggered: bool = False
    tool: str | None = None
    status: ResultStatus | None = None
    error_kind: str | None = None
    suggested_actions: list[SuggestedAction] = []
    policy_mode: str = "local_only"
    model: str = ""


class Choice(BaseModel):
    index: int = 0
    message: Message
    finish_reason: str | None = None


class ChatResponse(BaseModel):
    id: str
    object: str = "chat.completion"
    model: str
    choices: list[Choice]
    trace: TraceMeta | None = None
