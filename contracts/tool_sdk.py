"""Tool SDK contracts.

Every PetalKit tool implements ToolExecutor.  The runtime decodes the model's
call, checks policy, dispatches to the executor, and renders the result.
"""

from __future__ import annotations

import asyncio
import threading
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from enum import Enum, IntEnum
from typing import Any, ClassVar

from pydantic import BaseModel, ValidationError

from contracts.errors import ArgumentDecodeError, validation_messages
from contracts.tool_ids import ToolId


# ── Permissions ──────────────────────────────────────────────────────


class PermissionLevel(IntEnum):
    BASIC = 0
    STANDARD = 1
    SENSITIVE = 2
    ADMINISTRATIVE = 3

    @classmethod
    def parse(cls, value: Any) -> PermissionLevel:
        """Accept a member, its int value, or its (case-insensitive) name."""
        if isinstance(value, cls):
            return value
        if isinstance(value, str):
            try:
                return cls[value.strip().upper()]
            except KeyError:
                raise ValueError(f"Unknown permission level: {value!r}") from None
        return cls(value)

    def label(self) -> str:
        return self.name.lower()


# ── Descriptor models ────────────────────────────────────────────────


class ParameterType(str, Enum):
    STRING = "string"
    NUMBER = "number"
    BOOLEAN = "boolean"
    DATE = "date"
    OBJECT = "object"
    ARRAY = "array"
    JSON = "json"
    ENUMERATION = "enumeration"

    def json_type(self) -> str:
        """JSON-schema type used when exporting to a model backend."""
        if self in (ParameterType.DATE, ParameterType.ENUMERATION):
            return "string"
        if self is ParameterType.JSON:
            return "object"
        return self.value


class ToolParameter(BaseModel):
    name: str
    description: str
    type: ParameterType = ParameterType.STRING
    required: bool = False
    example: Any = None
    enum_values: list[str] | None = None


class ToolDescriptor(BaseModel):
    """Static metadata describing a tool, independent of its executor."""

    id: ToolId
    display_name: str
    description: str
    parameters: list[ToolParameter] = []
    trigger_keywords: list[str] = []
    domain: str
    required_permission: PermissionLevel = PermissionLevel.BASIC

    def input_schema(self) -> dict[str, Any]:
        """JSON Schema for the tool's arguments object."""
        properties: dict[str, Any] = {}
        for param in self.parameters:
            prop: dict[str, Any] = {
                "type": param.type.json_type(),
                "description": param.description,
            }
            if param.enum_values:
                prop["enum"] = list(param.enum_values)
            properties[param.name] = prop
        return {
            "type": "object",
            "properties": properties,
            "required": [p.name for p in self.parameters if p.required],
        }

    def as_function(self) -> dict[str, Any]:
        """Export in OpenAI/Ollama function-calling format."""
        return {
            "type": "function",
            "function": {
                "name": self.id.value,
                "description": self.description,
                "parameters": self.input_schema(),
            },
        }


class ToolFilterCriteria(BaseModel):
    """Independently optional registry filters, combined with AND."""

    domain: str | None = None
    keyword: str | None = None
    max_permission: PermissionLevel | None = None


# ── Results ──────────────────────────────────────────────────────────


class ResultStatus(str, Enum):
    SUCCESS = "success"
    FAILURE = "failure"
    PARTIAL_SUCCESS = "partialSuccess"
    PARTIAL_FAILURE = "partialFailure"
    NEED_MORE_INFO = "needMoreInfo"


class SuggestedAction(BaseModel):
    """A pre-filled follow-up call the user may want next."""

    title: str
    description: str
    tool_id: ToolId
    parameters: dict[str, Any] | None = None


class ExecutionResult(BaseModel):
    status: ResultStatus
    payload: Any = None
    error: str | None = None
    suggested_actions: list[SuggestedAction] = []

    @classmethod
    def success(cls, payload: Any, **kwargs: Any) -> ExecutionResult:
        return cls(status=ResultStatus.SUCCESS, payload=payload, **kwargs)

    @classmethod
    def failure(cls, error: str, payload: Any = None) -> ExecutionResult:
        return cls(status=ResultStatus.FAILURE, error=error, payload=payload)

    @classmethod
    def need_more_info(cls, error: str) -> ExecutionResult:
        return cls(status=ResultStatus.NEED_MORE_INFO, error=error)


# ── Context passed to every tool invocation ──────────────────────────


@dataclass
class ToolContext:
    """Runtime context supplied to an executor."""

    request_id: str
    app_name: str = ""
    granted_permission: PermissionLevel = PermissionLevel.BASIC
    cancel_event: threading.Event = field(default_factory=threading.Event)

    def cancel(self) -> None:
        self.cancel_event.set()

    def raise_if_cancelled(self) -> None:
        """Cooperative cancellation check, called by executors between steps."""
        if self.cancel_event.is_set():
            raise asyncio.CancelledError(f"request {self.request_id} cancelled")


# ── Executor capability ──────────────────────────────────────────────


class ToolExecutor(ABC):
    """Capability interface every PetalKit tool implements."""

    #: pydantic model the executor's arguments are validated into.
    input_model: ClassVar[type[BaseModel]]

    @abstractmethod
    def descriptor(self) -> ToolDescriptor:
        """Return the tool's static metadata."""
        ...

    @abstractmethod
    async def execute(self, ctx: ToolContext, args: Any) -> ExecutionResult:
        """Run the tool with already-validated arguments."""
        ...

    async def execute_raw(
        self, ctx: ToolContext, payload: dict[str, Any]
    ) -> ExecutionResult:
        """Validate a structured payload into ``input_model`` and execute."""
        try:
            args = self.input_model.model_validate(payload)
        except ValidationError as exc:
            raise ArgumentDecodeError(
                self.descriptor().id.value, validation_messages(exc)
            ) from exc
        return await self.execute(ctx, args)
