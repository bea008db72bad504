"""Error taxonomy for the tool-invocation pipeline.

Each exception carries an ``ErrorKind`` so the router can report it to the
audit sink without isinstance ladders.
"""

from __future__ import annotations

from enum import Enum
from typing import Any


class ErrorKind(str, Enum):
    NOT_A_TRIGGER_CANDIDATE = "not_a_trigger_candidate"
    MALFORMED_CALL = "malformed_call"
    UNKNOWN_TOOL = "unknown_tool"
    ARGUMENT_DECODE_FAILURE = "argument_decode_failure"
    PERMISSION_DENIED = "permission_denied"
    EXECUTION_FAILURE = "execution_failure"


class PetalKitError(Exception):
    """Base class for every pipeline error."""

    kind: ErrorKind

    def detail(self) -> dict[str, Any]:
        """Serializable description for audit records."""
        return {"kind": self.kind.value, "message": str(self)}


class MalformedCallError(PetalKitError):
    """A call wrapper was found but its payload could not be parsed."""

    kind = ErrorKind.MALFORMED_CALL

    def __init__(self, raw: str, reason: str) -> None:
        super().__init__(f"Malformed tool call: {reason}")
        self.raw = raw
        self.reason = reason


class UnknownToolError(PetalKitError):
    """No known or registered handler for the named tool.

    ``known`` is ``True`` when the name is a valid tool id that simply has
    no executor registered on this platform.
    """

    kind = ErrorKind.UNKNOWN_TOOL

    def __init__(self, name: str, *, known: bool = False) -> None:
        if known:
            message = f"Tool '{name}' is not available on this platform"
        else:
            message = f"Unknown tool: {name}"
        super().__init__(message)
        self.name = name
        self.known = known

    def detail(self) -> dict[str, Any]:
        return {**super().detail(), "tool": self.name, "known": self.known}


class ArgumentDecodeError(PetalKitError):
    """Known tool, but its arguments could not be coerced."""

    kind = ErrorKind.ARGUMENT_DECODE_FAILURE

    def __init__(self, tool: str, errors: list[str]) -> None:
        super().__init__(f"Invalid arguments for '{tool}': {'; '.join(errors)}")
        self.tool = tool
        self.errors = errors

    def detail(self) -> dict[str, Any]:
        return {**super().detail(), "tool": self.tool, "errors": self.errors}


class PermissionDeniedError(PetalKitError):
    """The caller or environment lacks access required by the tool."""

    kind = ErrorKind.PERMISSION_DENIED

    def __init__(self, tool: str, reason: str = "") -> None:
        super().__init__(reason or f"Permission denied for '{tool}'")
        self.tool = tool
        self.reason = reason

    def detail(self) -> dict[str, Any]:
        return {**super().detail(), "tool": self.tool}


class ExecutionError(PetalKitError):
    """The executor ran but raised; ``cause`` is the underlying exception."""

    kind = ErrorKind.EXECUTION_FAILURE

    def __init__(self, tool: str, cause: BaseException) -> None:
        super().__init__(f"'{tool}' failed: {cause}")
        self.tool = tool
        self.cause = cause

    def detail(self) -> dict[str, Any]:
        return {
            **super().detail(),
            "tool": self.tool,
            "cause": type(self.cause).__name__,
        }


def validation_messages(exc: Any) -> list[str]:
    """Flatten a pydantic ``ValidationError`` into ``"field: message"`` lines."""
    messages: list[str] = []
    for err in exc.errors():
        loc = ".".join(str(part) for part in err.get("loc", ())) or "arguments"
        messages.append(f"{loc}: {err.get('msg', 'invalid')}")
    return messages
