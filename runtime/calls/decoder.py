"""Typed call decoder — canonical envelope to a ``TypedCall`` variant."""

from __future__ import annotations

from typing import Any

from pydantic import ValidationError

from contracts.calls import CallEnvelope, CallTypes, TypedCall, UnknownCall
from contracts.errors import ArgumentDecodeError, UnknownToolError, validation_messages
from contracts.tool_ids import ToolId


def _is_degenerate(arguments: dict[str, Any]) -> bool:
    """Empty, or a lone scalar where a whole record was expected."""
    if not arguments:
        return True
    if len(arguments) == 1:
        (value,) = arguments.values()
        return not isinstance(value, (dict, list))
    return False


def decode_call(envelope: CallEnvelope) -> TypedCall:
    """Resolve *envelope* into the call variant for its tool.

    Raises ``UnknownToolError`` for names outside ``ToolId`` and
    ``ArgumentDecodeError`` when a full argument object fails validation.
    A degenerate argument object yields ``UnknownCall`` instead.
    """
    tool = ToolId.parse(envelope.name)
    if tool is None:
        raise UnknownToolError(envelope.name, known=False)

    call_type = CallTypes.call_type(tool)
    try:
        return call_type.model_validate({"tool": tool, "arguments": envelope.arguments})
    except ValidationError as exc:
        if _is_degenerate(envelope.arguments):
            return UnknownCall(
                tool=tool,
                arguments=dict(envelope.arguments),
                raw=envelope.model_dump(),
            )
        raise ArgumentDecodeError(tool.value, validation_messages(exc)) from exc
