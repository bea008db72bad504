"""Dispatcher — routes a typed call to its registered executor."""

from __future__ import annotations

import asyncio
import logging
import uuid

from contracts.calls import TypedCall
from contracts.errors import (
    ArgumentDecodeError,
    ExecutionError,
    PermissionDeniedError,
    UnknownToolError,
)
from contracts.tool_sdk import ExecutionResult, ToolContext
from runtime.tools.registry import ToolRegistry

logger = logging.getLogger(__name__)


class Dispatcher:
    """Looks up the executor for ``call.tool`` and awaits its result.

    There is no internal timeout; executors that do I/O carry their own.
    """

    def __init__(self, registry: ToolRegistry) -> None:
        self._registry = registry

    async def dispatch(self, call: TypedCall, ctx: ToolContext | None = None) -> ExecutionResult:
        entry = self._registry.get(call.tool)
        if entry is None:
            raise UnknownToolError(call.tool.value, known=True)

        ctx = ctx or ToolContext(request_id=uuid.uuid4().hex)
        try:
            return await entry.executor.execute_raw(ctx, call.to_payload())
        except (ArgumentDecodeError, PermissionDeniedError, asyncio.CancelledError):
            raise
        except Exception as exc:
            logger.warning("Tool %s raised %s", call.tool.value, type(exc).__name__, exc_info=True)
            raise ExecutionError(call.tool.value, exc) from exc
