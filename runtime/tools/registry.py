"""Tool registry — register, look up, filter, and export PetalKit tools.

Reads are lock-free: every write builds a fresh mapping and swaps it in, so
a reader always sees a complete snapshot.
"""

from __future__ import annotations

import logging
import sys
import threading
from collections.abc import Iterable
from dataclasses import dataclass
from types import MappingProxyType
from typing import Any, Mapping

from contracts.tool_ids import ToolId
from contracts.tool_sdk import ToolDescriptor, ToolExecutor, ToolFilterCriteria
from runtime.tools.base import check_descriptor

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class RegisteredTool:
    descriptor: ToolDescriptor
    executor: ToolExecutor


def _matches(descriptor: ToolDescriptor, criteria: ToolFilterCriteria) -> bool:
    if criteria.domain is not None and descriptor.domain.lower() != criteria.domain.lower():
        return False
    if criteria.keyword is not None:
        needle = criteria.keyword.lower()
        if not any(needle in kw.lower() for kw in descriptor.trigger_keywords):
            return False
    if criteria.max_permission is not None and descriptor.required_permission > criteria.max_permission:
        return False
    return True


class ToolRegistry:
    """Copy-on-write registry keyed by ``ToolId``."""

    def __init__(self) -> None:
        self._entries: Mapping[ToolId, RegisteredTool] = MappingProxyType({})
        self._write_lock = threading.Lock()

    def register(self, executor: ToolExecutor) -> RegisteredTool:
        """Register (or replace) the executor for its descriptor's id."""
        descriptor = executor.descriptor()
        check_descriptor(descriptor)
        entry = RegisteredTool(descriptor=descriptor, executor=executor)
        with self._write_lock:
            updated = dict(self._entries)
            replaced = descriptor.id in updated
            updated[descriptor.id] = entry
            self._entries = MappingProxyType(updated)
        logger.debug("%s tool %s", "Replaced" if replaced else "Registered", descriptor.id.value)
        return entry

    def unregister(self, tool_id: ToolId) -> bool:
        """Remove a tool; returns ``False`` if it was not registered."""
        with self._write_lock:
            if tool_id not in self._entries:
                return False
            updated = dict(self._entries)
            del updated[tool_id]
            self._entries = MappingProxyType(updated)
        return True

    def get(self, tool_id: ToolId) -> RegisteredTool | None:
        return self._entries.get(tool_id)

    def __contains__(self, tool_id: object) -> bool:
        return tool_id in self._entries

    def __len__(self) -> int:
        return len(self._entries)

    def list(self) -> list[ToolDescriptor]:
        """Snapshot of every registered descriptor, in ``ToolId`` order."""
        entries = self._entries
        return [entries[t].descriptor for t in ToolId if t in entries]

    def query(self, criteria: ToolFilterCriteria) -> list[ToolDescriptor]:
        return [d for d in self.list() if _matches(d, criteria)]

    def tool_ids(self) -> list[ToolId]:
        return [d.id for d in self.list()]

    def function_definitions(
        self, criteria: ToolFilterCriteria | None = None
    ) -> list[dict[str, Any]]:
        """Export tools in OpenAI/Ollama function-calling format."""
        descriptors = self.list() if criteria is None else self.query(criteria)
        return [d.as_function() for d in descriptors]


def create_default_registry(
    canvas: Any | None = None,
    platform: str | None = None,
    extra_executors: Iterable[ToolExecutor] = (),
) -> ToolRegistry:
    """Create a registry with the executors available in this environment.

    Canvas tools are registered when *canvas* (a ``CanvasConfig``) resolves
    a token.  Calendar, reminders, notes and contacts touch host apps, so the
    host supplies them through *extra_executors*.  Notes is macOS-only and
    contacts iOS-only; executors for other platforms are skipped.
    """
    from runtime.tools.canvas import canvas_executors

    platform = platform or sys.platform
    registry = ToolRegistry()

    if canvas is not None:
        for executor in canvas_executors(canvas):
            registry.register(executor)

    for executor in extra_executors:
        tool_id = executor.descriptor().id
        allowed = _PLATFORM_ONLY.get(tool_id)
        if allowed is not None and platform not in allowed:
            logger.info("Skipping %s: not supported on %s", tool_id.value, platform)
            continue
        registry.register(executor)

    logger.info("Registered %d tools on %s", len(registry), platform)
    return registry


# Host-app tools that only exist on one platform family.
_PLATFORM_ONLY: dict[ToolId, tuple[str, ...]] = {
    ToolId.NOTES: ("darwin",),
    ToolId.CONTACTS: ("ios",),
}
