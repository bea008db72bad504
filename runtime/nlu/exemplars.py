"""Exemplar store — per-tool trigger phrases and their cached prototype vectors."""

from __future__ import annotations

import threading
from collections.abc import Mapping, Sequence

from contracts.tool_ids import ToolId
from runtime.nlu.embedding import EmbeddingEngine

DEFAULT_EXEMPLARS: dict[ToolId, list[str]] = {
    ToolId.CALENDAR_FETCH_EVENTS: [
        "Fetch calendar events for me",
        "Show calendar events",
        "List my events",
        "Get events from my calendar",
        "Retrieve calendar events",
    ],
    ToolId.CALENDAR_CREATE_EVENT: [
        "Create a calendar event on [date]",
        "Create an event titled EECS 449 Project on 2025-03-20 from 10:00 AM to 11:30 AM in UGLI",
        "Schedule a new calendar event",
        "Add a calendar event to my schedule",
        "Book an event on my calendar",
        "Set up a calendar event",
    ],
    ToolId.REMINDERS: [
        "Show me my reminders",
        "List my tasks for today",
        "List my tasks for 9 April 2025",
        "List my tasks for day month year",
        "Fetch completed reminders",
        "Get all my pending reminders",
        "Find reminders containing 'doctor'",
        "Create a reminder to call John tomorrow",
        "Add a reminder to buy milk to my Groceries list",
    ],
    ToolId.CANVAS_COURSES: [
        "Show me my Canvas courses",
        "List my classes on Canvas",
        "Display my Canvas courses",
        "What courses am I enrolled in?",
        "Fetch my Canvas classes",
    ],
    ToolId.CANVAS_ASSIGNMENTS: [
        "Fetch assignments for my course",
        "Show my Canvas assignments",
        "Get assignments for my class",
        "Retrieve course assignments from Canvas",
        "List assignments for my course",
    ],
    ToolId.CANVAS_GRADES: [
        "Show me my grades",
        "Get my Canvas grades",
        "Fetch my course grades",
        "Display grades for my class",
        "Retrieve my grades from Canvas",
    ],
    ToolId.NOTES: [
        "Find my notes about [topic]",
        "Create a new note with [content]",
        "Show all my notes",
        "Make a note about [topic]",
        "Search my notes for [query]",
        "Create a new note titled Meeting with Sam with content # Discussion Points "
        "-Project timeline -Budget concerns -Next steps",
    ],
}


class ExemplarStore:
    """Maps tool ids to exemplar phrases and memoizes their centroid vectors.

    Prototypes are computed on first use unless ``eager`` is set, in which
    case every configured tool is computed up front; both paths yield the
    same vectors.  Tools without exemplars have no prototype.
    """

    def __init__(
        self,
        engine: EmbeddingEngine,
        exemplars: Mapping[ToolId, Sequence[str]] | None = None,
        *,
        eager: bool = False,
    ) -> None:
        self._engine = engine
        source = DEFAULT_EXEMPLARS if exemplars is None else exemplars
        self._exemplars: dict[ToolId, tuple[str, ...]] = {
            ToolId(tool): tuple(phrases) for tool, phrases in source.items()
        }
        self._cache: dict[ToolId, list[float] | None] = {}
        self._lock = threading.Lock()
        if eager:
            for tool_id in self.tool_ids():
                self.prototype(tool_id)

    def tool_ids(self) -> list[ToolId]:
        """Configured tool ids, in ``ToolId`` declaration order."""
        return [t for t in ToolId if t in self._exemplars]

    def exemplars(self, tool_id: ToolId) -> tuple[str, ...]:
        return self._exemplars.get(tool_id, ())

    def prototype(self, tool_id: ToolId) -> list[float] | None:
        if tool_id in self._cache:
            return self._cache[tool_id]
        phrases = self._exemplars.get(tool_id)
        if not phrases:
            return None
        with self._lock:
            if tool_id not in self._cache:
                self._cache[tool_id] = self._centroid(phrases)
            return self._cache[tool_id]

    def _centroid(self, phrases: Sequence[str]) -> list[float] | None:
        total: list[float] = []
        count = 0
        for phrase in phrases:
            vector = self._engine.vector(phrase)
            if vector is None:
                continue
            if not total:
                total = list(vector)
            else:
                for i, value in enumerate(vector):
                    total[i] += value
            count += 1
        if count == 0:
            return None
        return [value / count for value in total]
