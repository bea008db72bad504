"""Tool identifiers — the closed set of tools PetalKit knows about.

Every layer (exemplars, normalizer consumers, decoder, registry, renderer)
names tools through this enum so the string ids never drift apart.
"""

from __future__ import annotations

from enum import Enum


class ToolId(str, Enum):
    CALENDAR_FETCH_EVENTS = "petalCalendarFetchEventsTool"
    CALENDAR_CREATE_EVENT = "petalCalendarCreateEventTool"
    FETCH_REMINDERS = "petalFetchRemindersTool"
    REMINDERS = "petalRemindersTool"
    CANVAS_COURSES = "petalGenericCanvasCoursesTool"
    CANVAS_ASSIGNMENTS = "petalFetchCanvasAssignmentsTool"
    CANVAS_GRADES = "petalFetchCanvasGradesTool"
    NOTES = "petalNotesTool"
    CONTACTS = "petalContactsTool"

    @classmethod
    def parse(cls, name: str) -> ToolId | None:
        """Return the member whose value is *name*, or ``None``."""
        try:
            return cls(name)
        except ValueError:
            return None
