"""Result renderer — execution results and pipeline errors to chat text."""

from __future__ import annotations

from collections.abc import Callable
from typing import Any

from pydantic import BaseModel

from contracts.errors import (
    ArgumentDecodeError,
    ExecutionError,
    MalformedCallError,
    PermissionDeniedError,
    PetalKitError,
    UnknownToolError,
)
from contracts.tool_ids import ToolId
from contracts.tool_sdk import ExecutionResult, ResultStatus, SuggestedAction
from runtime.tools.catalog import DESCRIPTORS


class RenderedResult(BaseModel):
    text: str
    suggested_actions: list[SuggestedAction] = []


# ── Helpers ──────────────────────────────────────────────────────────


def _friendly_name(tool: ToolId | str) -> str:
    tool_id = tool if isinstance(tool, ToolId) else ToolId.parse(tool)
    if tool_id is None:
        return str(tool)
    return DESCRIPTORS[tool_id].display_name


def _is_empty(payload: Any) -> bool:
    if payload is None:
        return True
    if isinstance(payload, (str, list, tuple, dict)) and not payload:
        return True
    if isinstance(payload, dict):
        # {"course": ..., "assignments": []} carries nothing to show
        lists = [v for v in payload.values() if isinstance(v, list)]
        return bool(lists) and all(not v for v in lists)
    if isinstance(payload, str):
        return not payload.strip()
    return False


def _pick(row: dict[str, Any], *keys: str, default: str = "") -> Any:
    for key in keys:
        if row.get(key) not in (None, ""):
            return row[key]
    return default


def _bullets(lines: list[str]) -> str:
    return "\n".join(f"• {line}" for line in lines)


def _generic(payload: Any) -> str:
    if isinstance(payload, str):
        return payload
    if isinstance(payload, dict):
        return "\n".join(f"{key}: {_generic_value(value)}" for key, value in payload.items())
    if isinstance(payload, (list, tuple)):
        return _bullets([_generic_value(item) for item in payload])
    return str(payload)


def _generic_value(value: Any) -> str:
    if isinstance(value, dict):
        return ", ".join(f"{k}={v}" for k, v in value.items() if v is not None)
    if isinstance(value, (list, tuple)):
        return ", ".join(str(v) for v in value)
    return str(value)


# ── Per-tool formatters ──────────────────────────────────────────────


def _calendar_events(payload: Any) -> str:
    if isinstance(payload, str):
        return payload
    lines = []
    for event in payload:
        line = str(_pick(event, "title", default="(No title)"))
        calendar = _pick(event, "calendar")
        if calendar:
            line += f" ({calendar})"
        start, end = _pick(event, "start", "startDate"), _pick(event, "end", "endDate")
        if start:
            line += f" [{start} - {end}]" if end else f" [{start}]"
        location = _pick(event, "location")
        if location:
            line += f" @ {location}"
        lines.append(line)
    return "Here are your events:\n" + _bullets(lines)


def _created_event(payload: Any) -> str:
    if isinstance(payload, str):
        return payload
    text = f"Created \"{_pick(payload, 'title', default='event')}\""
    start, end = _pick(payload, "start", "startDate"), _pick(payload, "end", "endDate")
    if start:
        text += f" from {start} to {end}" if end else f" at {start}"
    calendar = _pick(payload, "calendar", "calendarName")
    if calendar:
        text += f" in {calendar}"
    return text + "."


def _canvas_courses(payload: Any) -> str:
    if isinstance(payload, str):
        return payload
    lines = []
    for course in payload:
        code = _pick(course, "course_code")
        lines.append(f"{course.get('name', '')} ({code})" if code else str(course.get("name", "")))
    return "Your Canvas courses:\n" + _bullets(lines)


def _canvas_assignments(payload: Any) -> str:
    if isinstance(payload, str):
        return payload
    lines = [
        f"{a.get('name', '')} (Due: {_pick(a, 'due_at', default='No due date')})"
        for a in payload.get("assignments", [])
    ]
    return f"Assignments for {payload.get('course', 'your course')}:\n" + _bullets(lines)


def _canvas_grades(payload: Any) -> str:
    if isinstance(payload, str):
        return payload
    lines = [
        f"{g.get('assignment', '')}: {_pick(g, 'grade', 'score', default='Not graded')}"
        for g in payload.get("grades", [])
    ]
    return f"Grades for {payload.get('course', 'your course')}:\n" + _bullets(lines)


def _reminders(payload: Any) -> str:
    if isinstance(payload, str) or isinstance(payload, dict):
        return _generic(payload)
    lines = []
    for item in payload:
        if isinstance(item, str):
            lines.append(item)
            continue
        mark = "[x]" if item.get("completed") else "[ ]"
        line = f"{mark} {_pick(item, 'title', 'name', default='(Untitled)')}"
        due = _pick(item, "dueDate", "due_date")
        if due:
            line += f" (due {due})"
        list_name = _pick(item, "list", "listName")
        if list_name:
            line += f" in {list_name}"
        lines.append(line)
    return "Your reminders:\n" + _bullets(lines)


def _notes(payload: Any) -> str:
    if isinstance(payload, str) or isinstance(payload, dict):
        return _generic(payload)
    lines = []
    for note in payload:
        if isinstance(note, str):
            lines.append(note)
            continue
        title = _pick(note, "title", "name", default="(Untitled)")
        body = str(_pick(note, "body", "content")).strip().splitlines()
        lines.append(f"{title}: {body[0]}" if body else str(title))
    return "Your notes:\n" + _bullets(lines)


def _contacts(payload: Any) -> str:
    if isinstance(payload, str) or isinstance(payload, dict):
        return _generic(payload)
    lines = []
    for contact in payload:
        parts = [str(_pick(contact, "displayName", "name", default="(No Name)"))]
        parts += [str(p) for p in contact.get("phones") or []]
        parts += [str(e) for e in contact.get("emails") or []]
        lines.append(", ".join(parts))
    return "Contacts:\n" + _bullets(lines)


_FORMATTERS: dict[ToolId, Callable[[Any], str]] = {
    ToolId.CALENDAR_FETCH_EVENTS: _calendar_events,
    ToolId.CALENDAR_CREATE_EVENT: _created_event,
    ToolId.CANVAS_COURSES: _canvas_courses,
    ToolId.CANVAS_ASSIGNMENTS: _canvas_assignments,
    ToolId.CANVAS_GRADES: _canvas_grades,
    ToolId.FETCH_REMINDERS: _reminders,
    ToolId.REMINDERS: _reminders,
    ToolId.NOTES: _notes,
    ToolId.CONTACTS: _contacts,
}


# ── Renderer ─────────────────────────────────────────────────────────


class ResultRenderer:
    """Turns results and errors into text a chat transcript can show."""

    def __init__(self, formatters: dict[ToolId, Callable[[Any], str]] | None = None) -> None:
        self._formatters = dict(_FORMATTERS)
        if formatters:
            self._formatters.update(formatters)

    def render(self, tool_id: ToolId, result: ExecutionResult) -> RenderedResult:
        name = _friendly_name(tool_id)
        status = result.status

        if status == ResultStatus.NEED_MORE_INFO:
            text = f"I need a bit more information to use {name}."
            if result.error:
                text += f" {result.error}"
        elif _is_empty(result.payload) and status in (ResultStatus.SUCCESS, ResultStatus.FAILURE):
            text = f"I ran {name}, but it returned no results."
            if result.error:
                text += f" ({result.error})"
        else:
            text = self._format(tool_id, result.payload)
            if status in (ResultStatus.PARTIAL_SUCCESS, ResultStatus.PARTIAL_FAILURE):
                note = result.error or "some of the request could not be completed"
                text += f"\n\nNote: {note}."
            elif status == ResultStatus.FAILURE and result.error:
                text += f"\n\n{name} reported a problem: {result.error}"

        return self._with_actions(text, result.suggested_actions)

    def render_error(self, error: PetalKitError) -> RenderedResult:
        if isinstance(error, PermissionDeniedError):
            text = f"I don't have permission to use {_friendly_name(error.tool)}."
            if error.reason:
                text += f" {error.reason}"
        elif isinstance(error, ExecutionError):
            text = (
                f"Something went wrong while running {_friendly_name(error.tool)}: "
                f"{error.cause}"
            )
        elif isinstance(error, UnknownToolError):
            if error.known:
                text = f"{_friendly_name(error.name)} isn't available on this device."
            else:
                text = f"I don't know a tool called '{error.name}'."
        elif isinstance(error, ArgumentDecodeError):
            text = (
                f"I couldn't work out the details for {_friendly_name(error.tool)}: "
                + "; ".join(error.errors)
            )
        elif isinstance(error, MalformedCallError):
            text = f"I tried to use a tool, but the request was garbled ({error.reason})."
        else:
            text = f"Something went wrong: {error}"
        return RenderedResult(text=text)

    # ── helpers ──────────────────────────────────────────────────────

    def _format(self, tool_id: ToolId, payload: Any) -> str:
        formatter = self._formatters.get(tool_id)
        if formatter is None:
            return _generic(payload)
        try:
            return formatter(payload)
        except (AttributeError, KeyError, TypeError):
            # payload shape the formatter doesn't know
            return _generic(payload)

    @staticmethod
    def _with_actions(text: str, actions: list[SuggestedAction]) -> RenderedResult:
        if actions:
            text += "\n\nYou could also:\n" + _bullets(
                [f"{a.title}: {a.description}" for a in actions]
            )
        return RenderedResult(text=text, suggested_actions=list(actions))
