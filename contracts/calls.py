"""Call contracts — the canonical envelope and the typed call union.

Wire field names are camelCase (what models emit); Python attributes are
snake_case.  Argument models are lenient on input: ``null``-ish values are
dropped and a lone scalar is accepted where a list is expected.
"""

from __future__ import annotations

import types
from typing import Annotated, Any, ClassVar, Literal, Union, get_args, get_origin

from pydantic import BaseModel, ConfigDict, Field, model_validator
from pydantic.alias_generators import to_camel

from contracts.tool_ids import ToolId

_NULLISH = {"", "null", "none", "nil", "undefined"}


def _is_list_annotation(annotation: Any) -> bool:
    origin = get_origin(annotation)
    if origin is list:
        return True
    if origin is Union or origin is types.UnionType:
        return any(_is_list_annotation(arg) for arg in get_args(annotation))
    return False


# ── Canonical envelope ───────────────────────────────────────────────


class CallEnvelope(BaseModel):
    """Normalized ``{name, arguments}`` shape every raw encoding maps to."""

    model_config = ConfigDict(frozen=True)

    name: str
    arguments: dict[str, Any] = {}


# ── Argument records ─────────────────────────────────────────────────


class ToolArguments(BaseModel):
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        extra="ignore",
    )

    @model_validator(mode="before")
    @classmethod
    def _tolerate(cls, data: Any) -> Any:
        if not isinstance(data, dict):
            return data
        cleaned: dict[str, Any] = {}
        for key, value in data.items():
            if value is None:
                continue
            if isinstance(value, str) and value.strip().lower() in _NULLISH:
                continue
            cleaned[key] = value
        for name, info in cls.model_fields.items():
            if not _is_list_annotation(info.annotation):
                continue
            for key in (info.alias or name, name):
                value = cleaned.get(key)
                if value is not None and not isinstance(value, list):
                    cleaned[key] = [value]
        return cleaned


class CalendarFetchEventsArgs(ToolArguments):
    start_date: str | None = None
    end_date: str | None = None
    calendar_names: list[str] | None = None
    search_text: str | None = None
    include_all_day: bool | None = None
    status: str | None = None
    availability: str | None = None
    has_alarms: bool | None = None
    is_recurring: bool | None = None


class Recurrence(ToolArguments):
    frequency: str = "weekly"
    interval: int = 1
    end_date: str | None = None
    occurrences: int | None = None


class CalendarCreateEventArgs(ToolArguments):
    title: str
    start_date: str
    end_date: str
    calendar_name: str | None = None
    location: str | None = None
    notes: str | None = None
    url: str | None = None
    is_all_day: bool | None = None
    availability: str | None = None
    alarms: list[int] | None = None
    recurrence: Recurrence | None = None


class FetchRemindersArgs(ToolArguments):
    completed: bool | None = None
    start_date: str | None = None
    end_date: str | None = None
    list_names: list[str] | None = None
    search_text: str | None = None


class RemindersArgs(ToolArguments):
    action: str
    list_name: str | None = None
    search_text: str | None = None
    name: str | None = None
    notes: str | None = None
    due_date: str | None = None


class CanvasCoursesArgs(ToolArguments):
    completed: bool | None = None


class CanvasCourseArgs(ToolArguments):
    course_name: str


class NotesArgs(ToolArguments):
    action: str
    search_text: str | None = None
    title: str | None = None
    body: str | None = None
    folder_name: str | None = None


class ContactsArgs(ToolArguments):
    action: str
    query: str | None = None
    limit: int | None = None
    include_phones: bool | None = None
    include_emails: bool | None = None


# ── Typed call variants ──────────────────────────────────────────────


class _CallBase(BaseModel):
    arguments: Any

    def to_payload(self) -> dict[str, Any]:
        """camelCase argument mapping handed to an executor."""
        return self.arguments.model_dump(by_alias=True, exclude_none=True)


class CalendarFetchEventsCall(_CallBase):
    tool: Literal[ToolId.CALENDAR_FETCH_EVENTS] = ToolId.CALENDAR_FETCH_EVENTS
    arguments: CalendarFetchEventsArgs = CalendarFetchEventsArgs()


class CalendarCreateEventCall(_CallBase):
    tool: Literal[ToolId.CALENDAR_CREATE_EVENT] = ToolId.CALENDAR_CREATE_EVENT
    arguments: CalendarCreateEventArgs


class FetchRemindersCall(_CallBase):
    tool: Literal[ToolId.FETCH_REMINDERS] = ToolId.FETCH_REMINDERS
    arguments: FetchRemindersArgs = FetchRemindersArgs()


class RemindersCall(_CallBase):
    tool: Literal[ToolId.REMINDERS] = ToolId.REMINDERS
    arguments: RemindersArgs


class CanvasCoursesCall(_CallBase):
    tool: Literal[ToolId.CANVAS_COURSES] = ToolId.CANVAS_COURSES
    arguments: CanvasCoursesArgs = CanvasCoursesArgs()


class CanvasAssignmentsCall(_CallBase):
    tool: Literal[ToolId.CANVAS_ASSIGNMENTS] = ToolId.CANVAS_ASSIGNMENTS
    arguments: CanvasCourseArgs


class CanvasGradesCall(_CallBase):
    tool: Literal[ToolId.CANVAS_GRADES] = ToolId.CANVAS_GRADES
    arguments: CanvasCourseArgs


class NotesCall(_CallBase):
    tool: Literal[ToolId.NOTES] = ToolId.NOTES
    arguments: NotesArgs


class ContactsCall(_CallBase):
    tool: Literal[ToolId.CONTACTS] = ToolId.CONTACTS
    arguments: ContactsArgs


class UnknownCall(_CallBase):
    """Best-effort variant for a known tool whose arguments were degenerate."""

    tool: ToolId
    arguments: dict[str, Any] = {}
    raw: Any = None

    def to_payload(self) -> dict[str, Any]:
        return dict(self.arguments)


KnownCall = Annotated[
    Union[
        CalendarFetchEventsCall,
        CalendarCreateEventCall,
        FetchRemindersCall,
        RemindersCall,
        CanvasCoursesCall,
        CanvasAssignmentsCall,
        CanvasGradesCall,
        NotesCall,
        ContactsCall,
    ],
    Field(discriminator="tool"),
]

TypedCall = Union[KnownCall, UnknownCall]


class CallTypes:
    """Lookup from tool id to its call variant and argument model."""

    BY_TOOL: ClassVar[dict[ToolId, type[_CallBase]]] = {
        ToolId.CALENDAR_FETCH_EVENTS: CalendarFetchEventsCall,
        ToolId.CALENDAR_CREATE_EVENT: CalendarCreateEventCall,
        ToolId.FETCH_REMINDERS: FetchRemindersCall,
        ToolId.REMINDERS: RemindersCall,
        ToolId.CANVAS_COURSES: CanvasCoursesCall,
        ToolId.CANVAS_ASSIGNMENTS: CanvasAssignmentsCall,
        ToolId.CANVAS_GRADES: CanvasGradesCall,
        ToolId.NOTES: NotesCall,
        ToolId.CONTACTS: ContactsCall,
    }

    @classmethod
    def call_type(cls, tool: ToolId) -> type[_CallBase]:
        return cls.BY_TOOL[tool]

    @classmethod
    def arguments_model(cls, tool: ToolId) -> type[ToolArguments]:
        return cls.BY_TOOL[tool].model_fields["arguments"].annotation
