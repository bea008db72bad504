"""Unit tests for the typed call decoder."""

from __future__ import annotations

import pytest

from contracts.calls import (
    CalendarCreateEventCall,
    CalendarFetchEventsCall,
    CallEnvelope,
    CanvasCoursesCall,
    CanvasGradesCall,
    ContactsCall,
    NotesCall,
    RemindersCall,
    UnknownCall,
)
from contracts.errors import ArgumentDecodeError, ErrorKind, UnknownToolError
from contracts.tool_ids import ToolId
from runtime.calls.decoder import decode_call


def _decode(name: str, **arguments):
    return decode_call(CallEnvelope(name=name, arguments=arguments))


class TestKnownTools:
    def test_canvas_grades(self) -> None:
        call = _decode("petalFetchCanvasGradesTool", courseName="EECS 281")
        assert isinstance(call, CanvasGradesCall)
        assert call.tool is ToolId.CANVAS_GRADES
        assert call.arguments.course_name == "EECS 281"

    def test_all_optional_arguments_accept_empty(self) -> None:
        call = _decode("petalGenericCanvasCoursesTool")
        assert isinstance(call, CanvasCoursesCall)
        assert call.arguments.completed is None

    def test_fetch_events_full(self) -> None:
        call = _decode(
            "petalCalendarFetchEventsTool",
            startDate="2025-03-01",
            endDate="2025-03-07",
            calendarNames=["Work", "School"],
            includeAllDay=True,
        )
        assert isinstance(call, CalendarFetchEventsCall)
        assert call.arguments.calendar_names == ["Work", "School"]
        assert call.arguments.include_all_day is True

    def test_create_event_with_recurrence(self) -> None:
        call = _decode(
            "petalCalendarCreateEventTool",
            title="EECS 449 Project",
            startDate="2025-03-20 10:00",
            endDate="2025-03-20 11:30",
            location="UGLI",
            alarms=[15],
            recurrence={"frequency": "daily", "occurrences": 3},
        )
        assert isinstance(call, CalendarCreateEventCall)
        assert call.arguments.recurrence is not None
        assert call.arguments.recurrence.frequency == "daily"
        assert call.arguments.recurrence.interval == 1

    def test_snake_case_names_accepted(self) -> None:
        call = _decode("petalFetchCanvasGradesTool", course_name="Math 115")
        assert isinstance(call, CanvasGradesCall)

    def test_extra_fields_ignored(self) -> None:
        call = _decode("petalNotesTool", action="search", searchText="exam", mood="happy")
        assert isinstance(call, NotesCall)
        assert call.to_payload() == {"action": "search", "searchText": "exam"}

    def test_contacts(self) -> None:
        call = _decode("petalContactsTool", action="search", query="Sam", limit=5)
        assert isinstance(call, ContactsCall)
        assert call.arguments.limit == 5


# ── lenient coercion ────────────────────────────────────────────────


class TestLenientArguments:
    def test_nullish_strings_are_dropped(self) -> None:
        call = _decode(
            "petalRemindersTool", action="fetch", listName="null", searchText="", dueDate="None"
        )
        assert isinstance(call, RemindersCall)
        assert call.arguments.list_name is None
        assert call.arguments.search_text is None
        assert call.arguments.due_date is None

    def test_scalar_wrapped_into_list(self) -> None:
        call = _decode("petalCalendarFetchEventsTool", calendarNames="Work", startDate="2025-01-01")
        assert isinstance(call, CalendarFetchEventsCall)
        assert call.arguments.calendar_names == ["Work"]

    def test_payload_is_camel_case_without_nones(self) -> None:
        call = _decode("petalFetchCanvasGradesTool", courseName="EECS 281")
        assert call.to_payload() == {"courseName": "EECS 281"}


# ── degenerate arguments ────────────────────────────────────────────


class TestDegenerate:
    def test_empty_arguments_for_required_fields(self) -> None:
        call = _decode("petalFetchCanvasGradesTool")
        assert isinstance(call, UnknownCall)
        assert call.tool is ToolId.CANVAS_GRADES
        assert call.arguments == {}
        assert call.raw == {"name": "petalFetchCanvasGradesTool", "arguments": {}}

    def test_single_scalar_field(self) -> None:
        call = _decode("petalCalendarCreateEventTool", title="Lunch")
        assert isinstance(call, UnknownCall)
        assert call.to_payload() == {"title": "Lunch"}

    def test_null_course_name(self) -> None:
        call = _decode("petalFetchCanvasAssignmentsTool", courseName=None)
        assert isinstance(call, UnknownCall)


# ── failures ────────────────────────────────────────────────────────


class TestDecodeErrors:
    def test_unknown_name(self) -> None:
        with pytest.raises(UnknownToolError) as exc_info:
            _decode("petalWeatherTool", city="Ann Arbor")
        err = exc_info.value
        assert err.kind is ErrorKind.UNKNOWN_TOOL
        assert err.name == "petalWeatherTool"
        assert err.known is False

    def test_name_match_is_case_sensitive(self) -> None:
        with pytest.raises(UnknownToolError):
            _decode("petalnotestool", action="list")

    def test_incomplete_record(self) -> None:
        with pytest.raises(ArgumentDecodeError) as exc_info:
            _decode("petalCalendarCreateEventTool", title="Lunch", startDate="2025-01-01 12:00")
        err = exc_info.value
        assert err.kind is ErrorKind.ARGUMENT_DECODE_FAILURE
        assert err.tool == "petalCalendarCreateEventTool"
        assert any("endDate" in e or "end_date" in e for e in err.errors)

    def test_wrong_type(self) -> None:
        with pytest.raises(ArgumentDecodeError):
            _decode("petalContactsTool", action="search", limit="lots")

    def test_single_structured_field_is_not_degenerate(self) -> None:
        with pytest.raises(ArgumentDecodeError):
            _decode("petalCalendarCreateEventTool", recurrence={"frequency": "weekly"})

    def test_detail_is_serializable(self) -> None:
        with pytest.raises(ArgumentDecodeError) as exc_info:
            _decode("petalContactsTool", action="search", limit="lots")
        detail = exc_info.value.detail()
        assert detail["kind"] == "argument_decode_failure"
        assert detail["tool"] == "petalContactsTool"
        assert detail["errors"]
