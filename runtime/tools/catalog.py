"""Static descriptors for every PetalKit tool.

Executors return these from ``descriptor()``; platforms that can't run a
tool still use the descriptor for exemplar-free listing and rendering.
"""

from __future__ import annotations

from contracts.tool_ids import ToolId
from contracts.tool_sdk import (
    ParameterType as T,
    ToolDescriptor,
    ToolParameter as P,
)

_ISO = "(ISO 8601, e.g. 2025-03-20T10:00:00Z)"

CALENDAR_FETCH_EVENTS = ToolDescriptor(
    id=ToolId.CALENDAR_FETCH_EVENTS,
    display_name="Petal Calendar Fetch Events Tool",
    description="Fetches calendar events with flexible filtering options.",
    domain="calendar",
    trigger_keywords=["events", "fetch"],
    parameters=[
        P(name="startDate", description=f"Start of the date range {_ISO}; defaults to now", type=T.DATE,
          example="2025-03-15T00:00:00Z"),
        P(name="endDate", description="End of the date range; defaults to one week after start", type=T.DATE,
          example="2025-03-22T00:00:00Z"),
        P(name="calendarNames", description="Calendars to fetch from; all when omitted", type=T.ARRAY,
          example=["Work", "Personal"]),
        P(name="searchText", description="Text to match in event titles and locations", example="Meeting"),
        P(name="includeAllDay", description="Whether to include all-day events", type=T.BOOLEAN, example=True),
        P(name="status", description="Event status filter", type=T.ENUMERATION,
          enum_values=["none", "tentative", "confirmed", "canceled"]),
        P(name="availability", description="Availability filter", type=T.ENUMERATION,
          enum_values=["busy", "free", "tentative", "unavailable"]),
        P(name="hasAlarms", description="Only events that have alarms set", type=T.BOOLEAN),
        P(name="isRecurring", description="Only recurring events", type=T.BOOLEAN),
    ],
)

CALENDAR_CREATE_EVENT = ToolDescriptor(
    id=ToolId.CALENDAR_CREATE_EVENT,
    display_name="Petal Calendar Create Event Tool",
    description="Creates a new calendar event with specified properties.",
    domain="calendar",
    trigger_keywords=["calendar", "create", "event"],
    parameters=[
        P(name="title", description="The title of the event", required=True, example="Team Meeting"),
        P(name="startDate", description=f"Event start {_ISO}", type=T.DATE, required=True),
        P(name="endDate", description=f"Event end {_ISO}", type=T.DATE, required=True),
        P(name="calendarName", description="Calendar to create the event in; default calendar when omitted"),
        P(name="location", description="Location of the event", example="Conference Room A"),
        P(name="notes", description="Notes or description for the event"),
        P(name="url", description="URL associated with the event, e.g. a meeting link"),
        P(name="isAllDay", description="Whether this is an all-day event", type=T.BOOLEAN),
        P(name="availability", description="Availability status", type=T.ENUMERATION,
          enum_values=["busy", "free", "tentative", "unavailable"]),
        P(name="alarms", description="Minutes before the event to set alarms", type=T.ARRAY, example=[15, 60]),
        P(name="recurrence", description="Recurrence rule: frequency, interval, endDate, occurrences",
          type=T.OBJECT, example={"frequency": "weekly", "interval": 1}),
    ],
)

FETCH_REMINDERS = ToolDescriptor(
    id=ToolId.FETCH_REMINDERS,
    display_name="Petal Fetch Reminders Tool",
    description="Fetches reminders from the Reminders app with optional filtering.",
    domain="reminders",
    trigger_keywords=["reminders", "tasks", "list reminders"],
    parameters=[
        P(name="completed", description="true for completed, false for incomplete; all when omitted",
          type=T.BOOLEAN),
        P(name="startDate", description="Only reminders due on or after this date", type=T.DATE),
        P(name="endDate", description="Only reminders due on or before this date", type=T.DATE),
        P(name="listNames", description="Reminder lists to fetch from", type=T.ARRAY),
        P(name="searchText", description="Match reminders by title", example="Doctor appointment"),
    ],
)

REMINDERS = ToolDescriptor(
    id=ToolId.REMINDERS,
    display_name="Petal Reminders Tool",
    description="Finds, creates, lists, and opens reminders in the Reminders app.",
    domain="reminders",
    trigger_keywords=["reminders", "reminder", "task", "tasks", "todo", "todos"],
    parameters=[
        P(name="action", description="The action to perform", type=T.ENUMERATION, required=True,
          enum_values=["getAllLists", "getAllReminders", "searchReminders", "createReminder", "openReminder"]),
        P(name="listName", description="Name of the reminder list to work with"),
        P(name="searchText", description="Text to search for (searchReminders, openReminder)"),
        P(name="name", description="Name for the new reminder (createReminder)"),
        P(name="notes", description="Notes for the new reminder (createReminder)"),
        P(name="dueDate", description="Due date for the new reminder (createReminder)", type=T.DATE),
    ],
)

CANVAS_COURSES = ToolDescriptor(
    id=ToolId.CANVAS_COURSES,
    display_name="Fetch Canvas Courses Tool",
    description="Lists the user's Canvas courses.",
    domain="education",
    trigger_keywords=["canvas", "courses", "classes"],
    parameters=[
        P(name="completed", description="Whether to include completed courses; false lists active ones only",
          type=T.BOOLEAN),
    ],
)

CANVAS_ASSIGNMENTS = ToolDescriptor(
    id=ToolId.CANVAS_ASSIGNMENTS,
    display_name="Fetch Canvas Assignments Tool",
    description="Fetches assignments for a specific Canvas course.",
    domain="education",
    trigger_keywords=["canvas", "assignments", "homework"],
    parameters=[
        P(name="courseName", description="Name of the course to fetch assignments for", required=True,
          example="EECS 449"),
    ],
)

CANVAS_GRADES = ToolDescriptor(
    id=ToolId.CANVAS_GRADES,
    display_name="Fetch Canvas Grades Tool",
    description="Fetches grades for a specific Canvas course.",
    domain="education",
    trigger_keywords=["canvas", "grades", "scores"],
    parameters=[
        P(name="courseName", description="Name of the course to fetch grades for", required=True,
          example="EECS 449"),
    ],
)

NOTES = ToolDescriptor(
    id=ToolId.NOTES,
    display_name="Petal Notes Tool",
    description="Finds, creates, and lists notes in the Notes app.",
    domain="notes",
    trigger_keywords=["notes", "note", "memo", "memos"],
    parameters=[
        P(name="action", description="The action to perform", type=T.ENUMERATION, required=True,
          enum_values=["getAllNotes", "searchNotes", "createNote", "getFolders"]),
        P(name="searchText", description="Text to search for (searchNotes)", example="Project ideas"),
        P(name="title", description="Title for the new note (createNote)"),
        P(name="body", description="Content for the new note (createNote)"),
        P(name="folderName", description="Folder for the new note (createNote)"),
    ],
)

CONTACTS = ToolDescriptor(
    id=ToolId.CONTACTS,
    display_name="Petal Contacts Tool",
    description="Lists or searches contacts and returns names, phone numbers, and emails.",
    domain="contacts",
    trigger_keywords=["contacts", "phone", "email", "number"],
    parameters=[
        P(name="action", description="The action to perform", type=T.ENUMERATION, required=True,
          enum_values=["searchContacts", "listContacts"]),
        P(name="query", description="Name or substring to search (searchContacts)", example="Alice"),
        P(name="limit", description="Maximum number of contacts to return", type=T.NUMBER, example=10),
        P(name="includePhones", description="Whether to include phone numbers", type=T.BOOLEAN),
        P(name="includeEmails", description="Whether to include email addresses", type=T.BOOLEAN),
    ],
)

DESCRIPTORS: dict[ToolId, ToolDescriptor] = {
    d.id: d
    for d in (
        CALENDAR_FETCH_EVENTS,
        CALENDAR_CREATE_EVENT,
        FETCH_REMINDERS,
        REMINDERS,
        CANVAS_COURSES,
        CANVAS_ASSIGNMENTS,
        CANVAS_GRADES,
        NOTES,
        CONTACTS,
    )
}


def descriptor_for(tool_id: ToolId) -> ToolDescriptor:
    return DESCRIPTORS[tool_id]
