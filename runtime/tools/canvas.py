"""Canvas LMS tools — courses, assignments and grades over the REST API."""

from __future__ import annotations

import logging
import os
from typing import Any

import httpx

from contracts.calls import CanvasCourseArgs, CanvasCoursesArgs
from contracts.errors import PermissionDeniedError
from contracts.manifest import CanvasConfig
from contracts.tool_ids import ToolId
from contracts.tool_sdk import (
    ExecutionResult,
    ResultStatus,
    SuggestedAction,
    ToolContext,
    ToolDescriptor,
    ToolExecutor,
)
from runtime.tools.catalog import descriptor_for

logger = logging.getLogger(__name__)


class CanvasClient:
    """Thin async client for the handful of Canvas endpoints PetalKit uses."""

    def __init__(
        self,
        base_url: str,
        token: str,
        transport: httpx.AsyncBaseTransport | None = None,
        timeout: float = 30.0,
    ) -> None:
        self._base_url = base_url.rstrip("/") + "/"
        self._token = token
        self._transport = transport
        self._timeout = timeout

    async def get(self, path: str, params: dict[str, Any] | None = None, *, tool: ToolId) -> Any:
        headers = {"Authorization": f"Bearer {self._token}"}
        async with httpx.AsyncClient(
            base_url=self._base_url,
            timeout=self._timeout,
            transport=self._transport,
        ) as client:
            resp = await client.get(path, params=params, headers=headers)
        if resp.status_code in (401, 403):
            raise PermissionDeniedError(
                tool.value, f"Canvas rejected the API token (HTTP {resp.status_code})"
            )
        resp.raise_for_status()
        return resp.json()

    async def courses(self, *, tool: ToolId, active_only: bool = False) -> list[dict[str, Any]]:
        params = {"enrollment_state": "active"} if active_only else None
        return await self.get("courses", params, tool=tool)

    async def find_course(self, name: str, *, tool: ToolId) -> dict[str, Any] | None:
        """First course whose name contains *name*, case-insensitively."""
        needle = name.lower()
        for course in await self.courses(tool=tool):
            if needle in str(course.get("name", "")).lower():
                return course
        return None


def _course_not_found(course_name: str) -> ExecutionResult:
    return ExecutionResult(
        status=ResultStatus.FAILURE,
        error=f"No Canvas course matches '{course_name}'",
        suggested_actions=[
            SuggestedAction(
                title="List my courses",
                description="See the exact course names Canvas knows about",
                tool_id=ToolId.CANVAS_COURSES,
            )
        ],
    )


# ── Executors ────────────────────────────────────────────────────────


class CanvasCoursesExecutor(ToolExecutor):
    input_model = CanvasCoursesArgs

    def __init__(self, client: CanvasClient) -> None:
        self._client = client

    def descriptor(self) -> ToolDescriptor:
        return descriptor_for(ToolId.CANVAS_COURSES)

    async def execute(self, ctx: ToolContext, args: CanvasCoursesArgs) -> ExecutionResult:
        ctx.raise_if_cancelled()
        completed = bool(args.completed)
        courses = await self._client.courses(tool=ToolId.CANVAS_COURSES, active_only=not completed)
        if not completed:
            courses = [c for c in courses if not c.get("completed_at")]
        payload = [
            {
                "id": c.get("id"),
                "name": c.get("name", ""),
                "course_code": c.get("course_code"),
                "workflow_state": c.get("workflow_state"),
            }
            for c in courses
        ]
        actions = [
            SuggestedAction(
                title=f"Assignments for {c['name']}",
                description="Fetch this course's assignments",
                tool_id=ToolId.CANVAS_ASSIGNMENTS,
                parameters={"courseName": c["name"]},
            )
            for c in payload[:3]
        ]
        return ExecutionResult.success(payload, suggested_actions=actions)


class CanvasAssignmentsExecutor(ToolExecutor):
    input_model = CanvasCourseArgs

    def __init__(self, client: CanvasClient) -> None:
        self._client = client

    def descriptor(self) -> ToolDescriptor:
        return descriptor_for(ToolId.CANVAS_ASSIGNMENTS)

    async def execute(self, ctx: ToolContext, args: CanvasCourseArgs) -> ExecutionResult:
        tool = ToolId.CANVAS_ASSIGNMENTS
        course = await self._client.find_course(args.course_name, tool=tool)
        if course is None:
            return _course_not_found(args.course_name)
        ctx.raise_if_cancelled()

        rows = await self._client.get(f"courses/{course['id']}/assignments", tool=tool)
        payload = [
            {"name": a.get("name", ""), "due_at": a.get("due_at"), "points_possible": a.get("points_possible")}
            for a in rows
        ]
        return ExecutionResult.success(
            {"course": course.get("name"), "assignments": payload},
            suggested_actions=[
                SuggestedAction(
                    title=f"Grades for {course.get('name')}",
                    description="Fetch your grades in this course",
                    tool_id=ToolId.CANVAS_GRADES,
                    parameters={"courseName": course.get("name")},
                )
            ],
        )


class CanvasGradesExecutor(ToolExecutor):
    input_model = CanvasCourseArgs

    def __init__(self, client: CanvasClient) -> None:
        self._client = client

    def descriptor(self) -> ToolDescriptor:
        return descriptor_for(ToolId.CANVAS_GRADES)

    async def execute(self, ctx: ToolContext, args: CanvasCourseArgs) -> ExecutionResult:
        tool = ToolId.CANVAS_GRADES
        course = await self._client.find_course(args.course_name, tool=tool)
        if course is None:
            return _course_not_found(args.course_name)
        ctx.raise_if_cancelled()

        rows = await self._client.get(
            f"courses/{course['id']}/students/submissions",
            {"include[]": "assignment"},
            tool=tool,
        )
        payload = [
            {
                "assignment": (s.get("assignment") or {}).get("name") or f"Assignment {s.get('assignment_id')}",
                "grade": s.get("grade"),
                "score": s.get("score"),
            }
            for s in rows
        ]
        return ExecutionResult.success({"course": course.get("name"), "grades": payload})


def canvas_executors(config: CanvasConfig, transport: httpx.AsyncBaseTransport | None = None) -> list[ToolExecutor]:
    """Executors for the Canvas tools, or ``[]`` when no token is configured."""
    token = os.environ.get(config.token_env, "")
    if not token:
        logger.info("Canvas tools disabled: %s is not set", config.token_env)
        return []
    client = CanvasClient(config.base_url, token, transport=transport)
    return [
        CanvasCoursesExecutor(client),
        CanvasAssignmentsExecutor(client),
        CanvasGradesExecutor(client),
    ]
