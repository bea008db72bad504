"""Unit tests for the tool registry and tool descriptors."""

from __future__ import annotations

import threading
from typing import Any

import jsonschema
import pytest

from contracts.calls import NotesArgs
from contracts.manifest import CanvasConfig
from contracts.tool_ids import ToolId
from contracts.tool_sdk import (
    ExecutionResult,
    ParameterType,
    PermissionLevel,
    ToolContext,
    ToolDescriptor,
    ToolExecutor,
    ToolFilterCriteria,
    ToolParameter,
)
from runtime.tools.base import check_descriptor
from runtime.tools.catalog import DESCRIPTORS, descriptor_for
from runtime.tools.registry import ToolRegistry, create_default_registry


# ── helpers ─────────────────────────────────────────────────────────


class StubExecutor(ToolExecutor):
    input_model = NotesArgs

    def __init__(self, descriptor: ToolDescriptor) -> None:
        self._descriptor = descriptor

    def descriptor(self) -> ToolDescriptor:
        return self._descriptor

    async def execute(self, ctx: ToolContext, args: Any) -> ExecutionResult:
        return ExecutionResult.success({"tool": self._descriptor.id.value})


def _stub(tool_id: ToolId, **overrides: Any) -> StubExecutor:
    descriptor = descriptor_for(tool_id)
    if overrides:
        descriptor = descriptor.model_copy(update=overrides)
    return StubExecutor(descriptor)


def _populated() -> ToolRegistry:
    registry = ToolRegistry()
    registry.register(_stub(ToolId.NOTES))
    registry.register(_stub(ToolId.CANVAS_GRADES, required_permission=PermissionLevel.SENSITIVE))
    registry.register(_stub(ToolId.CANVAS_COURSES))
    registry.register(_stub(ToolId.CALENDAR_FETCH_EVENTS, required_permission=PermissionLevel.STANDARD))
    return registry


# ── permission levels ───────────────────────────────────────────────


class TestPermissionLevel:
    def test_total_order(self) -> None:
        assert (
            PermissionLevel.BASIC
            < PermissionLevel.STANDARD
            < PermissionLevel.SENSITIVE
            < PermissionLevel.ADMINISTRATIVE
        )

    def test_parse_name(self) -> None:
        assert PermissionLevel.parse(" Sensitive ") is PermissionLevel.SENSITIVE

    def test_parse_int(self) -> None:
        assert PermissionLevel.parse(1) is PermissionLevel.STANDARD

    def test_parse_unknown(self) -> None:
        with pytest.raises(ValueError, match="Unknown permission level"):
            PermissionLevel.parse("root")


# ── descriptors ─────────────────────────────────────────────────────


class TestDescriptors:
    def test_catalog_covers_every_tool(self) -> None:
        assert set(DESCRIPTORS) == set(ToolId)

    def test_catalog_descriptors_are_valid(self) -> None:
        for descriptor in DESCRIPTORS.values():
            check_descriptor(descriptor)

    def test_as_function(self) -> None:
        fn = descriptor_for(ToolId.CANVAS_GRADES).as_function()
        assert fn["type"] == "function"
        assert fn["function"]["name"] == "petalFetchCanvasGradesTool"
        params = fn["function"]["parameters"]
        assert params["required"] == ["courseName"]
        assert params["properties"]["courseName"]["type"] == "string"

    def test_enumeration_exports_as_string_enum(self) -> None:
        schema = descriptor_for(ToolId.NOTES).input_schema()
        action = schema["properties"]["action"]
        assert action["type"] == "string"
        assert "createNote" in action["enum"]

    def test_bad_example_rejected(self) -> None:
        descriptor = ToolDescriptor(
            id=ToolId.CONTACTS,
            display_name="Contacts",
            description="Contacts",
            domain="contacts",
            parameters=[
                ToolParameter(name="limit", description="max", type=ParameterType.NUMBER, example="ten"),
            ],
        )
        with pytest.raises(jsonschema.ValidationError):
            check_descriptor(descriptor)


# ── registration ────────────────────────────────────────────────────


class TestRegister:
    def test_register_and_get(self) -> None:
        registry = ToolRegistry()
        executor = _stub(ToolId.NOTES)
        entry = registry.register(executor)
        assert registry.get(ToolId.NOTES) is entry
        assert entry.executor is executor
        assert ToolId.NOTES in registry
        assert len(registry) == 1

    def test_get_missing(self) -> None:
        assert ToolRegistry().get(ToolId.CONTACTS) is None

    def test_upsert_replaces(self) -> None:
        registry = ToolRegistry()
        registry.register(_stub(ToolId.NOTES))
        replacement = _stub(ToolId.NOTES, description="Replacement")
        registry.register(replacement)
        assert len(registry) == 1
        assert registry.get(ToolId.NOTES).executor is replacement
        assert registry.list()[0].description == "Replacement"

    def test_unregister(self) -> None:
        registry = _populated()
        assert registry.unregister(ToolId.NOTES) is True
        assert ToolId.NOTES not in registry
        assert registry.unregister(ToolId.NOTES) is False

    def test_list_in_declaration_order(self) -> None:
        ids = _populated().tool_ids()
        assert ids == [
            ToolId.CALENDAR_FETCH_EVENTS,
            ToolId.CANVAS_COURSES,
            ToolId.CANVAS_GRADES,
            ToolId.NOTES,
        ]

    def test_snapshot_unaffected_by_later_writes(self) -> None:
        registry = _populated()
        snapshot = registry.list()
        registry.unregister(ToolId.NOTES)
        assert len(snapshot) == 4

    def test_concurrent_registration(self) -> None:
        registry = ToolRegistry()
        executors = [_stub(t) for t in ToolId]
        barrier = threading.Barrier(len(executors))

        def worker(executor: StubExecutor) -> None:
            barrier.wait()
            registry.register(executor)

        threads = [threading.Thread(target=worker, args=(e,)) for e in executors]
        for t in threads:
            t.start()
        for t in threads:
            t.join()
        assert registry.tool_ids() == list(ToolId)


# ── query ───────────────────────────────────────────────────────────


class TestQuery:
    def test_no_criteria_returns_everything(self) -> None:
        assert len(_populated().query(ToolFilterCriteria())) == 4

    def test_domain_is_case_insensitive_exact(self) -> None:
        registry = _populated()
        found = registry.query(ToolFilterCriteria(domain="Education"))
        assert [d.id for d in found] == [ToolId.CANVAS_COURSES, ToolId.CANVAS_GRADES]
        assert registry.query(ToolFilterCriteria(domain="educ")) == []

    def test_keyword_substring(self) -> None:
        found = _populated().query(ToolFilterCriteria(keyword="GRAD"))
        assert [d.id for d in found] == [ToolId.CANVAS_GRADES]

    def test_max_permission_inclusive(self) -> None:
        registry = _populated()
        standard = registry.query(ToolFilterCriteria(max_permission=PermissionLevel.STANDARD))
        assert ToolId.CALENDAR_FETCH_EVENTS in [d.id for d in standard]
        assert ToolId.CANVAS_GRADES not in [d.id for d in standard]
        basic = registry.query(ToolFilterCriteria(max_permission=PermissionLevel.BASIC))
        assert [d.id for d in basic] == [ToolId.CANVAS_COURSES, ToolId.NOTES]

    def test_criteria_combine_with_and(self) -> None:
        found = _populated().query(
            ToolFilterCriteria(domain="education", keyword="canvas", max_permission=PermissionLevel.STANDARD)
        )
        assert [d.id for d in found] == [ToolId.CANVAS_COURSES]

    def test_function_definitions_filtered(self) -> None:
        defs = _populated().function_definitions(ToolFilterCriteria(domain="notes"))
        assert [d["function"]["name"] for d in defs] == ["petalNotesTool"]


# ── default registry ────────────────────────────────────────────────


class TestDefaultRegistry:
    def test_canvas_without_token(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.delenv("PETALKIT_TEST_CANVAS", raising=False)
        registry = create_default_registry(canvas=CanvasConfig(token_env="PETALKIT_TEST_CANVAS"))
        assert len(registry) == 0

    def test_canvas_with_token(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("PETALKIT_TEST_CANVAS", "secret")
        registry = create_default_registry(canvas=CanvasConfig(token_env="PETALKIT_TEST_CANVAS"))
        assert registry.tool_ids() == [
            ToolId.CANVAS_COURSES,
            ToolId.CANVAS_ASSIGNMENTS,
            ToolId.CANVAS_GRADES,
        ]

    def test_notes_only_on_macos(self) -> None:
        extra = [_stub(ToolId.NOTES), _stub(ToolId.CALENDAR_FETCH_EVENTS)]
        assert ToolId.NOTES in create_default_registry(platform="darwin", extra_executors=extra)
        linux = create_default_registry(platform="linux", extra_executors=extra)
        assert ToolId.NOTES not in linux
        assert ToolId.CALENDAR_FETCH_EVENTS in linux

    def test_contacts_only_on_ios(self) -> None:
        extra = [_stub(ToolId.CONTACTS)]
        assert ToolId.CONTACTS in create_default_registry(platform="ios", extra_executors=extra)
        assert ToolId.CONTACTS not in create_default_registry(platform="darwin", extra_executors=extra)

