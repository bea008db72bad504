"""Tool router — gate, model, normalize, decode, authorize, dispatch, render.

Every request yields a response: call-parsing failures fall back to the
model's own text, and permission or execution failures become error text.
Each step is written to the audit sink.
"""

from __future__ import annotations

import logging
import uuid
from typing import Any

import httpx

from contracts.api import (
    ChatRequest,
    ChatResponse,
    Choice,
    Message,
    Role,
    TraceMeta,
)
from contracts.audit import AuditEntry, AuditEvent, AuditLogger
from contracts.calls import CallEnvelope
from contracts.errors import ErrorKind, PermissionDeniedError, PetalKitError
from contracts.manifest import Manifest
from contracts.model import ModelAdapter
from contracts.policy import PolicyEngine, PolicyVerdict
from contracts.tool_sdk import ToolContext
from runtime.calls.decoder import decode_call
from runtime.calls.normalizer import OutputNormalizer, envelope_from_native
from runtime.dispatcher import Dispatcher
from runtime.nlu.trigger import TriggerEvaluator
from runtime.renderer import RenderedResult, ResultRenderer
from runtime.tools.catalog import descriptor_for
from runtime.tools.registry import ToolRegistry

logger = logging.getLogger(__name__)

_SUMMARY_PROMPT = (
    "Rewrite the following tool output as a short, friendly answer to my last "
    "message. Keep every date, name and number exactly as given.\n\n{text}"
)


class ToolRouter:
    """Runs one user turn through the tool-invocation pipeline."""

    def __init__(
        self,
        policy: PolicyEngine,
        registry: ToolRegistry,
        logger: AuditLogger,
        adapter: ModelAdapter,
        trigger: TriggerEvaluator,
        normalizer: OutputNormalizer | None = None,
        renderer: ResultRenderer | None = None,
    ) -> None:
        self._policy = policy
        self._registry = registry
        self._logger = logger
        self._adapter = adapter
        self._trigger = trigger
        self._normalizer = normalizer or OutputNormalizer()
        self._renderer = renderer or ResultRenderer()
        self._dispatcher = Dispatcher(registry)

    async def run(self, request: ChatRequest, manifest: Manifest) -> ChatResponse:
        request_id = str(uuid.uuid4())
        model = manifest.models.default or request.model
        app_name = manifest.app.name

        def audit(event: AuditEvent, **detail: Any) -> None:
            self._logger.log(
                AuditEntry(
                    request_id=request_id,
                    event=event,
                    app=app_name,
                    model=model,
                    policy_mode=manifest.runtime.policy_mode.value,
                    detail=detail,
                )
            )

        audit(AuditEvent.REQUEST_START)
        trace = TraceMeta(
            request_id=request_id,
            policy_mode=manifest.runtime.policy_mode.value,
            model=model,
        )

        messages = list(request.messages)
        if messages and messages[0].role != Role.SYSTEM:
            system_prompt = f"You are {app_name}, a PetalKit-powered assistant."
            messages.insert(0, Message(role=Role.SYSTEM, content=system_prompt))

        # ── gate ──
        user_text = self._last_user_text(messages)
        trace.triggered = bool(user_text) and self._trigger.should_use_any_tool(user_text)
        if trace.triggered:
            audit(AuditEvent.TRIGGER_DECISION, triggered=True, best_match=self._best_match(user_text))
        else:
            audit(
                AuditEvent.TRIGGER_DECISION,
                triggered=False,
                kind=ErrorKind.NOT_A_TRIGGER_CANDIDATE.value,
            )

        tool_defs = self._permitted_tools() if trace.triggered else None
        reply = await self._adapter.chat(messages, model, tools=tool_defs or None)

        if trace.triggered:
            reply = await self._handle_call(reply, messages, model, manifest, trace, audit)

        audit(
            AuditEvent.REQUEST_END,
            tool=trace.tool,
            status=trace.status.value if trace.status else None,
            error_kind=trace.error_kind,
        )
        return ChatResponse(
            id=request_id,
            model=model,
            choices=[Choice(index=0, message=reply, finish_reason="stop")],
            trace=trace,
        )

    # ── pipeline steps ───────────────────────────────────────────────

    async def _handle_call(
        self,
        reply: Message,
        messages: list[Message],
        model: str,
        manifest: Manifest,
        trace: TraceMeta,
        audit: Any,
    ) -> Message:
        raw_text = reply.content or ""

        # normalize + decode; failures fall back to the model's own text
        try:
            envelope = self._envelope(reply)
            if envelope is None:
                return reply
            call = decode_call(envelope)
        except PetalKitError as exc:
            self._record_error(exc, trace, audit)
            if raw_text.strip():
                return Message(role=Role.ASSISTANT, content=raw_text)
            return self._as_message(self._renderer.render_error(exc))

        trace.tool = call.tool.value

        # authorize against the registered descriptor when there is one
        entry = self._registry.get(call.tool)
        descriptor = entry.descriptor if entry is not None else descriptor_for(call.tool)
        decision = self._policy.check_tool(descriptor)
        if decision.verdict == PolicyVerdict.DENY:
            audit(AuditEvent.POLICY_BLOCK, tool=call.tool.value, rule=decision.rule, reason=decision.reason)
            denied = PermissionDeniedError(call.tool.value, decision.reason)
            self._record_error(denied, trace, audit)
            return self._as_message(self._renderer.render_error(denied))

        # dispatch
        audit(AuditEvent.TOOL_CALL, tool=call.tool.value, arguments=call.to_payload())
        ctx = ToolContext(
            request_id=trace.request_id,
            app_name=manifest.app.name,
            granted_permission=manifest.policy.max_permission,
        )
        try:
            result = await self._dispatcher.dispatch(call, ctx)
        except PetalKitError as exc:
            self._record_error(exc, trace, audit)
            return self._as_message(self._renderer.render_error(exc))

        trace.status = result.status
        audit(AuditEvent.TOOL_RESULT, tool=call.tool.value, status=result.status.value)

        rendered = self._renderer.render(call.tool, result)
        trace.suggested_actions = rendered.suggested_actions
        if manifest.runtime.summarize_tool_results:
            rendered = await self._summarize(rendered, messages, model)
        return self._as_message(rendered)

    def _envelope(self, reply: Message) -> CallEnvelope | None:
        if reply.tool_calls:
            fn = reply.tool_calls[0].function
            return envelope_from_native(fn.name, fn.arguments)
        normalized = self._normalizer.normalize(reply.content or "")
        return normalized if isinstance(normalized, CallEnvelope) else None

    async def _summarize(
        self,
        rendered: RenderedResult,
        messages: list[Message],
        model: str,
    ) -> RenderedResult:
        """Ask the model to rephrase the rendered text; keep it on failure."""
        prompt = Message(role=Role.USER, content=_SUMMARY_PROMPT.format(text=rendered.text))
        try:
            summary = await self._adapter.chat([*messages, prompt], model, tools=None)
        except (httpx.HTTPError, ValueError) as exc:
            # covers undecodable bodies and reply shapes pydantic rejects
            logger.warning("Summarization failed, using rendered text: %s", exc)
            return rendered
        if not summary.content:
            return rendered
        return RenderedResult(text=summary.content, suggested_actions=rendered.suggested_actions)

    # ── helpers ──────────────────────────────────────────────────────

    def _permitted_tools(self) -> list[dict[str, Any]]:
        return [
            d.as_function()
            for d in self._registry.list()
            if self._policy.check_tool(d).verdict == PolicyVerdict.ALLOW
        ]

    def _best_match(self, text: str) -> str | None:
        best = self._trigger.best_match(text)
        return best.value if best else None

    @staticmethod
    def _record_error(exc: PetalKitError, trace: TraceMeta, audit: Any) -> None:
        trace.error_kind = exc.kind.value
        audit(AuditEvent.TOOL_ERROR, **exc.detail())

    @staticmethod
    def _last_user_text(messages: list[Message]) -> str:
        for msg in reversed(messages):
            if msg.role == Role.USER and msg.content:
                return msg.content
        return ""

    @staticmethod
    def _as_message(rendered: RenderedResult) -> Message:
        return Message(role=Role.ASSISTANT, content=rendered.text)
