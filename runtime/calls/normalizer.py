"""Output normalizer — maps the many ways models spell a tool call onto one
``CallEnvelope``.

Recognized encodings, first match wins:

1. sentinel tokens, e.g. ``<|python_tag|>{...}<|eom_id|>``
2. XML-ish tags, e.g. ``<tool_call>{...}</tool_call>``
3. a bare JSON object (optionally inside a Markdown code fence)

Text that matches none of these is returned unchanged.  A wrapper that *is*
present but holds an unusable payload raises ``MalformedCallError``.
"""

from __future__ import annotations

import json
import re
from collections.abc import Mapping, Sequence
from typing import Any

from contracts.calls import CallEnvelope
from contracts.errors import MalformedCallError

DEFAULT_SENTINELS: list[tuple[str, str]] = [
    ("<|python_tag|>", "<|eom_id|>"),
    ("<|tool_call_start|>", "<|tool_call_end|>"),
]
DEFAULT_TAGS: list[str] = ["tool_call", "function_call"]

_NAME_KEYS = ("name", "function", "tool", "tool_name")
_ARGUMENT_KEYS = ("arguments", "parameters", "args", "params", "input")

_FENCE_RE = re.compile(r"```(?:json)?\s*(.*?)\s*```", re.DOTALL)
_MISSING_COLON_RE = re.compile(r'"(%s)(\{)' % "|".join(_ARGUMENT_KEYS))

_decoder = json.JSONDecoder()


# ── Payload repair ───────────────────────────────────────────────────


def _strip_fence(text: str) -> str:
    match = _FENCE_RE.search(text)
    if match and text.lstrip().startswith("```"):
        return match.group(1)
    return text


def _repair(text: str) -> str:
    """Fix the JSON mistakes models are known to make."""
    cleaned = text.replace('\\":{', '":{').replace('\\":', '":')
    return _MISSING_COLON_RE.sub(r'"\1":\2', cleaned)


def _load(text: str) -> Any:
    """Parse the first JSON value in *text*, ignoring anything after it.

    Tries the text as-is, then once more after :func:`_repair`.
    """
    text = _strip_fence(text.strip()).strip()
    try:
        value, _ = _decoder.raw_decode(text)
        return value
    except json.JSONDecodeError:
        repaired = _repair(text)
        if repaired == text:
            raise
    value, _ = _decoder.raw_decode(repaired)
    return value


# ── Shape reconciliation ─────────────────────────────────────────────


def _first_present(data: Mapping[str, Any], keys: Sequence[str]) -> Any:
    for key in keys:
        if key in data and data[key] is not None:
            return data[key]
    return None


def _coerce_arguments(raw: str, value: Any) -> dict[str, Any]:
    if value is None:
        return {}
    if isinstance(value, str):
        if not value.strip():
            return {}
        try:
            value = _load(value)
        except json.JSONDecodeError as exc:
            raise MalformedCallError(raw, f"arguments are not valid JSON ({exc.msg})") from exc
    if not isinstance(value, dict):
        raise MalformedCallError(raw, "arguments are not an object")
    return dict(value)


def _reconcile(raw: str, data: Mapping[str, Any]) -> CallEnvelope | None:
    """Map one parsed call object onto the envelope, or ``None`` if it has no name."""
    nested = data.get("tool_call")
    if isinstance(nested, dict):
        data = nested

    function = data.get("function")
    if isinstance(function, dict):
        # OpenAI shape: {"type": "function", "function": {"name", "arguments"}}
        name = function.get("name")
        arguments = _first_present(function, _ARGUMENT_KEYS)
    else:
        name = _first_present(data, _NAME_KEYS)
        arguments = _first_present(data, _ARGUMENT_KEYS)

    if not isinstance(name, str) or not name.strip():
        return None
    return CallEnvelope(name=name.strip(), arguments=_coerce_arguments(raw, arguments))


def envelope_from_native(name: str, arguments: Any) -> CallEnvelope:
    """Build an envelope from a backend's structured tool call.

    *arguments* may be a mapping or a JSON string, as backends differ.
    """
    raw = f"{name}({arguments!r})"
    if not name or not name.strip():
        raise MalformedCallError(raw, "tool call has no name")
    return CallEnvelope(name=name.strip(), arguments=_coerce_arguments(raw, arguments))


# ── Normalizer ───────────────────────────────────────────────────────


class OutputNormalizer:
    """Stateless after construction; safe to share across requests."""

    def __init__(
        self,
        sentinels: Sequence[tuple[str, str]] | None = None,
        tags: Sequence[str] | None = None,
    ) -> None:
        self.sentinels = list(DEFAULT_SENTINELS if sentinels is None else sentinels)
        self.tags = list(DEFAULT_TAGS if tags is None else tags)

    def normalize(self, raw: str | CallEnvelope) -> CallEnvelope | str:
        if isinstance(raw, CallEnvelope):
            return raw

        for begin, end in self.sentinels:
            payload = self._between(raw, begin, end)
            if payload is not None:
                return self._parse(raw, payload)

        for tag in self.tags:
            payload = self._between(raw, f"<{tag}>", f"</{tag}>")
            if payload is not None:
                return self._parse(raw, payload)

        return self._bare(raw)

    # ── helpers ──────────────────────────────────────────────────────

    @staticmethod
    def _between(text: str, begin: str, end: str) -> str | None:
        start = text.find(begin)
        if start < 0:
            return None
        payload = text[start + len(begin):]
        stop = payload.find(end)
        # unterminated: the payload runs to the end of the text
        return payload if stop < 0 else payload[:stop]

    def _parse(self, raw: str, payload: str) -> CallEnvelope:
        if not payload.strip():
            raise MalformedCallError(raw, "empty call payload")
        try:
            data = _load(payload)
        except json.JSONDecodeError as exc:
            raise MalformedCallError(raw, f"payload is not valid JSON ({exc.msg})") from exc

        if isinstance(data, list):
            data = next((item for item in data if isinstance(item, dict)), None)
            if data is None:
                raise MalformedCallError(raw, "payload array holds no call object")
        if not isinstance(data, dict):
            raise MalformedCallError(raw, "payload is not an object")

        envelope = _reconcile(raw, data)
        if envelope is None:
            raise MalformedCallError(raw, "call has no tool name")
        return envelope

    def _bare(self, raw: str) -> CallEnvelope | str:
        text = raw.strip()
        # only a call that opens the reply counts; prose quoting one is content
        if text.startswith("```"):
            text = _strip_fence(text).strip()
        if not text.startswith("{"):
            return raw

        try:
            data = _load(text)
        except json.JSONDecodeError:
            return raw
        if not isinstance(data, dict):
            return raw
        # plain JSON answers without a name are content, not calls
        return _reconcile(raw, data) or raw
