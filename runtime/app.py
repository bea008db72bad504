"""PetalKit FastAPI runtime server."""

from __future__ import annotations

import logging
import time
from contextlib import asynccontextmanager
from typing import Any, AsyncIterator

import httpx
from fastapi import FastAPI, HTTPException, Query, Request
from fastapi.middleware.cors import CORSMiddleware
from pydantic import BaseModel

from contracts.api import ChatRequest, ChatResponse
from contracts.audit import AuditEntry
from contracts.tool_ids import ToolId
from contracts.tool_sdk import PermissionLevel, ToolFilterCriteria

from runtime.bootstrap import PetalKitComponents, init_petalkit

logger = logging.getLogger(__name__)

VERSION = "0.1.0"


class TriggerProbe(BaseModel):
    message: str


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    """Build components from ``PETALKIT_MANIFEST`` unless they were injected."""
    app.state.start_time = time.time()
    if app.state.components is None:
        try:
            app.state.components = init_petalkit()
        except (FileNotFoundError, ValueError) as exc:
            # endpoints answer 503 until a valid manifest is provided
            logger.error("PetalKit runtime not initialised: %s", exc)
    yield


def _components(request: Request) -> PetalKitComponents:
    components = request.app.state.components
    if components is None:
        raise HTTPException(status_code=503, detail="Runtime not initialised")
    return components


def create_app(components: PetalKitComponents | None = None) -> FastAPI:
    """Create the FastAPI application; pass *components* to skip manifest loading."""
    app = FastAPI(title="PetalKit Runtime", version=VERSION, lifespan=lifespan)
    app.state.components = components
    app.state.start_time = time.time()

    app.add_middleware(
        CORSMiddleware,
        allow_origin_regex=r"^https?://(localhost|127\.0\.0\.1)(:\d+)?$",
        allow_methods=["*"],
        allow_headers=["*"],
    )

    # ── Endpoints ────────────────────────────────────────────────────

    @app.get("/v1/petalkit/health")
    async def health(request: Request) -> dict[str, Any]:
        result: dict[str, Any] = {
            "status": "ok",
            "version": VERSION,
            "uptime_seconds": round(time.time() - request.app.state.start_time, 1),
        }
        c: PetalKitComponents | None = request.app.state.components
        if c is None:
            result["status"] = "uninitialised"
            return result

        m = c.manifest
        result["manifest"] = {
            "app": m.app.name,
            "app_version": m.app.version,
            "policy_mode": m.runtime.policy_mode.value,
            "max_permission": m.policy.max_permission.label(),
            "model_backend": m.models.backend,
            "default_model": m.models.default,
            "trigger_threshold": c.trigger.threshold,
        }
        result["tools"] = [t.value for t in c.registry.tool_ids()]

        if m.models.backend == "ollama":
            backend: dict[str, Any] = {"reachable": False, "models": []}
            try:
                async with httpx.AsyncClient(timeout=3.0) as client:
                    resp = await client.get(f"{m.models.base_url.rstrip('/')}/api/tags")
                if resp.status_code == 200:
                    backend["reachable"] = True
                    backend["models"] = [x.get("name", "") for x in resp.json().get("models", [])]
            except httpx.HTTPError:
                pass
            result["ollama"] = backend
        return result

    @app.post("/v1/chat/completions")
    async def chat_completions(body: ChatRequest, request: Request) -> ChatResponse:
        """OpenAI-compatible chat completions."""
        c = _components(request)
        try:
            return await c.router.run(body, c.manifest)
        except httpx.HTTPError as exc:
            raise HTTPException(status_code=502, detail=f"Model backend error: {exc}") from exc

    @app.get("/v1/petalkit/tools")
    async def tools(
        request: Request,
        domain: str | None = Query(None),
        keyword: str | None = Query(None),
        max_permission: str | None = Query(None),
    ) -> dict[str, Any]:
        """Registered tools in function-calling export shape."""
        c = _components(request)
        try:
            level = PermissionLevel.parse(max_permission) if max_permission else None
        except ValueError as exc:
            raise HTTPException(status_code=422, detail=str(exc)) from exc
        criteria = ToolFilterCriteria(domain=domain, keyword=keyword, max_permission=level)
        definitions = c.registry.function_definitions(criteria)
        return {"tools": definitions, "total": len(definitions)}

    @app.post("/v1/petalkit/trigger")
    async def trigger(body: TriggerProbe, request: Request) -> dict[str, Any]:
        """Similarity gate decision for a message, without calling the model."""
        c = _components(request)
        best: ToolId | None = c.trigger.best_match(body.message)
        return {
            "should_use_tools": c.trigger.should_use_any_tool(body.message),
            "best_match": best.value if best else None,
            "scores": {t.value: round(s, 4) for t, s in c.trigger.scores(body.message).items()},
            "threshold": c.trigger.threshold,
        }

    @app.get("/v1/petalkit/audit/{request_id}")
    async def audit_query(request_id: str, request: Request) -> list[AuditEntry]:
        """Return audit entries for a given request_id."""
        return _components(request).logger.query_by_request(request_id)

    return app


app = create_app()
