"""Manifest (petalkit.yaml) schema — Pydantic models."""

from __future__ import annotations

from enum import Enum
from typing import Any

from pydantic import BaseModel, field_validator

from contracts.tool_ids import ToolId
from contracts.tool_sdk import PermissionLevel


# ── Top-level sections ──────────────────────────────────────────────


class AppInfo(BaseModel):
    name: str
    version: str = "0.0.1"


class PolicyMode(str, Enum):
    LOCAL_ONLY = "local_only"
    DEVELOPER = "developer"


class RuntimeConfig(BaseModel):
    base_url: str = "http://127.0.0.1:8080"
    policy_mode: PolicyMode = PolicyMode.LOCAL_ONLY
    summarize_tool_results: bool = False


# ── Policy ───────────────────────────────────────────────────────────


class ToolsPolicy(BaseModel):
    allow: list[str] = []  # empty = every registered tool


class Policy(BaseModel):
    max_permission: PermissionLevel = PermissionLevel.STANDARD
    tools: ToolsPolicy = ToolsPolicy()

    @field_validator("max_permission", mode="before")
    @classmethod
    def _parse_permission(cls, value: Any) -> PermissionLevel:
        return PermissionLevel.parse(value)


# ── Models ───────────────────────────────────────────────────────────


class ModelsConfig(BaseModel):
    backend: str = "ollama"  # "ollama" | "openai"
    default: str = ""
    base_url: str = "http://localhost:11434"
    api_key_env: str = "OPENAI_API_KEY"


# ── Trigger gate ─────────────────────────────────────────────────────


class EmbeddingConfig(BaseModel):
    path: str | None = None  # GloVe / word2vec text file
    limit: int | None = None  # rows to read from *path*
    vectors: dict[str, list[float]] = {}  # inline terms, override the file
    threshold: float = 0.82
    eager: bool = False  # compute every prototype at startup


class NormalizerConfig(BaseModel):
    # None keeps the normalizer's built-in sentinel pairs and tags
    sentinels: list[tuple[str, str]] | None = None
    tags: list[str] | None = None


# ── Executors ────────────────────────────────────────────────────────


class CanvasConfig(BaseModel):
    base_url: str = "https://canvas.instructure.com/api/v1/"
    token_env: str = "CANVAS_API_TOKEN"


# ── Audit ────────────────────────────────────────────────────────────


class AuditConfig(BaseModel):
    path: str | None = "audit.jsonl"  # None keeps entries in memory


# ── Root manifest ────────────────────────────────────────────────────


class Manifest(BaseModel):
    app: AppInfo
    runtime: RuntimeConfig = RuntimeConfig()
    policy: Policy = Policy()
    models: ModelsConfig = ModelsConfig()
    embedding: EmbeddingConfig = EmbeddingConfig()
    exemplars: dict[ToolId, list[str]] = {}
    normalizer: NormalizerConfig = NormalizerConfig()
    canvas: CanvasConfig = CanvasConfig()
    platform: str | None = None  # defaults to sys.platform
    audit: AuditConfig = AuditConfig()
