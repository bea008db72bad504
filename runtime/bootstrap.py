"""Shared initialisation logic for the PetalKit HTTP server and CLI."""

from __future__ import annotations

import logging
from collections.abc import Iterable
from dataclasses import dataclass

from contracts.audit import AuditLogger
from contracts.manifest import Manifest
from contracts.model import ModelAdapter
from contracts.tool_sdk import ToolExecutor
from runtime.audit.logger import JsonlAuditLogger, MemoryAuditLogger
from runtime.calls.normalizer import OutputNormalizer
from runtime.embedding_adapters.word_vectors import WordVectorSpace
from runtime.manifest_loader import load_manifest
from runtime.nlu.embedding import EmbeddingEngine
from runtime.nlu.exemplars import DEFAULT_EXEMPLARS, ExemplarStore
from runtime.nlu.trigger import TriggerEvaluator
from runtime.policy import PermissionPolicyEngine
from runtime.renderer import ResultRenderer
from runtime.tool_router import ToolRouter
from runtime.tools.registry import ToolRegistry, create_default_registry

logger = logging.getLogger(__name__)


def create_model_adapter(manifest: Manifest) -> ModelAdapter:
    """Model backend named by ``models.backend``."""
    backend = manifest.models.backend
    if backend == "ollama":
        from runtime.model_adapters.ollama import OllamaAdapter
        return OllamaAdapter(base_url=manifest.models.base_url)
    if backend == "openai":
        from runtime.model_adapters.openai_compat import OpenAICompatAdapter
        return OpenAICompatAdapter(
            base_url=manifest.models.base_url,
            api_key_env=manifest.models.api_key_env,
        )
    raise ValueError(f"Unknown model backend: {backend!r}")


def create_embedding_space(manifest: Manifest) -> WordVectorSpace:
    """Vector file from ``embedding.path``, overlaid with inline ``embedding.vectors``."""
    cfg = manifest.embedding
    vectors: dict[str, list[float]] = {}
    if cfg.path:
        file_space = WordVectorSpace.from_file(cfg.path, limit=cfg.limit)
        vectors.update(file_space.items())
    vectors.update(cfg.vectors)
    if not vectors:
        logger.warning("No embedding vectors configured; no message will trigger a tool")
    return WordVectorSpace(vectors)


@dataclass
class PetalKitComponents:
    """Container for initialised PetalKit components."""

    manifest: Manifest
    policy: PermissionPolicyEngine
    registry: ToolRegistry
    logger: AuditLogger
    trigger: TriggerEvaluator
    router: ToolRouter


def build_components(
    manifest: Manifest,
    *,
    adapter: ModelAdapter | None = None,
    space: WordVectorSpace | None = None,
    extra_executors: Iterable[ToolExecutor] = (),
    audit: AuditLogger | None = None,
) -> PetalKitComponents:
    """Wire every component from a parsed manifest.

    Keyword arguments replace the manifest-driven defaults, which is how
    tests and embedding hosts inject fakes and platform executors.
    """
    policy = PermissionPolicyEngine(manifest)

    registry = create_default_registry(
        canvas=manifest.canvas,
        platform=manifest.platform,
        extra_executors=extra_executors,
    )

    if audit is None:
        audit = JsonlAuditLogger(manifest.audit.path) if manifest.audit.path else MemoryAuditLogger()

    engine = EmbeddingEngine(space if space is not None else create_embedding_space(manifest))
    exemplars = {**DEFAULT_EXEMPLARS, **manifest.exemplars}
    store = ExemplarStore(engine, exemplars, eager=manifest.embedding.eager)
    trigger = TriggerEvaluator(engine, store, threshold=manifest.embedding.threshold)

    router = ToolRouter(
        policy=policy,
        registry=registry,
        logger=audit,
        adapter=adapter or create_model_adapter(manifest),
        trigger=trigger,
        normalizer=OutputNormalizer(
            sentinels=manifest.normalizer.sentinels,
            tags=manifest.normalizer.tags,
        ),
        renderer=ResultRenderer(),
    )

    return PetalKitComponents(
        manifest=manifest,
        policy=policy,
        registry=registry,
        logger=audit,
        trigger=trigger,
        router=router,
    )


def init_petalkit(manifest_path: str | None = None) -> PetalKitComponents:
    """Load the manifest and build every component.

    Uses ``PETALKIT_MANIFEST`` if *manifest_path* is not provided.
    """
    manifest = load_manifest(manifest_path)
    components = build_components(manifest)
    logger.info(
        "PetalKit ready: app=%s backend=%s tools=%d",
        manifest.app.name,
        manifest.models.backend,
        len(components.registry),
    )
    return components
