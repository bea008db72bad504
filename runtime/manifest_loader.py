"""Manifest loader — parse and validate petalkit.yaml."""

from __future__ import annotations

import os
from pathlib import Path

import yaml
from pydantic import ValidationError

from contracts.errors import validation_messages
from contracts.manifest import Manifest

MANIFEST_ENV = "PETALKIT_MANIFEST"
DEFAULT_MANIFEST = "petalkit.yaml"


def resolve_manifest_path(path: str | None = None) -> str:
    """Explicit *path*, else ``$PETALKIT_MANIFEST``, else ``petalkit.yaml``."""
    return path or os.environ.get(MANIFEST_ENV) or DEFAULT_MANIFEST


def load_manifest(path: str | None = None) -> Manifest:
    """Load a petalkit.yaml file and return a validated Manifest."""
    p = Path(resolve_manifest_path(path))
    if not p.exists():
        raise FileNotFoundError(f"Manifest not found: {p}")

    raw = p.read_text(encoding="utf-8")
    data = yaml.safe_load(raw)
    if not isinstance(data, dict):
        raise ValueError(f"Manifest must be a YAML mapping, got {type(data).__name__}")

    try:
        return Manifest(**data)
    except ValidationError as exc:
        problems = "; ".join(validation_messages(exc))
        raise ValueError(f"Invalid manifest {p}: {problems}") from exc
