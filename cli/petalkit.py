"""PetalKit CLI — validate manifests, run the server, probe the trigger gate,
list tools, and query audit logs."""

from __future__ import annotations

import argparse
import json
import os
import sys
from pathlib import Path

# Ensure project root is importable when running as script
PROJECT_ROOT = Path(__file__).resolve().parent.parent
sys.path.insert(0, str(PROJECT_ROOT))


def _load(path: str | None):
    from runtime.manifest_loader import load_manifest

    try:
        return load_manifest(path)
    except (FileNotFoundError, ValueError) as exc:
        print(f"Error: {exc}", file=sys.stderr)
        sys.exit(1)


def cmd_validate(args: argparse.Namespace) -> None:
    """Validate a petalkit.yaml manifest."""
    from contracts.tool_ids import ToolId

    manifest = _load(args.manifest)

    print(f"Manifest OK: {manifest.app.name} v{manifest.app.version}")
    print(f"  Policy mode:    {manifest.runtime.policy_mode.value}")
    print(f"  Max permission: {manifest.policy.max_permission.label()}")
    print(f"  Model backend:  {manifest.models.backend}")
    print(f"  Default model:  {manifest.models.default or '(none)'}")
    print(f"  Threshold:      {manifest.embedding.threshold}")
    print(f"  Allowed tools:  {', '.join(manifest.policy.tools.allow) or '(all)'}")
    print(f"  Audit path:     {manifest.audit.path or '(memory)'}")

    for tool_name in manifest.policy.tools.allow:
        if ToolId.parse(tool_name) is None:
            print(f"  Warning: tool '{tool_name}' is not a known tool id")
    if manifest.embedding.path and not Path(manifest.embedding.path).exists():
        print(f"  Warning: embedding file not found: {manifest.embedding.path}")


def cmd_run(args: argparse.Namespace) -> None:
    """Start the PetalKit runtime server."""
    from runtime.manifest_loader import MANIFEST_ENV, resolve_manifest_path

    path = resolve_manifest_path(args.manifest)
    manifest = _load(path)
    os.environ[MANIFEST_ENV] = path

    print(f"Starting PetalKit runtime for '{manifest.app.name}'...")
    print(f"  Manifest: {path}")
    print(f"  Host:     {args.host}")
    print(f"  Port:     {args.port}")
    print(f"  Backend:  {manifest.models.backend}")
    print()

    import uvicorn

    uvicorn.run(
        "runtime.app:app",
        host=args.host,
        port=args.port,
        reload=args.reload,
        log_level="info",
    )


def cmd_tools(args: argparse.Namespace) -> None:
    """List registered tools, optionally filtered."""
    from contracts.tool_sdk import PermissionLevel, ToolFilterCriteria
    from runtime.bootstrap import build_components

    manifest = _load(args.manifest)
    try:
        level = PermissionLevel.parse(args.max_permission) if args.max_permission else None
    except ValueError as exc:
        print(f"Error: {exc}", file=sys.stderr)
        sys.exit(1)

    components = build_components(manifest)
    criteria = ToolFilterCriteria(domain=args.domain, keyword=args.keyword, max_permission=level)
    if args.json:
        print(json.dumps(components.registry.function_definitions(criteria), indent=2))
        return

    descriptors = components.registry.query(criteria)
    if not descriptors:
        print("No matching tools registered.")
        return
    for d in descriptors:
        print(f"{d.id.value:34s} {d.domain:10s} {d.required_permission.label():14s} {d.description}")


def cmd_probe(args: argparse.Namespace) -> None:
    """Show trigger similarity scores for a message."""
    from runtime.bootstrap import build_components

    manifest = _load(args.manifest)
    trigger = build_components(manifest).trigger

    scores = trigger.scores(args.message)
    if not scores:
        print("Message does not embed; no tool would trigger.")
        return
    best = trigger.best_match(args.message)
    for tool_id, score in sorted(scores.items(), key=lambda kv: kv[1], reverse=True):
        marker = "*" if score >= trigger.threshold else " "
        print(f"{marker} {score:6.3f}  {tool_id.value}")
    print(f"\nthreshold {trigger.threshold}; best match: {best.value if best else '(none)'}")


def cmd_logs(args: argparse.Namespace) -> None:
    """Query audit logs."""
    from contracts.audit import AuditEvent
    from runtime.audit.logger import JsonlAuditLogger

    log_path = args.log_path
    if not Path(log_path).exists():
        print(f"No audit log found at {log_path}", file=sys.stderr)
        sys.exit(1)

    audit = JsonlAuditLogger(log_path)
    if args.request_id:
        entries = audit.query_by_request(args.request_id)
    elif args.errors is not None:
        entries = audit.query_errors(kind=args.errors or None, limit=args.limit)
    elif args.event:
        try:
            event = AuditEvent(args.event)
        except ValueError:
            valid = ", ".join(e.value for e in AuditEvent)
            print(f"Unknown event type: {args.event}", file=sys.stderr)
            print(f"Valid events: {valid}", file=sys.stderr)
            sys.exit(1)
        entries = audit.query_by_event(event, limit=args.limit)
    else:
        entries = audit.tail(n=args.limit)

    if not entries:
        print("No matching audit entries.")
        return

    for entry in entries:
        record = json.loads(entry.model_dump_json())
        if args.json:
            print(json.dumps(record))
        else:
            ts = record["ts"][:19]
            event = record["event"]
            rid = record["request_id"][:8]
            detail = json.dumps(record.get("detail", {}))
            print(f"{ts}  [{event:16s}]  {rid}  {detail}")


def main() -> None:
    parser = argparse.ArgumentParser(
        prog="petalkit",
        description="PetalKit — tool-calling assistant runtime CLI",
    )
    sub = parser.add_subparsers(dest="command")

    manifest_help = "Path to manifest (default: $PETALKIT_MANIFEST or petalkit.yaml)"

    p_val = sub.add_parser("validate", help="Validate a petalkit.yaml manifest")
    p_val.add_argument("manifest", nargs="?", default=None, help=manifest_help)
    p_val.set_defaults(func=cmd_validate)

    p_run = sub.add_parser("run", help="Start the PetalKit runtime server")
    p_run.add_argument("manifest", nargs="?", default=None, help=manifest_help)
    p_run.add_argument("--host", default="127.0.0.1", help="Bind address")
    p_run.add_argument("--port", type=int, default=8080, help="Port")
    p_run.add_argument("--reload", action="store_true", help="Enable auto-reload")
    p_run.set_defaults(func=cmd_run)

    p_tools = sub.add_parser("tools", help="List registered tools")
    p_tools.add_argument("--manifest", "-m", default=None, help=manifest_help)
    p_tools.add_argument("--domain", "-d", help="Only tools in this domain")
    p_tools.add_argument("--keyword", "-k", help="Substring of a trigger keyword")
    p_tools.add_argument("--max-permission", "-p", help="basic|standard|sensitive|administrative")
    p_tools.add_argument("--json", action="store_true", help="Print function-calling definitions")
    p_tools.set_defaults(func=cmd_tools)

    p_probe = sub.add_parser("probe", help="Score a message against every tool's exemplars")
    p_probe.add_argument("message", help="User message to score")
    p_probe.add_argument("--manifest", "-m", default=None, help=manifest_help)
    p_probe.set_defaults(func=cmd_probe)

    p_logs = sub.add_parser("logs", help="Query audit logs")
    p_logs.add_argument("log_path", help="Path to audit JSONL file")
    p_logs.add_argument("--request-id", "-r", help="Filter by request ID")
    p_logs.add_argument("--event", "-e", help="Filter by event type")
    p_logs.add_argument(
        "--errors", nargs="?", const="", default=None,
        help="Only tool.error entries, optionally of one kind (e.g. unknown_tool)",
    )
    p_logs.add_argument("--limit", "-n", type=int, default=20, help="Max entries")
    p_logs.add_argument("--json", action="store_true", help="Output raw JSON")
    p_logs.set_defaults(func=cmd_logs)

    args = parser.parse_args()
    if not args.command:
        parser.print_help()
        sys.exit(1)

    args.func(args)


if __name__ == "__main__":
    main()
