#!/usr/bin/env python3
"""Simple client for the study-assistant demo.

Sends a message to the PetalKit runtime via its OpenAI-compatible API and
prints the reply, the tool that ran (if any) and suggested follow-ups.

Usage:
    python apps/study-assistant/client/ask.py "Show me my Canvas courses"
    python apps/study-assistant/client/ask.py --probe "Get my Canvas grades"
"""

import json
import sys
import urllib.error
import urllib.request

PETALKIT_URL = "http://localhost:8080"
MODEL = "llama3.1:8b"


def _post(path: str, payload: dict) -> dict:
    req = urllib.request.Request(
        f"{PETALKIT_URL}{path}",
        data=json.dumps(payload).encode("utf-8"),
        headers={"Content-Type": "application/json"},
    )
    try:
        with urllib.request.urlopen(req) as resp:
            return json.loads(resp.read().decode("utf-8"))
    except urllib.error.URLError as exc:
        print(f"Error connecting to PetalKit at {PETALKIT_URL}", file=sys.stderr)
        print("Is the runtime running? (petalkit run apps/study-assistant/petalkit.yaml)", file=sys.stderr)
        print(f"Details: {exc}", file=sys.stderr)
        sys.exit(1)


def ask(message: str) -> None:
    body = _post(
        "/v1/chat/completions",
        {"model": MODEL, "messages": [{"role": "user", "content": message}]},
    )
    print(body["choices"][0]["message"]["content"])

    trace = body.get("trace") or {}
    if trace.get("tool"):
        print(f"\n[tool: {trace['tool']} status: {trace.get('status') or trace.get('error_kind')}]")
    for action in trace.get("suggested_actions", []):
        print(f"  -> {action['title']} ({action['tool_id']} {json.dumps(action.get('parameters') or {})})")


def probe(message: str) -> None:
    body = _post("/v1/petalkit/trigger", {"message": message})
    print(f"should_use_tools: {body['should_use_tools']}  best_match: {body['best_match']}")
    for tool, score in sorted(body["scores"].items(), key=lambda kv: kv[1], reverse=True):
        print(f"  {score:6.3f}  {tool}")


def main() -> None:
    args = sys.argv[1:]
    if not args:
        print("Usage: python apps/study-assistant/client/ask.py [--probe] \"<message>\"", file=sys.stderr)
        sys.exit(1)

    if args[0] == "--probe":
        probe(" ".join(args[1:]))
    else:
        ask(" ".join(args))


if __name__ == "__main__":
    main()
