"""
Command-line client for a running focusguard engine.

Usage:
    focusguard status
    focusguard start --minutes 25 --category social_media --app Slack --site news.ycombinator.com
    focusguard start --preset "Deep Work" --goal "Write chapter 3"
    focusguard pause | resume | stop
    focusguard extend [--minutes 5]
    focusguard snooze Twitter --kind app [--minutes 3]
    focusguard presets | history
"""

from __future__ import annotations

import argparse
import sys
from typing import List, Optional

import httpx

from .config import config


def _print_state(state: dict) -> None:
    s = state.get("session")
    if not s:
        print("No focus session.")
        return
    goal = s["goal"] or "(no goal)"
    print(f"{state['state'].upper():7} {state['remaining_label']} left  {goal}")
    policy = state["policy"]
    if policy["apps"]:
        print("  apps:     " + ", ".join(policy["apps"]))
    if policy["websites"]:
        print("  websites: " + ", ".join(policy["websites"]))
    for snooze in state["snoozes"]:
        print(f"  snoozed:  {snooze['target']} ({snooze['kind']})")


def _request(client: httpx.Client, method: str, path: str, **kwargs) -> httpx.Response:
    r = client.request(method, path, **kwargs)
    if r.status_code >= 400:
        detail = r.json().get("detail", r.text) if r.headers.get("content-type", "").startswith("application/json") else r.text
        raise SystemExit(f"error: {detail}")
    return r


def _find_preset(client: httpx.Client, name: str) -> dict:
    for preset in _request(client, "GET", "/presets").json():
        if preset["name"].lower() == name.lower() or preset["id"] == name:
            return preset
    raise SystemExit(f"error: no preset named {name!r}")


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="focusguard", description="Focus session control")
    parser.add_argument(
        "--url", default=f"http://{config.api_host}:{config.api_port}", help="Engine API URL"
    )
    sub = parser.add_subparsers(dest="command", required=True)

    sub.add_parser("status", help="Show the current session")

    start = sub.add_parser("start", help="Start a session")
    start.add_argument("--minutes", type=float, default=25.0)
    start.add_argument("--goal", default="")
    start.add_argument("--category", action="append", default=[], dest="categories")
    start.add_argument("--app", action="append", default=[], dest="apps")
    start.add_argument("--site", action="append", default=[], dest="websites")
    start.add_argument("--preset", help="Start from a saved preset (name or id)")

    sub.add_parser("pause", help="Pause and lift all blocks")
    sub.add_parser("resume", help="Resume and re-apply blocks")
    sub.add_parser("stop", help="Stop and record the session")

    extend = sub.add_parser("extend", help="Add time to the session")
    extend.add_argument("--minutes", type=float, default=None)

    snooze = sub.add_parser("snooze", help="Temporarily unblock one target")
    snooze.add_argument("target")
    snooze.add_argument("--kind", choices=["app", "website"], default="app")
    snooze.add_argument("--minutes", type=float, default=None)

    sub.add_parser("presets", help="List presets")
    sub.add_parser("history", help="List recent sessions")
    return parser


def main(argv: Optional[List[str]] = None) -> int:
    args = build_parser().parse_args(argv)

    try:
        with httpx.Client(base_url=args.url, timeout=10.0) as client:
            return _dispatch(client, args)
    except httpx.TransportError as exc:
        print(f"error: engine not reachable at {args.url} ({exc})", file=sys.stderr)
        return 1


def _dispatch(client: httpx.Client, args: argparse.Namespace) -> int:
    cmd = args.command

    if cmd == "status":
        _print_state(_request(client, "GET", "/session").json())

    elif cmd == "start":
        if args.preset:
            preset = _find_preset(client, args.preset)
            r = _request(client, "POST", f"/presets/{preset['id']}/start", json={"goal": args.goal})
        else:
            r = _request(client, "POST", "/session/start", json={
                "goal": args.goal,
                "duration_seconds": args.minutes * 60,
                "categories": args.categories,
                "apps": args.apps,
                "websites": args.websites,
            })
        _print_state(r.json())

    elif cmd in ("pause", "resume", "stop"):
        _print_state(_request(client, "POST", f"/session/{cmd}").json())

    elif cmd == "extend":
        body = {"seconds": args.minutes * 60} if args.minutes else None
        _print_state(_request(client, "POST", "/session/extend", json=body).json())

    elif cmd == "snooze":
        body = {"target": args.target, "kind": args.kind}
        if args.minutes:
            body["duration_seconds"] = args.minutes * 60
        _print_state(_request(client, "POST", "/session/snooze", json=body).json())

    elif cmd == "presets":
        for p in _request(client, "GET", "/presets").json():
            cats = ", ".join(p["categories"]) or "-"
            print(f"{p['name']:<16} {int(p['duration_seconds'] // 60):>4} min  {cats}")

    elif cmd == "history":
        for s in _request(client, "GET", "/history", params={"limit": 10}).json():
            minutes = int(s["duration"] // 60)
            saved = " [preset]" if s["saved_as_preset"] else ""
            print(f"{s['id'][:8]}  {minutes:>4} min  {s['goal'] or '(no goal)'}{saved}")

    return 0


if __name__ == "__main__":
    sys.exit(main())
