#!/usr/bin/env python3
"""Replay recorded webhook payloads against a running livetrack server.

Each line of the input file is one JSON object. An optional ``_event`` key
names the webhook event (URL path segment); it is stripped before posting.

    TRACKER_BEARER_KEY=change-me python scripts/replay_events.py events.jsonl
"""

from __future__ import annotations

import argparse
import asyncio
import json
import logging
import os
import sys
from pathlib import Path
from typing import Any

import aiohttp

LOG = logging.getLogger("replay_events")


def _load_events(path: Path) -> list[dict[str, Any]]:
    events: list[dict[str, Any]] = []
    for lineno, line in enumerate(path.read_text(encoding="utf-8").splitlines(), start=1):
        if not line.strip():
            continue
        try:
            decoded = json.loads(line)
        except json.JSONDecodeError as exc:
            raise SystemExit(f"{path}:{lineno}: invalid JSON ({exc})") from exc
        if not isinstance(decoded, dict):
            raise SystemExit(f"{path}:{lineno}: expected a JSON object")
        events.append(decoded)
    return events


async def run(args: argparse.Namespace) -> int:
    events = _load_events(Path(args.file))
    headers = {"Authorization": f"Bearer {args.bearer}"}
    failures = 0

    async with aiohttp.ClientSession(base_url=args.url) as session:
        for payload in events:
            event_name = str(payload.pop("_event", args.event))
            async with session.post(f"/webhooks/{event_name}", json=payload, headers=headers) as resp:
                body = await resp.text()
                if resp.status != 200:
                    failures += 1
                    LOG.error("event=%s -> HTTP %s %s", event_name, resp.status, body[:200])
                else:
                    LOG.info("event=%s -> %s", event_name, body)
            if args.delay > 0:
                await asyncio.sleep(args.delay)

        if args.order:
            async with session.get("/api/tracking", params={"order": args.order}) as resp:
                print(json.dumps(await resp.json(), indent=2))

    return 1 if failures else 0


def main() -> None:
    parser = argparse.ArgumentParser(description="Replay webhook payloads from a JSON-lines file.")
    parser.add_argument("file", help="JSON-lines file of webhook payloads")
    parser.add_argument("--url", default="http://127.0.0.1:10000", help="Server base URL")
    parser.add_argument("--bearer", default=os.environ.get("TRACKER_BEARER_KEY", ""), help="Bearer key")
    parser.add_argument("--event", default="task_update", help="Default webhook event name")
    parser.add_argument("--delay", type=float, default=0.5, help="Seconds between posts")
    parser.add_argument("--order", help="Print the tracking state of this order when done")
    parser.add_argument("--verbose", "-v", action="store_true")
    args = parser.parse_args()

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(levelname)s %(name)s: %(message)s",
    )
    sys.exit(asyncio.run(run(args)))


if __name__ == "__main__":
    main()
