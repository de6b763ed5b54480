#!/usr/bin/env python3
from __future__ import annotations

import os
import sys

import httpx


def main() -> int:
    base_url = os.getenv("PEARLCOVER_API_URL", "http://localhost:8000").rstrip("/")
    try:
        with httpx.Client(base_url=base_url, timeout=5.0) as client:
            live = client.get("/livez")
            print("/livez:", live.text)
            ready = client.get("/healthz/ready")
            print("/healthz/ready:", ready.text)
            unauthorized = client.post("/api/ai/chat", json={"query": "ping"})
            print("/api/ai/chat (no token):", unauthorized.status_code)
    except httpx.HTTPError as exc:
        print(f"Compose smoke failed: {exc}", file=sys.stderr)
        return 1
    if live.status_code != 200 or ready.status_code != 200 or unauthorized.status_code != 401:
        print("Compose smoke failed: unexpected status codes.", file=sys.stderr)
        return 1
    print("Compose smoke passed.")
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
