"""Command line entry point for operating the Pearl Cover AI service."""

from __future__ import annotations

import argparse
import asyncio
import json
import os
import sys
from typing import Sequence

from pearlcover.backend import SupabaseBackend
from pearlcover.config import Settings, get_settings
from pearlcover.errors import PearlCoverError, UnauthorizedError
from pearlcover.search import RpcSearchAggregator, SearchAggregator, SearchConfig
from pearlcover.services.context import ContextBuilder, ContextBuilderConfig
from pearlcover.services.links import linkify


async def run_context(
    query: str,
    *,
    access_token: str | None,
    settings: Settings,
    aggregator: SearchAggregator | None = None,
) -> str:
    """Run the search fan-out and return the formatted context block."""

    backend = None
    if aggregator is None:
        backend = SupabaseBackend(
            settings.supabase_url, settings.supabase_anon_key, timeout=settings.backend_timeout_seconds
        )
        aggregator = RpcSearchAggregator(
            backend, SearchConfig(limit=settings.search_limit, expense_limit=settings.search_expense_limit)
        )
    try:
        bundle = await aggregator.search_all(query, access_token=access_token)
    finally:
        if backend is not None:
            await backend.aclose()
    builder = ContextBuilder(ContextBuilderConfig(truncate_chars=settings.context_truncate_chars))
    return builder.build_context(bundle)


async def run_ask(query: str, *, access_token: str, settings: Settings) -> dict:
    from pearlcover.api.app import build_dependencies

    deps = build_dependencies(settings)
    try:
        user = await deps.backend.get_user(access_token)
        if user is None:
            raise UnauthorizedError()
        result = await deps.chat_service.answer(user.id, query, access_token=access_token)
    finally:
        await deps.completion.aclose()
        await deps.backend.aclose()
    return {
        "content": result.content,
        "linked_content": linkify(result.content),
        "sources": result.sources.as_dict(),
    }


def parse_args(argv: Sequence[str]) -> argparse.Namespace:
    parser = argparse.ArgumentParser(prog="pearlcover", description="Pearl Cover AI assistant service.")
    sub = parser.add_subparsers(dest="command", required=True)

    serve = sub.add_parser("serve", help="Run the HTTP API with uvicorn")
    serve.add_argument("--host", default="0.0.0.0")
    serve.add_argument("--port", type=int, default=8000)
    serve.add_argument("--reload", action="store_true")

    token_help = "Backend access token (defaults to $PEARLCOVER_ACCESS_TOKEN)"
    context = sub.add_parser("context", help="Print the context block the assistant would see for a query")
    context.add_argument("query")
    context.add_argument("--token", default=None, help=token_help)

    ask = sub.add_parser("ask", help="Ask the assistant a question as the token's user")
    ask.add_argument("query")
    ask.add_argument("--token", default=None, help=token_help)

    sub.add_parser("linkify", help="Rewrite entity tags read from stdin into app links")
    return parser.parse_args(argv)


def main(argv: Sequence[str] | None = None) -> int:
    args = parse_args(sys.argv[1:] if argv is None else argv)
    settings = get_settings()

    if args.command == "serve":
        import uvicorn

        uvicorn.run(
            "pearlcover.api.app:create_app",
            factory=True,
            host=args.host,
            port=args.port,
            reload=args.reload,
        )
        return 0

    if args.command == "linkify":
        sys.stdout.write(linkify(sys.stdin.read()))
        return 0

    token = args.token or os.getenv("PEARLCOVER_ACCESS_TOKEN")
    try:
        if args.command == "context":
            print(asyncio.run(run_context(args.query, access_token=token, settings=settings)))
            return 0
        if not token:
            raise UnauthorizedError("An access token is required (--token or PEARLCOVER_ACCESS_TOKEN)")
        result = asyncio.run(run_ask(args.query, access_token=token, settings=settings))
    except PearlCoverError as exc:
        print(f"{type(exc).__name__}: {exc.message}", file=sys.stderr)
        return 1
    print(json.dumps(result, indent=2))
    return 0


if __name__ == "__main__":  # pragma: no cover - CLI entrypoint
    sys.exit(main())
