from __future__ import annotations

import asyncio
import io

from pearlcover import cli
from pearlcover.config import Settings
from pearlcover.models import SearchBundle


class StubAggregator:
    def __init__(self, bundle: SearchBundle) -> None:
        self.bundle = bundle
        self.calls: list[tuple[str, str | None]] = []

    async def search_all(self, query: str, *, access_token: str | None = None) -> SearchBundle:
        self.calls.append((query, access_token))
        return self.bundle


def test_context_command_formats_bundle():
    aggregator = StubAggregator(SearchBundle(payments=[{"id": "p1", "total_amount": 50, "payment_date": "2024-01-02"}]))

    text = asyncio.run(
        cli.run_context("refund", access_token="jwt", settings=Settings(environment="test"), aggregator=aggregator)
    )

    assert aggregator.calls == [("refund", "jwt")]
    assert text.startswith("Search Results:\n\n=== PAYMENTS ===\n1. ID: p1\n   Amount: $50\n")


def test_linkify_command_reads_stdin(monkeypatch, capsys):
    monkeypatch.setattr("sys.stdin", io.StringIO("[Claim: WC-7](ID:c7)"))

    assert cli.main(["linkify"]) == 0
    assert capsys.readouterr().out == "[WC-7](/workcover?claim=c7)"


def test_ask_without_token_fails(monkeypatch, capsys):
    monkeypatch.delenv("PEARLCOVER_ACCESS_TOKEN", raising=False)

    assert cli.main(["ask", "what did I spend?"]) == 1
    assert "UnauthorizedError" in capsys.readouterr().err
