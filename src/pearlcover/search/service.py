"""Full-text search fan-out across the backend's search RPCs."""

from __future__ import annotations

import asyncio
from dataclasses import dataclass
from typing import Any, Protocol, Sequence

from pearlcover.backend import Backend
from pearlcover.metrics.observability import PipelineMetrics, TimedSection, get_logger
from pearlcover.models import Row, SearchBundle


@dataclass(frozen=True)
class SearchConfig:
    """RPC names and per-call limits for each search category."""

    notes_rpc: str = "search_notes"
    claims_rpc: str = "search_workcover_claims"
    aged_care_expenses_rpc: str = "search_aged_care_expenses"
    workcover_expenses_rpc: str = "search_workcover_expenses"
    payments_rpc: str = "search_payments"
    attachments_rpc: str = "search_attachments"
    limit: int = 10
    expense_limit: int = 5


class SearchAggregator(Protocol):
    """Search every category for a query string."""

    async def search_all(self, query: str, *, access_token: str | None = None) -> SearchBundle:
        """Return the merged search bundle for the query."""


class RpcSearchAggregator:
    """Aggregator that calls one search RPC per category concurrently.

    A failing call is logged and contributes an empty list; it never cancels
    or fails its siblings.
    """

    def __init__(self, backend: Backend, config: SearchConfig | None = None) -> None:
        self._backend = backend
        self._config = config or SearchConfig()
        self._logger = get_logger("search")

    async def search_all(self, query: str, *, access_token: str | None = None) -> SearchBundle:
        cfg = self._config
        with TimedSection() as timer:
            notes, claims, aged_care, workcover, payments, attachments = await asyncio.gather(
                self._search("notes", cfg.notes_rpc, query, cfg.limit, access_token),
                self._search("claims", cfg.claims_rpc, query, cfg.limit, access_token),
                self._search("expenses", cfg.aged_care_expenses_rpc, query, cfg.expense_limit, access_token),
                self._search("expenses", cfg.workcover_expenses_rpc, query, cfg.expense_limit, access_token),
                self._search("payments", cfg.payments_rpc, query, cfg.limit, access_token),
                self._search("attachments", cfg.attachments_rpc, query, cfg.limit, access_token),
            )
        bundle = SearchBundle(
            notes=notes,
            claims=claims,
            expenses=[*aged_care, *workcover],
            payments=payments,
            attachments=attachments,
        )
        counts = bundle.counts().as_dict()
        PipelineMetrics.observe_search(timer.elapsed, counts)
        self._logger.info("search.complete", duration_seconds=timer.elapsed, **counts)
        return bundle

    async def _search(
        self,
        category: str,
        function: str,
        query: str,
        limit: int,
        access_token: str | None,
    ) -> list[Row]:
        try:
            payload = await self._backend.rpc(
                function,
                {"search_query": query, "limit_val": limit},
                access_token=access_token,
            )
        except Exception as exc:
            PipelineMetrics.record_search_failure(category)
            self._logger.error("search.failed", category=category, rpc=function, detail=str(exc))
            return []
        return _as_rows(payload)


def _as_rows(payload: Any) -> list[Row]:
    if not isinstance(payload, Sequence) or isinstance(payload, (str, bytes)):
        return []
    return [row for row in payload if isinstance(row, dict)]
