"""Row counts shown on the assistant's landing screen."""

from __future__ import annotations

import asyncio

from pearlcover.backend import Backend
from pearlcover.metrics.observability import get_logger

STATS_TABLES = {
    "notes": "notes",
    "claims": "workcover_claims",
    "expenses": "aged_care_expenses",
}


async def quick_stats(backend: Backend, *, access_token: str | None = None) -> dict[str, int]:
    """Count notes, claims and aged-care expenses; a failed count reports 0."""

    logger = get_logger("stats")

    async def _count(table: str) -> int:
        try:
            return await backend.count(table, access_token=access_token)
        except Exception as exc:
            logger.warning("stats.count_failed", table=table, detail=str(exc))
            return 0

    names = list(STATS_TABLES)
    counts = await asyncio.gather(*(_count(STATS_TABLES[name]) for name in names))
    return dict(zip(names, counts))
