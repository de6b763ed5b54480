"""Observability helpers for the Pearl Cover AI service."""

from __future__ import annotations

import logging
import time
from contextvars import ContextVar
from typing import Callable, Mapping

import structlog
from prometheus_client import Counter, Histogram

_logger_configured = False
_correlation_id_var: ContextVar[str] = ContextVar("correlation_id", default="-")


def configure_logging(level: int | str = logging.INFO) -> None:
    global _logger_configured  # noqa: PLW0603 - module-level guard
    if _logger_configured:
        return
    if isinstance(level, str):
        level = logging.getLevelName(level.upper())
        if not isinstance(level, int):
            level = logging.INFO
    logging.basicConfig(level=level, format="%(message)s")
    structlog.configure(
        processors=[
            structlog.contextvars.merge_contextvars,
            structlog.processors.add_log_level,
            structlog.processors.TimeStamper(fmt="iso", utc=True),
            structlog.processors.JSONRenderer(),
        ],
        wrapper_class=structlog.make_filtering_bound_logger(level),
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )
    _logger_configured = True


def bind_correlation_id(correlation_id: str) -> None:
    structlog.contextvars.bind_contextvars(correlation_id=correlation_id)
    _correlation_id_var.set(correlation_id)


def clear_correlation_id() -> None:
    structlog.contextvars.clear_contextvars()
    _correlation_id_var.set("-")


def get_correlation_id() -> str:
    return _correlation_id_var.get()


def get_logger(name: str = "pearlcover") -> structlog.BoundLogger:
    configure_logging()
    return structlog.get_logger(name)


class PipelineMetrics:
    """Prometheus metrics for the assistant pipeline stages."""

    search_latency = Histogram(
        "pearlcover_search_duration_seconds",
        "Time spent running the full-text search fan-out.",
        buckets=(0.01, 0.05, 0.1, 0.25, 0.5, 1.0, 2.5, 5.0),
    )
    search_rows = Histogram(
        "pearlcover_search_row_count",
        "Rows returned per search category.",
        ["category"],
        buckets=(0, 1, 2, 5, 10, 20),
    )
    search_failures = Counter(
        "pearlcover_search_failures_total",
        "Search calls that failed and degraded to an empty result.",
        ["category"],
    )
    completion_latency = Histogram(
        "pearlcover_completion_duration_seconds",
        "Time spent waiting on the chat completion API.",
        buckets=(0.1, 0.5, 1.0, 2.0, 5.0, 10.0, 30.0),
    )
    completion_failures = Counter(
        "pearlcover_completion_failures_total",
        "Chat completion calls that failed, by failure kind.",
        ["kind"],
    )
    rate_limit_rejections = Counter(
        "pearlcover_rate_limit_rejections_total",
        "Chat requests rejected by the per-user sliding window.",
    )

    @classmethod
    def observe_search(cls, duration_seconds: float, row_counts: Mapping[str, int]) -> None:
        cls.search_latency.observe(duration_seconds)
        for category, count in row_counts.items():
            cls.search_rows.labels(category=category).observe(count)

    @classmethod
    def record_search_failure(cls, category: str) -> None:
        cls.search_failures.labels(category=category).inc()

    @classmethod
    def observe_completion(cls, duration_seconds: float) -> None:
        cls.completion_latency.observe(duration_seconds)

    @classmethod
    def record_completion_failure(cls, kind: str) -> None:
        cls.completion_failures.labels(kind=kind).inc()

    @classmethod
    def record_rate_limited(cls) -> None:
        cls.rate_limit_rejections.inc()


class TimedSection:
    """Context manager capturing elapsed time for metrics."""

    def __init__(self, callback: Callable[[float], None] | None = None) -> None:
        self._callback = callback
        self._start = 0.0
        self.elapsed = 0.0

    def __enter__(self) -> "TimedSection":
        self._start = time.perf_counter()
        return self

    def __exit__(self, exc_type, exc, tb) -> None:  # noqa: D401
        self.elapsed = time.perf_counter() - self._start
        if self._callback is not None:
            self._callback(self.elapsed)


__all__ = [
    "PipelineMetrics",
    "TimedSection",
    "bind_correlation_id",
    "clear_correlation_id",
    "configure_logging",
    "get_correlation_id",
    "get_logger",
]
