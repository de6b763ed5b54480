"""Search components."""

from .service import RpcSearchAggregator, SearchAggregator, SearchConfig

__all__ = ["RpcSearchAggregator", "SearchAggregator", "SearchConfig"]
