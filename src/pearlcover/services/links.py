"""Rewrites model-emitted entity tags into application links."""

from __future__ import annotations

import re
from typing import Pattern

# Applied once, in this order. Each rule turns
# ``[<Tag>: <label>](ID:<id>)`` into ``[<label>](<route>)``.
LINK_RULES: tuple[tuple[str, str], ...] = (
    ("Note", "/notes?highlight={id}"),
    ("Claim", "/workcover?claim={id}"),
    ("Expense", "/expenses?id={id}"),
    ("Payment", "/payments?id={id}"),
)


def _compile(tag: str) -> Pattern[str]:
    return re.compile(r"\[" + re.escape(tag) + r": ([^\]]+)\]\(ID:([^)]+)\)")


_COMPILED: tuple[tuple[Pattern[str], str], ...] = tuple((_compile(tag), route) for tag, route in LINK_RULES)


def linkify(text: str) -> str:
    """Replace tagged entity references with relative hyperlinks."""

    if not text:
        return text
    for pattern, route in _COMPILED:
        text = pattern.sub(lambda m, route=route: f"[{m.group(1)}]({route.format(id=m.group(2))})", text)
    return text
