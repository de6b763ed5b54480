"""Formats a search bundle into the context block embedded in the prompt."""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass
from typing import Any, Callable, Sequence

from pearlcover.models import Row, SearchBundle

NO_RESULTS = "No search results found in the database."
_HEADER = "Search Results:\n\n"
_MISSING = "N/A"


@dataclass(frozen=True)
class ContextBuilderConfig:
    """Configuration for context construction."""

    truncate_chars: int = 200
    ellipsis: str = "..."


class ContextBuilder:
    """Builds the plain-text context block from a SearchBundle.

    Output is deterministic for identical input and the builder never raises
    on malformed rows: missing values render as ``N/A``.
    """

    def __init__(self, config: ContextBuilderConfig | None = None) -> None:
        self._config = config or ContextBuilderConfig()

    def build_context(self, bundle: SearchBundle) -> str:
        sections = [
            ("=== NOTES ===", bundle.notes, self._note_lines),
            ("=== WORKCOVER CLAIMS ===", bundle.claims, self._claim_lines),
            ("=== EXPENSES ===", bundle.expenses, self._expense_lines),
            ("=== PAYMENTS ===", bundle.payments, self._payment_lines),
            ("=== ATTACHMENTS (OCR TEXT) ===", bundle.attachments, self._attachment_lines),
        ]
        parts = [_HEADER]
        for heading, rows, describe in sections:
            if rows:
                parts.append(self._section(heading, rows, describe))
        if len(parts) == 1:
            return NO_RESULTS
        return "".join(parts)

    def truncate(self, value: Any) -> str:
        text = _text(value)
        if len(text) > self._config.truncate_chars:
            return text[: self._config.truncate_chars] + self._config.ellipsis
        return text

    @staticmethod
    def _section(heading: str, rows: Sequence[Row], describe: Callable[[Row], list[str]]) -> str:
        lines = [heading]
        for index, row in enumerate(rows, start=1):
            if not isinstance(row, Mapping):
                row = {}
            lines.append(f"{index}. ID: {_text(row.get('id'))}")
            lines.extend(f"   {line}" for line in describe(row))
            lines.append("")
        return "\n".join(lines) + "\n"

    def _note_lines(self, row: Row) -> list[str]:
        return [
            f"Title: {_text(row.get('title'))}",
            f"Content: {self.truncate(row.get('content'))}",
            f"Tags: {_tags(row.get('tags'))}",
        ]

    @staticmethod
    def _claim_lines(row: Row) -> list[str]:
        return [
            f"Claim Number: {_text(row.get('claim_number'))}",
            f"Injury Date: {_text(row.get('injury_date'))}",
            f"Description: {_text(row.get('injury_description'))}",
            f"Status: {_text(row.get('status'))}",
        ]

    @staticmethod
    def _expense_lines(row: Row) -> list[str]:
        # aged-care rows carry `amount`, workcover rows carry `amount_charged`
        amount = row.get("amount") or row.get("amount_charged")
        return [
            f"Description: {_text(row.get('description'))}",
            f"Amount: ${_text(amount)}",
            f"Date: {_text(row.get('expense_date'))}",
            f"Status: {_text(row.get('status'))}",
        ]

    @staticmethod
    def _payment_lines(row: Row) -> list[str]:
        return [
            f"Amount: ${_text(row.get('total_amount'))}",
            f"Date: {_text(row.get('payment_date'))}",
            f"Reference: {_text(row.get('reference'))}",
        ]

    def _attachment_lines(self, row: Row) -> list[str]:
        return [
            f"File: {_text(row.get('file_name'))}",
            f"OCR Text: {self.truncate(row.get('ocr_text'))}",
        ]


def _text(value: Any) -> str:
    if value is None or value == "":
        return _MISSING
    return str(value)


def _tags(value: Any) -> str:
    if isinstance(value, (list, tuple)):
        joined = ", ".join(str(tag) for tag in value if tag is not None)
        return joined or "None"
    if value:
        return str(value)
    return "None"


_default_builder = ContextBuilder()


def build_context(bundle: SearchBundle) -> str:
    """Format a bundle with the default 200-character truncation."""

    return _default_builder.build_context(bundle)
