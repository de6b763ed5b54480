"""Chat orchestration combining search, context formatting and completion."""

from __future__ import annotations

import time

from pearlcover.metrics.observability import get_logger
from pearlcover.models import AIResponse, ChatMessage
from pearlcover.search import SearchAggregator
from pearlcover.services.completion import CompletionBackend
from pearlcover.services.context import ContextBuilder
from pearlcover.services.profile import ProfileConfigService

SYSTEM_PROMPT = """You are an AI assistant for Pearl Cover, an aged care & WorkCover expense tracking application.

You help users find information in their database using natural language queries.

Database Structure:
- notes: User notes with titles, content, tags, and categories
- workcover_claims: WorkCover injury claims with claim numbers, injury descriptions, and status
- workcover_expenses: Expenses linked to WorkCover claims (amounts, reimbursements, gaps)
- aged_care_expenses: Aged care funding expenses
- payment_transactions: Payment records with dates, amounts, and references
- attachments: Receipts and documents with OCR text

When answering user queries:
1. Analyze the search results provided as context
2. Identify the most relevant entities based on the user's question
3. Provide a concise, helpful answer
4. Reference specific entity IDs in your response using this format:
   - For notes: [Note: <title>](ID:<note_id>)
   - For claims: [Claim: <claim_number>](ID:<claim_id>)
   - For expenses: [Expense: <description>](ID:<expense_id>)
   - For payments: [Payment: <reference>](ID:<payment_id>)
5. If multiple matches exist, list the most relevant ones
6. If no matches are found, suggest alternative search terms or related information

Keep responses concise and actionable."""


def build_messages(context: str, query: str) -> list[ChatMessage]:
    return [
        ChatMessage(role="system", content=SYSTEM_PROMPT),
        ChatMessage(role="user", content=f"Context from database:\n\n{context}\n\nUser question: {query}"),
    ]


class ChatService:
    """Answers a user's question from their own backend data."""

    def __init__(
        self,
        profiles: ProfileConfigService,
        aggregator: SearchAggregator,
        completion: CompletionBackend,
        context_builder: ContextBuilder | None = None,
    ) -> None:
        self._profiles = profiles
        self._aggregator = aggregator
        self._completion = completion
        self._context_builder = context_builder or ContextBuilder()
        self._logger = get_logger("chat")

    async def answer(self, user_id: str, query: str, *, access_token: str | None = None) -> AIResponse:
        start = time.perf_counter()
        credentials = await self._profiles.get_credentials(user_id, access_token=access_token)
        bundle = await self._aggregator.search_all(query, access_token=access_token)
        context = self._context_builder.build_context(bundle)
        content = await self._completion.complete(build_messages(context, query), credentials)
        latency_ms = (time.perf_counter() - start) * 1000
        sources = bundle.counts()
        self._logger.info(
            "chat.complete",
            user_id=user_id,
            latency_ms=latency_ms,
            answer_chars=len(content),
            **sources.as_dict(),
        )
        return AIResponse(content=content, sources=sources, latency_ms=latency_ms)
