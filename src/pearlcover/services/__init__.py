"""Service layer orchestrations for the assistant."""

from .chat import SYSTEM_PROMPT, ChatService, build_messages
from .completion import CompletionBackend, CompletionConfig, OpenAICompatibleClient
from .context import NO_RESULTS, ContextBuilder, ContextBuilderConfig, build_context
from .links import linkify
from .profile import AIConfiguration, ProfileConfigService
from .rate_limit import SlidingWindowRateLimiter
from .stats import quick_stats

__all__ = [
    "AIConfiguration",
    "ChatService",
    "CompletionBackend",
    "CompletionConfig",
    "ContextBuilder",
    "ContextBuilderConfig",
    "NO_RESULTS",
    "OpenAICompatibleClient",
    "ProfileConfigService",
    "SYSTEM_PROMPT",
    "SlidingWindowRateLimiter",
    "build_context",
    "build_messages",
    "linkify",
    "quick_stats",
]
