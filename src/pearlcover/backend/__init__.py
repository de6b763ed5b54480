"""Hosted backend access."""

from .client import Backend, SupabaseBackend

__all__ = ["Backend", "SupabaseBackend"]
