"""Test doubles for external services."""

from .supabase import FakeSupabaseClient, api_error

__all__ = ["FakeSupabaseClient", "api_error"]
