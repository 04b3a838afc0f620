"""
Adapters layer - External integrations (database, email).
"""

from .memory_store import InMemoryStore
from .smtp_transport import SMTPTransport
from .supabase_client import SupabaseStore

__all__ = ["InMemoryStore", "SMTPTransport", "SupabaseStore"]
