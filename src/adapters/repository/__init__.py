"""Repository adapters - Conversation store and refund archive implementations."""

from .memory import InMemoryConversationRepository, InMemoryRefundArchive
from .postgres import PostgresConversationRepository, PostgresRefundArchive, run_migrations

__all__ = [
    "InMemoryConversationRepository",
    "InMemoryRefundArchive",
    "PostgresConversationRepository",
    "PostgresRefundArchive",
    "run_migrations",
]
