"""
Unit tests for the in-memory repository adapters.

Tests verify get/merge semantics of the conversation store and the
append-only behavior of the refund archive.
"""

import pytest

from src.adapters.repository.memory import InMemoryConversationRepository, InMemoryRefundArchive
from src.domain.models import ConversationStatus, RefundItem


class TestInMemoryConversationRepository:
    """Tests for InMemoryConversationRepository."""

    def test_get_unknown_returns_none(self) -> None:
        repo = InMemoryConversationRepository()
        assert repo.get("missing") is None

    def test_merge_creates_default_state(self) -> None:
        """Merging into an unknown conversation starts from NEW/0 attempts."""
        repo = InMemoryConversationRepository()
        state = repo.merge("conv-1", name="alice")

        assert state.status == ConversationStatus.NEW
        assert state.attempts == 0
        assert state.name == "alice"
        assert repo.get("conv-1") == state

    def test_merge_overlays_only_given_fields(self) -> None:
        """Fields not passed keep their stored value."""
        repo = InMemoryConversationRepository()
        repo.merge("conv-1", name="alice", requester_id="user-1", attempts=1)
        repo.merge("conv-1", status=ConversationStatus.INSTRUCTION_SENT, price=42)

        state = repo.get("conv-1")
        assert state is not None
        assert state.name == "alice"
        assert state.requester_id == "user-1"
        assert state.attempts == 1
        assert state.status == ConversationStatus.INSTRUCTION_SENT
        assert state.price == 42

    def test_merge_does_not_validate_transitions(self) -> None:
        """The store accepts any status; callers own transition rules."""
        repo = InMemoryConversationRepository()
        repo.merge("conv-1", status=ConversationStatus.RESOLVED)
        state = repo.merge("conv-1", status=ConversationStatus.NEW)
        assert state.status == ConversationStatus.NEW

    def test_merge_rejects_unknown_fields(self) -> None:
        repo = InMemoryConversationRepository()
        with pytest.raises(TypeError):
            repo.merge("conv-1", colour="blue")

    def test_get_returns_copy(self) -> None:
        """Mutating a returned state does not change the store."""
        repo = InMemoryConversationRepository()
        repo.merge("conv-1", name="alice")

        state = repo.get("conv-1")
        assert state is not None
        state.name = "mallory"

        stored = repo.get("conv-1")
        assert stored is not None
        assert stored.name == "alice"

    def test_conversations_are_independent(self) -> None:
        repo = InMemoryConversationRepository()
        repo.merge("conv-1", name="alice")
        repo.merge("conv-2", name="bob")

        assert len(repo) == 2
        assert repo.get("conv-1").name == "alice"  # type: ignore[union-attr]
        assert repo.get("conv-2").name == "bob"  # type: ignore[union-attr]


class TestInMemoryRefundArchive:
    """Tests for InMemoryRefundArchive."""

    def test_archive_starts_empty(self) -> None:
        assert InMemoryRefundArchive().entries() == []

    def test_archive_preserves_order_and_duplicates(self) -> None:
        """Every append is kept, in order, even repeats."""
        archive = InMemoryRefundArchive()
        first = RefundItem(request_id="1", derivation_path="p1", deposit_address="0x1")
        second = RefundItem(request_id="2", derivation_path="p2", deposit_address="0x2")

        archive.append(first)
        archive.append(second)
        archive.append(first)

        assert archive.entries() == [first, second, first]

    def test_entries_returns_copy(self) -> None:
        archive = InMemoryRefundArchive()
        archive.append(RefundItem(request_id="1", derivation_path="p", deposit_address="0x1"))

        archive.entries().clear()

        assert len(archive.entries()) == 1
