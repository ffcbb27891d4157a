"""
In-memory repository adapters - Process-local state.

Used when no database is configured. State lives for the life of the
process only.
"""

from dataclasses import fields as dataclass_fields, replace

from src.domain.models import ConversationState, RefundItem

_STATE_FIELDS = frozenset(f.name for f in dataclass_fields(ConversationState))


class InMemoryConversationRepository:
    """
    Implements ConversationRepository protocol with a dict.

    Uses structural subtyping - no explicit inheritance from Protocol.
    """

    def __init__(self) -> None:
        self._states: dict[str, ConversationState] = {}

    def get(self, conversation_id: str) -> ConversationState | None:
        state = self._states.get(conversation_id)
        # Copy so callers cannot mutate stored state behind merge()
        return replace(state) if state is not None else None

    def merge(self, conversation_id: str, **fields: object) -> ConversationState:
        unknown = set(fields) - _STATE_FIELDS
        if unknown:
            raise TypeError(f"Unknown conversation fields: {sorted(unknown)}")
        current = self._states.get(conversation_id) or ConversationState()
        merged = replace(current, **fields)
        self._states[conversation_id] = merged
        return replace(merged)

    def __len__(self) -> int:
        return len(self._states)


class InMemoryRefundArchive:
    """Implements RefundArchive protocol with an append-only list."""

    def __init__(self) -> None:
        self._entries: list[RefundItem] = []

    def append(self, item: RefundItem) -> None:
        self._entries.append(item)

    def entries(self) -> list[RefundItem]:
        return list(self._entries)
