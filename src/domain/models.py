"""
Domain models - Conversation state and work items.

Conversation Lifecycle (Forward-Only Transitions)
=================================================

    NEW -> INSTRUCTION_SENT -> RESOLVED
    NEW -> ERROR_INVALID_NAME
    NEW -> ERROR_UNAVAILABLE_NAME
    NEW -> ERROR_PROCESSING
    INSTRUCTION_SENT -> ERROR_MAX_ATTEMPTS
    INSTRUCTION_SENT -> ERROR_REGISTRATION_FAILED
    INSTRUCTION_SENT -> ERROR_UNSUPPORTED_WALLET

Terminal states (RESOLVED, ERROR_INVALID_NAME, ERROR_UNAVAILABLE_NAME,
ERROR_MAX_ATTEMPTS) ignore any later message in the same conversation.
The remaining error states let a fresh message restart the request.

Note: The store does not enforce transitions. Intake and the deposit
monitor are the only writers and only move a conversation forward.
"""

from dataclasses import dataclass, field
from enum import Enum


class ConversationStatus(str, Enum):
    """Lifecycle status of one conversation."""

    NEW = "new"
    INSTRUCTION_SENT = "instruction_sent"
    RESOLVED = "resolved"
    ERROR_INVALID_NAME = "error_invalid_name"
    ERROR_UNAVAILABLE_NAME = "error_unavailable_name"
    ERROR_MAX_ATTEMPTS = "error_max_attempts"
    ERROR_REGISTRATION_FAILED = "error_registration_failed"
    ERROR_PROCESSING = "error_processing"
    ERROR_UNSUPPORTED_WALLET = "error_unsupported_wallet"


TERMINAL_STATUSES = frozenset(
    {
        ConversationStatus.RESOLVED,
        ConversationStatus.ERROR_INVALID_NAME,
        ConversationStatus.ERROR_UNAVAILABLE_NAME,
        ConversationStatus.ERROR_MAX_ATTEMPTS,
    }
)

# Request id used for refunds injected by an operator
FORCED_REFUND_ID = "FORCED REFUND TRY"


@dataclass
class ConversationState:
    """State tracked for one social conversation thread."""

    status: ConversationStatus = ConversationStatus.NEW
    last_processed_message_id: str = ""
    name: str = ""
    requester_id: str = ""
    deposit_address: str | None = None
    derivation_path: str | None = None
    price: int | None = None
    attempts: int = 0

    @property
    def is_terminal(self) -> bool:
        return self.status in TERMINAL_STATUSES


@dataclass(frozen=True)
class CandidateRequest:
    """A mention extracted from the social intake source."""

    id: str
    requester_id: str
    conversation_id: str
    text: str
    timestamp: float = 0.0


@dataclass(frozen=True)
class RefundItem:
    """A deposit address whose balance should be returned to its funder."""

    request_id: str
    derivation_path: str
    deposit_address: str
    requester_id: str | None = None


@dataclass
class DepositItem:
    """A deposit address being watched for payment."""

    request_id: str
    requester_id: str
    conversation_id: str
    name: str
    derivation_path: str
    deposit_address: str
    price: int
    deposit_attempt: int = 0
    instruction_reply_id: str | None = None

    def to_refund(self) -> RefundItem:
        return RefundItem(
            request_id=self.request_id,
            derivation_path=self.derivation_path,
            deposit_address=self.deposit_address,
            requester_id=self.requester_id,
        )


@dataclass
class EngineSnapshot:
    """Point-in-time view of queue depths and worker liveness."""

    pending_deposits: int
    pending_refunds: int
    archived_refunds: int
    workers: dict[str, bool] = field(default_factory=dict)
