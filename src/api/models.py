"""
API request and response models.

Pydantic models for FastAPI endpoint validation and OpenAPI schema generation.
"""

from typing import Literal

from pydantic import BaseModel, Field

from src.domain.models import CandidateRequest


class MentionRequest(BaseModel):
    """A mention forwarded by the intake source."""

    id: str = Field(..., min_length=1, description="Message id")
    requester_id: str = Field(..., min_length=1, description="Author id")
    conversation_id: str = Field(..., min_length=1, description="Thread id")
    text: str
    timestamp: float = Field(0.0, ge=0, description="Message time, epoch seconds")

    def to_candidate(self) -> CandidateRequest:
        return CandidateRequest(
            id=self.id,
            requester_id=self.requester_id,
            conversation_id=self.conversation_id,
            text=self.text,
            timestamp=self.timestamp,
        )


class MentionResponse(BaseModel):
    """Outcome of processing one mention."""

    message_id: str
    outcome: str


class BatchMention(MentionRequest):
    """A mention inside a batch; ordering needs its timestamp."""

    timestamp: float = Field(..., ge=0, description="Message time, epoch seconds")


class MentionBatchRequest(BaseModel):
    """A batch of mentions, processed in order."""

    mentions: list[BatchMention]


class MentionBatchResponse(BaseModel):
    """Outcome counts for a processed batch."""

    outcomes: dict[str, int]
    last_timestamp: float


class RestartRequest(BaseModel):
    """Request model for restarting a queue worker."""

    queue: Literal["deposits", "refunds"]


class RestartResponse(BaseModel):
    """Response model for a queue restart."""

    queue: str
    started: bool


class ForceRefundRequest(BaseModel):
    """Request model for a manual refund."""

    address: str = Field(
        ...,
        pattern=r"^0x[0-9a-fA-F]{40}$",
        description="Deposit address to refund from",
    )
    path: str = Field(..., min_length=1, description="Derivation path of the deposit address")


class ForceRefundResponse(BaseModel):
    """Response model for a queued manual refund."""

    message: str
    address: str


class RefundEntry(BaseModel):
    """One archived refund attempt."""

    request_id: str
    requester_id: str | None = None
    derivation_path: str
    deposit_address: str


class RefundArchiveResponse(BaseModel):
    """All archived refund attempts, oldest first."""

    refunds: list[RefundEntry]


class ErrorResponse(BaseModel):
    """Standard error response model."""

    detail: str
