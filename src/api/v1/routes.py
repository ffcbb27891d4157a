"""
API v1 routes.

Defines the operator endpoints of the fulfillment engine. Every route
requires operator HTTP BASIC AUTH.
"""

from fastapi import APIRouter, Depends, HTTPException, status

from src.api.dependencies import get_engine, require_operator
from src.api.models import (
    ErrorResponse,
    ForceRefundRequest,
    ForceRefundResponse,
    MentionBatchRequest,
    MentionBatchResponse,
    MentionRequest,
    MentionResponse,
    RefundArchiveResponse,
    RefundEntry,
    RestartRequest,
    RestartResponse,
)
from src.domain.engine import Engine
from src.domain.exceptions import UnknownQueue

router = APIRouter(tags=["v1"], dependencies=[Depends(require_operator)])

_AUTH_RESPONSES = {401: {"model": ErrorResponse, "description": "Invalid operator credentials"}}


@router.post(
    "/mentions",
    response_model=MentionResponse,
    responses=_AUTH_RESPONSES,
    summary="Process a mention",
    description="Run one mention from the intake source through validation, "
    "pricing and deposit instructions.",
)
async def process_mention(
    request_data: MentionRequest,
    engine: Engine = Depends(get_engine),
) -> MentionResponse:
    outcome = await engine.handle_request(request_data.to_candidate())
    return MentionResponse(message_id=request_data.id, outcome=outcome.value)


@router.post(
    "/mentions/batch",
    response_model=MentionBatchResponse,
    responses=_AUTH_RESPONSES,
    summary="Process a batch of mentions",
    description="Process mentions in order, skipping any not newer than the "
    "last processed timestamp. Every mention must carry its timestamp.",
)
async def process_mention_batch(
    request_data: MentionBatchRequest,
    engine: Engine = Depends(get_engine),
) -> MentionBatchResponse:
    counts = await engine.intake.ingest(m.to_candidate() for m in request_data.mentions)
    return MentionBatchResponse(
        outcomes={outcome.value: count for outcome, count in counts.items()},
        last_timestamp=engine.intake.last_timestamp,
    )


@router.post(
    "/admin/restart",
    response_model=RestartResponse,
    responses={**_AUTH_RESPONSES, 400: {"model": ErrorResponse, "description": "Unknown queue"}},
    summary="Restart a queue worker",
    description="Start the named worker if it is idle and its queue has items.",
)
async def restart_queue(
    request_data: RestartRequest,
    engine: Engine = Depends(get_engine),
) -> RestartResponse:
    try:
        started = engine.restart_queue(request_data.queue)
    except UnknownQueue:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Invalid queue parameter",
        ) from None
    return RestartResponse(queue=request_data.queue, started=started)


@router.post(
    "/admin/refund",
    response_model=ForceRefundResponse,
    status_code=status.HTTP_202_ACCEPTED,
    responses=_AUTH_RESPONSES,
    summary="Force a refund",
    description="Queue a refund attempt for a deposit address, bypassing "
    "conversation bookkeeping.",
)
async def force_refund(
    request_data: ForceRefundRequest,
    engine: Engine = Depends(get_engine),
) -> ForceRefundResponse:
    engine.force_refund(request_data.address, request_data.path)
    return ForceRefundResponse(
        message="Refund queued",
        address=request_data.address,
    )


@router.get(
    "/refunds",
    response_model=RefundArchiveResponse,
    responses=_AUTH_RESPONSES,
    summary="List archived refunds",
    description="Every refund attempt, successful or not, oldest first.",
)
async def list_refunds(engine: Engine = Depends(get_engine)) -> RefundArchiveResponse:
    return RefundArchiveResponse(
        refunds=[
            RefundEntry(
                request_id=item.request_id,
                requester_id=item.requester_id,
                derivation_path=item.derivation_path,
                deposit_address=item.deposit_address,
            )
            for item in engine.refund_archive()
        ]
    )
