"""
Intake - Turns a mention into deposit instructions.

Flow for one candidate request:

1. Skip terminal conversations and already-processed message ids
2. Extract "<label><suffix>" from the text, neutral reply if absent
3. Reject syntactically invalid names
4. Ask the availability collaborator; reject invalid or taken names
5. Price the name and derive the deposit address
6. Post instructions, record state, enqueue the deposit watch

Any collaborator failure marks the conversation ERROR_PROCESSING and
drops the request. Intake never retries: a new message restarts it.
"""

import asyncio
import logging
import re
from collections import Counter
from collections.abc import Iterable
from dataclasses import dataclass, field
from enum import Enum

from . import messages
from .deposits import DepositMonitor
from .exceptions import CollaboratorError
from .models import CandidateRequest, ConversationStatus, DepositItem
from .ports import AddressDeriver, ConversationRepository, NameAvailability, ReplySender
from .pricing import derivation_path, format_price, price_for, validate_name

logger = logging.getLogger(__name__)


class IntakeOutcome(str, Enum):
    """What intake did with one candidate request."""

    SKIPPED_TERMINAL = "skipped_terminal"
    SKIPPED_PROCESSED = "skipped_processed"
    SKIPPED_INCOMPLETE = "skipped_incomplete"
    SKIPPED_STALE = "skipped_stale"
    NO_NAME = "no_name"
    DUPLICATE_REQUEST = "duplicate_request"
    INVALID_NAME = "invalid_name"
    UNAVAILABLE_NAME = "unavailable_name"
    INSTRUCTIONS_SENT = "instructions_sent"
    FAILED = "failed"


def name_pattern(suffix: str) -> re.Pattern[str]:
    """Pattern capturing the label in front of `suffix`."""
    return re.compile(r"([^\s\"'.,@]+)" + re.escape(suffix), re.IGNORECASE)


@dataclass
class IntakeService:
    """
    Domain service for mention intake.

    Orchestrates validation, pricing, address derivation and the
    instruction reply, then hands the request to the deposit monitor.
    """

    conversations: ConversationRepository
    names: NameAvailability
    addresses: AddressDeriver
    replies: ReplySender
    deposits: DepositMonitor
    name_suffix: str = ".base.eth"
    network: str = "mainnet"
    chain_label: str = "Base"
    window_minutes: int = 10
    neutral_reply: str = "I'm good"
    dedupe_active_requests: bool = True
    last_timestamp: float = 0.0
    _lock: asyncio.Lock = field(default_factory=asyncio.Lock, init=False, repr=False)

    def extract_name(self, text: str) -> str | None:
        """First requested label in `text`, lowercased, or None."""
        match = name_pattern(self.name_suffix).search(text)
        if match is None:
            return None
        return match.group(1).lower()

    async def ingest(self, requests: Iterable[CandidateRequest]) -> Counter[IntakeOutcome]:
        """
        Process a batch from the intake source in order.

        Requests missing a requester or conversation id are dropped, as are
        requests not newer than the last seen timestamp. The timestamp
        high-water mark advances to the newest request in the batch.

        Returns:
            Count of outcomes in this batch
        """
        outcomes: Counter[IntakeOutcome] = Counter()
        newest = self.last_timestamp
        for request in requests:
            if not request.requester_id or not request.conversation_id:
                logger.warning("Request %s missing requester or conversation id, skipping", request.id)
                outcomes[IntakeOutcome.SKIPPED_INCOMPLETE] += 1
                continue
            if request.timestamp <= self.last_timestamp:
                outcomes[IntakeOutcome.SKIPPED_STALE] += 1
                continue
            newest = max(newest, request.timestamp)
            outcomes[await self.handle(request)] += 1

        if newest > self.last_timestamp:
            self.last_timestamp = newest
            logger.info("Intake timestamp advanced to %s", newest)
        return outcomes

    async def handle(self, request: CandidateRequest) -> IntakeOutcome:
        """
        Process one candidate request.

        Requests are handled one at a time, so concurrent callers cannot
        both pass the processed-message check for the same conversation.

        Args:
            request: Mention from the intake source

        Returns:
            IntakeOutcome describing what was done
        """
        async with self._lock:
            return await self._handle(request)

    async def _handle(self, request: CandidateRequest) -> IntakeOutcome:
        state = self.conversations.get(request.conversation_id)
        if state is not None and state.is_terminal:
            logger.info(
                "Conversation %s already %s, skipping message %s",
                request.conversation_id,
                state.status.value,
                request.id,
            )
            return IntakeOutcome.SKIPPED_TERMINAL
        if state is not None and state.last_processed_message_id == request.id:
            return IntakeOutcome.SKIPPED_PROCESSED

        name = self.extract_name(request.text)
        if name is None:
            return await self._neutral(request)

        if self.dedupe_active_requests and self.deposits.has_pending(request.requester_id, name):
            logger.info(
                "Name %s by %s already awaiting deposit, skipping message %s",
                name,
                request.requester_id,
                request.id,
            )
            self.conversations.merge(request.conversation_id, last_processed_message_id=request.id)
            return IntakeOutcome.DUPLICATE_REQUEST

        attempts = state.attempts if state is not None else 0
        self.conversations.merge(
            request.conversation_id,
            name=name,
            requester_id=request.requester_id,
            attempts=attempts + 1,
        )
        logger.info("Processing request %s for name %s", request.id, name)

        try:
            return await self._issue(request, name)
        except CollaboratorError as e:
            logger.error("Intake failed for request %s: %s", request.id, e)
            self.conversations.merge(
                request.conversation_id,
                status=ConversationStatus.ERROR_PROCESSING,
                last_processed_message_id=request.id,
            )
            return IntakeOutcome.FAILED

    async def _neutral(self, request: CandidateRequest) -> IntakeOutcome:
        logger.info("Message %s has no requested name", request.id)
        try:
            await self.replies.reply(self.neutral_reply, request.id, request.requester_id)
        except CollaboratorError as e:
            logger.warning("Neutral reply to %s failed: %s", request.id, e)
        self.conversations.merge(request.conversation_id, last_processed_message_id=request.id)
        return IntakeOutcome.NO_NAME

    async def _issue(self, request: CandidateRequest, name: str) -> IntakeOutcome:
        if not validate_name(name):
            return await self._reject_invalid(request, name)

        check = await self.names.check_name(name)
        if not check.valid:
            return await self._reject_invalid(request, name)
        if not check.available:
            self.conversations.merge(
                request.conversation_id,
                status=ConversationStatus.ERROR_UNAVAILABLE_NAME,
                last_processed_message_id=request.id,
            )
            await self.replies.reply(
                messages.unavailable_name(name, self.name_suffix),
                request.id,
                request.requester_id,
            )
            return IntakeOutcome.UNAVAILABLE_NAME

        price = price_for(name)
        path = derivation_path(request.requester_id, name)
        address = await self.addresses.derive_address(path, self.network)

        sent = await self.replies.reply(
            messages.instructions(
                name,
                self.name_suffix,
                format_price(price),
                self.chain_label,
                address,
                self.window_minutes,
            ),
            request.id,
            request.requester_id,
        )

        self.conversations.merge(
            request.conversation_id,
            status=ConversationStatus.INSTRUCTION_SENT,
            deposit_address=address,
            derivation_path=path,
            price=price,
            last_processed_message_id=request.id,
        )
        self.deposits.submit(
            DepositItem(
                request_id=request.id,
                requester_id=request.requester_id,
                conversation_id=request.conversation_id,
                name=name,
                derivation_path=path,
                deposit_address=address,
                price=price,
                deposit_attempt=0,
                instruction_reply_id=sent.id,
            )
        )
        logger.info("Instructions sent for %s, watching %s", name, address)
        self.deposits.ensure_running()
        return IntakeOutcome.INSTRUCTIONS_SENT

    async def _reject_invalid(self, request: CandidateRequest, name: str) -> IntakeOutcome:
        self.conversations.merge(
            request.conversation_id,
            status=ConversationStatus.ERROR_INVALID_NAME,
            last_processed_message_id=request.id,
        )
        await self.replies.reply(messages.invalid_name(name), request.id, request.requester_id)
        return IntakeOutcome.INVALID_NAME
