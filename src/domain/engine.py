"""
Fulfillment engine - Process-wide context for intake and both workers.

The Engine owns the conversation store, the refund archive and the two
queue workers. It is created once at application startup, started, and
stopped at shutdown; nothing in the domain layer is a module-level
singleton.

Operator controls:
- restart_queue(name): start the named worker if idle with work queued
- force_refund(address, path): inject a refund, bypassing conversations
"""

import logging
from dataclasses import dataclass

from .deposits import DepositMonitor
from .exceptions import UnknownQueue
from .intake import IntakeOutcome, IntakeService
from .models import FORCED_REFUND_ID, CandidateRequest, EngineSnapshot, RefundItem
from .ports import (
    AddressDeriver,
    ChainClient,
    ConversationRepository,
    NameAvailability,
    RefundArchive,
    ReplySender,
    TransactionLookup,
)
from .refunds import RefundPolicy, RefundProcessor
from .worker import QueueWorker, Schedule, Sleeper

logger = logging.getLogger(__name__)


@dataclass
class Collaborators:
    """External collaborators the engine drives."""

    names: NameAvailability
    addresses: AddressDeriver
    chain: ChainClient
    transactions: TransactionLookup
    replies: ReplySender


@dataclass(frozen=True)
class EngineConfig:
    """Policy constants for intake and both workers."""

    network: str = "mainnet"
    name_suffix: str = ".base.eth"
    chain_label: str = "Base"
    instruction_window_minutes: int = 10
    neutral_reply: str = "I'm good"
    dedupe_active_requests: bool = True
    deposit_interval_seconds: float = 5.0
    deposit_max_attempts: int = 12 * 60
    refund_interval_seconds: float = 60.0
    refund_policy: RefundPolicy = RefundPolicy()


class Engine:
    """Wires intake, deposit monitor and refund processor together."""

    def __init__(
        self,
        collaborators: Collaborators,
        conversations: ConversationRepository,
        archive: RefundArchive,
        config: EngineConfig | None = None,
        sleep: Sleeper | None = None,
    ) -> None:
        self.config = config or EngineConfig()
        self.conversations = conversations
        self.archive = archive

        self.refunds = RefundProcessor(
            chain=collaborators.chain,
            transactions=collaborators.transactions,
            archive=archive,
            schedule=Schedule(self.config.refund_interval_seconds),
            policy=self.config.refund_policy,
            sleep=sleep,
        )
        self.deposits = DepositMonitor(
            chain=collaborators.chain,
            transactions=collaborators.transactions,
            replies=collaborators.replies,
            conversations=conversations,
            refunds=self.refunds,
            schedule=Schedule(self.config.deposit_interval_seconds),
            max_attempts=self.config.deposit_max_attempts,
            name_suffix=self.config.name_suffix,
            sleep=sleep,
        )
        self.intake = IntakeService(
            conversations=conversations,
            names=collaborators.names,
            addresses=collaborators.addresses,
            replies=collaborators.replies,
            deposits=self.deposits,
            name_suffix=self.config.name_suffix,
            network=self.config.network,
            chain_label=self.config.chain_label,
            window_minutes=self.config.instruction_window_minutes,
            neutral_reply=self.config.neutral_reply,
            dedupe_active_requests=self.config.dedupe_active_requests,
        )

    @property
    def workers(self) -> dict[str, QueueWorker]:
        return {self.deposits.name: self.deposits, self.refunds.name: self.refunds}

    def start(self) -> None:
        """Start both workers. Safe to call repeatedly."""
        for worker in self.workers.values():
            worker.ensure_running()

    async def stop(self) -> None:
        for worker in self.workers.values():
            await worker.stop()

    async def handle_request(self, request: CandidateRequest) -> IntakeOutcome:
        return await self.intake.handle(request)

    def restart_queue(self, name: str) -> bool:
        """
        Start the named worker if it is idle and has queued work.

        Args:
            name: "deposits" or "refunds"

        Returns:
            True if a worker task was started

        Raises:
            UnknownQueue: If no worker owns a queue with that name
        """
        worker = self.workers.get(name)
        if worker is None:
            raise UnknownQueue(name)
        if not worker.queue:
            logger.info("Restart of %s requested with empty queue, nothing to do", name)
            return False
        return worker.ensure_running()

    def force_refund(self, address: str, path: str) -> RefundItem:
        """Queue a refund attempt for an arbitrary deposit address."""
        item = RefundItem(request_id=FORCED_REFUND_ID, derivation_path=path, deposit_address=address)
        logger.info("Manual refund triggered for address %s with path %s", address, path)
        self.refunds.submit(item)
        self.refunds.ensure_running()
        return item

    def refund_archive(self) -> list[RefundItem]:
        return self.archive.entries()

    def snapshot(self) -> EngineSnapshot:
        return EngineSnapshot(
            pending_deposits=len(self.deposits.queue),
            pending_refunds=len(self.refunds.queue),
            archived_refunds=len(self.archive.entries()),
            workers={name: worker.is_running for name, worker in self.workers.items()},
        )
