"""
Deposit monitor - Watches deposit addresses and registers paid names.

Per-item state machine
======================

    watching -> registering     (balance >= price, funder found)
    watching -> refund_pending  (attempt cap reached, or contract-wallet funding)
    watching -> watching        (insufficient balance or any error before a
                                 registration is submitted, attempt counter
                                 incremented, re-queued at tail)

A registration is submitted at most once per item. Whatever its outcome,
any balance left on the deposit address afterwards is queued for refund.
Nothing raised after submission sends the item back to the watch.

Attempts are counted, not timed: with the default 5 second interval and
720 attempts an unpaid item is watched for about an hour.
"""

import logging

from . import messages
from .exceptions import CollaboratorError
from .models import ConversationStatus, DepositItem
from .ports import (
    ChainClient,
    ConversationRepository,
    FundingTx,
    RegistrationResult,
    ReplySender,
    TransactionLookup,
)
from .refunds import RefundProcessor
from .worker import QueueWorker, Schedule, Sleeper, StepOutcome

logger = logging.getLogger(__name__)


class DepositMonitor(QueueWorker[DepositItem]):
    """Sole consumer of the deposit queue."""

    name = "deposits"

    def __init__(
        self,
        chain: ChainClient,
        transactions: TransactionLookup,
        replies: ReplySender,
        conversations: ConversationRepository,
        refunds: RefundProcessor,
        schedule: Schedule,
        max_attempts: int,
        name_suffix: str = ".base.eth",
        sleep: Sleeper | None = None,
    ) -> None:
        super().__init__(schedule, sleep=sleep)
        self._chain = chain
        self._transactions = transactions
        self._replies = replies
        self._conversations = conversations
        self._refunds = refunds
        self.max_attempts = max_attempts
        self.name_suffix = name_suffix
        self._current: DepositItem | None = None

    def has_pending(self, requester_id: str, name: str) -> bool:
        """True if a deposit for this requester and name is queued or being checked."""
        watched = list(self.queue)
        if self._current is not None:
            watched.append(self._current)
        return any(item.requester_id == requester_id and item.name == name for item in watched)

    async def step(self) -> StepOutcome:
        if not self.queue:
            return StepOutcome.IDLE
        item = self.queue.popleft()

        if item.deposit_attempt >= self.max_attempts:
            logger.info(
                "Max deposit attempts reached for request %s, moving to refund queue",
                item.request_id,
            )
            self._route_to_refund(item)
            self._conversations.merge(
                item.conversation_id, status=ConversationStatus.ERROR_MAX_ATTEMPTS
            )
            return StepOutcome.CONTINUE

        logger.debug(
            "Checking deposit attempt %d for %s", item.deposit_attempt, item.deposit_address
        )
        self._current = item
        try:
            if await self._settle(item):
                return StepOutcome.PROCESSED
        except CollaboratorError as e:
            logger.warning("Deposit check failed for %s: %s", item.deposit_address, e)
        except Exception:
            logger.exception("Unexpected error checking deposit for %s", item.deposit_address)
        finally:
            self._current = None

        item.deposit_attempt += 1
        self.queue.append(item)
        return StepOutcome.PROCESSED

    async def _settle(self, item: DepositItem) -> bool:
        """
        Try to move a paid item out of the watch.

        Returns:
            True if the item left the deposit queue, False to keep watching
        """
        balance = await self._chain.get_balance(item.deposit_address)
        if balance < item.price:
            return False

        funding = await self._transactions.find_funding_tx(item.deposit_address)
        if funding is not None:
            await self._register(item, funding)
            return True

        internal = await self._transactions.find_funding_tx(item.deposit_address, internal=True)
        if internal is not None:
            # Contract wallets cannot receive a registration in this flow
            logger.info(
                "Deposit at %s came from a contract wallet, moving to refund queue",
                item.deposit_address,
            )
            self._route_to_refund(item)
            self._conversations.merge(
                item.conversation_id, status=ConversationStatus.ERROR_UNSUPPORTED_WALLET
            )
            return True

        return False

    async def _register(self, item: DepositItem, funding: FundingTx) -> None:
        try:
            result = await self._chain.submit_registration(
                item.derivation_path,
                item.name,
                item.deposit_address,
                funding.from_address,
            )
        except Exception:
            logger.exception("Registration of %s failed", item.name)
            result = RegistrationResult(success=False)

        try:
            await self._record_outcome(item, funding, result)
        except Exception:
            logger.exception("Recording registration outcome for request %s failed", item.request_id)

        await self._refund_leftover(item)

    async def _record_outcome(
        self, item: DepositItem, funding: FundingTx, result: RegistrationResult
    ) -> None:
        if result.success:
            self._conversations.merge(item.conversation_id, status=ConversationStatus.RESOLVED)
            logger.info("Registered %s%s to %s", item.name, self.name_suffix, funding.from_address)
            try:
                await self._replies.reply(
                    messages.registered(
                        item.name, self.name_suffix, funding.from_address, result.explorer_link
                    ),
                    item.request_id,
                    item.requester_id,
                )
            except CollaboratorError as e:
                logger.error("Success reply for request %s failed: %s", item.request_id, e)
        else:
            self._conversations.merge(
                item.conversation_id, status=ConversationStatus.ERROR_REGISTRATION_FAILED
            )
            logger.error("Registration of %s was not confirmed", item.name)

    async def _refund_leftover(self, item: DepositItem) -> None:
        try:
            remaining = await self._chain.get_balance(item.deposit_address)
        except Exception:
            logger.exception("Leftover balance check failed for %s", item.deposit_address)
            return
        if remaining > 0:
            logger.info("Leftover balance %d at %s, queueing refund", remaining, item.deposit_address)
            self._route_to_refund(item)

    def _route_to_refund(self, item: DepositItem) -> None:
        self._refunds.submit(item.to_refund())
        self._refunds.ensure_running()
