"""
Refund processor - Returns deposit balances to their funders.

Every dequeued item is appended to the refund archive BEFORE any chain
call, so an operator can retry a failed transfer with force_refund().
As a consequence the archive alone does not tell a failed transfer
from a successful one.

Payout:

    gas_fee = (max_fee_per_gas + max_priority_fee_per_gas) * gas_limit
    amount  = balance - gas_fee - buffer

`gas_limit` is larger when the deposit came from an internal transaction,
because the funder is a smart-contract wallet.

Failed transfers are logged and never re-queued.
"""

import logging
from dataclasses import dataclass

from .exceptions import CollaboratorError
from .models import RefundItem
from .ports import ChainClient, GasPrice, RefundArchive, TransactionLookup, TransferRequest
from .worker import QueueWorker, Schedule, Sleeper, StepOutcome

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class RefundPolicy:
    """Gas limits and safety buffer used to size a payout."""

    gas_limit: int = 21_000
    internal_gas_limit: int = 500_000
    buffer_wei: int = 5_000_000_000_000


def refund_amount(balance: int, gas: GasPrice, gas_limit: int, buffer_wei: int) -> int:
    """Balance left after paying worst-case gas and keeping the buffer."""
    gas_fee = (gas.max_fee_per_gas + gas.max_priority_fee_per_gas) * gas_limit
    return balance - gas_fee - buffer_wei


class RefundProcessor(QueueWorker[RefundItem]):
    """Sole consumer of the refund queue."""

    name = "refunds"

    def __init__(
        self,
        chain: ChainClient,
        transactions: TransactionLookup,
        archive: RefundArchive,
        schedule: Schedule,
        policy: RefundPolicy | None = None,
        sleep: Sleeper | None = None,
    ) -> None:
        super().__init__(schedule, sleep=sleep)
        self._chain = chain
        self._transactions = transactions
        self._archive = archive
        self.policy = policy or RefundPolicy()

    async def step(self) -> StepOutcome:
        if not self.queue:
            return StepOutcome.IDLE
        item = self.queue.popleft()
        logger.info("Processing refund for request %s, address %s", item.request_id, item.deposit_address)

        self._archive.append(item)

        try:
            await self._refund(item)
        except CollaboratorError as e:
            logger.error("Refund failed for %s: %s", item.deposit_address, e)
        return StepOutcome.PROCESSED

    async def _refund(self, item: RefundItem) -> None:
        internal = False
        funding = await self._transactions.find_funding_tx(item.deposit_address)
        if funding is None:
            # Smart-contract wallets fund through internal transactions
            funding = await self._transactions.find_funding_tx(item.deposit_address, internal=True)
            internal = True
        if funding is None:
            logger.info("No funding transaction for %s, nothing to refund", item.deposit_address)
            return

        balance = await self._chain.get_balance(item.deposit_address)
        gas = await self._chain.get_gas_price()
        gas_limit = self.policy.internal_gas_limit if internal else self.policy.gas_limit
        amount = refund_amount(balance, gas, gas_limit, self.policy.buffer_wei)
        if amount <= 0:
            logger.warning(
                "Balance %d at %s does not cover gas and buffer, skipping transfer",
                balance,
                item.deposit_address,
            )
            return

        await self._chain.transfer(
            TransferRequest(
                path=item.derivation_path,
                from_address=item.deposit_address,
                to_address=funding.from_address,
                amount=amount,
                gas_limit=gas_limit,
            )
        )
        logger.info("Refund of %d wei sent to %s", amount, funding.from_address)
