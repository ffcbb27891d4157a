"""
Port interfaces - Protocol definitions for infrastructure abstraction.

This module defines the interfaces (ports) that the fulfillment engine
requires from infrastructure. Adapters implement these protocols through
structural subtyping.

All chain, explorer and social collaborators are coroutines and signal
failure by raising CollaboratorError. The conversation store and refund
archive are synchronous: they are local state, not network I/O.
"""

from dataclasses import dataclass
from typing import Protocol

from .models import ConversationState, RefundItem


@dataclass(frozen=True)
class NameCheck:
    """Result of an on-chain name availability lookup."""

    valid: bool
    available: bool
    error: str | None = None


@dataclass(frozen=True)
class GasPrice:
    """EIP-1559 fee data, in wei."""

    max_fee_per_gas: int
    max_priority_fee_per_gas: int


@dataclass(frozen=True)
class TransferRequest:
    """Native-token transfer signed with the key at `path`."""

    path: str
    from_address: str
    to_address: str
    amount: int
    gas_limit: int


@dataclass(frozen=True)
class RegistrationResult:
    """Outcome of a name registration transaction."""

    success: bool
    explorer_link: str | None = None


@dataclass(frozen=True)
class FundingTx:
    """First transaction that funded a deposit address."""

    from_address: str
    is_error: bool = False


@dataclass(frozen=True)
class ReplyResult:
    """Identifier of a posted social reply."""

    id: str


class NameAvailability(Protocol):
    """Port interface for on-chain name validity and availability."""

    async def check_name(self, name: str) -> NameCheck:
        ...


class AddressDeriver(Protocol):
    """Port interface for deterministic deposit address derivation."""

    async def derive_address(self, path: str, network: str) -> str:
        """
        Derive the deposit address for a derivation path.

        Args:
            path: Derivation path, stable for a (requester, name) pair
            network: "mainnet" or "testnet"

        Returns:
            Hex-encoded EVM address
        """
        ...


class ChainClient(Protocol):
    """Port interface for balance, gas, transfers and registrations."""

    async def get_balance(self, address: str) -> int:
        ...

    async def get_gas_price(self) -> GasPrice:
        ...

    async def transfer(self, request: TransferRequest) -> None:
        ...

    async def submit_registration(
        self, path: str, name: str, deposit_address: str, owner_address: str
    ) -> RegistrationResult:
        """
        Register `name` to `owner_address`, paying from `deposit_address`.

        Args:
            path: Derivation path of the paying deposit address
            name: Bare label, without suffix
            deposit_address: Address holding the payment
            owner_address: Address that will own the name

        Returns:
            RegistrationResult with the explorer link on success
        """
        ...


class TransactionLookup(Protocol):
    """Port interface for block-explorer transaction lookup."""

    async def find_funding_tx(self, address: str, internal: bool = False) -> FundingTx | None:
        """
        Find the transaction that funded `address`.

        Args:
            address: Deposit address
            internal: Search internal (contract-originated) transactions

        Returns:
            FundingTx, or None when no usable transaction exists
        """
        ...


class ReplySender(Protocol):
    """Port interface for posting social replies."""

    async def reply(self, text: str, message_id: str, requester_id: str) -> ReplyResult:
        ...


class ConversationRepository(Protocol):
    """Port interface for conversation state persistence."""

    def get(self, conversation_id: str) -> ConversationState | None:
        ...

    def merge(self, conversation_id: str, **fields: object) -> ConversationState:
        """
        Overlay `fields` onto the stored state.

        Creates a default state (status NEW, attempts 0) when the
        conversation is unknown. Performs no transition validation.

        Returns:
            The merged state
        """
        ...


class RefundArchive(Protocol):
    """Port interface for the append-only refund archive."""

    def append(self, item: RefundItem) -> None:
        ...

    def entries(self) -> list[RefundItem]:
        ...
