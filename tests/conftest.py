"""
Shared test fixtures and configuration.

This module provides pytest fixtures for:
- Collaborator mocks with sensible "happy path" defaults
- In-memory conversation store and refund archive
"""

from unittest.mock import AsyncMock

import pytest

from src.adapters.repository.memory import InMemoryConversationRepository, InMemoryRefundArchive
from src.domain.engine import Collaborators
from src.domain.ports import GasPrice, NameCheck, RegistrationResult, ReplyResult
from tests.factories import DEPOSIT_ADDRESS, EXPLORER_LINK


@pytest.fixture
def chain() -> AsyncMock:
    """Chain client: empty address, 2000/500 gas, successful registrations."""
    chain = AsyncMock()
    chain.get_balance.return_value = 0
    chain.get_gas_price.return_value = GasPrice(max_fee_per_gas=2_000, max_priority_fee_per_gas=500)
    chain.submit_registration.return_value = RegistrationResult(
        success=True, explorer_link=EXPLORER_LINK
    )
    chain.transfer.return_value = None
    return chain


@pytest.fixture
def transactions() -> AsyncMock:
    """Transaction lookup that finds nothing."""
    transactions = AsyncMock()
    transactions.find_funding_tx.return_value = None
    return transactions


@pytest.fixture
def replies() -> AsyncMock:
    replies = AsyncMock()
    replies.reply.return_value = ReplyResult(id="reply-1")
    return replies


@pytest.fixture
def names() -> AsyncMock:
    """Availability lookup that reports every name valid and available."""
    names = AsyncMock()
    names.check_name.return_value = NameCheck(valid=True, available=True)
    return names


@pytest.fixture
def addresses() -> AsyncMock:
    addresses = AsyncMock()
    addresses.derive_address.return_value = DEPOSIT_ADDRESS
    return addresses


@pytest.fixture
def conversations() -> InMemoryConversationRepository:
    return InMemoryConversationRepository()


@pytest.fixture
def archive() -> InMemoryRefundArchive:
    return InMemoryRefundArchive()


@pytest.fixture
def collaborators(
    names: AsyncMock,
    addresses: AsyncMock,
    chain: AsyncMock,
    transactions: AsyncMock,
    replies: AsyncMock,
) -> Collaborators:
    return Collaborators(
        names=names,
        addresses=addresses,
        chain=chain,
        transactions=transactions,
        replies=replies,
    )
