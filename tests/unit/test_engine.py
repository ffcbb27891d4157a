"""
Unit tests for the Engine context.

Tests verify wiring, operator controls and the state snapshot.
"""

from collections.abc import AsyncGenerator

import pytest
import pytest_asyncio

from src.adapters.repository.memory import InMemoryConversationRepository, InMemoryRefundArchive
from src.domain.engine import Collaborators, Engine, EngineConfig
from src.domain.exceptions import UnknownQueue
from src.domain.intake import IntakeOutcome
from src.domain.models import FORCED_REFUND_ID, ConversationStatus, RefundItem
from src.domain.refunds import RefundPolicy
from tests.factories import DEPOSIT_ADDRESS, make_deposit, make_request


@pytest_asyncio.fixture
async def engine(
    collaborators: Collaborators,
    conversations: InMemoryConversationRepository,
    archive: InMemoryRefundArchive,
) -> AsyncGenerator[Engine, None]:
    engine = Engine(collaborators, conversations, archive)
    yield engine
    await engine.stop()


class TestEngineWiring:
    """Tests for how the engine builds its parts."""

    def test_config_reaches_components(
        self,
        collaborators: Collaborators,
        conversations: InMemoryConversationRepository,
        archive: InMemoryRefundArchive,
    ) -> None:
        config = EngineConfig(
            network="testnet",
            name_suffix=".eth",
            deposit_max_attempts=3,
            refund_policy=RefundPolicy(buffer_wei=0),
            dedupe_active_requests=False,
        )
        engine = Engine(collaborators, conversations, archive, config)

        assert engine.intake.network == "testnet"
        assert engine.intake.name_suffix == ".eth"
        assert engine.intake.dedupe_active_requests is False
        assert engine.deposits.max_attempts == 3
        assert engine.deposits.name_suffix == ".eth"
        assert engine.refunds.policy.buffer_wei == 0
        assert engine.intake.deposits is engine.deposits

    def test_workers_by_queue_name(
        self,
        collaborators: Collaborators,
        conversations: InMemoryConversationRepository,
        archive: InMemoryRefundArchive,
    ) -> None:
        engine = Engine(collaborators, conversations, archive)
        assert engine.workers == {"deposits": engine.deposits, "refunds": engine.refunds}

    def test_default_config(self) -> None:
        config = EngineConfig()
        assert config.deposit_interval_seconds == 5.0
        assert config.deposit_max_attempts == 720
        assert config.refund_interval_seconds == 60.0


@pytest.mark.asyncio
class TestEngineLifecycle:
    """Tests for start and stop."""

    async def test_start_is_idempotent(self, engine: Engine) -> None:
        engine.start()
        engine.start()

        assert engine.deposits.is_running
        assert engine.refunds.is_running

    async def test_stop_halts_workers(self, engine: Engine) -> None:
        engine.start()
        await engine.stop()

        assert engine.snapshot().workers == {"deposits": False, "refunds": False}

    async def test_handle_request_delegates_to_intake(self, engine: Engine) -> None:
        outcome = await engine.handle_request(make_request())

        assert outcome == IntakeOutcome.INSTRUCTIONS_SENT
        assert engine.deposits.is_running
        assert engine.conversations.get("conv-1").status == ConversationStatus.INSTRUCTION_SENT  # type: ignore[union-attr]


@pytest.mark.asyncio
class TestRestartQueue:
    """Tests for the operator queue restart."""

    async def test_unknown_queue_raises(self, engine: Engine) -> None:
        with pytest.raises(UnknownQueue):
            engine.restart_queue("mentions")

    async def test_empty_queue_not_started(self, engine: Engine) -> None:
        assert engine.restart_queue("deposits") is False
        assert engine.deposits.is_running is False

    async def test_idle_worker_with_items_started(self, engine: Engine) -> None:
        engine.deposits.submit(make_deposit())

        assert engine.restart_queue("deposits") is True
        assert engine.deposits.is_running is True

    async def test_running_worker_not_duplicated(self, engine: Engine) -> None:
        engine.refunds.submit(RefundItem("1", "p", DEPOSIT_ADDRESS))
        engine.refunds.ensure_running()

        assert engine.restart_queue("refunds") is False


@pytest.mark.asyncio
class TestForceRefund:
    """Tests for the operator forced refund."""

    async def test_force_refund_queues_sentinel_item(self, engine: Engine) -> None:
        item = engine.force_refund(DEPOSIT_ADDRESS, "user-1-alice")

        assert item == RefundItem(
            request_id=FORCED_REFUND_ID,
            derivation_path="user-1-alice",
            deposit_address=DEPOSIT_ADDRESS,
        )
        assert list(engine.refunds.queue) == [item]
        assert engine.refunds.is_running

    async def test_force_refund_does_not_touch_conversations(
        self, engine: Engine, conversations: InMemoryConversationRepository
    ) -> None:
        engine.force_refund(DEPOSIT_ADDRESS, "user-1-alice")
        assert len(conversations) == 0


@pytest.mark.asyncio
class TestSnapshot:
    """Tests for the engine snapshot and refund archive listing."""

    async def test_snapshot_counts(self, engine: Engine, archive: InMemoryRefundArchive) -> None:
        engine.deposits.submit(make_deposit())
        engine.deposits.submit(make_deposit(request_id="2"))
        engine.refunds.submit(RefundItem("3", "p", DEPOSIT_ADDRESS))
        archive.append(RefundItem("0", "p", DEPOSIT_ADDRESS))

        snapshot = engine.snapshot()

        assert snapshot.pending_deposits == 2
        assert snapshot.pending_refunds == 1
        assert snapshot.archived_refunds == 1
        assert snapshot.workers == {"deposits": False, "refunds": False}

    async def test_refund_archive_lists_entries(
        self, engine: Engine, archive: InMemoryRefundArchive
    ) -> None:
        entry = RefundItem("0", "p", DEPOSIT_ADDRESS)
        archive.append(entry)
        assert engine.refund_archive() == [entry]
