"""
Shared fixtures for adversarial tests.

Provides an engine on zero-delay schedules so workers run as fast as
the event loop allows, which makes interleavings easy to provoke.
"""

from collections.abc import AsyncGenerator

import pytest
import pytest_asyncio

from src.adapters.repository.memory import InMemoryConversationRepository, InMemoryRefundArchive
from src.domain.engine import Collaborators, Engine, EngineConfig

# Module-level marker for all adversarial tests
pytestmark = pytest.mark.adversarial


@pytest_asyncio.fixture
async def engine(
    collaborators: Collaborators,
    conversations: InMemoryConversationRepository,
    archive: InMemoryRefundArchive,
) -> AsyncGenerator[Engine, None]:
    """Engine with no pacing between worker steps, stopped after the test."""
    config = EngineConfig(
        deposit_interval_seconds=0,
        refund_interval_seconds=0,
        deposit_max_attempts=5,
    )
    engine = Engine(collaborators, conversations, archive, config)
    yield engine
    await engine.stop()
