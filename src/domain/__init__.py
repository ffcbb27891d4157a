"""
Domain layer - Pure business logic with zero framework imports.

This package contains the request fulfillment engine: conversation
lifecycle, pricing and validation, intake, the deposit monitor and the
refund processor. It defines its own port interfaces for infrastructure
abstraction, ensuring true hexagonal architecture decoupling.
"""

from .engine import Collaborators, Engine, EngineConfig
from .exceptions import CollaboratorError, ConfigurationError, EngineError, UnknownQueue
from .intake import IntakeOutcome, IntakeService
from .models import (
    CandidateRequest,
    ConversationState,
    ConversationStatus,
    DepositItem,
    RefundItem,
)
from .ports import (
    AddressDeriver,
    ChainClient,
    ConversationRepository,
    NameAvailability,
    RefundArchive,
    ReplySender,
    TransactionLookup,
)

__all__ = [
    "AddressDeriver",
    "CandidateRequest",
    "ChainClient",
    "CollaboratorError",
    "Collaborators",
    "ConfigurationError",
    "ConversationRepository",
    "ConversationState",
    "ConversationStatus",
    "DepositItem",
    "Engine",
    "EngineConfig",
    "EngineError",
    "IntakeOutcome",
    "IntakeService",
    "NameAvailability",
    "RefundArchive",
    "RefundItem",
    "ReplySender",
    "TransactionLookup",
    "UnknownQueue",
]
