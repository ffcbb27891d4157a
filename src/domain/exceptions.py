"""
Domain exceptions - Semantic error types for the fulfillment engine.

This module defines domain-specific exceptions that communicate
collaborator and configuration failures without leaking adapter details.
"""


class EngineError(Exception):
    """Base class for fulfillment engine errors."""

    pass


class CollaboratorError(EngineError):
    """An external collaborator call (chain, explorer, social) failed."""

    pass


class ConfigurationError(EngineError):
    """Required credentials, endpoints or wiring are missing or malformed."""

    pass


class UnknownQueue(EngineError):
    """Operator referenced a queue the engine does not own."""

    pass
