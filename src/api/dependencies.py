"""
FastAPI dependencies - Dependency injection factories and engine wiring.

This module provides Depends() factories for injecting the engine and
settings into routes, operator authentication, and the helpers that
turn Settings into engine configuration and collaborators.
"""

import importlib
import secrets
from dataclasses import replace

import bcrypt
from fastapi import Depends, HTTPException, Request, status
from fastapi.security import HTTPBasic, HTTPBasicCredentials

from src.adapters.explorer.basescan import BasescanTransactionLookup, explorer_url_for
from src.adapters.social.console import ConsoleReplySender
from src.config.settings import Settings
from src.domain.engine import Collaborators, Engine, EngineConfig
from src.domain.exceptions import ConfigurationError
from src.domain.refunds import RefundPolicy

# Compared against when no operator hash is configured, so a denied
# request costs the same bcrypt work as a real check.
_DUMMY_BCRYPT_HASH = bcrypt.hashpw(b"dummy_password_for_timing_safety", bcrypt.gensalt(10)).decode()


def build_engine_config(settings: Settings) -> EngineConfig:
    """Translate application settings into domain policy constants."""
    return EngineConfig(
        network=settings.network,
        name_suffix=settings.name_suffix,
        chain_label=settings.chain_label,
        instruction_window_minutes=settings.instruction_window_minutes,
        neutral_reply=settings.neutral_reply,
        dedupe_active_requests=settings.dedupe_active_requests,
        deposit_interval_seconds=settings.deposit_interval_seconds,
        deposit_max_attempts=settings.deposit_max_attempts,
        refund_interval_seconds=settings.refund_interval_seconds,
        refund_policy=RefundPolicy(
            gas_limit=settings.refund_gas_limit,
            internal_gas_limit=settings.refund_internal_gas_limit,
            buffer_wei=settings.refund_buffer_wei,
        ),
    )


def build_transaction_lookup(settings: Settings) -> BasescanTransactionLookup:
    """
    Explorer-backed transaction lookup for collaborator factories.

    Raises:
        ConfigurationError: If no explorer API key is configured
    """
    if not settings.explorer_api_key:
        raise ConfigurationError("EXPLORER_API_KEY is required for transaction lookup")
    return BasescanTransactionLookup(
        base_url=settings.explorer_api_url or explorer_url_for(settings.network),
        api_key=settings.explorer_api_key,
        timeout=settings.explorer_timeout_seconds,
    )


def load_collaborators(settings: Settings) -> Collaborators:
    """
    Build collaborators from the configured factory.

    The factory is named by COLLABORATORS_FACTORY as "module:callable"
    and is called with the settings. In dry-run mode the social reply
    collaborator is replaced by the console sender.

    Raises:
        ConfigurationError: If the factory is unset, cannot be imported,
            or does not return Collaborators
    """
    target = settings.collaborators_factory
    if not target:
        raise ConfigurationError("COLLABORATORS_FACTORY is not set")

    module_name, _, attribute = target.partition(":")
    if not module_name or not attribute:
        raise ConfigurationError(f"COLLABORATORS_FACTORY must be 'module:callable', got {target!r}")

    try:
        module = importlib.import_module(module_name)
    except ImportError as e:
        raise ConfigurationError(f"Cannot import collaborators module {module_name!r}") from e

    factory = getattr(module, attribute, None)
    if not callable(factory):
        raise ConfigurationError(f"{target!r} is not callable")

    collaborators = factory(settings)
    if not isinstance(collaborators, Collaborators):
        raise ConfigurationError(f"{target!r} did not return Collaborators")

    if settings.reply_dry_run:
        collaborators = replace(collaborators, replies=ConsoleReplySender())
    return collaborators


def get_engine(request: Request) -> Engine:
    """
    Get the fulfillment engine from app state.

    The engine is created during app lifespan startup and stored in app.state.
    """
    return request.app.state.engine


def get_app_settings(request: Request) -> Settings:
    """Get the settings the application was created with."""
    return request.app.state.settings


# HTTP BASIC AUTH security scheme for OpenAPI documentation
http_basic = HTTPBasic()


def require_operator(
    credentials: HTTPBasicCredentials = Depends(http_basic),
    settings: Settings = Depends(get_app_settings),
) -> str:
    """
    Authenticate an operator via HTTP BASIC AUTH.

    Both the username and the bcrypt password comparison always run, so
    response time does not reveal which one failed. With no hash
    configured every request is rejected.

    Returns:
        The authenticated operator username

    Raises:
        HTTPException: 401 on any credential mismatch
    """
    configured = bool(settings.operator_password_hash)
    stored_hash = settings.operator_password_hash or _DUMMY_BCRYPT_HASH

    username_valid = secrets.compare_digest(
        credentials.username.encode(), settings.operator_username.encode()
    )
    try:
        password_valid = bcrypt.checkpw(credentials.password.encode(), stored_hash.encode())
    except ValueError:
        # Malformed hash in configuration
        password_valid = False

    if not (configured and username_valid and password_valid):
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid operator credentials",
            headers={"WWW-Authenticate": "Basic"},
        )
    return credentials.username
