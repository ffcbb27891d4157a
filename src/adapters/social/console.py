"""
Console reply sender adapter - Implements ReplySender protocol.

This module provides a console-based implementation of the domain's
reply port. Replies are logged instead of posted, which is how the
service runs in search-only (dry-run) mode.
"""

import logging
import secrets

from src.domain.ports import ReplyResult

logger = logging.getLogger(__name__)


class ConsoleReplySender:
    """
    Implements ReplySender protocol via console logging.

    Uses structural subtyping - no explicit inheritance from Protocol.
    Each reply gets a synthetic id so intake can record it like a real one.
    """

    async def reply(self, text: str, message_id: str, requester_id: str) -> ReplyResult:
        """
        Log the reply that would be posted.

        Args:
            text: Reply body
            message_id: Message being replied to
            requester_id: Author of that message

        Returns:
            ReplyResult with a "dry-run-" prefixed id
        """
        reply_id = f"dry-run-{secrets.token_hex(8)}"
        logger.info(
            "[REPLY] In-Reply-To: %s Requester: %s Id: %s Text: %s",
            message_id,
            requester_id,
            reply_id,
            text,
        )
        return ReplyResult(id=reply_id)
