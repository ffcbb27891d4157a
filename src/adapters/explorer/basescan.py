"""
Basescan transaction lookup adapter - Implements TransactionLookup protocol.

Queries the explorer's account API for the earliest transaction touching
a deposit address:

    ?module=account&action=txlist|txlistinternal&address=...&sort=asc

The first result is the funding transaction. It is ignored when it
reverted (isError == "1") or has no sender. Transport failures, non-200
responses and bodies that are not a JSON object raise CollaboratorError
so the deposit monitor can retry on its next attempt.
"""

import logging

import httpx

from src.domain.exceptions import CollaboratorError
from src.domain.ports import FundingTx

logger = logging.getLogger(__name__)

MAINNET_URL = "https://api.basescan.org/api"
TESTNET_URL = "https://api-sepolia.basescan.org/api"


def explorer_url_for(network: str) -> str:
    return TESTNET_URL if network == "testnet" else MAINNET_URL


class BasescanTransactionLookup:
    """
    Implements TransactionLookup protocol via httpx.

    Uses structural subtyping - no explicit inheritance from Protocol.
    """

    def __init__(
        self,
        base_url: str,
        api_key: str,
        timeout: float = 30.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        """
        Initialize the lookup.

        Args:
            base_url: Explorer API endpoint
            api_key: Explorer API key
            timeout: Per-request timeout in seconds
            transport: Optional httpx transport (tests use MockTransport)
        """
        self.base_url = base_url
        self._api_key = api_key
        self._timeout = timeout
        self._transport = transport

    async def find_funding_tx(self, address: str, internal: bool = False) -> FundingTx | None:
        params = {
            "module": "account",
            "action": "txlistinternal" if internal else "txlist",
            "address": address,
            "startblock": "0",
            "endblock": "latest",
            "page": "1",
            "offset": "10",
            "sort": "asc",
            "apikey": self._api_key,
        }

        try:
            async with httpx.AsyncClient(timeout=self._timeout, transport=self._transport) as client:
                response = await client.get(self.base_url, params=params)
        except httpx.HTTPError as e:
            raise CollaboratorError(f"Explorer request failed for {address}: {e}") from e

        if response.status_code != 200:
            raise CollaboratorError(
                f"Explorer returned HTTP {response.status_code} for {address}"
            )

        try:
            payload = response.json()
        except ValueError as e:
            raise CollaboratorError(f"Explorer returned a non-JSON body for {address}") from e
        if not isinstance(payload, dict):
            raise CollaboratorError(f"Explorer returned an unexpected payload for {address}")

        result = payload.get("result")
        if not isinstance(result, list) or not result:
            return None

        tx = result[0]
        if tx.get("isError") == "1" or not tx.get("from"):
            logger.debug("First transaction for %s unusable: %s", address, tx.get("hash"))
            return None
        return FundingTx(from_address=tx["from"], is_error=False)
