"""
Attestation lookup for individual wormhole transfers.

Oracles observe each L2 wormhole initiation and sign the encoded
WormholeGUID; the signatures are what a receiver submits on L1 to mint
before the batch is flushed.
"""

import logging
import re
from dataclasses import dataclass
from typing import Any

import httpx

from .errors import RemoteQueryFailed
from .models import WormholeGUID

logger = logging.getLogger(__name__)

_WORD = re.compile(r".{64}")


@dataclass(frozen=True, slots=True)
class Attestations:
    """Concatenated oracle signatures and the GUID they attest."""

    signatures: str
    guid: WormholeGUID | None = None


class AttestationFetcher:
    """Fetches oracle attestations for a wormhole initiation transaction."""

    def __init__(
        self,
        api_url: str = "http://localhost:8080",
        request_timeout: float = 30.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self.api_url = api_url
        self.request_timeout = request_timeout
        self.transport = transport

    @staticmethod
    def decode_guid(event_hex: str) -> WormholeGUID:
        """Split the oracle's event hex into 32-byte words and map them to GUID fields."""
        words = [f"0x{word}" for word in _WORD.findall(event_hex.removeprefix("0x"))]
        if len(words) < 7:
            raise ValueError(f"Wormhole event has {len(words)} words, expected 7")
        return WormholeGUID(
            source_domain=words[0],
            target_domain=words[1],
            receiver=words[2],
            operator=words[3],
            amount=words[4],
            nonce=words[5],
            timestamp=words[6],
        )

    @staticmethod
    def _signature(oracle: dict[str, Any]) -> str:
        return oracle["signatures"]["ethereum"]["signature"].removeprefix("0x")

    async def fetch(self, tx_hash: str) -> Attestations:
        """
        Collect every oracle attestation for a transaction.

        Args:
            tx_hash: L2 transaction hash of the wormhole initiation

        Returns:
            Attestations, with ``guid`` None when no oracle has signed yet
        """
        async with httpx.AsyncClient(transport=self.transport) as client:
            try:
                response = await client.get(
                    self.api_url,
                    params={"type": "wormhole", "index": tx_hash},
                    timeout=self.request_timeout,
                )
                response.raise_for_status()
                results = response.json() or []
            except (httpx.HTTPError, ValueError) as e:
                raise RemoteQueryFailed(f"fetch attestations for {tx_hash}", str(e)) from e

        try:
            signatures = "0x" + "".join(self._signature(oracle) for oracle in results)
            guid = self.decode_guid(results[0]["data"]["event"]) if results else None
        except (KeyError, TypeError, ValueError) as e:
            raise RemoteQueryFailed(f"decode attestations for {tx_hash}", str(e)) from e

        logger.info(f"Found {len(results)} attestations for {tx_hash}")
        return Attestations(signatures=signatures, guid=guid)
