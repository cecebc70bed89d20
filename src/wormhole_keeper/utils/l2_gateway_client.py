import json
import logging
import typing
from collections.abc import Callable, Sequence
from typing import Any

import httpx

from ..errors import RemoteQueryFailed
from .amount_codec import AmountCodec

logger = logging.getLogger(__name__)

# Produces the signature for an INVOKE_FUNCTION payload (account-based deployments)
InvokeSigner = Callable[[dict[str, Any]], Sequence[int]]


class L2GatewayClient:
    """
    Thin client for the StarkNet gateway and feeder gateway HTTP APIs.

    Contract reads go through ``/feeder_gateway/call_contract``, invocations
    through ``/gateway/add_transaction`` and status polls through
    ``/feeder_gateway/get_transaction_receipt``.
    """

    def __init__(
        self,
        base_url: str,
        request_timeout: float = 30.0,
        signer: InvokeSigner | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self.base_url = base_url.rstrip('/')
        self.request_timeout = request_timeout
        self.signer = signer
        self.transport = transport

    async def _request(
        self,
        method: str,
        path: str,
        operation: str,
        params: dict[str, str] | None = None,
        payload: typing.Any = None,
    ) -> typing.Any:
        async with httpx.AsyncClient(transport=self.transport) as client:
            url = self.base_url + path
            if payload is not None:
                logger.debug(f"{method} {url}: {json.dumps(payload)}")
            else:
                logger.debug(f"{method} {url} {params or ''}")
            try:
                response = await client.request(
                    method, url, params=params, json=payload, timeout=self.request_timeout
                )
                response.raise_for_status()
                return response.json()
            except httpx.HTTPStatusError as e:
                raise RemoteQueryFailed(
                    operation, f"HTTP {e.response.status_code}: {e.response.text[:200]}"
                ) from e
            except (httpx.HTTPError, ValueError) as e:
                raise RemoteQueryFailed(operation, str(e)) from e

    async def call_contract(self, contract_address: int, entry_point: str, calldata: Sequence[int]) -> list[int]:
        """
        Read-only call of an L2 contract entry point.

        Args:
            contract_address: Contract address as a felt
            entry_point: Entry point name, e.g. ``batched_dai_to_flush``
            calldata: Felt arguments

        Returns:
            The result felts as ints
        """
        payload = {
            "contract_address": hex(contract_address),
            "entry_point_selector": hex(AmountCodec.get_selector_from_name(entry_point)),
            "calldata": [str(arg) for arg in calldata],
            "signature": [],
        }
        response = await self._request(
            "POST",
            "/feeder_gateway/call_contract",
            f"call {entry_point}",
            params={"blockNumber": "pending"},
            payload=payload,
        )
        try:
            return [int(felt, 16) for felt in response["result"]]
        except (KeyError, TypeError, ValueError) as e:
            raise RemoteQueryFailed(f"call {entry_point}", f"unexpected response {response!r}") from e

    async def invoke(self, contract_address: int, entry_point: str, calldata: Sequence[int]) -> str:
        """
        Submit an INVOKE_FUNCTION transaction.

        Returns:
            The transaction hash reported by the gateway
        """
        payload: dict[str, Any] = {
            "type": "INVOKE_FUNCTION",
            "contract_address": hex(contract_address),
            "entry_point_selector": hex(AmountCodec.get_selector_from_name(entry_point)),
            "calldata": [str(arg) for arg in calldata],
            "max_fee": hex(0),
            "version": hex(0),
        }
        payload["signature"] = [str(part) for part in self.signer(payload)] if self.signer else []

        response = await self._request(
            "POST", "/gateway/add_transaction", f"invoke {entry_point}", payload=payload
        )
        match response:
            case {"transaction_hash": str() as tx_hash}:
                logger.info(f"Gateway accepted {entry_point} ({response.get('code', 'no code')}): {tx_hash}")
                return tx_hash
            case _:
                raise RemoteQueryFailed(f"invoke {entry_point}", f"unexpected response {response!r}")

    async def get_transaction_receipt(self, tx_hash: str) -> dict[str, Any]:
        """Fetch the feeder gateway receipt for a transaction."""
        logger.debug(f"Retrieving transaction {tx_hash}")
        return await self._request(
            "GET",
            "/feeder_gateway/get_transaction_receipt",
            f"get_transaction_receipt {tx_hash}",
            params={"transactionHash": tx_hash},
        )
