"""Reads outstanding flushable debt from the L2 wormhole gateway."""

import logging

from .errors import MalformedAmount
from .models import Domain, SplitAmount
from .utils.l2_gateway_client import L2GatewayClient

logger = logging.getLogger(__name__)


class L2StateReader:
    """Queries ``batched_dai_to_flush`` on the L2 gateway."""

    ENTRY_POINT = "batched_dai_to_flush"

    def __init__(self, client: L2GatewayClient, gateway_address: int) -> None:
        self.client = client
        self.gateway_address = gateway_address

    async def pending_debt(self, domain: Domain) -> SplitAmount:
        """
        Read the batched debt waiting to be flushed for a domain.

        Args:
            domain: Domain to query

        Returns:
            The raw (low, high) split amount

        Raises:
            RemoteQueryFailed: On transport failure (not retried)
            MalformedAmount: If the gateway does not return two valid limbs
        """
        result = await self.client.call_contract(
            self.gateway_address, self.ENTRY_POINT, [domain.l2_encoding]
        )
        if len(result) != 2:
            raise MalformedAmount(f"{self.ENTRY_POINT} returned {len(result)} felts, expected 2")

        amount = SplitAmount(low=result[0], high=result[1])
        value = amount.value  # raises MalformedAmount on bad limbs
        logger.info(f"DAI to flush for {domain}: {value}")
        return amount
