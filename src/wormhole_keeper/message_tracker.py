"""
Delivery tracking for L2 to L1 messages.

A message is delivered once the StarkNet core contract has emitted a
``ConsumedMessageToL1`` log with the same sender, recipient and payload as
the dispatching ``LogMessageToL1``, at or after the dispatch block.
"""

import logging
from typing import Any

from web3 import Web3
from web3.contract import Contract

from .errors import RemoteQueryFailed
from .models import BridgeMessage, MessageStatus

logger = logging.getLogger(__name__)


class MessageFinalityTracker:
    """Classifies the latest gateway message as absent, pending or delivered."""

    def __init__(self, starknet_core: Contract) -> None:
        self.starknet_core = starknet_core

    def _get_messages(self, event_name: str, l2_gateway: int, l1_gateway: str, from_block: int) -> list[BridgeMessage]:
        event_obj = getattr(self.starknet_core.events, event_name)
        try:
            logs = event_obj.get_logs(
                argument_filters={
                    "fromAddress": l2_gateway,
                    "toAddress": Web3.to_checksum_address(l1_gateway),
                },
                from_block=from_block,
                to_block="latest",
            )
        except Exception as e:
            raise RemoteQueryFailed(f"get {event_name} logs", str(e)) from e
        return [self._to_message(log) for log in logs]

    @staticmethod
    def _to_message(log: Any) -> BridgeMessage:
        args = log["args"]
        return BridgeMessage(
            from_address=int(args["fromAddress"]),
            to_address=str(args["toAddress"]),
            payload=tuple(int(word) for word in args["payload"]),
            block_number=int(log["blockNumber"]),
        )

    async def latest_dispatch(self, l2_gateway: int, l1_gateway: str, from_block: int = 0) -> BridgeMessage | None:
        """Most recent ``LogMessageToL1`` from the L2 gateway to the L1 gateway."""
        dispatched = self._get_messages("LogMessageToL1", l2_gateway, l1_gateway, from_block)
        if not dispatched:
            return None
        return max(dispatched, key=lambda message: message.block_number)

    async def message_status(self, l2_gateway: int, l1_gateway: str, from_block: int = 0) -> MessageStatus:
        """
        Determine whether the latest gateway message still needs finalizing.

        Args:
            l2_gateway: L2 gateway address (message sender)
            l1_gateway: L1 gateway address (message recipient)
            from_block: First L1 block to scan for the dispatch

        Returns:
            NO_MESSAGE if nothing was dispatched, DELIVERED if a matching
            consumption exists at or after the dispatch block, else PENDING
        """
        dispatch = await self.latest_dispatch(l2_gateway, l1_gateway, from_block)
        if dispatch is None:
            logger.info(f"No LogMessageToL1 from {hex(l2_gateway)} to {l1_gateway} since block {from_block}")
            return MessageStatus.NO_MESSAGE

        logger.info(f"Latest message dispatched at block {dispatch.block_number}, payload {list(dispatch.payload)}")

        consumed = self._get_messages("ConsumedMessageToL1", l2_gateway, l1_gateway, dispatch.block_number)
        for message in consumed:
            # Consumption before the dispatch block does not count
            if message.block_number >= dispatch.block_number and message.matches(dispatch):
                logger.info(f"Message consumed at block {message.block_number}")
                return MessageStatus.DELIVERED

        logger.info("Message dispatched but not consumed yet")
        return MessageStatus.PENDING

    async def is_delivered(self, l2_gateway: int, l1_gateway: str, from_block: int = 0) -> bool:
        """True only when the latest dispatched message has been consumed."""
        return await self.message_status(l2_gateway, l1_gateway, from_block) is MessageStatus.DELIVERED
