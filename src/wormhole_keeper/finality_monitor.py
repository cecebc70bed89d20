"""
Finality monitor for L2 transactions.

Polls the feeder gateway until a submitted transaction is accepted on L1 or
rejected. The wait is unbounded by default; a timeout and a cancellation
event let the host impose its own deadline.
"""

import asyncio
import logging
from typing import Any

from .errors import FinalityTimeout, FinalityWaitCancelled, TransactionRejected
from .models import TransactionOutcome, TransactionStatus
from .utils.l2_gateway_client import L2GatewayClient

logger = logging.getLogger(__name__)


class TransactionFinalityMonitor:
    """Waits for an L2 transaction to reach a terminal state."""

    ACCEPTED_STATUSES: frozenset[str] = frozenset({"ACCEPTED_ON_L1"})
    REJECTED_STATUSES: frozenset[str] = frozenset({"REJECTED", "REVERTED"})

    def __init__(
        self,
        client: L2GatewayClient,
        poll_interval: float = 1.0,
        timeout: float | None = None,
        cancel_event: asyncio.Event | None = None,
    ) -> None:
        """
        Initialize the monitor.

        Args:
            client: Gateway client used for receipt lookups
            poll_interval: Seconds between polls
            timeout: Overall deadline in seconds, None to wait forever
            cancel_event: When set, the wait stops with FinalityWaitCancelled
        """
        self.client = client
        self.poll_interval = poll_interval
        self.timeout = timeout
        self.cancel_event = cancel_event

    @staticmethod
    def _failure_reason(receipt: dict[str, Any]) -> str | None:
        match receipt.get("tx_failure_reason"):
            case None:
                return None
            case str() as reason:
                return reason
            case {"error_message": str() as message}:
                return message
            case other:
                return str(other)

    async def check_status(self, tx_hash: str) -> TransactionOutcome:
        """Poll the transaction status once."""
        receipt = await self.client.get_transaction_receipt(tx_hash)
        raw_status = str(receipt.get("status", "NOT_RECEIVED"))

        if raw_status in self.ACCEPTED_STATUSES:
            status = TransactionStatus.ACCEPTED_ON_L1
        elif raw_status in self.REJECTED_STATUSES:
            status = TransactionStatus.REJECTED
        else:
            status = TransactionStatus.PENDING

        return TransactionOutcome(
            tx_hash=tx_hash,
            status=status,
            raw_status=raw_status,
            reason=self._failure_reason(receipt),
        )

    async def _sleep(self, tx_hash: str) -> None:
        if self.cancel_event is None:
            await asyncio.sleep(self.poll_interval)
            return
        try:
            await asyncio.wait_for(self.cancel_event.wait(), timeout=self.poll_interval)
        except asyncio.TimeoutError:
            return  # interval elapsed without cancellation
        raise FinalityWaitCancelled(tx_hash)

    async def _poll_until_terminal(self, tx_hash: str) -> TransactionOutcome:
        polls = 0
        while True:
            if self.cancel_event is not None and self.cancel_event.is_set():
                raise FinalityWaitCancelled(tx_hash)

            outcome = await self.check_status(tx_hash)
            polls += 1

            match outcome.status:
                case TransactionStatus.ACCEPTED_ON_L1:
                    logger.info(f"Transaction {tx_hash} accepted on L1 after {polls} polls")
                    return outcome
                case TransactionStatus.REJECTED:
                    reason = outcome.reason or outcome.raw_status
                    logger.error(f"Transaction {tx_hash} rejected: {reason}")
                    raise TransactionRejected(tx_hash, reason)

            logger.debug(f"Transaction {tx_hash} status {outcome.raw_status} (poll {polls})")
            await self._sleep(tx_hash)

    async def wait_for_acceptance(self, tx_hash: str) -> TransactionOutcome:
        """
        Block until the transaction is accepted on L1.

        Acceptance on L2 is not enough: only once the state update reaches L1
        is the batch irreversibly recorded.

        Returns:
            The terminal ACCEPTED_ON_L1 outcome

        Raises:
            TransactionRejected: The transaction was rejected, with the remote reason
            FinalityTimeout: The configured timeout elapsed
            FinalityWaitCancelled: The cancellation event was set
            RemoteQueryFailed: A status poll failed
        """
        logger.info(f"Waiting for transaction {tx_hash} to be accepted on L1")
        if self.timeout is None:
            return await self._poll_until_terminal(tx_hash)
        try:
            return await asyncio.wait_for(self._poll_until_terminal(tx_hash), timeout=self.timeout)
        except asyncio.TimeoutError:
            raise FinalityTimeout(tx_hash, self.timeout) from None
