"""Scans the L1 join contract for the latest ``Settle`` record of a domain."""

import logging
from typing import Any

from web3.contract import Contract

from .errors import RemoteQueryFailed
from .models import Domain, SettleEvent

logger = logging.getLogger(__name__)


class L1SettlementTracker:
    """Finds the most recent settlement registered for a source domain.

    Settle events only gate the flush timing; the debt itself is always read
    from L2.
    """

    def __init__(self, join_contract: Contract) -> None:
        self.join_contract = join_contract

    async def latest_settle_event(self, source_domain: Domain, from_block: int = 0) -> SettleEvent | None:
        """
        Return the highest-block ``Settle`` log for the domain, if any.

        Args:
            source_domain: Domain whose settlements are wanted
            from_block: First L1 block to scan

        Raises:
            RemoteQueryFailed: If the log query fails
        """
        try:
            logs = self.join_contract.events.Settle.get_logs(
                argument_filters={"sourceDomain": source_domain.l1_encoding},
                from_block=from_block,
                to_block="latest",
            )
        except Exception as e:
            raise RemoteQueryFailed("get Settle logs", str(e)) from e

        events = [self._to_settle_event(log) for log in logs]
        if not events:
            logger.info(f"No Settle events for {source_domain} since block {from_block}")
            return None

        latest = max(events, key=lambda event: event.block_number)
        logger.info(
            f"Latest Settle for {source_domain}: block {latest.block_number}, "
            f"amount {latest.batched_amount}"
        )
        return latest

    @staticmethod
    def _to_settle_event(log: Any) -> SettleEvent:
        args = log["args"]
        return SettleEvent(
            source_domain=bytes(args["sourceDomain"]),
            batched_amount=int(args["batchedDaiToFlush"]),
            block_number=int(log["blockNumber"]),
        )
