#!/usr/bin/env python3
"""Finalize handling for the Wormhole Keeper.

This module decides whether ``finalizeFlush`` should be sent to the L1
gateway and submits it.
"""

import logging
from typing import TYPE_CHECKING

from hexbytes import HexBytes
from web3 import Web3
from web3.contract import Contract
from web3.types import TxReceipt

from .errors import RemoteQueryFailed, TransactionRejected
from .models import Domain, FinalizeDecision, MessageStatus, SplitAmount

if TYPE_CHECKING:
    from .utils.contract_utility import ContractUtility

logger = logging.getLogger(__name__)


class FinalizeEngine:
    """Decides on and submits ``finalizeFlush`` transactions."""

    RECEIPT_TIMEOUT = 120  # seconds

    def __init__(
        self,
        contract_util: "ContractUtility",
        gateway_contract: Contract,
        require_message_delivered: bool = True,
    ) -> None:
        """
        Initialize the FinalizeEngine.

        Args:
            contract_util: L1 utility holding the signing Web3 instance
            gateway_contract: Bound L1DAIWormholeGateway contract
            require_message_delivered: Check message delivery before finalizing
        """
        self.contract_util = contract_util
        self.gateway_contract = gateway_contract
        self.require_message_delivered = require_message_delivered

    def decide(self, status: MessageStatus | None, pending_debt: SplitAmount) -> FinalizeDecision:
        """
        Decide whether a finalize is due.

        Args:
            status: Delivery state of the latest message (None when unchecked)
            pending_debt: Debt re-read from L2 at finalize time

        Returns:
            FinalizeDecision carrying the amount to finalize
        """
        amount = pending_debt.value

        if not self.require_message_delivered:
            decision = FinalizeDecision(True, status, amount, "delivery check disabled")
        else:
            match status:
                case MessageStatus.PENDING:
                    decision = FinalizeDecision(True, status, amount, "message dispatched, not consumed")
                case MessageStatus.DELIVERED:
                    decision = FinalizeDecision(False, status, amount, "message already consumed")
                case MessageStatus.NO_MESSAGE:
                    decision = FinalizeDecision(False, status, amount, "no message dispatched")
                case _:
                    decision = FinalizeDecision(False, status, amount, "message status unknown")

        logger.info(
            f"Finalize decision: {'eligible' if decision.eligible else 'not eligible'} "
            f"- {decision.reason} (amount {amount})"
        )
        return decision

    async def submit(self, domain: Domain, amount: int) -> str:
        """
        Send ``finalizeFlush(domain, amount)`` and wait for its receipt.

        Returns:
            Transaction hash (0x-prefixed)

        Raises:
            RemoteQueryFailed: If sending or receipt retrieval fails
            TransactionRejected: If the transaction reverted
        """
        w3 = self.contract_util.w3
        logger.info(f"Sending `finalizeFlush` for {domain} with amount {amount}")

        try:
            tx_hash: HexBytes = self.gateway_contract.functions.finalizeFlush(
                domain.l1_encoding,
                amount
            ).transact({
                'gasPrice': w3.eth.gas_price
            })
        except Exception as e:
            raise RemoteQueryFailed("send finalizeFlush", str(e)) from e

        tx_hex = Web3.to_hex(tx_hash)
        logger.info(f"finalizeFlush submitted: {tx_hex}")

        try:
            receipt: TxReceipt = w3.eth.wait_for_transaction_receipt(tx_hash, timeout=self.RECEIPT_TIMEOUT)
        except Exception as e:
            raise RemoteQueryFailed(f"receipt for {tx_hex}", str(e)) from e

        if (status := receipt.get('status', 0)) != 1:
            raise TransactionRejected(tx_hex, f"finalizeFlush reverted (status={status})")

        logger.info(f"finalizeFlush confirmed in block {receipt['blockNumber']}")
        return tx_hex
