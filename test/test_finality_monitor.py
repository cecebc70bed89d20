"""Unit tests for the TransactionFinalityMonitor."""

import asyncio
from unittest.mock import AsyncMock, MagicMock

import pytest

from wormhole_keeper.errors import (
    FinalityTimeout,
    FinalityWaitCancelled,
    RemoteQueryFailed,
    TransactionRejected,
)
from wormhole_keeper.finality_monitor import TransactionFinalityMonitor
from wormhole_keeper.models import TransactionStatus

TX_HASH = "0x5a1e"


def make_client(*receipts) -> MagicMock:
    client = MagicMock()
    client.get_transaction_receipt = AsyncMock(side_effect=list(receipts))
    return client


class TestCheckStatus:
    """Tests for single status polls."""

    @pytest.mark.asyncio
    @pytest.mark.parametrize("raw,expected", [
        ("NOT_RECEIVED", TransactionStatus.PENDING),
        ("RECEIVED", TransactionStatus.PENDING),
        ("PENDING", TransactionStatus.PENDING),
        ("ACCEPTED_ON_L2", TransactionStatus.PENDING),
        ("ACCEPTED_ON_L1", TransactionStatus.ACCEPTED_ON_L1),
        ("REJECTED", TransactionStatus.REJECTED),
        ("REVERTED", TransactionStatus.REJECTED),
    ])
    async def test_status_mapping(self, raw, expected):
        monitor = TransactionFinalityMonitor(make_client({"status": raw}))

        outcome = await monitor.check_status(TX_HASH)

        assert outcome.status is expected
        assert outcome.raw_status == raw

    @pytest.mark.asyncio
    async def test_missing_status_is_pending(self):
        outcome = await TransactionFinalityMonitor(make_client({})).check_status(TX_HASH)

        assert outcome.status is TransactionStatus.PENDING
        assert outcome.raw_status == "NOT_RECEIVED"

    @pytest.mark.asyncio
    async def test_structured_failure_reason(self):
        client = make_client({
            "status": "REJECTED",
            "tx_failure_reason": {"code": "TRANSACTION_FAILED", "error_message": "insufficient fee"},
        })

        outcome = await TransactionFinalityMonitor(client).check_status(TX_HASH)

        assert outcome.reason == "insufficient fee"


class TestWaitForAcceptance:
    """Tests for the polling loop."""

    @pytest.mark.asyncio
    async def test_pending_then_accepted(self):
        """Pending, Pending, AcceptedOnL1 returns success after three polls."""
        client = make_client({"status": "PENDING"}, {"status": "PENDING"}, {"status": "ACCEPTED_ON_L1"})
        monitor = TransactionFinalityMonitor(client, poll_interval=0)

        outcome = await monitor.wait_for_acceptance(TX_HASH)

        assert outcome.status is TransactionStatus.ACCEPTED_ON_L1
        assert client.get_transaction_receipt.await_count == 3

    @pytest.mark.asyncio
    async def test_accepted_on_l2_is_not_terminal(self):
        client = make_client({"status": "ACCEPTED_ON_L2"}, {"status": "ACCEPTED_ON_L1"})

        await TransactionFinalityMonitor(client, poll_interval=0).wait_for_acceptance(TX_HASH)

        assert client.get_transaction_receipt.await_count == 2

    @pytest.mark.asyncio
    async def test_rejected_raises_with_reason(self):
        client = make_client(
            {"status": "PENDING"},
            {"status": "REJECTED", "tx_failure_reason": "insufficient fee"},
        )
        monitor = TransactionFinalityMonitor(client, poll_interval=0)

        with pytest.raises(TransactionRejected) as exc_info:
            await monitor.wait_for_acceptance(TX_HASH)

        assert exc_info.value.reason == "insufficient fee"
        assert exc_info.value.tx_hash == TX_HASH

    @pytest.mark.asyncio
    async def test_rejected_without_reason_uses_status(self):
        client = make_client({"status": "REJECTED"})

        with pytest.raises(TransactionRejected) as exc_info:
            await TransactionFinalityMonitor(client, poll_interval=0).wait_for_acceptance(TX_HASH)

        assert exc_info.value.reason == "REJECTED"

    @pytest.mark.asyncio
    async def test_query_failure_is_not_retried(self):
        client = MagicMock()
        client.get_transaction_receipt = AsyncMock(side_effect=RemoteQueryFailed("get_transaction_receipt"))

        with pytest.raises(RemoteQueryFailed):
            await TransactionFinalityMonitor(client, poll_interval=0).wait_for_acceptance(TX_HASH)

        assert client.get_transaction_receipt.await_count == 1

    @pytest.mark.asyncio
    async def test_timeout(self):
        client = MagicMock()
        client.get_transaction_receipt = AsyncMock(return_value={"status": "PENDING"})
        monitor = TransactionFinalityMonitor(client, poll_interval=0.01, timeout=0.05)

        with pytest.raises(FinalityTimeout) as exc_info:
            await monitor.wait_for_acceptance(TX_HASH)

        assert exc_info.value.timeout == 0.05

    @pytest.mark.asyncio
    async def test_cancel_before_first_poll(self):
        cancel_event = asyncio.Event()
        cancel_event.set()
        client = make_client({"status": "ACCEPTED_ON_L1"})
        monitor = TransactionFinalityMonitor(client, poll_interval=0, cancel_event=cancel_event)

        with pytest.raises(FinalityWaitCancelled):
            await monitor.wait_for_acceptance(TX_HASH)

        client.get_transaction_receipt.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_cancel_during_wait(self):
        """Setting the event interrupts the sleep between polls."""
        cancel_event = asyncio.Event()

        async def receipt(tx_hash):
            cancel_event.set()
            return {"status": "PENDING"}

        client = MagicMock()
        client.get_transaction_receipt = AsyncMock(side_effect=receipt)
        monitor = TransactionFinalityMonitor(client, poll_interval=60, cancel_event=cancel_event)

        with pytest.raises(FinalityWaitCancelled):
            await asyncio.wait_for(monitor.wait_for_acceptance(TX_HASH), timeout=5)

        assert client.get_transaction_receipt.await_count == 1
