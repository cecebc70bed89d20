"""
Wormhole Keeper implementation.

This module contains the keeper service that sequences debt reads, flush
decisions, finality waits and finalize submissions for one domain.
"""

import asyncio
import logging

from .config import KeeperConfig
from .errors import MissingConfiguration, RemoteQueryFailed
from .finality_monitor import TransactionFinalityMonitor
from .finalize_engine import FinalizeEngine
from .flush_engine import FlushDecisionEngine
from .l2_state_reader import L2StateReader
from .message_tracker import MessageFinalityTracker
from .models import Domain, FinalizeResult, FlushResult, FlushState
from .settlement_tracker import L1SettlementTracker
from .utils.contract_utility import ContractUtility
from .utils.l2_gateway_client import InvokeSigner, L2GatewayClient

logger = logging.getLogger(__name__)


class WormholeKeeper:
    """
    Keeper that flushes batched L2 debt and finalizes it on L1.

    Each call re-derives its decision from live chain state, so an interrupted
    run can simply be started again. Running two keepers for the same domain
    at once is not safe and must be prevented by the deployment.
    """

    def __init__(
        self,
        config: KeeperConfig,
        l2_client: L2GatewayClient | None = None,
        contract_util: ContractUtility | None = None,
        signer: InvokeSigner | None = None,
    ) -> None:
        """
        Initialize the keeper.

        Args:
            config: Keeper configuration
            l2_client: Gateway client (built from config when omitted)
            contract_util: L1 contract utility (built from config when omitted)
            signer: Signature provider for signed gateway invokes
        """
        self.config = config

        # Set by stop(); aborts a running finality wait
        self.shutdown_event = asyncio.Event()

        self._init_utilities(l2_client, contract_util, signer)
        self._init_components()

    def _init_utilities(
        self,
        l2_client: L2GatewayClient | None,
        contract_util: ContractUtility | None,
        signer: InvokeSigner | None,
    ) -> None:
        """Initialize the L1 and L2 transports."""
        self.l2_client = l2_client or L2GatewayClient(
            base_url=self.config.l2.gateway_url,
            request_timeout=self.config.policy.request_timeout,
            signer=signer,
        )
        self.contract_util = contract_util or ContractUtility(
            rpc_url=self.config.l1.rpc_url,
            secret=self.config.l1.private_key or "",
            request_timeout=self.config.policy.request_timeout,
        )

    def _init_components(self) -> None:
        """Bind contracts and build the decision components."""
        l1 = self.config.l1
        policy = self.config.policy

        self.state_reader = L2StateReader(self.l2_client, self.config.l2.gateway_felt)

        self.settlement_tracker: L1SettlementTracker | None = None
        if l1.join_address:
            self.settlement_tracker = L1SettlementTracker(
                self.contract_util.get_contract("WormholeJoin", l1.join_address)
            )

        self.message_tracker: MessageFinalityTracker | None = None
        if l1.starknet_core_address:
            self.message_tracker = MessageFinalityTracker(
                self.contract_util.get_contract("StarknetCore", l1.starknet_core_address)
            )

        self.finality_monitor = TransactionFinalityMonitor(
            self.l2_client,
            poll_interval=policy.poll_interval,
            timeout=policy.finality_timeout,
            cancel_event=self.shutdown_event,
        )
        self.flush_engine = FlushDecisionEngine(policy.flush_policy)
        self.finalize_engine = FinalizeEngine(
            contract_util=self.contract_util,
            gateway_contract=self.contract_util.get_contract("L1DAIWormholeGateway", l1.gateway_address),
            require_message_delivered=policy.require_message_delivered,
        )

        logger.info(
            f"Keeper initialized for {self.config.domain} on {self.config.network.value} "
            f"({policy.flush_policy.value} flush)"
        )

    @classmethod
    def from_env(cls) -> "WormholeKeeper":
        """
        Create a WormholeKeeper instance from environment variables.

        Raises:
            MissingConfiguration: If required environment variables are missing
        """
        config = KeeperConfig.from_env()
        config.log_config()
        return cls(config)

    def _current_l1_block(self) -> int:
        try:
            return int(self.contract_util.w3.eth.block_number)
        except Exception as e:
            raise RemoteQueryFailed("get L1 block number", str(e)) from e

    def _require_l1_signer(self) -> None:
        if not self.contract_util.can_sign:
            raise MissingConfiguration(
                f"{self.config.network.value}_L1_PRIVATE_KEY is required to send finalizeFlush"
            )

    def _scan_from(self, current_block: int | None) -> int:
        lookback = self.config.policy.lookback_blocks
        if not lookback or current_block is None:
            return 0
        return max(0, current_block - lookback)

    async def flush(self, domain: Domain | None = None) -> FlushResult:
        """
        Flush the domain's batched debt if the policy allows it.

        When a flush is sent, this waits until the transaction is accepted on
        L1 (or fails).

        Raises:
            TransactionRejected: The flush was rejected on L2
            RemoteQueryFailed: A chain query failed
        """
        domain = domain or self.config.domain
        self.shutdown_event.clear()

        pending_debt = await self.state_reader.pending_debt(domain)

        settle_event = None
        current_block = None
        if self.flush_engine.requires_settle_event:
            if self.settlement_tracker is None:
                raise MissingConfiguration("Delay-gated flush needs the wormhole join address")
            current_block = self._current_l1_block()
            settle_event = await self.settlement_tracker.latest_settle_event(
                domain, self._scan_from(current_block)
            )

        state = FlushState(
            domain=domain,
            pending_debt=pending_debt,
            last_settle_block=settle_event.block_number if settle_event else None,
            current_l1_block=current_block,
            flush_delay_blocks=self.config.policy.flush_delay_blocks,
        )
        logger.debug(f"Flush state: {state}")

        decision = self.flush_engine.decide(state, settle_event)
        if not decision.eligible:
            return FlushResult(decision=decision)

        logger.info("Sending `flush` transaction")
        tx_hash = await self.l2_client.invoke(self.config.l2.gateway_felt, "flush", [domain.l2_encoding])

        outcome = await self.finality_monitor.wait_for_acceptance(tx_hash)
        return FlushResult(decision=decision, tx_hash=tx_hash, outcome=outcome)

    async def finalize_flush(self, domain: Domain | None = None) -> FinalizeResult:
        """
        Send ``finalizeFlush`` if a flushed message is waiting on L1.

        The amount is re-read from L2 at call time. An already consumed
        message results in no submission, so repeated calls are harmless.

        Raises:
            MissingConfiguration: No L1 signing key is configured
            TransactionRejected: The finalize transaction reverted
            RemoteQueryFailed: A chain query failed
        """
        domain = domain or self.config.domain

        self._require_l1_signer()

        status = None
        if self.finalize_engine.require_message_delivered:
            if self.message_tracker is None:
                raise MissingConfiguration("Message delivery check needs the StarkNet core address")
            from_block = self._scan_from(self._current_l1_block()) if self.config.policy.lookback_blocks else 0
            status = await self.message_tracker.message_status(
                self.config.l2.gateway_felt,
                self.config.l1.gateway_address,
                from_block,
            )

        pending_debt = await self.state_reader.pending_debt(domain)
        decision = self.finalize_engine.decide(status, pending_debt)
        if not decision.eligible:
            return FinalizeResult(decision=decision)

        tx_hash = await self.finalize_engine.submit(domain, decision.amount)
        return FinalizeResult(decision=decision, tx_hash=tx_hash)

    async def run_once(self, domain: Domain | None = None) -> tuple[FlushResult, FinalizeResult]:
        """
        Flush, wait for L1 acceptance, then finalize.

        Raises:
            MissingConfiguration: No L1 signing key is configured (checked before the flush)
        """
        self._require_l1_signer()
        logger.info("Wormhole Keeper run starting...")
        flush_result = await self.flush(domain)
        finalize_result = await self.finalize_flush(domain)
        logger.info("Wormhole Keeper run finished")
        return flush_result, finalize_result

    def stop(self) -> None:
        """Abort any finality wait in progress. The next flush clears the request."""
        self.shutdown_event.set()
