"""Flush eligibility decisions."""

import logging

from .config import FlushPolicy
from .models import FlushDecision, FlushState, SettleEvent

logger = logging.getLogger(__name__)


class FlushDecisionEngine:
    """
    Decides whether accumulated L2 debt should be flushed now.

    UNCONDITIONAL flushes any positive debt immediately. DELAY_GATED flushes
    only when the latest settle event lies beyond
    ``current_l1_block + flush_delay_blocks``.
    """

    def __init__(self, policy: FlushPolicy = FlushPolicy.UNCONDITIONAL) -> None:
        self.policy = policy

    @property
    def requires_settle_event(self) -> bool:
        return self.policy is FlushPolicy.DELAY_GATED

    def decide(self, state: FlushState, settle_event: SettleEvent | None = None) -> FlushDecision:
        """
        Evaluate the flush policy against a state snapshot.

        Args:
            state: Pending debt and block heights for the domain
            settle_event: Latest Settle record (only used by DELAY_GATED)

        Returns:
            FlushDecision with the amount that would be flushed
        """
        debt = state.pending_debt
        if debt.is_zero():
            return self._decision(False, state, "no pending debt")

        match self.policy:
            case FlushPolicy.UNCONDITIONAL:
                return self._decision(True, state, f"pending debt {debt.value}")

            case FlushPolicy.DELAY_GATED:
                if settle_event is None:
                    return self._decision(False, state, "no Settle event for domain")
                if state.current_l1_block is None:
                    return self._decision(False, state, "current L1 block unknown")

                horizon = state.current_l1_block + state.flush_delay_blocks
                if settle_event.block_number > horizon:
                    return self._decision(
                        True, state,
                        f"settle block {settle_event.block_number} > horizon {horizon}"
                    )
                return self._decision(
                    False, state,
                    f"settle block {settle_event.block_number} <= horizon {horizon}"
                )

        raise ValueError(f"Unknown flush policy: {self.policy}")

    def _decision(self, eligible: bool, state: FlushState, reason: str) -> FlushDecision:
        logger.info(
            f"Flush decision for {state.domain} ({self.policy.value}): "
            f"{'eligible' if eligible else 'not eligible'} - {reason}"
        )
        return FlushDecision(eligible=eligible, amount=state.pending_debt, reason=reason)
