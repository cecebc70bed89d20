"""
Shared data models for the Wormhole Keeper.

All records are derived from live chain queries on each invocation; nothing
here is persisted between runs.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Any

from hexbytes import HexBytes

from .utils.amount_codec import AmountCodec, Layer


@dataclass(frozen=True, slots=True)
class Domain:
    """A transfer route endpoint such as ``GOERLI-SLAVE-STARKNET-1``.

    Attributes:
        name: The configuration string the domain was derived from
        raw: Domain identifier bytes (ASCII text, or decoded 0x-hex)
    """

    name: str
    raw: bytes

    @classmethod
    def from_string(cls, value: str) -> "Domain":
        """Derive a domain from text, or from hex when prefixed with 0x."""
        if not value:
            raise ValueError("Domain must not be empty")
        if value.startswith(("0x", "0X")):
            digits = value[2:]
            if len(digits) % 2:
                digits = "0" + digits
            # Leading zero bytes are padding, the encodings re-add them
            raw = bytes.fromhex(digits).lstrip(b"\0")
        else:
            raw = value.encode("ascii")
        if len(raw) > 32:
            raise ValueError(f"Domain {value!r} does not fit in 32 bytes")
        return cls(name=value, raw=raw)

    @property
    def l1_encoding(self) -> HexBytes:
        """bytes32 form used by L1 contracts."""
        return AmountCodec.encode_domain(self.raw, Layer.L1)

    @property
    def l2_encoding(self) -> int:
        """Felt form used by L2 contracts."""
        return AmountCodec.encode_domain(self.raw, Layer.L2)

    def __str__(self) -> str:
        return self.name


@dataclass(frozen=True, slots=True)
class SplitAmount:
    """A uint256 as returned by the L2 gateway: two 128-bit limbs."""

    low: int
    high: int

    @property
    def value(self) -> int:
        return AmountCodec.decode(self.low, self.high)

    def is_zero(self) -> bool:
        return self.value == 0

    @classmethod
    def from_value(cls, value: int) -> "SplitAmount":
        low, high = AmountCodec.encode(value)
        return cls(low=low, high=high)

    def __str__(self) -> str:
        return str(self.value)


@dataclass(frozen=True, slots=True)
class WormholeGUID:
    """Identifying record of one wormhole transfer, as attested by the oracles."""

    source_domain: str
    target_domain: str
    receiver: str
    operator: str
    amount: str
    nonce: str
    timestamp: str

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for serialization."""
        return {
            "sourceDomain": self.source_domain,
            "targetDomain": self.target_domain,
            "receiver": self.receiver,
            "operator": self.operator,
            "amount": self.amount,
            "nonce": self.nonce,
            "timestamp": self.timestamp,
        }


@dataclass(frozen=True, slots=True)
class SettleEvent:
    """A ``Settle`` log of the L1 join contract.

    Attributes:
        source_domain: bytes32 source domain from the indexed topic
        batched_amount: Amount of debt registered as settled
        block_number: L1 block the log was emitted in
    """

    source_domain: bytes
    batched_amount: int
    block_number: int


@dataclass(frozen=True, slots=True)
class BridgeMessage:
    """A dispatched (``LogMessageToL1``) or consumed (``ConsumedMessageToL1``) message."""

    from_address: int
    to_address: str
    payload: tuple[int, ...]
    block_number: int

    def matches(self, other: "BridgeMessage") -> bool:
        """Same sender, recipient and payload; block numbers are not compared."""
        return (
            self.from_address == other.from_address
            and self.to_address.lower() == other.to_address.lower()
            and self.payload == other.payload
        )


class TransactionStatus(Enum):
    """Reduced view of an L2 transaction's lifecycle."""
    PENDING = "pending"
    ACCEPTED_ON_L1 = "accepted_on_l1"
    REJECTED = "rejected"


@dataclass(frozen=True, slots=True)
class TransactionOutcome:
    """Result of one status poll for an L2 transaction."""

    tx_hash: str
    status: TransactionStatus
    raw_status: str
    reason: str | None = None

    @property
    def is_terminal(self) -> bool:
        return self.status is not TransactionStatus.PENDING


class MessageStatus(Enum):
    """Delivery state of the latest L2 to L1 message."""
    NO_MESSAGE = "no_message"
    PENDING = "pending"
    DELIVERED = "delivered"


@dataclass(frozen=True, slots=True)
class FlushState:
    """Snapshot of everything the flush decision depends on."""

    domain: Domain
    pending_debt: SplitAmount
    last_settle_block: int | None
    current_l1_block: int | None
    flush_delay_blocks: int


@dataclass(frozen=True, slots=True)
class FlushDecision:
    eligible: bool
    amount: SplitAmount
    reason: str


@dataclass(frozen=True, slots=True)
class FinalizeDecision:
    eligible: bool
    status: MessageStatus | None
    amount: int
    reason: str


@dataclass(frozen=True, slots=True)
class FlushResult:
    """What a ``flush`` invocation did."""

    decision: FlushDecision
    tx_hash: str | None = None
    outcome: TransactionOutcome | None = None

    @property
    def submitted(self) -> bool:
        return self.tx_hash is not None


@dataclass(frozen=True, slots=True)
class FinalizeResult:
    """What a ``finalize_flush`` invocation did."""

    decision: FinalizeDecision
    tx_hash: str | None = None

    @property
    def submitted(self) -> bool:
        return self.tx_hash is not None
