"""
Encoding utilities for values crossing the L1/L2 boundary.

StarkNet expresses uint256 values as two 128-bit felts (low, high) and domain
identifiers as a single felt, while L1 contracts take plain uint256 and bytes32.
"""

from enum import Enum
from typing import Union

from hexbytes import HexBytes
from web3 import Web3

from ..errors import MalformedAmount

LIMB_BITS = 128
LIMB_HEX_WIDTH = LIMB_BITS // 4
MAX_LIMB = 2**LIMB_BITS - 1
MAX_UINT256 = 2**256 - 1
MASK_250 = 2**250 - 1


class Layer(Enum):
    """Which side of the bridge an encoding is meant for."""
    L1 = "L1"
    L2 = "L2"


class AmountCodec:
    """Fixed-width conversions between split felts, uint256 and bytes32."""

    @staticmethod
    def _check_limb(name: str, limb: int) -> None:
        if isinstance(limb, bool) or not isinstance(limb, int):
            raise MalformedAmount(f"{name} limb must be an integer, got {type(limb).__name__}")
        if limb < 0:
            raise MalformedAmount(f"{name} limb is negative: {limb}")
        if limb > MAX_LIMB:
            raise MalformedAmount(f"{name} limb exceeds {LIMB_BITS} bits: {hex(limb)}")

    @staticmethod
    def decode(low: int, high: int) -> int:
        """
        Combine a (low, high) pair into a uint256.

        Each limb is rendered as exactly 32 hex digits before concatenation, so
        a small low limb can never shift into the high half.

        Args:
            low: Lower 128 bits
            high: Upper 128 bits

        Returns:
            The 256-bit value ``high * 2**128 + low``

        Raises:
            MalformedAmount: If either limb is negative or wider than 128 bits
        """
        AmountCodec._check_limb("low", low)
        AmountCodec._check_limb("high", high)
        return int(f"{high:0{LIMB_HEX_WIDTH}x}{low:0{LIMB_HEX_WIDTH}x}", 16)

    @staticmethod
    def encode(value: int) -> tuple[int, int]:
        """Split a uint256 into its (low, high) limbs."""
        if isinstance(value, bool) or not isinstance(value, int):
            raise MalformedAmount(f"Amount must be an integer, got {type(value).__name__}")
        if not 0 <= value <= MAX_UINT256:
            raise MalformedAmount(f"Amount out of uint256 range: {value}")
        return value & MAX_LIMB, value >> LIMB_BITS

    @staticmethod
    def to_bytes32(value: Union[int, str, bytes]) -> HexBytes:
        """
        Left-pad a numeric value to 32 bytes.

        Accepts ints, 0x-prefixed hex strings, decimal strings and raw bytes.
        """
        match value:
            case bool():
                raise ValueError("Booleans are not valid bytes32 input")
            case int() as number:
                pass
            case bytes() as raw:
                number = int.from_bytes(raw, "big")
            case str() as text if text.startswith(("0x", "0X")):
                number = int(text, 16)
            case str() as text:
                number = int(text)
            case _:
                raise ValueError(f"Unsupported bytes32 input type: {type(value).__name__}")
        if not 0 <= number <= MAX_UINT256:
            raise ValueError(f"Value does not fit in 32 bytes: {value!r}")
        return HexBytes(number.to_bytes(32, "big"))

    @staticmethod
    def encode_domain(domain: bytes, target: Layer) -> Union[HexBytes, int]:
        """
        Encode raw domain bytes for a call on either layer.

        Args:
            domain: Domain identifier bytes (at most 32)
            target: Layer the encoding is for

        Returns:
            32 left-padded bytes for L1, the big-endian felt for L2
        """
        if len(domain) > 32:
            raise ValueError(f"Domain is longer than 32 bytes: {domain!r}")
        padded = domain.rjust(32, b"\0")
        if target is Layer.L1:
            return HexBytes(padded)
        return int.from_bytes(padded, "big")

    @staticmethod
    def get_selector_from_name(name: str) -> int:
        """StarkNet entry point selector: keccak256(name) truncated to 250 bits."""
        return int.from_bytes(Web3.keccak(text=name), "big") & MASK_250
