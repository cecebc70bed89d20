"""Unit tests for the keeper data models."""

import pytest

from wormhole_keeper.errors import MalformedAmount
from wormhole_keeper.models import BridgeMessage, Domain, SplitAmount, TransactionOutcome, TransactionStatus

GOERLI_DOMAIN = "GOERLI-SLAVE-STARKNET-1"


class TestDomain:
    """Test suite for Domain encodings."""

    def test_ascii_domain_encodings(self):
        domain = Domain.from_string(GOERLI_DOMAIN)
        raw = GOERLI_DOMAIN.encode("ascii")

        assert domain.raw == raw
        assert domain.l1_encoding == b"\0" * (32 - len(raw)) + raw
        assert domain.l2_encoding == int.from_bytes(raw, "big")
        assert str(domain) == GOERLI_DOMAIN

    def test_hex_domain_matches_ascii(self):
        """A 0x-hex configuration value names the same domain as its text."""
        hex_value = "0x" + GOERLI_DOMAIN.encode("ascii").hex().rjust(64, "0")
        assert Domain.from_string(hex_value).l1_encoding == Domain.from_string(GOERLI_DOMAIN).l1_encoding

    def test_odd_length_hex(self):
        assert Domain.from_string("0x123").l2_encoding == 0x123

    def test_rejects_empty_and_oversized(self):
        with pytest.raises(ValueError):
            Domain.from_string("")
        with pytest.raises(ValueError):
            Domain.from_string("D" * 33)

    def test_domain_is_immutable(self):
        domain = Domain.from_string(GOERLI_DOMAIN)
        with pytest.raises(AttributeError):
            domain.name = "other"


class TestSplitAmount:
    """Test suite for SplitAmount."""

    def test_value_and_zero(self):
        assert SplitAmount(low=500, high=0).value == 500
        assert SplitAmount(low=0, high=0).is_zero()
        assert not SplitAmount(low=0, high=1).is_zero()

    def test_from_value(self):
        assert SplitAmount.from_value(2**128 + 7) == SplitAmount(low=7, high=1)

    def test_invalid_limb_raises_on_value(self):
        with pytest.raises(MalformedAmount):
            SplitAmount(low=2**128, high=0).value


class TestBridgeMessage:
    """Test suite for BridgeMessage matching."""

    def test_matches_ignores_block_and_address_case(self):
        dispatched = BridgeMessage(1, "0xAbC0000000000000000000000000000000000001", (1, 2), 1000)
        consumed = BridgeMessage(1, "0xabc0000000000000000000000000000000000001", (1, 2), 1050)
        assert dispatched.matches(consumed)

    def test_payload_mismatch(self):
        dispatched = BridgeMessage(1, "0x01", (1, 2), 1000)
        assert not dispatched.matches(BridgeMessage(1, "0x01", (1, 3), 1000))
        assert not dispatched.matches(BridgeMessage(2, "0x01", (1, 2), 1000))


def test_outcome_terminality():
    assert not TransactionOutcome("0x1", TransactionStatus.PENDING, "RECEIVED").is_terminal
    assert TransactionOutcome("0x1", TransactionStatus.ACCEPTED_ON_L1, "ACCEPTED_ON_L1").is_terminal
    assert TransactionOutcome("0x1", TransactionStatus.REJECTED, "REJECTED", "boom").is_terminal
