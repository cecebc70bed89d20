"""Configuration management for the Wormhole Keeper.

This module provides type-safe configuration dataclasses with validation.
Configuration is loaded once from environment variables and passed to the
keeper explicitly; there is no module-level state.
"""

import logging
import os
from collections.abc import Mapping
from dataclasses import dataclass, field
from enum import Enum
from typing import ClassVar
from urllib.parse import urlparse

from web3 import Web3

from .errors import MissingConfiguration
from .models import Domain

# Get logger for this module
logger = logging.getLogger(__name__)


class Network(Enum):
    """Supported deployments and their fixed endpoints."""
    MAINNET = "MAINNET"
    GOERLI = "GOERLI"
    LOCALHOST = "LOCALHOST"

    @property
    def l2_gateway_url(self) -> str:
        return {
            Network.MAINNET: "https://alpha-mainnet.starknet.io",
            Network.GOERLI: "https://alpha4.starknet.io",
            Network.LOCALHOST: "http://localhost:5000",
        }[self]

    @property
    def default_l1_rpc_url(self) -> str:
        return {
            Network.MAINNET: "https://ethereum.publicnode.com",
            Network.GOERLI: "https://ethereum-goerli.publicnode.com",
            Network.LOCALHOST: "http://localhost:8545",
        }[self]


class FlushPolicy(Enum):
    """When positive debt may be flushed."""
    UNCONDITIONAL = "UNCONDITIONAL"
    DELAY_GATED = "DELAY_GATED"


def _checksum(name: str, address: str) -> str:
    if not Web3.is_address(address):
        raise MissingConfiguration(f"Invalid {name} address: {address}")
    return Web3.to_checksum_address(address)


@dataclass(frozen=True, slots=True)
class L1ChainConfig:
    """Configuration for the L1 chain (Ethereum).

    Attributes:
        rpc_url: HTTP(S) RPC endpoint
        gateway_address: L1DAIWormholeGateway address
        join_address: WormholeJoin address (needed by the delay-gated policy)
        starknet_core_address: StarkNet core messaging contract address
        private_key: Key used to sign ``finalizeFlush`` (optional for read-only runs)
    """

    rpc_url: str
    gateway_address: str
    join_address: str | None = None
    starknet_core_address: str | None = None
    private_key: str | None = field(default=None, repr=False)

    def __post_init__(self) -> None:
        """Validate L1 chain configuration."""
        parsed = urlparse(self.rpc_url)
        if parsed.scheme not in ('http', 'https'):
            raise MissingConfiguration(
                f"Invalid L1 RPC URL scheme: {parsed.scheme!r}. Expected http or https"
            )

        object.__setattr__(self, 'gateway_address', _checksum("L1 gateway", self.gateway_address))
        if self.join_address:
            object.__setattr__(self, 'join_address', _checksum("wormhole join", self.join_address))
        if self.starknet_core_address:
            object.__setattr__(
                self, 'starknet_core_address', _checksum("StarkNet core", self.starknet_core_address)
            )

        if self.private_key:
            key = self.private_key.removeprefix('0x')
            if len(key) != 64:
                raise MissingConfiguration(
                    f"Invalid L1 private key length. Expected 64 hex characters, got {len(key)}"
                )
            try:
                int(key, 16)
            except ValueError:
                raise MissingConfiguration("Invalid L1 private key format. Must be hexadecimal") from None


@dataclass(frozen=True, slots=True)
class L2ChainConfig:
    """Configuration for the L2 chain (StarkNet).

    Attributes:
        gateway_url: Base URL serving ``/gateway`` and ``/feeder_gateway``
        gateway_address: l2_dai_wormhole_gateway contract address
    """

    gateway_url: str
    gateway_address: str

    def __post_init__(self) -> None:
        """Validate L2 chain configuration."""
        try:
            int(self.gateway_address, 16)
        except ValueError:
            raise MissingConfiguration(
                f"Invalid L2 gateway address: {self.gateway_address}"
            ) from None

    @property
    def gateway_felt(self) -> int:
        return int(self.gateway_address, 16)


@dataclass(frozen=True, slots=True)
class PolicyConfig:
    """Keeper decision and polling policy."""

    flush_policy: FlushPolicy = FlushPolicy.UNCONDITIONAL
    flush_delay_blocks: int = 0
    require_message_delivered: bool = True
    poll_interval: float = 1.0  # seconds between L2 status polls
    finality_timeout: float | None = None  # None waits forever
    lookback_blocks: int = 0  # 0 scans L1 logs from genesis
    request_timeout: int = 30  # HTTP request timeout in seconds

    def __post_init__(self) -> None:
        """Validate policy configuration."""
        if self.flush_delay_blocks < 0:
            raise MissingConfiguration(
                f"Flush delay must be non-negative, got {self.flush_delay_blocks}"
            )
        if self.poll_interval <= 0:
            raise MissingConfiguration(f"Poll interval must be positive, got {self.poll_interval}")
        if self.finality_timeout is not None and self.finality_timeout <= 0:
            raise MissingConfiguration(
                f"Finality timeout must be positive, got {self.finality_timeout}"
            )
        if self.lookback_blocks < 0:
            raise MissingConfiguration(f"Lookback blocks must be non-negative, got {self.lookback_blocks}")
        if self.request_timeout <= 0:
            raise MissingConfiguration(f"Request timeout must be positive, got {self.request_timeout}")


@dataclass(frozen=True, slots=True)
class KeeperConfig:
    """Main configuration for the Wormhole Keeper.

    Attributes:
        network: Selected deployment
        domain: Domain whose debt is flushed and finalized
        l1: L1 chain configuration
        l2: L2 chain configuration
        policy: Decision and polling policy
    """

    network: Network
    domain: Domain
    l1: L1ChainConfig
    l2: L2ChainConfig
    policy: PolicyConfig = field(default_factory=PolicyConfig)

    TRUE_VALUES: ClassVar[set[str]] = {"1", "true", "yes", "on"}
    FALSE_VALUES: ClassVar[set[str]] = {"0", "false", "no", "off"}

    def __post_init__(self) -> None:
        """Validate cross-section requirements."""
        if self.policy.flush_policy is FlushPolicy.DELAY_GATED and not self.l1.join_address:
            raise MissingConfiguration(
                f"{self.network.value}_WORMHOLE_JOIN_ADDRESS is required by the DELAY_GATED flush policy"
            )
        if self.policy.require_message_delivered and not self.l1.starknet_core_address:
            raise MissingConfiguration(
                f"{self.network.value}_STARKNET_CORE_ADDRESS is required when "
                "REQUIRE_MESSAGE_DELIVERED is enabled"
            )

    @staticmethod
    def _required(env: Mapping[str, str], key: str) -> str:
        value = env.get(key, "").strip()
        if not value:
            raise MissingConfiguration(f"Please provide {key} in the environment")
        return value

    @classmethod
    def _flag(cls, env: Mapping[str, str], key: str, default: bool) -> bool:
        value = env.get(key, "").strip().lower()
        if not value:
            return default
        if value in cls.TRUE_VALUES:
            return True
        if value in cls.FALSE_VALUES:
            return False
        raise MissingConfiguration(f"{key} must be a boolean, got {value!r}")

    @staticmethod
    def _number(env: Mapping[str, str], key: str, default: str, kind: type = int):
        value = env.get(key, "").strip() or default
        try:
            return kind(value)
        except ValueError:
            raise MissingConfiguration(f"{key} must be a number, got {value!r}") from None

    @classmethod
    def from_env(cls, env: Mapping[str, str] | None = None) -> "KeeperConfig":
        """Load configuration from environment variables.

        Args:
            env: Mapping to read instead of ``os.environ`` (used by tests)

        Returns:
            KeeperConfig instance with loaded values

        Raises:
            MissingConfiguration: If required variables are missing or invalid
        """
        env = os.environ if env is None else env

        network_name = cls._required(env, "NETWORK").upper()
        try:
            network = Network(network_name)
        except ValueError:
            raise MissingConfiguration(
                f"Unsupported network: {network_name}. "
                f"Supported networks: {', '.join(n.value for n in Network)}"
            ) from None
        prefix = network.value

        domain_value = cls._required(env, "DOMAIN")
        try:
            domain = Domain.from_string(domain_value)
        except ValueError as e:
            raise MissingConfiguration(f"Invalid DOMAIN: {e}") from None

        l1 = L1ChainConfig(
            rpc_url=(
                env.get(f"{prefix}_L1_RPC_URL")
                or env.get("L1_RPC_URL")
                or network.default_l1_rpc_url
            ),
            gateway_address=cls._required(env, f"{prefix}_L1_DAI_WORMHOLE_GATEWAY_ADDRESS"),
            join_address=env.get(f"{prefix}_WORMHOLE_JOIN_ADDRESS") or None,
            starknet_core_address=env.get(f"{prefix}_STARKNET_CORE_ADDRESS") or None,
            private_key=env.get(f"{prefix}_L1_PRIVATE_KEY") or None,
        )

        l2 = L2ChainConfig(
            gateway_url=env.get(f"{prefix}_L2_GATEWAY_URL") or network.l2_gateway_url,
            gateway_address=cls._required(env, f"{prefix}_L2_DAI_WORMHOLE_GATEWAY_ADDRESS"),
        )

        policy_name = (env.get("FLUSH_POLICY") or FlushPolicy.UNCONDITIONAL.value).upper()
        try:
            flush_policy = FlushPolicy(policy_name)
        except ValueError:
            raise MissingConfiguration(
                f"Unsupported FLUSH_POLICY: {policy_name}. "
                f"Expected one of {', '.join(p.value for p in FlushPolicy)}"
            ) from None

        timeout_raw = env.get("FINALITY_TIMEOUT", "").strip()
        policy = PolicyConfig(
            flush_policy=flush_policy,
            flush_delay_blocks=cls._number(env, "FLUSH_DELAY_BLOCKS", "0"),
            require_message_delivered=cls._flag(env, "REQUIRE_MESSAGE_DELIVERED", True),
            poll_interval=cls._number(env, "POLL_INTERVAL", "1", float),
            finality_timeout=cls._number(env, "FINALITY_TIMEOUT", "0", float) if timeout_raw else None,
            lookback_blocks=cls._number(env, "LOOKBACK_BLOCKS", "0"),
            request_timeout=cls._number(env, "REQUEST_TIMEOUT", "30"),
        )

        return cls(
            network=network,
            domain=domain,
            l1=l1,
            l2=l2,
            policy=policy,
        )

    def log_config(self) -> None:
        """Log the configuration in a readable format (hiding sensitive data)."""
        logger.info("=" * 60)
        logger.info("Wormhole Keeper Configuration")
        logger.info("=" * 60)
        logger.info(f"Network: {self.network.value}")
        logger.info(f"Domain: {self.domain}")

        logger.info("L1 Chain:")
        logger.info(f"  RPC URL: {self.l1.rpc_url}")
        logger.info(f"  Gateway: {self.l1.gateway_address}")
        logger.info(f"  Join: {self.l1.join_address or '[NOT SET]'}")
        logger.info(f"  StarkNet Core: {self.l1.starknet_core_address or '[NOT SET]'}")
        logger.info(f"  Private Key: {'[SET]' if self.l1.private_key else '[NOT SET]'}")

        logger.info("L2 Chain:")
        logger.info(f"  Gateway URL: {self.l2.gateway_url}")
        logger.info(f"  Gateway: {self.l2.gateway_address}")

        logger.info("Policy:")
        logger.info(f"  Flush Policy: {self.policy.flush_policy.value}")
        logger.info(f"  Flush Delay: {self.policy.flush_delay_blocks} blocks")
        logger.info(f"  Require Message Delivered: {self.policy.require_message_delivered}")
        logger.info(f"  Poll Interval: {self.policy.poll_interval}s")
        timeout = f"{self.policy.finality_timeout}s" if self.policy.finality_timeout else "unbounded"
        logger.info(f"  Finality Timeout: {timeout}")
        logger.info(f"  Lookback Blocks: {self.policy.lookback_blocks or 'from genesis'}")
        logger.info("=" * 60)
