"""
Wormhole Keeper package.

Flushes batched DAI wormhole debt from StarkNet and finalizes it on Ethereum.
"""

from .config import FlushPolicy, KeeperConfig, Network
from .errors import (
    FinalityTimeout,
    FinalityWaitCancelled,
    KeeperError,
    MalformedAmount,
    MissingConfiguration,
    RemoteQueryFailed,
    TransactionRejected,
)
from .keeper import WormholeKeeper
from .models import Domain, MessageStatus, SplitAmount

__all__ = [
    "KeeperConfig",
    "Network",
    "FlushPolicy",
    "WormholeKeeper",
    "Domain",
    "SplitAmount",
    "MessageStatus",
    "KeeperError",
    "MissingConfiguration",
    "RemoteQueryFailed",
    "TransactionRejected",
    "MalformedAmount",
    "FinalityTimeout",
    "FinalityWaitCancelled",
]
__version__ = "0.1.0"
