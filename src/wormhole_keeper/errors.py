"""
Error types for the Wormhole Keeper.

Every fatal condition aborts the current keeper operation. The only state
that is retried is a transaction that is still pending, which is not an error.
"""


class KeeperError(Exception):
    """Base class for all keeper failures."""


class MissingConfiguration(KeeperError, ValueError):
    """A required setting is absent or invalid."""


class RemoteQueryFailed(KeeperError):
    """An RPC or HTTP call to one of the chains failed."""

    def __init__(self, operation: str, detail: str = "") -> None:
        self.operation = operation
        self.detail = detail
        message = f"{operation} failed"
        if detail:
            message = f"{message}: {detail}"
        super().__init__(message)


class TransactionRejected(KeeperError):
    """A submitted transaction reached a terminal failure state."""

    def __init__(self, tx_hash: str, reason: str) -> None:
        self.tx_hash = tx_hash
        self.reason = reason
        super().__init__(f"Transaction {tx_hash} rejected: {reason}")


class MalformedAmount(KeeperError):
    """A split amount violates the 128-bit limb invariant."""


class FinalityTimeout(KeeperError):
    """The finality wait exceeded its configured deadline."""

    def __init__(self, tx_hash: str, timeout: float) -> None:
        self.tx_hash = tx_hash
        self.timeout = timeout
        super().__init__(f"Transaction {tx_hash} not accepted on L1 within {timeout}s")


class FinalityWaitCancelled(KeeperError):
    """The finality wait was cancelled by the host."""

    def __init__(self, tx_hash: str) -> None:
        self.tx_hash = tx_hash
        super().__init__(f"Finality wait for {tx_hash} cancelled")
