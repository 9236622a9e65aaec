"""
Bridge Exceptions

Every public operation either returns a well-formed result or raises one of
the exceptions below. Callers branch on the exception type (or its
``retryable`` flag) rather than on message text:

- Configuration and validation errors (unknown chain, unsupported hop, no
  route, no signer) are terminal for the current call.
- ``ProviderError`` is transient. It is retried locally a bounded number of
  times before it reaches the caller.
- ``DecodeError`` never reaches the caller; event decoding is best-effort.
"""


class BridgeError(Exception):
    """Base exception for all bridge operations."""

    retryable: bool = False


class UnknownChainError(BridgeError):
    """Raised when a chain id is not present in the chain registry."""

    def __init__(self, chain_id: int):
        self.chain_id = chain_id
        super().__init__(f"Chain {chain_id} is not in the chain registry")


class UnsupportedHopError(BridgeError):
    """Raised when no bridge contract exists for a (source, target) pair."""

    def __init__(self, source_chain: int, target_chain: int):
        self.source_chain = source_chain
        self.target_chain = target_chain
        super().__init__(
            f"Bridge not supported between chains {source_chain} and {target_chain}"
        )


class RouteNotFoundError(BridgeError):
    """Raised when no direct or multi-hop path connects two chains."""

    def __init__(self, source_chain: int, target_chain: int, token_symbol: str | None = None):
        self.source_chain = source_chain
        self.target_chain = target_chain
        self.token_symbol = token_symbol
        suffix = f" for {token_symbol}" if token_symbol else ""
        super().__init__(
            f"No route found from chain {source_chain} to {target_chain}{suffix}"
        )


class SigningUnavailableError(BridgeError):
    """Raised when a mutating operation is attempted without a signer."""

    def __init__(self, message: str = "Signer required for bridge transactions"):
        super().__init__(message)


class ProviderError(BridgeError):
    """Transient failure talking to a chain data provider or RPC endpoint."""

    retryable = True

    def __init__(self, message: str, chain_id: int | None = None):
        self.chain_id = chain_id
        super().__init__(message)


class DecodeError(BridgeError):
    """Raised internally when a bridge event log cannot be decoded."""

    pass
