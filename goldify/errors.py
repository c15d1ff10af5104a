"""Exception hierarchy."""
from __future__ import annotations


class GoldifyError(Exception):
    """Base class for all errors raised inside the package."""


class RpcError(GoldifyError):
    """Transient JSON-RPC failure: HTTP error, timeout or an RPC error object."""


class ConfigurationError(GoldifyError):
    """Unsupported chain/collateral or missing deployment data. Never retried."""


class MarketDataError(GoldifyError):
    """On-chain values that cannot be decoded or fail basic sanity checks."""
