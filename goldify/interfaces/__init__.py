"""Protocol interfaces for the lending-market aggregator."""
from .chain import ChainClient, ConnectionProvider
from .market_registry import MarketRegistry
from .protocol_adapter import ProtocolAdapter

__all__ = ["ChainClient", "ConnectionProvider", "MarketRegistry", "ProtocolAdapter"]
