"""RPC endpoint selection."""
from .endpoint_selector import EndpointSelector

__all__ = ["EndpointSelector"]
