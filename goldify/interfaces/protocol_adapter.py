"""Protocol adapter — per-protocol market fetching."""
from typing import Protocol

from ..models import Chain, CollateralToken, LendingMarket


class ProtocolAdapter(Protocol):
    """Abstract interface for reading borrow markets from a lending protocol.

    ``fetch_markets`` must not raise: failures resolve to an empty list.
    """

    @property
    def protocol_name(self) -> str: ...

    def supported_chains(self) -> list[Chain]: ...

    async def fetch_markets(
        self, collateral: CollateralToken, chain: Chain
    ) -> list[LendingMarket]: ...
