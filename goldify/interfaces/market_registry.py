"""Market registry protocol — discovery of protocol market identifiers."""
from typing import Protocol, TypeVar

from ..models import Chain, CollateralToken

D_co = TypeVar("D_co", covariant=True)


class MarketRegistry(Protocol[D_co]):
    """Looks up market descriptors (Morpho market ids, Fluid vaults, ...)."""

    def lookup(self, collateral: CollateralToken, chain: Chain) -> list[D_co]: ...
