"""Static market registries — hardcoded stand-ins for a discovery service.

Morpho markets and Fluid vaults cannot be enumerated cheaply on-chain, so the
adapters ask a :class:`~goldify.interfaces.MarketRegistry` for them. The static
implementation here is built from config; a subgraph-backed registry can
replace it without touching adapter code.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Generic, Iterable, Protocol, TypeVar

from .config import AppConfig
from .models import Chain, CollateralToken

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class MorphoMarketDescriptor:
    market_id: str
    chain: Chain
    collateral: CollateralToken
    collateral_address: str
    loan_symbol: str
    loan_address: str
    lltv: float | None = None  # None → read idToMarketParams on-chain


@dataclass(frozen=True)
class FluidVaultDescriptor:
    vault_address: str
    chain: Chain
    collateral: CollateralToken
    collateral_address: str
    loan_symbol: str
    loan_address: str
    max_ltv: float
    liquidation_threshold: float


class _Keyed(Protocol):
    @property
    def chain(self) -> Chain: ...

    @property
    def collateral(self) -> CollateralToken: ...


D = TypeVar("D", bound=_Keyed)


class StaticMarketRegistry(Generic[D]):
    """In-memory lookup table keyed by (collateral, chain)."""

    def __init__(self, descriptors: Iterable[D] = ()) -> None:
        self._descriptors: tuple[D, ...] = tuple(descriptors)

    def __len__(self) -> int:
        return len(self._descriptors)

    def lookup(self, collateral: CollateralToken, chain: Chain) -> list[D]:
        return [
            d for d in self._descriptors
            if d.collateral == collateral and d.chain == chain
        ]


def _resolve_addresses(
    config: AppConfig, chain: str, collateral: str, loan_token: str, where: str
) -> tuple[str, str] | None:
    tokens = config.tokens.get(chain)
    collateral_address = tokens.collateral.get(collateral) if tokens else None
    loan_address = tokens.borrow.get(loan_token) if tokens else None
    if not collateral_address or not loan_address:
        logger.warning(
            "Skipping %s: no token address for %s/%s on %s",
            where, collateral, loan_token, chain,
        )
        return None
    return collateral_address, loan_address


def morpho_registry_from_config(
    config: AppConfig,
) -> StaticMarketRegistry[MorphoMarketDescriptor]:
    descriptors: list[MorphoMarketDescriptor] = []
    for m in config.morpho.markets:
        addresses = _resolve_addresses(
            config, m.chain, m.collateral, m.loan_token, f"Morpho market {m.market_id}"
        )
        if addresses is None:
            continue
        descriptors.append(
            MorphoMarketDescriptor(
                market_id=m.market_id,
                chain=Chain.parse(m.chain),
                collateral=CollateralToken(m.collateral),
                collateral_address=addresses[0],
                loan_symbol=m.loan_token,
                loan_address=addresses[1],
                lltv=m.lltv,
            )
        )
    return StaticMarketRegistry(descriptors)


def fluid_registry_from_config(
    config: AppConfig,
) -> StaticMarketRegistry[FluidVaultDescriptor]:
    descriptors: list[FluidVaultDescriptor] = []
    for v in config.fluid.vaults:
        addresses = _resolve_addresses(
            config, v.chain, v.collateral, v.loan_token, f"Fluid vault {v.vault_address}"
        )
        if addresses is None:
            continue
        descriptors.append(
            FluidVaultDescriptor(
                vault_address=v.vault_address,
                chain=Chain.parse(v.chain),
                collateral=CollateralToken(v.collateral),
                collateral_address=addresses[0],
                loan_symbol=v.loan_token,
                loan_address=addresses[1],
                max_ltv=v.max_ltv,
                liquidation_threshold=v.liquidation_threshold,
            )
        )
    return StaticMarketRegistry(descriptors)
