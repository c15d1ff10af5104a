"""Configuration loader — reads config.yaml, interpolates env vars, validates."""
from __future__ import annotations

import logging
import os
import re
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

import yaml
from dotenv import load_dotenv

from .models import Chain, CollateralToken, RecommendationCriteria

logger = logging.getLogger(__name__)

# ---------------------------------------------------------------------------
# Frozen config dataclasses
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class ChainConfig:
    rpc_endpoints: tuple[str, ...] = ()
    rpc_timeout: int = 15
    probe_timeout: float = 5.0


@dataclass(frozen=True)
class TokenConfig:
    """Known token addresses on one chain, keyed by symbol."""

    collateral: dict[str, str] = field(default_factory=dict)
    borrow: dict[str, str] = field(default_factory=dict)


@dataclass(frozen=True)
class AaveDeploymentConfig:
    pool: str = ""
    data_provider: str = ""


@dataclass(frozen=True)
class MorphoMarketConfig:
    market_id: str = ""
    chain: str = ""
    collateral: str = ""
    loan_token: str = ""
    lltv: float | None = None


@dataclass(frozen=True)
class MorphoConfig:
    deployments: dict[str, str] = field(default_factory=dict)
    markets: tuple[MorphoMarketConfig, ...] = ()


@dataclass(frozen=True)
class FluidVaultConfig:
    vault_address: str = ""
    chain: str = ""
    collateral: str = ""
    loan_token: str = ""
    max_ltv: float = 0.0
    liquidation_threshold: float = 0.0


@dataclass(frozen=True)
class FluidConfig:
    deployments: dict[str, str] = field(default_factory=dict)
    vaults: tuple[FluidVaultConfig, ...] = ()


@dataclass(frozen=True)
class RetryConfig:
    max_retries: int = 3
    base_delay: float = 1.0
    max_delay: float = 10.0


@dataclass(frozen=True)
class AppConfig:
    chains: dict[str, ChainConfig] = field(default_factory=dict)
    tokens: dict[str, TokenConfig] = field(default_factory=dict)
    aave: dict[str, AaveDeploymentConfig] = field(default_factory=dict)
    morpho: MorphoConfig = field(default_factory=MorphoConfig)
    fluid: FluidConfig = field(default_factory=FluidConfig)
    call_retry: RetryConfig = field(default_factory=RetryConfig)
    aggregator_retry: RetryConfig = field(
        default_factory=lambda: RetryConfig(max_retries=2, base_delay=1.5)
    )
    criteria: RecommendationCriteria = field(default_factory=RecommendationCriteria)


# ---------------------------------------------------------------------------
# Env interpolation
# ---------------------------------------------------------------------------

_ENV_VAR_RE = re.compile(r"\$\{([^}]+)}")


def _interpolate_env(value: Any) -> Any:
    """Recursively replace ${VAR} references with environment variable values."""
    if isinstance(value, str):
        return _ENV_VAR_RE.sub(lambda m: os.environ.get(m.group(1), ""), value)
    if isinstance(value, dict):
        return {k: _interpolate_env(v) for k, v in value.items()}
    if isinstance(value, list):
        return [_interpolate_env(item) for item in value]
    return value


# ---------------------------------------------------------------------------
# YAML → dataclass builders
# ---------------------------------------------------------------------------


def _build_chains(raw: dict[str, Any]) -> dict[str, ChainConfig]:
    chains: dict[str, ChainConfig] = {}
    for name, cfg in raw.items():
        chains[name] = ChainConfig(
            rpc_endpoints=tuple(u for u in cfg.get("rpc_endpoints", []) if u),
            rpc_timeout=int(cfg.get("rpc_timeout", 15)),
            probe_timeout=float(cfg.get("probe_timeout", 5.0)),
        )
    return chains


def _build_tokens(raw: dict[str, Any]) -> dict[str, TokenConfig]:
    tokens: dict[str, TokenConfig] = {}
    for name, cfg in raw.items():
        tokens[name] = TokenConfig(
            collateral={k: v for k, v in (cfg.get("collateral") or {}).items() if v},
            borrow={k: v for k, v in (cfg.get("borrow") or {}).items() if v},
        )
    return tokens


def _build_aave(raw: dict[str, Any]) -> dict[str, AaveDeploymentConfig]:
    return {
        name: AaveDeploymentConfig(
            pool=cfg.get("pool", ""),
            data_provider=cfg.get("data_provider", ""),
        )
        for name, cfg in raw.items()
    }


def _optional_float(value: Any) -> float | None:
    return None if value is None or value == "" else float(value)


def _build_morpho(raw: dict[str, Any]) -> MorphoConfig:
    markets = tuple(
        MorphoMarketConfig(
            market_id=str(m.get("id", "")),
            chain=m.get("chain", ""),
            collateral=m.get("collateral", ""),
            loan_token=m.get("loan_token", ""),
            lltv=_optional_float(m.get("lltv")),
        )
        for m in raw.get("markets", [])
    )
    return MorphoConfig(deployments=dict(raw.get("deployments", {})), markets=markets)


def _build_fluid(raw: dict[str, Any]) -> FluidConfig:
    vaults = tuple(
        FluidVaultConfig(
            vault_address=v.get("address", ""),
            chain=v.get("chain", ""),
            collateral=v.get("collateral", ""),
            loan_token=v.get("loan_token", ""),
            max_ltv=float(v.get("max_ltv", 0.0)),
            liquidation_threshold=float(v.get("liquidation_threshold", 0.0)),
        )
        for v in raw.get("vaults", [])
    )
    return FluidConfig(deployments=dict(raw.get("deployments", {})), vaults=vaults)


def _build_retry(raw: dict[str, Any], default: RetryConfig) -> RetryConfig:
    return RetryConfig(
        max_retries=int(raw.get("max_retries", default.max_retries)),
        base_delay=float(raw.get("base_delay", default.base_delay)),
        max_delay=float(raw.get("max_delay", default.max_delay)),
    )


def _build_criteria(raw: dict[str, Any]) -> RecommendationCriteria:
    defaults = RecommendationCriteria()
    return RecommendationCriteria(
        min_liquidity=float(raw.get("min_liquidity", defaults.min_liquidity)),
        max_acceptable_apr=float(raw.get("max_apr", defaults.max_acceptable_apr)),
        min_liquidation_buffer=float(
            raw.get("min_liquidation_buffer", defaults.min_liquidation_buffer)
        ),
    )


# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------


def _default_config_path() -> Path:
    local = Path.cwd() / "config.yaml"
    if local.exists():
        return local
    return Path(__file__).resolve().parent.parent / "config.yaml"


def load_config(config_path: str | Path | None = None) -> AppConfig:
    """Load and validate application configuration from YAML + .env.

    Args:
        config_path: Path to config.yaml. Defaults to ``config.yaml`` in the
            working directory, then the one in the project root (two levels
            up from this file).
    """
    load_dotenv()

    if config_path is None:
        config_path = _default_config_path()
    config_path = Path(config_path)

    if not config_path.exists():
        raise FileNotFoundError(f"Config file not found: {config_path}")

    with open(config_path) as f:
        raw = yaml.safe_load(f) or {}

    raw = _interpolate_env(raw)
    retry_raw = raw.get("retry", {})

    defaults = AppConfig()
    cfg = AppConfig(
        chains=_build_chains(raw.get("chains", {})),
        tokens=_build_tokens(raw.get("tokens", {})),
        aave=_build_aave(raw.get("aave", {})),
        morpho=_build_morpho(raw.get("morpho", {})),
        fluid=_build_fluid(raw.get("fluid", {})),
        call_retry=_build_retry(retry_raw.get("calls", {}), defaults.call_retry),
        aggregator_retry=_build_retry(
            retry_raw.get("aggregator", {}), defaults.aggregator_retry
        ),
        criteria=_build_criteria(raw.get("criteria", {})),
    )

    _validate(cfg)
    logger.info("Configuration loaded from %s", config_path)
    return cfg


def _check_chain(name: str, where: str) -> None:
    try:
        Chain.parse(name)
    except ValueError:
        raise ValueError(f"{where} references unknown chain '{name}'") from None


def _check_collateral(symbol: str, where: str) -> None:
    try:
        CollateralToken(symbol)
    except ValueError:
        raise ValueError(f"{where} references unknown collateral '{symbol}'") from None


def _check_ratio(value: float, what: str) -> None:
    if not 0.0 <= value <= 1.0:
        raise ValueError(f"{what} must be between 0 and 1, got {value}")


def _validate(cfg: AppConfig) -> None:
    """Raise on invalid configuration."""
    if not any(c.rpc_endpoints for c in cfg.chains.values()):
        raise ValueError("At least one chain with RPC endpoints must be configured")

    for name in cfg.chains:
        _check_chain(name, "chains")
    for name, tokens in cfg.tokens.items():
        _check_chain(name, "tokens")
        for symbol in tokens.collateral:
            _check_collateral(symbol, f"tokens.{name}")
    for name in cfg.aave:
        _check_chain(name, "aave")
    for name in cfg.morpho.deployments:
        _check_chain(name, "morpho.deployments")
    for name in cfg.fluid.deployments:
        _check_chain(name, "fluid.deployments")

    for market in cfg.morpho.markets:
        where = f"Morpho market '{market.market_id}'"
        if not market.market_id:
            raise ValueError("Morpho market has no id")
        _check_chain(market.chain, where)
        _check_collateral(market.collateral, where)
        if market.lltv is not None:
            _check_ratio(market.lltv, f"{where} lltv")

    for vault in cfg.fluid.vaults:
        where = f"Fluid vault '{vault.vault_address}'"
        if not vault.vault_address:
            raise ValueError("Fluid vault has no address")
        _check_chain(vault.chain, where)
        _check_collateral(vault.collateral, where)
        _check_ratio(vault.max_ltv, f"{where} max_ltv")
        _check_ratio(vault.liquidation_threshold, f"{where} liquidation_threshold")

    for retry in (cfg.call_retry, cfg.aggregator_retry):
        if retry.max_retries < 0:
            raise ValueError("retry.max_retries must not be negative")

    if cfg.criteria.min_liquidity < 0 or cfg.criteria.max_acceptable_apr < 0:
        raise ValueError("criteria thresholds must not be negative")
