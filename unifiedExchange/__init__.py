"""
Convenience exports and factory helpers for the unifiedExchange package.
"""
from typing import Optional

from .base_adapter import ExchangeAdapter
from .config import ExchangeConfig
from .dto import (
    OHLCVRequestParams,
    CandleType,
    MarketLimits,
    MarketPrecision,
    MinMax,
    SignedRequest,
    UnifiedMarket,
)
from .dataClient import EXCHANGE_ADAPTERS, DataClient
from .exchange.bingx import BingxAdapter
from . import errors


def get_exchange_adapter(name: str, config: Optional[ExchangeConfig] = None) -> ExchangeAdapter:
    """
    Create an exchange adapter instance by name.

    Args:
        name: Exchange identifier, case-insensitive (e.g. ``"bingx"``).
        config: Adapter configuration; read from the environment when omitted.

    Returns:
        ExchangeAdapter: Instantiated adapter for the requested venue.

    Raises:
        ValueError: If the exchange name is unsupported.
    """
    key = name.lower()
    if key not in EXCHANGE_ADAPTERS:
        available = ", ".join(sorted(EXCHANGE_ADAPTERS.keys()))
        raise ValueError(f"Unsupported exchange '{name}'. Available: {available}")
    return EXCHANGE_ADAPTERS[key](config or ExchangeConfig.from_env(key))


__all__ = [
    "ExchangeAdapter",
    "ExchangeConfig",
    "OHLCVRequestParams",
    "CandleType",
    "MarketLimits",
    "MarketPrecision",
    "MinMax",
    "SignedRequest",
    "UnifiedMarket",
    "BingxAdapter",
    "DataClient",
    "EXCHANGE_ADAPTERS",
    "get_exchange_adapter",
    "errors",
]
