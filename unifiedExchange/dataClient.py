"""
Unified client that routes calls to the registered exchange adapters.
"""
from typing import Any, Dict, List, Optional, Type

from unifiedExchange.base_adapter import ExchangeAdapter
from unifiedExchange.config import ExchangeConfig
from unifiedExchange.dto import CandleType, OHLCVRequestParams, UnifiedMarket
from unifiedExchange.exchange.bingx import BingxAdapter

EXCHANGE_ADAPTERS: Dict[str, Type[ExchangeAdapter]] = {
    "bingx": BingxAdapter,
}


class DataClient:
    """统一的数据获取客户端，支持多个交易所的数据获取"""

    def __init__(self, configs: Optional[Dict[str, ExchangeConfig]] = None):
        self._configs: Dict[str, ExchangeConfig] = configs or {}
        self._adapters: Dict[str, ExchangeAdapter] = {}

    def _get_adapter(self, exchange: str) -> ExchangeAdapter:
        """获取或创建交易所适配器实例"""
        exchange = exchange.lower()
        if exchange not in self._adapters:
            if exchange not in EXCHANGE_ADAPTERS:
                raise ValueError(f"Unsupported exchange: {exchange}")

            adapter_class = EXCHANGE_ADAPTERS[exchange]
            config = self._configs.get(exchange) or ExchangeConfig.from_env(exchange)
            self._adapters[exchange] = adapter_class(config)

        return self._adapters[exchange]

    def fetch_markets(
        self,
        exchange: str,
        params: Optional[Dict[str, Any]] = None
    ) -> List[UnifiedMarket]:
        """
        获取交易所的市场列表

        Args:
            exchange: 交易所名称 (bingx)
            params: 额外参数, 例如 {"type": "spot"}

        Returns:
            标准化的市场列表
        """
        adapter = self._get_adapter(exchange)
        return adapter.fetch_markets(params)

    def load_markets(self, exchange: str, reload: bool = False) -> Dict[str, UnifiedMarket]:
        adapter = self._get_adapter(exchange)
        return adapter.load_markets(reload)

    def fetch_ohlcv(
        self,
        exchange: str,
        params: OHLCVRequestParams
    ) -> List[CandleType]:
        """
        获取价格历史数据(OHLCV)

        Args:
            exchange: 交易所名称
            params: OHLCV请求参数

        Returns:
            标准化的OHLCV数据列表
        """
        adapter = self._get_adapter(exchange)
        return adapter.fetch_ohlcv(
            params.symbol,
            params.timeframe,
            params.since,
            params.limit,
            params.params,
        )
