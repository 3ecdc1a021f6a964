from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Any, ClassVar, Dict, List, Optional, Tuple, Type

from unifiedExchange.base_adapter import ApiSection, ExchangeAdapter
from unifiedExchange.config import ExchangeConfig
from unifiedExchange.dto import (
    CandleType,
    MarketLimits,
    MarketPrecision,
    MinMax,
    SignedRequest,
    UnifiedMarket,
)
from unifiedExchange.errors import BadResponse, ExchangeError, NotSupported
from unifiedExchange.helpers import (
    extract_params,
    implode_params,
    keysort,
    omit,
    safe_integer,
    safe_number,
    safe_string,
    safe_value,
    urlencode,
)

# 150 requests per 5 seconds
BINGX_DESCRIPTION = MappingProxyType({
    "id": "bingx",
    "name": "BingX",
    "countries": ("US",),
    "rate_limit": 100,
    "version": "v1",
    "hostname": "bingx.com",
    "precision_mode": "tick_size",
})

BINGX_URLS = MappingProxyType({
    "api": MappingProxyType({
        "spot": "https://open-api.{hostname}/openApi/spot",
        "swap": "https://open-api.{hostname}/openApi/swap",
        "contract": "https://open-api.{hostname}/openApi/contract",
    }),
    "www": "https://bingx.com",
    "doc": "https://bingx-api.github.io/docs/",
})

# market type -> api version -> access level -> http method -> paths
BINGX_ENDPOINTS = MappingProxyType({
    "spot": {
        "v1": {
            "public": {
                "get": (
                    "common/symbols",
                    "market/trades",
                    "market/depth",
                    "market/getLatestKline",
                ),
            },
            "private": {"get": (), "post": ()},
        },
    },
    "swap": {
        "v2": {
            "public": {
                "get": (
                    "server/time",
                    "quote/contracts",
                    "quote/price",
                    "quote/depth",
                    "quote/trades",
                    "quote/premiumIndex",
                    "quote/fundingRate",
                    "quote/klines",
                    "quote/openInterest",
                    "quote/ticker",
                ),
                "post": (),
            },
            "private": {"post": ()},
        },
    },
    "contract": {
        "v1": {
            "private": {
                "get": (
                    "allPosition",
                    "allOrders",
                    "balance",
                ),
            },
        },
    },
})

BINGX_TIMEFRAME_MAP = MappingProxyType({
    "1m": "1m",
    "3m": "3m",
    "5m": "5m",
    "15m": "15m",
    "30m": "30m",
    "1h": "1h",
    "2h": "2h",
    "4h": "4h",
    "6h": "6h",
    "12h": "12h",
    "1d": "1D",
    "1w": "1W",
    "1M": "1M",
})

BINGX_HAS = MappingProxyType({
    "spot": True,
    "margin": True,
    "swap": True,
    "future": False,
    "option": None,
    "fetchMarkets": True,
    "fetchOHLCV": True,
})

BINGX_OPTIONS = {
    # only swap instruments have candles, so that is the useful default catalog
    "defaultType": "swap",
    "fetchMarkets": {"defaultType": None},
}

BINGX_API_KEY_HEADER = "X-BX-APIKEY"

SPOT_SYMBOLS_API: ApiSection = ("spot", "v1", "public")
SWAP_PUBLIC_API: ApiSection = ("swap", "v2", "public")


# ======================= raw market records =======================
@dataclass(frozen=True)
class MarketRecord:
    MARKET_TYPE: ClassVar[str] = ""

    symbol: str
    raw: Dict[str, Any] = field(compare=False, repr=False)
    price_precision: Optional[float] = None
    quantity_precision: Optional[float] = None
    min_qty: Optional[float] = None
    max_qty: Optional[float] = None
    min_notional: Optional[float] = None
    max_notional: Optional[float] = None
    trade_min_limit: Optional[float] = None
    status: Optional[str] = None

    @classmethod
    def decode(cls, raw: Any) -> "MarketRecord":
        if not isinstance(raw, dict):
            raise ValueError(f"market record must be an object, got {type(raw).__name__}")
        symbol = safe_string(raw, "symbol")
        if symbol is None:
            raise ValueError("market record has no symbol")
        return cls(
            symbol=symbol,
            raw=raw,
            price_precision=safe_number(raw, "pricePrecision"),
            quantity_precision=safe_number(raw, "quantityPrecision"),
            min_qty=safe_number(raw, "minQty"),
            max_qty=safe_number(raw, "maxQty"),
            min_notional=safe_number(raw, "minNotional"),
            max_notional=safe_number(raw, "maxNotional"),
            trade_min_limit=safe_number(raw, "tradeMinLimit"),
            status=safe_string(raw, "status"),
        )


class SpotMarketRecord(MarketRecord):
    """Spot shape: carries a price precision."""

    MARKET_TYPE = "spot"

    @classmethod
    def decode(cls, raw: Any) -> "MarketRecord":
        record = super().decode(raw)
        if record.price_precision is None:
            raise ValueError("spot record requires pricePrecision")
        return record


class SwapMarketRecord(MarketRecord):
    MARKET_TYPE = "swap"


MARKET_RECORD_VARIANTS: Tuple[Type[MarketRecord], ...] = (SpotMarketRecord, SwapMarketRecord)


def decode_market_record(raw: Any) -> MarketRecord:
    """Decode ``raw`` into the first record variant whose shape it satisfies."""
    errors = []
    for variant in MARKET_RECORD_VARIANTS:
        try:
            return variant.decode(raw)
        except ValueError as e:
            errors.append(f"{variant.MARKET_TYPE}: {e}")
    raise BadResponse(f"bingx unrecognized market record ({'; '.join(errors)})")


class BingxAdapter(ExchangeAdapter):
    id = BINGX_DESCRIPTION["id"]
    name = BINGX_DESCRIPTION["name"]

    def __init__(self, config: Optional[ExchangeConfig] = None):
        super().__init__(config)
        self.hostname = self.config.hostname or BINGX_DESCRIPTION["hostname"]
        self.urls = BINGX_URLS
        self.endpoints = BINGX_ENDPOINTS
        self.timeframes = BINGX_TIMEFRAME_MAP
        self.has = BINGX_HAS
        # no venue codes are mapped until verified against the api docs
        self.exceptions = {"exact": {}, "broad": {}}
        self.options = {k: (dict(v) if isinstance(v, dict) else v) for k, v in BINGX_OPTIONS.items()}
        self._apply_config()

    def describe(self) -> Dict[str, Any]:
        return dict(BINGX_DESCRIPTION, hostname=self.hostname, has=dict(self.has))

    # ------------------------------------------------------------------
    # Markets
    # ------------------------------------------------------------------
    def fetch_spot_markets(self, params: Optional[Dict[str, Any]] = None) -> List[UnifiedMarket]:
        response = self.call_endpoint(SPOT_SYMBOLS_API, "GET", "common/symbols", params)
        #
        #    {
        #        "code": 0,
        #        "msg": "",
        #        "data": {
        #            "symbols": [
        #                {
        #                    "symbol": "GEAR-USDT",
        #                    "minQty": 735,
        #                    "maxQty": 2941177,
        #                    "minNotional": 5,
        #                    "maxNotional": 20000,
        #                    "status": 1,
        #                    "tickSize": 0.000001,
        #                    "stepSize": 1
        #                }
        #            ]
        #        }
        #    }
        #
        data = safe_value(response, "data")
        markets = safe_value(data, "symbols", [])
        return [self.parse_market(market) for market in markets]

    def fetch_swap_markets(self, params: Optional[Dict[str, Any]] = None) -> List[UnifiedMarket]:
        response = self.call_endpoint(SWAP_PUBLIC_API, "GET", "quote/contracts", params)
        #
        #    {
        #        "code": 0,
        #        "msg": "",
        #        "data": [
        #            {
        #                "contractId": "100",
        #                "symbol": "BTC-USDT",
        #                "size": "0.0001",
        #                "quantityPrecision": 4,
        #                "pricePrecision": 1,
        #                "feeRate": 0.0005,
        #                "tradeMinLimit": 1,
        #                "maxLongLeverage": 150,
        #                "maxShortLeverage": 150,
        #                "currency": "USDT",
        #                "asset": "BTC",
        #                "status": 1
        #            }
        #        ]
        #    }
        #
        markets = safe_value(response, "data", [])
        return [self.parse_market(market) for market in markets]

    def fetch_markets(self, params: Optional[Dict[str, Any]] = None) -> List[UnifiedMarket]:
        """
        Retrieve all markets of one market type.

        The type comes from ``params["type"]`` or the configured default.

        Raises:
            NotSupported: If the resolved type is neither spot nor swap.
        """
        market_type, params = self.handle_market_type_and_params("fetchMarkets", None, params)
        if market_type == "spot":
            return self.fetch_spot_markets(params)
        elif market_type == "swap":
            return self.fetch_swap_markets(params)
        raise NotSupported(f"{self.id} fetchMarkets does not support market type {market_type!r}")

    def parse_market(self, market: Dict[str, Any]) -> UnifiedMarket:
        record = decode_market_record(market)
        market_id = record.symbol
        symbol_parts = market_id.split("-")
        base_id = symbol_parts[0]
        quote_id = symbol_parts[1]
        base = self.safe_currency_code(base_id)
        quote = self.safe_currency_code(quote_id)
        market_type = record.MARKET_TYPE
        spot = market_type == "spot"
        swap = market_type == "swap"
        return UnifiedMarket(
            id=market_id,
            symbol=f"{base}/{quote}",
            base=base,
            quote=quote,
            baseId=base_id,
            quoteId=quote_id,
            type=market_type,
            spot=spot,
            swap=swap,
            contract=swap,
            linear=swap,
            inverse=False,
            margin=False,
            future=False,
            option=False,
            active=record.status == "1",
            contractSize=record.trade_min_limit,
            precision=MarketPrecision(
                amount=record.quantity_precision,
                price=record.price_precision,
            ),
            limits=MarketLimits(
                leverage=MinMax(),
                amount=MinMax(record.min_qty, record.max_qty),
                price=MinMax(),
                cost=MinMax(record.min_notional, record.max_notional),
            ),
            info=market,
        )

    # ------------------------------------------------------------------
    # Candles
    # ------------------------------------------------------------------
    def fetch_ohlcv(self, symbol: str, timeframe: str = "1m",
                    since: Optional[int] = None, limit: Optional[int] = None,
                    params: Optional[Dict[str, Any]] = None) -> List[CandleType]:
        """
        Fetch candles for a swap market.

        Args:
            symbol: Unified symbol (``"BTC/USDT"``) or exchange id (``"BTC-USDT"``).
            timeframe: Unified timeframe; unknown tokens are sent as-is.
            since: Earliest candle timestamp in ms.
            limit: Maximum number of candles.
            params: Extra query parameters for the klines endpoint.

        Returns:
            List[CandleType]: ``(timestamp, open, high, low, close, volume)`` rows.

        Raises:
            NotSupported: If ``symbol`` is a spot market.
        """
        self.load_markets()
        market = self.market(symbol)
        if market.spot:
            raise NotSupported(f"{self.id} fetchOHLCV is not supported for spot markets")
        request: Dict[str, Any] = {
            "symbol": market.id,
            "interval": self.timeframes.get(timeframe, timeframe),
        }
        if since is not None:
            request["startTime"] = since
        if limit is not None:
            request["limit"] = limit
        request.update(params or {})
        response = self.call_endpoint(SWAP_PUBLIC_API, "GET", "quote/klines", request)
        #
        #    {
        #        "code": 0,
        #        "msg": "",
        #        "data": [
        #            {
        #                "open": "19394.4",
        #                "close": "19379.0",
        #                "high": "19394.4",
        #                "low": "19368.3",
        #                "volume": "167.44",
        #                "time": 1666584000000
        #            }
        #        ]
        #    }
        #
        ohlcvs = safe_value(response, "data", [])
        if isinstance(ohlcvs, dict):
            # latest-candle responses come back as a bare object
            ohlcvs = [ohlcvs] if ohlcvs else []
        return self.parse_ohlcvs(ohlcvs, market, timeframe, since, limit)

    def parse_ohlcv(self, ohlcv: Any, market: Optional[UnifiedMarket] = None) -> CandleType:
        return (
            safe_integer(ohlcv, "time"),
            safe_number(ohlcv, "open"),
            safe_number(ohlcv, "high"),
            safe_number(ohlcv, "low"),
            safe_number(ohlcv, "close"),
            safe_number(ohlcv, "volume"),
        )

    # ------------------------------------------------------------------
    # Requests
    # ------------------------------------------------------------------
    def implode_hostname(self, url: str) -> str:
        return url.replace("{hostname}", self.hostname)

    def sign(self, path: str, api: ApiSection = SPOT_SYMBOLS_API, method: str = "GET",
             params: Optional[Dict[str, Any]] = None,
             headers: Optional[Dict[str, str]] = None,
             body: Optional[str] = None) -> SignedRequest:
        market_type, version, access = api
        if access == "private":
            self.check_required_credentials()
        params = params or {}
        url = self.implode_hostname(self.urls["api"][market_type])
        url += "/" + version + "/"
        query = keysort(omit(params, extract_params(path)))
        url += implode_params(path, params)
        if query:
            url += "?" + urlencode(query)
        if access == "private":
            # static key header, the venue does not expect a request signature here
            headers = dict(headers or {})
            headers[BINGX_API_KEY_HEADER] = self.api_key
        return SignedRequest(url=url, method=method, body=body, headers=headers)

    def handle_errors(self, http_code, reason, url, method, headers, body,
                      response, request_headers, request_body) -> None:
        if not isinstance(response, dict):
            return None
        error_code = safe_string(response, "code")
        if error_code is None or error_code == "0":
            return None
        message = safe_string(response, "msg")
        feedback = f"{self.id} {body}"
        self.logger.debug(f"Upstream error {error_code}: {message}")
        self.throw_exactly_matched_exception(self.exceptions["exact"], error_code, feedback)
        self.throw_exactly_matched_exception(self.exceptions["exact"], message, feedback)
        self.throw_broadly_matched_exception(self.exceptions["broad"], message, feedback)
        raise ExchangeError(feedback)

