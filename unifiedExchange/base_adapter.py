from abc import ABC, abstractmethod
from types import MappingProxyType
from typing import Any, Dict, List, Mapping, Optional, Sequence, Tuple, Type
import json
import logging
import time

import requests

from .config import ExchangeConfig
from .dto import CandleType, SignedRequest, UnifiedMarket
from .errors import (
    AuthenticationError,
    BadRequest,
    BadResponse,
    BadSymbol,
    ExchangeError,
    ExchangeNotAvailable,
    NetworkError,
    NotSupported,
    PermissionDenied,
    RateLimitExceeded,
    RequestTimeout,
)

ApiSection = Tuple[str, str, str]  # (market type, api version, access level)

HTTP_EXCEPTIONS: Mapping[str, Type[Exception]] = MappingProxyType({
    "400": BadRequest,
    "401": AuthenticationError,
    "403": PermissionDenied,
    "404": BadRequest,
    "418": RateLimitExceeded,
    "429": RateLimitExceeded,
    "500": ExchangeNotAvailable,
    "502": ExchangeNotAvailable,
    "503": ExchangeNotAvailable,
    "504": RequestTimeout,
})

COMMON_CURRENCIES: Mapping[str, str] = MappingProxyType({
    "XBT": "BTC",
    "BCC": "BCH",
    "BCHSV": "BSV",
})


class ExchangeAdapter(ABC):
    """
    Venue-agnostic part of an exchange adapter.

    Subclasses provide the description tables (urls, endpoints, timeframes,
    error tables) in ``__init__`` and implement the parsers and ``sign``.
    Everything here is shared: transport, market cache, market-type
    resolution and candle slicing.
    """

    id: str = ""
    name: str = ""

    def __init__(self, config: Optional[ExchangeConfig] = None):
        self.config = config or ExchangeConfig()
        self.session = requests.Session()
        self.logger = logging.getLogger(self.__class__.__name__)

        self.api_key = self.config.api_key
        self.secret = self.config.secret
        self.timeout = self.config.timeout
        if self.config.max_retries < 0:
            raise ValueError(f"max_retries must be >= 0, got {self.config.max_retries}")
        self.max_retries = self.config.max_retries

        self.urls: Mapping[str, Any] = MappingProxyType({})
        self.endpoints: Mapping[str, Any] = MappingProxyType({})
        self.timeframes: Mapping[str, str] = MappingProxyType({})
        self.has: Mapping[str, Optional[bool]] = MappingProxyType({})
        self.required_credentials: Mapping[str, bool] = MappingProxyType({
            "api_key": True,
            "secret": True,
        })
        self.http_exceptions = HTTP_EXCEPTIONS
        self.exceptions: Dict[str, Dict[str, Type[Exception]]] = {"exact": {}, "broad": {}}
        self.common_currencies: Dict[str, str] = dict(COMMON_CURRENCIES)
        self.options: Dict[str, Any] = {}

        self.markets: Optional[Dict[str, UnifiedMarket]] = None
        self.markets_by_id: Optional[Dict[str, UnifiedMarket]] = None

    def _apply_config(self) -> None:
        """Layer user configuration on top of the description tables."""
        for kind in ("exact", "broad"):
            table = dict(self.exceptions.get(kind, {}))
            table.update(self.config.exceptions.get(kind, {}))
            self.exceptions[kind] = table
        self.common_currencies.update(self.config.common_currencies)
        self.options.update(self.config.options)
        if self.config.default_type:
            self.options["defaultType"] = self.config.default_type

    # ------------------------------------------------------------------
    # Transport
    # ------------------------------------------------------------------
    def fetch(self, url: str, method: str = "GET",
              headers: Optional[Dict[str, str]] = None,
              body: Optional[str] = None) -> Any:
        """
        发送HTTP请求（带重连机制）

        Connection errors and timeouts are retried with exponential backoff;
        every other failure is classified and raised immediately.

        Returns:
            Any: 解析后的JSON响应
        """
        response = None
        for attempt in range(self.max_retries + 1):
            try:
                self.logger.debug(f"发送请求 (尝试 {attempt + 1}/{self.max_retries + 1}): {method} {url}")
                response = self.session.request(
                    method,
                    url,
                    headers=headers,
                    data=body,
                    timeout=self.timeout,
                )
                break
            except (requests.exceptions.Timeout, requests.exceptions.ConnectionError) as e:
                self.logger.warning(f"请求失败 (尝试 {attempt + 1}/{self.max_retries + 1}): {e}")
                if attempt < self.max_retries:
                    time.sleep(2 ** attempt)  # 指数退避
                    continue
                if isinstance(e, requests.exceptions.Timeout):
                    raise RequestTimeout(f"{self.id} {method} {url} timed out") from e
                raise NetworkError(f"{self.id} {method} {url} failed: {e}") from e
            except requests.exceptions.RequestException as e:
                raise NetworkError(f"{self.id} {method} {url} failed: {e}") from e

        body_text = response.text
        parsed = self._parse_json(body_text)
        self.handle_errors(
            response.status_code,
            response.reason,
            url,
            method,
            response.headers,
            body_text,
            parsed,
            headers,
            body,
        )
        self.handle_http_status_code(response.status_code, response.reason, url, method, body_text)
        if parsed is None:
            self.logger.error(f"JSON解析失败: {body_text[:200]!r}")
            raise BadResponse(f"{self.id} {method} {url} returned a non-JSON body")
        self.logger.debug(f"请求成功: {url}")
        return parsed

    @staticmethod
    def _parse_json(text: str) -> Any:
        if not text:
            return None
        try:
            return json.loads(text)
        except json.JSONDecodeError:
            return None

    def handle_http_status_code(self, http_code: int, reason: str, url: str,
                                method: str, body: str) -> None:
        if http_code < 400:
            return
        error_class = self.http_exceptions.get(str(http_code), ExchangeError)
        raise error_class(f"{self.id} {method} {url} {http_code} {reason} {body}")

    def handle_errors(self, http_code, reason, url, method, headers, body,
                      response, request_headers, request_body) -> None:
        """Venue-specific error classification. The default treats every payload as a success."""
        return None

    def throw_exactly_matched_exception(self, exact: Mapping[str, Type[Exception]],
                                        key: Optional[str], message: str) -> None:
        if key is not None and key in exact:
            raise exact[key](message)

    def throw_broadly_matched_exception(self, broad: Mapping[str, Type[Exception]],
                                        text: Optional[str], message: str) -> None:
        if not text:
            return
        for fragment, error_class in broad.items():
            if fragment in text:
                raise error_class(message)

    # ------------------------------------------------------------------
    # Requests
    # ------------------------------------------------------------------
    @abstractmethod
    def sign(self, path: str, api: ApiSection, method: str = "GET",
             params: Optional[Dict[str, Any]] = None,
             headers: Optional[Dict[str, str]] = None,
             body: Optional[str] = None) -> SignedRequest:
        ...

    def request(self, path: str, api: ApiSection, method: str = "GET",
                params: Optional[Dict[str, Any]] = None,
                headers: Optional[Dict[str, str]] = None,
                body: Optional[str] = None) -> Any:
        signed = self.sign(path, api, method, params or {}, headers, body)
        return self.fetch(signed.url, signed.method, signed.headers, signed.body)

    def call_endpoint(self, api: ApiSection, method: str, path: str,
                      params: Optional[Dict[str, Any]] = None) -> Any:
        """
        Call any endpoint listed in the adapter's endpoint table.

        Raises:
            NotSupported: If ``path`` is not declared for ``api``/``method``.
        """
        market_type, version, access = api
        declared = (
            self.endpoints.get(market_type, {})
            .get(version, {})
            .get(access, {})
            .get(method.lower(), {})
        )
        if path not in declared:
            raise NotSupported(f"{self.id} has no {method.upper()} endpoint {market_type}/{version}/{access}/{path}")
        return self.request(path, api, method.upper(), params)

    def check_required_credentials(self) -> None:
        for credential, required in self.required_credentials.items():
            if required and not getattr(self, credential, None):
                raise AuthenticationError(f'{self.id} requires "{credential}" credential')

    # ------------------------------------------------------------------
    # Markets
    # ------------------------------------------------------------------
    @abstractmethod
    def fetch_markets(self, params: Optional[Dict[str, Any]] = None) -> List[UnifiedMarket]:
        ...

    @abstractmethod
    def parse_market(self, market: Dict[str, Any]) -> UnifiedMarket:
        ...

    def load_markets(self, reload: bool = False,
                     params: Optional[Dict[str, Any]] = None) -> Dict[str, UnifiedMarket]:
        if self.markets is not None and not reload:
            return self.markets
        markets = self.fetch_markets(params or {})
        self.set_markets(markets)
        self.logger.debug(f"Loaded {len(self.markets)} markets")
        return self.markets

    def set_markets(self, markets: Sequence[UnifiedMarket]) -> None:
        self.markets = {market.symbol: market for market in markets}
        self.markets_by_id = {market.id: market for market in markets}

    def market(self, symbol: str) -> UnifiedMarket:
        if self.markets is None:
            raise ExchangeError(f"{self.id} markets not loaded")
        if symbol in self.markets:
            return self.markets[symbol]
        if self.markets_by_id and symbol in self.markets_by_id:
            return self.markets_by_id[symbol]
        raise BadSymbol(f"{self.id} does not have market symbol {symbol}")

    def handle_market_type_and_params(self, method_name: str,
                                      market: Optional[UnifiedMarket] = None,
                                      params: Optional[Dict[str, Any]] = None
                                      ) -> Tuple[Optional[str], Dict[str, Any]]:
        """
        Resolve the market type for ``method_name``.

        Precedence: ``params["type"]`` / ``params["defaultType"]``, then the
        market's own type, then ``options[method_name]["defaultType"]``, then
        ``options["defaultType"]``. The selector keys are removed from the
        returned params.
        """
        params = dict(params or {})
        method_options = self.options.get(method_name)
        default_type = self.options.get("defaultType")
        if isinstance(method_options, dict) and method_options.get("defaultType"):
            default_type = method_options["defaultType"]
        if market is not None:
            default_type = market.type
        market_type = params.pop("type", None) or params.pop("defaultType", None) or default_type
        params.pop("type", None)
        params.pop("defaultType", None)
        return market_type, params

    def safe_currency_code(self, currency_id: Optional[str]) -> Optional[str]:
        if currency_id is None:
            return None
        code = currency_id.upper()
        return self.common_currencies.get(code, code)

    # ------------------------------------------------------------------
    # Candles
    # ------------------------------------------------------------------
    @abstractmethod
    def fetch_ohlcv(self, symbol: str, timeframe: str = "1m",
                    since: Optional[int] = None, limit: Optional[int] = None,
                    params: Optional[Dict[str, Any]] = None) -> List[CandleType]:
        ...

    @abstractmethod
    def parse_ohlcv(self, ohlcv: Any, market: Optional[UnifiedMarket] = None) -> CandleType:
        ...

    def parse_ohlcvs(self, ohlcvs: Sequence[Any], market: Optional[UnifiedMarket] = None,
                     timeframe: str = "1m", since: Optional[int] = None,
                     limit: Optional[int] = None) -> List[CandleType]:
        candles = [self.parse_ohlcv(item, market) for item in ohlcvs]
        # rows without a timestamp cannot be ordered or placed in a window
        candles = [c for c in candles if c[0] is not None]
        candles.sort(key=lambda x: x[0])
        return self.filter_by_since_limit(candles, since, limit)

    @staticmethod
    def filter_by_since_limit(candles: List[CandleType], since: Optional[int] = None,
                              limit: Optional[int] = None) -> List[CandleType]:
        if since is not None:
            candles = [c for c in candles if c[0] >= since]
        if limit is not None:
            if limit <= 0:
                return []
            # without a start point the most recent candles are the useful ones
            candles = candles[:limit] if since is not None else candles[-limit:]
        return candles
