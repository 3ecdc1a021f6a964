from dataclasses import dataclass, field
from typing import Any, Dict, Optional, Tuple

# ======================= 请求 DTOs =======================
@dataclass
class OHLCVRequestParams:
    symbol: str               # 统一symbol "BTC/USDT" 或交易所id "BTC-USDT"
    timeframe: str = "1m"     # "1m", "5m", "1h", "4h", "1d", ...
    since: Optional[int] = None
    limit: Optional[int] = None
    params: Dict[str, Any] = field(default_factory=dict)

# ======================= 响应 DTOs =======================
@dataclass(frozen=True)
class MinMax:
    min: Optional[float] = None
    max: Optional[float] = None


@dataclass(frozen=True)
class MarketPrecision:
    # tick-size mode: decimal places as reported upstream
    amount: Optional[float] = None
    price: Optional[float] = None
    base: Optional[float] = None
    quote: Optional[float] = None


@dataclass(frozen=True)
class MarketLimits:
    leverage: MinMax = MinMax()
    amount: MinMax = MinMax()
    price: MinMax = MinMax()
    cost: MinMax = MinMax()


@dataclass(frozen=True)
class UnifiedMarket:
    id: str                   # 交易所原生symbol, "BTC-USDT"
    symbol: str               # 统一symbol, "BTC/USDT"
    base: str
    quote: str
    baseId: str
    quoteId: str
    type: str                 # "spot" or "swap"
    spot: bool
    swap: bool
    contract: bool
    linear: bool
    active: bool
    precision: MarketPrecision
    limits: MarketLimits
    info: Dict[str, Any] = field(compare=False, repr=False)
    settle: Optional[str] = None
    settleId: Optional[str] = None
    margin: bool = False
    future: bool = False
    option: bool = False
    inverse: bool = False
    taker: Optional[float] = None
    maker: Optional[float] = None
    contractSize: Optional[float] = None
    expiry: Optional[int] = None
    expiryDatetime: Optional[str] = None
    strike: Optional[float] = None
    optionType: Optional[str] = None

    def __getitem__(self, key: str) -> Any:
        # dict-style access, e.g. market["id"]
        return getattr(self, key)


@dataclass(frozen=True)
class SignedRequest:
    url: str
    method: str = "GET"
    body: Optional[str] = None
    headers: Optional[Dict[str, str]] = None


CandleType = Tuple[int, float, float, float, float, float]  # [timestamp, open, high, low, close, volume]
