from unittest.mock import Mock

import pytest

from unifiedExchange.config import ExchangeConfig
from unifiedExchange.exchange.bingx import BingxAdapter


SPOT_RECORD = {
    "symbol": "GEAR-USDT",
    "minQty": 735,
    "maxQty": 2941177,
    "minNotional": 5,
    "maxNotional": 20000,
    "status": 1,
    "pricePrecision": 6,
    "quantityPrecision": 0,
    "tickSize": 0.000001,
    "stepSize": 1,
}

SWAP_RECORD = {
    "contractId": "100",
    "symbol": "BTC-USDT",
    "size": "0.0001",
    "quantityPrecision": 4,
    "feeRate": 0.0005,
    "tradeMinLimit": 1,
    "maxLongLeverage": 150,
    "maxShortLeverage": 150,
    "currency": "USDT",
    "asset": "BTC",
    "status": 1,
}

SPOT_SYMBOLS_RESPONSE = {
    "code": 0,
    "msg": "",
    "debugMsg": "",
    "data": {"symbols": [SPOT_RECORD]},
}

SWAP_CONTRACTS_RESPONSE = {
    "code": 0,
    "msg": "",
    "data": [
        SWAP_RECORD,
        dict(SWAP_RECORD, contractId="101", symbol="ETH-USDT", status=0),
    ],
}

KLINES_RESPONSE = {
    "code": 0,
    "msg": "",
    "data": [
        {
            "open": "19394.4",
            "close": "19379.0",
            "high": "19394.4",
            "low": "19368.3",
            "volume": "167.44",
            "time": 1666584000000,
        },
        {
            "open": "19396.8",
            "close": "19394.4",
            "high": "19397.5",
            "low": "19385.7",
            "volume": "110.05",
            "time": 1666583700000,
        },
    ],
}


@pytest.fixture
def adapter():
    return BingxAdapter(ExchangeConfig())


@pytest.fixture
def private_adapter():
    return BingxAdapter(ExchangeConfig(api_key="test-key", secret="test-secret"))


@pytest.fixture
def fake_fetch(adapter, monkeypatch):
    """Replace the transport so tests can script responses and inspect urls."""
    fetch = Mock()
    monkeypatch.setattr(adapter, "fetch", fetch)
    return fetch


def fetched_urls(fetch):
    return [call.args[0] for call in fetch.call_args_list]
