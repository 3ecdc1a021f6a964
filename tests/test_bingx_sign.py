from unittest.mock import Mock

import pytest

from unifiedExchange.config import ExchangeConfig
from unifiedExchange.errors import AuthenticationError
from unifiedExchange.exchange.bingx import BingxAdapter

SPOT_PUBLIC = ("spot", "v1", "public")
SWAP_PUBLIC = ("swap", "v2", "public")
CONTRACT_PRIVATE = ("contract", "v1", "private")


def test_public_query_is_key_sorted(adapter):
    signed = adapter.sign("market/depth", SPOT_PUBLIC, "GET", {"symbol": "BTC-USDT", "limit": 5})

    assert signed.url == "https://open-api.bingx.com/openApi/spot/v1/market/depth?limit=5&symbol=BTC-USDT"
    assert signed.method == "GET"
    assert signed.headers is None
    assert signed.body is None


def test_public_without_params_has_no_query(adapter):
    signed = adapter.sign("server/time", SWAP_PUBLIC)

    assert signed.url == "https://open-api.bingx.com/openApi/swap/v2/server/time"


def test_path_placeholders_consume_params(adapter):
    params = {"symbol": "BTC-USDT", "limit": 5}

    signed = adapter.sign("quote/{symbol}/depth", SWAP_PUBLIC, "GET", params)

    assert signed.url == "https://open-api.bingx.com/openApi/swap/v2/quote/BTC-USDT/depth?limit=5"
    assert params == {"symbol": "BTC-USDT", "limit": 5}


def test_boolean_params_are_lowercase(adapter):
    signed = adapter.sign("market/trades", SPOT_PUBLIC, "GET", {"recent": True, "limit": 10})

    assert signed.url.endswith("?limit=10&recent=true")


def test_hostname_from_config():
    adapter = BingxAdapter(ExchangeConfig(hostname="bingx.io"))

    signed = adapter.sign("common/symbols", SPOT_PUBLIC)

    assert signed.url == "https://open-api.bingx.io/openApi/spot/v1/common/symbols"


def test_private_adds_api_key_header_only(private_adapter):
    signed = private_adapter.sign("balance", CONTRACT_PRIVATE, "GET", {"recvWindow": 5000})

    assert signed.url == "https://open-api.bingx.com/openApi/contract/v1/balance?recvWindow=5000"
    assert signed.headers == {"X-BX-APIKEY": "test-key"}
    assert "signature" not in signed.url
    assert "timestamp" not in signed.url


def test_private_keeps_caller_headers(private_adapter):
    signed = private_adapter.sign("balance", CONTRACT_PRIVATE, headers={"Accept": "application/json"})

    assert signed.headers == {"Accept": "application/json", "X-BX-APIKEY": "test-key"}


@pytest.mark.parametrize(
    "config",
    [
        ExchangeConfig(),
        ExchangeConfig(api_key="test-key"),
        ExchangeConfig(secret="test-secret"),
    ],
)
def test_private_without_credentials_fails_before_url(config, monkeypatch):
    adapter = BingxAdapter(config)
    implode_hostname = Mock()
    monkeypatch.setattr(adapter, "implode_hostname", implode_hostname)

    with pytest.raises(AuthenticationError):
        adapter.sign("balance", CONTRACT_PRIVATE)
    implode_hostname.assert_not_called()


def test_sign_is_deterministic(adapter):
    params = {"b": 2, "a": 1}

    assert adapter.sign("market/depth", SPOT_PUBLIC, params=params) == adapter.sign(
        "market/depth", SPOT_PUBLIC, params=dict(reversed(list(params.items())))
    )
