from unittest.mock import Mock

import pandas as pd
import pytest

import getSingleData
from unifiedExchange import BingxAdapter, DataClient, get_exchange_adapter
from unifiedExchange.config import ExchangeConfig
from unifiedExchange.dto import OHLCVRequestParams

from conftest import KLINES_RESPONSE, SPOT_SYMBOLS_RESPONSE, SWAP_CONTRACTS_RESPONSE, fetched_urls


# ------------------------------------------------------------
# config
# ------------------------------------------------------------

def test_config_from_env(monkeypatch):
    monkeypatch.setenv("BINGX_API_KEY", "env-key")
    monkeypatch.setenv("BINGX_SECRET", "env-secret")
    monkeypatch.setenv("BINGX_DEFAULT_TYPE", "spot")
    monkeypatch.setenv("BINGX_TIMEOUT", "2.5")
    monkeypatch.setenv("BINGX_MAX_RETRIES", "5")

    config = ExchangeConfig.from_env("bingx", dotenv=False)

    assert config.api_key == "env-key"
    assert config.secret == "env-secret"
    assert config.default_type == "spot"
    assert config.timeout == 2.5
    assert config.max_retries == 5


def test_config_from_env_defaults(monkeypatch):
    for name in ("API_KEY", "SECRET", "HOSTNAME", "DEFAULT_TYPE", "TIMEOUT", "MAX_RETRIES"):
        monkeypatch.delenv(f"BINGX_{name}", raising=False)

    config = ExchangeConfig.from_env("bingx", dotenv=False)

    assert config == ExchangeConfig()


def test_config_rejects_bad_number(monkeypatch):
    monkeypatch.setenv("BINGX_MAX_RETRIES", "many")

    with pytest.raises(ValueError):
        ExchangeConfig.from_env("bingx", dotenv=False)


def test_config_rejects_negative_retries(monkeypatch):
    monkeypatch.setenv("BINGX_MAX_RETRIES", "-1")

    with pytest.raises(ValueError):
        ExchangeConfig.from_env("bingx", dotenv=False)


def test_default_type_reaches_adapter_options():
    adapter = BingxAdapter(ExchangeConfig(default_type="spot", options={"recvWindow": 5000}))

    assert adapter.options["defaultType"] == "spot"
    assert adapter.options["recvWindow"] == 5000
    assert BingxAdapter(ExchangeConfig()).options["defaultType"] == "swap"


# ------------------------------------------------------------
# factory / DataClient
# ------------------------------------------------------------

def test_get_exchange_adapter_is_case_insensitive():
    assert isinstance(get_exchange_adapter("BingX", ExchangeConfig()), BingxAdapter)


def test_get_exchange_adapter_unknown():
    with pytest.raises(ValueError):
        get_exchange_adapter("nowhere", ExchangeConfig())


@pytest.fixture
def client():
    client = DataClient({"bingx": ExchangeConfig()})
    adapter = client._get_adapter("bingx")
    adapter.fetch = Mock()
    return client, adapter


def test_data_client_caches_adapter(client):
    client, adapter = client

    assert client._get_adapter("BINGX") is adapter


def test_data_client_unknown_exchange(client):
    client, _ = client

    with pytest.raises(ValueError):
        client.fetch_markets("nowhere")


def test_data_client_forwards_calls(client):
    client, adapter = client
    adapter.fetch.side_effect = [SWAP_CONTRACTS_RESPONSE, KLINES_RESPONSE]

    markets = client.load_markets("bingx")
    candles = client.fetch_ohlcv("bingx", OHLCVRequestParams(symbol="BTC/USDT", timeframe="1h", limit=1))

    assert "BTC/USDT" in markets
    assert len(candles) == 1
    assert "interval=1h&limit=1&symbol=BTC-USDT" in fetched_urls(adapter.fetch)[1]


# ------------------------------------------------------------
# command line
# ------------------------------------------------------------

def test_fetch_single_writes_csv_files(tmp_path, monkeypatch):
    adapter = BingxAdapter(ExchangeConfig())
    adapter.fetch = Mock(side_effect=[SWAP_CONTRACTS_RESPONSE, KLINES_RESPONSE])
    monkeypatch.setattr(getSingleData, "get_exchange_adapter", lambda name: adapter)

    written = getSingleData.fetch_single(
        exchange="bingx",
        symbol="BTC/USDT",
        market_type=None,
        timeframe="5m",
        since=None,
        limit=None,
        output_dir=tmp_path,
    )

    assert [p.name for p in written] == ["bingx_swap_markets.csv", "bingx_BTC-USDT_5m_ohlcv.csv"]
    markets = pd.read_csv(written[0])
    assert list(markets["symbol"]) == ["BTC/USDT", "ETH/USDT"]
    candles = pd.read_csv(written[1])
    assert list(candles["timestamp"]) == [1666583700000, 1666584000000]


def test_fetch_single_names_markets_file_after_resolved_type(tmp_path, monkeypatch):
    adapter = BingxAdapter(ExchangeConfig(options={"fetchMarkets": {"defaultType": "spot"}}))
    adapter.fetch = Mock(return_value=SPOT_SYMBOLS_RESPONSE)
    monkeypatch.setattr(getSingleData, "get_exchange_adapter", lambda name: adapter)

    written = getSingleData.fetch_single(
        exchange="bingx",
        symbol=None,
        market_type=None,
        timeframe="1m",
        since=None,
        limit=None,
        output_dir=tmp_path,
    )

    assert [p.name for p in written] == ["bingx_spot_markets.csv"]
    assert "common/symbols" in fetched_urls(adapter.fetch)[0]


def test_main_turns_errors_into_exit(tmp_path, monkeypatch):
    adapter = BingxAdapter(ExchangeConfig())
    adapter.fetch = Mock()
    monkeypatch.setattr(getSingleData, "get_exchange_adapter", lambda name: adapter)

    with pytest.raises(SystemExit) as exc_info:
        getSingleData.main(["--market-type", "future", "--output-dir", str(tmp_path)])

    assert "future" in str(exc_info.value)
    adapter.fetch.assert_not_called()


def test_to_utc_millis():
    assert getSingleData.to_utc_millis("2022-10-24_03:45:00") == 1666583100000

    with pytest.raises(ValueError):
        getSingleData.to_utc_millis("2022-10-24")
