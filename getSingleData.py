import argparse
import logging
import os
from dataclasses import asdict
from datetime import datetime, timezone
from pathlib import Path
from typing import List, Optional, Sequence

import pandas as pd

from unifiedExchange import get_exchange_adapter
from unifiedExchange.dto import CandleType, UnifiedMarket
from unifiedExchange.errors import BaseError

LOGGER = logging.getLogger(__name__)

OHLCV_COLUMNS: Sequence[str] = ("timestamp", "open", "high", "low", "close", "volume")
MARKET_COLUMNS: Sequence[str] = (
    "symbol", "id", "base", "quote", "type", "active", "contractSize",
    "precision_amount", "precision_price",
    "limits_amount_min", "limits_amount_max", "limits_cost_min", "limits_cost_max",
)


def parse_args(argv: Optional[Sequence[str]] = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Download the unified market catalog and candles for a single symbol.")
    parser.add_argument("--exchange", default="bingx", help="Exchange name (default: bingx)")
    parser.add_argument("--symbol", default=None, help="Unified symbol or exchange id, e.g. BTC/USDT or BTC-USDT. Omit to only download markets.")
    parser.add_argument("--market-type", "--market_type", dest="market_type", default=None, help="spot or swap (default: exchange default)")
    parser.add_argument("--timeframe", default="1m", help="Timeframe for OHLCV data (default: 1m)")
    parser.add_argument("--since", default=None, help="Start time in format YYYY-MM-DD_HH:MM:SS (UTC)")
    parser.add_argument("--limit", type=int, default=None, help="Maximum number of candles")
    parser.add_argument("--output-dir", "--output_dir", dest="output_dir", default=os.path.join(".", "data"), help="Output directory (default: ./data/)")
    parser.add_argument("--log-level", "--log_level", dest="log_level", default="INFO", help="Logging level (default: INFO)")
    return parser.parse_args(argv)


def to_utc_millis(dt_str: str) -> int:
    try:
        dt = datetime.strptime(dt_str, "%Y-%m-%d_%H:%M:%S")
    except ValueError:
        raise ValueError(f"Invalid time '{dt_str}', expected YYYY-MM-DD_HH:MM:SS")
    return int(dt.replace(tzinfo=timezone.utc).timestamp() * 1000)


def markets_to_frame(markets: List[UnifiedMarket]) -> pd.DataFrame:
    rows = []
    for market in markets:
        data = asdict(market)
        rows.append((
            market.symbol,
            market.id,
            market.base,
            market.quote,
            market.type,
            market.active,
            market.contractSize,
            data["precision"]["amount"],
            data["precision"]["price"],
            data["limits"]["amount"]["min"],
            data["limits"]["amount"]["max"],
            data["limits"]["cost"]["min"],
            data["limits"]["cost"]["max"],
        ))
    return pd.DataFrame(rows, columns=list(MARKET_COLUMNS))


def candles_to_frame(candles: List[CandleType]) -> pd.DataFrame:
    df = pd.DataFrame(candles, columns=list(OHLCV_COLUMNS))
    df["datetime"] = pd.to_datetime(df["timestamp"], unit="ms", utc=True)
    return df


def fetch_single(
    exchange: str,
    symbol: Optional[str],
    market_type: Optional[str],
    timeframe: str,
    since: Optional[int],
    limit: Optional[int],
    output_dir: Path,
) -> List[Path]:
    adapter = get_exchange_adapter(exchange)
    params = {"type": market_type} if market_type else {}
    resolved_type, _ = adapter.handle_market_type_and_params("fetchMarkets", None, params)
    markets = adapter.fetch_markets(params)
    adapter.set_markets(markets)

    output_dir.mkdir(parents=True, exist_ok=True)
    written: List[Path] = []

    markets_path = output_dir / f"{exchange}_{resolved_type}_markets.csv"
    markets_to_frame(markets).to_csv(markets_path, index=False)
    LOGGER.info("Saved %d markets to %s", len(markets), markets_path)
    written.append(markets_path)

    if symbol:
        candles = adapter.fetch_ohlcv(symbol, timeframe, since, limit)
        market_id = adapter.market(symbol).id
        candles_path = output_dir / f"{exchange}_{market_id}_{timeframe}_ohlcv.csv"
        candles_to_frame(candles).to_csv(candles_path, index=False)
        LOGGER.info("Saved %d candles to %s", len(candles), candles_path)
        written.append(candles_path)
    return written


def main(argv: Optional[Sequence[str]] = None) -> None:
    args = parse_args(argv)
    log_level = getattr(logging, str(args.log_level).upper(), logging.INFO)
    logging.basicConfig(level=log_level, format="%(asctime)s %(levelname)s %(message)s")

    try:
        fetch_single(
            exchange=args.exchange,
            symbol=args.symbol,
            market_type=args.market_type,
            timeframe=args.timeframe,
            since=to_utc_millis(args.since) if args.since else None,
            limit=args.limit,
            output_dir=Path(args.output_dir),
        )
    except (ValueError, BaseError) as exc:
        raise SystemExit(str(exc))


if __name__ == "__main__":
    main()
