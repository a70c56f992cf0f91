from __future__ import annotations
from dataclasses import dataclass, field
from typing import Dict, List, Union
import logging

import numpy as np
import pandas as pd

from .config import validate_params
from .core import PricePair, RollingRegressor, SignalScanner, SpreadBuilder
from .trades import Trade, build_positions

logger = logging.getLogger(__name__)


@dataclass
class BacktestResult:
    name: str
    regression: pd.DataFrame      # alpha, beta, stderr
    spread: pd.Series
    trades: List[Trade]
    positions: pd.Series          # -1 / 0 / +1
    profit: pd.Series             # realized profit booked at each trade's exit
    cum_profit: pd.Series
    summary: dict
    benchmarks: pd.DataFrame      # buy-and-hold profit per asset
    params: dict = field(default_factory=dict)

    def trade_frame(self) -> pd.DataFrame:
        return summarize_trades(self.trades, self.params.get("investment", 1.0))


class Backtester:
    def __init__(self, params: Dict):
        self.p = validate_params(params)

    def run(self, prices: Union[PricePair, pd.DataFrame]) -> BacktestResult:
        pair = prices if isinstance(prices, PricePair) else PricePair.from_frame(prices)
        investment = float(self.p["investment"])
        logger.info(
            "backtesting %s: %d periods, window=%s k=%s max_hold=%s",
            pair.name, len(pair.index), self.p["window_size"], self.p["k"], self.p["max_hold"],
        )

        log1, log2 = pair.log_prices()
        regression = RollingRegressor(self.p["window_size"]).compute(log1, log2)
        spread = SpreadBuilder.build(log1, log2, regression)

        frame = pd.DataFrame({
            "price1": pair.price1,
            "price2": pair.price2,
            "beta": regression["beta"],
            "spread": spread,
            "stderr": regression["stderr"],
        })
        scanner = SignalScanner(self.p["k"], self.p["max_hold"], investment)
        trades = scanner.scan(frame)

        profit = profit_series(trades, pair.index)
        benchmarks = pd.DataFrame({
            "asset1": buy_and_hold(pair.price1, investment),
            "asset2": buy_and_hold(pair.price2, investment),
        })
        result = BacktestResult(
            name=pair.name,
            regression=regression,
            spread=spread,
            trades=trades,
            positions=build_positions(trades, pair.index),
            profit=profit,
            cum_profit=profit.cumsum().rename("cum_profit"),
            summary=summary_stats(trades),
            benchmarks=benchmarks,
            params=dict(self.p),
        )
        logger.info("%s: %d trades, total profit %.2f", pair.name, len(trades), result.summary["total_profit"])
        return result


def run_backtest(prices: Union[PricePair, pd.DataFrame], window_size: int, k: float,
                 max_hold: int, investment: float) -> BacktestResult:
    """Backtest one pair. Pure function of its inputs."""
    params = {"window_size": window_size, "k": k, "max_hold": max_hold, "investment": investment}
    return Backtester(params).run(prices)

# ---------- Analytics helpers ----------

def profit_series(trades: List[Trade], index: pd.Index) -> pd.Series:
    profit = np.zeros(len(index))
    for t in trades:
        profit[t.exit_index] += t.profit
    return pd.Series(profit, index=index, name="profit")


def buy_and_hold(price: pd.Series, investment: float) -> pd.Series:
    """Profit of putting ``investment`` into the asset at the first period and holding."""
    out = pd.Series(np.nan, index=price.index, name=price.name, dtype=float)
    if price.empty:
        return out
    first = float(price.iloc[0])
    if np.isnan(first) or first <= 0:
        return out
    shares = investment / first
    return (shares * (price - first)).rename(price.name)


def summary_stats(trades: List[Trade]) -> dict:
    profits = pd.Series([t.profit for t in trades], dtype=float)
    realized = profits[profits != 0]
    base = {
        "trades": len(trades),
        "mean": float("nan"),
        "std": float("nan"),
        "min": float("nan"),
        "max": float("nan"),
        "win_rate": 0.0,
        "total_profit": float(profits.sum()),
        "max_drawdown": 0.0,
        "avg_hold_periods": 0.0,
    }
    if trades:
        base["avg_hold_periods"] = float(np.mean([t.holding_periods for t in trades]))
    if realized.empty:
        return base

    cum = profits.cumsum()
    dd = (cum.cummax().clip(lower=0.0) - cum).max()
    base.update({
        "mean": float(realized.mean()),
        "std": float(realized.std(ddof=1)),
        "min": float(realized.min()),
        "max": float(realized.max()),
        "win_rate": float((realized > 0).sum() / len(realized)),
        "max_drawdown": float(dd),
    })
    return base


def summarize_trades(trades: List[Trade], investment: float) -> pd.DataFrame:
    if not trades:
        return pd.DataFrame()
    rows = []
    for t in trades:
        row = dict(t.__dict__)
        row["side"] = t.side.name
        row["holding_periods"] = t.holding_periods
        rows.append(row)
    df = pd.DataFrame(rows)
    df["ret_bps"] = (df["profit"] / investment) * 10_000
    return df


def kpis(result: BacktestResult) -> dict:
    out = dict(result.summary)
    n = len(result.positions)
    out["time_in_market_pct"] = float((result.positions != 0).sum() / n) if n else 0.0
    for col in result.benchmarks.columns:
        bench = result.benchmarks[col].dropna()
        out[f"buy_hold_{col}"] = float(bench.iloc[-1]) if not bench.empty else float("nan")
    return out
