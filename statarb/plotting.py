from __future__ import annotations
import matplotlib.pyplot as plt
from matplotlib.figure import Figure

from .backtest import BacktestResult


def plot_spread_bands(result: BacktestResult, k: float, title: str = "Spread & Bands") -> Figure:
    fig, ax = plt.subplots(figsize=(10, 4))
    stderr = result.regression["stderr"]
    ax.plot(result.spread.index, result.spread, label="spread")
    ax.plot(stderr.index, k * stderr, linestyle="--", label=f"+{k:g}·stderr")
    ax.plot(stderr.index, -k * stderr, linestyle="--", label=f"-{k:g}·stderr")
    ax.axhline(0.0, color="grey", linewidth=0.8)
    for t in result.trades:
        ax.axvspan(t.entry_time, t.exit_time, alpha=0.15,
                   color="red" if t.side < 0 else "green")
    ax.legend(loc="best")
    ax.set_title(title)
    ax.grid(True, alpha=0.3)
    fig.tight_layout()
    return fig


def plot_cum_profit(result: BacktestResult, title: str = "Cumulative Profit") -> Figure:
    fig, ax = plt.subplots(figsize=(10, 3))
    ax.plot(result.cum_profit.index, result.cum_profit, label="strategy")
    for col in result.benchmarks.columns:
        ax.plot(result.benchmarks.index, result.benchmarks[col], alpha=0.7, label=f"buy & hold {col}")
    ax.legend(loc="best")
    ax.set_title(title)
    ax.grid(True, alpha=0.3)
    fig.tight_layout()
    return fig
