from __future__ import annotations
from dataclasses import dataclass
from enum import IntEnum
from typing import Any, List, Optional, Tuple
import math

import numpy as np
import pandas as pd

from .errors import InvalidPrice


class Side(IntEnum):
    """Spread position; the value is the sign written into the position series."""
    LONG_SPREAD = 1     # long asset1 / short asset2
    SHORT_SPREAD = -1   # short asset1 / long asset2


@dataclass
class Trade:
    entry_index: int
    exit_index: int
    side: Side
    hedge_ratio_at_entry: float
    entry_time: Any = None
    exit_time: Any = None
    spread_at_entry: float = float("nan")
    price1_entry: float = float("nan")
    price1_exit: float = float("nan")
    price2_entry: float = float("nan")
    price2_exit: float = float("nan")
    shares1: float = 0.0
    shares2: float = 0.0
    profit: float = 0.0         # realized at exit

    @property
    def holding_periods(self) -> int:
        return self.exit_index - self.entry_index


def _check_price(name: str, px: Optional[float]) -> float:
    if px is None:
        raise InvalidPrice(f"{name} is missing")
    px = float(px)
    if math.isnan(px) or px <= 0:
        raise InvalidPrice(f"{name} must be a positive number, got {px}")
    return px


def position_size(price1_entry: float, price2_entry: float, hedge_ratio: float, investment: float) -> Tuple[float, float]:
    """Shares of each leg: ``investment`` buys asset1, asset2 is scaled by the hedge ratio."""
    shares1 = investment / price1_entry
    shares2 = (shares1 * price1_entry * hedge_ratio) / price2_entry
    return shares1, shares2


def settle(trade: Trade, price1_entry: float, price1_exit: float,
           price2_entry: float, price2_exit: float, investment: float) -> float:
    """Realized profit of ``trade``; fills in the trade's prices, share counts and profit."""
    p1e = _check_price("price1_entry", price1_entry)
    p1x = _check_price("price1_exit", price1_exit)
    p2e = _check_price("price2_entry", price2_entry)
    p2x = _check_price("price2_exit", price2_exit)

    shares1, shares2 = position_size(p1e, p2e, trade.hedge_ratio_at_entry, investment)
    if trade.side == Side.SHORT_SPREAD:
        profit = shares1 * (p1e - p1x) + shares2 * (p2x - p2e)
    else:
        profit = shares1 * (p1x - p1e) + shares2 * (p2e - p2x)

    trade.price1_entry, trade.price1_exit = p1e, p1x
    trade.price2_entry, trade.price2_exit = p2e, p2x
    trade.shares1, trade.shares2 = shares1, shares2
    trade.profit = float(profit)
    return trade.profit


def build_positions(trades: List[Trade], index: pd.Index) -> pd.Series:
    """Mark ``[entry_index, exit_index)`` of every trade with its side; 0 elsewhere."""
    pos = np.zeros(len(index), dtype=int)
    for t in trades:
        pos[t.entry_index:t.exit_index] = int(t.side)
    return pd.Series(pos, index=index, name="position")
