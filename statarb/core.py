from __future__ import annotations
from dataclasses import dataclass, field
from itertools import combinations
from typing import List, Optional, Tuple
import logging

import numpy as np
import pandas as pd
from statsmodels.tsa.stattools import adfuller, coint

from .errors import InsufficientData, InvalidPrice, MisalignedInput, RegressionError, SingularWindow
from .trades import Side, Trade, settle

logger = logging.getLogger(__name__)

_EPS = np.finfo(float).eps
# residuals this close to zero, relative to the terms that produced them, are rounding noise
_ROUNDING = 64 * _EPS

# ---------- small utils ----------

def drop_rounding(resid, *terms):
    """Zero every residual no larger than the rounding error of ``sum(|terms|)``.

    Works elementwise on arrays and Series; NaN stays NaN.
    """
    scale = sum(abs(t) for t in terms)
    noise = abs(resid) <= _ROUNDING * scale
    if isinstance(resid, pd.Series):
        return resid.mask(noise, 0.0)
    return np.where(noise, 0.0, resid)

def to_log(px: pd.Series) -> pd.Series:
    """Natural log of prices; non-positive or missing prices become NaN."""
    return np.log(px.where(px > 0))

# ---------- price pair ----------

@dataclass
class PricePair:
    price1: pd.Series
    price2: pd.Series
    name: str = "pair"

    def __post_init__(self):
        if not self.price1.index.equals(self.price2.index):
            raise MisalignedInput(
                f"{self.name}: price indices differ "
                f"({len(self.price1)} vs {len(self.price2)} rows)"
            )
        idx = self.price1.index
        if not idx.is_unique or not idx.is_monotonic_increasing:
            raise MisalignedInput(f"{self.name}: index must be unique and sorted")
        self.price1 = self.price1.astype(float)
        self.price2 = self.price2.astype(float)

    @classmethod
    def from_frame(cls, df: pd.DataFrame, name: Optional[str] = None) -> "PricePair":
        if df.shape[1] != 2:
            raise ValueError(f"expected two price columns, got {list(df.columns)}")
        c1, c2 = df.columns
        return cls(df[c1], df[c2], name or f"{c1}_vs_{c2}")

    @property
    def index(self) -> pd.Index:
        return self.price1.index

    def log_prices(self) -> Tuple[pd.Series, pd.Series]:
        return to_log(self.price1), to_log(self.price2)

# ---------- rolling hedge ratio ----------

class RollingRegressor:
    """
    Trailing-window OLS of log(asset1) on log(asset2) with an intercept.

    Row ``i`` of the output holds the fit over ``[i - window_size + 1, i]``;
    rows before the first full window, windows containing NaN and windows that
    cannot be fitted are left NaN.
    """

    def __init__(self, window_size: int):
        self.window_size = self._check_window(window_size)

    @staticmethod
    def _check_window(window_size: int) -> int:
        if window_size < 3:
            raise ValueError(f"window_size must be >= 3, got {window_size}")
        return int(window_size)

    @staticmethod
    def fit_window(y: np.ndarray, x: np.ndarray) -> Tuple[float, float, float]:
        """Return ``(alpha, beta, stderr)`` of ``y = alpha + beta * x``."""
        n = len(y)
        if n < 3:
            raise InsufficientData(f"need at least 3 observations, got {n}")
        x_mean, y_mean = x.mean(), y.mean()
        dx = x - x_mean
        sxx = float(dx @ dx)
        if sxx <= _EPS * n * max(1.0, x_mean * x_mean):
            raise SingularWindow("regressor has no variance over the window")
        beta = float(dx @ (y - y_mean)) / sxx
        alpha = float(y_mean - beta * x_mean)
        fitted = beta * x
        # an exact fit leaves only rounding noise, which must not read as dispersion
        resid = drop_rounding(y - alpha - fitted, y, alpha, fitted)
        stderr = float(np.sqrt((resid @ resid) / (n - 2)))
        return alpha, beta, stderr

    def compute(self, series1_log: pd.Series, series2_log: pd.Series,
                window_size: Optional[int] = None) -> pd.DataFrame:
        y = series1_log.to_numpy(dtype=float)
        x = series2_log.to_numpy(dtype=float)
        w = self.window_size if window_size is None else self._check_window(window_size)
        n = len(y)
        out = np.full((n, 3), np.nan)

        if n < w:
            logger.warning("only %d observations for a %d-period window; no regression", n, w)

        skipped = 0
        for end in range(w - 1, n):
            ys = y[end - w + 1:end + 1]
            xs = x[end - w + 1:end + 1]
            if np.isnan(ys).any() or np.isnan(xs).any():
                continue
            try:
                out[end] = self.fit_window(ys, xs)
            except RegressionError as e:
                skipped += 1
                logger.debug("window ending at %s skipped: %s", series1_log.index[end], e)
        if skipped:
            logger.info("%d of %d windows could not be fitted", skipped, max(n - w + 1, 0))

        return pd.DataFrame(out, index=series1_log.index, columns=["alpha", "beta", "stderr"])

# ---------- spread ----------

class SpreadBuilder:
    @staticmethod
    def build(log_price1: pd.Series, log_price2: pd.Series, regression: pd.DataFrame) -> pd.Series:
        # NaN anywhere in the inputs stays NaN in the spread
        fitted = regression["beta"] * log_price2
        spread = log_price1 - regression["alpha"] - fitted
        spread = drop_rounding(spread, log_price1, regression["alpha"], fitted)
        return spread.rename("spread")

# ---------- signals ----------

@dataclass
class ScannerState:
    cursor: int = 0                 # next index to examine while scanning for entries
    trades: List[Trade] = field(default_factory=list)
    discarded: int = 0


class SignalScanner:
    """
    Turns the spread into non-overlapping trades.

    Scanning at ``i``: enter short when ``spread > k * stderr``, long when
    ``spread < -k * stderr``. The exit is the first later index where the spread
    is back at or across zero, capped at ``max_hold`` periods. A trade whose exit
    falls past the data or whose prices cannot be settled is dropped and the scan
    resumes at ``i + 1``; a recorded trade resumes the scan after its exit.
    """

    REQUIRED = ("price1", "price2", "beta", "spread", "stderr")

    def __init__(self, k: float, max_hold: int, investment: float):
        if not k > 0:
            raise ValueError(f"k must be positive, got {k}")
        if max_hold < 1:
            raise ValueError(f"max_hold must be >= 1, got {max_hold}")
        self.k = float(k)
        self.max_hold = int(max_hold)
        self.investment = float(investment)

    def entry_side(self, spread: float, stderr: float) -> Optional[Side]:
        if np.isnan(spread) or np.isnan(stderr):
            return None
        for side in (Side.SHORT_SPREAD, Side.LONG_SPREAD):
            if -int(side) * spread > self.k * stderr:
                return side
        return None

    def find_exit(self, spread: np.ndarray, entry: int, side: Side) -> int:
        d = int(side)
        exit_ = entry + 1
        while exit_ < len(spread) and -d * spread[exit_] > 0 and exit_ - entry < self.max_hold:
            exit_ += 1
        return exit_

    def scan(self, frame: pd.DataFrame) -> List[Trade]:
        missing = [c for c in self.REQUIRED if c not in frame.columns]
        if missing:
            raise KeyError(f"scan frame is missing columns {missing}")

        cols = {c: frame[c].to_numpy(dtype=float) for c in self.REQUIRED}
        valid = ~(np.isnan(cols["spread"]) | np.isnan(cols["stderr"]))
        state = ScannerState(cursor=int(np.argmax(valid)) if valid.any() else len(frame))

        while state.cursor < len(frame):
            self._step(state, cols, frame.index)

        if state.discarded:
            logger.debug("%d candidate trades discarded", state.discarded)
        return state.trades

    def _step(self, state: ScannerState, cols: dict, index: pd.Index) -> None:
        i = state.cursor
        spread = cols["spread"]
        side = self.entry_side(spread[i], cols["stderr"][i])
        if side is None:
            state.cursor = i + 1
            return

        exit_ = self.find_exit(spread, i, side)
        trade = Trade(
            entry_index=i,
            exit_index=exit_,
            side=side,
            hedge_ratio_at_entry=float(cols["beta"][i]),
            entry_time=index[i],
            spread_at_entry=float(spread[i]),
        )
        if exit_ >= len(spread):
            logger.debug("entry at %s dropped: no exit before end of data", index[i])
            state.discarded += 1
            state.cursor = i + 1
            return

        trade.exit_time = index[exit_]
        p1, p2 = cols["price1"], cols["price2"]
        try:
            settle(trade, p1[i], p1[exit_], p2[i], p2[exit_], self.investment)
        except InvalidPrice as e:
            logger.debug("entry at %s dropped: %s", index[i], e)
            state.discarded += 1
            state.cursor = i + 1
            return

        state.trades.append(trade)
        state.cursor = exit_ + 1

# ---------- pair selection ----------

class PairAnalyzer:
    """Engle-Granger screening used to pick which pairs are backtested."""

    def __init__(self, pvalue_threshold: float = 0.05, min_obs: int = 20):
        self.pvalue_threshold = pvalue_threshold
        self.min_obs = min_obs

    def coint_pvalue(self, y: pd.Series, x: pd.Series) -> float:
        df = pd.concat({"y": to_log(y), "x": to_log(x)}, axis=1).dropna()
        if len(df) < self.min_obs:
            return 1.0
        try:
            return float(coint(df["y"].values, df["x"].values)[1])
        except (ValueError, np.linalg.LinAlgError) as e:
            logger.debug("cointegration test failed: %s", e)
            return 1.0

    def adf_pvalue(self, x: pd.Series) -> float:
        x = x.dropna()
        if len(x) < self.min_obs:
            return 1.0
        try:
            return float(adfuller(x.values, autolag="AIC")[1])
        except (ValueError, np.linalg.LinAlgError) as e:
            logger.debug("ADF test failed: %s", e)
            return 1.0

    def is_cointegrated(self, y: pd.Series, x: pd.Series) -> bool:
        return self.coint_pvalue(y, x) < self.pvalue_threshold

    def screen(self, prices: pd.DataFrame) -> pd.DataFrame:
        rows = []
        for a, b in combinations(prices.columns, 2):
            p = self.coint_pvalue(prices[a], prices[b])
            rows.append({"asset1": a, "asset2": b, "pvalue": p, "cointegrated": p < self.pvalue_threshold})
        out = pd.DataFrame(rows, columns=["asset1", "asset2", "pvalue", "cointegrated"])
        return out.sort_values("pvalue", kind="stable").reset_index(drop=True)
