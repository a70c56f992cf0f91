from __future__ import annotations

from abc import ABC, abstractmethod
from typing import List, Optional
import functools
import logging

import pandas as pd
import yfinance as yf

logger = logging.getLogger(__name__)


# ======================================================================
# Base interface
# ======================================================================

class DataLoader(ABC):
    """
    Vendor-agnostic data interface.

    Implementors must return a DataFrame indexed by date/datetime
    with a single column named 'close'.
    """

    @abstractmethod
    def load_daily(self, ticker: str) -> pd.DataFrame:
        raise NotImplementedError


# ======================================================================
# Simple CSV loader (used by tests and as a fallback)
# ======================================================================

class DemoCSVLoader(DataLoader):
    """
    Simple CSV loader for local testing.

    Filenames expected like: ./data/KO_daily.csv

    CSV format:
        date,close
        2024-10-01,61.12
        ...
    """

    def __init__(self, root: str = "./data"):
        self.root = root

    def _read(self, path: str) -> pd.DataFrame:
        df = pd.read_csv(path, parse_dates=[0])
        df = df.set_index(df.columns[0]).sort_index()

        if "close" not in df.columns:
            df.columns = [c.lower() for c in df.columns]

        if "close" not in df.columns:
            raise ValueError(f"CSV {path} must contain a 'close' column (or convertible)")

        return df[["close"]]

    def load_daily(self, ticker: str) -> pd.DataFrame:
        return self._read(f"{self.root}/{ticker}_daily.csv")


# ======================================================================
# Yahoo Finance loader
# ======================================================================

class YahooLoader(DataLoader):
    """
    Live data loader using Yahoo Finance via yfinance.

    Returns DataFrames indexed by date with a single column: 'close'.
    """

    def __init__(self, period: str = "10y") -> None:
        self.period = period

    def _download(self, symbol: str) -> pd.DataFrame:
        df = yf.download(
            symbol,
            period=self.period,
            auto_adjust=True,   # already adjusted, so we can safely use 'Close'
            progress=False,
        )

        if not isinstance(df, pd.DataFrame) or df.empty:
            raise ValueError(f"YahooLoader: no data returned for {symbol}")

        col = "Adj Close" if "Adj Close" in df.columns else "Close"
        sub = df[col]

        # newer yfinance returns a (field, ticker) column MultiIndex
        if isinstance(sub, pd.DataFrame):
            series = sub.iloc[:, 0].dropna()
        else:
            series = sub.dropna()

        if series.empty:
            raise ValueError(f"YahooLoader: all close values NaN for {symbol}")

        out = pd.DataFrame({"close": series})
        out.index = pd.to_datetime(out.index).tz_localize(None)
        return out.sort_index()

    @functools.lru_cache(maxsize=64)
    def _download_cached(self, symbol: str) -> pd.DataFrame:
        return self._download(symbol)

    def load_daily(self, ticker: str) -> pd.DataFrame:
        return self._download_cached(ticker)


# ======================================================================
# Preparation helpers
# ======================================================================

def fill_calendar(df: pd.DataFrame) -> pd.DataFrame:
    """Reindex to every calendar day and carry the last close forward.

    Leading gaps (before an asset's first quote) stay NaN.
    """
    if df.empty:
        return df
    days = pd.date_range(df.index.min(), df.index.max(), freq="D")
    return df.reindex(days).ffill()


def collapse(df: pd.DataFrame, rule: Optional[str] = "W-FRI") -> pd.DataFrame:
    """Resample to a coarser period keeping the last observation of each bucket."""
    if rule is None or df.empty:
        return df
    return df.resample(rule).last()


def load_basket(loader: DataLoader, tickers: List[str], frequency: Optional[str] = "W-FRI") -> pd.DataFrame:
    """Load closes for ``tickers`` into one aligned, gap-filled frame (a column per ticker)."""
    closes = {}
    for ticker in tickers:
        closes[ticker] = loader.load_daily(ticker)["close"]
        logger.debug("loaded %d rows for %s", len(closes[ticker]), ticker)
    df = pd.concat(closes, axis=1).sort_index()
    return collapse(fill_calendar(df), frequency)
