from .config import PARAMS, PAIR_CONFIG, BASKET, validate_params
from .errors import StatArbError, MisalignedInput, InvalidPrice, RegressionError, SingularWindow, InsufficientData
from .data import DataLoader, DemoCSVLoader, YahooLoader, fill_calendar, collapse, load_basket
from .trades import Side, Trade, position_size, settle, build_positions
from .core import PricePair, RollingRegressor, SpreadBuilder, SignalScanner, PairAnalyzer
from .backtest import Backtester, BacktestResult, run_backtest, summary_stats, summarize_trades, kpis
from .explorer import Explorer

__all__ = [
    "PARAMS", "PAIR_CONFIG", "BASKET", "validate_params",
    "StatArbError", "MisalignedInput", "InvalidPrice", "RegressionError", "SingularWindow", "InsufficientData",
    "DataLoader", "DemoCSVLoader", "YahooLoader", "fill_calendar", "collapse", "load_basket",
    "Side", "Trade", "position_size", "settle", "build_positions",
    "PricePair", "RollingRegressor", "SpreadBuilder", "SignalScanner", "PairAnalyzer",
    "Backtester", "BacktestResult", "run_backtest", "summary_stats", "summarize_trades", "kpis",
    "Explorer",
]
