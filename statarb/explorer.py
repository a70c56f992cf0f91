from __future__ import annotations
from concurrent.futures import ThreadPoolExecutor
from typing import Dict, List, Optional, Tuple
import logging

import pandas as pd

from .backtest import Backtester, kpis
from .core import PairAnalyzer, PricePair
from .data import DataLoader, load_basket

logger = logging.getLogger(__name__)


class Explorer:
    """Loads pairs, gates them on cointegration and backtests the survivors."""

    def __init__(self, loader: DataLoader, params: Dict):
        self.loader = loader
        self.params = params
        self.analyzer = PairAnalyzer(params.get("coint_pvalue", 0.05))

    def load(self, tickers: List[str]) -> pd.DataFrame:
        return load_basket(self.loader, tickers, self.params.get("frequency"))

    def run_pair(self, pair_conf: Dict, prices: Optional[pd.DataFrame] = None) -> Dict:
        a1, a2 = pair_conf["asset1"], pair_conf["asset2"]
        name = pair_conf.get("name", f"{a1}_vs_{a2}")

        # 1) Load data
        if prices is None:
            prices = self.load([a1, a2])
        pair = PricePair(prices[a1], prices[a2], name)

        # 2) Cointegration gate
        pval = self.analyzer.coint_pvalue(pair.price1, pair.price2)
        if self.params.get("use_coint_filter", False) and pval >= self.analyzer.pvalue_threshold:
            logger.info("%s skipped: coint p=%.3f", name, pval)
            return {"pair": name, "skipped": True, "reason": f"coint p={pval:.3f}"}

        # 3) Backtest
        result = Backtester(self.params).run(pair)

        # 4) Analytics
        metrics = kpis(result)
        metrics.update({
            "coint_pvalue": pval,
            "adf_pvalue": self.analyzer.adf_pvalue(result.spread),
        })
        return {
            "pair": name,
            "result": result,
            "trades": result.trade_frame(),
            "metrics": metrics,
        }

    @staticmethod
    def _name(pair_conf: Dict) -> str:
        return pair_conf.get("name", f"{pair_conf['asset1']}_vs_{pair_conf['asset2']}")

    def _run_one(self, pair_conf: Dict, prices: Optional[pd.DataFrame]) -> Tuple[str, Dict]:
        name = self._name(pair_conf)
        try:
            return name, self.run_pair(pair_conf, prices)
        except Exception as e:
            logger.warning("%s failed: %s", name, e)
            return name, {"error": str(e)}

    def run_all(self, pairs: List[Dict], prices: Optional[pd.DataFrame] = None,
                max_workers: Optional[int] = None) -> Dict[str, Dict]:
        """Backtest every pair; with ``max_workers`` the backtests run on a thread pool.

        Vendor downloads are not thread-safe, so prices are always loaded on the
        calling thread before any work is handed to the pool.
        """
        if not max_workers or max_workers <= 1:
            return dict(self._run_one(pc, prices) for pc in pairs)

        out: Dict[str, Dict] = {}
        jobs = []
        for pc in pairs:
            try:
                frame = prices if prices is not None else self.load([pc["asset1"], pc["asset2"]])
            except Exception as e:
                logger.warning("%s failed to load: %s", self._name(pc), e)
                out[self._name(pc)] = {"error": str(e)}
                continue
            jobs.append((pc, frame))

        with ThreadPoolExecutor(max_workers=max_workers) as pool:
            futures = [pool.submit(self._run_one, pc, frame) for pc, frame in jobs]
            out.update(f.result() for f in futures)
        return out

    def screen(self, tickers: List[str], prices: Optional[pd.DataFrame] = None) -> pd.DataFrame:
        if prices is None:
            prices = self.load(tickers)
        return self.analyzer.screen(prices[tickers])

    def run_basket(self, tickers: List[str], max_workers: Optional[int] = None) -> Tuple[pd.DataFrame, Dict[str, Dict]]:
        prices = self.load(tickers)
        screened = self.screen(tickers, prices)
        pairs = [
            {"name": f"{row.asset1}_vs_{row.asset2}", "asset1": row.asset1, "asset2": row.asset2}
            for row in screened.itertuples()
            if row.cointegrated
        ]
        logger.info("%d of %d pairs cointegrated", len(pairs), len(screened))
        return screened, self.run_all(pairs, prices, max_workers)
