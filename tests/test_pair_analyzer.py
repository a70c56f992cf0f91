import numpy as np
import pandas as pd
import pytest

from statarb.core import PairAnalyzer


def test_screen_ranks_cointegrated_pair_first(basket):
    analyzer = PairAnalyzer(pvalue_threshold=0.05)
    screened = analyzer.screen(basket)

    assert len(screened) == 3
    assert screened["pvalue"].is_monotonic_increasing
    top = screened.iloc[0]
    assert (top["asset1"], top["asset2"]) == ("AAA", "BBB")
    assert bool(top["cointegrated"])
    assert analyzer.is_cointegrated(basket["AAA"], basket["BBB"])


def test_short_history_is_not_cointegrated(basket):
    analyzer = PairAnalyzer()
    assert analyzer.coint_pvalue(basket["AAA"].iloc[:10], basket["BBB"].iloc[:10]) == 1.0
    assert not analyzer.is_cointegrated(basket["AAA"].iloc[:10], basket["BBB"].iloc[:10])


def test_adf_pvalue_of_stationary_and_trending_series():
    rng = np.random.default_rng(0)
    noise = pd.Series(rng.normal(0, 1, 300))
    analyzer = PairAnalyzer()

    assert analyzer.adf_pvalue(noise) < 0.05
    assert 0 <= analyzer.adf_pvalue(noise.cumsum()) <= 1
    assert analyzer.adf_pvalue(noise.iloc[:5]) == 1.0
