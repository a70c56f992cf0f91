import numpy as np
import pandas as pd
import pytest

from statarb.data import DataLoader


def make_basket(n: int = 400, seed: int = 7) -> pd.DataFrame:
    """AAA and BBB share a stochastic trend (cointegrated); CCC walks on its own."""
    rng = np.random.default_rng(seed)
    idx = pd.bdate_range("2020-01-01", periods=n)

    log_b = np.log(50) + np.cumsum(rng.normal(0.0, 0.01, n))
    noise = np.zeros(n)
    for i in range(1, n):
        noise[i] = 0.8 * noise[i - 1] + rng.normal(0.0, 0.02)
    log_a = 0.3 + 1.2 * log_b + noise
    log_c = np.log(30) + np.cumsum(rng.normal(0.0, 0.02, n))

    return pd.DataFrame(
        {"AAA": np.exp(log_a), "BBB": np.exp(log_b), "CCC": np.exp(log_c)},
        index=idx,
    )


class FrameLoader(DataLoader):
    def __init__(self, frame: pd.DataFrame):
        self.frame = frame

    def load_daily(self, ticker: str) -> pd.DataFrame:
        return self.frame[[ticker]].rename(columns={ticker: "close"})


@pytest.fixture
def basket() -> pd.DataFrame:
    return make_basket()


@pytest.fixture
def loader(basket) -> FrameLoader:
    return FrameLoader(basket)
