import matplotlib

matplotlib.use("Agg")

import matplotlib.pyplot as plt  # noqa: E402

from statarb.backtest import run_backtest  # noqa: E402
from statarb.plotting import plot_cum_profit, plot_spread_bands  # noqa: E402


def test_plots_render(basket):
    res = run_backtest(basket[["AAA", "BBB"]], 40, 1.0, 10, 10_000)

    fig = plot_spread_bands(res, k=1.0)
    assert len(fig.axes[0].lines) >= 3
    plt.close(fig)

    fig = plot_cum_profit(res)
    assert len(fig.axes[0].lines) == 3
    plt.close(fig)
