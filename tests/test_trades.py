import numpy as np
import pandas as pd
import pytest

from statarb.errors import InvalidPrice
from statarb.trades import Side, Trade, build_positions, position_size, settle


def test_short_spread_settlement():
    trade = Trade(entry_index=0, exit_index=3, side=Side.SHORT_SPREAD, hedge_ratio_at_entry=0.5)
    profit = settle(trade, price1_entry=100, price1_exit=90, price2_entry=50, price2_exit=55, investment=1000)

    assert trade.shares1 == pytest.approx(10)
    assert trade.shares2 == pytest.approx(10)
    assert profit == pytest.approx(150)
    assert trade.profit == profit


def test_long_spread_settlement_mirrors_short():
    trade = Trade(entry_index=0, exit_index=3, side=Side.LONG_SPREAD, hedge_ratio_at_entry=0.5)
    profit = settle(trade, 100, 90, 50, 55, 1000)
    assert profit == pytest.approx(-150)


def test_position_size_scales_second_leg_by_hedge_ratio():
    shares1, shares2 = position_size(200.0, 40.0, 1.2, 10_000)
    assert shares1 == pytest.approx(50)
    assert shares2 == pytest.approx(50 * 200 * 1.2 / 40)


@pytest.mark.parametrize("bad", [None, np.nan, 0.0, -5.0])
def test_missing_or_non_positive_price_is_rejected(bad):
    trade = Trade(entry_index=0, exit_index=1, side=Side.LONG_SPREAD, hedge_ratio_at_entry=1.0)
    with pytest.raises(InvalidPrice):
        settle(trade, 100, bad, 50, 55, 1000)
    assert trade.profit == 0.0


def test_positions_mark_open_interval_only():
    idx = pd.date_range("2024-01-01", periods=8, freq="W-FRI")
    trades = [
        Trade(entry_index=1, exit_index=3, side=Side.SHORT_SPREAD, hedge_ratio_at_entry=1.0),
        Trade(entry_index=4, exit_index=6, side=Side.LONG_SPREAD, hedge_ratio_at_entry=1.0),
    ]
    pos = build_positions(trades, idx)

    assert pos.index.equals(idx)
    assert pos.tolist() == [0, -1, -1, 0, 1, 1, 0, 0]


def test_holding_periods():
    t = Trade(entry_index=4, exit_index=9, side=Side.LONG_SPREAD, hedge_ratio_at_entry=1.0)
    assert t.holding_periods == 5
