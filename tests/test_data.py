import pandas as pd
import pytest

from statarb.data import DemoCSVLoader, collapse, fill_calendar, load_basket


def test_csv_loader_normalises_close_column(tmp_path):
    (tmp_path / "KO_daily.csv").write_text("Date,Close\n2024-01-03,60.5\n2024-01-02,60.0\n")
    df = DemoCSVLoader(str(tmp_path)).load_daily("KO")

    assert list(df.columns) == ["close"]
    assert df.index.is_monotonic_increasing
    assert df["close"].tolist() == [60.0, 60.5]


def test_csv_loader_requires_close(tmp_path):
    (tmp_path / "KO_daily.csv").write_text("date,open\n2024-01-02,60.0\n")
    with pytest.raises(ValueError):
        DemoCSVLoader(str(tmp_path)).load_daily("KO")


def test_fill_calendar_carries_last_close_forward():
    idx = pd.to_datetime(["2024-01-01", "2024-01-03", "2024-01-06"])
    df = pd.DataFrame({"a": [1.0, 3.0, 6.0], "b": [None, 30.0, 60.0]}, index=idx)
    out = fill_calendar(df)

    assert len(out) == 6
    assert out["a"].tolist() == [1.0, 1.0, 3.0, 3.0, 3.0, 6.0]
    # nothing to carry before the first quote
    assert pd.isna(out["b"].iloc[0])
    assert pd.isna(out["b"].iloc[1])
    assert out["b"].iloc[2:].tolist() == [30.0, 30.0, 30.0, 60.0]


def test_collapse_keeps_last_observation_per_week():
    idx = pd.date_range("2024-01-01", "2024-01-14", freq="D")
    df = pd.DataFrame({"a": range(len(idx))}, index=idx, dtype=float)
    out = collapse(df, "W-FRI")

    assert out.index.tolist() == list(pd.to_datetime(["2024-01-05", "2024-01-12", "2024-01-19"]))
    assert out["a"].tolist() == [4.0, 11.0, 13.0]
    assert collapse(df, None) is df


def test_load_basket_aligns_tickers(basket, loader):
    out = load_basket(loader, ["AAA", "CCC"], frequency="W-FRI")

    assert list(out.columns) == ["AAA", "CCC"]
    assert out.index.freqstr == "W-FRI"
    assert out.notna().all().all()
    # Friday closes are untouched by the fill
    friday = out.index[3]
    assert out.loc[friday, "AAA"] == basket.loc[friday, "AAA"]
