"""
Streamlit UI for the pairs-trading backtester.

Reuses the statarb core/backtest modules so the dashboard and the CLI run
exactly the same rolling-regression and trade-scanning pipeline.
"""

import io
import os
from typing import Dict, Optional

import pandas as pd
import streamlit as st

from statarb.backtest import kpis
from statarb.config import BASKET, PAIR_CONFIG, PARAMS
from statarb.data import DataLoader
from statarb.explorer import Explorer
from statarb.plotting import plot_cum_profit, plot_spread_bands

# ====================== STREAMLIT DATA LOADER ======================

class StreamlitLoader(DataLoader):
    """DataLoader wrapper that prefers uploaded CSVs and falls back to ./data.

    The class caches results via ``st.cache_data`` to avoid repeated parsing
    when the user tweaks parameters.
    """

    def __init__(self, root: str = "./data", uploads: Dict[str, Optional[bytes]] = None):
        self.root = root
        self.uploads = uploads or {}

    @st.cache_data(show_spinner=False)
    def _read_cached(_self, key: str, raw: bytes | None, path: str | None) -> pd.DataFrame:
        if raw is not None:
            df = pd.read_csv(io.BytesIO(raw), parse_dates=[0])
        else:
            df = pd.read_csv(path, parse_dates=[0])
        df = df.set_index(df.columns[0]).sort_index()
        if "close" not in df.columns:
            df.columns = [c.lower() for c in df.columns]
        if "close" not in df.columns:
            raise ValueError("Uploaded CSV must contain a 'close' column")
        return df[["close"]]

    def load_daily(self, ticker: str) -> pd.DataFrame:
        raw = self.uploads.get(ticker)
        path = os.path.join(self.root, f"{ticker}_daily.csv")
        return self._read_cached(ticker, raw, path)

# ====================== STREAMLIT UI ======================

st.set_page_config(page_title="Pairs Trading Backtest", layout="wide")
st.title("Statistical Arbitrage: Pairs Trading Backtest")
st.caption("Rolling hedge ratio, residual spread, and time-capped mean-reversion trades.")

with st.sidebar:
    st.header("Controls")

    pair_names = [pc["name"] for pc in PAIR_CONFIG]
    selected_pair_name = st.selectbox("Pair", options=pair_names, index=0)
    pair_conf = next(pc for pc in PAIR_CONFIG if pc["name"] == selected_pair_name)

    st.subheader("Strategy Parameters")
    window_size = st.slider("Regression window (periods)", 10, 156, int(PARAMS["window_size"]))
    k = st.slider("Entry threshold k (x stderr)", 0.5, 4.0, float(PARAMS["k"]), 0.1)
    max_hold = st.slider("Max holding (periods)", 1, 52, int(PARAMS["max_hold"]))
    investment = st.number_input("Investment per trade", 1_000, 10_000_000, int(PARAMS["investment"]), 1_000)
    frequency = st.selectbox("Frequency", options=["W-FRI", "D"], index=0)
    use_coint_filter = st.checkbox("Require cointegration", value=bool(PARAMS["use_coint_filter"]))

    st.subheader("Upload (optional)")
    st.caption("Provide custom CSVs to override ./data files.")
    up1 = st.file_uploader(f"{pair_conf['asset1']} (daily CSV)", type=["csv"], key=f"a1_{pair_conf['name']}")
    up2 = st.file_uploader(f"{pair_conf['asset2']} (daily CSV)", type=["csv"], key=f"a2_{pair_conf['name']}")

params = {
    **PARAMS,
    "window_size": window_size,
    "k": k,
    "max_hold": max_hold,
    "investment": investment,
    "frequency": None if frequency == "D" else frequency,
    "use_coint_filter": use_coint_filter,
}

uploads_map = {
    pair_conf["asset1"]: up1.getvalue() if up1 else None,
    pair_conf["asset2"]: up2.getvalue() if up2 else None,
}
loader = StreamlitLoader(root="./data", uploads=uploads_map)
explorer = Explorer(loader, params)

try:
    res = explorer.run_pair(pair_conf)
except (OSError, ValueError) as e:
    st.error(f"Could not backtest {pair_conf['name']}: {e}")
    st.stop()

if res.get("skipped"):
    st.warning(f"{pair_conf['name']} skipped ({res['reason']}). Untick 'Require cointegration' to force it.")
    st.stop()

result = res["result"]
metrics = res["metrics"]
trade_df = res["trades"]

# ====================== PLOTS ======================

left, right = st.columns([2, 1])

with left:
    st.subheader("Spread & Bands")
    st.pyplot(plot_spread_bands(result, k, title=f"{result.name} spread"), clear_figure=True)
    st.download_button(
        "Download spread CSV",
        data=pd.concat([result.regression, result.spread, result.positions], axis=1).to_csv().encode(),
        file_name=f"{result.name}_spread.csv",
        mime="text/csv",
    )

    st.subheader("Cumulative Profit vs Buy & Hold")
    st.pyplot(plot_cum_profit(result), clear_figure=True)
    if not result.trades:
        st.info("No trades were generated with current parameters.")

with right:
    st.subheader("Metrics")
    c1, c2 = st.columns(2)
    c1.metric("Trades", metrics.get("trades", 0))
    c2.metric("Win Rate", f"{metrics.get('win_rate', 0.0)*100:.1f}%")
    c1.metric("Mean profit", f"{metrics.get('mean', float('nan')):,.2f}")
    c2.metric("Std profit", f"{metrics.get('std', float('nan')):,.2f}")
    c1.metric("Best trade", f"{metrics.get('max', float('nan')):,.2f}")
    c2.metric("Worst trade", f"{metrics.get('min', float('nan')):,.2f}")
    st.metric("Total profit", f"{metrics.get('total_profit', 0.0):,.2f}")
    st.metric("Max Drawdown", f"{metrics.get('max_drawdown', 0.0):,.2f}")
    st.metric("Time in market", f"{metrics.get('time_in_market_pct', 0.0)*100:.1f}%")

    st.divider()
    st.subheader("Stationarity")
    st.metric("Engle-Granger p-value", f"{metrics.get('coint_pvalue', 1.0):.3f}")
    st.metric("ADF p-value (spread)", f"{metrics.get('adf_pvalue', 1.0):.3f}")

st.divider()
st.subheader("Trade Log")
if not trade_df.empty:
    st.dataframe(trade_df)
    st.download_button(
        "Download trades CSV",
        data=trade_df.to_csv().encode(),
        file_name=f"{result.name}_trades.csv",
        mime="text/csv",
    )
else:
    st.write("No trades yet.")

st.divider()
st.subheader("Basket cointegration screen")
st.caption("Engle-Granger p-values for every pair in the configured basket.")

try:
    basket_prices = explorer.load(BASKET)
except (OSError, ValueError) as e:
    st.write(f"Unable to screen basket – check that all CSVs exist in ./data ({e}).")
else:
    screened = explorer.screen(BASKET, basket_prices)
    st.dataframe(screened)

    coint_rows = screened[screened["cointegrated"]]
    confs = [
        {"name": f"{row.asset1}_vs_{row.asset2}", "asset1": row.asset1, "asset2": row.asset2}
        for row in coint_rows.itertuples()
    ]
    # run_all keeps one broken pair from taking down the page
    basket_results = explorer.run_all(confs, basket_prices)

    summary_rows = []
    failed = []
    for conf, row in zip(confs, coint_rows.itertuples()):
        out = basket_results[conf["name"]]
        if "error" in out:
            failed.append(f"{conf['name']}: {out['error']}")
            continue
        if "result" not in out:
            continue
        m = kpis(out["result"])
        summary_rows.append({
            "pair": conf["name"],
            "pvalue": row.pvalue,
            "trades": m["trades"],
            "win_rate": m["win_rate"],
            "total_profit": m["total_profit"],
        })
    if failed:
        st.warning("Some pairs failed:\n\n" + "\n\n".join(failed))
    if summary_rows:
        st.subheader("Multi-pair summary")
        st.dataframe(pd.DataFrame(summary_rows).set_index("pair"))
