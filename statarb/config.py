# Pairs to backtest (tickers are examples; adjust to your data/vendor)
PAIR_CONFIG = [
    {"name": "KO_vs_PEP", "asset1": "KO", "asset2": "PEP"},
    {"name": "XOM_vs_CVX", "asset1": "XOM", "asset2": "CVX"},
]

# Universe screened for cointegrated pairs
BASKET = ["KO", "PEP", "XOM", "CVX", "COP", "MA", "V"]

# Strategy / backtest parameters
PARAMS = {
    "window_size": 52,         # rolling regression window, in periods of `frequency`
    "k": 1.0,                  # enter when |spread| > k * stderr
    "max_hold": 8,             # time stop, in periods
    "investment": 10_000,      # notional on asset1 per trade
    "frequency": "W-FRI",      # collapse daily closes to this period (None = keep daily)
    "use_coint_filter": True,  # only trade pairs passing Engle-Granger
    "coint_pvalue": 0.05,      # max p-value accepted as cointegrated
}


def validate_params(params: dict) -> dict:
    if int(params["window_size"]) < 3:
        raise ValueError(f"window_size must be >= 3, got {params['window_size']}")
    if not float(params["k"]) > 0:
        raise ValueError(f"k must be positive, got {params['k']}")
    if int(params["max_hold"]) < 1:
        raise ValueError(f"max_hold must be >= 1, got {params['max_hold']}")
    if not float(params["investment"]) > 0:
        raise ValueError(f"investment must be positive, got {params['investment']}")
    return params
