from copy import deepcopy
from pathlib import Path
import logging
import os

from statarb.config import BASKET, PARAMS, PAIR_CONFIG
from statarb.data import DemoCSVLoader, YahooLoader
from statarb.explorer import Explorer

DATA_DIR = Path(__file__).resolve().parent / "data"
USE_VENDOR = True    # False = read ./data/<TICKER>_daily.csv
SCREEN_BASKET = False


def main() -> None:
    logging.basicConfig(
        level=os.getenv("STATARB_LOG_LEVEL", "INFO").upper(),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    loader = YahooLoader(period="10y") if USE_VENDOR else DemoCSVLoader(str(DATA_DIR))
    params = deepcopy(PARAMS)
    explorer = Explorer(loader, params)

    if SCREEN_BASKET:
        screened, results = explorer.run_basket(BASKET, max_workers=4)
        print(screened.to_string(index=False))
    else:
        results = explorer.run_all(PAIR_CONFIG)

    for name, res in results.items():
        print(f"\n=== {name} ===")
        if "error" in res:
            print("ERROR:", res["error"])
        elif res.get("skipped"):
            print("SKIPPED:", res.get("reason", ""))
        else:
            print(res.get("metrics", {}))


if __name__ == "__main__":
    main()
