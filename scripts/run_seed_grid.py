# scripts/run_seed_grid.py
"""
Sweep the initial spread of every market across many seeds.

For each base spread we run the default markets over SEEDS and record,
per market, the mean / p10 / p90 of final PnL and max drawdown.

Output: reports/seed_grid.csv
"""

from __future__ import annotations

from dataclasses import replace
from typing import Dict, List

import numpy as np
import pandas as pd

from mmlab.backtest.run import SimParams, run_simulation
from mmlab.sim.market import DEFAULT_MARKETS, build_markets


# -----------------------------
# Experiment configuration
# -----------------------------
SEEDS = list(range(30))
BASE_SPREADS = [0.02, 0.05, 0.10, 0.20]
STEPS = 200

OUT_CSV = "reports/seed_grid.csv"


def ensure_reports_dir() -> None:
    import os
    os.makedirs("reports", exist_ok=True)


def summarize(x: List[float]) -> Dict[str, float]:
    a = np.asarray(x, dtype=float)
    if a.size == 0:
        return {"mean": float("nan"), "p10": float("nan"), "p90": float("nan")}
    return {
        "mean": float(a.mean()),
        "p10": float(np.quantile(a, 0.10)),
        "p90": float(np.quantile(a, 0.90)),
    }


def run_spread(base_spread: float) -> List[Dict[str, float]]:
    specs = tuple(replace(s, spread=base_spread) for s in DEFAULT_MARKETS)

    pnl: Dict[str, List[float]] = {s.name: [] for s in specs}
    dd: Dict[str, List[float]] = {s.name: [] for s in specs}
    fills: Dict[str, List[float]] = {s.name: [] for s in specs}

    for seed in SEEDS:
        out = run_simulation(SimParams(steps=STEPS, seed=seed), markets=build_markets(specs))
        for name, state in out["markets"].items():
            pnl[name].append(state.pnl)
            dd[name].append(state.max_drawdown)
            fills[name].append(float(state.fill_count))

    rows: List[Dict[str, float]] = []
    for name in pnl:
        p = summarize(pnl[name])
        d = summarize(dd[name])
        rows.append({
            "base_spread": float(base_spread),
            "market": name,
            "pnl_mean": p["mean"],
            "pnl_p10": p["p10"],
            "pnl_p90": p["p90"],
            "max_dd_mean": d["mean"],
            "max_dd_p90": d["p90"],
            "avg_fill_count": float(np.mean(fills[name])),
        })
    return rows


def main() -> None:
    ensure_reports_dir()

    rows: List[Dict[str, float]] = []
    for base_spread in BASE_SPREADS:
        print(f"[seed_grid] base_spread={base_spread:.2f} seeds={len(SEEDS)}")
        rows.extend(run_spread(base_spread))

    df = pd.DataFrame(rows).sort_values(["market", "base_spread"]).reset_index(drop=True)
    df.to_csv(OUT_CSV, index=False)

    print("\n=== Seed grid summary ===")
    print(df.to_string(index=False))
    print(f"\nSaved: {OUT_CSV}")


if __name__ == "__main__":
    main()
