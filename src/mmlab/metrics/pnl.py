from __future__ import annotations

from typing import Iterable, Mapping, Sequence

import numpy as np
import pandas as pd

from mmlab.sim.market import MarketState
from mmlab.types import Fill, StepResult

TRACE_COLUMNS = ["t", "market", "n_fills", "mid", "inventory", "pnl", "spread"]


def fill_price_stats(fills: Sequence[Fill]) -> dict[str, float]:
    """Basic summary stats for executed prices."""
    if len(fills) == 0:
        return {"avg": float("nan"), "min": float("nan"), "max": float("nan")}

    px = np.array([f.price for f in fills], dtype=float)
    return {"avg": float(px.mean()), "min": float(px.min()), "max": float(px.max())}


def summarize_markets(markets: Mapping[str, MarketState]) -> dict[str, float]:
    """
    Portfolio-level totals across markets.

    max_drawdown is the worst single-market drawdown, not the drawdown of
    the summed PnL.
    """
    states = list(markets.values())
    return {
        "total_pnl": float(sum(s.pnl for s in states)),
        "total_fills": int(sum(s.fill_count for s in states)),
        "total_notional": float(sum(s.notional for s in states)),
        "max_drawdown": float(max((s.max_drawdown for s in states), default=0.0)),
    }


def drawdown_path(pnl: Iterable[float]) -> np.ndarray:
    """Running drawdown (peak - pnl), peak starting at 0 like the ledger."""
    x = np.asarray(list(pnl), dtype=float)
    if x.size == 0:
        return x
    peak = np.maximum.accumulate(np.maximum(x, 0.0))
    return peak - x


def trace_frame(trace: Sequence[Mapping[str, StepResult]]) -> pd.DataFrame:
    """Long-format view of a run trace: one row per (tick, market)."""
    rows = []
    for t, tick in enumerate(trace):
        for name, res in tick.items():
            rows.append({
                "t": t,
                "market": name,
                "n_fills": len(res.fills),
                "mid": res.mid,
                "inventory": res.inventory,
                "pnl": res.pnl,
                "spread": res.spread,
            })
    return pd.DataFrame(rows, columns=TRACE_COLUMNS)
