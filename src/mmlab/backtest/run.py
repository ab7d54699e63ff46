from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Optional

from mmlab.metrics.pnl import summarize_markets
from mmlab.sim.engine import ExecutionEngine, FlowParams
from mmlab.sim.market import MarketState, build_markets
from mmlab.strategy.market_making import MarketMakerConfig

LOGGER = logging.getLogger("mmlab")


@dataclass
class SimParams:
    steps: int = 200
    seed: int = 123
    out_dir: str = "reports"


def run_simulation(
    params: Optional[SimParams] = None,
    markets: Optional[dict[str, MarketState]] = None,
    config: Optional[MarketMakerConfig] = None,
    flow: Optional[FlowParams] = None,
) -> dict:
    """
    Run one simulation over `markets` (the default prediction markets if None).

    Returns final states, the per-tick trace, portfolio summary and the engine.
    """
    sp = params or SimParams()
    mkts = markets if markets is not None else build_markets()

    engine = ExecutionEngine(mkts, seed=sp.seed, config=config, flow=flow)
    trace = engine.run(sp.steps)
    summary = summarize_markets(engine.markets)

    LOGGER.info(
        "simulation_done seed=%d steps=%d total_pnl=%.4f total_fills=%d",
        sp.seed, sp.steps, summary["total_pnl"], summary["total_fills"],
    )

    return {
        "markets": engine.markets,
        "trace": trace,
        "summary": summary,
        "engine": engine,
    }
