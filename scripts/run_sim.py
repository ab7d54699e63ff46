"""
run_sim.py

Run the prediction-market making demo on the default markets and write:
- <out_dir>/simulation_report.csv  (one row per market)
- <out_dir>/trace.json             (per-tick results)

Usage:
    python scripts/run_sim.py --steps 200 --seed 123
"""

from __future__ import annotations

import argparse
import logging
import sys
from pathlib import Path

from mmlab.backtest.run import SimParams, run_simulation
from mmlab.reporting.writers import OutputWriteError, write_report, write_trace


def _setup_logging(level: str) -> None:
    logging.basicConfig(
        level=getattr(logging, level, logging.INFO),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    logging.getLogger("matplotlib").setLevel(logging.ERROR)


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    defaults = SimParams()
    ap = argparse.ArgumentParser(description="Prediction-market making simulation")
    ap.add_argument("--steps", type=int, default=defaults.steps)
    ap.add_argument("--seed", type=int, default=defaults.seed)
    ap.add_argument("--out-dir", default=defaults.out_dir)
    ap.add_argument("--log-level", default="INFO")
    return ap.parse_args(argv)


def main(argv: list[str] | None = None) -> int:
    args = parse_args(argv)
    _setup_logging(args.log_level.upper())

    params = SimParams(steps=args.steps, seed=args.seed, out_dir=args.out_dir)
    out_dir = Path(params.out_dir)
    out_dir.mkdir(parents=True, exist_ok=True)

    print(f"Running simulation with {params.steps} steps (seed={params.seed})...\n")
    out = run_simulation(params)

    try:
        csv_path = write_report(out["markets"], out_dir / "simulation_report.csv")
        trace_path = write_trace(out["trace"], out_dir / "trace.json")
    except OutputWriteError as exc:
        print(f"Error writing outputs: {exc}", file=sys.stderr)
        return 1

    print(f"Report written to: {csv_path}")
    print(f"Trace written to:  {trace_path}\n")

    print("Final market states")
    print("-" * 60)
    for name, state in out["markets"].items():
        snap = state.snapshot()
        print(f"{name}")
        print(f"    mid:          {snap.mid:.4f}")
        print(f"    spread:       {snap.spread:.4f}")
        print(f"    inventory:    {snap.inventory:.2f}")
        print(f"    pnl:          {snap.pnl:.4f}")
        print(f"    fill_count:   {snap.fill_count}")
        print(f"    notional:     {snap.notional:.2f}")
        print(f"    max_drawdown: {snap.max_drawdown:.4f}")

    s = out["summary"]
    print("\nSummary")
    print("-" * 60)
    print(f"Total PnL:      {s['total_pnl']:.4f}")
    print(f"Total fills:    {s['total_fills']}")
    print(f"Total notional: {s['total_notional']:.2f}")
    print(f"Max drawdown:   {s['max_drawdown']:.4f}")
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
