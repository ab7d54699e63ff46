"""
make_sim_report.py

Build a markdown report + path figures from reports/trace.json and
reports/simulation_report.csv (both written by run_sim.py).

For every market we plot:
- mid path
- inventory path
- pnl path with its running drawdown
"""

from __future__ import annotations

from pathlib import Path

import matplotlib

matplotlib.use("Agg")

import matplotlib.pyplot as plt
import pandas as pd

from mmlab.metrics.pnl import TRACE_COLUMNS, drawdown_path
from mmlab.reporting.writers import REPORT_COLUMNS, load_trace


REPORTS_DIR = Path("reports")
FIG_DIR = REPORTS_DIR / "figures"
TRACE_PATH = REPORTS_DIR / "trace.json"
CSV_PATH = REPORTS_DIR / "simulation_report.csv"
OUT_MD = REPORTS_DIR / "SIM_REPORT.md"


def _load_trace_frame() -> pd.DataFrame:
    if not TRACE_PATH.exists():
        raise FileNotFoundError(f"Missing {TRACE_PATH}. Run scripts/run_sim.py first.")

    rows = []
    for t, tick in enumerate(load_trace(TRACE_PATH)):
        for name, res in tick.items():
            rows.append({
                "t": t,
                "market": name,
                "n_fills": len(res["fills"]),
                "mid": res["mid"],
                "inventory": res["inventory"],
                "pnl": res["pnl"],
                "spread": res["spread"],
            })
    return pd.DataFrame(rows, columns=TRACE_COLUMNS)


def _load_report() -> pd.DataFrame:
    if not CSV_PATH.exists():
        raise FileNotFoundError(f"Missing {CSV_PATH}. Run scripts/run_sim.py first.")
    df = pd.read_csv(CSV_PATH)
    missing = [c for c in REPORT_COLUMNS if c not in df.columns]
    if missing:
        raise ValueError(f"simulation_report.csv is missing columns: {missing}")
    return df


def _plot_market(df: pd.DataFrame, market: str, out_path: Path) -> None:
    d = df[df["market"] == market].sort_values("t")
    t = d["t"].to_numpy()
    dd = drawdown_path(d["pnl"].to_numpy())

    fig, axes = plt.subplots(3, 1, figsize=(10, 8), sharex=True)

    axes[0].plot(t, d["mid"].to_numpy())
    axes[0].axhline(0.5, linestyle="--", linewidth=0.8)
    axes[0].set_ylabel("mid")
    axes[0].set_title(market)

    axes[1].plot(t, d["inventory"].to_numpy())
    axes[1].set_ylabel("inventory")

    axes[2].plot(t, d["pnl"].to_numpy(), label="pnl")
    axes[2].fill_between(t, d["pnl"].to_numpy(), d["pnl"].to_numpy() + dd, alpha=0.3, label="drawdown")
    axes[2].set_ylabel("pnl")
    axes[2].set_xlabel("t")
    axes[2].legend(loc="best")

    fig.tight_layout()
    fig.savefig(out_path, dpi=180)
    plt.close(fig)


def _write_report(report: pd.DataFrame, figures: dict[str, str]) -> None:
    lines: list[str] = []
    lines.append("# Simulation Report: Prediction-Market Making\n")
    lines.append(f"Artifacts generated from `{TRACE_PATH.as_posix()}` and `{CSV_PATH.as_posix()}`.\n")

    lines.append("## Final market states\n")
    lines.append("| " + " | ".join(REPORT_COLUMNS) + " |")
    lines.append("|" + "---|" * len(REPORT_COLUMNS))
    for _, r in report.iterrows():
        lines.append(
            f"| {r['market']} | {r['mid']:.4f} | {r['spread']:.4f} | {r['inventory']:.2f} "
            f"| {r['pnl']:.4f} | {int(r['fill_count'])} | {r['notional']:.2f} | {r['max_drawdown']:.4f} |"
        )

    lines.append("\n## Totals\n")
    lines.append(f"- Total PnL: {report['pnl'].sum():.4f}")
    lines.append(f"- Total fills: {int(report['fill_count'].sum())}")
    lines.append(f"- Total notional: {report['notional'].sum():.2f}")
    lines.append(f"- Worst max drawdown: {report['max_drawdown'].max():.4f}\n")

    lines.append("## Figures\n")
    for market, filename in figures.items():
        lines.append(f"- ![{market}](figures/{filename})")

    OUT_MD.write_text("\n".join(lines) + "\n", encoding="utf-8")


def main() -> None:
    FIG_DIR.mkdir(parents=True, exist_ok=True)

    df = _load_trace_frame()
    report = _load_report()

    figures: dict[str, str] = {}
    for market in df["market"].unique():
        filename = f"{market}_paths.png"
        _plot_market(df, market, FIG_DIR / filename)
        figures[market] = filename

    _write_report(report, figures)

    print(f"Saved figures in: {FIG_DIR.as_posix()}")
    print(f"Saved report: {OUT_MD.as_posix()}")


if __name__ == "__main__":
    main()
