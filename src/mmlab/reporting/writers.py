from __future__ import annotations

import json
import logging
from dataclasses import asdict
from pathlib import Path
from typing import Any, Mapping, Sequence, Union

import pandas as pd

from mmlab.sim.market import MarketState
from mmlab.types import StepResult

LOGGER = logging.getLogger("mmlab")

PathLike = Union[str, Path]

# Column order is part of the report format.
REPORT_COLUMNS = [
    "market",
    "mid",
    "spread",
    "inventory",
    "pnl",
    "fill_count",
    "notional",
    "max_drawdown",
]


class OutputWriteError(RuntimeError):
    """A report or trace could not be written. Simulation state is untouched."""


def report_frame(markets: Mapping[str, MarketState]) -> pd.DataFrame:
    rows = [
        {
            "market": name,
            "mid": s.mid,
            "spread": s.spread,
            "inventory": s.inventory,
            "pnl": s.pnl,
            "fill_count": s.fill_count,
            "notional": s.notional,
            "max_drawdown": s.max_drawdown,
        }
        for name, s in markets.items()
    ]
    return pd.DataFrame(rows, columns=REPORT_COLUMNS)


def write_report(markets: Mapping[str, MarketState], out_path: PathLike) -> Path:
    path = Path(out_path)
    df = report_frame(markets)
    try:
        df.to_csv(path, index=False)
    except OSError as exc:
        raise OutputWriteError(f"could not write report to {path}: {exc}") from exc

    LOGGER.info("report_written path=%s rows=%d", path, len(df))
    return path


def trace_to_records(trace: Sequence[Mapping[str, StepResult]]) -> list[dict[str, Any]]:
    """Plain dicts, tick order kept; fills as {side, size, price}."""
    return [{name: asdict(res) for name, res in tick.items()} for tick in trace]


def write_trace(trace: Sequence[Mapping[str, StepResult]], out_path: PathLike) -> Path:
    path = Path(out_path)
    payload = json.dumps(trace_to_records(trace), indent=2)
    try:
        path.write_text(payload, encoding="utf-8")
    except OSError as exc:
        raise OutputWriteError(f"could not write trace to {path}: {exc}") from exc

    LOGGER.info("trace_written path=%s ticks=%d", path, len(trace))
    return path


def load_trace(path: PathLike) -> list[dict[str, Any]]:
    return json.loads(Path(path).read_text(encoding="utf-8"))
