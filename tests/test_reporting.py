import json

import numpy as np
import pandas as pd
import pytest

from mmlab.metrics.pnl import drawdown_path, fill_price_stats, summarize_markets, trace_frame
from mmlab.reporting.writers import (
    REPORT_COLUMNS,
    OutputWriteError,
    load_trace,
    write_report,
    write_trace,
)
from mmlab.sim.engine import ExecutionEngine
from mmlab.sim.market import build_markets


def _engine(steps: int = 20) -> tuple[ExecutionEngine, list]:
    engine = ExecutionEngine(build_markets(), seed=3)
    return engine, engine.run(steps)


def test_report_columns_and_rows(tmp_path) -> None:
    engine, _ = _engine()
    path = write_report(engine.markets, tmp_path / "simulation_report.csv")

    df = pd.read_csv(path)
    assert list(df.columns) == REPORT_COLUMNS
    assert list(df["market"]) == list(engine.markets)
    row = df.iloc[0]
    state = engine.markets[row["market"]]
    assert row["fill_count"] == state.fill_count
    assert row["pnl"] == pytest.approx(state.pnl)


def test_trace_keeps_tick_order_and_fields(tmp_path) -> None:
    engine, trace = _engine(5)
    path = write_trace(trace, tmp_path / "trace.json")

    data = load_trace(path)
    assert len(data) == 5
    for tick, raw in zip(trace, data):
        assert list(raw) == list(tick)
        for name, res in tick.items():
            rec = raw[name]
            assert set(rec) == {"fills", "mid", "inventory", "pnl", "spread"}
            assert rec["mid"] == res.mid
            assert [(f["side"], f["size"], f["price"]) for f in rec["fills"]] == [
                (f.side, f.size, f.price) for f in res.fills
            ]

    # plain JSON on disk
    assert isinstance(json.loads(path.read_text(encoding="utf-8")), list)


def test_write_failure_is_wrapped(tmp_path) -> None:
    engine, trace = _engine(2)
    before = {n: (s.mid, s.pnl, s.fill_count) for n, s in engine.markets.items()}

    with pytest.raises(OutputWriteError):
        write_report(engine.markets, tmp_path / "missing" / "r.csv")
    with pytest.raises(OutputWriteError):
        write_trace(trace, tmp_path / "missing" / "t.json")

    after = {n: (s.mid, s.pnl, s.fill_count) for n, s in engine.markets.items()}
    assert before == after


def test_summary_totals() -> None:
    engine, _ = _engine(30)
    s = summarize_markets(engine.markets)
    states = list(engine.markets.values())

    assert s["total_fills"] == sum(x.fill_count for x in states)
    assert s["total_pnl"] == pytest.approx(sum(x.pnl for x in states))
    assert s["max_drawdown"] == max(x.max_drawdown for x in states)


def test_fill_price_stats() -> None:
    assert np.isnan(fill_price_stats([])["avg"])

    engine, _ = _engine(10)
    fills = engine.markets["team_x_wins"].fills
    stats = fill_price_stats(fills)
    assert stats["min"] <= stats["avg"] <= stats["max"]


def test_drawdown_path_matches_ledger() -> None:
    dd = drawdown_path([1.0, 0.5, 2.0, -1.0, 0.0])
    assert dd.tolist() == pytest.approx([0.0, 0.5, 0.0, 3.0, 2.0])
    assert drawdown_path([-0.5, -1.0]).tolist() == pytest.approx([0.5, 1.0])


def test_trace_frame_long_format() -> None:
    engine, trace = _engine(4)
    df = trace_frame(trace)

    assert len(df) == 4 * len(engine.markets)
    assert df["t"].max() == 3
    last = df[df["t"] == 3].set_index("market")
    for name, state in engine.markets.items():
        assert last.loc[name, "pnl"] == pytest.approx(state.pnl)
