import pytest

from mmlab.sim.market import DEFAULT_MARKETS, MarketState, build_markets


def test_record_fill_updates_ledger() -> None:
    s = MarketState(name="m", mid=0.4)
    s.record_fill("buy", 10.0, 0.39)
    s.record_fill("sell", 4.0, 0.42)

    assert s.inventory == pytest.approx(6.0)
    assert s.exposure == pytest.approx(6.0 * 0.4)
    assert s.fill_count == len(s.fills) == 2
    assert s.notional == 10.0 * 0.39 + 4.0 * 0.42
    assert [f.side for f in s.fills] == ["buy", "sell"]
    assert s.fills[0].timestamp > 0


def test_mid_clamped_at_construction() -> None:
    assert MarketState(name="hi", mid=1.3).mid == 0.99
    assert MarketState(name="lo", mid=-0.2).mid == 0.01


def test_mark_pnl_tracks_peak_and_drawdown() -> None:
    s = MarketState(name="m", mid=0.5)
    seen = []
    for delta in [1.0, 0.5, -2.0, 0.7, -0.1, 3.0]:
        s.mark_pnl(delta)
        seen.append(s.max_drawdown)

    assert s.pnl == pytest.approx(3.1)
    assert s.peak_pnl == pytest.approx(3.1)
    assert s.max_drawdown == pytest.approx(2.0)
    assert all(b >= a for a, b in zip(seen, seen[1:]))


def test_mean_reversion_pulls_toward_half() -> None:
    s = MarketState(name="m", mid=0.8)
    s.apply_mean_reversion()
    assert s.mid == pytest.approx(0.8 * 0.995 + 0.5 * 0.005)

    s = MarketState(name="m", mid=0.2)
    s.apply_mean_reversion()
    assert 0.2 < s.mid < 0.5


def test_build_markets_defaults() -> None:
    markets = build_markets()
    assert list(markets) == [s.name for s in DEFAULT_MARKETS]
    for state in markets.values():
        assert state.spread == 0.05
        assert state.inventory_limit == 200.0
        assert state.exposure_limit == 10_000.0
        assert state.fill_count == 0
