from __future__ import annotations

import time
from dataclasses import dataclass, field

import numpy as np

from mmlab.types import Fill, MarketSnapshot, Side

MID_FLOOR = 0.01
MID_CEIL = 0.99

# Mean reversion: mid_{t+1} = mid_t * keep + anchor * pull
REVERSION_ANCHOR = 0.5
REVERSION_KEEP = 0.995
REVERSION_PULL = 0.005


def clamp_mid(x: float) -> float:
    return float(np.clip(x, MID_FLOOR, MID_CEIL))


@dataclass
class MarketState:
    """
    Mutable ledger of one probability market.

    Price side:
        mid in [0.01, 0.99], spread written back by the maker on every quote.

    Risk side:
        inventory / exposure are soft signals. inventory_limit feeds the
        maker's corrective nudge, exposure_limit is only reported.

    fill_count and notional mirror `fills` so reports never scan the list.
    """
    name: str
    mid: float
    spread: float = 0.05
    inventory_limit: float = 100.0
    exposure_limit: float = 10_000.0
    fee: float = 0.0

    inventory: float = 0.0
    exposure: float = 0.0
    pnl: float = 0.0
    peak_pnl: float = 0.0
    max_drawdown: float = 0.0
    fills: list[Fill] = field(default_factory=list)
    fill_count: int = 0
    notional: float = 0.0

    def __post_init__(self) -> None:
        self.mid = clamp_mid(self.mid)

    def record_fill(self, side: Side, size: float, price: float) -> None:
        self.fills.append(Fill(side=side, size=size, price=price, timestamp=time.time()))
        self.fill_count += 1
        self.notional += abs(size) * price

        if side == "buy":
            self.inventory += size
        elif side == "sell":
            self.inventory -= size

        self.exposure = abs(self.inventory) * self.mid

    def mark_pnl(self, delta: float) -> None:
        """Book a PnL increment, then roll the peak and the max drawdown."""
        self.pnl += delta
        self.peak_pnl = max(self.peak_pnl, self.pnl)
        self.max_drawdown = max(self.max_drawdown, self.peak_pnl - self.pnl)

    def apply_mean_reversion(self) -> None:
        self.mid = self.mid * REVERSION_KEEP + REVERSION_ANCHOR * REVERSION_PULL

    def snapshot(self) -> MarketSnapshot:
        return MarketSnapshot(
            name=self.name,
            mid=self.mid,
            spread=self.spread,
            inventory=self.inventory,
            exposure=self.exposure,
            pnl=self.pnl,
            fill_count=self.fill_count,
            notional=self.notional,
            max_drawdown=self.max_drawdown,
        )


@dataclass(frozen=True)
class MarketSpec:
    name: str
    mid0: float
    spread: float = 0.05
    inventory_limit: float = 200.0
    exposure_limit: float = 10_000.0


DEFAULT_MARKETS: tuple[MarketSpec, ...] = (
    MarketSpec("inflation_gt_20", 0.30),
    MarketSpec("election_candidate_a", 0.55),
    MarketSpec("team_x_wins", 0.50),
)


def build_markets(specs: tuple[MarketSpec, ...] = DEFAULT_MARKETS) -> dict[str, MarketState]:
    """Fresh MarketState per MarketSpec, keyed by name in input order."""
    markets: dict[str, MarketState] = {}
    for s in specs:
        markets[s.name] = MarketState(
            name=s.name,
            mid=s.mid0,
            spread=s.spread,
            inventory_limit=s.inventory_limit,
            exposure_limit=s.exposure_limit,
        )
    return markets
