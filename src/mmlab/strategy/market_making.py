from __future__ import annotations

import logging
from collections import deque
from dataclasses import dataclass, replace
from itertools import islice
from typing import Optional, Sequence

import numpy as np

from mmlab.sim.market import MarketState, clamp_mid
from mmlab.types import FillResult, Order, Side

LOGGER = logging.getLogger("mmlab")

# Flow impact: alpha * delta / (scale + |delta|), bounded below alpha.
IMPACT_ALPHA = 0.05
IMPACT_SCALE = 10.0

# Corrective nudge once |inventory| passes this share of the limit.
INVENTORY_TRIGGER = 0.8
INVENTORY_NUDGE = 0.05


@dataclass(frozen=True)
class MarketMakerConfig:
    """
    Quoting parameters.

    window_size: number of recent flow deltas summed into the imbalance
    base_spread: spread at zero imbalance / zero inventory (seeded from the market)
    min_spread, max_spread: clamp for the adaptive spread
    inventory_skew: mid shading per unit of inventory, also widens the spread
    """
    window_size: int = 20
    base_spread: float = 0.05
    min_spread: float = 0.01
    max_spread: float = 0.5
    inventory_skew: float = 0.001

    def __post_init__(self) -> None:
        if self.window_size < 1:
            raise ValueError(f"window_size must be >= 1, got {self.window_size}")
        if self.min_spread < 0 or self.base_spread < 0:
            raise ValueError("spreads must be non-negative")
        if self.min_spread > self.max_spread:
            raise ValueError(
                f"min_spread ({self.min_spread}) > max_spread ({self.max_spread})"
            )

    @property
    def window_capacity(self) -> int:
        return max(self.window_size * 4, 100)


class MarketMaker:
    """
    Inventory-aware two-sided quoter for one market.

    The maker never keeps a reference to its MarketState: every call
    receives the state it should read and mutate.
    """

    def __init__(self, state: MarketState, config: Optional[MarketMakerConfig] = None) -> None:
        cfg = config or MarketMakerConfig()
        self.config = replace(cfg, base_spread=state.spread)
        self.imbalance_window: deque[float] = deque(maxlen=self.config.window_capacity)

    def imbalance(self) -> float:
        recent = islice(reversed(self.imbalance_window), self.config.window_size)
        return float(sum(recent))

    def quote(self, state: MarketState) -> tuple[float, float, float]:
        """
        Return (bid, ask, size) and write the adaptive spread into `state`.

        Reads only state + imbalance window, so repeated calls without a
        fill in between return the same triple.
        """
        cfg = self.config
        inv = state.inventory

        spread = cfg.base_spread * (
            1.0 + abs(self.imbalance()) / 10.0 + abs(inv) * cfg.inventory_skew
        )
        spread = float(np.clip(spread, cfg.min_spread, cfg.max_spread))

        # long inventory -> quotes shaded down
        mid_shaded = clamp_mid(state.mid - inv * cfg.inventory_skew)

        bid = max(0.0, mid_shaded - spread / 2.0)
        ask = min(1.0, mid_shaded + spread / 2.0)

        size = float(np.clip(10.0 - abs(inv) / 10.0, 1.0, 20.0))

        state.spread = spread
        return bid, ask, size

    def on_fill(self, state: MarketState, side: Side, size: float) -> None:
        delta = size if side == "buy" else -size
        self.imbalance_window.append(delta)

        adj = IMPACT_ALPHA * (delta / (IMPACT_SCALE + abs(delta)))
        state.mid = clamp_mid(state.mid + adj)

        inv = state.inventory
        if abs(inv) > state.inventory_limit * INVENTORY_TRIGGER:
            correction = -INVENTORY_NUDGE if inv > 0 else INVENTORY_NUDGE
            state.mid = clamp_mid(state.mid + correction)
            LOGGER.debug(
                "inventory_nudge market=%s inventory=%.2f limit=%.2f mid=%.4f",
                state.name, inv, state.inventory_limit, state.mid,
            )

    def on_tick(self, state: MarketState, orders: Sequence[Order]) -> list[FillResult]:
        """Match marketable orders against one quote, then book the fills."""
        bid, ask, _size = self.quote(state)

        fills: list[FillResult] = []
        for order in orders:
            if order.side == "buy" and order.price >= ask:
                # taker buys, we sell at our ask
                fills.append(FillResult(side="sell", size=order.size, price=ask))
            elif order.side == "sell" and order.price <= bid:
                fills.append(FillResult(side="buy", size=order.size, price=bid))

        for fill in fills:
            state.record_fill(fill.side, fill.size, fill.price)
            self.on_fill(state, fill.side, fill.size)

        return fills
