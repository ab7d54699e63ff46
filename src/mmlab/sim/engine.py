from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Optional, Sequence

import numpy as np

from mmlab.sim.market import MarketState
from mmlab.strategy.market_making import MarketMaker, MarketMakerConfig
from mmlab.types import Order, Side, StepResult

LOGGER = logging.getLogger("mmlab")

Trace = list[dict[str, StepResult]]


@dataclass
class FlowParams:
    """
    Synthetic taker flow, per market and per tick:

        n      ~ U{min_orders .. max_orders}
        side   = buy  if mid + U[-noise, noise) > 0.5 else sell
        size   = clip(U[0, 1) * size_scale + size_base, min_size, max_size)
        price  = 1.0 for buys, 0.0 for sells (always marketable)
    """
    min_orders: int = 1
    max_orders: int = 3
    noise: float = 0.15
    size_scale: float = 4.0
    size_base: float = 4.0
    min_size: float = 1.0
    max_size: float = 30.0


@dataclass
class MarketBook:
    """A market and the maker quoting it, stepped together."""
    state: MarketState
    maker: MarketMaker


class ExecutionEngine:
    """
    Drives independent (market, maker) pairs with synthetic order flow.

    A single numpy Generator is seeded at construction and advanced in a
    fixed order: markets in insertion order, flow synthesis before any
    maker logic. Same seed + same markets => same trace.
    """

    def __init__(
        self,
        markets: dict[str, MarketState],
        seed: int = 0,
        config: Optional[MarketMakerConfig] = None,
        flow: Optional[FlowParams] = None,
    ) -> None:
        self.books: dict[str, MarketBook] = {
            name: MarketBook(state=state, maker=MarketMaker(state, config))
            for name, state in markets.items()
        }
        self.flow = flow or FlowParams()
        self.rng = np.random.default_rng(seed)
        self.t = 0

    @property
    def markets(self) -> dict[str, MarketState]:
        return {name: book.state for name, book in self.books.items()}

    @property
    def market_makers(self) -> dict[str, MarketMaker]:
        return {name: book.maker for name, book in self.books.items()}

    def simulate_order_flow(self, name: str) -> list[Order]:
        state = self.books[name].state
        p = self.flow

        n = int(self.rng.integers(p.min_orders, p.max_orders + 1))

        orders: list[Order] = []
        for _ in range(n):
            # flow leans toward the side the current probability favours
            noise = float(self.rng.uniform(-p.noise, p.noise))
            side: Side = "buy" if state.mid + noise > 0.5 else "sell"

            size = float(np.clip(self.rng.random() * p.size_scale + p.size_base, p.min_size, p.max_size))
            price = 1.0 if side == "buy" else 0.0

            orders.append(Order(side=side, size=size, price=price))

        return orders

    def process_market(self, name: str, orders: Sequence[Order]) -> StepResult:
        """
        Run one tick of one market against `orders`.

        Every fill of the tick is marked against the mid seen before any
        fill was applied. Mean reversion toward 0.5 is applied even when
        no order crossed.
        """
        book = self.books[name]
        state = book.state

        mid_before = state.mid
        fills = book.maker.on_tick(state, orders)

        for fill in fills:
            signed = fill.size if fill.side == "buy" else -fill.size
            state.mark_pnl(-signed * (fill.price - mid_before))

        state.apply_mean_reversion()

        return StepResult(
            fills=tuple(fills),
            mid=state.mid,
            inventory=state.inventory,
            pnl=state.pnl,
            spread=state.spread,
        )

    def step(self) -> dict[str, StepResult]:
        results: dict[str, StepResult] = {}
        for name in self.books:
            orders = self.simulate_order_flow(name)
            results[name] = self.process_market(name, orders)

        if LOGGER.isEnabledFor(logging.DEBUG):
            LOGGER.debug(
                "step t=%d %s",
                self.t,
                " ".join(f"{n}:mid={r.mid:.4f},inv={r.inventory:.1f},fills={len(r.fills)}" for n, r in results.items()),
            )
        self.t += 1
        return results

    def run(self, steps: int) -> Trace:
        if steps < 0:
            raise ValueError(f"steps must be >= 0, got {steps}")

        LOGGER.info("run_start markets=%d steps=%d t0=%d", len(self.books), steps, self.t)
        trace: Trace = [self.step() for _ in range(steps)]
        LOGGER.info("run_end t=%d", self.t)
        return trace
