from __future__ import annotations

from dataclasses import dataclass
from typing import Literal

Side = Literal["buy", "sell"]


@dataclass(frozen=True)
class Order:
    """Synthetic taker order. price=1.0 (buy) / 0.0 (sell) always crosses."""
    side: Side
    size: float
    price: float


@dataclass(frozen=True)
class FillResult:
    """Fill seen from the maker's side (a taker buy is a maker sell)."""
    side: Side
    size: float
    price: float


@dataclass(frozen=True)
class Fill:
    """Ledger entry stored on the market."""
    side: Side
    size: float
    price: float
    timestamp: float  # wall clock, seconds since epoch


@dataclass(frozen=True)
class StepResult:
    """One market after one tick (post mean reversion)."""
    fills: tuple[FillResult, ...]
    mid: float
    inventory: float
    pnl: float
    spread: float


@dataclass(frozen=True)
class MarketSnapshot:
    name: str
    mid: float
    spread: float
    inventory: float
    exposure: float
    pnl: float
    fill_count: int
    notional: float
    max_drawdown: float
