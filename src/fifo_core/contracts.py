"""
Data contracts for fifo-core: Trade, Lot, Disposal, RunStatistics.

Trades arrive from the ledger pipeline already validated and ordered.
No I/O; these are plain dataclasses.
"""

from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum


class Side(str, Enum):
    """Direction of an executed fill."""

    BUY = "buy"
    SELL = "sell"


@dataclass(frozen=True)
class Trade:
    """One executed fill on a single pair.

    Decimal quantities are kept as the exact strings the exchange reported
    and parsed to float where they are used.
    """

    trade_id: str
    order_id: str
    pair: str
    timestamp: float       # seconds since epoch, fractional
    side: Side
    price: str
    fee: str
    volume: str
    cost: str
    order_type: str = ""

    @property
    def executed_at(self) -> datetime:
        """Execution time as an aware UTC datetime."""
        return datetime.fromtimestamp(self.timestamp, tz=timezone.utc)


@dataclass(frozen=True)
class Lot:
    """Open FIFO entry: amount still held and the acquisition cost attributable to it."""

    amount: float
    cost: float

    @property
    def unit_cost(self) -> float:
        return self.cost / self.amount


@dataclass(frozen=True)
class Disposal:
    """Outcome of matching one sell against the lot queue."""

    timestamp: float
    amount: float
    proceeds: float
    cost_basis: float
    uncovered_amount: float = 0.0   # sold beyond tracked lots
    counted: bool = True            # included in realized PnL (year filter)

    @property
    def pnl(self) -> float:
        return self.proceeds - self.cost_basis


@dataclass
class RunStatistics:
    """Accumulated result of one FIFO run. Volumes in base units, values in quote."""

    realized_pnl: float = 0.0
    unrealized_pnl: float = 0.0
    balance: float = 0.0
    buy_volume_base: float = 0.0
    buy_volume_quote: float = 0.0
    sell_volume_base: float = 0.0
    sell_volume_quote: float = 0.0
    cost_of_sold: float = 0.0
    value_of_sold: float = 0.0
    last_price: float = 0.0
    trade_count: int = 0
    year: int | None = None
    disposals: list[Disposal] = field(default_factory=list)
    open_lots: list[Lot] = field(default_factory=list)

    @property
    def uncovered_amount(self) -> float:
        """Total base volume sold without a tracked lot behind it."""
        return sum(d.uncovered_amount for d in self.disposals)
