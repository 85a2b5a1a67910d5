"""
FIFO cost-basis engine: one pass over chronologically ordered trades.

Buys append a lot at the back of the queue; sells consume lots from the
front. A partially consumed lot is re-inserted at the front with its
remaining amount and proportional remaining cost. Lots left at the end are
the open position and are marked to the last traded price.
"""

from __future__ import annotations

import logging
import math
from collections import deque
from typing import Iterable

from fifo_core.contracts import Disposal, Lot, RunStatistics, Side, Trade

logger = logging.getLogger("pnl.engine")

# Leftover below this fraction of the sell amount is float residue, not an uncovered sale.
DUST_TOLERANCE = 1e-9


def _consume_lots(lots: deque[Lot], amount: float) -> tuple[float, float]:
    """Take *amount* units from the front of *lots*.

    Returns (cost_basis, uncovered_amount). The queue is mutated in place.
    """
    cost_basis = 0.0
    remaining = amount
    while remaining > 0 and lots:
        lot = lots.popleft()
        if lot.amount <= remaining:
            cost_basis += lot.cost
            remaining -= lot.amount
        else:
            partial_cost = lot.unit_cost * remaining
            cost_basis += partial_cost
            lots.appendleft(Lot(lot.amount - remaining, lot.cost - partial_cost))
            remaining = 0.0
    if remaining <= 0 or math.isclose(remaining, 0.0, abs_tol=amount * DUST_TOLERANCE):
        return cost_basis, 0.0
    return cost_basis, remaining


def compute_fifo_pnl(trades: Iterable[Trade], year: int | None = None) -> RunStatistics:
    """
    Compute realized and unrealized PnL with FIFO lot matching.

    Trades must already be in chronological order. When *year* is given,
    only sells executed in that UTC calendar year add to realized PnL;
    balance, volume and cost totals always cover every trade.
    """
    lots: deque[Lot] = deque()
    stats = RunStatistics(year=year)

    for trade in trades:
        amount = float(trade.volume)
        price = float(trade.price)
        fee = float(trade.fee)
        stats.last_price = price
        stats.trade_count += 1

        if trade.side == Side.BUY:
            total_cost = amount * price + fee
            lots.append(Lot(amount, total_cost))
            stats.balance += amount
            stats.buy_volume_base += amount
            stats.buy_volume_quote += total_cost
        elif trade.side == Side.SELL:
            proceeds = amount * price - fee
            cost_basis, uncovered = _consume_lots(lots, amount)
            if uncovered > 0:
                logger.warning(
                    "Sell %s of %s exceeds tracked lots by %s; cost basis covers tracked lots only",
                    trade.trade_id, trade.volume, uncovered,
                )
            counted = year is None or trade.executed_at.year == year
            disposal = Disposal(
                timestamp=trade.timestamp,
                amount=amount,
                proceeds=proceeds,
                cost_basis=cost_basis,
                uncovered_amount=uncovered,
                counted=counted,
            )
            stats.disposals.append(disposal)
            if counted:
                stats.realized_pnl += disposal.pnl
            stats.balance -= amount
            stats.sell_volume_base += amount
            stats.sell_volume_quote += proceeds
            stats.cost_of_sold += cost_basis
            stats.value_of_sold += proceeds
        else:
            raise ValueError(f"Unsupported trade side: {trade.side!r}")

    stats.unrealized_pnl = sum(
        (stats.last_price - lot.unit_cost) * lot.amount for lot in lots
    )
    stats.open_lots = list(lots)
    logger.info(
        "Processed %d trades: %d disposals, %d open lots",
        stats.trade_count, len(stats.disposals), len(stats.open_lots),
    )
    return stats
