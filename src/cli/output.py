"""
Human-readable report output for the terminal, plus the CSV trade listing.

Statistics are printed as computed; no rounding is applied anywhere in the run.
"""

from __future__ import annotations

import csv
from datetime import datetime, timezone
from pathlib import Path
from typing import Sequence

from fifo_core.contracts import RunStatistics, Trade

CSV_COLUMNS = ["time", "pair", "side", "price", "fee", "volume", "cost", "order_type", "order_id"]

_RULE = "*" * 80


def format_time(ts: float) -> str:
    return datetime.fromtimestamp(ts, tz=timezone.utc).strftime("%Y-%m-%d %H:%M:%S")


def format_trade(trade: Trade) -> str:
    return (
        f"{format_time(trade.timestamp)}  {trade.pair}  {trade.side.value:<4s}  "
        f"price {trade.price}  vol {trade.volume}  fee {trade.fee}  cost {trade.cost}  "
        f"{trade.order_type}  {trade.order_id}"
    )


def format_trade_listing(trades: Sequence[Trade]) -> str:
    """Ordered trade listing framed by rule lines."""
    lines = [_RULE]
    if trades:
        lines.extend(format_trade(t) for t in trades)
    else:
        lines.append("No trades matched the given filters.")
    lines.append(_RULE)
    return "\n".join(lines)


def format_statistics(stats: RunStatistics) -> str:
    """Final statistics block."""
    realized_label = f"Realized PnL ({stats.year})" if stats.year is not None else "Realized PnL"
    lines = [
        f"{realized_label:<28s}: {stats.realized_pnl}",
        f"{'Unrealized PnL':<28s}: {stats.unrealized_pnl}",
        f"{'Balance':<28s}: {stats.balance}",
        f"{'Total buy volume (base)':<28s}: {stats.buy_volume_base}",
        f"{'Total buy volume (quote)':<28s}: {stats.buy_volume_quote}",
        f"{'Total sell volume (base)':<28s}: {stats.sell_volume_base}",
        f"{'Total sell volume (quote)':<28s}: {stats.sell_volume_quote}",
        f"{'Total cost of sold assets':<28s}: {stats.cost_of_sold}",
        f"{'Total value of sold assets':<28s}: {stats.value_of_sold}",
    ]
    if stats.uncovered_amount > 0:
        lines.append(
            f"{'Sold without tracked lots':<28s}: {stats.uncovered_amount} "
            "(cost basis under-reported; trade history may be incomplete)"
        )
    lines.append(_RULE)
    return "\n".join(lines)


def write_trades_csv(trades: Sequence[Trade], path: str | Path) -> Path:
    """Write the trade listing to *path*; returns the path written."""
    out = Path(path)
    out.parent.mkdir(parents=True, exist_ok=True)
    with open(out, "w", newline="") as f:
        writer = csv.writer(f)
        writer.writerow(CSV_COLUMNS)
        for t in trades:
            writer.writerow([
                format_time(t.timestamp), t.pair, t.side.value, t.price, t.fee,
                t.volume, t.cost, t.order_type, t.order_id,
            ])
    return out
