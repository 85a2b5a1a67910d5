"""
fifo-core: FIFO cost-basis accounting over an ordered trade sequence.

No I/O, no network. Consumes Trades, produces RunStatistics.
Fully deterministic and unit-testable.
"""

from fifo_core.contracts import (
    Disposal,
    Lot,
    RunStatistics,
    Side,
    Trade,
)
from fifo_core.engine import compute_fifo_pnl

__all__ = [
    "compute_fifo_pnl",
    "Disposal",
    "Lot",
    "RunStatistics",
    "Side",
    "Trade",
]
