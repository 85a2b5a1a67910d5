"""
Ledger ingestion: page through remote trade history and closed orders,
validate records, and produce an ordered Trade sequence.

Depends on fifo_core.contracts for Trade; no dependency from fifo_core back to ledger.
"""

from ledger.client import (
    LedgerClient,
    LedgerError,
    LedgerPage,
    LedgerQuery,
    MalformedResponseError,
    RemoteError,
    Resource,
    StaticLedgerClient,
)
from ledger.pipeline import fetch_closed_order_ids, fetch_trades

__all__ = [
    "fetch_closed_order_ids",
    "fetch_trades",
    "LedgerClient",
    "LedgerError",
    "LedgerPage",
    "LedgerQuery",
    "MalformedResponseError",
    "RemoteError",
    "Resource",
    "StaticLedgerClient",
]


def get_kraken_client(api_key: str, api_secret: str, **kwargs):
    """Lazy import so requests is only loaded when talking to the exchange."""
    from ledger.kraken_client import KrakenLedgerClient

    return KrakenLedgerClient(api_key, api_secret, **kwargs)
