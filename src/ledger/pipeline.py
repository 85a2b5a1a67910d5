"""
Trade ingestion: page through the ledger, filter by pair, restrict to an
order group, dedupe and sort.

Pagination of trades ends when the server-reported total fits within the
pages requested so far; closed orders end when the distinct ids collected
reach the reported total. The only pause is a blocking sleep between pages.
"""

from __future__ import annotations

import logging
import time

from fifo_core.contracts import Trade
from ledger.client import LedgerClient, LedgerQuery, Resource
from ledger.records import parse_trade

logger = logging.getLogger("pnl.ingest")

DEFAULT_PAGE_SIZE = 50


def fetch_closed_order_ids(
    client: LedgerClient,
    query: LedgerQuery = LedgerQuery(),
    *,
    page_size: int = DEFAULT_PAGE_SIZE,
    inter_page_delay: float = 0.0,
) -> set[str]:
    """Collect the ids of every closed order matching *query*."""
    order_ids: set[str] = set()
    offset = 0
    logger.info("Fetching closed orders...")
    while True:
        page = client.query(Resource.CLOSED_ORDERS, query.at_offset(offset))
        order_ids.update(page.items)
        logger.info("Fetched %d/%d closed orders...", len(order_ids), page.total_count)
        if len(order_ids) >= page.total_count:
            break
        if not page.items:
            logger.warning(
                "Empty closed-orders page at offset %d before reaching total %d; stopping",
                offset, page.total_count,
            )
            break
        time.sleep(inter_page_delay)
        offset += page_size
    return order_ids


def fetch_trades(
    client: LedgerClient,
    symbol: str,
    query: LedgerQuery = LedgerQuery(),
    *,
    page_size: int = DEFAULT_PAGE_SIZE,
    inter_page_delay: float = 0.0,
) -> list[Trade]:
    """
    Fetch every trade on *symbol* matching *query*, oldest first.

    When ``query.userref`` is set, only trades whose parent order is among
    the closed orders carrying that user reference are kept. Any LedgerError
    propagates; nothing is returned from a partial fetch.
    """
    collected: dict[str, Trade] = {}
    offset = 0
    logger.info("Fetching trades...")
    while True:
        page = client.query(Resource.TRADES_HISTORY, query.at_offset(offset))
        for trade_id, record in page.items.items():
            trade = parse_trade(trade_id, record)
            if trade.pair == symbol:
                collected.setdefault(trade_id, trade)
        logger.info("Fetched %d/%d trades...", len(collected), page.total_count)
        if page.total_count <= offset + page_size:
            break
        time.sleep(inter_page_delay)
        offset += page_size

    trades = list(collected.values())
    if query.userref is not None:
        order_ids = fetch_closed_order_ids(
            client, query, page_size=page_size, inter_page_delay=inter_page_delay
        )
        trades = [t for t in trades if t.order_id in order_ids]
        logger.info("%d trades belong to userref %d", len(trades), query.userref)

    trades.sort(key=lambda t: t.timestamp)
    return trades
