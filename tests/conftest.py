"""Pytest fixtures: trade builders and canned ledger pages for deterministic tests."""

from datetime import datetime, timezone
from typing import Any, Callable

import pytest

from fifo_core.contracts import Side, Trade


def _ts(year: int, month: int, day: int, hour: int = 12, minute: int = 0) -> float:
    return datetime(year, month, day, hour, minute, 0, tzinfo=timezone.utc).timestamp()


@pytest.fixture
def symbol() -> str:
    return "XXBTZEUR"


@pytest.fixture
def make_trade(symbol: str) -> Callable[..., Trade]:
    """Factory for Trades; ids and timestamps advance with each call unless given."""
    counter = {"n": 0}

    def _make(
        side: str,
        volume: str,
        price: str,
        fee: str = "0",
        *,
        timestamp: float | None = None,
        order_id: str | None = None,
        pair: str | None = None,
    ) -> Trade:
        counter["n"] += 1
        n = counter["n"]
        return Trade(
            trade_id=f"T{n:04d}",
            order_id=order_id or f"O{n:04d}",
            pair=pair or symbol,
            timestamp=timestamp if timestamp is not None else _ts(2024, 1, 1) + n * 60,
            side=Side(side),
            price=price,
            fee=fee,
            volume=volume,
            cost=str(float(volume) * float(price)),
            order_type="limit",
        )

    return _make


@pytest.fixture
def make_record(symbol: str) -> Callable[..., dict[str, Any]]:
    """Factory for raw trade-history records as the exchange returns them."""

    def _make(
        order_id: str,
        time: float,
        side: str = "buy",
        *,
        pair: str | None = None,
        price: str = "100.0",
        vol: str = "1.0",
        fee: str = "0.1",
    ) -> dict[str, Any]:
        return {
            "ordertxid": order_id,
            "postxid": "P-IGNORED",
            "pair": pair or symbol,
            "time": time,
            "type": side,
            "ordertype": "limit",
            "price": price,
            "cost": str(float(price) * float(vol)),
            "fee": fee,
            "vol": vol,
            "margin": "0.00000",
            "misc": "",
        }

    return _make
