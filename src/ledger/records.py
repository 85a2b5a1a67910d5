"""
Wire format of the Kraken private ledger endpoints.

Envelope:  {"error": [...], "result": {"trades" | "closed": {id: record}, "count": n}}
Responses and trade records are validated with JSON Schema before use.
"""

from __future__ import annotations

from typing import Any

import jsonschema

from fifo_core.contracts import Side, Trade
from ledger.client import LedgerPage, MalformedResponseError, RemoteError, Resource

COLLECTION_KEYS = {
    Resource.TRADES_HISTORY: "trades",
    Resource.CLOSED_ORDERS: "closed",
}

ENVELOPE_SCHEMA: dict[str, Any] = {
    "type": "object",
    "required": ["error"],
    "properties": {
        "error": {"type": "array", "items": {"type": "string"}},
        "result": {
            "type": "object",
            "required": ["count"],
            "properties": {
                "count": {"type": "integer", "minimum": 0},
                "trades": {"type": "object", "additionalProperties": {"type": "object"}},
                "closed": {"type": "object", "additionalProperties": {"type": "object"}},
            },
        },
    },
}

_DECIMAL = {"type": "string", "pattern": r"^-?[0-9]+(\.[0-9]+)?$"}

TRADE_RECORD_SCHEMA: dict[str, Any] = {
    "type": "object",
    "required": ["ordertxid", "pair", "time", "type", "price", "fee", "vol", "cost", "ordertype"],
    "properties": {
        "ordertxid": {"type": "string"},
        "pair": {"type": "string"},
        "time": {"type": "number"},
        "type": {"enum": [s.value for s in Side]},
        "price": _DECIMAL,
        "fee": _DECIMAL,
        "vol": _DECIMAL,
        "cost": _DECIMAL,
        "ordertype": {"type": "string"},
    },
}


def _validate(instance: Any, schema: dict[str, Any], what: str) -> None:
    try:
        jsonschema.validate(instance=instance, schema=schema)
    except jsonschema.ValidationError as exc:
        raise MalformedResponseError(f"{what} failed validation: {exc.message}") from exc


def parse_page(resource: Resource, payload: Any) -> LedgerPage:
    """Convert a decoded response body into a LedgerPage.

    Raises RemoteError when the payload carries errors or no result,
    MalformedResponseError when the shape is wrong.
    """
    _validate(payload, ENVELOPE_SCHEMA, f"{resource.value} response")
    if payload["error"]:
        raise RemoteError(f"{resource.value} returned errors: {', '.join(payload['error'])}")
    result = payload.get("result")
    if result is None:
        raise RemoteError(f"{resource.value} returned no result")

    key = COLLECTION_KEYS[resource]
    items = result.get(key)
    if items is None:
        raise MalformedResponseError(f"{resource.value} result is missing '{key}'")
    return LedgerPage(items=dict(items), total_count=int(result["count"]))


def parse_trade(trade_id: str, record: dict[str, Any]) -> Trade:
    """Build a Trade from one trade-history record. Rejects invalid sides and quantities."""
    _validate(record, TRADE_RECORD_SCHEMA, f"Trade {trade_id}")
    trade = Trade(
        trade_id=trade_id,
        order_id=record["ordertxid"],
        pair=record["pair"],
        timestamp=float(record["time"]),
        side=Side(record["type"]),
        price=record["price"],
        fee=record["fee"],
        volume=record["vol"],
        cost=record["cost"],
        order_type=record["ordertype"],
    )
    if float(trade.price) <= 0:
        raise MalformedResponseError(f"Trade {trade_id} has non-positive price {trade.price}")
    if float(trade.volume) <= 0:
        raise MalformedResponseError(f"Trade {trade_id} has non-positive volume {trade.volume}")
    if float(trade.fee) < 0:
        raise MalformedResponseError(f"Trade {trade_id} has negative fee {trade.fee}")
    return trade
