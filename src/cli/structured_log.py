"""
Structured JSON event logger for report runs.

Emits one JSON object per line to stderr. Events are designed to be
parsed by log aggregators when the report runs from cron or a container.

Optional webhook: when configured, run-level outcome events
(run_complete, error) are POSTed to the URL.
"""

from __future__ import annotations

import json
import logging
import sys
from datetime import datetime, timezone
from typing import Any

import requests

logger = logging.getLogger("pnl.events")

_ALERT_EVENTS = frozenset({"run_complete", "error"})


class StructuredEventLogger:
    """Emit structured JSON events to stderr and optional webhook."""

    def __init__(
        self,
        symbol: str,
        *,
        enabled: bool = True,
        webhook_url: str = "",
        stream: Any = None,
    ) -> None:
        self._symbol = symbol
        self._enabled = enabled
        self._webhook_url = webhook_url.strip()
        self._stream = stream or sys.stderr

    def _emit(self, event_type: str, **fields: Any) -> dict:
        record = {
            "ts": datetime.now(timezone.utc).isoformat(),
            "event": event_type,
            "symbol": self._symbol,
            **fields,
        }
        if self._enabled:
            self._stream.write(json.dumps(record) + "\n")
            self._stream.flush()

        if self._webhook_url and event_type in _ALERT_EVENTS:
            self._post_webhook(record)

        return record

    def _post_webhook(self, record: dict) -> None:
        try:
            requests.post(self._webhook_url, json=record, timeout=5).raise_for_status()
        except requests.RequestException as exc:
            logger.warning("Webhook POST failed: %s", exc)

    def run_start(self, tier: str, userref: int | None, year: int | None) -> dict:
        return self._emit("run_start", tier=tier, userref=userref, year=year)

    def fetch_complete(self, trades: int) -> dict:
        return self._emit("fetch_complete", trades=trades)

    def run_complete(
        self,
        realized_pnl: float,
        unrealized_pnl: float,
        balance: float,
        trades: int,
    ) -> dict:
        return self._emit(
            "run_complete",
            realized_pnl=realized_pnl,
            unrealized_pnl=unrealized_pnl,
            balance=balance,
            trades=trades,
        )

    def error(self, message: str, detail: str = "") -> dict:
        return self._emit("error", message=message, detail=detail)
