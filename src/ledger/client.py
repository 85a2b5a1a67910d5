"""
Remote ledger contract: paginated queries over trade history and closed orders.

The pipeline depends only on this protocol. Concrete clients handle
signing and transport; StaticLedgerClient serves canned pages.
"""

from dataclasses import dataclass, field, replace
from enum import Enum
from typing import Any, Protocol


class LedgerError(Exception):
    """Base class for failures fetching from the remote ledger. Fatal to a run."""


class RemoteError(LedgerError):
    """Remote returned a non-success status or an explicit error payload."""


class MalformedResponseError(LedgerError):
    """Response body could not be parsed into the expected record shape."""


class Resource(str, Enum):
    """Paginated collections exposed by the ledger."""

    TRADES_HISTORY = "TradesHistory"
    CLOSED_ORDERS = "ClosedOrders"


@dataclass(frozen=True)
class LedgerQuery:
    """Filter set shared by both collections. Timestamps in epoch seconds."""

    userref: int | None = None
    start: float | None = None
    end: float | None = None
    offset: int = 0

    def at_offset(self, offset: int) -> "LedgerQuery":
        return replace(self, offset=offset)

    def to_params(self) -> dict[str, str]:
        """Form fields for the request; unset filters are omitted."""
        params: dict[str, str] = {}
        if self.userref is not None:
            params["userref"] = str(self.userref)
        if self.start is not None:
            params["start"] = str(self.start)
        if self.end is not None:
            params["end"] = str(self.end)
        params["ofs"] = str(self.offset)
        return params


@dataclass
class LedgerPage:
    """One page of a collection: records keyed by id, plus the server-reported total."""

    items: dict[str, dict[str, Any]]
    total_count: int


class LedgerClient(Protocol):
    """Protocol for ledger clients. Implement per exchange."""

    def query(self, resource: Resource, query: LedgerQuery) -> LedgerPage:
        """Fetch one page of *resource*. Raises LedgerError on failure."""
        ...


@dataclass
class StaticLedgerClient:
    """Serves pre-built pages keyed by (resource, offset); records every call.

    A missing page is served as empty with the resource's last known total.
    """

    pages: dict[tuple[Resource, int], LedgerPage] = field(default_factory=dict)
    calls: list[tuple[Resource, LedgerQuery]] = field(default_factory=list)

    def query(self, resource: Resource, query: LedgerQuery) -> LedgerPage:
        self.calls.append((resource, query))
        page = self.pages.get((resource, query.offset))
        if page is not None:
            return page
        totals = [p.total_count for (r, _), p in self.pages.items() if r == resource]
        return LedgerPage(items={}, total_count=max(totals, default=0))
