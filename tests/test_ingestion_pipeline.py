"""Tests for trade ingestion: pagination, pair filter, userref cross-reference. No network, no sleep."""

from unittest.mock import patch

import pytest

from ledger import (
    LedgerPage,
    LedgerQuery,
    MalformedResponseError,
    RemoteError,
    Resource,
    StaticLedgerClient,
    fetch_closed_order_ids,
    fetch_trades,
)

TH = Resource.TRADES_HISTORY
CO = Resource.CLOSED_ORDERS


@pytest.fixture(autouse=True)
def no_sleep():
    with patch("ledger.pipeline.time.sleep") as mock_sleep:
        yield mock_sleep


def _offsets(client: StaticLedgerClient, resource: Resource) -> list[int]:
    return [q.offset for r, q in client.calls if r == resource]


class TestTradePagination:
    def test_total_drives_page_count(self, make_record, no_sleep) -> None:
        client = StaticLedgerClient(pages={
            (TH, 0): LedgerPage({f"A{i}": make_record("O1", 1000.0 + i) for i in range(50)}, 120),
            (TH, 50): LedgerPage({f"B{i}": make_record("O1", 2000.0 + i) for i in range(50)}, 120),
            (TH, 100): LedgerPage({f"C{i}": make_record("O1", 3000.0 + i) for i in range(20)}, 120),
        })
        trades = fetch_trades(client, "XXBTZEUR", inter_page_delay=7)
        assert _offsets(client, TH) == [0, 50, 100]
        assert len(trades) == 120
        assert no_sleep.call_count == 2
        no_sleep.assert_called_with(7)

    def test_single_page_no_sleep(self, make_record, no_sleep) -> None:
        client = StaticLedgerClient(pages={(TH, 0): LedgerPage({"A": make_record("O1", 1.0)}, 1)})
        fetch_trades(client, "XXBTZEUR", inter_page_delay=7)
        assert _offsets(client, TH) == [0]
        no_sleep.assert_not_called()

    def test_exact_page_boundary(self, make_record) -> None:
        client = StaticLedgerClient(pages={
            (TH, 0): LedgerPage({f"A{i}": make_record("O1", float(i)) for i in range(50)}, 100),
            (TH, 50): LedgerPage({f"B{i}": make_record("O1", 100.0 + i) for i in range(50)}, 100),
        })
        fetch_trades(client, "XXBTZEUR")
        assert _offsets(client, TH) == [0, 50]

    def test_custom_page_size(self, make_record) -> None:
        client = StaticLedgerClient(pages={
            (TH, 0): LedgerPage({"A": make_record("O1", 1.0)}, 25),
        })
        fetch_trades(client, "XXBTZEUR", page_size=10)
        assert _offsets(client, TH) == [0, 10, 20]

    def test_filters_forwarded(self, make_record) -> None:
        client = StaticLedgerClient(pages={(TH, 0): LedgerPage({}, 0)})
        fetch_trades(client, "XXBTZEUR", LedgerQuery(start=100.0, end=200.0))
        _, query = client.calls[0]
        assert query.to_params() == {"start": "100.0", "end": "200.0", "ofs": "0"}


class TestTradeFiltering:
    def test_other_pairs_discarded(self, make_record) -> None:
        client = StaticLedgerClient(pages={(TH, 0): LedgerPage({
            "A": make_record("O1", 1.0),
            "B": make_record("O2", 2.0, pair="XETHZEUR"),
            "C": make_record("O3", 3.0),
        }, 3)})
        trades = fetch_trades(client, "XXBTZEUR")
        assert [t.trade_id for t in trades] == ["A", "C"]
        assert all(t.pair == "XXBTZEUR" for t in trades)

    def test_sorted_by_time(self, make_record) -> None:
        client = StaticLedgerClient(pages={(TH, 0): LedgerPage({
            "late": make_record("O1", 30.0),
            "early": make_record("O2", 10.0),
            "mid": make_record("O3", 20.0),
        }, 3)})
        assert [t.trade_id for t in fetch_trades(client, "XXBTZEUR")] == ["early", "mid", "late"]

    def test_ties_keep_fetch_order(self, make_record) -> None:
        client = StaticLedgerClient(pages={(TH, 0): LedgerPage({
            "second": make_record("O1", 50.0),
            "first": make_record("O2", 10.0),
            "third": make_record("O3", 50.0),
        }, 3)})
        assert [t.trade_id for t in fetch_trades(client, "XXBTZEUR")] == ["first", "second", "third"]

    def test_duplicate_across_pages_kept_once(self, make_record) -> None:
        client = StaticLedgerClient(pages={
            (TH, 0): LedgerPage({"A": make_record("O1", 1.0), "B": make_record("O1", 2.0)}, 52),
            (TH, 50): LedgerPage({"B": make_record("O1", 2.0), "C": make_record("O1", 3.0)}, 52),
        })
        assert [t.trade_id for t in fetch_trades(client, "XXBTZEUR")] == ["A", "B", "C"]

    def test_empty_result(self) -> None:
        client = StaticLedgerClient(pages={(TH, 0): LedgerPage({}, 0)})
        assert fetch_trades(client, "XXBTZEUR") == []

    def test_deterministic(self, make_record) -> None:
        pages = {
            (TH, 0): LedgerPage({"A": make_record("O1", 5.0), "B": make_record("O2", 1.0)}, 2),
            (CO, 0): LedgerPage({"O1": {}, "O2": {}}, 2),
        }
        query = LedgerQuery(userref=7)
        first = fetch_trades(StaticLedgerClient(pages=pages), "XXBTZEUR", query)
        second = fetch_trades(StaticLedgerClient(pages=pages), "XXBTZEUR", query)
        assert first == second


class TestUserrefFilter:
    def test_only_trades_of_closed_orders(self, make_record) -> None:
        client = StaticLedgerClient(pages={
            (TH, 0): LedgerPage({
                "A": make_record("O1", 1.0),
                "B": make_record("O2", 2.0),
                "C": make_record("O3", 3.0),
            }, 3),
            (CO, 0): LedgerPage({"O1": {"userref": 42}, "O3": {"userref": 42}}, 2),
        })
        trades = fetch_trades(client, "XXBTZEUR", LedgerQuery(userref=42))
        assert [t.trade_id for t in trades] == ["A", "C"]
        assert all(q.userref == 42 for _, q in client.calls)

    def test_no_userref_skips_closed_orders(self, make_record) -> None:
        client = StaticLedgerClient(pages={(TH, 0): LedgerPage({"A": make_record("O1", 1.0)}, 1)})
        fetch_trades(client, "XXBTZEUR")
        assert _offsets(client, CO) == []

    def test_closed_orders_paginate_until_total(self, no_sleep) -> None:
        client = StaticLedgerClient(pages={
            (CO, 0): LedgerPage({f"O{i}": {} for i in range(50)}, 75),
            (CO, 50): LedgerPage({f"P{i}": {} for i in range(25)}, 75),
        })
        ids = fetch_closed_order_ids(client, LedgerQuery(userref=1), inter_page_delay=4)
        assert len(ids) == 75
        assert _offsets(client, CO) == [0, 50]
        assert no_sleep.call_count == 1

    def test_closed_orders_stop_on_empty_page(self) -> None:
        client = StaticLedgerClient(pages={
            (CO, 0): LedgerPage({"O1": {}, "O2": {}}, 10),
        })
        ids = fetch_closed_order_ids(client, LedgerQuery(userref=1))
        assert ids == {"O1", "O2"}
        assert _offsets(client, CO) == [0, 50]

    def test_no_matching_orders(self, make_record) -> None:
        client = StaticLedgerClient(pages={
            (TH, 0): LedgerPage({"A": make_record("O1", 1.0)}, 1),
            (CO, 0): LedgerPage({}, 0),
        })
        assert fetch_trades(client, "XXBTZEUR", LedgerQuery(userref=5)) == []


class _FailingClient(StaticLedgerClient):
    def __init__(self, pages, fail_at: tuple[Resource, int]) -> None:
        super().__init__(pages=pages)
        self._fail_at = fail_at

    def query(self, resource, query):
        if (resource, query.offset) == self._fail_at:
            self.calls.append((resource, query))
            raise RemoteError("EAPI:Rate limit exceeded")
        return super().query(resource, query)


class TestErrors:
    def test_remote_error_mid_pagination_is_fatal(self, make_record) -> None:
        client = _FailingClient(
            {(TH, 0): LedgerPage({"A": make_record("O1", 1.0)}, 120)},
            fail_at=(TH, 50),
        )
        with pytest.raises(RemoteError, match="Rate limit"):
            fetch_trades(client, "XXBTZEUR")

    def test_remote_error_in_closed_orders_is_fatal(self, make_record) -> None:
        client = _FailingClient(
            {(TH, 0): LedgerPage({"A": make_record("O1", 1.0)}, 1)},
            fail_at=(CO, 0),
        )
        with pytest.raises(RemoteError):
            fetch_trades(client, "XXBTZEUR", LedgerQuery(userref=3))

    def test_invalid_side_rejected(self, make_record) -> None:
        client = StaticLedgerClient(pages={(TH, 0): LedgerPage({"A": make_record("O1", 1.0, side="settle")}, 1)})
        with pytest.raises(MalformedResponseError):
            fetch_trades(client, "XXBTZEUR")

    def test_malformed_record_on_other_pair_is_fatal(self, make_record) -> None:
        client = StaticLedgerClient(pages={(TH, 0): LedgerPage({
            "A": make_record("O1", 1.0),
            "B": make_record("O2", 2.0, side="settle", pair="XETHZEUR"),
        }, 2)})
        with pytest.raises(MalformedResponseError):
            fetch_trades(client, "XXBTZEUR")
