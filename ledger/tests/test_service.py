"""
Unit Tests for the Ledger Service

Tests cover:
1. Transaction lookup and name resolution
2. Ledger summaries over stored transactions
3. Shop ranking by credit ratio
4. Recording transfers
"""

import threading

import pytest

from ledger.errors import InvalidTransferError, UserNotFoundError
from ledger.models import CreateTransferRequest
from ledger.service import InMemoryStorage, LedgerService


ALICE_ID = 1
BOB_ID = 2
CAROL_ID = 3


def empty_service_with_users(*users) -> LedgerService:
    storage = InMemoryStorage(seed=False)
    for user_id, name in users:
        storage.users[user_id] = {"id": user_id, "name": name, "codename": name.lower()}
    return LedgerService(storage)


class TestTransactionLookup:
    """Tests for fetching a user's transactions."""

    def test_only_transactions_involving_user(self):
        service = LedgerService()

        records = service.get_transactions_for(CAROL_ID)

        assert [r.id for r in records] == [3]
        assert records[0].giver_name == "Alice Baker"
        assert records[0].getter_name == "Carol Diaz"

    def test_unknown_party_resolves_to_no_name(self):
        service = empty_service_with_users((1, "Alice"))
        service.storage.transactions[1] = {
            "id": 1, "name": "Jam", "points": 4, "kind": "product",
            "date_created": "2024-05-01T12:00:00Z", "giver_id": 1, "getter_id": 42,
        }

        records = service.get_transactions_for(1)

        assert records[0].getter_name is None
        assert service.get_ledger_summary(1).counterparty_balances[0].name is None


class TestLedgerSummary:
    """Tests for the ledger summary over stored data."""

    def test_seeded_summary_for_alice(self):
        summary = LedgerService().get_ledger_summary(ALICE_ID)

        assert summary.balance == 25
        assert [(c.id, c.balance) for c in summary.counterparty_balances] == [(BOB_ID, 20), (CAROL_ID, 5)]
        assert summary.stats.avg_transaction == 15

    def test_seeded_summary_for_bob(self):
        summary = LedgerService().get_ledger_summary(BOB_ID)

        # owes Alice 30, is owed 10
        assert summary.balance == -20
        assert summary.counterparty_balances[0].name == "Alice Baker"

    def test_user_without_transactions(self):
        summary = LedgerService().get_ledger_summary(0)

        assert summary.balance == 0
        assert summary.stats.total_transactions == 0


class TestShopRanking:
    """Tests for ranking shops by credit ratio."""

    def test_seeded_ranking(self):
        shops = LedgerService().rank_shops()

        assert [s.id for s in shops] == [ALICE_ID, BOB_ID, CAROL_ID]
        assert shops[0].credit_ratio == 3.5
        assert shops[0].product_count == 2
        assert shops[1].credit_ratio == pytest.approx(1 / 3)
        assert shops[1].service_count == 1
        assert shops[2].credit_ratio == 0

    def test_credit_without_debt_ranks_as_one(self):
        service = empty_service_with_users((1, "Alice"), (2, "Bob"))
        service.record_transfer(1, CreateTransferRequest(getter_id=2, name="Eggs", points=6))

        ratios = {s.id: s.credit_ratio for s in service.rank_shops()}

        assert ratios == {1: 1, 2: 0}

    def test_ties_keep_user_order(self):
        service = empty_service_with_users((1, "Alice"), (2, "Bob"), (3, "Carol"))

        assert [s.id for s in service.rank_shops()] == [1, 2, 3]


class TestRecordTransfer:
    """Tests for recording point transfers."""

    def test_transfer_is_stored_and_aggregated(self):
        service = LedgerService()

        record = service.record_transfer(
            CAROL_ID, CreateTransferRequest(getter_id=ALICE_ID, name="Garden plan", points=20, kind="service")
        )

        assert record.id == 4
        assert record.giver_name == "Carol Diaz"
        assert record.getter_name == "Alice Baker"
        assert service.get_ledger_summary(ALICE_ID).balance == 5
        assert service.get_ledger_summary(CAROL_ID).balance == 15

    def test_unknown_getter_fails(self):
        service = LedgerService()

        with pytest.raises(UserNotFoundError):
            service.record_transfer(ALICE_ID, CreateTransferRequest(getter_id=99, name="Bread", points=3))

    def test_self_transfer_fails(self):
        service = LedgerService()

        with pytest.raises(InvalidTransferError):
            service.record_transfer(ALICE_ID, CreateTransferRequest(getter_id=ALICE_ID, name="Bread", points=3))

        assert len(service.storage.transactions) == 3

    def test_non_positive_points_rejected(self):
        with pytest.raises(ValueError):
            CreateTransferRequest(getter_id=BOB_ID, name="Nothing", points=0)

    def test_concurrent_transfers_get_distinct_ids(self):
        """Test that transfers recorded from many threads are all kept."""
        service = LedgerService()
        threads_count, per_thread = 8, 25
        start = threading.Barrier(threads_count)

        def worker():
            start.wait()
            for _ in range(per_thread):
                service.record_transfer(ALICE_ID, CreateTransferRequest(getter_id=BOB_ID, name="Bread", points=1))

        threads = [threading.Thread(target=worker) for _ in range(threads_count)]
        for t in threads:
            t.start()
        for t in threads:
            t.join()

        expected = 3 + threads_count * per_thread
        assert len(service.storage.transactions) == expected
        assert sorted(service.storage.transactions) == list(range(1, expected + 1))
        # 20 seeded plus one point per transfer
        assert service.get_ledger_summary(ALICE_ID).counterparty_balances[0].balance == 20 + threads_count * per_thread

    def test_ranking_while_transfers_land(self):
        service = LedgerService()
        errors = []

        def writer():
            for _ in range(200):
                service.record_transfer(CAROL_ID, CreateTransferRequest(getter_id=BOB_ID, name="Herbs", points=2))

        def reader():
            try:
                for _ in range(200):
                    service.rank_shops()
            except RuntimeError as e:
                errors.append(e)

        threads = [threading.Thread(target=writer), threading.Thread(target=reader)]
        for t in threads:
            t.start()
        for t in threads:
            t.join()

        assert errors == []
        assert len(service.storage.transactions) == 203


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
