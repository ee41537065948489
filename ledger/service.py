import logging
import threading
from datetime import datetime, timezone
from typing import Optional

from .aggregator import LedgerAggregator
from .errors import InvalidTransferError, UserNotFoundError
from .models import (
    CreateTransferRequest,
    LedgerSummary,
    ShopStanding,
    TransactionRecord,
)

logger = logging.getLogger(__name__)


class InMemoryStorage:
    def __init__(self, seed: bool = True):
        self.users: dict[int, dict] = {}
        self.transactions: dict[int, dict] = {}
        self.products: dict[int, dict] = {}
        self.services: dict[int, dict] = {}
        self._lock = threading.Lock()
        if seed:
            self._seed_data()

    def _seed_data(self):
        now = datetime.now(timezone.utc)

        for user_id, name, codename in (
            (1, "Alice Baker", "alice"),
            (2, "Bob Carter", "bob"),
            (3, "Carol Diaz", "carol"),
        ):
            self.users[user_id] = {
                "id": user_id, "name": name, "codename": codename,
                "created_at": now,
            }

        self.products[1] = {"id": 1, "user_id": 1, "name": "Sourdough loaf", "points": 15}
        self.products[2] = {"id": 2, "user_id": 1, "name": "Rye crackers", "points": 5}
        self.products[3] = {"id": 3, "user_id": 2, "name": "Spare inner tube", "points": 8}
        self.services[1] = {"id": 1, "user_id": 2, "name": "Bike repair", "points": 10}
        self.services[2] = {"id": 2, "user_id": 3, "name": "Garden planning", "points": 20}

        for tx_id, name, points, kind, giver_id, getter_id in (
            (1, "Sourdough loaves", 30, "product", 1, 2),
            (2, "Bike repair", 10, "service", 2, 1),
            (3, "Tomato seedlings", 5, "product", 1, 3),
        ):
            self.transactions[tx_id] = {
                "id": tx_id, "name": name, "points": points, "kind": kind,
                "date_created": now, "giver_id": giver_id, "getter_id": getter_id,
            }

    def transaction_rows(self) -> list[dict]:
        with self._lock:
            return list(self.transactions.values())

    def add_transaction(self, data: dict) -> dict:
        """Assign the next integer id and store the row in one step."""
        with self._lock:
            tx_id = max(self.transactions, default=0) + 1
            row = {"id": tx_id, **data}
            self.transactions[tx_id] = row
        return row


class LedgerService:
    def __init__(self, storage: Optional[InMemoryStorage] = None, strict: bool = True):
        self.storage = storage or InMemoryStorage()
        self.aggregator = LedgerAggregator(strict=strict)

    def get_user(self, user_id: int) -> dict:
        user = self.storage.users.get(user_id)
        if not user:
            raise UserNotFoundError(f"User {user_id} not found")
        return user

    def get_transactions_for(self, user_id: int) -> list[TransactionRecord]:
        rows = [
            tx for tx in self.storage.transaction_rows()
            if tx["giver_id"] == user_id or tx["getter_id"] == user_id
        ]
        rows.sort(key=lambda tx: tx["id"])
        return [self._to_record(tx) for tx in rows]

    def get_ledger_summary(self, user_id: int) -> LedgerSummary:
        return self.aggregator.aggregate(user_id, self.get_transactions_for(user_id))

    def rank_shops(self) -> list[ShopStanding]:
        standings = []
        rows = self.storage.transaction_rows()
        for user in list(self.storage.users.values()):
            user_id = user["id"]
            credit_total = sum(
                tx["points"] for tx in rows
                if tx["giver_id"] == user_id
            )
            debt_total = sum(
                tx["points"] for tx in rows
                if tx["getter_id"] == user_id
            )
            if debt_total > 0:
                credit_ratio = credit_total / debt_total
            else:
                credit_ratio = 1 if credit_total > 0 else 0

            standings.append(ShopStanding(
                id=user_id,
                name=user["name"],
                codename=user.get("codename"),
                product_count=sum(1 for p in self.storage.products.values() if p["user_id"] == user_id),
                service_count=sum(1 for s in self.storage.services.values() if s["user_id"] == user_id),
                credit_total=credit_total,
                debt_total=debt_total,
                credit_ratio=credit_ratio,
            ))

        standings.sort(key=lambda s: s.credit_ratio, reverse=True)
        return standings

    def record_transfer(self, giver_id: int, request: CreateTransferRequest) -> TransactionRecord:
        self.get_user(giver_id)
        self.get_user(request.getter_id)
        if giver_id == request.getter_id:
            logger.warning("Rejected self-transfer of %d points by user %s", request.points, giver_id)
            raise InvalidTransferError("Cannot transfer points to yourself")

        tx_data = self.storage.add_transaction({
            "name": request.name,
            "points": request.points,
            "kind": request.kind,
            "date_created": datetime.now(timezone.utc),
            "giver_id": giver_id,
            "getter_id": request.getter_id,
        })

        logger.info(
            "Recorded transaction %d: %d points from user %s to user %s",
            tx_data["id"], request.points, giver_id, request.getter_id,
        )
        return self._to_record(tx_data)

    def _user_name(self, user_id: int) -> Optional[str]:
        user = self.storage.users.get(user_id)
        return user["name"] if user else None

    def _to_record(self, tx: dict) -> TransactionRecord:
        return TransactionRecord(
            **tx,
            giver_name=self._user_name(tx["giver_id"]),
            getter_name=self._user_name(tx["getter_id"]),
        )
