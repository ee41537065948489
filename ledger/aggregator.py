"""
Balance aggregation for a single subject user.

Turns the point transfers a user took part in into a net balance, a
per-counterparty breakdown, annotated transactions and summary stats.
Sign convention: the giver is owed. Subject as giver adds the points,
subject as getter subtracts them.
"""

import logging
from typing import Iterable

from .errors import LedgerContractError
from .models import (
    AnnotatedTransaction,
    CounterpartyBalance,
    LedgerStats,
    LedgerSummary,
    TransactionRecord,
)

logger = logging.getLogger(__name__)


class LedgerAggregator:
    def __init__(self, strict: bool = True):
        self.strict = strict

    def aggregate(self, subject_id: int, records: Iterable[TransactionRecord]) -> LedgerSummary:
        records = list(records)
        if self.strict:
            for record in records:
                self._check_record(subject_id, record)

        balance = 0
        counterparties: dict[int, dict] = {}
        annotated = []

        for record in records:
            is_subject_getter = record.getter_id == subject_id
            signed_amount = -record.points if is_subject_getter else record.points
            balance += signed_amount

            if is_subject_getter:
                other_id, other_name = record.giver_id, record.giver_name
            else:
                other_id, other_name = record.getter_id, record.getter_name

            # first name seen for a counterparty is kept
            if other_id not in counterparties:
                counterparties[other_id] = {"id": other_id, "name": other_name, "balance": 0}
            counterparties[other_id]["balance"] += signed_amount

            annotated.append(AnnotatedTransaction(**record.model_dump(), other_party=other_name))

        total = len(records)
        stats = LedgerStats(
            total_transactions=total,
            unique_partners=len(counterparties),
            avg_transaction=sum(r.points for r in records) / total if total > 0 else 0,
        )

        logger.debug(
            "Aggregated %d transactions for user %s: balance=%d partners=%d",
            total, subject_id, balance, stats.unique_partners,
        )

        return LedgerSummary(
            balance=balance,
            counterparty_balances=[CounterpartyBalance(**c) for c in counterparties.values()],
            annotated_transactions=annotated,
            stats=stats,
        )

    @staticmethod
    def _check_record(subject_id: int, record: TransactionRecord) -> None:
        is_giver = record.giver_id == subject_id
        is_getter = record.getter_id == subject_id
        if is_giver and is_getter:
            raise LedgerContractError(
                f"Transaction {record.id} has user {subject_id} as both giver and getter"
            )
        if not (is_giver or is_getter):
            raise LedgerContractError(
                f"Transaction {record.id} does not involve user {subject_id}"
            )


def aggregate_ledger(
    subject_id: int,
    records: Iterable[TransactionRecord],
    strict: bool = True,
) -> LedgerSummary:
    return LedgerAggregator(strict=strict).aggregate(subject_id, records)
