from datetime import datetime
from typing import Optional
from pydantic import BaseModel, Field, ConfigDict
from pydantic.alias_generators import to_camel


class LedgerModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class TransactionRecord(LedgerModel):
    id: int
    name: str
    points: int = Field(..., ge=0, description="Points moved, direction given by the party fields")
    kind: str
    date_created: datetime
    giver_id: int
    getter_id: int
    giver_name: Optional[str] = None
    getter_name: Optional[str] = None

    model_config = ConfigDict(frozen=True, from_attributes=True)


class AnnotatedTransaction(TransactionRecord):
    other_party: Optional[str] = None


class CounterpartyBalance(LedgerModel):
    id: int
    name: Optional[str] = None
    balance: int = 0


class LedgerStats(LedgerModel):
    total_transactions: int = 0
    unique_partners: int = 0
    avg_transaction: float = 0


class LedgerSummary(LedgerModel):
    balance: int = 0
    counterparty_balances: list[CounterpartyBalance] = Field(default_factory=list)
    annotated_transactions: list[AnnotatedTransaction] = Field(default_factory=list)
    stats: LedgerStats = Field(default_factory=LedgerStats)


class ShopStanding(LedgerModel):
    id: int
    name: str
    codename: Optional[str] = None
    product_count: int = 0
    service_count: int = 0
    credit_total: int = 0
    debt_total: int = 0
    credit_ratio: float = 0


class ShopsResponse(LedgerModel):
    shops: list[ShopStanding]


class CreateTransferRequest(LedgerModel):
    getter_id: int = Field(..., description="User receiving the points")
    name: str = Field(..., min_length=1, description="Free-text label for the transfer")
    points: int = Field(..., gt=0)
    kind: str = Field(default="product")

    model_config = ConfigDict(json_schema_extra={
        "example": {
            "getterId": 2,
            "name": "Sourdough loaves",
            "points": 30,
            "kind": "product"
        }
    })
