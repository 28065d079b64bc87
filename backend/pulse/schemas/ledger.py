"""Ledger Schemas — charge/payment requests and ledger/balance responses.

Invariants:
    - Amounts are Decimal > 0 at the boundary (floats never reach the ledger)
    - Amounts serialize as decimal strings
    - Omitted dates default to the academy's local today in the service
"""

import datetime
from decimal import Decimal

from pydantic import BaseModel, ConfigDict, Field, field_serializer

from pulse.core.domain_types import (
    ChargeCategory, PaymentMethod, RecordKind, RecordStatus, StudentStatus,
)


class ChargeCreate(BaseModel):
    student_id: str = Field(min_length=1, max_length=64)
    amount: Decimal = Field(gt=0, max_digits=12, decimal_places=2)
    category: ChargeCategory = ChargeCategory.OTHER
    date: datetime.date | None = None
    concept: str = Field("", max_length=500)


class PaymentCreate(BaseModel):
    student_id: str = Field(min_length=1, max_length=64)
    amount: Decimal = Field(gt=0, max_digits=12, decimal_places=2)
    method: PaymentMethod = PaymentMethod.CASH
    date: datetime.date | None = None
    system_generated: bool = False
    concept: str = Field("", max_length=500)


class LedgerRecordResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    student_id: str
    kind: RecordKind
    amount: Decimal
    date: datetime.date
    status: RecordStatus
    category: str | None
    method: str | None
    concept: str

    @field_serializer("amount")
    def amount_as_string(self, v: Decimal) -> str:
        return str(v)


class BalanceResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    student_id: str
    balance: Decimal
    status: StudentStatus

    @field_serializer("balance")
    def balance_as_string(self, v: Decimal) -> str:
        return str(v)
