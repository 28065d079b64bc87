"""Automation Schemas — payment settings updates, run reports and settings view.

Invariants:
    - Trigger days are range-checked here (1-31); the ordering rule
      (late fee after billing) is enforced by the domain before persisting
"""

from decimal import Decimal

from pydantic import BaseModel, Field, field_serializer

from pulse.core.academy_state import AcademySettings


class PaymentDaysUpdate(BaseModel):
    billing_day: int = Field(ge=1, le=31)
    late_fee_day: int = Field(ge=1, le=31)


class PaymentSettingsUpdate(BaseModel):
    """Amounts for automatic charges; trigger days keep their value when omitted."""
    monthly_tuition: Decimal = Field(gt=0, max_digits=12, decimal_places=2)
    late_fee_amount: Decimal = Field(gt=0, max_digits=12, decimal_places=2)
    billing_day: int | None = Field(None, ge=1, le=31)
    late_fee_day: int | None = Field(None, ge=1, le=31)


class AutomationRunResponse(BaseModel):
    created: int


class EvaluationResponse(BaseModel):
    ran: dict[str, int]
    failed: list[str]


class SettingsResponse(BaseModel):
    academy_id: str
    name: str
    monthly_tuition: Decimal
    billing_day: int
    late_fee_day: int
    late_fee_amount: Decimal

    @field_serializer("monthly_tuition", "late_fee_amount")
    def amount_as_string(self, v: Decimal) -> str:
        return str(v)

    @classmethod
    def from_domain(cls, settings: AcademySettings) -> "SettingsResponse":
        p = settings.payment
        return cls(
            academy_id=settings.academy_id,
            name=settings.name,
            monthly_tuition=p.monthly_tuition,
            billing_day=p.billing_day,
            late_fee_day=p.late_fee_day,
            late_fee_amount=p.late_fee_amount,
        )
