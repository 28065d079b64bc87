"""Request/response schemas — boundary validation before anything reaches the services.

Invariants:
    - move exceptions require target_date; other kinds forbid it
    - Times must be HH:MM (24h)
    - A class names at least one weekday; weekdays come back in calendar order
    - Amounts are positive Decimals and serialize as strings
    - Trigger days are range-checked (1-31)
    - Events carry their initial registrants into the domain
"""

from datetime import date
from decimal import Decimal

import pytest
from pydantic import ValidationError

from pulse.core.academy_state import AcademySettings, ClassDefinition
from pulse.core.domain_types import ExceptionKind, Weekday
from pulse.schemas.automation import (
    PaymentDaysUpdate, PaymentSettingsUpdate, SettingsResponse,
)
from pulse.schemas.ledger import ChargeCreate, PaymentCreate
from pulse.schemas.schedule import (
    ClassCreate, ClassResponse, EventCreate, SessionExceptionBody,
)


# --- SessionExceptionBody -----------------------------------------------------

def test_move_requires_target_date():
    with pytest.raises(ValidationError):
        SessionExceptionBody(date=date(2025, 3, 10), kind="move")


def test_cancel_rejects_target_date():
    with pytest.raises(ValidationError):
        SessionExceptionBody(date=date(2025, 3, 10), kind="cancel", target_date=date(2025, 3, 11))


def test_move_to_domain_keeps_target():
    body = SessionExceptionBody(
        date=date(2025, 3, 10), kind="move", target_date=date(2025, 3, 11), reason="Mat repair",
    )
    exc = body.to_domain()
    assert exc.kind == ExceptionKind.MOVE
    assert exc.target_date == date(2025, 3, 11)
    assert exc.reason == "Mat repair"


@pytest.mark.parametrize("value", ["6pm", "24:00", "9:00", "18:60"])
def test_reschedule_time_must_be_hhmm(value):
    with pytest.raises(ValidationError):
        SessionExceptionBody(date=date(2025, 3, 10), kind="reschedule", new_start_time=value)


# --- ClassCreate / ClassResponse ----------------------------------------------

def test_class_needs_a_weekday():
    with pytest.raises(ValidationError):
        ClassCreate(name="Judo", weekdays=[], start_time="18:00", end_time="19:00")


def test_class_name_cannot_be_blank():
    with pytest.raises(ValidationError):
        ClassCreate(name="   ", weekdays=["Monday"], start_time="18:00", end_time="19:00")


def test_class_to_domain_binds_academy():
    body = ClassCreate(name=" Judo ", weekdays=["Friday", "Monday"], start_time="18:00", end_time="19:00")
    cls = body.to_domain("ac-9")
    assert cls.academy_id == "ac-9"
    assert cls.name == "Judo"
    assert cls.weekdays == {Weekday.MONDAY, Weekday.FRIDAY}


def test_class_response_lists_weekdays_in_calendar_order():
    cls = ClassDefinition(
        id="cls-1", academy_id="ac-1", name="Judo",
        weekdays={Weekday.SUNDAY, Weekday.TUESDAY, Weekday.MONDAY},
        start_time="18:00", end_time="19:00", instructor="",
    )
    resp = ClassResponse.model_validate(cls)
    assert resp.weekdays == [Weekday.MONDAY, Weekday.TUESDAY, Weekday.SUNDAY]


# --- Ledger -------------------------------------------------------------------

@pytest.mark.parametrize("amount", ["0", "-5", "abc"])
def test_charge_amount_must_be_positive_number(amount):
    with pytest.raises(ValidationError):
        ChargeCreate(student_id="stu-1", amount=amount)


def test_payment_defaults():
    body = PaymentCreate(student_id="stu-1", amount="12.50")
    assert body.amount == Decimal("12.50")
    assert body.method.value == "Efectivo"
    assert body.date is None
    assert body.system_generated is False


# --- Automation ---------------------------------------------------------------

@pytest.mark.parametrize("billing, late", [(0, 10), (1, 32)])
def test_trigger_days_out_of_range(billing, late):
    with pytest.raises(ValidationError):
        PaymentDaysUpdate(billing_day=billing, late_fee_day=late)


def test_settings_response_serializes_amounts_as_strings():
    resp = SettingsResponse.from_domain(AcademySettings(academy_id="ac-1"))
    dumped = resp.model_dump(mode="json")
    assert dumped["monthly_tuition"] == "800"
    assert dumped["late_fee_amount"] == "150"


@pytest.mark.parametrize("tuition", ["0", "-5", "12.345"])
def test_payment_settings_amounts(tuition):
    with pytest.raises(ValidationError):
        PaymentSettingsUpdate(monthly_tuition=tuition, late_fee_amount="90")


def test_payment_settings_days_are_optional():
    body = PaymentSettingsUpdate(monthly_tuition="650", late_fee_amount="90")
    assert body.monthly_tuition == Decimal("650")
    assert body.billing_day is None


# --- Events -------------------------------------------------------------------

def test_event_to_domain_keeps_registrants():
    body = EventCreate(
        title="Seminar", date=date(2025, 3, 29), time="11:00", registrant_ids=["stu-ana"],
    )
    event = body.to_domain("ac-1")
    assert event.registrant_ids == ["stu-ana"]
    assert event.academy_id == "ac-1"
