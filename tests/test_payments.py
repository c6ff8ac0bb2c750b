from datetime import timedelta
from decimal import Decimal

import pytest

from feedtrade.models.check import Check, CheckDirection, CheckStatus, CheckType
from feedtrade.models.payment import PaymentDirection, PaymentMethod
from feedtrade.services import check_service, payment_service
from tests.conftest import TODAY, balance_of


def _pay(db, contact, direction=PaymentDirection.inbound, method=PaymentMethod.cash,
         amount="1500", **extra):
    return payment_service.create_payment(db, contact_id=contact.id, direction=direction, method=method,
                                          amount=Decimal(amount), payment_date=TODAY, **extra)


def test_inbound_payment_credits_and_outbound_debits(db, customer, supplier):
    _pay(db, customer)
    _pay(db, supplier, direction=PaymentDirection.outbound, amount="700")

    assert balance_of(db, customer) == Decimal("-1500.00")
    assert balance_of(db, supplier) == Decimal("700.00")


def test_delete_and_restore_payment_round_trips_balance(db, customer, make_delivery):
    make_delivery()
    payment = _pay(db, customer, amount="4000")
    assert balance_of(db, customer) == Decimal("6000.00")

    payment_service.soft_delete_payment(db, payment.id)
    assert balance_of(db, customer) == Decimal("10000.00")
    assert payment_service.get_payment_by_id(db, payment.id) is None

    payment_service.restore_payment(db, payment.id)
    assert balance_of(db, customer) == Decimal("6000.00")


def test_check_payment_creates_linked_check_without_own_line(db, customer):
    payment = _pay(db, customer, method=PaymentMethod.check, amount="3000",
                   due_date=TODAY + timedelta(days=60), check_no="1234567", bank_name="Ziraat")

    check = db.query(Check).filter(Check.payment_id == payment.id).one()
    assert check.direction == CheckDirection.received
    assert check.check_type == CheckType.check
    assert check.status == CheckStatus.pending
    # The payment line is the only balance effect
    assert balance_of(db, customer) == Decimal("-3000.00")


def test_promissory_note_without_due_date_has_no_check(db, supplier):
    payment = _pay(db, supplier, direction=PaymentDirection.outbound, method=PaymentMethod.promissory_note)
    assert db.query(Check).filter(Check.payment_id == payment.id).count() == 0


def test_linked_check_is_managed_through_its_payment(db, customer):
    payment = _pay(db, customer, method=PaymentMethod.check, due_date=TODAY + timedelta(days=30))
    check = db.query(Check).filter(Check.payment_id == payment.id).one()

    with pytest.raises(ValueError, match="delete the payment"):
        check_service.soft_delete_check(db, check.id)

    payment_service.soft_delete_payment(db, payment.id)
    db.expire_all()
    assert check.deleted_at is not None

    payment_service.restore_payment(db, payment.id)
    db.expire_all()
    assert check.deleted_at is None


def test_payment_with_endorsed_check_cannot_be_deleted(db, customer, supplier):
    payment = _pay(db, customer, method=PaymentMethod.check, due_date=TODAY + timedelta(days=30))
    check = db.query(Check).filter(Check.payment_id == payment.id).one()
    check_service.endorse_check(db, check.id, supplier.id)

    with pytest.raises(ValueError, match="endorsed"):
        payment_service.soft_delete_payment(db, payment.id)


def test_cancelling_linked_check_reverses_payment_line(db, customer):
    payment = _pay(db, customer, method=PaymentMethod.check, amount="2000", due_date=TODAY + timedelta(days=30))
    check = db.query(Check).filter(Check.payment_id == payment.id).one()

    check_service.update_check_status(db, check.id, CheckStatus.cancelled)
    assert balance_of(db, customer) == Decimal("0.00")


def test_permanent_delete_removes_payment_and_check(db, customer):
    payment = _pay(db, customer, method=PaymentMethod.check, due_date=TODAY + timedelta(days=30))
    payment_service.soft_delete_payment(db, payment.id)

    assert payment_service.permanently_delete_payment(db, payment.id) is True
    assert payment_service.get_payment_by_id(db, payment.id, include_deleted=True) is None
    assert db.query(Check).count() == 0
    assert balance_of(db, customer) == Decimal("0.00")


def test_payment_for_unknown_contact(db):
    with pytest.raises(ValueError):
        payment_service.create_payment(db, contact_id="CNT-NOPE", direction=PaymentDirection.inbound,
                                       method=PaymentMethod.cash, amount=Decimal("10"), payment_date=TODAY)
