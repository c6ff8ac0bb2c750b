from datetime import timedelta
from decimal import Decimal

import pytest

from feedtrade.models.delivery import FreightPayer
from feedtrade.models.ledger import AccountTransaction, TransactionType
from feedtrade.services import delivery_service
from tests.conftest import TODAY, balance_of


def test_return_reverses_proportionally(db, customer, supplier, sale, make_delivery):
    delivery = make_delivery(freight_cost=Decimal("200"), freight_payer=FreightPayer.customer)

    ret = delivery_service.create_return_delivery(db, delivery.id, Decimal("250"), return_date=TODAY,
                                                  notes="Islak çıktı")

    assert ret.is_return is True
    assert ret.returned_delivery_id == delivery.id
    lines = db.query(AccountTransaction).filter(AccountTransaction.delivery_id == ret.id).all()
    credit = next(t for t in lines if t.type == TransactionType.credit)
    debit = next(t for t in lines if t.type == TransactionType.debit)
    assert credit.amount == Decimal("2450.00")
    assert debit.amount == Decimal("2000.00")

    assert balance_of(db, customer) == Decimal("7350.00")
    assert balance_of(db, supplier) == Decimal("-6000.00")
    db.refresh(sale)
    assert sale.delivered_quantity == Decimal("750")


def test_cannot_return_more_than_delivered(db, make_delivery):
    delivery = make_delivery()
    delivery_service.create_return_delivery(db, delivery.id, Decimal("600"))

    with pytest.raises(ValueError, match="exceeds"):
        delivery_service.create_return_delivery(db, delivery.id, Decimal("500"))


def test_return_of_a_return_is_rejected(db, make_delivery):
    delivery = make_delivery()
    ret = delivery_service.create_return_delivery(db, delivery.id, Decimal("100"))
    with pytest.raises(ValueError, match="cannot be returned"):
        delivery_service.create_return_delivery(db, ret.id, Decimal("10"))


def test_returns_carry_no_freight(db, make_delivery):
    delivery = make_delivery()
    ret = delivery_service.create_return_delivery(db, delivery.id, Decimal("100"))
    with pytest.raises(ValueError, match="no freight"):
        delivery_service.update_delivery(db, ret.id, freight_cost=Decimal("50"))


def test_deleting_delivery_takes_its_returns(db, customer, make_delivery):
    delivery = make_delivery()
    ret = delivery_service.create_return_delivery(db, delivery.id, Decimal("100"))

    delivery_service.soft_delete_delivery(db, delivery.id)
    assert delivery_service.get_delivery_by_id(db, ret.id) is None
    assert balance_of(db, customer) == Decimal("0.00")

    delivery_service.restore_delivery(db, delivery.id)
    assert delivery_service.get_delivery_by_id(db, ret.id) is not None
    assert balance_of(db, customer) == Decimal("9000.00")


def test_restoring_return_respects_remaining_quantity(db, make_delivery):
    delivery = make_delivery()
    first = delivery_service.create_return_delivery(db, delivery.id, Decimal("600"))
    delivery_service.soft_delete_delivery(db, first.id)
    delivery_service.create_return_delivery(db, delivery.id, Decimal("500"))

    with pytest.raises(ValueError, match="more than delivered"):
        delivery_service.restore_delivery(db, first.id)


def test_returns_filtered_from_listing(db, make_delivery):
    delivery = make_delivery()
    delivery_service.create_return_delivery(db, delivery.id, Decimal("100"))

    assert delivery_service.get_all_deliveries(db)[1] == 2
    assert delivery_service.get_all_deliveries(db, include_returns=False)[1] == 1


def test_return_date_edit_moves_its_lines(db, make_delivery):
    delivery = make_delivery()
    ret = delivery_service.create_return_delivery(db, delivery.id, Decimal("100"), return_date=TODAY)
    later = TODAY + timedelta(days=2)

    delivery_service.update_delivery(db, ret.id, delivery_date=later)

    lines = delivery_service.get_delivery_transactions(db, ret.id)
    assert len(lines) == 2
    assert {t.transaction_date for t in lines} == {later}
