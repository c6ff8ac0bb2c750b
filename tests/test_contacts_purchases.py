from decimal import Decimal

import pytest

from feedtrade.models.contact import ContactType
from feedtrade.models.order import OrderStatus
from feedtrade.models.payment import PaymentDirection, PaymentMethod
from feedtrade.services import contact_service, delivery_service, payment_service, purchase_service
from tests.conftest import TODAY


def test_contact_gets_empty_account(db, customer):
    account = customer.account
    assert account is not None
    assert account.balance == Decimal("0.00")
    assert account.total_debit == Decimal("0.00")


def test_type_filter_includes_both(db, customer, supplier):
    both = contact_service.create_contact(db, name="Karma Ticaret", type=ContactType.both)

    suppliers, total = contact_service.get_all_contacts(db, type=ContactType.supplier)
    assert total == 2
    assert {c.id for c in suppliers} == {supplier.id, both.id}


def test_update_contact(db, customer):
    updated = contact_service.update_contact(db, customer.id, city="Konya", phone="05321234567")
    assert updated.city == "Konya"
    assert contact_service.get_all_contacts(db, search="Konya")[1] == 1


def test_contact_with_transactions_cannot_be_deleted(db, customer):
    payment = payment_service.create_payment(db, contact_id=customer.id, direction=PaymentDirection.inbound,
                                             method=PaymentMethod.cash, amount=Decimal("10"), payment_date=TODAY)
    with pytest.raises(ValueError, match="active transactions"):
        contact_service.delete_contact(db, customer.id)

    # Trashed payment line still sits on the account
    payment_service.soft_delete_payment(db, payment.id)
    with pytest.raises(ValueError, match="trash"):
        contact_service.delete_contact(db, customer.id)


def test_delete_unused_contact(db):
    contact = contact_service.create_contact(db, name="Geçici", type=ContactType.customer)
    assert contact_service.delete_contact(db, contact.id) is True
    assert contact_service.get_contact_by_id(db, contact.id) is None
    assert contact_service.delete_contact(db, contact.id) is False


def test_contact_with_trashed_delivery_lines_cannot_be_deleted(db, supplier):
    buyer = contact_service.create_contact(db, name="Yeni Alıcı", type=ContactType.customer)
    delivery = delivery_service.create_delivery(
        db, delivery_date=TODAY, net_weight=Decimal("1000"),
        customer_contact_id=buyer.id, supplier_contact_id=supplier.id,
        customer_price=Decimal("10"), supplier_price=Decimal("8"),
    )
    delivery_service.soft_delete_delivery(db, delivery.id)

    with pytest.raises(ValueError, match="trash"):
        contact_service.delete_contact(db, buyer.id)

    delivery_service.restore_delivery(db, delivery.id)
    lines = delivery_service.get_delivery_transactions(db, delivery.id)
    assert sorted(t.type.value for t in lines) == ["credit", "debit"]


def test_purchase_number_and_total(purchase):
    assert purchase.purchase_no.startswith(f"AL-{TODAY.year}-")
    assert purchase.total_amount == Decimal("40000.00")


def test_purchase_with_deliveries_cannot_be_cancelled_or_deleted(db, purchase, make_delivery):
    delivery = make_delivery()

    with pytest.raises(ValueError, match="deliveries"):
        purchase_service.update_purchase(db, purchase.id, status=OrderStatus.cancelled)
    with pytest.raises(ValueError, match="deliveries"):
        purchase_service.soft_delete_purchase(db, purchase.id)

    delivery_service.soft_delete_delivery(db, delivery.id)
    assert purchase_service.soft_delete_purchase(db, purchase.id).deleted_at is not None
    # Trashed delivery still points at it
    with pytest.raises(ValueError, match="deliveries"):
        purchase_service.permanently_delete_purchase(db, purchase.id)


def test_purchase_price_change_does_not_touch_posted_lines(db, supplier, purchase, make_delivery):
    make_delivery()
    purchase_service.update_purchase(db, purchase.id, unit_price=Decimal("9"))

    db.expire_all()
    assert supplier.account.balance == Decimal("-8000.00")
    second = make_delivery()
    assert second.supplier_price == Decimal("9")
