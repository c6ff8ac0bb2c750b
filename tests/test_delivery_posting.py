from datetime import timedelta
from decimal import Decimal

import pytest

from feedtrade.models.carrier import CarrierTransaction, CarrierTransactionType
from feedtrade.models.delivery import FreightPayer
from feedtrade.models.ledger import AccountTransaction, ReferenceType, TransactionType
from feedtrade.models.order import OrderStatus, PricingModel
from feedtrade.services import delivery_service
from feedtrade.services.delivery_service import compute_delivery_amounts, create_delivery
from tests.conftest import TODAY, balance_of


@pytest.mark.parametrize("payer, model, expected", [
    (FreightPayer.customer, PricingModel.tir_ustu, ("9800.00", "8000.00")),
    (FreightPayer.customer, PricingModel.nakliye_dahil, ("9800.00", "7800.00")),
    (FreightPayer.me, PricingModel.tir_ustu, ("10000.00", "8000.00")),
    (FreightPayer.me, PricingModel.nakliye_dahil, ("10000.00", "7800.00")),
    (FreightPayer.supplier, PricingModel.nakliye_dahil, ("10000.00", "8000.00")),
])
def test_compute_delivery_amounts(payer, model, expected):
    customer_amount, supplier_amount = compute_delivery_amounts(
        Decimal("1000"), Decimal("10"), Decimal("8"),
        freight_cost=Decimal("200"), freight_payer=payer, pricing_model=model,
    )
    assert (customer_amount, supplier_amount) == (Decimal(expected[0]), Decimal(expected[1]))


def test_compute_delivery_amounts_rounds_half_up():
    customer_amount, _ = compute_delivery_amounts(Decimal("1"), Decimal("0.125"), Decimal("1"))
    assert customer_amount == Decimal("0.13")


def test_delivery_posts_both_sides(db, customer, supplier, make_delivery):
    delivery = make_delivery(freight_cost=Decimal("200"), freight_payer=FreightPayer.customer)

    lines = db.query(AccountTransaction).filter(AccountTransaction.delivery_id == delivery.id).all()
    assert len(lines) == 2
    customer_line = next(t for t in lines if t.reference_type == ReferenceType.sale)
    supplier_line = next(t for t in lines if t.reference_type == ReferenceType.purchase)

    assert customer_line.type == TransactionType.debit
    assert customer_line.amount == Decimal("9800.00")
    assert customer_line.reference_id == delivery.sale_id
    assert supplier_line.type == TransactionType.credit
    assert supplier_line.amount == Decimal("8000.00")
    assert supplier_line.reference_id == delivery.id

    assert balance_of(db, customer) == Decimal("9800.00")
    assert balance_of(db, supplier) == Decimal("-8000.00")


def test_delivery_without_orders_needs_contacts_and_prices(db, customer, supplier):
    with pytest.raises(ValueError):
        create_delivery(db, delivery_date=TODAY, net_weight=Decimal("1000"),
                        customer_contact_id=customer.id, supplier_contact_id=supplier.id)

    delivery = create_delivery(db, delivery_date=TODAY, net_weight=Decimal("1000"),
                               customer_contact_id=customer.id, supplier_contact_id=supplier.id,
                               customer_price=Decimal("4.5"), supplier_price=Decimal("4"))
    assert delivery.sale_id is None
    assert balance_of(db, customer) == Decimal("4500.00")


def test_non_positive_amount_rolls_back(db, customer, supplier, make_delivery):
    with pytest.raises(ValueError):
        make_delivery(net_weight=Decimal("10"), freight_cost=Decimal("500"),
                      freight_payer=FreightPayer.customer)

    assert db.query(AccountTransaction).count() == 0
    assert balance_of(db, customer) == Decimal("0.00")


def test_mismatched_customer_is_rejected(db, supplier, make_delivery):
    with pytest.raises(ValueError, match="does not match"):
        make_delivery(customer_contact_id=supplier.id)


def test_freight_paid_by_us_charges_the_carrier(db, make_delivery):
    delivery = make_delivery(freight_cost=Decimal("900"), carrier_name="Konya Nakliyat",
                             vehicle_plate="42 abc 123")

    charge = db.query(CarrierTransaction).filter(CarrierTransaction.delivery_id == delivery.id).one()
    assert charge.type == CarrierTransactionType.freight_charge
    assert charge.amount == Decimal("900.00")
    assert delivery.vehicle_plate == "42 ABC 123"


def test_freight_paid_by_customer_makes_no_carrier_charge(db, make_delivery):
    make_delivery(freight_cost=Decimal("900"), freight_payer=FreightPayer.customer,
                  carrier_name="Konya Nakliyat")
    assert db.query(CarrierTransaction).count() == 0


def test_sale_moves_to_delivered(db, sale, make_delivery):
    make_delivery(net_weight=Decimal("3000"))
    db.refresh(sale)
    assert sale.delivered_quantity == Decimal("3000")
    assert sale.status == OrderStatus.confirmed

    make_delivery(net_weight=Decimal("2000"))
    db.refresh(sale)
    assert sale.status == OrderStatus.delivered


def test_date_edit_reposts_pair_on_new_date(db, customer, supplier, make_delivery):
    delivery = make_delivery()
    earlier = TODAY - timedelta(days=3)

    delivery_service.update_delivery(db, delivery.id, delivery_date=earlier)

    lines = delivery_service.get_delivery_transactions(db, delivery.id)
    assert len(lines) == 2
    assert {t.transaction_date for t in lines} == {earlier}
    assert db.query(AccountTransaction).filter(AccountTransaction.delivery_id == delivery.id).count() == 4
    assert balance_of(db, customer) == Decimal("10000.00")
    assert balance_of(db, supplier) == Decimal("-8000.00")


def test_superseded_pair_stays_deleted_through_trash_and_restore(db, customer, supplier, make_delivery):
    delivery = make_delivery(freight_cost=Decimal("200"), freight_payer=FreightPayer.customer)
    assert balance_of(db, customer) == Decimal("9800.00")

    delivery_service.update_delivery(db, delivery.id, freight_payer=FreightPayer.me)
    delivery_service.soft_delete_delivery(db, delivery.id)
    assert balance_of(db, customer) == Decimal("0.00")

    delivery_service.restore_delivery(db, delivery.id)

    lines = delivery_service.get_delivery_transactions(db, delivery.id)
    assert sorted(t.amount for t in lines) == [Decimal("8000.00"), Decimal("10000.00")]
    assert balance_of(db, customer) == Decimal("10000.00")
    assert balance_of(db, supplier) == Decimal("-8000.00")
