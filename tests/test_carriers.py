from datetime import timedelta
from decimal import Decimal

import pytest

from feedtrade.models.carrier import CarrierTransaction, CarrierTransactionType
from feedtrade.models.delivery import FreightPayer
from feedtrade.models.ledger import AccountTransaction, ReferenceType
from feedtrade.services import carrier_service, delivery_service
from tests.conftest import TODAY, balance_of


def _charges(db, delivery_id):
    return db.query(CarrierTransaction).filter(
        CarrierTransaction.delivery_id == delivery_id,
        CarrierTransaction.deleted_at.is_(None),
    ).all()


def test_carrier_and_vehicle_created_from_delivery(db, make_delivery):
    make_delivery(freight_cost=Decimal("900"), carrier_name="Konya Nakliyat",
                  vehicle_plate="42 abc 123", driver_name="Ali")

    carrier = carrier_service.get_carrier_by_name(db, "Konya Nakliyat")
    assert carrier is not None
    vehicles, total = carrier_service.get_all_vehicles(db, carrier_id=carrier.id)
    assert total == 1
    assert vehicles[0].plate == "42 ABC 123"


def test_balance_and_payments(db, make_delivery):
    make_delivery(freight_cost=Decimal("900"), carrier_name="Konya Nakliyat")
    make_delivery(freight_cost=Decimal("600"), carrier_name="Konya Nakliyat")
    carrier = carrier_service.get_carrier_by_name(db, "Konya Nakliyat")

    payment = carrier_service.create_carrier_payment(db, carrier.id, Decimal("1000"), TODAY,
                                                     payment_method="cash")
    balance = carrier_service.get_carrier_balance(db, carrier.id)
    assert balance["total_freight"] == Decimal("1500.00")
    assert balance["total_paid"] == Decimal("1000.00")
    assert balance["balance"] == Decimal("500.00")

    carrier_service.delete_carrier_payment(db, carrier.id, payment.id)
    assert carrier_service.get_carrier_balance(db, carrier.id)["balance"] == Decimal("1500.00")


def test_freight_charges_cannot_be_deleted_directly(db, make_delivery):
    delivery = make_delivery(freight_cost=Decimal("900"), carrier_name="Konya Nakliyat")
    charge = _charges(db, delivery.id)[0]
    with pytest.raises(ValueError, match="deleting their delivery"):
        carrier_service.delete_carrier_payment(db, charge.carrier_id, charge.id)


def test_duplicate_carrier_name(db):
    carrier_service.create_carrier(db, "Yıldız Lojistik")
    with pytest.raises(ValueError, match="already exists"):
        carrier_service.create_carrier(db, "Yıldız Lojistik")


def test_deactivated_carrier_hidden_by_default(db):
    carrier = carrier_service.create_carrier(db, "Eski Nakliyat")
    carrier_service.deactivate_carrier(db, carrier.id)

    assert carrier_service.get_all_carriers(db)[1] == 0
    assert carrier_service.get_all_carriers(db, include_inactive=True)[1] == 1


def test_freight_edit_reamounts_charge_and_reposts(db, customer, supplier, make_delivery):
    delivery = make_delivery(freight_cost=Decimal("900"), carrier_name="Konya Nakliyat")

    delivery_service.update_delivery(db, delivery.id, freight_cost=Decimal("1200"))
    assert [c.amount for c in _charges(db, delivery.id)] == [Decimal("1200.00")]
    # Payer is us on a tir_ustu purchase, amounts are unchanged
    assert balance_of(db, customer) == Decimal("10000.00")
    assert balance_of(db, supplier) == Decimal("-8000.00")


def test_payer_change_to_customer_drops_charge(db, customer, make_delivery):
    delivery = make_delivery(freight_cost=Decimal("900"), carrier_name="Konya Nakliyat")

    delivery_service.update_delivery(db, delivery.id, freight_payer=FreightPayer.customer)

    assert _charges(db, delivery.id) == []
    assert balance_of(db, customer) == Decimal("9100.00")
    live = delivery_service.get_delivery_transactions(db, delivery.id)
    assert len(live) == 2
    assert db.query(AccountTransaction).filter(
        AccountTransaction.delivery_id == delivery.id,
        AccountTransaction.reference_type == ReferenceType.sale,
    ).count() == 2


def test_carrier_change_moves_charge(db, make_delivery):
    delivery = make_delivery(freight_cost=Decimal("900"), carrier_name="Konya Nakliyat")

    delivery_service.update_delivery(db, delivery.id, carrier_name="Yıldız Lojistik")

    charges = _charges(db, delivery.id)
    new_carrier = carrier_service.get_carrier_by_name(db, "Yıldız Lojistik")
    assert [c.carrier_id for c in charges] == [new_carrier.id]
    assert charges[0].type == CarrierTransactionType.freight_charge


def test_deleting_delivery_hides_its_charge(db, make_delivery):
    delivery = make_delivery(freight_cost=Decimal("900"), carrier_name="Konya Nakliyat")
    carrier = carrier_service.get_carrier_by_name(db, "Konya Nakliyat")

    delivery_service.soft_delete_delivery(db, delivery.id)
    assert carrier_service.get_carrier_balance(db, carrier.id)["balance"] == Decimal("0.00")

    delivery_service.restore_delivery(db, delivery.id)
    assert carrier_service.get_carrier_balance(db, carrier.id)["balance"] == Decimal("900.00")


def test_date_edit_moves_freight_charge(db, make_delivery):
    delivery = make_delivery(freight_cost=Decimal("900"), carrier_name="Konya Nakliyat")
    earlier = TODAY - timedelta(days=5)

    delivery_service.update_delivery(db, delivery.id, delivery_date=earlier)

    assert [(c.amount, c.transaction_date) for c in _charges(db, delivery.id)] == [(Decimal("900.00"), earlier)]
