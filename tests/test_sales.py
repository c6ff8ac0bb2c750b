from decimal import Decimal

import pytest

from feedtrade.models.carrier import CarrierTransaction
from feedtrade.models.ledger import AccountTransaction
from feedtrade.models.order import OrderStatus
from feedtrade.services import delivery_service, sale_service
from tests.conftest import TODAY, balance_of


def test_sale_number_and_total(sale):
    assert sale.sale_no.startswith(f"SAT-{TODAY.year}-")
    assert sale.total_amount == Decimal("50000.00")
    assert sale.delivered_quantity == Decimal("0")


def test_cannot_create_cancelled_sale(db, customer):
    with pytest.raises(ValueError):
        sale_service.create_sale(db, contact_id=customer.id, quantity=Decimal("1"), unit_price=Decimal("1"),
                                 sale_date=TODAY, status=OrderStatus.cancelled)


def test_cancel_sale_reverses_both_sides(db, customer, supplier, sale, make_delivery):
    make_delivery(freight_cost=Decimal("900"), carrier_name="Konya Nakliyat")
    make_delivery(net_weight=Decimal("500"))
    assert balance_of(db, customer) == Decimal("15000.00")

    cancelled = sale_service.cancel_sale(db, sale.id, reason="Müşteri vazgeçti")

    assert cancelled.status == OrderStatus.cancelled
    assert "İptal: Müşteri vazgeçti" in cancelled.notes
    assert balance_of(db, customer) == Decimal("0.00")
    assert balance_of(db, supplier) == Decimal("0.00")
    assert db.query(CarrierTransaction).filter(CarrierTransaction.deleted_at.is_(None)).count() == 0
    # Deliveries stay as history
    assert delivery_service.get_all_deliveries(db, sale_id=sale.id)[1] == 2


def test_cancelled_sale_blocks_new_deliveries_and_edits(db, sale, make_delivery):
    sale_service.cancel_sale(db, sale.id)

    with pytest.raises(ValueError, match="cancelled"):
        make_delivery()
    with pytest.raises(ValueError, match="already cancelled"):
        sale_service.cancel_sale(db, sale.id)
    with pytest.raises(ValueError):
        sale_service.update_sale(db, sale.id, notes="x")


def test_update_cannot_cancel(db, sale):
    with pytest.raises(ValueError, match="cancel endpoint"):
        sale_service.update_sale(db, sale.id, status=OrderStatus.cancelled)


def test_reassign_moves_lines_to_new_customer(db, customer, customer2, supplier, sale, make_delivery):
    make_delivery()
    make_delivery(net_weight=Decimal("500"))

    reassigned = sale_service.reassign_sale(db, sale.id, customer2.id, new_unit_price=Decimal("11"))

    assert reassigned.contact_id == customer2.id
    assert reassigned.unit_price == Decimal("11")
    assert reassigned.total_amount == Decimal("55000.00")
    assert balance_of(db, customer) == Decimal("0.00")
    assert balance_of(db, customer2) == Decimal("16500.00")
    # Supplier side is untouched
    assert balance_of(db, supplier) == Decimal("-12000.00")


def test_reassign_credits_returns_proportionally(db, customer2, sale, make_delivery):
    delivery = make_delivery()
    delivery_service.create_return_delivery(db, delivery.id, Decimal("250"), return_date=TODAY)

    sale_service.reassign_sale(db, sale.id, customer2.id, new_unit_price=Decimal("12"))

    # 1000 kg * 12 = 12000, minus a quarter returned
    assert balance_of(db, customer2) == Decimal("9000.00")


def test_reassign_moves_trashed_delivery_to_new_customer(db, customer, customer2, sale, make_delivery):
    make_delivery()
    trashed = make_delivery()
    delivery_service.soft_delete_delivery(db, trashed.id)

    sale_service.reassign_sale(db, sale.id, customer2.id)
    assert balance_of(db, customer) == Decimal("0.00")
    assert balance_of(db, customer2) == Decimal("10000.00")

    delivery_service.restore_delivery(db, trashed.id)

    assert balance_of(db, customer) == Decimal("0.00")
    assert balance_of(db, customer2) == Decimal("20000.00")
    customer_lines = [t for t in delivery_service.get_delivery_transactions(db, trashed.id)
                      if t.account_id == customer2.account.id]
    assert len(customer_lines) == 1


def test_reassign_moves_trashed_return_with_its_delivery(db, customer, customer2, sale, make_delivery):
    delivery = make_delivery()
    delivery_service.create_return_delivery(db, delivery.id, Decimal("500"), return_date=TODAY)
    delivery_service.soft_delete_delivery(db, delivery.id)

    sale_service.reassign_sale(db, sale.id, customer2.id, new_unit_price=Decimal("12"))
    delivery_service.restore_delivery(db, delivery.id)

    assert balance_of(db, customer) == Decimal("0.00")
    # 1000 kg * 12 less half returned
    assert balance_of(db, customer2) == Decimal("6000.00")


def test_soft_delete_and_restore_sale_with_deliveries(db, customer, supplier, sale, make_delivery):
    delivery = make_delivery()
    sale_service.soft_delete_sale(db, sale.id)

    assert sale_service.get_sale_by_id(db, sale.id) is None
    assert delivery_service.get_delivery_by_id(db, delivery.id) is None
    assert balance_of(db, customer) == Decimal("0.00")
    assert balance_of(db, supplier) == Decimal("0.00")

    restored = sale_service.restore_sale(db, sale.id)
    assert restored.deleted_at is None
    assert restored.delivered_quantity == Decimal("1000")
    assert balance_of(db, customer) == Decimal("10000.00")
    assert balance_of(db, supplier) == Decimal("-8000.00")


def test_restore_keeps_separately_deleted_delivery_in_trash(db, customer, sale, make_delivery):
    first = make_delivery()
    second = make_delivery(net_weight=Decimal("500"))
    delivery_service.soft_delete_delivery(db, first.id)
    sale_service.soft_delete_sale(db, sale.id)

    sale_service.restore_sale(db, sale.id)

    assert delivery_service.get_delivery_by_id(db, first.id) is None
    assert delivery_service.get_delivery_by_id(db, second.id) is not None
    assert balance_of(db, customer) == Decimal("5000.00")


def test_permanently_delete_sale(db, customer, sale, make_delivery):
    make_delivery()
    sale_service.soft_delete_sale(db, sale.id)

    assert sale_service.permanently_delete_sale(db, sale.id) is True
    assert sale_service.get_sale_by_id(db, sale.id, include_deleted=True) is None
    assert db.query(AccountTransaction).count() == 0
    assert balance_of(db, customer) == Decimal("0.00")


def test_search_sales_by_customer_name(db, sale):
    sales, total = sale_service.get_all_sales(db, search="Ahmet")
    assert total == 1 and sales[0].id == sale.id
    assert sale_service.get_all_sales(db, search="Yok")[1] == 0
