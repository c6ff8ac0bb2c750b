from datetime import timedelta
from decimal import Decimal

import pytest

from feedtrade.models.audit import AuditAction
from feedtrade.models.check import Check
from feedtrade.models.ledger import AccountTransaction
from feedtrade.models.payment import PaymentDirection, PaymentMethod
from feedtrade.services import delivery_service, payment_service, sale_service, trash_service
from feedtrade.services.audit_service import get_audit_logs, snapshot
from feedtrade.services.ledger_service import utcnow
from tests.conftest import TODAY, balance_of


def test_trash_lists_deleted_documents(db, customer, make_delivery):
    delivery = make_delivery()
    payment = payment_service.create_payment(db, contact_id=customer.id, direction=PaymentDirection.inbound,
                                             method=PaymentMethod.cash, amount=Decimal("100"),
                                             payment_date=TODAY)
    delivery_service.soft_delete_delivery(db, delivery.id)
    payment_service.soft_delete_payment(db, payment.id)

    items = trash_service.list_trash(db)
    assert {(i["table"], i["id"]) for i in items} == {("deliveries", delivery.id), ("payments", payment.id)}
    # Newest first
    assert items[0]["id"] == payment.id
    assert items[1]["summary"].startswith("Sevkiyat 1.000 kg")

    only_payments = trash_service.list_trash(db, table="payments")
    assert [i["id"] for i in only_payments] == [payment.id]


def test_rows_deleted_with_parent_are_hidden(db, sale, make_delivery):
    delivery = make_delivery()
    ret = delivery_service.create_return_delivery(db, delivery.id, Decimal("100"))
    delivery_service.soft_delete_delivery(db, delivery.id)

    ids = [i["id"] for i in trash_service.list_trash(db)]
    assert delivery.id in ids
    assert ret.id not in ids

    sale_service.soft_delete_sale(db, sale.id)
    ids = [i["id"] for i in trash_service.list_trash(db)]
    assert sale.id in ids


def test_linked_check_hidden_behind_its_payment(db, customer):
    payment = payment_service.create_payment(db, contact_id=customer.id, direction=PaymentDirection.inbound,
                                             method=PaymentMethod.check, amount=Decimal("100"),
                                             payment_date=TODAY, due_date=TODAY + timedelta(days=10))
    payment_service.soft_delete_payment(db, payment.id)

    tables = [i["table"] for i in trash_service.list_trash(db)]
    assert tables == ["payments"]
    assert db.query(Check).filter(Check.deleted_at.isnot(None)).count() == 1


def test_items_older_than_retention_are_not_listed(db, make_delivery):
    delivery = make_delivery()
    delivery_service.soft_delete_delivery(db, delivery.id)
    row = delivery_service.get_delivery_by_id(db, delivery.id, include_deleted=True)
    row.deleted_at = utcnow() - timedelta(days=31)
    db.commit()

    assert trash_service.list_trash(db) == []


def test_restore_item_dispatches(db, customer, make_delivery):
    delivery = make_delivery()
    delivery_service.soft_delete_delivery(db, delivery.id)

    restored = trash_service.restore_item(db, "deliveries", delivery.id)
    assert restored.id == delivery.id
    assert balance_of(db, customer) == Decimal("10000.00")
    assert trash_service.restore_item(db, "deliveries", "DLV-MISSING") is None


def test_permanent_delete_only_from_trash(db, make_delivery):
    delivery = make_delivery()
    with pytest.raises(ValueError, match="not in the trash"):
        trash_service.permanently_delete_item(db, "deliveries", delivery.id)

    delivery_service.soft_delete_delivery(db, delivery.id)
    assert trash_service.permanently_delete_item(db, "deliveries", delivery.id) is True
    assert db.query(AccountTransaction).count() == 0
    assert trash_service.permanently_delete_item(db, "deliveries", delivery.id) is False


def test_unknown_trash_table(db):
    with pytest.raises(ValueError, match="Unknown trash table"):
        trash_service.list_trash(db, table="users")


def test_audit_trail_for_delivery_lifecycle(db, make_delivery):
    delivery = make_delivery()
    delivery_service.soft_delete_delivery(db, delivery.id, user_email="staff@example.com")
    delivery_service.restore_delivery(db, delivery.id, user_email="staff@example.com")

    logs, total = get_audit_logs(db, table_name="deliveries", record_id=delivery.id)
    assert total == 3
    assert {log.action for log in logs} == {AuditAction.create, AuditAction.delete, AuditAction.restore}

    deleted = get_audit_logs(db, table_name="deliveries", action=AuditAction.delete)[0][0]
    assert deleted.user_email == "staff@example.com"
    assert deleted.old_values["deleted_at"] is None
    assert deleted.new_values["deleted_at"] is not None
    assert Decimal(deleted.old_values["net_weight"]) == Decimal("1000")


def test_snapshot_skips_password_hash(owner):
    values = snapshot(owner)
    assert "password_hash" not in values
    assert values["role"] == "owner"
