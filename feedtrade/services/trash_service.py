"""
Trash (çöp kutusu)

Lists recently soft-deleted documents and dispatches restore / permanent
delete to the owning service, which knows what was deleted together with
the row.
"""

from datetime import timedelta
from typing import Any, Callable, Dict, List, Optional

from sqlalchemy.orm import Session

from feedtrade.core.config import settings
from feedtrade.models.delivery import Delivery
from feedtrade.models.check import Check
from feedtrade.models.payment import Payment
from feedtrade.models.order import Sale, Purchase
from feedtrade.services.ledger_service import utcnow
from feedtrade.services import (
    delivery_service, check_service, payment_service, sale_service, purchase_service,
)
from feedtrade.logger_config import logger

TRASH_TABLES: Dict[str, Dict[str, Any]] = {
    "deliveries": {
        "model": Delivery,
        "summary": lambda db, row: delivery_service.delivery_summary(row),
        "restore": delivery_service.restore_delivery,
        "purge": delivery_service.permanently_delete_delivery,
    },
    "checks": {
        "model": Check,
        "summary": check_service.check_summary,
        "restore": check_service.restore_check,
        "purge": check_service.permanently_delete_check,
    },
    "payments": {
        "model": Payment,
        "summary": payment_service.payment_summary,
        "restore": payment_service.restore_payment,
        "purge": payment_service.permanently_delete_payment,
    },
    "sales": {
        "model": Sale,
        "summary": sale_service.sale_summary,
        "restore": sale_service.restore_sale,
        "purge": sale_service.permanently_delete_sale,
    },
    "purchases": {
        "model": Purchase,
        "summary": purchase_service.purchase_summary,
        "restore": purchase_service.restore_purchase,
        "purge": purchase_service.permanently_delete_purchase,
    },
}


def _table(table: str) -> Dict[str, Any]:
    if table not in TRASH_TABLES:
        raise ValueError(f"Unknown trash table '{table}'")
    return TRASH_TABLES[table]


def list_trash(db: Session, table: Optional[str] = None) -> List[Dict[str, Any]]:
    """Rows deleted within the retention window, newest first."""
    cutoff = utcnow() - timedelta(days=settings.TRASH_RETENTION_DAYS)
    tables = [table] if table else list(TRASH_TABLES)

    items = []
    for name in tables:
        config = _table(name)
        model = config["model"]
        rows = db.query(model).filter(
            model.deleted_at.isnot(None),
            model.deleted_at >= cutoff
        ).all()

        # Rows trashed as part of a parent (returns of a delivery, deliveries
        # of a sale, checks of a payment) are restored through the parent
        for row in rows:
            if _deleted_with_parent(db, name, row):
                continue
            summary = config["summary"](db, row)
            items.append({
                "table": name,
                "id": row.id,
                "summary": summary["summary"],
                "amount": summary["amount"],
                "deleted_at": row.deleted_at,
            })

    items.sort(key=lambda item: item["deleted_at"], reverse=True)
    return items


def _deleted_with_parent(db: Session, table: str, row) -> bool:
    if table == "deliveries":
        if row.is_return and row.returned_delivery is not None \
                and row.returned_delivery.deleted_at == row.deleted_at:
            return True
        return row.sale is not None and row.sale.deleted_at == row.deleted_at
    if table == "checks" and row.payment_id:
        return row.payment is not None and row.payment.deleted_at == row.deleted_at
    return False


def restore_item(db: Session, table: str, record_id: str, user_email: Optional[str] = None):
    restore: Callable = _table(table)["restore"]
    logger.info(f"Restoring {table}/{record_id}")
    return restore(db, record_id, user_email=user_email)


def permanently_delete_item(db: Session, table: str, record_id: str, user_email: Optional[str] = None) -> bool:
    purge: Callable = _table(table)["purge"]
    model = _table(table)["model"]
    row = db.query(model).filter(model.id == record_id).first()
    if not row:
        return False
    if row.deleted_at is None:
        raise ValueError(f"{table}/{record_id} is not in the trash")
    logger.info(f"Permanently deleting {table}/{record_id}")
    return purge(db, record_id, user_email=user_email)
