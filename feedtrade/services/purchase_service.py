"""
Purchase Service

Purchases only describe what we agreed to buy; supplier ledger lines are
posted per delivery. A purchase with live deliveries cannot be cancelled
or deleted; remove the deliveries first.
"""

import secrets
import string
from datetime import date
from decimal import Decimal
from typing import List, Optional

from sqlalchemy.orm import Session

from feedtrade.models.order import Purchase, OrderStatus, PricingModel
from feedtrade.models.delivery import Delivery
from feedtrade.models.contact import Contact
from feedtrade.models.audit import AuditAction
from feedtrade.services.audit_service import log_action, snapshot
from feedtrade.services.ledger_service import to_money, utcnow, require_account
from feedtrade.logger_config import logger


def generate_purchase_no(purchase_date: date) -> str:
    random_part = ''.join(secrets.choice(string.ascii_uppercase + string.digits) for _ in range(6))
    return f"AL-{purchase_date.year}-{random_part}"


def get_purchase_by_id(db: Session, purchase_id: str, include_deleted: bool = False) -> Optional[Purchase]:
    query = db.query(Purchase).filter(Purchase.id == purchase_id)
    if not include_deleted:
        query = query.filter(Purchase.deleted_at.is_(None))
    return query.first()


def get_all_purchases(
    db: Session,
    skip: int = 0,
    limit: int = 100,
    contact_id: Optional[str] = None,
    status: Optional[OrderStatus] = None,
    date_from: Optional[date] = None,
    date_to: Optional[date] = None
) -> tuple[List[Purchase], int]:
    query = db.query(Purchase).filter(Purchase.deleted_at.is_(None))

    if contact_id:
        query = query.filter(Purchase.contact_id == contact_id)
    if status:
        query = query.filter(Purchase.status == status)
    if date_from:
        query = query.filter(Purchase.purchase_date >= date_from)
    if date_to:
        query = query.filter(Purchase.purchase_date <= date_to)

    total = query.count()
    purchases = query.order_by(
        Purchase.purchase_date.desc(), Purchase.created_at.desc()
    ).offset(skip).limit(limit).all()
    return purchases, total


def create_purchase(
    db: Session,
    contact_id: str,
    quantity: Decimal,
    unit_price: Decimal,
    purchase_date: date,
    pricing_model: PricingModel = PricingModel.tir_ustu,
    feed_type: Optional[str] = None,
    unit: str = "kg",
    due_date: Optional[date] = None,
    notes: Optional[str] = None,
    status: OrderStatus = OrderStatus.draft,
    user_email: Optional[str] = None
) -> Purchase:
    require_account(db, contact_id)
    if status == OrderStatus.cancelled:
        raise ValueError("A purchase cannot be created as cancelled")

    purchase_no = generate_purchase_no(purchase_date)
    while db.query(Purchase).filter(Purchase.purchase_no == purchase_no).first():
        purchase_no = generate_purchase_no(purchase_date)

    try:
        purchase = Purchase(
            purchase_no=purchase_no,
            contact_id=contact_id,
            feed_type=feed_type,
            quantity=quantity,
            unit=unit,
            unit_price=unit_price,
            total_amount=to_money(Decimal(quantity) * Decimal(unit_price)),
            pricing_model=pricing_model,
            status=status,
            purchase_date=purchase_date,
            due_date=due_date,
            notes=notes,
        )
        db.add(purchase)
        db.flush()
        log_action(db, "purchases", purchase.id, AuditAction.create,
                   new_values=snapshot(purchase), user_email=user_email)
        db.commit()
        db.refresh(purchase)
        logger.info(f"Purchase {purchase.purchase_no} created for contact {contact_id}")
        return purchase
    except Exception:
        db.rollback()
        logger.exception("Error creating purchase")
        raise


def _live_delivery_count(db: Session, purchase_id: str) -> int:
    return db.query(Delivery).filter(
        Delivery.purchase_id == purchase_id,
        Delivery.deleted_at.is_(None)
    ).count()


def update_purchase(
    db: Session,
    purchase_id: str,
    user_email: Optional[str] = None,
    **fields
) -> Optional[Purchase]:
    """
    Update header fields. Price and pricing model only matter for future
    deliveries; posted lines keep the values they were posted with.
    """
    purchase = get_purchase_by_id(db, purchase_id)
    if not purchase:
        return None
    if purchase.status == OrderStatus.cancelled:
        raise ValueError(f"Purchase {purchase.purchase_no} is cancelled")
    if fields.get("status") == OrderStatus.cancelled and _live_delivery_count(db, purchase.id):
        raise ValueError("Purchase has deliveries; delete them before cancelling")

    old_values = snapshot(purchase)
    try:
        for key, value in fields.items():
            if value is not None:
                setattr(purchase, key, value)
        purchase.total_amount = to_money(Decimal(purchase.quantity) * Decimal(purchase.unit_price))

        log_action(db, "purchases", purchase.id, AuditAction.update,
                   old_values=old_values, new_values=snapshot(purchase), user_email=user_email)
        db.commit()
        db.refresh(purchase)
        return purchase
    except Exception:
        db.rollback()
        logger.exception(f"Error updating purchase {purchase_id}")
        raise


def soft_delete_purchase(db: Session, purchase_id: str, user_email: Optional[str] = None) -> Optional[Purchase]:
    purchase = get_purchase_by_id(db, purchase_id)
    if not purchase:
        return None
    if _live_delivery_count(db, purchase.id):
        raise ValueError("Purchase has deliveries; delete them first")

    try:
        old_values = snapshot(purchase)
        purchase.deleted_at = utcnow()
        log_action(db, "purchases", purchase.id, AuditAction.delete,
                   old_values=old_values, new_values=snapshot(purchase), user_email=user_email)
        db.commit()
        db.refresh(purchase)
        return purchase
    except Exception:
        db.rollback()
        logger.exception(f"Error deleting purchase {purchase_id}")
        raise


def restore_purchase(db: Session, purchase_id: str, user_email: Optional[str] = None) -> Optional[Purchase]:
    purchase = db.query(Purchase).filter(Purchase.id == purchase_id, Purchase.deleted_at.isnot(None)).first()
    if not purchase:
        return None

    try:
        old_values = snapshot(purchase)
        purchase.deleted_at = None
        log_action(db, "purchases", purchase.id, AuditAction.restore,
                   old_values=old_values, new_values=snapshot(purchase), user_email=user_email)
        db.commit()
        db.refresh(purchase)
        return purchase
    except Exception:
        db.rollback()
        logger.exception(f"Error restoring purchase {purchase_id}")
        raise


def permanently_delete_purchase(db: Session, purchase_id: str, user_email: Optional[str] = None) -> bool:
    purchase = get_purchase_by_id(db, purchase_id, include_deleted=True)
    if not purchase:
        return False
    if db.query(Delivery).filter(Delivery.purchase_id == purchase.id).count():
        raise ValueError("Purchase still has deliveries in history or trash")

    try:
        log_action(db, "purchases", purchase_id, AuditAction.delete,
                   old_values=snapshot(purchase), new_values={"permanent": True}, user_email=user_email)
        db.delete(purchase)
        db.commit()
        return True
    except Exception:
        db.rollback()
        logger.exception(f"Error permanently deleting purchase {purchase_id}")
        raise


def purchase_summary(db: Session, purchase: Purchase) -> dict:
    contact = db.query(Contact).filter(Contact.id == purchase.contact_id).first()
    name = contact.name if contact else purchase.contact_id
    summary = f"Alım {purchase.purchase_no} - {name} - {purchase.quantity} {purchase.unit}"
    return {"summary": summary, "amount": purchase.total_amount}
