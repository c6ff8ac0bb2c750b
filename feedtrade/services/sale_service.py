"""
Sale Service

Sales are order headers; the ledger is driven by their deliveries.
Cancel and reassign rewrite the sale's ledger lines by soft-deleting the
old rows and, for reassign, posting fresh ones under the new customer.
"""

import secrets
import string
from datetime import date
from decimal import Decimal
from typing import List, Optional

from sqlalchemy import or_
from sqlalchemy.orm import Session

from feedtrade.models.order import Sale, OrderStatus
from feedtrade.models.delivery import Delivery
from feedtrade.models.ledger import AccountTransaction, TransactionType, ReferenceType
from feedtrade.models.carrier import CarrierTransaction
from feedtrade.models.contact import Contact
from feedtrade.models.audit import AuditAction
from feedtrade.services.audit_service import log_action, snapshot
from feedtrade.services.ledger_service import (
    to_money, utcnow, require_account, add_transaction, recalc_accounts,
    soft_delete_transactions, restore_transactions, hard_delete_transactions,
)
from feedtrade.services.delivery_service import (
    compute_delivery_amounts, refresh_sale_delivered_quantity, purge_deliveries,
    customer_line_description, format_kg,
)
from feedtrade.logger_config import logger


def generate_sale_no(sale_date: date) -> str:
    random_part = ''.join(secrets.choice(string.ascii_uppercase + string.digits) for _ in range(6))
    return f"SAT-{sale_date.year}-{random_part}"


def get_sale_by_id(db: Session, sale_id: str, include_deleted: bool = False) -> Optional[Sale]:
    query = db.query(Sale).filter(Sale.id == sale_id)
    if not include_deleted:
        query = query.filter(Sale.deleted_at.is_(None))
    return query.first()


def get_all_sales(
    db: Session,
    skip: int = 0,
    limit: int = 100,
    contact_id: Optional[str] = None,
    status: Optional[OrderStatus] = None,
    date_from: Optional[date] = None,
    date_to: Optional[date] = None,
    search: Optional[str] = None
) -> tuple[List[Sale], int]:
    query = db.query(Sale).filter(Sale.deleted_at.is_(None))

    if contact_id:
        query = query.filter(Sale.contact_id == contact_id)
    if status:
        query = query.filter(Sale.status == status)
    if date_from:
        query = query.filter(Sale.sale_date >= date_from)
    if date_to:
        query = query.filter(Sale.sale_date <= date_to)
    if search:
        search_term = f"%{search}%"
        query = query.join(Contact, Contact.id == Sale.contact_id).filter(
            or_(Sale.sale_no.ilike(search_term), Sale.feed_type.ilike(search_term), Contact.name.ilike(search_term))
        )

    total = query.count()
    sales = query.order_by(Sale.sale_date.desc(), Sale.created_at.desc()).offset(skip).limit(limit).all()
    return sales, total


def create_sale(
    db: Session,
    contact_id: str,
    quantity: Decimal,
    unit_price: Decimal,
    sale_date: date,
    feed_type: Optional[str] = None,
    unit: str = "kg",
    due_date: Optional[date] = None,
    notes: Optional[str] = None,
    status: OrderStatus = OrderStatus.draft,
    user_email: Optional[str] = None
) -> Sale:
    """Create a sale header. No ledger lines until something is delivered."""
    require_account(db, contact_id)
    if status == OrderStatus.cancelled:
        raise ValueError("A sale cannot be created as cancelled")

    sale_no = generate_sale_no(sale_date)
    while db.query(Sale).filter(Sale.sale_no == sale_no).first():
        sale_no = generate_sale_no(sale_date)

    try:
        sale = Sale(
            sale_no=sale_no,
            contact_id=contact_id,
            feed_type=feed_type,
            quantity=quantity,
            unit=unit,
            unit_price=unit_price,
            total_amount=to_money(Decimal(quantity) * Decimal(unit_price)),
            status=status,
            sale_date=sale_date,
            due_date=due_date,
            notes=notes,
        )
        db.add(sale)
        db.flush()
        log_action(db, "sales", sale.id, AuditAction.create, new_values=snapshot(sale), user_email=user_email)
        db.commit()
        db.refresh(sale)
        logger.info(f"Sale {sale.sale_no} created for contact {contact_id}")
        return sale
    except Exception:
        db.rollback()
        logger.exception("Error creating sale")
        raise


def update_sale(
    db: Session,
    sale_id: str,
    user_email: Optional[str] = None,
    **fields
) -> Optional[Sale]:
    """Update header fields. Cancellation goes through cancel_sale."""
    sale = get_sale_by_id(db, sale_id)
    if not sale:
        return None
    if sale.status == OrderStatus.cancelled:
        raise ValueError(f"Sale {sale.sale_no} is cancelled")
    if fields.get("status") == OrderStatus.cancelled:
        raise ValueError("Use the cancel endpoint to cancel a sale")

    old_values = snapshot(sale)
    try:
        for key, value in fields.items():
            if value is not None:
                setattr(sale, key, value)
        sale.total_amount = to_money(Decimal(sale.quantity) * Decimal(sale.unit_price))
        if fields.get("quantity") is not None:
            refresh_sale_delivered_quantity(db, sale)

        log_action(db, "sales", sale.id, AuditAction.update,
                   old_values=old_values, new_values=snapshot(sale), user_email=user_email)
        db.commit()
        db.refresh(sale)
        return sale
    except Exception:
        db.rollback()
        logger.exception(f"Error updating sale {sale_id}")
        raise


def _sale_delivery_ids(db: Session, sale_id: str, live_only: bool = True) -> List[str]:
    query = db.query(Delivery.id).filter(Delivery.sale_id == sale_id)
    if live_only:
        query = query.filter(Delivery.deleted_at.is_(None))
    return [row[0] for row in query.all()]


def _sale_transactions_query(db: Session, sale_id: str, delivery_ids: List[str]):
    """Customer lines referencing the sale plus every line of its deliveries."""
    condition = (AccountTransaction.reference_type == ReferenceType.sale) & (AccountTransaction.reference_id == sale_id)
    if delivery_ids:
        condition = condition | AccountTransaction.delivery_id.in_(delivery_ids)
    return db.query(AccountTransaction).filter(condition)


def cancel_sale(
    db: Session,
    sale_id: str,
    reason: Optional[str] = None,
    user_email: Optional[str] = None
) -> Optional[Sale]:
    """
    Cancel a sale and reverse everything it posted.

    Customer lines, supplier lines of its deliveries and their carrier
    charges are soft-deleted; deliveries themselves stay as history.
    """
    sale = get_sale_by_id(db, sale_id)
    if not sale:
        return None
    if sale.status == OrderStatus.cancelled:
        raise ValueError(f"Sale {sale.sale_no} is already cancelled")

    try:
        cancelled_at = utcnow()
        old_values = snapshot(sale)
        delivery_ids = _sale_delivery_ids(db, sale.id)

        affected = soft_delete_transactions(db, _sale_transactions_query(db, sale.id, delivery_ids), cancelled_at)
        if delivery_ids:
            for charge in db.query(CarrierTransaction).filter(
                CarrierTransaction.delivery_id.in_(delivery_ids),
                CarrierTransaction.deleted_at.is_(None)
            ).all():
                charge.deleted_at = cancelled_at

        recalc_accounts(db, affected)

        sale.status = OrderStatus.cancelled
        note = f"İptal: {reason}" if reason else "İptal edildi"
        sale.notes = f"{sale.notes}\n{note}" if sale.notes else note

        log_action(db, "sales", sale.id, AuditAction.update,
                   old_values=old_values, new_values=snapshot(sale), user_email=user_email)
        db.commit()
        db.refresh(sale)
        logger.info(f"Sale {sale.sale_no} cancelled, accounts recalculated: {sorted(affected)}")
        return sale

    except Exception:
        db.rollback()
        logger.exception(f"Error cancelling sale {sale_id}")
        raise


def reassign_sale(
    db: Session,
    sale_id: str,
    new_contact_id: str,
    new_unit_price: Optional[Decimal] = None,
    user_email: Optional[str] = None
) -> Optional[Sale]:
    """
    Move a sale to another customer, optionally at a new price.

    The old customer's live lines for the sale are soft-deleted and every
    live delivery is posted again under the new customer. Returns are
    credited in proportion to their original delivery's new amount.

    Deliveries sitting in the trash are moved as well: their trashed
    customer line is replaced by one under the new customer carrying the
    delivery's deleted_at, so a later restore revives the right side.
    """
    sale = get_sale_by_id(db, sale_id)
    if not sale:
        return None
    if sale.status == OrderStatus.cancelled:
        raise ValueError(f"Sale {sale.sale_no} is cancelled")

    new_account = require_account(db, new_contact_id)
    price = Decimal(new_unit_price) if new_unit_price is not None else Decimal(sale.unit_price)

    try:
        now = utcnow()
        old_values = snapshot(sale)

        deliveries = db.query(Delivery).filter(
            Delivery.sale_id == sale.id
        ).order_by(Delivery.is_return.asc(), Delivery.delivery_date.asc()).all()

        affected = set()
        movable = set()
        for d in deliveries:
            if d.deleted_at is None:
                movable.add(d.id)
                continue
            if d.is_return and d.returned_delivery_id not in movable:
                continue
            trashed_lines = db.query(AccountTransaction).filter(
                AccountTransaction.delivery_id == d.id,
                AccountTransaction.reference_type == ReferenceType.sale,
                AccountTransaction.deleted_at == d.deleted_at
            )
            removed = hard_delete_transactions(db, trashed_lines)
            if removed:
                affected |= removed
                movable.add(d.id)

        old_customer_lines = db.query(AccountTransaction).filter(
            AccountTransaction.reference_type == ReferenceType.sale,
            AccountTransaction.reference_id == sale.id
        )
        affected |= soft_delete_transactions(db, old_customer_lines, now)
        db.flush()

        posted = {}
        for d in deliveries:
            if d.is_return or d.id not in movable:
                continue
            amount, _ = compute_delivery_amounts(
                d.net_weight, price, d.supplier_price or price,
                freight_cost=d.freight_cost, freight_payer=d.freight_payer,
            )
            if amount <= 0:
                raise ValueError(f"Delivery {d.id} would post a non-positive amount at {price}")
            d.customer_price = price
            tx = add_transaction(
                db,
                account_id=new_account.id,
                type=TransactionType.debit,
                amount=amount,
                reference_type=ReferenceType.sale,
                reference_id=sale.id,
                transaction_date=d.delivery_date,
                description=f"{customer_line_description(d, price)} (devir)",
                delivery_id=d.id,
            )
            tx.deleted_at = d.deleted_at
            posted[d.id] = (amount, Decimal(d.net_weight))

        for d in deliveries:
            if not d.is_return or d.id not in movable or d.returned_delivery_id not in posted:
                continue
            original_amount, original_net = posted[d.returned_delivery_id]
            d.customer_price = price
            tx = add_transaction(
                db,
                account_id=new_account.id,
                type=TransactionType.credit,
                amount=to_money(original_amount * Decimal(d.net_weight) / original_net),
                reference_type=ReferenceType.sale,
                reference_id=sale.id,
                transaction_date=d.delivery_date,
                description=f"İade - {format_kg(d.net_weight)} kg (devir)",
                delivery_id=d.id,
            )
            tx.deleted_at = d.deleted_at

        sale.contact_id = new_contact_id
        sale.unit_price = price
        sale.total_amount = to_money(Decimal(sale.quantity) * price)

        recalc_accounts(db, affected | {new_account.id})
        log_action(db, "sales", sale.id, AuditAction.update,
                   old_values=old_values, new_values=snapshot(sale), user_email=user_email)
        db.commit()
        db.refresh(sale)
        logger.info(f"Sale {sale.sale_no} reassigned to {new_contact_id} at {price}")
        return sale

    except Exception:
        db.rollback()
        logger.exception(f"Error reassigning sale {sale_id}")
        raise


def soft_delete_sale(db: Session, sale_id: str, user_email: Optional[str] = None) -> Optional[Sale]:
    """Trash a sale with its live deliveries, their ledger lines and carrier charges."""
    sale = get_sale_by_id(db, sale_id)
    if not sale:
        return None

    try:
        deleted_at = utcnow()
        old_values = snapshot(sale)
        delivery_ids = _sale_delivery_ids(db, sale.id)

        affected = soft_delete_transactions(db, _sale_transactions_query(db, sale.id, delivery_ids), deleted_at)
        if delivery_ids:
            for d in db.query(Delivery).filter(Delivery.id.in_(delivery_ids)).all():
                d.deleted_at = deleted_at
            for charge in db.query(CarrierTransaction).filter(
                CarrierTransaction.delivery_id.in_(delivery_ids),
                CarrierTransaction.deleted_at.is_(None)
            ).all():
                charge.deleted_at = deleted_at
        sale.deleted_at = deleted_at

        recalc_accounts(db, affected)
        log_action(db, "sales", sale.id, AuditAction.delete,
                   old_values=old_values, new_values=snapshot(sale), user_email=user_email)
        db.commit()
        db.refresh(sale)
        logger.info(f"Sale {sale.sale_no} moved to trash with {len(delivery_ids)} deliveries")
        return sale

    except Exception:
        db.rollback()
        logger.exception(f"Error deleting sale {sale_id}")
        raise


def restore_sale(db: Session, sale_id: str, user_email: Optional[str] = None) -> Optional[Sale]:
    sale = db.query(Sale).filter(Sale.id == sale_id, Sale.deleted_at.isnot(None)).first()
    if not sale:
        return None

    try:
        deleted_at = sale.deleted_at
        old_values = snapshot(sale)

        deliveries = db.query(Delivery).filter(
            Delivery.sale_id == sale.id,
            Delivery.deleted_at == deleted_at
        ).all()
        delivery_ids = [d.id for d in deliveries]

        affected = restore_transactions(db, _sale_transactions_query(db, sale.id, delivery_ids), deleted_at)
        if delivery_ids:
            for charge in db.query(CarrierTransaction).filter(
                CarrierTransaction.delivery_id.in_(delivery_ids),
                CarrierTransaction.deleted_at == deleted_at
            ).all():
                charge.deleted_at = None
        for d in deliveries:
            d.deleted_at = None
        sale.deleted_at = None

        refresh_sale_delivered_quantity(db, sale)
        recalc_accounts(db, affected)
        log_action(db, "sales", sale.id, AuditAction.restore,
                   old_values=old_values, new_values=snapshot(sale), user_email=user_email)
        db.commit()
        db.refresh(sale)
        logger.info(f"Sale {sale.sale_no} restored with {len(delivery_ids)} deliveries")
        return sale

    except Exception:
        db.rollback()
        logger.exception(f"Error restoring sale {sale_id}")
        raise


def permanently_delete_sale(db: Session, sale_id: str, user_email: Optional[str] = None) -> bool:
    """Hard-delete a sale, all its deliveries and every ledger line tied to them."""
    sale = get_sale_by_id(db, sale_id, include_deleted=True)
    if not sale:
        return False

    try:
        old_values = snapshot(sale)
        deliveries = db.query(Delivery).filter(Delivery.sale_id == sale.id).all()

        affected = hard_delete_transactions(db, _sale_transactions_query(db, sale.id, []))
        affected |= purge_deliveries(db, deliveries)
        db.delete(sale)

        recalc_accounts(db, affected)
        log_action(db, "sales", sale_id, AuditAction.delete,
                   old_values=old_values, new_values={"permanent": True}, user_email=user_email)
        db.commit()
        logger.info(f"Sale {sale_id} permanently deleted with {len(deliveries)} deliveries")
        return True

    except Exception:
        db.rollback()
        logger.exception(f"Error permanently deleting sale {sale_id}")
        raise


def sale_summary(db: Session, sale: Sale) -> dict:
    contact = db.query(Contact).filter(Contact.id == sale.contact_id).first()
    name = contact.name if contact else sale.contact_id
    summary = f"Satış {sale.sale_no} - {name} - {sale.quantity} {sale.unit}"
    return {"summary": summary, "amount": sale.total_amount}
