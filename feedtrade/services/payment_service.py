"""
Payment Service
Handles tahsilat (inbound) and ödeme (outbound) against a contact's account.

- inbound  -> credit on the contact (they paid us)
- outbound -> debit on the contact (we paid them)

Check and promissory-note payments with a due date also record the
instrument as a Check row linked through payment_id. The payment's own
ledger line carries the balance effect; the linked check has none.
"""

from datetime import date
from decimal import Decimal
from typing import List, Optional

from sqlalchemy.orm import Session

from feedtrade.models.payment import Payment, PaymentDirection, PaymentMethod
from feedtrade.models.check import Check, CheckType, CheckDirection, CheckStatus
from feedtrade.models.ledger import AccountTransaction, TransactionType, ReferenceType
from feedtrade.models.contact import Contact
from feedtrade.models.audit import AuditAction
from feedtrade.services.audit_service import log_action, snapshot
from feedtrade.services.ledger_service import (
    to_money, utcnow, require_account, add_transaction, recalc_accounts,
    soft_delete_transactions, restore_transactions, hard_delete_transactions,
)
from feedtrade.logger_config import logger

_METHOD_LABELS = {
    PaymentMethod.cash: "Nakit",
    PaymentMethod.bank_transfer: "Havale/EFT",
    PaymentMethod.check: "Çek",
    PaymentMethod.promissory_note: "Senet",
}


def get_payment_by_id(db: Session, payment_id: str, include_deleted: bool = False) -> Optional[Payment]:
    query = db.query(Payment).filter(Payment.id == payment_id)
    if not include_deleted:
        query = query.filter(Payment.deleted_at.is_(None))
    return query.first()


def get_all_payments(
    db: Session,
    skip: int = 0,
    limit: int = 100,
    contact_id: Optional[str] = None,
    direction: Optional[PaymentDirection] = None,
    method: Optional[PaymentMethod] = None,
    date_from: Optional[date] = None,
    date_to: Optional[date] = None
) -> tuple[List[Payment], int]:
    query = db.query(Payment).filter(Payment.deleted_at.is_(None))

    if contact_id:
        query = query.filter(Payment.contact_id == contact_id)
    if direction:
        query = query.filter(Payment.direction == direction)
    if method:
        query = query.filter(Payment.method == method)
    if date_from:
        query = query.filter(Payment.payment_date >= date_from)
    if date_to:
        query = query.filter(Payment.payment_date <= date_to)

    total = query.count()
    payments = query.order_by(Payment.payment_date.desc(), Payment.created_at.desc()).offset(skip).limit(limit).all()
    return payments, total


def _payment_lines(db: Session, payment_id: str):
    return db.query(AccountTransaction).filter(
        AccountTransaction.reference_type == ReferenceType.payment,
        AccountTransaction.reference_id == payment_id
    )


def create_payment(
    db: Session,
    contact_id: str,
    direction: PaymentDirection,
    method: PaymentMethod,
    amount: Decimal,
    payment_date: date,
    description: Optional[str] = None,
    due_date: Optional[date] = None,
    check_no: Optional[str] = None,
    bank_name: Optional[str] = None,
    user_email: Optional[str] = None
) -> Payment:
    """Record a payment and its ledger line in one commit."""
    account = require_account(db, contact_id)
    direction = PaymentDirection(direction)
    method = PaymentMethod(method)
    amount = to_money(amount)
    if amount <= 0:
        raise ValueError("Amount must be positive")

    logger.info(f"Payment - contact: {contact_id}, {direction.value} {method.value} {amount}")

    try:
        payment = Payment(
            contact_id=contact_id,
            account_id=account.id,
            direction=direction,
            method=method,
            amount=amount,
            payment_date=payment_date,
            description=description,
        )
        db.add(payment)
        db.flush()

        label = "Tahsilat" if direction == PaymentDirection.inbound else "Ödeme"
        add_transaction(
            db,
            account_id=account.id,
            type=TransactionType.credit if direction == PaymentDirection.inbound else TransactionType.debit,
            amount=amount,
            reference_type=ReferenceType.payment,
            reference_id=payment.id,
            transaction_date=payment_date,
            description=description or f"{label} - {_METHOD_LABELS[method]}",
        )

        if method in (PaymentMethod.check, PaymentMethod.promissory_note) and due_date:
            check = Check(
                contact_id=contact_id,
                check_type=CheckType.check if method == PaymentMethod.check else CheckType.promissory_note,
                direction=CheckDirection.received if direction == PaymentDirection.inbound else CheckDirection.given,
                check_no=check_no,
                bank_name=bank_name,
                amount=amount,
                issue_date=payment_date,
                due_date=due_date,
                status=CheckStatus.pending,
                payment_id=payment.id,
            )
            db.add(check)
            db.flush()
            log_action(db, "checks", check.id, AuditAction.create,
                       new_values=snapshot(check), user_email=user_email)

        recalc_accounts(db, [account.id])
        log_action(db, "payments", payment.id, AuditAction.create,
                   new_values=snapshot(payment), user_email=user_email)

        db.commit()
        db.refresh(payment)
        logger.info(f"Payment {payment.id} recorded on account {account.id}")
        return payment

    except Exception:
        db.rollback()
        logger.exception("Error creating payment")
        raise


def soft_delete_payment(db: Session, payment_id: str, user_email: Optional[str] = None) -> Optional[Payment]:
    """Trash a payment with its ledger line and linked check."""
    payment = get_payment_by_id(db, payment_id)
    if not payment:
        return None

    linked_checks = db.query(Check).filter(Check.payment_id == payment.id, Check.deleted_at.is_(None)).all()
    if any(c.status == CheckStatus.endorsed for c in linked_checks):
        raise ValueError("The payment's check has been endorsed and cannot be removed")

    try:
        deleted_at = utcnow()
        old_values = snapshot(payment)

        affected = soft_delete_transactions(db, _payment_lines(db, payment.id), deleted_at)
        for check in linked_checks:
            check.deleted_at = deleted_at
        payment.deleted_at = deleted_at

        recalc_accounts(db, affected)
        log_action(db, "payments", payment.id, AuditAction.delete,
                   old_values=old_values, new_values=snapshot(payment), user_email=user_email)
        db.commit()
        db.refresh(payment)
        logger.info(f"Payment {payment_id} moved to trash")
        return payment

    except Exception:
        db.rollback()
        logger.exception(f"Error deleting payment {payment_id}")
        raise


def restore_payment(db: Session, payment_id: str, user_email: Optional[str] = None) -> Optional[Payment]:
    payment = db.query(Payment).filter(Payment.id == payment_id, Payment.deleted_at.isnot(None)).first()
    if not payment:
        return None

    try:
        deleted_at = payment.deleted_at
        old_values = snapshot(payment)

        affected = restore_transactions(db, _payment_lines(db, payment.id), deleted_at)
        for check in db.query(Check).filter(Check.payment_id == payment.id, Check.deleted_at == deleted_at).all():
            check.deleted_at = None
        payment.deleted_at = None

        recalc_accounts(db, affected)
        log_action(db, "payments", payment.id, AuditAction.restore,
                   old_values=old_values, new_values=snapshot(payment), user_email=user_email)
        db.commit()
        db.refresh(payment)
        logger.info(f"Payment {payment_id} restored")
        return payment

    except Exception:
        db.rollback()
        logger.exception(f"Error restoring payment {payment_id}")
        raise


def permanently_delete_payment(db: Session, payment_id: str, user_email: Optional[str] = None) -> bool:
    """Hard-delete a payment, its ledger line and its linked checks."""
    payment = get_payment_by_id(db, payment_id, include_deleted=True)
    if not payment:
        return False

    try:
        old_values = snapshot(payment)
        checks = db.query(Check).filter(Check.payment_id == payment.id).all()
        check_ids = [c.id for c in checks]

        affected = hard_delete_transactions(db, _payment_lines(db, payment.id))
        if check_ids:
            affected |= hard_delete_transactions(db, db.query(AccountTransaction).filter(
                AccountTransaction.reference_type == ReferenceType.payment,
                AccountTransaction.reference_id.in_(check_ids)
            ))
            # Checks endorsed onward keep existing without the link
            for child in db.query(Check).filter(Check.endorsed_from_id.in_(check_ids)).all():
                child.endorsed_from_id = None
            for check in checks:
                db.delete(check)
        db.flush()
        db.delete(payment)

        recalc_accounts(db, affected)
        log_action(db, "payments", payment_id, AuditAction.delete,
                   old_values=old_values, new_values={"permanent": True}, user_email=user_email)
        db.commit()
        logger.info(f"Payment {payment_id} permanently deleted")
        return True

    except Exception:
        db.rollback()
        logger.exception(f"Error permanently deleting payment {payment_id}")
        raise


def payment_summary(db: Session, payment: Payment) -> dict:
    contact = db.query(Contact).filter(Contact.id == payment.contact_id).first()
    name = contact.name if contact else payment.contact_id
    label = "Tahsilat" if payment.direction == PaymentDirection.inbound else "Ödeme"
    summary = f"{label} - {name} - {_METHOD_LABELS[payment.method]} - {payment.payment_date}"
    return {"summary": summary, "amount": payment.amount}
