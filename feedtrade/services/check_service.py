"""
Check / promissory note (çek / senet) Service

Status machine:
    pending   -> deposited | endorsed | cancelled
    deposited -> cleared | bounced | cancelled
    bounced   -> pending
    cleared, endorsed, cancelled are terminal

A check records its balance effect when created (received -> credit,
given -> debit). Cancelling reverses that line; other transitions do not
touch the ledger.
"""

from datetime import date
from decimal import Decimal
from typing import List, Optional

from sqlalchemy.orm import Session

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


def _label(check: Check) -> str:
    return "Çek" if check.check_type == CheckType.check else "Senet"


def get_check_by_id(db: Session, check_id: str, include_deleted: bool = False) -> Optional[Check]:
    query = db.query(Check).filter(Check.id == check_id)
    if not include_deleted:
        query = query.filter(Check.deleted_at.is_(None))
    return query.first()


def get_all_checks(
    db: Session,
    skip: int = 0,
    limit: int = 100,
    contact_id: Optional[str] = None,
    direction: Optional[CheckDirection] = None,
    status: Optional[CheckStatus] = None,
    due_from: Optional[date] = None,
    due_to: Optional[date] = None
) -> tuple[List[Check], int]:
    """Checks ordered by due date, soonest first."""
    query = db.query(Check).filter(Check.deleted_at.is_(None))

    if contact_id:
        query = query.filter(Check.contact_id == contact_id)
    if direction:
        query = query.filter(Check.direction == direction)
    if status:
        query = query.filter(Check.status == status)
    if due_from:
        query = query.filter(Check.due_date >= due_from)
    if due_to:
        query = query.filter(Check.due_date <= due_to)

    total = query.count()
    checks = query.order_by(Check.due_date.asc(), Check.created_at.asc()).offset(skip).limit(limit).all()
    return checks, total


def _check_lines(db: Session, reference_ids: List[str]):
    return db.query(AccountTransaction).filter(
        AccountTransaction.reference_type == ReferenceType.payment,
        AccountTransaction.reference_id.in_(reference_ids)
    )


def create_check(
    db: Session,
    contact_id: str,
    direction: CheckDirection,
    amount: Decimal,
    issue_date: date,
    due_date: date,
    check_type: CheckType = CheckType.check,
    check_no: Optional[str] = None,
    bank_name: Optional[str] = None,
    branch_name: Optional[str] = None,
    notes: Optional[str] = None,
    user_email: Optional[str] = None
) -> Check:
    """Record a check and its ledger line."""
    account = require_account(db, contact_id)
    direction = CheckDirection(direction)
    amount = to_money(amount)
    if amount <= 0:
        raise ValueError("Amount must be positive")

    try:
        check = Check(
            contact_id=contact_id,
            check_type=check_type,
            direction=direction,
            check_no=check_no,
            bank_name=bank_name,
            branch_name=branch_name,
            amount=amount,
            issue_date=issue_date,
            due_date=due_date,
            status=CheckStatus.pending,
            notes=notes,
        )
        db.add(check)
        db.flush()

        verb = "alındı" if direction == CheckDirection.received else "verildi"
        add_transaction(
            db,
            account_id=account.id,
            type=TransactionType.credit if direction == CheckDirection.received else TransactionType.debit,
            amount=amount,
            reference_type=ReferenceType.payment,
            reference_id=check.id,
            transaction_date=issue_date,
            description=f"{_label(check)} {verb}" + (f" - No: {check_no}" if check_no else ""),
        )

        recalc_accounts(db, [account.id])
        log_action(db, "checks", check.id, AuditAction.create, new_values=snapshot(check), user_email=user_email)
        db.commit()
        db.refresh(check)
        logger.info(f"Check {check.id} ({direction.value}, {amount}) recorded for {contact_id}")
        return check

    except Exception:
        db.rollback()
        logger.exception("Error creating check")
        raise


def update_check_status(
    db: Session,
    check_id: str,
    new_status: CheckStatus,
    notes: Optional[str] = None,
    user_email: Optional[str] = None
) -> Optional[Check]:
    """
    Move a check along its status machine.
    Endorsing needs a target and goes through endorse_check.
    """
    check = get_check_by_id(db, check_id)
    if not check:
        return None

    new_status = CheckStatus(new_status)
    if new_status == CheckStatus.endorsed:
        raise ValueError("Use the endorse endpoint to endorse a check")
    if not check.can_transition_to(new_status):
        raise ValueError(f"Invalid status transition: {check.status.value} -> {new_status.value}")

    try:
        old_values = snapshot(check)
        affected = set()
        if new_status == CheckStatus.cancelled:
            # The instrument never settles, so its balance effect is reversed
            reference_ids = [check.id] + ([check.payment_id] if check.payment_id else [])
            affected = soft_delete_transactions(db, _check_lines(db, reference_ids), utcnow())

        check.status = new_status
        if notes:
            check.notes = f"{check.notes}\n{notes}" if check.notes else notes

        recalc_accounts(db, affected)
        log_action(db, "checks", check.id, AuditAction.update,
                   old_values=old_values, new_values=snapshot(check), user_email=user_email)
        db.commit()
        db.refresh(check)
        logger.info(f"Check {check_id}: {old_values['status']} -> {new_status.value}")
        return check

    except Exception:
        db.rollback()
        logger.exception(f"Error updating check {check_id}")
        raise


def endorse_check(
    db: Session,
    check_id: str,
    target_contact_id: str,
    notes: Optional[str] = None,
    user_email: Optional[str] = None
) -> Optional[tuple[Check, Check]]:
    """
    Endorse (ciro) a received, pending check to another contact.

    The original is marked endorsed; a new given check for the same face
    amount is created under the target and debited to the target's account.
    The original holder's account is untouched.
    """
    original = get_check_by_id(db, check_id)
    if not original:
        return None
    if original.direction != CheckDirection.received:
        raise ValueError("Only received checks can be endorsed")
    if not original.can_transition_to(CheckStatus.endorsed):
        raise ValueError(f"Check in status {original.status.value} cannot be endorsed")
    if target_contact_id == original.contact_id:
        raise ValueError("A check cannot be endorsed back to its holder")

    target_account = require_account(db, target_contact_id)
    target = db.query(Contact).filter(Contact.id == target_contact_id).first()

    try:
        old_values = snapshot(original)
        original.status = CheckStatus.endorsed
        original.endorsed_to = target.name

        endorsed = Check(
            contact_id=target_contact_id,
            check_type=original.check_type,
            direction=CheckDirection.given,
            check_no=original.check_no,
            bank_name=original.bank_name,
            branch_name=original.branch_name,
            amount=original.amount,
            issue_date=original.issue_date,
            due_date=original.due_date,
            status=CheckStatus.pending,
            endorsed_from_id=original.id,
            notes=notes,
        )
        db.add(endorsed)
        db.flush()

        add_transaction(
            db,
            account_id=target_account.id,
            type=TransactionType.debit,
            amount=original.amount,
            reference_type=ReferenceType.payment,
            reference_id=endorsed.id,
            transaction_date=date.today(),
            description=f"{_label(original)} ciro edildi" + (f" - No: {original.check_no}" if original.check_no else ""),
        )

        recalc_accounts(db, [target_account.id])
        log_action(db, "checks", original.id, AuditAction.update,
                   old_values=old_values, new_values=snapshot(original), user_email=user_email)
        log_action(db, "checks", endorsed.id, AuditAction.create,
                   new_values=snapshot(endorsed), user_email=user_email)
        db.commit()
        db.refresh(original)
        db.refresh(endorsed)
        logger.info(f"Check {original.id} endorsed to {target_contact_id} as {endorsed.id}")
        return original, endorsed

    except Exception:
        db.rollback()
        logger.exception(f"Error endorsing check {check_id}")
        raise


def soft_delete_check(db: Session, check_id: str, user_email: Optional[str] = None) -> Optional[Check]:
    check = get_check_by_id(db, check_id)
    if not check:
        return None
    if check.payment_id:
        raise ValueError(f"Check belongs to payment {check.payment_id}; delete the payment instead")
    if check.status == CheckStatus.endorsed:
        raise ValueError(f"Check {_label(check)} has been endorsed and cannot be removed")

    try:
        deleted_at = utcnow()
        old_values = snapshot(check)
        affected = soft_delete_transactions(db, _check_lines(db, [check.id]), deleted_at)
        check.deleted_at = deleted_at

        recalc_accounts(db, affected)
        log_action(db, "checks", check.id, AuditAction.delete,
                   old_values=old_values, new_values=snapshot(check), user_email=user_email)
        db.commit()
        db.refresh(check)
        logger.info(f"Check {check_id} moved to trash")
        return check

    except Exception:
        db.rollback()
        logger.exception(f"Error deleting check {check_id}")
        raise


def restore_check(db: Session, check_id: str, user_email: Optional[str] = None) -> Optional[Check]:
    check = db.query(Check).filter(Check.id == check_id, Check.deleted_at.isnot(None)).first()
    if not check:
        return None
    if check.payment_id:
        raise ValueError(f"Check belongs to payment {check.payment_id}; restore the payment instead")

    try:
        deleted_at = check.deleted_at
        old_values = snapshot(check)
        affected = restore_transactions(db, _check_lines(db, [check.id]), deleted_at)
        check.deleted_at = None

        recalc_accounts(db, affected)
        log_action(db, "checks", check.id, AuditAction.restore,
                   old_values=old_values, new_values=snapshot(check), user_email=user_email)
        db.commit()
        db.refresh(check)
        logger.info(f"Check {check_id} restored")
        return check

    except Exception:
        db.rollback()
        logger.exception(f"Error restoring check {check_id}")
        raise


def permanently_delete_check(db: Session, check_id: str, user_email: Optional[str] = None) -> bool:
    check = get_check_by_id(db, check_id, include_deleted=True)
    if not check:
        return False
    if check.payment_id:
        raise ValueError(f"Check belongs to payment {check.payment_id}; delete the payment instead")

    try:
        old_values = snapshot(check)
        affected = hard_delete_transactions(db, _check_lines(db, [check.id]))
        for child in db.query(Check).filter(Check.endorsed_from_id == check.id).all():
            child.endorsed_from_id = None
        db.flush()
        db.delete(check)

        recalc_accounts(db, affected)
        log_action(db, "checks", check_id, AuditAction.delete,
                   old_values=old_values, new_values={"permanent": True}, user_email=user_email)
        db.commit()
        logger.info(f"Check {check_id} permanently deleted")
        return True

    except Exception:
        db.rollback()
        logger.exception(f"Error permanently deleting check {check_id}")
        raise


def check_summary(db: Session, check: Check) -> dict:
    contact = db.query(Contact).filter(Contact.id == check.contact_id).first()
    name = contact.name if contact else check.contact_id
    kind = "alınan" if check.direction == CheckDirection.received else "verilen"
    summary = f"{_label(check)} ({kind}) - {name} - vade {check.due_date}"
    if check.check_no:
        summary += f" - No: {check.check_no}"
    return {"summary": summary, "amount": check.amount}
