"""
Account ledger and balance recalculation.

Every path that inserts, soft-deletes, restores or hard-deletes an
account_transactions row ends by calling recalc_account_balance for each
account it touched. Cached totals on accounts are never adjusted
incrementally.

Sign convention:
- debit  -> the contact owes us more (sale delivery, outbound payment, given check)
- credit -> we owe the contact more (purchase delivery, inbound payment, received check)
- balance = total_debit - total_credit
"""

from datetime import date, datetime, timezone
from decimal import Decimal, ROUND_HALF_UP
from typing import Any, Dict, Iterable, List, Optional, Set

from sqlalchemy.orm import Session

from feedtrade.models.contact import Account, Contact
from feedtrade.models.ledger import AccountTransaction, TransactionType, ReferenceType
from feedtrade.logger_config import logger

ZERO = Decimal("0.00")
CENT = Decimal("0.01")


def to_money(value: Any) -> Decimal:
    """Round to kuruş, half up."""
    return Decimal(str(value)).quantize(CENT, rounding=ROUND_HALF_UP)


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def get_account_by_id(db: Session, account_id: int) -> Optional[Account]:
    return db.query(Account).filter(Account.id == account_id).first()


def get_account_by_contact_id(db: Session, contact_id: str) -> Optional[Account]:
    return db.query(Account).filter(Account.contact_id == contact_id).first()


def require_account(db: Session, contact_id: Optional[str]) -> Account:
    """Resolve a contact's account or raise before anything is written."""
    if not contact_id:
        raise ValueError("Contact is required")
    account = get_account_by_contact_id(db, contact_id)
    if not account:
        raise ValueError(f"Account for contact {contact_id} not found")
    return account


def add_transaction(
    db: Session,
    account_id: int,
    type: TransactionType,
    amount: Decimal,
    reference_type: ReferenceType,
    reference_id: str,
    transaction_date: date,
    description: Optional[str] = None,
    delivery_id: Optional[str] = None,
) -> AccountTransaction:
    """Stage one ledger line. Does not commit or recalculate."""
    amount = to_money(amount)
    if amount <= 0:
        raise ValueError(f"Transaction amount must be positive (got {amount})")

    tx = AccountTransaction(
        account_id=account_id,
        type=type,
        amount=amount,
        reference_type=reference_type,
        reference_id=reference_id,
        delivery_id=delivery_id,
        description=description,
        transaction_date=transaction_date,
    )
    db.add(tx)
    return tx


def soft_delete_transactions(db: Session, query, deleted_at: datetime) -> Set[int]:
    """Stamp every live row of `query` and return the affected account ids."""
    affected = set()
    for tx in query.filter(AccountTransaction.deleted_at.is_(None)).all():
        tx.deleted_at = deleted_at
        affected.add(tx.account_id)
    return affected


def restore_transactions(db: Session, query, deleted_at: datetime) -> Set[int]:
    """Clear deleted_at on rows stamped with exactly `deleted_at`."""
    affected = set()
    for tx in query.filter(AccountTransaction.deleted_at == deleted_at).all():
        tx.deleted_at = None
        affected.add(tx.account_id)
    return affected


def hard_delete_transactions(db: Session, query) -> Set[int]:
    affected = set()
    for tx in query.all():
        affected.add(tx.account_id)
        db.delete(tx)
    return affected


def _sum_live_transactions(db: Session, account_id: int) -> tuple[Decimal, Decimal]:
    rows = db.query(AccountTransaction.type, AccountTransaction.amount).filter(
        AccountTransaction.account_id == account_id,
        AccountTransaction.deleted_at.is_(None)
    ).all()

    total_debit = ZERO
    total_credit = ZERO
    for tx_type, amount in rows:
        if tx_type == TransactionType.debit:
            total_debit += Decimal(amount)
        else:
            total_credit += Decimal(amount)
    return to_money(total_debit), to_money(total_credit)


def recalc_account_balance(db: Session, account_id: int) -> Optional[Account]:
    """
    Rebuild an account's cached totals from its non-deleted transactions.

    Locks the account row where the backend supports it. Pending changes in
    the session are flushed first so they are part of the sum.
    """
    db.flush()
    account = db.query(Account).filter(Account.id == account_id).with_for_update().first()
    if not account:
        logger.warning(f"Recalc skipped, account {account_id} not found")
        return None

    total_debit, total_credit = _sum_live_transactions(db, account_id)
    account.total_debit = total_debit
    account.total_credit = total_credit
    account.balance = total_debit - total_credit
    logger.debug(f"Account {account_id} recalculated: debit={total_debit} credit={total_credit}")
    return account


def recalc_accounts(db: Session, account_ids: Iterable[int]) -> None:
    for account_id in sorted(set(account_ids)):
        recalc_account_balance(db, account_id)


def recalc_all_accounts(db: Session) -> int:
    """Rebuild every account and commit. Returns the number of accounts."""
    try:
        account_ids = [row[0] for row in db.query(Account.id).all()]
        recalc_accounts(db, account_ids)
        db.commit()
        logger.info(f"Recalculated {len(account_ids)} accounts")
        return len(account_ids)
    except Exception:
        db.rollback()
        logger.exception("Error recalculating accounts")
        raise


def find_drifted_accounts(db: Session) -> tuple[int, List[Dict[str, Any]]]:
    """Accounts whose cached balance differs from the sum of their live transactions."""
    accounts = db.query(Account).order_by(Account.id).all()
    drifted = []
    for account in accounts:
        total_debit, total_credit = _sum_live_transactions(db, account.id)
        computed = total_debit - total_credit
        if to_money(account.balance) != computed:
            drifted.append({
                "account_id": account.id,
                "contact_id": account.contact_id,
                "cached_balance": to_money(account.balance),
                "computed_balance": computed,
            })
    if drifted:
        logger.warning(f"{len(drifted)} of {len(accounts)} accounts drifted from their transactions")
    return len(accounts), drifted


def get_account_transactions(
    db: Session,
    account_id: int,
    skip: int = 0,
    limit: int = 100,
    include_deleted: bool = False,
) -> tuple[List[AccountTransaction], int]:
    query = db.query(AccountTransaction).filter(AccountTransaction.account_id == account_id)
    if not include_deleted:
        query = query.filter(AccountTransaction.deleted_at.is_(None))

    total = query.count()
    transactions = query.order_by(
        AccountTransaction.transaction_date.desc(), AccountTransaction.id.desc()
    ).offset(skip).limit(limit).all()
    return transactions, total


def get_account_statement(
    db: Session,
    account_id: int,
    date_from: Optional[date] = None,
    date_to: Optional[date] = None,
) -> Optional[Dict[str, Any]]:
    """
    Live transactions in date order with a running balance.
    Rows before date_from are folded into the opening balance.
    """
    account = get_account_by_id(db, account_id)
    if not account:
        return None
    contact = db.query(Contact).filter(Contact.id == account.contact_id).first()

    rows = db.query(AccountTransaction).filter(
        AccountTransaction.account_id == account_id,
        AccountTransaction.deleted_at.is_(None)
    ).order_by(AccountTransaction.transaction_date.asc(), AccountTransaction.id.asc()).all()

    opening = ZERO
    running = ZERO
    lines = []
    for tx in rows:
        if date_to and tx.transaction_date > date_to:
            break
        running += tx.signed_amount
        if date_from and tx.transaction_date < date_from:
            opening = running
            continue
        lines.append({
            "id": tx.id,
            "transaction_date": tx.transaction_date,
            "description": tx.description,
            "reference_type": tx.reference_type,
            "reference_id": tx.reference_id,
            "debit": tx.amount if tx.type == TransactionType.debit else ZERO,
            "credit": tx.amount if tx.type == TransactionType.credit else ZERO,
            "balance": to_money(running),
        })

    return {
        "account_id": account.id,
        "contact_id": account.contact_id,
        "contact_name": contact.name if contact else "",
        "date_from": date_from,
        "date_to": date_to,
        "opening_balance": to_money(opening),
        "closing_balance": to_money(running),
        "lines": lines,
    }
