from sqlalchemy.orm import Session, joinedload
from sqlalchemy.exc import IntegrityError
from sqlalchemy import or_
from decimal import Decimal
from typing import Optional, List
from feedtrade.models.contact import Contact, ContactType, Account
from feedtrade.models.ledger import AccountTransaction
from feedtrade.models.order import Sale, Purchase
from feedtrade.models.payment import Payment
from feedtrade.models.check import Check
from feedtrade.models.audit import AuditAction
from feedtrade.services.audit_service import log_action, snapshot
from feedtrade.services.ledger_service import ZERO
from feedtrade.logger_config import logger


def get_contact_by_id(db: Session, contact_id: str) -> Optional[Contact]:
    """Get contact with its account."""
    return db.query(Contact).options(joinedload(Contact.account)).filter(Contact.id == contact_id).first()


def get_all_contacts(
    db: Session,
    skip: int = 0,
    limit: int = 100,
    type: Optional[ContactType] = None,
    search: Optional[str] = None
) -> tuple[List[Contact], int]:
    """Get contacts, optionally by type and a name/phone/city search.

    Filtering by supplier or customer also returns contacts of type 'both'.
    """
    query = db.query(Contact).options(joinedload(Contact.account))

    if type in (ContactType.supplier, ContactType.customer):
        query = query.filter(Contact.type.in_([type, ContactType.both]))
    elif type:
        query = query.filter(Contact.type == type)

    if search:
        search_term = f"%{search}%"
        query = query.filter(
            or_(
                Contact.name.ilike(search_term),
                Contact.phone.ilike(search_term),
                Contact.city.ilike(search_term)
            )
        )

    total = query.count()
    contacts = query.order_by(Contact.name.asc()).offset(skip).limit(limit).all()
    return contacts, total


def create_contact(
    db: Session,
    name: str,
    type: ContactType,
    phone: Optional[str] = None,
    email: Optional[str] = None,
    city: Optional[str] = None,
    address: Optional[str] = None,
    notes: Optional[str] = None,
    credit_limit: Optional[Decimal] = None,
    user_email: Optional[str] = None
) -> Contact:
    """Create a contact together with its (zero) account."""
    contact = Contact(
        name=name.strip(),
        type=type,
        phone=phone,
        email=email,
        city=city,
        address=address,
        notes=notes,
        credit_limit=credit_limit
    )
    db.add(contact)
    db.flush()  # Flush to get contact.id

    account = Account(
        contact_id=contact.id,
        total_debit=ZERO,
        total_credit=ZERO,
        balance=ZERO
    )
    db.add(account)
    db.flush()

    log_action(db, "contacts", contact.id, AuditAction.create,
               new_values=snapshot(contact), user_email=user_email)

    try:
        db.commit()
        db.refresh(contact)
        logger.info(f"Contact {contact.id} ({contact.name}) created with account {account.id}")
        return contact
    except IntegrityError as e:
        db.rollback()
        logger.error(f"Error creating contact: {str(e)}")
        raise ValueError("Failed to create contact.")


def update_contact(
    db: Session,
    contact_id: str,
    user_email: Optional[str] = None,
    **fields
) -> Optional[Contact]:
    """Update the given contact fields. None values are ignored."""
    contact = get_contact_by_id(db, contact_id)
    if not contact:
        return None

    old_values = snapshot(contact)
    for key, value in fields.items():
        if value is not None:
            setattr(contact, key, value)

    log_action(db, "contacts", contact.id, AuditAction.update,
               old_values=old_values, new_values=snapshot(contact), user_email=user_email)

    try:
        db.commit()
        db.refresh(contact)
        return contact
    except IntegrityError as e:
        db.rollback()
        logger.error(f"Error updating contact: {str(e)}")
        raise ValueError("Failed to update contact.")


def delete_contact(db: Session, contact_id: str, user_email: Optional[str] = None) -> bool:
    """
    Delete a contact and its account.
    Refused while the account has any transactions, trashed ones included,
    or the contact has documents.
    """
    contact = get_contact_by_id(db, contact_id)
    if not contact:
        return False

    if contact.account:
        lines = db.query(AccountTransaction).filter(
            AccountTransaction.account_id == contact.account.id
        )
        live = lines.filter(AccountTransaction.deleted_at.is_(None)).count()
        if live:
            raise ValueError(f"Contact has {live} active transactions and cannot be deleted")
        if lines.count():
            raise ValueError("Contact has transactions in the trash; purge them before deleting")

    for model, label in ((Sale, "sales"), (Purchase, "purchases"), (Payment, "payments"), (Check, "checks")):
        if db.query(model).filter(model.contact_id == contact_id).count():
            raise ValueError(f"Contact still has {label} and cannot be deleted")

    try:
        log_action(db, "contacts", contact.id, AuditAction.delete,
                   old_values=snapshot(contact), user_email=user_email)
        db.delete(contact)
        db.commit()
        logger.info(f"Contact {contact_id} deleted")
        return True
    except IntegrityError as e:
        db.rollback()
        logger.error(f"Error deleting contact: {str(e)}")
        raise ValueError("Failed to delete contact.")
