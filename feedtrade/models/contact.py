import enum
from decimal import Decimal
from sqlalchemy import Column, DateTime, Enum, ForeignKey, Integer, Numeric, String, Text
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func
from feedtrade.core.database import Base
from feedtrade.models.common import generate_custom_id


class ContactType(str, enum.Enum):
    supplier = "supplier"
    customer = "customer"
    both = "both"


class Contact(Base):
    """Supplier (üretici), customer (müşteri) or both."""
    __tablename__ = "contacts"

    id = Column(String(20), primary_key=True, default=lambda: generate_custom_id("CNT"))
    name = Column(String(255), nullable=False, index=True)
    type = Column(Enum(ContactType), nullable=False)
    phone = Column(String(20), nullable=True)
    email = Column(String(255), nullable=True)
    city = Column(String(100), nullable=True)
    address = Column(String(500), nullable=True)
    notes = Column(Text, nullable=True)
    credit_limit = Column(Numeric(15, 2), nullable=True)

    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())

    account = relationship("Account", back_populates="contact", uselist=False,
                           cascade="all, delete-orphan")

    def __repr__(self):
        return f"<Contact(id='{self.id}', name='{self.name}', type='{self.type}')>"


class Account(Base):
    """
    Running account (cari hesap) of a contact.

    total_debit / total_credit / balance are a cache of the non-deleted
    account_transactions and are only ever written by
    ledger_service.recalc_account_balance.
    Positive balance = the contact owes us, negative = we owe the contact.
    """
    __tablename__ = "accounts"

    id = Column(Integer, primary_key=True, autoincrement=True)
    contact_id = Column(String(20), ForeignKey("contacts.id", ondelete="CASCADE"),
                        nullable=False, unique=True)

    total_debit = Column(Numeric(15, 2), nullable=False, default=Decimal("0.00"))
    total_credit = Column(Numeric(15, 2), nullable=False, default=Decimal("0.00"))
    balance = Column(Numeric(15, 2), nullable=False, default=Decimal("0.00"))

    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())

    contact = relationship("Contact", back_populates="account")
    transactions = relationship("AccountTransaction", back_populates="account",
                                cascade="all, delete-orphan")
