import enum
from sqlalchemy import (
    CheckConstraint, Column, Date, DateTime, Enum, ForeignKey, Integer, Numeric, String
)
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func
from feedtrade.core.database import Base
from feedtrade.models.common import generate_custom_id


class PaymentDirection(str, enum.Enum):
    inbound = "inbound"    # tahsilat: contact pays us
    outbound = "outbound"  # ödeme: we pay the contact


class PaymentMethod(str, enum.Enum):
    cash = "cash"
    bank_transfer = "bank_transfer"
    check = "check"
    promissory_note = "promissory_note"


class Payment(Base):
    __tablename__ = "payments"
    __table_args__ = (
        CheckConstraint("amount > 0", name="ck_payments_amount_positive"),
    )

    id = Column(String(20), primary_key=True, default=lambda: generate_custom_id("PAY"))
    contact_id = Column(String(20), ForeignKey("contacts.id"), nullable=False, index=True)
    account_id = Column(Integer, ForeignKey("accounts.id"), nullable=False)

    direction = Column(Enum(PaymentDirection), nullable=False)
    method = Column(Enum(PaymentMethod), nullable=False)
    amount = Column(Numeric(15, 2), nullable=False)
    payment_date = Column(Date, nullable=False)
    description = Column(String(500), nullable=True)

    created_at = Column(DateTime(timezone=True), server_default=func.now())
    deleted_at = Column(DateTime(timezone=True), nullable=True, index=True)

    contact = relationship("Contact")
    account = relationship("Account")
    checks = relationship("Check", back_populates="payment")
