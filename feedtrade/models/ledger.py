import enum
from decimal import Decimal
from sqlalchemy import (
    CheckConstraint, Column, Date, DateTime, Enum, ForeignKey, Integer, Numeric, String
)
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func
from feedtrade.core.database import Base


class TransactionType(str, enum.Enum):
    debit = "debit"
    credit = "credit"


class ReferenceType(str, enum.Enum):
    sale = "sale"
    purchase = "purchase"
    payment = "payment"


class AccountTransaction(Base):
    """
    One debit or credit line on an account.

    Rows are never edited after insert. Reversal = soft delete (deleted_at),
    permanent delete = hard delete of the row.
    """
    __tablename__ = "account_transactions"
    __table_args__ = (
        CheckConstraint("amount > 0", name="ck_account_transactions_amount_positive"),
    )

    id = Column(Integer, primary_key=True, autoincrement=True)
    account_id = Column(Integer, ForeignKey("accounts.id", ondelete="CASCADE"),
                        nullable=False, index=True)

    type = Column(Enum(TransactionType), nullable=False)
    amount = Column(Numeric(15, 2), nullable=False)

    reference_type = Column(Enum(ReferenceType), nullable=False)
    reference_id = Column(String(30), nullable=False, index=True)
    # Both sides of a delivery carry the delivery id so they reverse together
    delivery_id = Column(String(20), ForeignKey("deliveries.id", ondelete="CASCADE"),
                         nullable=True, index=True)

    description = Column(String(500), nullable=True)
    transaction_date = Column(Date, nullable=False)

    created_at = Column(DateTime(timezone=True), server_default=func.now())
    deleted_at = Column(DateTime(timezone=True), nullable=True, index=True)

    account = relationship("Account", back_populates="transactions")
    delivery = relationship("Delivery", back_populates="transactions")

    @property
    def signed_amount(self) -> Decimal:
        return self.amount if self.type == TransactionType.debit else -self.amount

    def __repr__(self):
        return (f"<AccountTransaction(id={self.id}, account_id={self.account_id}, "
                f"type='{self.type}', amount={self.amount})>")
