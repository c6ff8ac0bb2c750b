import enum
from sqlalchemy import (
    CheckConstraint, Column, Date, DateTime, Enum, ForeignKey, Numeric, String, Text
)
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func
from feedtrade.core.database import Base
from feedtrade.models.common import generate_custom_id


class CheckType(str, enum.Enum):
    check = "check"                      # çek
    promissory_note = "promissory_note"  # senet


class CheckDirection(str, enum.Enum):
    received = "received"
    given = "given"


class CheckStatus(str, enum.Enum):
    pending = "pending"
    deposited = "deposited"
    cleared = "cleared"
    bounced = "bounced"
    endorsed = "endorsed"
    cancelled = "cancelled"


CHECK_TRANSITIONS = {
    CheckStatus.pending: {CheckStatus.deposited, CheckStatus.endorsed, CheckStatus.cancelled},
    CheckStatus.deposited: {CheckStatus.cleared, CheckStatus.bounced, CheckStatus.cancelled},
    CheckStatus.bounced: {CheckStatus.pending},
    CheckStatus.endorsed: set(),
    CheckStatus.cleared: set(),
    CheckStatus.cancelled: set(),
}


class Check(Base):
    """Çek / senet."""
    __tablename__ = "checks"
    __table_args__ = (
        CheckConstraint("amount > 0", name="ck_checks_amount_positive"),
    )

    id = Column(String(20), primary_key=True, default=lambda: generate_custom_id("CHK"))
    contact_id = Column(String(20), ForeignKey("contacts.id"), nullable=False, index=True)

    check_type = Column(Enum(CheckType), nullable=False, default=CheckType.check)
    direction = Column(Enum(CheckDirection), nullable=False)
    check_no = Column(String(50), nullable=True)
    bank_name = Column(String(100), nullable=True)
    branch_name = Column(String(100), nullable=True)
    amount = Column(Numeric(15, 2), nullable=False)
    issue_date = Column(Date, nullable=False)
    due_date = Column(Date, nullable=False)
    status = Column(Enum(CheckStatus), nullable=False, default=CheckStatus.pending)

    endorsed_to = Column(String(255), nullable=True)
    endorsed_from_id = Column(String(20), ForeignKey("checks.id"), nullable=True)
    # Set when the check was recorded through a check/promissory-note payment
    payment_id = Column(String(20), ForeignKey("payments.id"), nullable=True, index=True)
    notes = Column(Text, nullable=True)

    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())
    deleted_at = Column(DateTime(timezone=True), nullable=True, index=True)

    contact = relationship("Contact")
    payment = relationship("Payment", back_populates="checks")
    endorsed_from = relationship("Check", remote_side=[id])

    def can_transition_to(self, new_status: CheckStatus) -> bool:
        return new_status in CHECK_TRANSITIONS[self.status]
