import enum
from sqlalchemy import (
    Boolean, CheckConstraint, Column, Date, DateTime, Enum, ForeignKey, Integer, Numeric, String
)
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func
from feedtrade.core.database import Base
from feedtrade.models.common import generate_custom_id


class Carrier(Base):
    """Nakliyeci. Deactivated instead of deleted."""
    __tablename__ = "carriers"

    id = Column(String(20), primary_key=True, default=lambda: generate_custom_id("CAR"))
    name = Column(String(255), nullable=False, unique=True)
    phone = Column(String(20), nullable=True)
    is_active = Column(Boolean, nullable=False, default=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now())

    vehicles = relationship("Vehicle", back_populates="carrier")
    transactions = relationship("CarrierTransaction", back_populates="carrier")


class Vehicle(Base):
    __tablename__ = "vehicles"

    id = Column(Integer, primary_key=True, autoincrement=True)
    plate = Column(String(20), nullable=False, unique=True)
    carrier_id = Column(String(20), ForeignKey("carriers.id"), nullable=True)
    driver_name = Column(String(100), nullable=True)
    is_active = Column(Boolean, nullable=False, default=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now())

    carrier = relationship("Carrier", back_populates="vehicles")


class CarrierTransactionType(str, enum.Enum):
    freight_charge = "freight_charge"  # we owe the carrier
    payment = "payment"                # we paid the carrier


class CarrierTransaction(Base):
    __tablename__ = "carrier_transactions"
    __table_args__ = (
        CheckConstraint("amount > 0", name="ck_carrier_transactions_amount_positive"),
    )

    id = Column(Integer, primary_key=True, autoincrement=True)
    carrier_id = Column(String(20), ForeignKey("carriers.id"), nullable=False, index=True)
    type = Column(Enum(CarrierTransactionType), nullable=False)
    amount = Column(Numeric(15, 2), nullable=False)
    delivery_id = Column(String(20), ForeignKey("deliveries.id", ondelete="CASCADE"),
                         nullable=True, index=True)
    payment_method = Column(String(30), nullable=True)
    description = Column(String(500), nullable=True)
    transaction_date = Column(Date, nullable=False)

    created_at = Column(DateTime(timezone=True), server_default=func.now())
    deleted_at = Column(DateTime(timezone=True), nullable=True, index=True)

    carrier = relationship("Carrier", back_populates="transactions")
