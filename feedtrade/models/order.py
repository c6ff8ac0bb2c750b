import enum
from decimal import Decimal
from sqlalchemy import Column, Date, DateTime, Enum, ForeignKey, Numeric, String, Text
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func
from feedtrade.core.database import Base
from feedtrade.models.common import generate_custom_id


class OrderStatus(str, enum.Enum):
    pending = "pending"
    draft = "draft"
    confirmed = "confirmed"
    delivered = "delivered"
    cancelled = "cancelled"


# Statuses a sale/purchase can still take deliveries in
OPEN_STATUSES = (OrderStatus.pending, OrderStatus.draft, OrderStatus.confirmed)


class PricingModel(str, enum.Enum):
    nakliye_dahil = "nakliye_dahil"  # supplier price includes freight
    tir_ustu = "tir_ustu"            # price on the truck, freight separate


class Sale(Base):
    """
    Order header for a customer sale. total_amount is informational;
    the ledger is driven by per-delivery transactions.
    """
    __tablename__ = "sales"

    id = Column(String(20), primary_key=True, default=lambda: generate_custom_id("SAL"))
    sale_no = Column(String(30), unique=True, nullable=False)
    contact_id = Column(String(20), ForeignKey("contacts.id"), nullable=False, index=True)
    feed_type = Column(String(100), nullable=True)

    quantity = Column(Numeric(12, 2), nullable=False)
    unit = Column(String(10), nullable=False, default="kg")
    unit_price = Column(Numeric(15, 4), nullable=False)
    total_amount = Column(Numeric(15, 2), nullable=False, default=Decimal("0.00"))
    delivered_quantity = Column(Numeric(12, 2), nullable=False, default=Decimal("0.00"))

    status = Column(Enum(OrderStatus), nullable=False, default=OrderStatus.draft)
    sale_date = Column(Date, nullable=False)
    due_date = Column(Date, nullable=True)
    notes = Column(Text, nullable=True)

    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())
    deleted_at = Column(DateTime(timezone=True), nullable=True, index=True)

    contact = relationship("Contact")
    deliveries = relationship("Delivery", back_populates="sale")


class Purchase(Base):
    """Order header for buying feed from a supplier (üretici)."""
    __tablename__ = "purchases"

    id = Column(String(20), primary_key=True, default=lambda: generate_custom_id("PUR"))
    purchase_no = Column(String(30), unique=True, nullable=False)
    contact_id = Column(String(20), ForeignKey("contacts.id"), nullable=False, index=True)
    feed_type = Column(String(100), nullable=True)

    quantity = Column(Numeric(12, 2), nullable=False)
    unit = Column(String(10), nullable=False, default="kg")
    unit_price = Column(Numeric(15, 4), nullable=False)
    total_amount = Column(Numeric(15, 2), nullable=False, default=Decimal("0.00"))
    pricing_model = Column(Enum(PricingModel), nullable=False, default=PricingModel.tir_ustu)

    status = Column(Enum(OrderStatus), nullable=False, default=OrderStatus.draft)
    purchase_date = Column(Date, nullable=False)
    due_date = Column(Date, nullable=True)
    notes = Column(Text, nullable=True)

    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())
    deleted_at = Column(DateTime(timezone=True), nullable=True, index=True)

    contact = relationship("Contact")
    deliveries = relationship("Delivery", back_populates="purchase")
