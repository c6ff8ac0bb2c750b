import enum
from sqlalchemy import (
    Boolean, CheckConstraint, Column, Date, DateTime, Enum, ForeignKey, Numeric, String, Text
)
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func
from feedtrade.core.database import Base
from feedtrade.models.common import generate_custom_id
from feedtrade.models.order import PricingModel


class FreightPayer(str, enum.Enum):
    customer = "customer"
    me = "me"
    supplier = "supplier"


class Delivery(Base):
    """Weighbridge ticket (kantar fişi). Return deliveries carry is_return=True."""
    __tablename__ = "deliveries"
    __table_args__ = (
        CheckConstraint("net_weight > 0", name="ck_deliveries_net_weight_positive"),
    )

    id = Column(String(20), primary_key=True, default=lambda: generate_custom_id("DLV"))
    sale_id = Column(String(20), ForeignKey("sales.id"), nullable=True, index=True)
    purchase_id = Column(String(20), ForeignKey("purchases.id"), nullable=True, index=True)

    delivery_date = Column(Date, nullable=False)
    ticket_no = Column(String(50), nullable=True)
    gross_weight = Column(Numeric(12, 2), nullable=True)
    tare_weight = Column(Numeric(12, 2), nullable=True)
    net_weight = Column(Numeric(12, 2), nullable=False)

    vehicle_plate = Column(String(20), nullable=True)
    driver_name = Column(String(100), nullable=True)
    carrier_name = Column(String(255), nullable=True)
    carrier_phone = Column(String(20), nullable=True)
    freight_cost = Column(Numeric(15, 2), nullable=True)
    freight_payer = Column(Enum(FreightPayer), nullable=False, default=FreightPayer.me)

    # Prices the ledger lines were posted at
    customer_price = Column(Numeric(15, 4), nullable=True)
    supplier_price = Column(Numeric(15, 4), nullable=True)
    pricing_model = Column(Enum(PricingModel), nullable=True)
    notes = Column(Text, nullable=True)

    is_return = Column(Boolean, nullable=False, default=False)
    returned_delivery_id = Column(String(20), ForeignKey("deliveries.id"), nullable=True)

    created_at = Column(DateTime(timezone=True), server_default=func.now())
    deleted_at = Column(DateTime(timezone=True), nullable=True, index=True)

    sale = relationship("Sale", back_populates="deliveries")
    purchase = relationship("Purchase", back_populates="deliveries")
    returned_delivery = relationship("Delivery", remote_side=[id], backref="returns")
    transactions = relationship("AccountTransaction", back_populates="delivery")
