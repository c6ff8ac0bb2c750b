"""Delivery (weighbridge ticket) Schemas"""

from pydantic import BaseModel, Field, ConfigDict, model_validator
from typing import Optional
from datetime import date, datetime
from decimal import Decimal
from feedtrade.models.delivery import FreightPayer
from feedtrade.models.order import PricingModel


class DeliveryCreate(BaseModel):
    """
    Record a delivery and post it to both accounts.

    Contacts and prices default to the linked sale (customer side) and
    purchase (supplier side) when omitted.
    """
    sale_id: Optional[str] = None
    purchase_id: Optional[str] = None
    customer_contact_id: Optional[str] = None
    supplier_contact_id: Optional[str] = None
    customer_price: Optional[Decimal] = Field(None, gt=0)
    supplier_price: Optional[Decimal] = Field(None, gt=0)
    pricing_model: Optional[PricingModel] = None

    delivery_date: date
    ticket_no: Optional[str] = Field(None, max_length=50)
    gross_weight: Optional[Decimal] = Field(None, ge=0)
    tare_weight: Optional[Decimal] = Field(None, ge=0)
    net_weight: Decimal = Field(..., gt=0)
    vehicle_plate: Optional[str] = Field(None, max_length=20)
    driver_name: Optional[str] = Field(None, max_length=100)
    carrier_name: Optional[str] = Field(None, max_length=255)
    carrier_phone: Optional[str] = Field(None, max_length=20)
    freight_cost: Optional[Decimal] = Field(None, ge=0)
    freight_payer: FreightPayer = FreightPayer.me
    notes: Optional[str] = None

    @model_validator(mode="after")
    def check_weights(self):
        if self.gross_weight is not None and self.tare_weight is not None:
            if self.gross_weight < self.tare_weight:
                raise ValueError("Gross weight cannot be less than tare weight")
        return self

    class Config:
        json_schema_extra = {
            "example": {
                "sale_id": "SAL-AB12CD34",
                "purchase_id": "PUR-EF56GH78",
                "delivery_date": "2025-03-14",
                "ticket_no": "4512",
                "net_weight": 28500,
                "vehicle_plate": "42 ABC 123",
                "carrier_name": "Konya Nakliyat",
                "freight_cost": 9000,
                "freight_payer": "me"
            }
        }


class DeliveryUpdate(BaseModel):
    """Weight and prices are fixed once posted; delete and re-enter to change them."""
    delivery_date: Optional[date] = None
    ticket_no: Optional[str] = Field(None, max_length=50)
    vehicle_plate: Optional[str] = Field(None, max_length=20)
    driver_name: Optional[str] = Field(None, max_length=100)
    carrier_name: Optional[str] = Field(None, max_length=255)
    carrier_phone: Optional[str] = Field(None, max_length=20)
    freight_cost: Optional[Decimal] = Field(None, ge=0)
    freight_payer: Optional[FreightPayer] = None
    notes: Optional[str] = None


class DeliveryReturnCreate(BaseModel):
    returned_kg: Decimal = Field(..., gt=0)
    return_date: Optional[date] = None
    notes: Optional[str] = None


class DeliveryResponse(BaseModel):
    id: str
    sale_id: Optional[str] = None
    purchase_id: Optional[str] = None
    delivery_date: date
    ticket_no: Optional[str] = None
    gross_weight: Optional[Decimal] = None
    tare_weight: Optional[Decimal] = None
    net_weight: Decimal
    vehicle_plate: Optional[str] = None
    driver_name: Optional[str] = None
    carrier_name: Optional[str] = None
    carrier_phone: Optional[str] = None
    freight_cost: Optional[Decimal] = None
    freight_payer: FreightPayer
    customer_price: Optional[Decimal] = None
    supplier_price: Optional[Decimal] = None
    pricing_model: Optional[PricingModel] = None
    notes: Optional[str] = None
    is_return: bool
    returned_delivery_id: Optional[str] = None
    created_at: Optional[datetime] = None
    deleted_at: Optional[datetime] = None

    model_config = ConfigDict(from_attributes=True)


class DeliveryListResponse(BaseModel):
    total: int
    deliveries: list[DeliveryResponse]
