from pydantic import BaseModel, Field, ConfigDict
from typing import Optional
from datetime import date, datetime
from decimal import Decimal
from feedtrade.models.order import OrderStatus, PricingModel


class PurchaseBase(BaseModel):
    contact_id: str = Field(..., min_length=1)
    feed_type: Optional[str] = Field(None, max_length=100)
    quantity: Decimal = Field(..., gt=0)
    unit: str = Field(default="kg", max_length=10)
    unit_price: Decimal = Field(..., gt=0)
    pricing_model: PricingModel = PricingModel.tir_ustu
    purchase_date: date
    due_date: Optional[date] = None
    notes: Optional[str] = None


class PurchaseCreate(PurchaseBase):
    status: OrderStatus = OrderStatus.draft


class PurchaseUpdate(BaseModel):
    feed_type: Optional[str] = Field(None, max_length=100)
    quantity: Optional[Decimal] = Field(None, gt=0)
    unit_price: Optional[Decimal] = Field(None, gt=0)
    pricing_model: Optional[PricingModel] = None
    status: Optional[OrderStatus] = None
    due_date: Optional[date] = None
    notes: Optional[str] = None


class PurchaseResponse(PurchaseBase):
    id: str
    purchase_no: str
    total_amount: Decimal
    status: OrderStatus
    created_at: datetime
    updated_at: Optional[datetime] = None
    deleted_at: Optional[datetime] = None

    model_config = ConfigDict(from_attributes=True)


class PurchaseListResponse(BaseModel):
    total: int
    purchases: list[PurchaseResponse]
