from pydantic import BaseModel, Field, ConfigDict
from typing import Optional
from datetime import date, datetime
from decimal import Decimal
from feedtrade.models.order import OrderStatus


class SaleBase(BaseModel):
    contact_id: str = Field(..., min_length=1)
    feed_type: Optional[str] = Field(None, max_length=100)
    quantity: Decimal = Field(..., gt=0)
    unit: str = Field(default="kg", max_length=10)
    unit_price: Decimal = Field(..., gt=0)
    sale_date: date
    due_date: Optional[date] = None
    notes: Optional[str] = None


class SaleCreate(SaleBase):
    status: OrderStatus = OrderStatus.draft


class SaleUpdate(BaseModel):
    """Header fields only. Customer and price changes go through reassign."""
    feed_type: Optional[str] = Field(None, max_length=100)
    quantity: Optional[Decimal] = Field(None, gt=0)
    status: Optional[OrderStatus] = None
    due_date: Optional[date] = None
    notes: Optional[str] = None


class SaleCancel(BaseModel):
    reason: Optional[str] = Field(None, max_length=500)


class SaleReassign(BaseModel):
    new_contact_id: str = Field(..., min_length=1)
    new_unit_price: Optional[Decimal] = Field(None, gt=0)


class SaleResponse(SaleBase):
    id: str
    sale_no: str
    total_amount: Decimal
    delivered_quantity: Decimal
    status: OrderStatus
    created_at: datetime
    updated_at: Optional[datetime] = None
    deleted_at: Optional[datetime] = None

    model_config = ConfigDict(from_attributes=True)


class SaleListResponse(BaseModel):
    total: int
    sales: list[SaleResponse]
