"""Payment (tahsilat / ödeme) Schemas"""

from pydantic import BaseModel, Field, ConfigDict, field_validator
from typing import Optional
from datetime import date, datetime
from decimal import Decimal
from feedtrade.models.payment import PaymentDirection, PaymentMethod


class PaymentCreate(BaseModel):
    contact_id: str = Field(..., min_length=1)
    direction: PaymentDirection
    method: PaymentMethod
    amount: Decimal = Field(..., gt=0)
    payment_date: date
    description: Optional[str] = Field(default=None, max_length=500)
    # Only used for check / promissory_note payments
    due_date: Optional[date] = None
    check_no: Optional[str] = Field(default=None, max_length=50)
    bank_name: Optional[str] = Field(default=None, max_length=100)

    @field_validator('amount')
    @classmethod
    def validate_amount(cls, v):
        if v.as_tuple().exponent < -2:
            raise ValueError('Max 2 decimal places')
        return v

    class Config:
        json_schema_extra = {
            "example": {
                "contact_id": "CNT-4K2M9QX1",
                "direction": "inbound",
                "method": "bank_transfer",
                "amount": 150000.00,
                "payment_date": "2025-03-20",
                "description": "Mart tahsilatı"
            }
        }


class PaymentResponse(BaseModel):
    id: str
    contact_id: str
    account_id: int
    direction: PaymentDirection
    method: PaymentMethod
    amount: Decimal
    payment_date: date
    description: Optional[str] = None
    created_at: Optional[datetime] = None
    deleted_at: Optional[datetime] = None

    model_config = ConfigDict(from_attributes=True)


class PaymentListResponse(BaseModel):
    total: int
    payments: list[PaymentResponse]
