from pydantic import BaseModel, Field, ConfigDict
from typing import Optional
from datetime import date, datetime
from decimal import Decimal
from feedtrade.models.carrier import CarrierTransactionType


class CarrierCreate(BaseModel):
    name: str = Field(..., min_length=1, max_length=255)
    phone: Optional[str] = Field(None, max_length=20)


class CarrierUpdate(BaseModel):
    name: Optional[str] = Field(None, min_length=1, max_length=255)
    phone: Optional[str] = Field(None, max_length=20)
    is_active: Optional[bool] = None


class CarrierResponse(BaseModel):
    id: str
    name: str
    phone: Optional[str] = None
    is_active: bool
    created_at: Optional[datetime] = None

    model_config = ConfigDict(from_attributes=True)


class CarrierListResponse(BaseModel):
    total: int
    carriers: list[CarrierResponse]


class CarrierBalanceResponse(BaseModel):
    carrier_id: str
    carrier_name: str
    total_freight: Decimal
    total_paid: Decimal
    balance: Decimal


class VehicleUpsert(BaseModel):
    plate: str = Field(..., min_length=1, max_length=20)
    carrier_id: Optional[str] = None
    driver_name: Optional[str] = Field(None, max_length=100)


class VehicleResponse(BaseModel):
    id: int
    plate: str
    carrier_id: Optional[str] = None
    driver_name: Optional[str] = None
    is_active: bool

    model_config = ConfigDict(from_attributes=True)


class VehicleListResponse(BaseModel):
    total: int
    vehicles: list[VehicleResponse]


class CarrierPaymentCreate(BaseModel):
    amount: Decimal = Field(..., gt=0)
    payment_method: Optional[str] = Field(None, max_length=30)
    transaction_date: date
    description: Optional[str] = Field(None, max_length=500)


class CarrierTransactionResponse(BaseModel):
    id: int
    carrier_id: str
    type: CarrierTransactionType
    amount: Decimal
    delivery_id: Optional[str] = None
    payment_method: Optional[str] = None
    description: Optional[str] = None
    transaction_date: date
    created_at: Optional[datetime] = None
    deleted_at: Optional[datetime] = None

    model_config = ConfigDict(from_attributes=True)


class CarrierTransactionListResponse(BaseModel):
    total: int
    transactions: list[CarrierTransactionResponse]
