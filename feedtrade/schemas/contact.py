from pydantic import BaseModel, Field, ConfigDict
from typing import Optional
from datetime import datetime
from decimal import Decimal
from feedtrade.models.contact import ContactType


class AccountResponse(BaseModel):
    id: int
    contact_id: str
    total_debit: Decimal
    total_credit: Decimal
    balance: Decimal
    updated_at: Optional[datetime] = None

    model_config = ConfigDict(from_attributes=True)


class ContactBase(BaseModel):
    name: str = Field(..., min_length=1, max_length=255)
    type: ContactType
    phone: Optional[str] = Field(None, max_length=20)
    email: Optional[str] = Field(None, max_length=255)
    city: Optional[str] = Field(None, max_length=100)
    address: Optional[str] = Field(None, max_length=500)
    notes: Optional[str] = None
    credit_limit: Optional[Decimal] = Field(None, ge=0)


class ContactCreate(ContactBase):
    pass


class ContactUpdate(BaseModel):
    name: Optional[str] = Field(None, min_length=1, max_length=255)
    type: Optional[ContactType] = None
    phone: Optional[str] = Field(None, max_length=20)
    email: Optional[str] = Field(None, max_length=255)
    city: Optional[str] = Field(None, max_length=100)
    address: Optional[str] = Field(None, max_length=500)
    notes: Optional[str] = None
    credit_limit: Optional[Decimal] = Field(None, ge=0)


class ContactResponse(ContactBase):
    id: str
    created_at: datetime
    updated_at: Optional[datetime] = None
    account: Optional[AccountResponse] = None

    class Config:
        from_attributes = True


class ContactListResponse(BaseModel):
    total: int
    contacts: list[ContactResponse]


class ContactDeleteResponse(BaseModel):
    message: str
