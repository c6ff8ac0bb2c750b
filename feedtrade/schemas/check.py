"""Check / promissory note Schemas"""

from pydantic import BaseModel, Field, ConfigDict, model_validator
from typing import Optional
from datetime import date, datetime
from decimal import Decimal
from feedtrade.models.check import CheckType, CheckDirection, CheckStatus


class CheckCreate(BaseModel):
    contact_id: str = Field(..., min_length=1)
    check_type: CheckType = CheckType.check
    direction: CheckDirection
    check_no: Optional[str] = Field(None, max_length=50)
    bank_name: Optional[str] = Field(None, max_length=100)
    branch_name: Optional[str] = Field(None, max_length=100)
    amount: Decimal = Field(..., gt=0)
    issue_date: date
    due_date: date
    notes: Optional[str] = None

    @model_validator(mode="after")
    def check_dates(self):
        if self.due_date < self.issue_date:
            raise ValueError("Due date cannot be before issue date")
        return self


class CheckStatusUpdate(BaseModel):
    status: CheckStatus
    notes: Optional[str] = None


class CheckEndorse(BaseModel):
    target_contact_id: str = Field(..., min_length=1)
    notes: Optional[str] = None


class CheckResponse(BaseModel):
    id: str
    contact_id: str
    check_type: CheckType
    direction: CheckDirection
    check_no: Optional[str] = None
    bank_name: Optional[str] = None
    branch_name: Optional[str] = None
    amount: Decimal
    issue_date: date
    due_date: date
    status: CheckStatus
    endorsed_to: Optional[str] = None
    endorsed_from_id: Optional[str] = None
    payment_id: Optional[str] = None
    notes: Optional[str] = None
    created_at: Optional[datetime] = None
    deleted_at: Optional[datetime] = None

    model_config = ConfigDict(from_attributes=True)


class CheckListResponse(BaseModel):
    total: int
    checks: list[CheckResponse]


class CheckEndorseResponse(BaseModel):
    original: CheckResponse
    endorsed: CheckResponse
