from pydantic import BaseModel, ConfigDict
from typing import Optional
from datetime import date, datetime
from decimal import Decimal
from feedtrade.models.ledger import TransactionType, ReferenceType


class TransactionResponse(BaseModel):
    id: int
    account_id: int
    type: TransactionType
    amount: Decimal
    reference_type: ReferenceType
    reference_id: str
    delivery_id: Optional[str] = None
    description: Optional[str] = None
    transaction_date: date
    created_at: Optional[datetime] = None
    deleted_at: Optional[datetime] = None

    model_config = ConfigDict(from_attributes=True)


class TransactionListResponse(BaseModel):
    total: int
    transactions: list[TransactionResponse]


class StatementLine(BaseModel):
    """One statement row with the running balance after it."""
    id: int
    transaction_date: date
    description: Optional[str] = None
    reference_type: ReferenceType
    reference_id: str
    debit: Decimal
    credit: Decimal
    balance: Decimal


class AccountStatementResponse(BaseModel):
    account_id: int
    contact_id: str
    contact_name: str
    date_from: Optional[date] = None
    date_to: Optional[date] = None
    opening_balance: Decimal
    closing_balance: Decimal
    lines: list[StatementLine]


class DriftedAccount(BaseModel):
    account_id: int
    contact_id: str
    cached_balance: Decimal
    computed_balance: Decimal


class BalanceCheckResponse(BaseModel):
    checked: int
    drifted: list[DriftedAccount]


class RecalcResponse(BaseModel):
    message: str
    recalculated: int
