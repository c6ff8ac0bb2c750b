from pydantic import BaseModel
from datetime import datetime
from decimal import Decimal
from typing import Optional, Literal

TrashTable = Literal["deliveries", "checks", "payments", "sales", "purchases"]


class TrashItem(BaseModel):
    table: TrashTable
    id: str
    summary: str
    amount: Optional[Decimal] = None
    deleted_at: datetime


class TrashListResponse(BaseModel):
    total: int
    items: list[TrashItem]


class TrashActionResponse(BaseModel):
    message: str
    table: TrashTable
    id: str
