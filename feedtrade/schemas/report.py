from pydantic import BaseModel
from typing import Optional
from datetime import date
from decimal import Decimal
from feedtrade.models.contact import ContactType
from feedtrade.models.check import CheckDirection, CheckStatus, CheckType


class ProfitSummaryResponse(BaseModel):
    date_from: Optional[date] = None
    date_to: Optional[date] = None
    delivery_count: int
    tonnage: Decimal
    revenue: Decimal
    cost: Decimal
    freight: Decimal
    net_profit: Decimal
    margin: Decimal


class RankedItem(BaseModel):
    id: str
    name: str
    total: Decimal


class FeedShare(BaseModel):
    name: str
    tonnage: Decimal


class PeriodReportResponse(ProfitSummaryResponse):
    top_customers: list[RankedItem]
    top_suppliers: list[RankedItem]
    top_carriers: list[RankedItem]
    feed_distribution: list[FeedShare]


class BalanceItem(BaseModel):
    contact_id: str
    name: str
    phone: Optional[str] = None
    type: ContactType
    amount: Decimal
    credit_limit: Optional[Decimal] = None
    over_limit: bool = False


class BalanceListResponse(BaseModel):
    total_receivables: Decimal
    total_payables: Decimal
    receivables: list[BalanceItem]
    payables: list[BalanceItem]


class DueCheckItem(BaseModel):
    id: str
    check_type: CheckType
    label: str
    direction: CheckDirection
    status: CheckStatus
    contact_id: str
    contact_name: str
    contact_phone: Optional[str] = None
    check_no: Optional[str] = None
    amount: Decimal
    due_date: date
    overdue: bool
    days_diff: int


class DueCheckListResponse(BaseModel):
    total: int
    checks: list[DueCheckItem]


class DashboardResponse(BaseModel):
    today: date
    today_truck_count: int
    today_tonnage: Decimal
    today_profit: Decimal
    month_revenue: Decimal
    month_tonnage: Decimal
    month_freight: Decimal
    month_profit: Decimal
    pending_receivables: Decimal
    pending_payables: Decimal
    due_check_count: int
    due_check_total: Decimal
    overdue_check_count: int
    customer_balances: list[BalanceItem]
    supplier_balances: list[BalanceItem]
