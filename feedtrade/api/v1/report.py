"""Dashboard and profit report routes"""

from datetime import date
from typing import Optional
from fastapi import APIRouter, Depends, HTTPException, status, Query
from sqlalchemy.orm import Session

from feedtrade.core.dependencies import get_db, get_current_active_user
from feedtrade.models.user import User
from feedtrade.services import report_service
from feedtrade.schemas.report import (
    DashboardResponse,
    PeriodReportResponse,
    BalanceListResponse,
    DueCheckItem,
    DueCheckListResponse,
)
from feedtrade.logger_config import logger

router = APIRouter()


@router.get("/dashboard", response_model=DashboardResponse)
def get_dashboard(
    today: Optional[date] = Query(None, description="Defaults to the server date"),
    current_user: User = Depends(get_current_active_user),
    db: Session = Depends(get_db)
):
    try:
        return DashboardResponse(**report_service.dashboard(db, today=today))
    except Exception as e:
        logger.error(f"Error building dashboard: {str(e)}")
        raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail="Failed to build dashboard")


@router.get("/profit", response_model=PeriodReportResponse)
def get_profit_report(
    date_from: Optional[date] = Query(None),
    date_to: Optional[date] = Query(None),
    top: int = Query(5, ge=1, le=50),
    current_user: User = Depends(get_current_active_user),
    db: Session = Depends(get_db)
):
    """
    Profit/loss for a period: revenue, cost, freight we paid, net profit
    and margin, with the top counterparties and feed type breakdown.
    """
    try:
        return PeriodReportResponse(**report_service.period_report(db, date_from, date_to, top=top))
    except ValueError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))
    except Exception as e:
        logger.error(f"Error building profit report: {str(e)}")
        raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail="Failed to build profit report")


@router.get("/balances", response_model=BalanceListResponse)
def get_balances(
    current_user: User = Depends(get_current_active_user),
    db: Session = Depends(get_db)
):
    return BalanceListResponse(**report_service.balance_lists(db))


@router.get("/due-checks", response_model=DueCheckListResponse)
def get_due_checks(
    days: int = Query(30, ge=0, le=365),
    limit: Optional[int] = Query(None, ge=1, le=500),
    today: Optional[date] = Query(None),
    current_user: User = Depends(get_current_active_user),
    db: Session = Depends(get_db)
):
    """Checks and notes still to be collected or paid, overdue first."""
    items = report_service.get_due_checks(db, today=today, days=days, limit=limit)
    return DueCheckListResponse(total=len(items), checks=[DueCheckItem(**item) for item in items])
