"""Account (cari hesap) Routes"""

from datetime import date
from typing import Optional
from fastapi import APIRouter, Depends, HTTPException, status, Query
from sqlalchemy.orm import Session

from feedtrade.core.dependencies import get_db, get_current_active_user, require_owner
from feedtrade.models.user import User
from feedtrade.services.ledger_service import (
    get_account_by_id,
    get_account_by_contact_id,
    get_account_transactions,
    get_account_statement,
    recalc_all_accounts,
    find_drifted_accounts,
)
from feedtrade.schemas.contact import AccountResponse
from feedtrade.schemas.ledger import (
    TransactionResponse,
    TransactionListResponse,
    AccountStatementResponse,
    BalanceCheckResponse,
    RecalcResponse,
)
from feedtrade.logger_config import logger

router = APIRouter()


@router.get("/balance-check", response_model=BalanceCheckResponse)
def check_balances(
    current_user: User = Depends(get_current_active_user),
    db: Session = Depends(get_db)
):
    """
    Compare every account's cached balance with the sum of its live transactions.
    """
    try:
        checked, drifted = find_drifted_accounts(db)
        return BalanceCheckResponse(checked=checked, drifted=drifted)
    except Exception as e:
        logger.error(f"Error checking balances: {str(e)}")
        raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail="Failed to check balances")


@router.post("/recalculate", response_model=RecalcResponse)
def recalculate_all(
    current_user: User = Depends(require_owner),
    db: Session = Depends(get_db)
):
    """
    Rebuild every account's totals from its transactions. Owner only.
    """
    try:
        count = recalc_all_accounts(db)
        return RecalcResponse(message="Balances recalculated", recalculated=count)
    except Exception as e:
        logger.error(f"Error recalculating balances: {str(e)}")
        raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail="Failed to recalculate balances")


@router.get("/by-contact/{contact_id}", response_model=AccountResponse)
def get_account_for_contact(
    contact_id: str,
    current_user: User = Depends(get_current_active_user),
    db: Session = Depends(get_db)
):
    account = get_account_by_contact_id(db, contact_id)
    if not account:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Account not found")
    return AccountResponse.model_validate(account)


@router.get("/{account_id}", response_model=AccountResponse)
def get_account(
    account_id: int,
    current_user: User = Depends(get_current_active_user),
    db: Session = Depends(get_db)
):
    account = get_account_by_id(db, account_id)
    if not account:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Account not found")
    return AccountResponse.model_validate(account)


@router.get("/{account_id}/transactions", response_model=TransactionListResponse)
def list_account_transactions(
    account_id: int,
    skip: int = Query(0, ge=0),
    limit: int = Query(100, ge=1, le=500),
    include_deleted: bool = Query(False),
    current_user: User = Depends(get_current_active_user),
    db: Session = Depends(get_db)
):
    """
    Ledger lines of an account, newest first.
    """
    if not get_account_by_id(db, account_id):
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Account not found")
    try:
        transactions, total = get_account_transactions(
            db, account_id, skip=skip, limit=limit, include_deleted=include_deleted
        )
        return TransactionListResponse(
            total=total,
            transactions=[TransactionResponse.model_validate(tx) for tx in transactions]
        )
    except Exception as e:
        logger.error(f"Error fetching transactions: {str(e)}")
        raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail="Failed to fetch transactions")


@router.get("/{account_id}/statement", response_model=AccountStatementResponse)
def account_statement(
    account_id: int,
    date_from: Optional[date] = Query(None),
    date_to: Optional[date] = Query(None),
    current_user: User = Depends(get_current_active_user),
    db: Session = Depends(get_db)
):
    """
    Account statement (hesap ekstresi) with running balance.
    """
    statement = get_account_statement(db, account_id, date_from=date_from, date_to=date_to)
    if statement is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Account not found")
    return AccountStatementResponse(**statement)
