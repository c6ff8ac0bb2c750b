"""Payment Routes"""

from datetime import date
from typing import Optional
from fastapi import APIRouter, Depends, HTTPException, status, Query
from sqlalchemy.orm import Session

from feedtrade.core.dependencies import get_db, get_current_active_user
from feedtrade.models.user import User
from feedtrade.models.payment import PaymentDirection, PaymentMethod
from feedtrade.services import payment_service
from feedtrade.schemas.payment import PaymentCreate, PaymentResponse, PaymentListResponse
from feedtrade.logger_config import logger

router = APIRouter()


@router.get("", response_model=PaymentListResponse)
def list_payments(
    skip: int = Query(0, ge=0),
    limit: int = Query(100, ge=1, le=500),
    contact_id: Optional[str] = Query(None),
    direction: Optional[PaymentDirection] = Query(None),
    method: Optional[PaymentMethod] = Query(None),
    date_from: Optional[date] = Query(None),
    date_to: Optional[date] = Query(None),
    current_user: User = Depends(get_current_active_user),
    db: Session = Depends(get_db)
):
    try:
        payments, total = payment_service.get_all_payments(
            db, skip=skip, limit=limit, contact_id=contact_id, direction=direction,
            method=method, date_from=date_from, date_to=date_to
        )
        return PaymentListResponse(total=total, payments=[PaymentResponse.model_validate(p) for p in payments])
    except Exception as e:
        logger.error(f"Error fetching payments: {str(e)}")
        raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail="Failed to fetch payments")


@router.get("/{payment_id}", response_model=PaymentResponse)
def get_payment(
    payment_id: str,
    current_user: User = Depends(get_current_active_user),
    db: Session = Depends(get_db)
):
    payment = payment_service.get_payment_by_id(db, payment_id)
    if not payment:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Payment not found")
    return PaymentResponse.model_validate(payment)


@router.post(
    "",
    response_model=PaymentResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Record a payment",
    description="""
    - inbound (tahsilat): credit on the contact's account
    - outbound (ödeme): debit on the contact's account

    Check / promissory note payments with a due_date also create a linked
    check for tracking.
    """
)
def create_payment(
    payment_data: PaymentCreate,
    current_user: User = Depends(get_current_active_user),
    db: Session = Depends(get_db)
):
    try:
        payment = payment_service.create_payment(db, user_email=current_user.email, **payment_data.model_dump())
        return PaymentResponse.model_validate(payment)
    except ValueError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))
    except Exception as e:
        logger.error(f"Error creating payment: {str(e)}")
        raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail="Failed to create payment")


@router.delete("/{payment_id}", response_model=PaymentResponse)
def delete_payment(
    payment_id: str,
    current_user: User = Depends(get_current_active_user),
    db: Session = Depends(get_db)
):
    """
    Move a payment to the trash with its ledger line and linked check.
    """
    try:
        payment = payment_service.soft_delete_payment(db, payment_id, user_email=current_user.email)
        if not payment:
            raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Payment not found")
        return PaymentResponse.model_validate(payment)
    except HTTPException:
        raise
    except ValueError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))
    except Exception as e:
        logger.error(f"Error deleting payment: {str(e)}")
        raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail="Failed to delete payment")
