"""Purchase Routes"""

from datetime import date
from typing import Optional
from fastapi import APIRouter, Depends, HTTPException, status, Query
from sqlalchemy.orm import Session

from feedtrade.core.dependencies import get_db, get_current_active_user
from feedtrade.models.user import User
from feedtrade.models.order import OrderStatus
from feedtrade.services import purchase_service
from feedtrade.schemas.purchase import (
    PurchaseCreate,
    PurchaseUpdate,
    PurchaseResponse,
    PurchaseListResponse,
)
from feedtrade.logger_config import logger

router = APIRouter()


@router.get("", response_model=PurchaseListResponse)
def list_purchases(
    skip: int = Query(0, ge=0),
    limit: int = Query(100, ge=1, le=500),
    contact_id: Optional[str] = Query(None),
    status_filter: Optional[OrderStatus] = Query(None, alias="status"),
    date_from: Optional[date] = Query(None),
    date_to: Optional[date] = Query(None),
    current_user: User = Depends(get_current_active_user),
    db: Session = Depends(get_db)
):
    try:
        purchases, total = purchase_service.get_all_purchases(
            db, skip=skip, limit=limit, contact_id=contact_id, status=status_filter,
            date_from=date_from, date_to=date_to
        )
        return PurchaseListResponse(
            total=total,
            purchases=[PurchaseResponse.model_validate(p) for p in purchases]
        )
    except Exception as e:
        logger.error(f"Error fetching purchases: {str(e)}")
        raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail="Failed to fetch purchases")


@router.get("/{purchase_id}", response_model=PurchaseResponse)
def get_purchase(
    purchase_id: str,
    current_user: User = Depends(get_current_active_user),
    db: Session = Depends(get_db)
):
    purchase = purchase_service.get_purchase_by_id(db, purchase_id)
    if not purchase:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Purchase not found")
    return PurchaseResponse.model_validate(purchase)


@router.post("", response_model=PurchaseResponse, status_code=status.HTTP_201_CREATED)
def create_purchase(
    purchase_data: PurchaseCreate,
    current_user: User = Depends(get_current_active_user),
    db: Session = Depends(get_db)
):
    try:
        purchase = purchase_service.create_purchase(db, user_email=current_user.email, **purchase_data.model_dump())
        return PurchaseResponse.model_validate(purchase)
    except ValueError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))
    except Exception as e:
        logger.error(f"Error creating purchase: {str(e)}")
        raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail="Failed to create purchase")


@router.put("/{purchase_id}", response_model=PurchaseResponse)
def update_purchase(
    purchase_id: str,
    purchase_data: PurchaseUpdate,
    current_user: User = Depends(get_current_active_user),
    db: Session = Depends(get_db)
):
    try:
        purchase = purchase_service.update_purchase(db, purchase_id, user_email=current_user.email,
                                                    **purchase_data.model_dump(exclude_unset=True))
        if not purchase:
            raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Purchase not found")
        return PurchaseResponse.model_validate(purchase)
    except HTTPException:
        raise
    except ValueError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))
    except Exception as e:
        logger.error(f"Error updating purchase: {str(e)}")
        raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail="Failed to update purchase")


@router.delete("/{purchase_id}", response_model=PurchaseResponse)
def delete_purchase(
    purchase_id: str,
    current_user: User = Depends(get_current_active_user),
    db: Session = Depends(get_db)
):
    try:
        purchase = purchase_service.soft_delete_purchase(db, purchase_id, user_email=current_user.email)
        if not purchase:
            raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Purchase not found")
        return PurchaseResponse.model_validate(purchase)
    except HTTPException:
        raise
    except ValueError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))
    except Exception as e:
        logger.error(f"Error deleting purchase: {str(e)}")
        raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail="Failed to delete purchase")
