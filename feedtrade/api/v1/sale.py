"""Sale Routes"""

from datetime import date
from typing import Optional
from fastapi import APIRouter, Depends, HTTPException, status, Query
from sqlalchemy.orm import Session

from feedtrade.core.dependencies import get_db, get_current_active_user
from feedtrade.models.user import User
from feedtrade.models.order import OrderStatus
from feedtrade.services import sale_service
from feedtrade.schemas.sale import (
    SaleCreate,
    SaleUpdate,
    SaleCancel,
    SaleReassign,
    SaleResponse,
    SaleListResponse,
)
from feedtrade.logger_config import logger

router = APIRouter()


@router.get("", response_model=SaleListResponse)
def list_sales(
    skip: int = Query(0, ge=0),
    limit: int = Query(100, ge=1, le=500),
    contact_id: Optional[str] = Query(None),
    status_filter: Optional[OrderStatus] = Query(None, alias="status"),
    date_from: Optional[date] = Query(None),
    date_to: Optional[date] = Query(None),
    search: Optional[str] = Query(None),
    current_user: User = Depends(get_current_active_user),
    db: Session = Depends(get_db)
):
    try:
        sales, total = sale_service.get_all_sales(
            db, skip=skip, limit=limit, contact_id=contact_id, status=status_filter,
            date_from=date_from, date_to=date_to, search=search
        )
        return SaleListResponse(total=total, sales=[SaleResponse.model_validate(s) for s in sales])
    except Exception as e:
        logger.error(f"Error fetching sales: {str(e)}")
        raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail="Failed to fetch sales")


@router.get("/{sale_id}", response_model=SaleResponse)
def get_sale(
    sale_id: str,
    current_user: User = Depends(get_current_active_user),
    db: Session = Depends(get_db)
):
    sale = sale_service.get_sale_by_id(db, sale_id)
    if not sale:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Sale not found")
    return SaleResponse.model_validate(sale)


@router.post("", response_model=SaleResponse, status_code=status.HTTP_201_CREATED)
def create_sale(
    sale_data: SaleCreate,
    current_user: User = Depends(get_current_active_user),
    db: Session = Depends(get_db)
):
    try:
        sale = sale_service.create_sale(db, user_email=current_user.email, **sale_data.model_dump())
        return SaleResponse.model_validate(sale)
    except ValueError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))
    except Exception as e:
        logger.error(f"Error creating sale: {str(e)}")
        raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail="Failed to create sale")


@router.put("/{sale_id}", response_model=SaleResponse)
def update_sale(
    sale_id: str,
    sale_data: SaleUpdate,
    current_user: User = Depends(get_current_active_user),
    db: Session = Depends(get_db)
):
    try:
        sale = sale_service.update_sale(db, sale_id, user_email=current_user.email,
                                        **sale_data.model_dump(exclude_unset=True))
        if not sale:
            raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Sale not found")
        return SaleResponse.model_validate(sale)
    except HTTPException:
        raise
    except ValueError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))
    except Exception as e:
        logger.error(f"Error updating sale: {str(e)}")
        raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail="Failed to update sale")


@router.post("/{sale_id}/cancel", response_model=SaleResponse)
def cancel_sale(
    sale_id: str,
    cancel_data: SaleCancel,
    current_user: User = Depends(get_current_active_user),
    db: Session = Depends(get_db)
):
    """
    Cancel a sale. Every ledger line it produced is reversed and the
    affected accounts are recalculated.
    """
    try:
        sale = sale_service.cancel_sale(db, sale_id, reason=cancel_data.reason, user_email=current_user.email)
        if not sale:
            raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Sale not found")
        return SaleResponse.model_validate(sale)
    except HTTPException:
        raise
    except ValueError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))
    except Exception as e:
        logger.error(f"Error cancelling sale: {str(e)}")
        raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail="Failed to cancel sale")


@router.post("/{sale_id}/reassign", response_model=SaleResponse)
def reassign_sale(
    sale_id: str,
    reassign_data: SaleReassign,
    current_user: User = Depends(get_current_active_user),
    db: Session = Depends(get_db)
):
    """
    Move a sale and its posted deliveries to another customer, optionally
    at a new unit price.
    """
    try:
        sale = sale_service.reassign_sale(
            db, sale_id,
            new_contact_id=reassign_data.new_contact_id,
            new_unit_price=reassign_data.new_unit_price,
            user_email=current_user.email
        )
        if not sale:
            raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Sale not found")
        return SaleResponse.model_validate(sale)
    except HTTPException:
        raise
    except ValueError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))
    except Exception as e:
        logger.error(f"Error reassigning sale: {str(e)}")
        raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail="Failed to reassign sale")


@router.delete("/{sale_id}", response_model=SaleResponse)
def delete_sale(
    sale_id: str,
    current_user: User = Depends(get_current_active_user),
    db: Session = Depends(get_db)
):
    """
    Move a sale and its deliveries to the trash.
    """
    try:
        sale = sale_service.soft_delete_sale(db, sale_id, user_email=current_user.email)
        if not sale:
            raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Sale not found")
        return SaleResponse.model_validate(sale)
    except HTTPException:
        raise
    except ValueError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))
    except Exception as e:
        logger.error(f"Error deleting sale: {str(e)}")
        raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail="Failed to delete sale")
