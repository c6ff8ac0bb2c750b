"""Delivery (kantar fişi) Routes"""

from datetime import date
from typing import Optional
from fastapi import APIRouter, Depends, HTTPException, status, Query
from sqlalchemy.orm import Session

from feedtrade.core.dependencies import get_db, get_current_active_user
from feedtrade.models.user import User
from feedtrade.services import delivery_service
from feedtrade.schemas.delivery import (
    DeliveryCreate,
    DeliveryUpdate,
    DeliveryReturnCreate,
    DeliveryResponse,
    DeliveryListResponse,
)
from feedtrade.schemas.ledger import TransactionResponse
from feedtrade.logger_config import logger

router = APIRouter()


@router.get("", response_model=DeliveryListResponse)
def list_deliveries(
    skip: int = Query(0, ge=0),
    limit: int = Query(100, ge=1, le=500),
    sale_id: Optional[str] = Query(None),
    purchase_id: Optional[str] = Query(None),
    date_from: Optional[date] = Query(None),
    date_to: Optional[date] = Query(None),
    include_returns: bool = Query(True),
    current_user: User = Depends(get_current_active_user),
    db: Session = Depends(get_db)
):
    try:
        deliveries, total = delivery_service.get_all_deliveries(
            db, skip=skip, limit=limit, sale_id=sale_id, purchase_id=purchase_id,
            date_from=date_from, date_to=date_to, include_returns=include_returns
        )
        return DeliveryListResponse(
            total=total,
            deliveries=[DeliveryResponse.model_validate(d) for d in deliveries]
        )
    except Exception as e:
        logger.error(f"Error fetching deliveries: {str(e)}")
        raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail="Failed to fetch deliveries")


@router.get("/{delivery_id}", response_model=DeliveryResponse)
def get_delivery(
    delivery_id: str,
    current_user: User = Depends(get_current_active_user),
    db: Session = Depends(get_db)
):
    delivery = delivery_service.get_delivery_by_id(db, delivery_id)
    if not delivery:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Delivery not found")
    return DeliveryResponse.model_validate(delivery)


@router.get("/{delivery_id}/transactions", response_model=list[TransactionResponse])
def get_delivery_transactions(
    delivery_id: str,
    current_user: User = Depends(get_current_active_user),
    db: Session = Depends(get_db)
):
    """
    Live customer and supplier ledger lines posted for a delivery.
    """
    if not delivery_service.get_delivery_by_id(db, delivery_id):
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Delivery not found")
    return [TransactionResponse.model_validate(tx) for tx in delivery_service.get_delivery_transactions(db, delivery_id)]


@router.post(
    "",
    response_model=DeliveryResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Record a delivery and post it to both accounts",
    description="""
    Customer amount = net_weight × customer_price − freight (if the customer paid the truck)

    Supplier amount = net_weight × supplier_price − freight (if the purchase is
    "nakliye_dahil" and the supplier did not pay the truck)

    The delivery, both ledger lines and the carrier freight charge are saved
    together or not at all.
    """
)
def create_delivery(
    delivery_data: DeliveryCreate,
    current_user: User = Depends(get_current_active_user),
    db: Session = Depends(get_db)
):
    try:
        delivery = delivery_service.create_delivery(db, user_email=current_user.email, **delivery_data.model_dump())
        return DeliveryResponse.model_validate(delivery)
    except ValueError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))
    except Exception as e:
        logger.error(f"Error creating delivery: {str(e)}")
        raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail="Failed to create delivery")


@router.put("/{delivery_id}", response_model=DeliveryResponse)
def update_delivery(
    delivery_id: str,
    delivery_data: DeliveryUpdate,
    current_user: User = Depends(get_current_active_user),
    db: Session = Depends(get_db)
):
    """
    Edit ticket, vehicle, carrier and freight details. Carrier freight
    charges follow the change.
    """
    try:
        delivery = delivery_service.update_delivery(
            db, delivery_id, user_email=current_user.email,
            **delivery_data.model_dump(exclude_unset=True)
        )
        if not delivery:
            raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Delivery not found")
        return DeliveryResponse.model_validate(delivery)
    except HTTPException:
        raise
    except ValueError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))
    except Exception as e:
        logger.error(f"Error updating delivery: {str(e)}")
        raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail="Failed to update delivery")


@router.post("/{delivery_id}/returns", response_model=DeliveryResponse, status_code=status.HTTP_201_CREATED)
def create_return(
    delivery_id: str,
    return_data: DeliveryReturnCreate,
    current_user: User = Depends(get_current_active_user),
    db: Session = Depends(get_db)
):
    """
    Record returned goods (iade) against a delivery.
    """
    try:
        ret = delivery_service.create_return_delivery(
            db, delivery_id,
            returned_kg=return_data.returned_kg,
            return_date=return_data.return_date,
            notes=return_data.notes,
            user_email=current_user.email
        )
        return DeliveryResponse.model_validate(ret)
    except ValueError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))
    except Exception as e:
        logger.error(f"Error creating return: {str(e)}")
        raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail="Failed to record return")


@router.delete("/{delivery_id}", response_model=DeliveryResponse)
def delete_delivery(
    delivery_id: str,
    current_user: User = Depends(get_current_active_user),
    db: Session = Depends(get_db)
):
    """
    Move a delivery to the trash, reversing both ledger sides.
    """
    try:
        delivery = delivery_service.soft_delete_delivery(db, delivery_id, user_email=current_user.email)
        if not delivery:
            raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Delivery not found")
        return DeliveryResponse.model_validate(delivery)
    except HTTPException:
        raise
    except ValueError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))
    except Exception as e:
        logger.error(f"Error deleting delivery: {str(e)}")
        raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail="Failed to delete delivery")
