"""Carrier (nakliyeci) Routes"""

from typing import Optional
from fastapi import APIRouter, Depends, HTTPException, status, Query
from sqlalchemy.orm import Session

from feedtrade.core.dependencies import get_db, get_current_active_user
from feedtrade.models.user import User
from feedtrade.services import carrier_service
from feedtrade.schemas.carrier import (
    CarrierCreate,
    CarrierUpdate,
    CarrierResponse,
    CarrierListResponse,
    CarrierBalanceResponse,
    CarrierPaymentCreate,
    CarrierTransactionResponse,
    CarrierTransactionListResponse,
    VehicleUpsert,
    VehicleResponse,
    VehicleListResponse,
)
from feedtrade.logger_config import logger

router = APIRouter()


@router.get("", response_model=CarrierListResponse)
def list_carriers(
    skip: int = Query(0, ge=0),
    limit: int = Query(100, ge=1, le=500),
    search: Optional[str] = Query(None),
    include_inactive: bool = Query(False),
    current_user: User = Depends(get_current_active_user),
    db: Session = Depends(get_db)
):
    carriers, total = carrier_service.get_all_carriers(
        db, skip=skip, limit=limit, search=search, include_inactive=include_inactive
    )
    return CarrierListResponse(total=total, carriers=[CarrierResponse.model_validate(c) for c in carriers])


@router.post("", response_model=CarrierResponse, status_code=status.HTTP_201_CREATED)
def create_carrier(
    carrier_data: CarrierCreate,
    current_user: User = Depends(get_current_active_user),
    db: Session = Depends(get_db)
):
    try:
        carrier = carrier_service.create_carrier(db, name=carrier_data.name, phone=carrier_data.phone)
        return CarrierResponse.model_validate(carrier)
    except ValueError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))
    except Exception as e:
        logger.error(f"Error creating carrier: {str(e)}")
        raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail="Failed to create carrier")


@router.get("/vehicles", response_model=VehicleListResponse)
def list_vehicles(
    skip: int = Query(0, ge=0),
    limit: int = Query(100, ge=1, le=500),
    carrier_id: Optional[str] = Query(None),
    current_user: User = Depends(get_current_active_user),
    db: Session = Depends(get_db)
):
    vehicles, total = carrier_service.get_all_vehicles(db, skip=skip, limit=limit, carrier_id=carrier_id)
    return VehicleListResponse(total=total, vehicles=[VehicleResponse.model_validate(v) for v in vehicles])


@router.put("/vehicles", response_model=VehicleResponse)
def upsert_vehicle(
    vehicle_data: VehicleUpsert,
    current_user: User = Depends(get_current_active_user),
    db: Session = Depends(get_db)
):
    """
    Create or update a vehicle by plate.
    """
    try:
        vehicle = carrier_service.save_vehicle(
            db, vehicle_data.plate, carrier_id=vehicle_data.carrier_id, driver_name=vehicle_data.driver_name
        )
        return VehicleResponse.model_validate(vehicle)
    except ValueError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))
    except Exception as e:
        logger.error(f"Error saving vehicle: {str(e)}")
        raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail="Failed to save vehicle")


@router.get("/{carrier_id}", response_model=CarrierResponse)
def get_carrier(
    carrier_id: str,
    current_user: User = Depends(get_current_active_user),
    db: Session = Depends(get_db)
):
    carrier = carrier_service.get_carrier_by_id(db, carrier_id)
    if not carrier:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Carrier not found")
    return CarrierResponse.model_validate(carrier)


@router.put("/{carrier_id}", response_model=CarrierResponse)
def update_carrier(
    carrier_id: str,
    carrier_data: CarrierUpdate,
    current_user: User = Depends(get_current_active_user),
    db: Session = Depends(get_db)
):
    try:
        carrier = carrier_service.update_carrier(db, carrier_id, **carrier_data.model_dump(exclude_unset=True))
        if not carrier:
            raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Carrier not found")
        return CarrierResponse.model_validate(carrier)
    except HTTPException:
        raise
    except ValueError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))
    except Exception as e:
        logger.error(f"Error updating carrier: {str(e)}")
        raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail="Failed to update carrier")


@router.delete("/{carrier_id}", response_model=CarrierResponse)
def deactivate_carrier(
    carrier_id: str,
    current_user: User = Depends(get_current_active_user),
    db: Session = Depends(get_db)
):
    """
    Deactivate a carrier. Its freight history is kept.
    """
    carrier = carrier_service.deactivate_carrier(db, carrier_id)
    if not carrier:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Carrier not found")
    return CarrierResponse.model_validate(carrier)


@router.get("/{carrier_id}/balance", response_model=CarrierBalanceResponse)
def get_carrier_balance(
    carrier_id: str,
    current_user: User = Depends(get_current_active_user),
    db: Session = Depends(get_db)
):
    """
    What we owe the carrier: freight charges minus payments.
    """
    balance = carrier_service.get_carrier_balance(db, carrier_id)
    if balance is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Carrier not found")
    return CarrierBalanceResponse(**balance)


@router.get("/{carrier_id}/transactions", response_model=CarrierTransactionListResponse)
def list_carrier_transactions(
    carrier_id: str,
    skip: int = Query(0, ge=0),
    limit: int = Query(100, ge=1, le=500),
    current_user: User = Depends(get_current_active_user),
    db: Session = Depends(get_db)
):
    if not carrier_service.get_carrier_by_id(db, carrier_id):
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Carrier not found")
    rows, total = carrier_service.get_carrier_transactions(db, carrier_id, skip=skip, limit=limit)
    return CarrierTransactionListResponse(
        total=total,
        transactions=[CarrierTransactionResponse.model_validate(tx) for tx in rows]
    )


@router.post(
    "/{carrier_id}/payments",
    response_model=CarrierTransactionResponse,
    status_code=status.HTTP_201_CREATED
)
def create_carrier_payment(
    carrier_id: str,
    payment_data: CarrierPaymentCreate,
    current_user: User = Depends(get_current_active_user),
    db: Session = Depends(get_db)
):
    try:
        tx = carrier_service.create_carrier_payment(
            db, carrier_id,
            amount=payment_data.amount,
            transaction_date=payment_data.transaction_date,
            payment_method=payment_data.payment_method,
            description=payment_data.description,
            user_email=current_user.email
        )
        return CarrierTransactionResponse.model_validate(tx)
    except ValueError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))
    except Exception as e:
        logger.error(f"Error recording carrier payment: {str(e)}")
        raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail="Failed to record payment")


@router.delete("/{carrier_id}/payments/{transaction_id}", response_model=CarrierTransactionResponse)
def delete_carrier_payment(
    carrier_id: str,
    transaction_id: int,
    current_user: User = Depends(get_current_active_user),
    db: Session = Depends(get_db)
):
    try:
        tx = carrier_service.delete_carrier_payment(db, carrier_id, transaction_id, user_email=current_user.email)
        if not tx:
            raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Carrier payment not found")
        return CarrierTransactionResponse.model_validate(tx)
    except HTTPException:
        raise
    except ValueError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))
    except Exception as e:
        logger.error(f"Error deleting carrier payment: {str(e)}")
        raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail="Failed to delete payment")
