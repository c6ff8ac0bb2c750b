"""Check / promissory note (çek / senet) Routes"""

from datetime import date
from typing import Optional
from fastapi import APIRouter, Depends, HTTPException, status, Query
from sqlalchemy.orm import Session

from feedtrade.core.dependencies import get_db, get_current_active_user
from feedtrade.models.user import User
from feedtrade.models.check import CheckDirection, CheckStatus
from feedtrade.services import check_service
from feedtrade.schemas.check import (
    CheckCreate,
    CheckStatusUpdate,
    CheckEndorse,
    CheckResponse,
    CheckListResponse,
    CheckEndorseResponse,
)
from feedtrade.logger_config import logger

router = APIRouter()


@router.get("", response_model=CheckListResponse)
def list_checks(
    skip: int = Query(0, ge=0),
    limit: int = Query(100, ge=1, le=500),
    contact_id: Optional[str] = Query(None),
    direction: Optional[CheckDirection] = Query(None),
    status_filter: Optional[CheckStatus] = Query(None, alias="status"),
    due_from: Optional[date] = Query(None),
    due_to: Optional[date] = Query(None),
    current_user: User = Depends(get_current_active_user),
    db: Session = Depends(get_db)
):
    """
    Checks ordered by due date (vade), soonest first.
    """
    try:
        checks, total = check_service.get_all_checks(
            db, skip=skip, limit=limit, contact_id=contact_id, direction=direction,
            status=status_filter, due_from=due_from, due_to=due_to
        )
        return CheckListResponse(total=total, checks=[CheckResponse.model_validate(c) for c in checks])
    except Exception as e:
        logger.error(f"Error fetching checks: {str(e)}")
        raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail="Failed to fetch checks")


@router.get("/{check_id}", response_model=CheckResponse)
def get_check(
    check_id: str,
    current_user: User = Depends(get_current_active_user),
    db: Session = Depends(get_db)
):
    check = check_service.get_check_by_id(db, check_id)
    if not check:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Check not found")
    return CheckResponse.model_validate(check)


@router.post("", response_model=CheckResponse, status_code=status.HTTP_201_CREATED)
def create_check(
    check_data: CheckCreate,
    current_user: User = Depends(get_current_active_user),
    db: Session = Depends(get_db)
):
    """
    Record a check. Received checks credit the contact, given checks debit them.
    """
    try:
        check = check_service.create_check(db, user_email=current_user.email, **check_data.model_dump())
        return CheckResponse.model_validate(check)
    except ValueError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))
    except Exception as e:
        logger.error(f"Error creating check: {str(e)}")
        raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail="Failed to create check")


@router.patch("/{check_id}/status", response_model=CheckResponse)
def update_check_status(
    check_id: str,
    status_data: CheckStatusUpdate,
    current_user: User = Depends(get_current_active_user),
    db: Session = Depends(get_db)
):
    """
    Move a check along pending → deposited → cleared / bounced, or cancel it.
    """
    try:
        check = check_service.update_check_status(
            db, check_id, status_data.status, notes=status_data.notes, user_email=current_user.email
        )
        if not check:
            raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Check not found")
        return CheckResponse.model_validate(check)
    except HTTPException:
        raise
    except ValueError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))
    except Exception as e:
        logger.error(f"Error updating check status: {str(e)}")
        raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail="Failed to update check")


@router.post("/{check_id}/endorse", response_model=CheckEndorseResponse)
def endorse_check(
    check_id: str,
    endorse_data: CheckEndorse,
    current_user: User = Depends(get_current_active_user),
    db: Session = Depends(get_db)
):
    """
    Endorse (ciro) a received pending check to another contact.
    """
    try:
        result = check_service.endorse_check(
            db, check_id, endorse_data.target_contact_id, notes=endorse_data.notes, user_email=current_user.email
        )
        if not result:
            raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Check not found")
        original, endorsed = result
        return CheckEndorseResponse(
            original=CheckResponse.model_validate(original),
            endorsed=CheckResponse.model_validate(endorsed)
        )
    except HTTPException:
        raise
    except ValueError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))
    except Exception as e:
        logger.error(f"Error endorsing check: {str(e)}")
        raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail="Failed to endorse check")


@router.delete("/{check_id}", response_model=CheckResponse)
def delete_check(
    check_id: str,
    current_user: User = Depends(get_current_active_user),
    db: Session = Depends(get_db)
):
    try:
        check = check_service.soft_delete_check(db, check_id, user_email=current_user.email)
        if not check:
            raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Check not found")
        return CheckResponse.model_validate(check)
    except HTTPException:
        raise
    except ValueError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))
    except Exception as e:
        logger.error(f"Error deleting check: {str(e)}")
        raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail="Failed to delete check")
