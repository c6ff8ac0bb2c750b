"""Trash (çöp kutusu) Routes"""

from typing import Optional
from fastapi import APIRouter, Depends, HTTPException, status, Query
from sqlalchemy.orm import Session

from feedtrade.core.dependencies import get_db, get_current_active_user, require_owner
from feedtrade.models.user import User
from feedtrade.services import trash_service
from feedtrade.schemas.trash import TrashTable, TrashItem, TrashListResponse, TrashActionResponse
from feedtrade.logger_config import logger

router = APIRouter()


@router.get("", response_model=TrashListResponse)
def list_trash(
    table: Optional[TrashTable] = Query(None),
    current_user: User = Depends(get_current_active_user),
    db: Session = Depends(get_db)
):
    """
    Documents deleted in the last 30 days, newest first.
    """
    try:
        items = trash_service.list_trash(db, table=table)
        return TrashListResponse(total=len(items), items=[TrashItem(**item) for item in items])
    except Exception as e:
        logger.error(f"Error listing trash: {str(e)}")
        raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail="Failed to list trash")


@router.post("/{table}/{record_id}/restore", response_model=TrashActionResponse)
def restore_item(
    table: TrashTable,
    record_id: str,
    current_user: User = Depends(get_current_active_user),
    db: Session = Depends(get_db)
):
    """
    Restore a document and everything that was deleted together with it.
    """
    try:
        restored = trash_service.restore_item(db, table, record_id, user_email=current_user.email)
        if not restored:
            raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Item not found in trash")
        return TrashActionResponse(message="Restored", table=table, id=record_id)
    except HTTPException:
        raise
    except ValueError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))
    except Exception as e:
        logger.error(f"Error restoring {table}/{record_id}: {str(e)}")
        raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail="Failed to restore item")


@router.delete("/{table}/{record_id}", response_model=TrashActionResponse)
def permanently_delete_item(
    table: TrashTable,
    record_id: str,
    current_user: User = Depends(require_owner),
    db: Session = Depends(get_db)
):
    """
    Permanently delete a trashed document and its ledger lines. Owner only.
    """
    try:
        deleted = trash_service.permanently_delete_item(db, table, record_id, user_email=current_user.email)
        if not deleted:
            raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Item not found")
        return TrashActionResponse(message="Permanently deleted", table=table, id=record_id)
    except HTTPException:
        raise
    except ValueError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))
    except Exception as e:
        logger.error(f"Error permanently deleting {table}/{record_id}: {str(e)}")
        raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail="Failed to delete item")
