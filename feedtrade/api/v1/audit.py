from typing import Optional
from fastapi import APIRouter, Depends, HTTPException, status, Query
from sqlalchemy.orm import Session

from feedtrade.core.dependencies import get_db, get_current_active_user
from feedtrade.models.user import User
from feedtrade.models.audit import AuditAction
from feedtrade.services.audit_service import get_audit_logs
from feedtrade.schemas.audit import AuditLogResponse, AuditLogListResponse
from feedtrade.logger_config import logger

router = APIRouter()


@router.get("", response_model=AuditLogListResponse)
def list_audit_logs(
    skip: int = Query(0, ge=0),
    limit: int = Query(100, ge=1, le=500),
    table_name: Optional[str] = Query(None),
    record_id: Optional[str] = Query(None),
    action: Optional[AuditAction] = Query(None),
    current_user: User = Depends(get_current_active_user),
    db: Session = Depends(get_db)
):
    """
    Audit trail, newest first. Read only.
    """
    try:
        logs, total = get_audit_logs(db, skip=skip, limit=limit, table_name=table_name,
                                     record_id=record_id, action=action)
        return AuditLogListResponse(total=total, logs=[AuditLogResponse.model_validate(log) for log in logs])
    except Exception as e:
        logger.error(f"Error fetching audit logs: {str(e)}")
        raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail="Failed to fetch audit logs")
