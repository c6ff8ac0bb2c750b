"""
Audit trail helpers.

log_action only adds the row to the session; the caller's commit makes it
part of the same unit of work as the change it describes.
"""

import enum
from datetime import date, datetime
from decimal import Decimal
from typing import Any, Dict, List, Optional

from sqlalchemy.orm import Session

from feedtrade.models.audit import AuditLog, AuditAction

# Columns never copied into audit snapshots
_EXCLUDED_COLUMNS = {"password_hash"}


def _jsonable(value: Any) -> Any:
    if isinstance(value, Decimal):
        return str(value)
    if isinstance(value, (datetime, date)):
        return value.isoformat()
    if isinstance(value, enum.Enum):
        return value.value
    return value


def snapshot(instance) -> Dict[str, Any]:
    """Column values of an ORM row as JSON-friendly primitives."""
    return {
        column.key: _jsonable(getattr(instance, column.key))
        for column in instance.__table__.columns
        if column.key not in _EXCLUDED_COLUMNS
    }


def log_action(
    db: Session,
    table_name: str,
    record_id: Any,
    action: AuditAction,
    old_values: Optional[Dict[str, Any]] = None,
    new_values: Optional[Dict[str, Any]] = None,
    user_email: Optional[str] = None,
) -> AuditLog:
    entry = AuditLog(
        table_name=table_name,
        record_id=str(record_id),
        action=action,
        old_values=old_values,
        new_values=new_values,
        user_email=user_email,
    )
    db.add(entry)
    return entry


def get_audit_logs(
    db: Session,
    skip: int = 0,
    limit: int = 100,
    table_name: Optional[str] = None,
    record_id: Optional[str] = None,
    action: Optional[AuditAction] = None,
) -> tuple[List[AuditLog], int]:
    """Newest first, with optional filters."""
    query = db.query(AuditLog)

    if table_name:
        query = query.filter(AuditLog.table_name == table_name)
    if record_id:
        query = query.filter(AuditLog.record_id == record_id)
    if action:
        query = query.filter(AuditLog.action == action)

    total = query.count()
    logs = query.order_by(AuditLog.created_at.desc(), AuditLog.id.desc()).offset(skip).limit(limit).all()
    return logs, total
