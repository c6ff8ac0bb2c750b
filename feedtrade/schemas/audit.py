from pydantic import BaseModel, ConfigDict
from datetime import datetime
from typing import Any, Optional
from feedtrade.models.audit import AuditAction


class AuditLogResponse(BaseModel):
    id: int
    table_name: str
    record_id: str
    action: AuditAction
    old_values: Optional[dict[str, Any]] = None
    new_values: Optional[dict[str, Any]] = None
    user_email: Optional[str] = None
    created_at: Optional[datetime] = None

    model_config = ConfigDict(from_attributes=True)


class AuditLogListResponse(BaseModel):
    total: int
    logs: list[AuditLogResponse]
