import enum
from sqlalchemy import JSON, Column, DateTime, Enum, Integer, String
from sqlalchemy.sql import func
from feedtrade.core.database import Base


class AuditAction(str, enum.Enum):
    create = "create"
    update = "update"
    delete = "delete"
    restore = "restore"


class AuditLog(Base):
    """Append-only. No code path updates or deletes these rows."""
    __tablename__ = "audit_log"

    id = Column(Integer, primary_key=True, autoincrement=True)
    table_name = Column(String(50), nullable=False, index=True)
    record_id = Column(String(30), nullable=False, index=True)
    action = Column(Enum(AuditAction), nullable=False)
    old_values = Column(JSON, nullable=True)
    new_values = Column(JSON, nullable=True)
    user_email = Column(String(255), nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now(), index=True)
