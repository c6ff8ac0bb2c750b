from sqlalchemy import Column, DateTime, Integer, String, UniqueConstraint
from sqlalchemy.sql import func
from feedtrade.core.database import Base


class Annotation(Base):
    """Key-value flags on any record, e.g. ('deliveries', 'DLV-..', 'whatsapp_sent')."""
    __tablename__ = "annotations"
    __table_args__ = (
        UniqueConstraint("table_name", "record_id", "key", name="uq_annotations_record_key"),
    )

    id = Column(Integer, primary_key=True, autoincrement=True)
    table_name = Column(String(50), nullable=False)
    record_id = Column(String(30), nullable=False, index=True)
    key = Column(String(100), nullable=False)
    value = Column(String(500), nullable=True)

    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())
