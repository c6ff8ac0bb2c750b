from pydantic import BaseModel, Field, ConfigDict
from datetime import datetime
from typing import Optional


class AnnotationSet(BaseModel):
    value: Optional[str] = Field(None, max_length=500)


class AnnotationResponse(BaseModel):
    id: int
    table_name: str
    record_id: str
    key: str
    value: Optional[str] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    model_config = ConfigDict(from_attributes=True)


class AnnotationListResponse(BaseModel):
    total: int
    annotations: list[AnnotationResponse]
