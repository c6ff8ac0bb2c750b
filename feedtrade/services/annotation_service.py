from typing import List, Optional

from sqlalchemy.orm import Session
from sqlalchemy.exc import IntegrityError

from feedtrade.models.annotation import Annotation
from feedtrade.logger_config import logger


def get_annotations(db: Session, table_name: str, record_id: str) -> List[Annotation]:
    return db.query(Annotation).filter(
        Annotation.table_name == table_name,
        Annotation.record_id == record_id
    ).order_by(Annotation.key.asc()).all()


def get_annotation(db: Session, table_name: str, record_id: str, key: str) -> Optional[Annotation]:
    return db.query(Annotation).filter(
        Annotation.table_name == table_name,
        Annotation.record_id == record_id,
        Annotation.key == key
    ).first()


def set_annotation(db: Session, table_name: str, record_id: str, key: str, value: Optional[str]) -> Annotation:
    """Insert or overwrite the value stored under (table_name, record_id, key)."""
    annotation = get_annotation(db, table_name, record_id, key)
    if annotation:
        annotation.value = value
    else:
        annotation = Annotation(table_name=table_name, record_id=record_id, key=key, value=value)
        db.add(annotation)

    try:
        db.commit()
        db.refresh(annotation)
        return annotation
    except IntegrityError as e:
        db.rollback()
        logger.error(f"Error saving annotation: {str(e)}")
        raise ValueError("Failed to save annotation.")


def delete_annotation(db: Session, table_name: str, record_id: str, key: str) -> bool:
    annotation = get_annotation(db, table_name, record_id, key)
    if not annotation:
        return False
    db.delete(annotation)
    db.commit()
    return True
