from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.orm import Session

from feedtrade.core.dependencies import get_db, get_current_active_user
from feedtrade.models.user import User
from feedtrade.services.annotation_service import get_annotations, set_annotation, delete_annotation
from feedtrade.schemas.annotation import AnnotationSet, AnnotationResponse, AnnotationListResponse
from feedtrade.logger_config import logger

router = APIRouter()


@router.get("/{table_name}/{record_id}", response_model=AnnotationListResponse)
def list_annotations(
    table_name: str,
    record_id: str,
    current_user: User = Depends(get_current_active_user),
    db: Session = Depends(get_db)
):
    annotations = get_annotations(db, table_name, record_id)
    return AnnotationListResponse(
        total=len(annotations),
        annotations=[AnnotationResponse.model_validate(a) for a in annotations]
    )


@router.put("/{table_name}/{record_id}/{key}", response_model=AnnotationResponse)
def put_annotation(
    table_name: str,
    record_id: str,
    key: str,
    data: AnnotationSet,
    current_user: User = Depends(get_current_active_user),
    db: Session = Depends(get_db)
):
    """
    Set a flag on a record, e.g. deliveries/DLV-…/whatsapp_sent.
    """
    try:
        annotation = set_annotation(db, table_name, record_id, key, data.value)
        return AnnotationResponse.model_validate(annotation)
    except ValueError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))
    except Exception as e:
        logger.error(f"Error saving annotation: {str(e)}")
        raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail="Failed to save annotation")


@router.delete("/{table_name}/{record_id}/{key}")
def remove_annotation(
    table_name: str,
    record_id: str,
    key: str,
    current_user: User = Depends(get_current_active_user),
    db: Session = Depends(get_db)
):
    if not delete_annotation(db, table_name, record_id, key):
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Annotation not found")
    return {"message": "Annotation deleted"}
