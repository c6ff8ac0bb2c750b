from fastapi import APIRouter, Depends, HTTPException, status, Query
from sqlalchemy.orm import Session
from typing import Optional
from feedtrade.core.dependencies import get_db, get_current_active_user
from feedtrade.models.user import User
from feedtrade.models.contact import ContactType
from feedtrade.services.contact_service import (
    get_contact_by_id,
    get_all_contacts,
    create_contact,
    update_contact,
    delete_contact
)
from feedtrade.schemas.contact import (
    ContactCreate,
    ContactUpdate,
    ContactResponse,
    ContactListResponse,
    ContactDeleteResponse
)
from feedtrade.logger_config import logger

router = APIRouter()


@router.get("", response_model=ContactListResponse)
def get_contacts(
    skip: int = Query(0, ge=0),
    limit: int = Query(100, ge=1, le=500),
    type: Optional[ContactType] = Query(None),
    search: Optional[str] = Query(None),
    current_user: User = Depends(get_current_active_user),
    db: Session = Depends(get_db)
):
    """
    Get contacts with their account balances.
    """
    try:
        contacts, total = get_all_contacts(db, skip=skip, limit=limit, type=type, search=search)
        return ContactListResponse(
            total=total,
            contacts=[ContactResponse.model_validate(contact) for contact in contacts]
        )
    except Exception as e:
        logger.error(f"Error fetching contacts: {str(e)}")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to fetch contacts"
        )


@router.get("/{contact_id}", response_model=ContactResponse)
def get_contact(
    contact_id: str,
    current_user: User = Depends(get_current_active_user),
    db: Session = Depends(get_db)
):
    """
    Get contact by ID.
    """
    contact = get_contact_by_id(db, contact_id)
    if not contact:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Contact not found"
        )
    return ContactResponse.model_validate(contact)


@router.post("", response_model=ContactResponse, status_code=status.HTTP_201_CREATED)
def create_new_contact(
    contact_data: ContactCreate,
    current_user: User = Depends(get_current_active_user),
    db: Session = Depends(get_db)
):
    """
    Create a contact. Its account is opened at zero in the same step.
    """
    try:
        contact = create_contact(db=db, user_email=current_user.email, **contact_data.model_dump())
        return ContactResponse.model_validate(contact)
    except ValueError as e:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=str(e)
        )
    except Exception as e:
        logger.error(f"Error creating contact: {str(e)}")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to create contact"
        )


@router.put("/{contact_id}", response_model=ContactResponse)
def update_contact_info(
    contact_id: str,
    contact_data: ContactUpdate,
    current_user: User = Depends(get_current_active_user),
    db: Session = Depends(get_db)
):
    """
    Update contact information.
    """
    try:
        contact = update_contact(db, contact_id, user_email=current_user.email,
                                 **contact_data.model_dump(exclude_unset=True))
        if not contact:
            raise HTTPException(
                status_code=status.HTTP_404_NOT_FOUND,
                detail="Contact not found"
            )
        return ContactResponse.model_validate(contact)
    except HTTPException:
        raise
    except ValueError as e:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=str(e)
        )
    except Exception as e:
        logger.error(f"Error updating contact: {str(e)}")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to update contact"
        )


@router.delete("/{contact_id}", response_model=ContactDeleteResponse)
def delete_contact_by_id(
    contact_id: str,
    current_user: User = Depends(get_current_active_user),
    db: Session = Depends(get_db)
):
    """
    Delete a contact. Refused while its account has active transactions.
    """
    try:
        deleted = delete_contact(db, contact_id, user_email=current_user.email)
        if not deleted:
            raise HTTPException(
                status_code=status.HTTP_404_NOT_FOUND,
                detail="Contact not found"
            )
        return ContactDeleteResponse(message="Contact deleted successfully")
    except HTTPException:
        raise
    except ValueError as e:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=str(e)
        )
    except Exception as e:
        logger.error(f"Error deleting contact: {str(e)}")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to delete contact"
        )
