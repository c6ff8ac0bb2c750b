from sqlalchemy.orm import Session
from sqlalchemy.exc import IntegrityError
from typing import Optional, List
from feedtrade.models.user import User, UserRole
from feedtrade.core.security import get_password_hash, verify_password
from feedtrade.logger_config import logger


def get_user_by_id(db: Session, user_id: int) -> Optional[User]:
    """Get user by database ID."""
    return db.query(User).filter(User.id == user_id).first()


def get_user_by_email(db: Session, email: str) -> Optional[User]:
    """Get user by email."""
    return db.query(User).filter(User.email == email).first()


def get_user_by_user_id(db: Session, user_id: str) -> Optional[User]:
    """Get user by user_id (e.g., 'OWN-ABC12345')."""
    return db.query(User).filter(User.user_id == user_id).first()


def get_all_users(
    db: Session,
    skip: int = 0,
    limit: int = 100,
    role: Optional[UserRole] = None,
    search: Optional[str] = None
) -> tuple[List[User], int]:
    """Get all users with optional filtering."""
    query = db.query(User)

    if role:
        query = query.filter(User.role == role)

    if search:
        search_term = f"%{search}%"
        query = query.filter(
            (User.name.ilike(search_term)) |
            (User.email.ilike(search_term)) |
            (User.user_id.ilike(search_term))
        )

    total = query.count()
    users = query.offset(skip).limit(limit).all()

    return users, total


def create_user(
    db: Session,
    email: str,
    password: str,
    name: str,
    role: UserRole,
    created_by_id: Optional[int] = None
) -> User:
    """Create a new user."""
    if get_user_by_email(db, email):
        raise ValueError("User with this email already exists")

    user_id = User.generate_user_id(role)
    while get_user_by_user_id(db, user_id):
        user_id = User.generate_user_id(role)

    user = User(
        user_id=user_id,
        email=email,
        password_hash=get_password_hash(password),
        name=name,
        role=role,
        is_active=True,
        created_by_id=created_by_id
    )
    db.add(user)

    try:
        db.commit()
        db.refresh(user)
        logger.info(f"User {user.email} created with role {role.value}")
        return user
    except IntegrityError as e:
        db.rollback()
        logger.error(f"Error creating user: {str(e)}")
        raise ValueError("Failed to create user. User ID or email may already exist.")


def update_user(
    db: Session,
    user_id: int,
    name: Optional[str] = None,
    role: Optional[UserRole] = None,
    is_active: Optional[bool] = None
) -> Optional[User]:
    """Update name, role or active flag."""
    user = get_user_by_id(db, user_id)
    if not user:
        return None

    if name is not None:
        user.name = name
    if role is not None:
        user.role = role
    if is_active is not None:
        user.is_active = is_active

    try:
        db.commit()
        db.refresh(user)
        return user
    except IntegrityError as e:
        db.rollback()
        logger.error(f"Error updating user: {str(e)}")
        raise ValueError("Failed to update user.")


def change_password(db: Session, user_id: int, old_password: str, new_password: str) -> bool:
    """Change user password."""
    user = get_user_by_id(db, user_id)
    if not user:
        return False

    if not verify_password(old_password, user.password_hash):
        raise ValueError("Invalid old password")

    user.password_hash = get_password_hash(new_password)
    db.commit()
    logger.info(f"Password changed for user {user.email}")
    return True


def authenticate_user(db: Session, email: str, password: str) -> Optional[User]:
    """Return the user when the credentials match and the account is active."""
    user = get_user_by_email(db, email)
    if not user or not user.is_active:
        return None
    if not verify_password(password, user.password_hash):
        return None
    return user
