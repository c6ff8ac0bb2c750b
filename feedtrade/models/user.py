from sqlalchemy import Boolean, Column, Enum, ForeignKey, Integer, String, DateTime
from sqlalchemy.sql import func
from sqlalchemy.orm import relationship
import enum
import secrets
import string
from feedtrade.core.database import Base


class UserRole(str, enum.Enum):
    owner = "owner"
    staff = "staff"


class User(Base):
    __tablename__ = "users"

    id = Column(Integer, primary_key=True, autoincrement=True)
    user_id = Column(String(20), unique=True, nullable=False, index=True)
    email = Column(String(255), unique=True, nullable=False)
    password_hash = Column(String(255), nullable=True)
    name = Column(String(255), nullable=False)
    role = Column(Enum(UserRole), nullable=False, default=UserRole.staff)
    is_active = Column(Boolean, nullable=False, default=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())

    # Self-referential FK -> who created this user
    created_by_id = Column(Integer, ForeignKey("users.id"), nullable=True)

    creator = relationship("User", remote_side=[id], backref="users_created")

    @staticmethod
    def generate_user_id(role: UserRole) -> str:
        """Generate a short unique user ID based on role"""
        prefix = {
            UserRole.owner: "OWN",
            UserRole.staff: "STF",
        }[role]

        random_part = ''.join(secrets.choice(string.ascii_uppercase + string.digits)
                             for _ in range(8))

        return f"{prefix}-{random_part}"

    def __repr__(self):
        return f"<User(user_id='{self.user_id}', email='{self.email}')>"
