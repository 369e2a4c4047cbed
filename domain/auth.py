"""Domain Entities - Auth"""
from pydantic import BaseModel, Field
from uuid import UUID, uuid4
from typing import Optional

from domain.enums import Role

STAFF_ROLES = (Role.RECEPTIONIST, Role.OWNER)


class User(BaseModel):
    """User Entity"""
    user_id: UUID = Field(default_factory=uuid4)
    username: str
    email: Optional[str] = None
    full_name: Optional[str] = None
    contact_number: Optional[str] = None
    role: Role = Role.CUSTOMER
    disabled: bool = False

    class Config:
        from_attributes = True

    def is_staff(self) -> bool:
        return self.role in STAFF_ROLES


class UserInDB(User):
    """User with hashed password for DB storage"""
    hashed_password: str
