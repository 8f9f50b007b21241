"""Domain Entities - Auth"""
from pydantic import BaseModel, Field
from uuid import UUID, uuid4
from datetime import datetime, timezone

from domain.enums import UserRole, PRIVILEGED_ROLES


class User(BaseModel):
    """User Entity"""
    user_id: UUID = Field(default_factory=uuid4)
    name: str
    email: str
    role: UserRole = UserRole.CUSTOMER
    disabled: bool = False
    created_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))

    class Config:
        from_attributes = True

    def is_privileged(self) -> bool:
        """Staff and admins may act on any reservation"""
        return self.role in PRIVILEGED_ROLES


class UserInDB(User):
    """User with hashed password for DB storage"""
    hashed_password: str
