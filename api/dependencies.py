"""API Dependencies - Authentication and role checks"""
import logging
from uuid import UUID

from fastapi import Depends, HTTPException, status
from fastapi.security import OAuth2PasswordBearer
from jose import JWTError

from application.services import UserService
from domain.auth import User
from domain.enums import UserRole
from domain.errors import UserNotFound
from infrastructure.config import get_settings
from infrastructure.repositories.in_memory_repositories import InMemoryUserRepository
from infrastructure.security import decode_access_token
from api.schemas import TokenData

logger = logging.getLogger(__name__)

oauth2_scheme = OAuth2PasswordBearer(tokenUrl="token")

# In production, this would be a database
user_repo = InMemoryUserRepository()

_admin_seeded = False


async def get_user_service() -> UserService:
    """User service; seeds the bootstrap admin on first use"""
    global _admin_seeded
    service = UserService(user_repo)
    if not _admin_seeded:
        settings = get_settings()
        await service.ensure_admin(settings.admin_name, settings.admin_email, settings.admin_password)
        _admin_seeded = True
    return service


async def get_current_user(
    token: str = Depends(oauth2_scheme),
    service: UserService = Depends(get_user_service)
):
    credentials_exception = HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail="Not authorized, token failed",
        headers={"WWW-Authenticate": "Bearer"},
    )
    try:
        payload = decode_access_token(token)
        subject = payload.get("sub")
        if subject is None:
            raise credentials_exception
        token_data = TokenData(user_id=UUID(subject), role=payload.get("role"))
    except (JWTError, ValueError):
        raise credentials_exception

    try:
        user = await service.get_user(token_data.user_id)
    except UserNotFound:
        raise credentials_exception
    return user


async def get_current_active_user(current_user: User = Depends(get_current_user)):
    if current_user.disabled:
        raise HTTPException(status_code=400, detail="Inactive user")
    return current_user


def require_roles(*roles: UserRole):
    """Dependency factory allowing only the given roles through"""

    async def checker(current_user: User = Depends(get_current_active_user)):
        if current_user.role not in roles:
            logger.warning("User %s with role %s denied", current_user.user_id, current_user.role.value)
            raise HTTPException(
                status_code=status.HTTP_403_FORBIDDEN,
                detail=f"User role {current_user.role.value} is not authorized to access this route",
            )
        return current_user

    return checker


require_staff = require_roles(UserRole.STAFF, UserRole.ADMIN)
require_admin = require_roles(UserRole.ADMIN)
