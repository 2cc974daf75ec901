"""
FieldOps - FastAPI Dependencies

Who is calling, and may they manage payroll?

The caller is identified by a bearer token (header, or the access_token
cookie set by the web front end). Role checks only distinguish payroll
managers (boss, admin) from everyone else.
"""

from typing import Optional, Sequence

from fastapi import Depends, HTTPException, Request, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.ext.asyncio import AsyncSession

from app.database import get_async_session
from app.models.user import PAYROLL_MANAGER_ROLES, User, UserRole
from app.utils.security import user_id_from_token


bearer_scheme = HTTPBearer(auto_error=False)


def _unauthorized(detail: str) -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail=detail,
        headers={"WWW-Authenticate": "Bearer"},
    )


def _token_from_request(
    request: Request,
    credentials: Optional[HTTPAuthorizationCredentials],
) -> Optional[str]:
    if credentials:
        return credentials.credentials
    cookie = request.cookies.get("access_token")
    if cookie and cookie.startswith("Bearer "):
        return cookie[len("Bearer "):]
    return cookie


async def get_current_user(
    request: Request,
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(bearer_scheme),
    db: AsyncSession = Depends(get_async_session),
) -> User:
    """Active user behind the request's token; 401/403 otherwise."""
    token = _token_from_request(request, credentials)
    if not token:
        raise _unauthorized("Not authenticated")

    user_id = user_id_from_token(token)
    if user_id is None:
        raise _unauthorized("Invalid or expired token")

    user = await db.get(User, user_id)
    if user is None:
        raise _unauthorized("User not found")
    if not user.is_active:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="User account is deactivated",
        )
    return user


def require_role(allowed_roles: Sequence[UserRole]):
    """Dependency factory: current user must hold one of the given roles."""
    allowed = tuple(allowed_roles)

    async def role_checker(current_user: User = Depends(get_current_user)) -> User:
        if current_user.role not in allowed:
            raise HTTPException(
                status_code=status.HTTP_403_FORBIDDEN,
                detail=f"Access denied. Required roles: {[r.value for r in allowed]}",
            )
        return current_user

    return role_checker


def require_payroll_manager():
    """Boss or admin."""
    return require_role(PAYROLL_MANAGER_ROLES)
