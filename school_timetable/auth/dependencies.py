from typing import Dict
from uuid import UUID

from fastapi import Depends, HTTPException, status
from fastapi.security import OAuth2PasswordBearer
from jose import JWTError, jwt

from school_timetable.auth.schemas import CurrentUser
from school_timetable.core.config import settings
from school_timetable.core.schemas import ScopeContext


oauth2_scheme = OAuth2PasswordBearer(tokenUrl="/api/v1/auth/login-oauth")


async def get_current_user(token: str = Depends(oauth2_scheme)) -> CurrentUser:
    """Resolve the caller, their branch and permissions from the access token."""
    credentials_exception = HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail="Could not validate credentials",
        headers={"WWW-Authenticate": "Bearer"},
    )

    try:
        payload = jwt.decode(
            token,
            settings.jwt_secret_key,
            algorithms=[settings.jwt_algorithm],
        )
    except JWTError:
        raise credentials_exception

    user_id_str = payload.get("user_id") or payload.get("sub")
    tenant_id_str = payload.get("tenant_id")
    branch_id_str = payload.get("branch_id")
    role_name = payload.get("role")
    if not user_id_str or not tenant_id_str or not branch_id_str or not role_name:
        raise credentials_exception

    try:
        user_id = UUID(user_id_str)
        tenant_id = UUID(tenant_id_str)
        branch_id = UUID(branch_id_str)
    except ValueError:
        raise credentials_exception

    permissions: Dict[str, Dict[str, bool]] = payload.get("permissions") or {}
    if not isinstance(permissions, dict):
        raise credentials_exception

    return CurrentUser(
        id=user_id,
        tenant_id=tenant_id,
        branch_id=branch_id,
        role=role_name,
        permissions=permissions,
    )


async def get_scope(current_user: CurrentUser = Depends(get_current_user)) -> ScopeContext:
    """Scope for service calls: the caller's tenant and branch, with the caller as actor."""
    return ScopeContext(
        tenant_id=current_user.tenant_id,
        branch_id=current_user.branch_id,
        actor_id=current_user.id,
    )
