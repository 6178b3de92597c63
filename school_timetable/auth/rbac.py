import logging

from fastapi import Depends, HTTPException, status

from school_timetable.auth.dependencies import get_current_user
from school_timetable.auth.schemas import CurrentUser

logger = logging.getLogger(__name__)

ADMIN_ROLES = ("SUPER_ADMIN", "PLATFORM_ADMIN")


def has_permission(user: CurrentUser, module: str, action: str) -> bool:
    if user.role in ADMIN_ROLES:
        return True
    return bool((user.permissions or {}).get(module, {}).get(action, False))


def check_permission(module: str, action: str):
    """
    Dependency factory guarding a timetable route, e.g.
    ``Depends(check_permission("timetable", "update"))``.

    Admin roles pass; everyone else needs ``permissions[module][action]``
    in their token.
    """

    async def _checker(current_user: CurrentUser = Depends(get_current_user)) -> None:
        if not has_permission(current_user, module, action):
            logger.warning(
                "Denied %s.%s to user %s (role %s, branch %s)",
                module,
                action,
                current_user.id,
                current_user.role,
                current_user.branch_id,
            )
            raise HTTPException(
                status_code=status.HTTP_403_FORBIDDEN,
                detail=f"Missing permission {module}.{action}",
            )

    return _checker
