from typing import Dict
from uuid import UUID

from pydantic import BaseModel


class CurrentUser(BaseModel):
    """Lightweight representation of the authenticated user for RBAC checks.
    All fields come from access-token claims; users and branches are managed elsewhere.
    """

    id: UUID
    tenant_id: UUID
    branch_id: UUID
    role: str
    permissions: Dict[str, Dict[str, bool]]
