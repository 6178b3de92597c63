from uuid import UUID

from pydantic import BaseModel


class ScopeContext(BaseModel):
    """Explicit tenant/branch/actor scope threaded through every timetable operation."""

    tenant_id: UUID
    branch_id: UUID
    actor_id: UUID

    class Config:
        frozen = True
