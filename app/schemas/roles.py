"""Schemas for role management."""

from pydantic import BaseModel, Field

from app.services.permissions import Perm


class RoleView(BaseModel):
    id: int
    name: str
    preset: bool
    domain: int

    model_config = {"from_attributes": True}


class RoleDetail(RoleView):
    """Role together with its permission names (lexical order)."""

    perms: list[Perm] = []


class RoleCreateRequest(BaseModel):
    name: str = Field(..., min_length=1, max_length=64, description="Role name")


class RolePermsRequest(BaseModel):
    """Replacement permission set for a role. Unknown names are rejected."""

    perms: list[Perm] = Field(default_factory=list)


class RoleAssignRequest(BaseModel):
    user_id: int = Field(..., description="User receiving (or losing) the role")
