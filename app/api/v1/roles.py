"""
Role management endpoints.

The same routes are mounted twice: on the global role domain (/roles) and
on each community's role domain (/subdisceptos/{name}/roles). Authorization
lives entirely in RolesHandle.
"""

from collections.abc import Callable
from typing import Annotated, Any

from fastapi import APIRouter, Depends, status

from app.api.v1.auth import get_discepto
from app.api.v1.subdisceptos import get_subdiscepto
from app.schemas.roles import (
    RoleAssignRequest,
    RoleCreateRequest,
    RoleDetail,
    RolePermsRequest,
    RoleView,
)
from app.services.discepto import DisceptoHandle
from app.services.permissions import Perm, PermSet
from app.services.roles import RolesHandle
from app.services.subdiscepto import SubdisceptoHandle


def get_global_roles(discepto: Annotated[DisceptoHandle, Depends(get_discepto)]) -> RolesHandle:
    return discepto.roles


def get_subdiscepto_roles(sub: Annotated[SubdisceptoHandle, Depends(get_subdiscepto)]) -> RolesHandle:
    return sub.roles


def build_roles_router(get_roles: Callable[..., Any], get_scope: Callable[..., Any]) -> APIRouter:
    """
    Role CRUD and (un)assignment routes over the role domain chosen by
    get_roles. get_scope resolves the scope handle that lists the permissions
    grantable in that domain.
    """
    router = APIRouter()
    Roles = Annotated[RolesHandle, Depends(get_roles)]

    @router.get("/perms", response_model=list[Perm])
    def list_available_perms(scope: Annotated[Any, Depends(get_scope)]) -> list[Perm]:
        return scope.list_available_perms().list()

    @router.get("", response_model=list[RoleView])
    def list_roles(roles: Roles) -> list[RoleView]:
        return [RoleView.model_validate(r) for r in roles.list_roles()]

    @router.post("", response_model=RoleView, status_code=status.HTTP_201_CREATED)
    def create_role(body: RoleCreateRequest, roles: Roles) -> RoleView:
        return RoleView.model_validate(roles.create_role(body.name))

    @router.get("/users/{user_id}", response_model=list[RoleView])
    def list_user_roles(user_id: int, roles: Roles) -> list[RoleView]:
        return [RoleView.model_validate(r) for r in roles.list_user_roles(user_id)]

    @router.get("/{role_name}", response_model=RoleDetail)
    def read_role(role_name: str, roles: Roles) -> RoleDetail:
        role = roles.get_role(role_name)
        perms = roles.list_role_perms(role)
        return RoleDetail(id=role.id, name=role.name, preset=role.preset, domain=role.domain, perms=perms.list())

    @router.put("/{role_name}/perms", status_code=status.HTTP_204_NO_CONTENT)
    def set_role_perms(role_name: str, body: RolePermsRequest, roles: Roles) -> None:
        roles.set_permissions(roles.get_role(role_name), PermSet(body.perms))

    @router.delete("/{role_name}", status_code=status.HTTP_204_NO_CONTENT)
    def delete_role(role_name: str, roles: Roles) -> None:
        roles.delete_role(roles.get_role(role_name))

    @router.post("/{role_name}/assign", status_code=status.HTTP_204_NO_CONTENT)
    def assign_role(role_name: str, body: RoleAssignRequest, roles: Roles) -> None:
        roles.assign(body.user_id, roles.get_role(role_name))

    @router.post("/{role_name}/unassign", status_code=status.HTTP_204_NO_CONTENT)
    def unassign_role(role_name: str, body: RoleAssignRequest, roles: Roles) -> None:
        roles.unassign(body.user_id, roles.get_role(role_name))

    return router


global_router = build_roles_router(get_global_roles, get_discepto)
subdiscepto_router = build_roles_router(get_subdiscepto_roles, get_subdiscepto)
