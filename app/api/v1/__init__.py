"""API v1 routes."""

from typing import Annotated

from fastapi import APIRouter, Depends, Query

from app.api.v1 import auth, essays, health, notifications, roles, subdisceptos, users
from app.schemas.essay import EssayView
from app.services.discepto import DisceptoHandle
from app.services.users import UserHandle

router = APIRouter()
router.include_router(health.router, prefix="/health", tags=["health"])
router.include_router(auth.router, prefix="/auth", tags=["auth"])
router.include_router(users.router, prefix="/users", tags=["users"])
router.include_router(roles.global_router, prefix="/roles", tags=["roles"])
router.include_router(subdisceptos.router, prefix="/subdisceptos", tags=["subdisceptos"])
router.include_router(
    roles.subdiscepto_router,
    prefix="/subdisceptos/{name}/roles",
    tags=["roles"],
)
router.include_router(essays.router, prefix="/subdisceptos/{name}/essays", tags=["essays"])
router.include_router(notifications.router, prefix="/notifications", tags=["notifications"])


@router.get("/search", response_model=list[EssayView], tags=["essays"])
def search_essays(
    discepto: Annotated[DisceptoHandle, Depends(auth.get_discepto)],
    q: str | None = None,
    tags: Annotated[list[str] | None, Query()] = None,
) -> list[EssayView]:
    """Essays in public communities by thesis text or by tags."""
    if tags:
        return discepto.search_by_tags(tags)
    return discepto.search_by_thesis(q or "")


@router.get("/feed", response_model=list[EssayView], tags=["essays"])
def recent_essays(
    discepto: Annotated[DisceptoHandle, Depends(auth.get_discepto)],
    _user: Annotated[UserHandle, Depends(auth.get_current_user)],
) -> list[EssayView]:
    """Newest essays from the caller's communities."""
    return discepto.list_recent_essays()
