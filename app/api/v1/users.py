"""User directory endpoints: global members, public profiles, essays and deletion."""

from typing import Annotated

from fastapi import APIRouter, Depends, status

from app.api.v1.auth import get_discepto
from app.schemas.essay import EssayView
from app.schemas.user import MemberView, UserView
from app.services.discepto import DisceptoHandle

router = APIRouter()


@router.get("", response_model=list[MemberView])
def list_users(discepto: Annotated[DisceptoHandle, Depends(get_discepto)]) -> list[MemberView]:
    """All users with their global roles (manage_global_role)."""
    return discepto.list_members()


@router.get("/{user_id}", response_model=UserView)
def read_user(user_id: int, discepto: Annotated[DisceptoHandle, Depends(get_discepto)]) -> UserView:
    return discepto.read_public_user(user_id)


@router.get("/{user_id}/essays", response_model=list[EssayView])
def list_user_essays(
    user_id: int,
    discepto: Annotated[DisceptoHandle, Depends(get_discepto)],
) -> list[EssayView]:
    return discepto.list_user_essays(user_id)


@router.delete("/{user_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_user(user_id: int, discepto: Annotated[DisceptoHandle, Depends(get_discepto)]) -> None:
    discepto.delete_user(user_id)
