"""Essay endpoints nested under a community: posting, replies, votes and reports."""

from typing import Annotated

from fastapi import APIRouter, Depends, status

from app.api.v1.auth import get_current_user, get_optional_user
from app.api.v1.subdisceptos import get_subdiscepto
from app.schemas.essay import (
    EssayRequest,
    EssayView,
    ReplyType,
    ReportRequest,
    VoteCount,
    VoteRequest,
)
from app.services.essay import EssayHandle
from app.services.subdiscepto import SubdisceptoHandle
from app.services.users import UserHandle

router = APIRouter()


def get_essay(
    essay_id: int,
    sub: Annotated[SubdisceptoHandle, Depends(get_subdiscepto)],
    user: Annotated[UserHandle | None, Depends(get_optional_user)],
) -> EssayHandle:
    return sub.get_essay_handle(essay_id, user)


@router.get("", response_model=list[EssayView])
def list_essays(sub: Annotated[SubdisceptoHandle, Depends(get_subdiscepto)]) -> list[EssayView]:
    return sub.list_essays()


@router.post("", response_model=EssayView, status_code=status.HTTP_201_CREATED)
def create_essay(
    body: EssayRequest,
    sub: Annotated[SubdisceptoHandle, Depends(get_subdiscepto)],
    user: Annotated[UserHandle, Depends(get_current_user)],
) -> EssayView:
    return sub.create_essay(body, user).read_view()


@router.get("/{essay_id}", response_model=EssayView)
def read_essay(essay: Annotated[EssayHandle, Depends(get_essay)]) -> EssayView:
    return essay.read_view()


@router.delete("/{essay_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_essay(essay: Annotated[EssayHandle, Depends(get_essay)]) -> None:
    essay.delete()


@router.get("/{essay_id}/replies", response_model=list[EssayView])
def list_replies(
    sub: Annotated[SubdisceptoHandle, Depends(get_subdiscepto)],
    essay: Annotated[EssayHandle, Depends(get_essay)],
    reply_type: ReplyType | None = None,
) -> list[EssayView]:
    return sub.list_replies(essay, reply_type)


@router.post("/{essay_id}/replies", response_model=EssayView, status_code=status.HTTP_201_CREATED)
def create_reply(
    body: EssayRequest,
    sub: Annotated[SubdisceptoHandle, Depends(get_subdiscepto)],
    essay: Annotated[EssayHandle, Depends(get_essay)],
    user: Annotated[UserHandle, Depends(get_current_user)],
) -> EssayView:
    return sub.create_essay_reply(body, essay, user).read_view()


@router.get("/{essay_id}/votes", response_model=VoteCount)
def count_votes(essay: Annotated[EssayHandle, Depends(get_essay)]) -> VoteCount:
    return essay.count_votes()


@router.post("/{essay_id}/votes", status_code=status.HTTP_204_NO_CONTENT)
def create_vote(
    body: VoteRequest,
    essay: Annotated[EssayHandle, Depends(get_essay)],
    user: Annotated[UserHandle, Depends(get_current_user)],
) -> None:
    essay.create_vote(user.id, body.vote_type)


@router.delete("/{essay_id}/votes", status_code=status.HTTP_204_NO_CONTENT)
def delete_vote(
    essay: Annotated[EssayHandle, Depends(get_essay)],
    user: Annotated[UserHandle, Depends(get_current_user)],
) -> None:
    essay.delete_vote(user.id)


@router.post("/{essay_id}/reports", status_code=status.HTTP_201_CREATED)
def create_report(
    body: ReportRequest,
    essay: Annotated[EssayHandle, Depends(get_essay)],
    user: Annotated[UserHandle, Depends(get_current_user)],
) -> dict[str, int]:
    return {"id": essay.create_report(user.id, body)}
