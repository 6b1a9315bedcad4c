"""Community endpoints: listing, creation, settings, membership, members and reports."""

from typing import Annotated

from fastapi import APIRouter, Depends, status

from app.api.v1.auth import get_current_user, get_discepto, get_optional_user
from app.schemas.essay import ReportView
from app.schemas.subdiscepto import SubdisceptoRequest, SubdisceptoUpdate, SubdisceptoView
from app.schemas.user import MemberView
from app.services.discepto import DisceptoHandle
from app.services.subdiscepto import SubdisceptoHandle
from app.services.users import UserHandle

router = APIRouter()


def get_subdiscepto(
    name: str,
    discepto: Annotated[DisceptoHandle, Depends(get_discepto)],
) -> SubdisceptoHandle:
    """Dependency: community handle for the caller; 404 if absent, 403 if private and unreadable."""
    return discepto.get_subdiscepto_handle(name)


@router.get("", response_model=list[SubdisceptoView])
def list_subdisceptos(
    discepto: Annotated[DisceptoHandle, Depends(get_discepto)],
) -> list[SubdisceptoView]:
    """Public communities."""
    return discepto.list_subdisceptos()


@router.get("/mine", response_model=list[SubdisceptoView])
def list_my_subdisceptos(
    discepto: Annotated[DisceptoHandle, Depends(get_discepto)],
    _user: Annotated[UserHandle, Depends(get_current_user)],
) -> list[SubdisceptoView]:
    return discepto.list_user_subdisceptos()


@router.post("", response_model=SubdisceptoView, status_code=status.HTTP_201_CREATED)
def create_subdiscepto(
    body: SubdisceptoRequest,
    discepto: Annotated[DisceptoHandle, Depends(get_discepto)],
    user: Annotated[UserHandle, Depends(get_current_user)],
) -> SubdisceptoView:
    sub = discepto.create_subdiscepto(body)
    return sub.read_view(user)


@router.get("/{name}", response_model=SubdisceptoView)
def read_subdiscepto(
    sub: Annotated[SubdisceptoHandle, Depends(get_subdiscepto)],
    user: Annotated[UserHandle | None, Depends(get_optional_user)],
) -> SubdisceptoView:
    return sub.read_view(user)


@router.put("/{name}", status_code=status.HTTP_204_NO_CONTENT)
def update_subdiscepto(
    body: SubdisceptoUpdate,
    sub: Annotated[SubdisceptoHandle, Depends(get_subdiscepto)],
) -> None:
    sub.update(body)


@router.delete("/{name}", status_code=status.HTTP_204_NO_CONTENT)
def delete_subdiscepto(sub: Annotated[SubdisceptoHandle, Depends(get_subdiscepto)]) -> None:
    sub.delete()


@router.get("/{name}/members", response_model=list[MemberView])
def list_members(sub: Annotated[SubdisceptoHandle, Depends(get_subdiscepto)]) -> list[MemberView]:
    return sub.list_members()


@router.post("/{name}/members", status_code=status.HTTP_204_NO_CONTENT)
def join_subdiscepto(
    sub: Annotated[SubdisceptoHandle, Depends(get_subdiscepto)],
    user: Annotated[UserHandle, Depends(get_current_user)],
) -> None:
    sub.add_member(user)


@router.delete("/{name}/members", status_code=status.HTTP_204_NO_CONTENT)
def leave_subdiscepto(
    sub: Annotated[SubdisceptoHandle, Depends(get_subdiscepto)],
    user: Annotated[UserHandle, Depends(get_current_user)],
) -> None:
    sub.remove_member(user)


@router.get("/{name}/reports", response_model=list[ReportView])
def list_reports(sub: Annotated[SubdisceptoHandle, Depends(get_subdiscepto)]) -> list[ReportView]:
    return sub.list_reports()


@router.delete("/{name}/reports/{report_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_report(
    report_id: int,
    sub: Annotated[SubdisceptoHandle, Depends(get_subdiscepto)],
) -> None:
    sub.delete_report(report_id)
