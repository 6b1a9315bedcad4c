"""Pydantic request/response schemas."""

from app.schemas.auth import LoginRequest, RegisterRequest, TokenResponse
from app.schemas.essay import (
    EssayCapabilities,
    EssayRequest,
    EssayView,
    ReportRequest,
    ReportView,
    VoteCount,
    VoteRequest,
)
from app.schemas.health import HealthResponse
from app.schemas.notification import NotificationCreate, NotificationView
from app.schemas.roles import (
    RoleAssignRequest,
    RoleCreateRequest,
    RoleDetail,
    RolePermsRequest,
    RoleView,
)
from app.schemas.subdiscepto import SubdisceptoRequest, SubdisceptoUpdate, SubdisceptoView
from app.schemas.user import MemberView, UserDetail, UserView

__all__ = [
    "EssayCapabilities",
    "EssayRequest",
    "EssayView",
    "HealthResponse",
    "LoginRequest",
    "MemberView",
    "NotificationCreate",
    "NotificationView",
    "RegisterRequest",
    "ReportRequest",
    "ReportView",
    "RoleAssignRequest",
    "RoleCreateRequest",
    "RoleDetail",
    "RolePermsRequest",
    "RoleView",
    "SubdisceptoRequest",
    "SubdisceptoUpdate",
    "SubdisceptoView",
    "TokenResponse",
    "UserDetail",
    "UserView",
    "VoteCount",
    "VoteRequest",
]
