"""SQLAlchemy ORM models."""

from app.models.base import Base
from app.models.essay import Essay, EssayReply, EssayTag, Report, Vote
from app.models.notification import Notification
from app.models.rbac import (
    DOMAIN_TYPE_DISCEPTO,
    DOMAIN_TYPE_SUBDISCEPTO,
    GLOBAL_ROLE_DOMAIN_ID,
    Role,
    RoleDomain,
    RolePermission,
    UserRole,
)
from app.models.subdiscepto import Subdiscepto, SubdisceptoUser
from app.models.user import User

__all__ = [
    "Base",
    "DOMAIN_TYPE_DISCEPTO",
    "DOMAIN_TYPE_SUBDISCEPTO",
    "Essay",
    "EssayReply",
    "EssayTag",
    "GLOBAL_ROLE_DOMAIN_ID",
    "Notification",
    "Report",
    "Role",
    "RoleDomain",
    "RolePermission",
    "Subdiscepto",
    "SubdisceptoUser",
    "User",
    "UserRole",
    "Vote",
]
