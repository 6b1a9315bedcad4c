"""Effective-permissions resolver: union of the permissions of every role a user holds in a domain."""

import logging
from collections.abc import Iterable

from sqlalchemy import select
from sqlalchemy.orm import Session

from app.core.errors import InvalidFormatError
from app.models import Role, RolePermission, UserRole
from app.services.permissions import EMPTY_PERMS, Perm, PermSet

logger = logging.getLogger(__name__)


def perms_from_names(names: Iterable[str]) -> PermSet:
    """Build a PermSet from persisted permission names, skipping names outside the vocabulary."""
    perms: list[Perm] = []
    for name in names:
        try:
            perms.append(Perm.parse(name))
        except InvalidFormatError:
            logger.warning("Ignoring unknown persisted permission %r", name)
    return PermSet(perms)


def effective_permissions(db: Session, user_id: int | None, domain_id: int) -> PermSet:
    """
    Return the union of the permission sets of every role assigned to the user
    within the domain. Anonymous or unknown users and users without
    assignments get the empty set. Read-only.
    """
    if user_id is None:
        return EMPTY_PERMS
    stmt = (
        select(RolePermission.permission)
        .distinct()
        .join(UserRole, UserRole.role_id == RolePermission.role_id)
        .join(Role, Role.id == UserRole.role_id)
        .where(Role.domain == domain_id, UserRole.user_id == user_id)
    )
    return perms_from_names(db.execute(stmt).scalars())
