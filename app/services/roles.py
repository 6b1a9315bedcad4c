"""
Role-management service for one role domain and one caller.

Every mutating operation enforces anti-escalation: the permissions of the
target role must be a subset of the caller's context permissions, so a
caller can never grant (or hand out a role carrying) a permission it does
not hold itself. All checks run before any write.
"""

import logging
import re

from sqlalchemy.orm import Session

from app.core.database import transaction
from app.core.errors import (
    InvalidFormatError,
    MissingPermissions,
    NotFoundError,
    PermissionDenied,
    PresetRoleError,
)
from app.models import Role, User
from app.services import role_store
from app.services.permissions import EMPTY_PERMS, Perm, PermSet

logger = logging.getLogger(__name__)

ROLE_ADMIN = "admin"
ROLE_COMMON = "common"
ROLE_COMMON_AFTER_REJOIN = "common-after-rejoin"
PRESET_ROLE_NAMES = frozenset({ROLE_ADMIN, ROLE_COMMON, ROLE_COMMON_AFTER_REJOIN})

ROLE_NAME_PATTERN = re.compile(r"^[\w-]{1,64}$")


class RolesHandle:
    """
    Authorizes and executes role CRUD and (un)assignment within one role domain.

    context_perms are the caller's effective permissions in the domain;
    can_manage is manage_role (community) or manage_global_role (global).
    The service is built from already resolved permissions and keeps no
    reference to the scope handle that created it.
    """

    def __init__(
        self,
        db: Session,
        domain_id: int,
        context_perms: PermSet,
        can_manage: bool,
        manage_perm: Perm = Perm.MANAGE_ROLE,
    ) -> None:
        self.db = db
        self.domain_id = domain_id
        self.context_perms = context_perms
        self.can_manage = can_manage
        self.manage_perm = manage_perm

    def _require_manage(self) -> None:
        if not self.can_manage:
            logger.debug("Role management denied in domain %s: missing %s", self.domain_id, self.manage_perm)
            raise MissingPermissions([self.manage_perm])

    def _require_same_domain(self, role: Role) -> None:
        """A role from another domain is never manageable here, so the denial names no missing permission."""
        if role.domain != self.domain_id:
            logger.debug(
                "Role %s belongs to domain %s, not %s", role.name, role.domain, self.domain_id
            )
            raise PermissionDenied(message=f"Role '{role.name}' belongs to another role domain")

    def _require_lower(self, perms: PermSet) -> None:
        """Anti-escalation: perms must be a subset of the caller's context permissions."""
        if not perms.subset_of(self.context_perms):
            missing = perms.difference(self.context_perms)
            logger.debug("Escalation denied in domain %s: missing %s", self.domain_id, missing.names())
            raise MissingPermissions(missing.list())

    def _require_editable(self, role: Role) -> None:
        if role.preset:
            raise PresetRoleError(role.name)

    def list_roles(self) -> list[Role]:
        self._require_manage()
        return role_store.list_roles(self.db, self.domain_id)

    def list_user_roles(self, user_id: int) -> list[Role]:
        self._require_manage()
        return role_store.list_user_roles(self.db, user_id, self.domain_id)

    def get_role(self, name: str) -> Role:
        self._require_manage()
        return role_store.find_role(self.db, self.domain_id, name)

    def list_role_perms(self, role: Role) -> PermSet:
        self._require_manage()
        self._require_same_domain(role)
        return role_store.list_role_perms(self.db, role.id)

    def create_role(self, name: str) -> Role:
        """Create a non-preset role with no permissions."""
        self._require_manage()
        if not ROLE_NAME_PATTERN.match(name):
            raise InvalidFormatError("Role names may only contain letters, digits, '_' and '-'")
        if name in PRESET_ROLE_NAMES:
            raise InvalidFormatError(f"Role name '{name}' is reserved")
        with transaction(self.db):
            role_id = role_store.create_role(self.db, self.domain_id, name, EMPTY_PERMS)
            role = role_store.get_role(self.db, role_id)
        logger.info("Created role %s (id=%s) in domain %s", name, role_id, self.domain_id)
        return role

    def set_permissions(self, role: Role, perms: PermSet) -> None:
        """Replace the permissions of a non-preset role with a subset of the caller's own."""
        self._require_manage()
        self._require_same_domain(role)
        self._require_editable(role)
        with transaction(self.db):
            self._require_lower(role_store.list_role_perms(self.db, role.id))
            self._require_lower(perms)
            role_store.set_permissions(self.db, role.id, perms)
            logger.info("Set permissions of role %s in domain %s to %s", role.name, self.domain_id, perms.names())

    def delete_role(self, role: Role) -> None:
        self._require_manage()
        self._require_same_domain(role)
        self._require_editable(role)
        with transaction(self.db):
            self._require_lower(role_store.list_role_perms(self.db, role.id))
            logger.info("Deleting role %s in domain %s", role.name, self.domain_id)
            role_store.delete_role(self.db, role.id)

    def assign(self, user_id: int, role: Role) -> None:
        self._require_manage()
        self._require_same_domain(role)
        with transaction(self.db):
            self._require_lower(role_store.list_role_perms(self.db, role.id))
            if self.db.get(User, user_id) is None:
                raise NotFoundError(f"User {user_id} not found")
            role_store.assign(self.db, user_id, role.id)
            logger.info("Assigned role %s to user %s in domain %s", role.name, user_id, self.domain_id)

    def unassign(self, user_id: int, role: Role) -> None:
        self._require_manage()
        self._require_same_domain(role)
        with transaction(self.db):
            self._require_lower(role_store.list_role_perms(self.db, role.id))
            role_store.unassign(self.db, user_id, role.id)
            logger.info("Unassigned role %s from user %s in domain %s", role.name, user_id, self.domain_id)

    def unassign_all(self, user_id: int) -> None:
        self._require_manage()
        role_store.unassign_all(self.db, user_id, self.domain_id)
        logger.info("Unassigned all roles of user %s in domain %s", user_id, self.domain_id)
