"""
Global scope handle.

DisceptoHandle carries the caller's global effective permissions (empty for
anonymous callers) and a role-management service over the global role
domain. Community handles are resolved through it.
"""

import logging
import re

from sqlalchemy import and_, case, func, literal, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from app.core.database import transaction
from app.core.errors import AlreadyExistsError, InvalidFormatError, NotFoundError, PermissionDenied
from app.models import (
    DOMAIN_TYPE_SUBDISCEPTO,
    GLOBAL_ROLE_DOMAIN_ID,
    Essay,
    EssayTag,
    Role,
    Subdiscepto,
    SubdisceptoUser,
    User,
    UserRole,
)
from app.schemas.essay import EssayView
from app.schemas.notification import NotificationView
from app.schemas.subdiscepto import SubdisceptoRequest, SubdisceptoView
from app.schemas.user import MemberView, UserView
from app.services import role_store, users
from app.services.essay import query_essay_views
from app.services.notifications import NotificationService
from app.services.permissions import (
    ALL_PERMS,
    EMPTY_PERMS,
    SUB_ADMIN_PERMS,
    SUB_COMMON_AFTER_REJOIN_PERMS,
    SUB_COMMON_PERMS,
    Perm,
    PermSet,
)
from app.services.resolver import effective_permissions
from app.services.roles import ROLE_ADMIN, ROLE_COMMON, ROLE_COMMON_AFTER_REJOIN, RolesHandle
from app.services.subdiscepto import SubdisceptoHandle, resolve_community_perms
from app.services.users import UserHandle

logger = logging.getLogger(__name__)

SUBDISCEPTO_NAME_PATTERN = re.compile(r"^\w+$")

# Creation order fixes role ids, and role listings follow role ids.
COMMUNITY_PRESET_ROLES = (
    (ROLE_COMMON, SUB_COMMON_PERMS),
    (ROLE_COMMON_AFTER_REJOIN, SUB_COMMON_AFTER_REJOIN_PERMS),
    (ROLE_ADMIN, SUB_ADMIN_PERMS),
)


def _subdiscepto_views(db: Session, user_id: int | None, *where) -> list[SubdisceptoView]:
    members_count = func.count(SubdisceptoUser.user_id)
    if user_id is None:
        is_member = literal(0)
    else:
        is_member = func.coalesce(func.max(case((SubdisceptoUser.user_id == user_id, 1), else_=0)), 0)
    stmt = (
        select(Subdiscepto.name, Subdiscepto.description, members_count, is_member)
        .outerjoin(
            SubdisceptoUser,
            and_(
                SubdisceptoUser.subdiscepto == Subdiscepto.name,
                SubdisceptoUser.left_at.is_(None),
            ),
        )
        .where(*where)
        .group_by(Subdiscepto.name, Subdiscepto.description)
        .order_by(Subdiscepto.name)
    )
    return [
        SubdisceptoView(name=name, description=description, members_count=count, is_member=bool(member))
        for name, description, count, member in db.execute(stmt)
    ]


class DisceptoHandle:
    def __init__(
        self,
        db: Session,
        user: UserHandle | None = None,
        notifications: NotificationService | None = None,
    ) -> None:
        self.db = db
        self.user = user
        self.notifications = notifications or NotificationService(db)
        self.perms: PermSet = (
            effective_permissions(db, user.id, GLOBAL_ROLE_DOMAIN_ID) if user is not None else EMPTY_PERMS
        )
        self.roles = RolesHandle(
            db,
            GLOBAL_ROLE_DOMAIN_ID,
            context_perms=self.perms,
            can_manage=self.perms.has(Perm.MANAGE_GLOBAL_ROLE),
            manage_perm=Perm.MANAGE_GLOBAL_ROLE,
        )

    def __repr__(self) -> str:
        user_id = self.user.id if self.user is not None else None
        return f"DisceptoHandle(user_id={user_id!r})"

    def list_available_perms(self) -> PermSet:
        return ALL_PERMS

    def create_subdiscepto(self, request: SubdisceptoRequest) -> SubdisceptoHandle:
        """
        Create a community owned by the caller.

        In one transaction: a fresh role domain, the community row, the
        caller's membership, the preset roles common, common-after-rejoin and
        admin, and the assignment of common and admin to the caller.
        """
        self.perms.require(Perm.CREATE_SUBDISCEPTO)
        if self.user is None:
            raise PermissionDenied([Perm.CREATE_SUBDISCEPTO])
        if not SUBDISCEPTO_NAME_PATTERN.match(request.name):
            raise InvalidFormatError("Subdiscepto names may only contain letters, digits and '_'")

        owner_id = self.user.id
        with transaction(self.db):
            if self.db.get(Subdiscepto, request.name) is not None:
                raise AlreadyExistsError(f"Subdiscepto '{request.name}' already exists")
            domain_id = role_store.create_role_domain(self.db, DOMAIN_TYPE_SUBDISCEPTO)
            self.db.add(
                Subdiscepto(
                    name=request.name,
                    description=request.description,
                    min_length=request.min_length,
                    questions_required=request.questions_required,
                    nsfw=request.nsfw,
                    public=request.public,
                    roledomain_id=domain_id,
                )
            )
            try:
                self.db.flush()
            except IntegrityError as e:
                raise AlreadyExistsError(f"Subdiscepto '{request.name}' already exists") from e
            self.db.add(SubdisceptoUser(subdiscepto=request.name, user_id=owner_id))
            self.db.flush()

            role_ids = {
                name: role_store.create_role(self.db, domain_id, name, perms, preset=True)
                for name, perms in COMMUNITY_PRESET_ROLES
            }
            role_store.assign(self.db, owner_id, role_ids[ROLE_COMMON])
            role_store.assign(self.db, owner_id, role_ids[ROLE_ADMIN])
            logger.info("User %s created subdiscepto %s (domain %s)", owner_id, request.name, domain_id)

        return self.get_subdiscepto_handle(request.name)

    def get_subdiscepto_handle(self, name: str) -> SubdisceptoHandle:
        community = self.db.get(Subdiscepto, name)
        if community is None:
            raise NotFoundError(f"Subdiscepto '{name}' not found")
        user_id = self.user.id if self.user is not None else None
        perms = resolve_community_perms(self.db, community, user_id, self.perms)
        return SubdisceptoHandle(
            self.db,
            community,
            user_id,
            perms,
            global_perms=self.perms,
            notifications=self.notifications,
        )

    def list_subdisceptos(self) -> list[SubdisceptoView]:
        """Public communities."""
        user_id = self.user.id if self.user is not None else None
        return _subdiscepto_views(self.db, user_id, Subdiscepto.public.is_(True))

    def list_user_subdisceptos(self) -> list[SubdisceptoView]:
        """Communities the caller currently belongs to and can read. Empty without use_local_permissions."""
        if self.user is None or not self.perms.has(Perm.USE_LOCAL_PERMISSIONS):
            return []
        joined = select(SubdisceptoUser.subdiscepto).where(
            SubdisceptoUser.user_id == self.user.id,
            SubdisceptoUser.left_at.is_(None),
        )
        views = _subdiscepto_views(self.db, self.user.id, Subdiscepto.name.in_(joined))
        readable = []
        for view in views:
            community = self.db.get(Subdiscepto, view.name)
            perms = effective_permissions(self.db, self.user.id, community.roledomain_id)
            if community.public or perms.has(Perm.READ_SUBDISCEPTO):
                readable.append(view)
        return readable

    def list_members(self) -> list[MemberView]:
        """Every user with their global role names. Requires manage_global_role."""
        self.perms.require(Perm.MANAGE_GLOBAL_ROLE)
        roles: dict[int, list[str]] = {}
        role_rows = self.db.execute(
            select(UserRole.user_id, Role.name)
            .join(Role, Role.id == UserRole.role_id)
            .where(Role.domain == GLOBAL_ROLE_DOMAIN_ID)
            .order_by(UserRole.user_id, Role.id)
        )
        for user_id, role_name in role_rows:
            roles.setdefault(user_id, []).append(role_name)
        user_rows = self.db.execute(select(User.id, User.name).order_by(User.id))
        return [
            MemberView(user_id=user_id, name=name, roles=roles.get(user_id, []))
            for user_id, name in user_rows
        ]

    def read_public_user(self, user_id: int) -> UserView:
        return users.read_public_user(self.db, user_id)

    def delete_user(self, user_id: int) -> None:
        self.perms.require(Perm.DELETE_USER)
        users.delete_user(self.db, user_id)

    def list_user_essays(self, user_id: int) -> list[EssayView]:
        """Essays by user_id posted in public communities."""
        public = select(Subdiscepto.name).where(Subdiscepto.public.is_(True))
        return query_essay_views(
            self.db, Essay.attributed_to_id == user_id, Essay.posted_in.in_(public)
        )

    def list_recent_essays(self) -> list[EssayView]:
        """
        Home feed: newest essays first, from the communities the caller
        currently belongs to. Empty for anonymous callers and for users
        who have joined nothing readable.
        """
        names = [view.name for view in self.list_user_subdisceptos()]
        if not names:
            return []
        return query_essay_views(self.db, Essay.posted_in.in_(names), newest_first=True)

    def search_by_tags(self, tags: list[str]) -> list[EssayView]:
        """Essays in public communities carrying any of the tags."""
        if not tags:
            return []
        public = select(Subdiscepto.name).where(Subdiscepto.public.is_(True))
        tagged = select(EssayTag.essay_id).where(EssayTag.tag.in_(tags))
        return query_essay_views(self.db, Essay.id.in_(tagged), Essay.posted_in.in_(public))

    def search_by_thesis(self, text: str) -> list[EssayView]:
        public = select(Subdiscepto.name).where(Subdiscepto.public.is_(True))
        return query_essay_views(
            self.db, Essay.thesis.ilike(f"%{text}%"), Essay.posted_in.in_(public)
        )

    def list_notifications(self, user: UserHandle) -> list[NotificationView]:
        if not user.can_read:
            raise PermissionDenied()
        return self.notifications.list(user.id)

    def delete_notification(self, user: UserHandle, notif_id: int) -> None:
        if not user.can_read:
            raise PermissionDenied()
        self.notifications.delete(user.id, notif_id)


def get_discepto_handle(db: Session, user: UserHandle | None = None) -> DisceptoHandle:
    return DisceptoHandle(db, user)
