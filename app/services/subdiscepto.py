"""
Community scope handle.

A SubdisceptoHandle bundles the caller's effective permissions inside one
community with the operations they gate. Effective permissions are resolved
once, at construction:

    effective = local ∪ (global ∩ COMMUNITY_INHERITED_PERMS)

where local are the permissions of the roles the user holds in the
community's role domain (only when the user has use_local_permissions
globally and an open membership). Public communities are always readable.
"""

import logging

from sqlalchemy import delete, func, select
from sqlalchemy.orm import Session

from app.core.config import settings
from app.core.database import transaction
from app.core.errors import (
    BadContentLengthError,
    MissingPermissions,
    NotFoundError,
    PermissionDenied,
    TooManyTagsError,
)
from app.models import (
    Essay,
    EssayReply,
    EssayTag,
    Report,
    Role,
    RoleDomain,
    Subdiscepto,
    SubdisceptoUser,
    User,
    UserRole,
)
from app.schemas.essay import EssayCapabilities, EssayRequest, EssayView, ReportView
from app.schemas.notification import NotificationCreate
from app.schemas.subdiscepto import SubdisceptoUpdate, SubdisceptoView
from app.schemas.user import MemberView
from app.services import membership
from app.services.essay import EssayHandle, query_essay_views
from app.services.notifications import NotificationService
from app.services.permissions import (
    COMMUNITY_INHERITED_PERMS,
    EMPTY_PERMS,
    SUB_ADMIN_PERMS,
    Perm,
    PermSet,
)
from app.services.resolver import effective_permissions
from app.services.roles import RolesHandle
from app.services.users import UserHandle

logger = logging.getLogger(__name__)


def resolve_community_perms(
    db: Session,
    community: Subdiscepto,
    user_id: int | None,
    global_perms: PermSet,
) -> PermSet:
    """Effective permissions of a user (None for anonymous) inside a community."""
    local = EMPTY_PERMS
    if user_id is not None and global_perms.has(Perm.USE_LOCAL_PERMISSIONS):
        # Roles kept after leaving (common-after-rejoin) grant nothing until rejoin.
        if not membership.is_departed(db, community.name, user_id):
            local = effective_permissions(db, user_id, community.roledomain_id)
    effective = local | (global_perms & COMMUNITY_INHERITED_PERMS)
    if not effective.has(Perm.READ_SUBDISCEPTO):
        if not community.public:
            logger.debug("User %s can't read private community %s", user_id, community.name)
            raise MissingPermissions([Perm.READ_SUBDISCEPTO])
        effective = effective.with_perms(Perm.READ_SUBDISCEPTO)
    return effective


class SubdisceptoHandle:
    def __init__(
        self,
        db: Session,
        community: Subdiscepto,
        user_id: int | None,
        perms: PermSet,
        global_perms: PermSet = EMPTY_PERMS,
        notifications: NotificationService | None = None,
    ) -> None:
        self.db = db
        self.name = community.name
        self.roledomain_id = community.roledomain_id
        self.public = community.public
        self.user_id = user_id
        self.perms = perms
        self.global_perms = global_perms
        self.notifications = notifications or NotificationService(db)
        self.roles = RolesHandle(
            db,
            community.roledomain_id,
            context_perms=perms,
            can_manage=perms.has(Perm.MANAGE_ROLE),
            manage_perm=Perm.MANAGE_ROLE,
        )

    def __repr__(self) -> str:
        return f"SubdisceptoHandle(name={self.name!r}, user_id={self.user_id!r})"

    def _community(self) -> Subdiscepto:
        community = self.db.get(Subdiscepto, self.name)
        if community is None:
            raise NotFoundError(f"Subdiscepto '{self.name}' not found")
        return community

    def read_raw(self) -> Subdiscepto:
        self.perms.require(Perm.READ_SUBDISCEPTO)
        return self._community()

    def read_view(self, user: UserHandle | None = None) -> SubdisceptoView:
        """Name, description, count of current members and whether user is one of them."""
        self.perms.require(Perm.READ_SUBDISCEPTO)
        community = self._community()
        members_count = self.db.execute(
            select(func.count())
            .select_from(SubdisceptoUser)
            .where(SubdisceptoUser.subdiscepto == self.name, SubdisceptoUser.left_at.is_(None))
        ).scalar_one()
        is_member = user is not None and membership.is_member(self.db, self.name, user.id)
        return SubdisceptoView(
            name=community.name,
            description=community.description,
            members_count=members_count,
            is_member=is_member,
        )

    def update(self, request: SubdisceptoUpdate) -> None:
        self.perms.require(Perm.UPDATE_SUBDISCEPTO)
        with transaction(self.db):
            community = self._community()
            community.description = request.description
            community.min_length = request.min_length
            community.questions_required = request.questions_required
            community.nsfw = request.nsfw
            community.public = request.public
            self.db.flush()
        logger.info("Updated subdiscepto %s", self.name)

    def delete(self) -> None:
        """Only the owner archetype (exactly the community admin permissions) may delete."""
        if self.perms != SUB_ADMIN_PERMS:
            logger.debug("Delete of %s denied: %s is not the owner set", self.name, self.perms.names())
            raise PermissionDenied(SUB_ADMIN_PERMS.difference(self.perms).list())
        with transaction(self.db):
            self.db.execute(delete(Subdiscepto).where(Subdiscepto.name == self.name))
            self.db.execute(delete(RoleDomain).where(RoleDomain.id == self.roledomain_id))
        logger.info("Deleted subdiscepto %s", self.name)

    def list_available_perms(self) -> PermSet:
        """Permissions that can be granted to roles of this community."""
        return SUB_ADMIN_PERMS

    def list_members(self) -> list[MemberView]:
        """Every membership row (current and closed) with the member's community role names."""
        self.perms.require(Perm.READ_SUBDISCEPTO)
        rows = self.db.execute(
            select(SubdisceptoUser.user_id, User.name, SubdisceptoUser.left_at)
            .join(User, User.id == SubdisceptoUser.user_id)
            .where(SubdisceptoUser.subdiscepto == self.name)
            .order_by(SubdisceptoUser.user_id)
        ).all()
        roles: dict[int, list[str]] = {}
        role_rows = self.db.execute(
            select(UserRole.user_id, Role.name)
            .join(Role, Role.id == UserRole.role_id)
            .where(Role.domain == self.roledomain_id)
            .order_by(UserRole.user_id, Role.id)
        )
        for user_id, role_name in role_rows:
            roles.setdefault(user_id, []).append(role_name)
        return [
            MemberView(user_id=user_id, name=name, left_at=left_at, roles=roles.get(user_id, []))
            for user_id, name, left_at in rows
        ]

    def list_essays(self) -> list[EssayView]:
        self.perms.require(Perm.READ_SUBDISCEPTO)
        return query_essay_views(self.db, Essay.posted_in == self.name)

    def list_replies(self, parent: EssayHandle, reply_type: str | None = None) -> list[EssayView]:
        self.perms.require(Perm.READ_SUBDISCEPTO)
        where = [EssayReply.to_id == parent.id]
        if reply_type is not None:
            where.append(EssayReply.reply_type == reply_type)
        return query_essay_views(self.db, *where)

    def get_essay_handle(self, essay_id: int, user: UserHandle | None = None) -> EssayHandle:
        self.perms.require(Perm.READ_SUBDISCEPTO)
        essay = self.db.get(Essay, essay_id)
        if essay is None or essay.posted_in != self.name:
            raise NotFoundError(f"Essay {essay_id} not found in {self.name}")
        is_owner = user is not None and essay.attributed_to_id == user.id
        caps = EssayCapabilities(
            read=self.perms.has(Perm.READ_SUBDISCEPTO) or is_owner,
            delete_essay=self.perms.has(Perm.DELETE_ESSAY) or is_owner,
            change_ranking=self.perms.has(Perm.CHANGE_RANKING),
            create_vote=self.global_perms.has(Perm.CREATE_VOTE),
            delete_vote=self.global_perms.has(Perm.DELETE_VOTE),
            create_report=self.perms.has(Perm.CREATE_REPORT),
        )
        return EssayHandle(self.db, essay_id, caps, self.notifications)

    def _insert_essay(self, request: EssayRequest, author: UserHandle) -> int:
        community = self._community()
        content_len = len(request.content)
        if content_len < community.min_length or content_len > settings.LIMIT_MAX_CONTENT_LEN:
            raise BadContentLengthError(
                f"Content length must be between {community.min_length} and {settings.LIMIT_MAX_CONTENT_LEN}"
            )
        if len(request.tags) > settings.LIMIT_MAX_TAGS:
            raise TooManyTagsError(f"At most {settings.LIMIT_MAX_TAGS} tags are allowed")
        essay = Essay(
            thesis=request.thesis,
            content=request.content,
            attributed_to_id=author.id,
            posted_in=self.name,
        )
        self.db.add(essay)
        self.db.flush()
        # Duplicates are skipped, order of first appearance kept.
        self.db.add_all(EssayTag(essay_id=essay.id, tag=tag) for tag in dict.fromkeys(request.tags))
        self.db.flush()
        return essay.id

    def _own_essay_handle(self, essay_id: int) -> EssayHandle:
        caps = EssayCapabilities(
            read=True,
            delete_essay=True,
            create_vote=self.global_perms.has(Perm.CREATE_VOTE),
            delete_vote=self.global_perms.has(Perm.DELETE_VOTE),
            create_report=self.perms.has(Perm.CREATE_REPORT),
        )
        return EssayHandle(self.db, essay_id, caps, self.notifications)

    def create_essay(self, request: EssayRequest, author: UserHandle) -> EssayHandle:
        self.perms.require(Perm.CREATE_ESSAY)
        with transaction(self.db):
            essay_id = self._insert_essay(request, author)
        logger.info("User %s posted essay %s in %s", author.id, essay_id, self.name)
        return self._own_essay_handle(essay_id)

    def create_essay_reply(
        self, request: EssayRequest, parent: EssayHandle, author: UserHandle
    ) -> EssayHandle:
        """Post an essay answering parent; the parent's author is notified unless they replied to themself."""
        self.perms.require(Perm.CREATE_ESSAY)
        with transaction(self.db):
            parent_essay = self.db.get(Essay, parent.id)
            if parent_essay is None or parent_essay.posted_in != self.name:
                raise NotFoundError(f"Essay {parent.id} not found in {self.name}")
            parent_author_id = parent_essay.attributed_to_id
            essay_id = self._insert_essay(request, author)
            self.db.add(EssayReply(from_id=essay_id, to_id=parent.id, reply_type=request.reply_type))
            self.db.flush()
        logger.info("User %s replied to essay %s with %s in %s", author.id, parent.id, essay_id, self.name)

        if parent_author_id != author.id:
            replier = self.db.get(User, author.id)
            self.notifications.send(
                NotificationCreate(
                    notif_type="reply",
                    title=replier.name if replier is not None else "",
                    text="replied to your essay",
                    action_url=f"/s/{self.name}/{essay_id}",
                ),
                parent_author_id,
            )
        return self._own_essay_handle(essay_id)

    def add_member(self, user: UserHandle) -> None:
        """Join the community as user. An existing membership row is reopened instead."""
        if not user.can_read:
            raise PermissionDenied()
        self.perms.require(Perm.READ_SUBDISCEPTO)
        membership.join(self.db, self._community(), user.id)

    def remove_member(self, user: UserHandle) -> None:
        if not user.can_read:
            raise PermissionDenied()
        self.perms.require(Perm.READ_SUBDISCEPTO)
        membership.leave(self.db, self._community(), user.id, self.perms)

    def list_reports(self) -> list[ReportView]:
        self.perms.require(Perm.VIEW_REPORT)
        rows = self.db.execute(
            select(Report, Essay.thesis)
            .join(Essay, Essay.id == Report.essay_id)
            .where(Essay.posted_in == self.name)
            .order_by(Report.id)
        ).all()
        return [
            ReportView(
                id=report.id,
                flag=report.flag,
                description=report.description,
                essay_id=report.essay_id,
                from_user_id=report.from_user_id,
                essay_thesis=thesis,
            )
            for report, thesis in rows
        ]

    def delete_report(self, report_id: int) -> None:
        self.perms.require(Perm.DELETE_REPORT)
        with transaction(self.db):
            in_community = select(Essay.id).where(Essay.posted_in == self.name)
            result = self.db.execute(
                delete(Report).where(Report.id == report_id, Report.essay_id.in_(in_community))
            )
            if result.rowcount == 0:
                raise NotFoundError(f"Report {report_id} not found in {self.name}")
        logger.info("Deleted report %s in %s", report_id, self.name)

