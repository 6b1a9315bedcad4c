"""Essay handle and the essay read queries shared with the community handle."""

import logging

from sqlalchemy import case, delete, func, select
from sqlalchemy.orm import Session

from app.core.database import transaction
from app.core.errors import AlreadyExistsError, NotFoundError, PermissionDenied
from app.models import Essay, EssayReply, EssayTag, Report, User, Vote
from app.schemas.essay import (
    EssayCapabilities,
    EssayView,
    ReportRequest,
    VoteCount,
    VoteType,
)
from app.schemas.notification import NotificationCreate
from app.services.notifications import NotificationService

logger = logging.getLogger(__name__)


def _essay_view_stmt(newest_first: bool = False):
    upvotes = func.coalesce(func.sum(case((Vote.vote_type == "upvote", 1), else_=0)), 0)
    downvotes = func.coalesce(func.sum(case((Vote.vote_type == "downvote", 1), else_=0)), 0)
    return (
        select(
            Essay,
            User.name,
            EssayReply.to_id,
            EssayReply.reply_type,
            upvotes.label("upvotes"),
            downvotes.label("downvotes"),
        )
        .outerjoin(EssayReply, EssayReply.from_id == Essay.id)
        .outerjoin(Vote, Vote.essay_id == Essay.id)
        .outerjoin(User, User.id == Essay.attributed_to_id)
        .group_by(Essay.id, User.name, EssayReply.to_id, EssayReply.reply_type)
        .order_by(Essay.id.desc() if newest_first else Essay.id)
    )


def _tags_by_essay(db: Session, essay_ids: list[int]) -> dict[int, list[str]]:
    tags: dict[int, list[str]] = {i: [] for i in essay_ids}
    if not essay_ids:
        return tags
    stmt = (
        select(EssayTag.essay_id, EssayTag.tag)
        .where(EssayTag.essay_id.in_(essay_ids))
        .order_by(EssayTag.essay_id, EssayTag.tag)
    )
    for essay_id, tag in db.execute(stmt):
        tags[essay_id].append(tag)
    return tags


def query_essay_views(db: Session, *where, newest_first: bool = False) -> list[EssayView]:
    """Essays matching the given criteria with author name, reply link, tags and vote counts."""
    rows = db.execute(_essay_view_stmt(newest_first).where(*where)).all()
    tags = _tags_by_essay(db, [row[0].id for row in rows])
    return [
        EssayView(
            id=essay.id,
            thesis=essay.thesis,
            content=essay.content,
            attributed_to_id=essay.attributed_to_id,
            attributed_to_name=author_name,
            published=essay.published,
            posted_in=essay.posted_in,
            upvotes=up,
            downvotes=down,
            tags=tags[essay.id],
            in_reply_to=to_id,
            reply_type=reply_type,
        )
        for essay, author_name, to_id, reply_type, up, down in rows
    ]


class EssayHandle:
    """
    Capability bundle for one essay. Capabilities are computed by the community
    handle from its effective permissions; the author always may read and delete.
    """

    def __init__(
        self,
        db: Session,
        essay_id: int,
        caps: EssayCapabilities,
        notifications: NotificationService | None = None,
    ) -> None:
        self.db = db
        self.id = essay_id
        self.caps = caps
        self.notifications = notifications or NotificationService(db)

    @property
    def perms(self) -> EssayCapabilities:
        return self.caps

    def read_view(self) -> EssayView:
        if not self.caps.read:
            raise PermissionDenied()
        views = query_essay_views(self.db, Essay.id == self.id)
        if not views:
            raise NotFoundError(f"Essay {self.id} not found")
        return views[0]

    def delete(self) -> None:
        if not self.caps.delete_essay:
            raise PermissionDenied()
        with transaction(self.db):
            result = self.db.execute(delete(Essay).where(Essay.id == self.id))
            if result.rowcount == 0:
                raise NotFoundError(f"Essay {self.id} not found")
        logger.info("Deleted essay %s", self.id)

    def count_votes(self) -> VoteCount:
        if not self.caps.read:
            raise PermissionDenied()
        view = self.read_view()
        return VoteCount(upvotes=view.upvotes, downvotes=view.downvotes)

    def user_vote(self, user_id: int) -> str | None:
        """The vote type the user cast on this essay, if any."""
        vote = self.db.get(Vote, (user_id, self.id))
        return vote.vote_type if vote is not None else None

    def create_vote(self, user_id: int, vote_type: VoteType) -> None:
        """Cast a vote; upvoting someone else's essay notifies its author."""
        if not (self.caps.read and self.caps.create_vote):
            raise PermissionDenied()
        with transaction(self.db):
            if self.db.get(Vote, (user_id, self.id)) is not None:
                raise AlreadyExistsError("Vote already cast")
            self.db.add(Vote(user_id=user_id, essay_id=self.id, vote_type=vote_type))
            self.db.flush()
            if vote_type == "upvote":
                essay = self.read_view()
                if essay.attributed_to_id != user_id:
                    voter = self.db.get(User, user_id)
                    self.notifications.send(
                        NotificationCreate(
                            notif_type="upvote",
                            title=voter.name if voter is not None else "",
                            text="Upvoted your essay",
                            action_url=f"/s/{essay.posted_in}/{essay.id}",
                        ),
                        essay.attributed_to_id,
                    )

    def delete_vote(self, user_id: int) -> None:
        if not (self.caps.read and self.caps.delete_vote):
            raise PermissionDenied()
        with transaction(self.db):
            self.db.execute(
                delete(Vote).where(Vote.user_id == user_id, Vote.essay_id == self.id)
            )

    def create_report(self, user_id: int, request: ReportRequest) -> int:
        if not (self.caps.read and self.caps.create_report):
            raise PermissionDenied()
        with transaction(self.db):
            report = Report(
                flag=request.flag,
                description=request.description,
                essay_id=self.id,
                from_user_id=user_id,
            )
            self.db.add(report)
            self.db.flush()
            report_id = report.id
        logger.info("User %s reported essay %s (%s)", user_id, self.id, request.flag)
        return report_id

    def __repr__(self) -> str:
        return f"EssayHandle(id={self.id!r}, caps={self.caps!r})"
