"""ORM models for essays, their tags, replies, votes and reports."""

from sqlalchemy import Column, DateTime, ForeignKey, Integer, String, Text, func

from app.models.base import Base


class Essay(Base):
    __tablename__ = "essays"

    id = Column(Integer, primary_key=True, autoincrement=True)
    thesis = Column(String(255), nullable=False)
    content = Column(Text, nullable=False)
    attributed_to_id = Column(
        Integer,
        ForeignKey("users.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    published = Column(
        DateTime(timezone=True),
        nullable=False,
        server_default=func.now(),
    )
    posted_in = Column(
        String(255),
        ForeignKey("subdisceptos.name", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )


class EssayTag(Base):
    __tablename__ = "essay_tags"

    essay_id = Column(
        Integer,
        ForeignKey("essays.id", ondelete="CASCADE"),
        primary_key=True,
    )
    tag = Column(String(64), primary_key=True)


class EssayReply(Base):
    """Links a reply essay (from_id) to the essay it answers (to_id)."""

    __tablename__ = "essay_replies"

    from_id = Column(
        Integer,
        ForeignKey("essays.id", ondelete="CASCADE"),
        primary_key=True,
    )
    to_id = Column(
        Integer,
        ForeignKey("essays.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    reply_type = Column(String(32), nullable=False, default="general")


class Vote(Base):
    __tablename__ = "votes"

    user_id = Column(
        Integer,
        ForeignKey("users.id", ondelete="CASCADE"),
        primary_key=True,
    )
    essay_id = Column(
        Integer,
        ForeignKey("essays.id", ondelete="CASCADE"),
        primary_key=True,
    )
    vote_type = Column(String(16), nullable=False)


class Report(Base):
    __tablename__ = "reports"

    id = Column(Integer, primary_key=True, autoincrement=True)
    flag = Column(String(32), nullable=False, default="offensive")
    description = Column(Text, nullable=False, default="")
    essay_id = Column(
        Integer,
        ForeignKey("essays.id", ondelete="CASCADE"),
        nullable=True,
    )
    from_user_id = Column(
        Integer,
        ForeignKey("users.id", ondelete="CASCADE"),
        nullable=False,
    )
