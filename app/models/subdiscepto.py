"""ORM models for communities (subdisceptos) and their membership rows."""

from sqlalchemy import Boolean, Column, DateTime, ForeignKey, Integer, String, Text, func

from app.models.base import Base


class Subdiscepto(Base):
    """A named community with its own role domain."""

    __tablename__ = "subdisceptos"

    name = Column(String(255), primary_key=True)
    description = Column(Text, nullable=False, default="")
    min_length = Column(Integer, nullable=False, default=0)
    questions_required = Column(Boolean, nullable=False, default=False)
    nsfw = Column(Boolean, nullable=False, default=False)
    public = Column(Boolean, nullable=False, default=True)
    roledomain_id = Column(
        Integer,
        ForeignKey("roledomains.id", ondelete="CASCADE"),
        nullable=False,
        unique=True,
    )


class SubdisceptoUser(Base):
    """
    Membership of a user in a community.

    left_at is set when the user leaves; the row is reopened (left_at = NULL) on rejoin.
    """

    __tablename__ = "subdiscepto_users"

    subdiscepto = Column(
        String(255),
        ForeignKey("subdisceptos.name", ondelete="CASCADE"),
        primary_key=True,
    )
    user_id = Column(
        Integer,
        ForeignKey("users.id", ondelete="CASCADE"),
        primary_key=True,
    )
    joined_at = Column(
        DateTime(timezone=True),
        nullable=False,
        server_default=func.now(),
    )
    left_at = Column(DateTime(timezone=True), nullable=True)
