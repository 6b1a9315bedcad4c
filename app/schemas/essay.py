"""Schemas for essays, votes and reports."""

from datetime import datetime
from typing import Literal

from pydantic import BaseModel, Field

ReplyType = Literal["general", "supports", "refutes", "corrects"]
VoteType = Literal["upvote", "downvote"]
FlagType = Literal["offensive", "fake", "spam", "inaccurate"]


class EssayRequest(BaseModel):
    """
    New essay. Content length and tag count are validated by the core against
    the community's limits.
    """

    thesis: str = Field(..., min_length=1, max_length=255)
    content: str
    tags: list[str] = Field(default_factory=list)
    reply_type: ReplyType = "general"


class EssayView(BaseModel):
    id: int
    thesis: str
    content: str
    attributed_to_id: int
    attributed_to_name: str | None = None
    published: datetime | None = None
    posted_in: str
    upvotes: int = 0
    downvotes: int = 0
    tags: list[str] = []
    in_reply_to: int | None = None
    reply_type: str | None = None


class EssayCapabilities(BaseModel):
    """What the holder of an essay handle may do with that essay."""

    model_config = {"frozen": True}

    read: bool = False
    delete_essay: bool = False
    change_ranking: bool = False
    create_vote: bool = False
    delete_vote: bool = False
    create_report: bool = False


class VoteRequest(BaseModel):
    vote_type: VoteType


class VoteCount(BaseModel):
    upvotes: int = 0
    downvotes: int = 0


class ReportRequest(BaseModel):
    flag: FlagType = "offensive"
    description: str = Field(default="", max_length=2_000)


class ReportView(BaseModel):
    id: int
    flag: str
    description: str
    essay_id: int | None = None
    from_user_id: int
    essay_thesis: str | None = None
