"""Schemas describing users."""

from datetime import datetime

from pydantic import BaseModel


class UserView(BaseModel):
    """Public view of a user."""

    id: int
    name: str
    created_at: datetime | None = None

    model_config = {"from_attributes": True}


class UserDetail(UserView):
    """Private view of a user, returned only to the user themself."""

    email: str


class MemberView(BaseModel):
    """A user listed as member of a scope, with the names of their roles there."""

    user_id: int
    name: str
    left_at: datetime | None = None
    roles: list[str] = []
