"""Schemas for notifications."""

from typing import Literal

from pydantic import BaseModel, Field

NotifType = Literal["reply", "upvote"]


class NotificationCreate(BaseModel):
    notif_type: NotifType
    title: str = Field(..., max_length=255)
    text: str = Field(..., max_length=1024)
    action_url: str = Field(default="", max_length=2048)


class NotificationView(NotificationCreate):
    id: int

    model_config = {"from_attributes": True}
