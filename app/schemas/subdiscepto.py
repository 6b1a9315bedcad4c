"""Schemas for communities (subdisceptos)."""

from pydantic import BaseModel, Field


class SubdisceptoRequest(BaseModel):
    """Creation request. The name must match ^\\w+$; the core validates it."""

    name: str = Field(..., min_length=1, max_length=255)
    description: str = Field(default="", max_length=10_000)
    min_length: int = Field(default=0, ge=0, description="Minimum essay content length")
    questions_required: bool = False
    nsfw: bool = False
    public: bool = True


class SubdisceptoUpdate(BaseModel):
    description: str = Field(default="", max_length=10_000)
    min_length: int = Field(default=0, ge=0)
    questions_required: bool = False
    nsfw: bool = False
    public: bool = True


class SubdisceptoView(BaseModel):
    name: str
    description: str
    members_count: int = 0
    is_member: bool = False
