from datetime import datetime
from typing import Optional

from pydantic import BaseModel, EmailStr, Field, field_validator


class ForumPostCreate(BaseModel):
    """Schema for opening a forum thread."""

    email: EmailStr
    uen: Optional[str] = Field(
        None, max_length=20, description="Business the post is about, if any"
    )
    title: Optional[str] = Field(None, max_length=255)
    body: str = Field(..., min_length=1)

    @field_validator("uen", "title")
    @classmethod
    def blank_to_none(cls, v):
        if v is not None and not v.strip():
            return None
        return v


class ForumReplyCreate(BaseModel):
    post_id: int = Field(..., gt=0)
    email: EmailStr
    body: str = Field(..., min_length=1)


class ForumReplyResponse(BaseModel):
    id: int
    post_id: int
    email: str
    image: Optional[str] = None
    body: str
    like_count: int = 0
    created_at: Optional[datetime] = None

    model_config = {"from_attributes": True}


class ForumPostResponse(BaseModel):
    """Forum post with its replies (oldest first) and author/business details."""

    id: int
    email: str
    image: Optional[str] = None
    uen: Optional[str] = None
    business_name: Optional[str] = None
    title: Optional[str] = None
    body: str
    like_count: int = 0
    created_at: Optional[datetime] = None
    replies: list[ForumReplyResponse] = Field(default_factory=list)
