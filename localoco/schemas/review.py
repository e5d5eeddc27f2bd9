from datetime import datetime
from typing import Optional

from pydantic import BaseModel, EmailStr, Field


class ReviewCreate(BaseModel):
    """Schema for posting a review of a business."""

    email: EmailStr = Field(..., description="Author email")
    uen: str = Field(..., min_length=1, max_length=20)
    rating: int = Field(..., ge=1, le=5, description="Star rating (1-5)")
    body: str = Field(..., min_length=1)


class ReviewUpdate(BaseModel):
    rating: int = Field(..., ge=1, le=5)
    body: str = Field(..., min_length=1)


class ReviewResponse(BaseModel):
    """Review joined with its author's display data."""

    id: int
    email: str
    uen: str
    rating: int
    body: str
    like_count: int = 0
    created_at: Optional[datetime] = None
    user_name: Optional[str] = None
    user_image: Optional[str] = None

    model_config = {"from_attributes": True}


class LikeToggle(BaseModel):
    """Like (``clicked=true``) or unlike a review, post or reply."""

    clicked: bool = False


class LikeCount(BaseModel):
    id: int
    like_count: int
