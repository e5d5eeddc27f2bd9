from datetime import datetime
from typing import Optional

from pydantic import BaseModel, Field, field_validator

from localoco.utils.validation import validate_url_format


class AnnouncementBase(BaseModel):
    title: str = Field(..., min_length=1, max_length=255)
    content: str = Field(..., min_length=1)
    image_url: str = Field("", max_length=500)

    @field_validator("image_url")
    @classmethod
    def validate_image_url(cls, v):
        if not validate_url_format(v):
            raise ValueError(f"Invalid URL: {v}")
        return v


class AnnouncementCreate(AnnouncementBase):
    """Schema for publishing a business announcement."""

    uen: str = Field(..., min_length=1, max_length=20)


class AnnouncementUpdate(AnnouncementBase):
    pass


class AnnouncementResponse(AnnouncementBase):
    announcement_id: int
    uen: str
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    model_config = {"from_attributes": True}
