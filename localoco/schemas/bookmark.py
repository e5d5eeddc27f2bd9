from pydantic import BaseModel, Field


class BookmarkToggle(BaseModel):
    """Save (``clicked=true``) or remove a bookmarked business."""

    clicked: bool
    user_id: str = Field(..., min_length=1, max_length=36)
    uen: str = Field(..., min_length=1, max_length=20)


class BookmarkResponse(BaseModel):
    user_id: str
    uen: str

    model_config = {"from_attributes": True}


class BookmarkState(BaseModel):
    user_id: str
    uen: str
    bookmarked: bool
