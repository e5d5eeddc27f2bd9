from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from localoco.core.database import get_db
from localoco.schemas.bookmark import BookmarkResponse, BookmarkState, BookmarkToggle
from localoco.services.bookmark import bookmark_service

router = APIRouter()


@router.get("/{user_id}", response_model=list[BookmarkResponse])
async def get_user_bookmarks(user_id: str, db: AsyncSession = Depends(get_db)):
    """Get a user's bookmarked businesses."""
    return await bookmark_service.get_user_bookmarks(db, user_id)


@router.put("/", response_model=BookmarkState)
async def update_bookmark(toggle: BookmarkToggle, db: AsyncSession = Depends(get_db)):
    """Bookmark (``clicked=true``) or un-bookmark a business."""
    bookmarked = await bookmark_service.update_bookmark(db, toggle)
    return BookmarkState(user_id=toggle.user_id, uen=toggle.uen, bookmarked=bookmarked)
