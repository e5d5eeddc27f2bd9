from fastapi import APIRouter, Depends, status
from sqlalchemy.ext.asyncio import AsyncSession

from localoco.core.database import get_db
from localoco.schemas.forum import (
    ForumPostCreate,
    ForumPostResponse,
    ForumReplyCreate,
    ForumReplyResponse,
)
from localoco.schemas.review import LikeCount, LikeToggle
from localoco.services.forum import forum_service

router = APIRouter()


@router.get("/posts", response_model=list[ForumPostResponse])
async def get_all_posts(db: AsyncSession = Depends(get_db)):
    """Get every forum post with its replies, newest post first."""
    return await forum_service.get_all_posts(db)


@router.get("/posts/business/{uen}", response_model=list[ForumPostResponse])
async def get_posts_by_business(uen: str, db: AsyncSession = Depends(get_db)):
    """Get the forum posts tagged to a business."""
    return await forum_service.get_posts_by_business(db, uen)


@router.post(
    "/posts", response_model=ForumPostResponse, status_code=status.HTTP_201_CREATED
)
async def create_post(post_data: ForumPostCreate, db: AsyncSession = Depends(get_db)):
    return await forum_service.create_post(db, post_data)


@router.post(
    "/replies", response_model=ForumReplyResponse, status_code=status.HTTP_201_CREATED
)
async def create_reply(reply_data: ForumReplyCreate, db: AsyncSession = Depends(get_db)):
    return await forum_service.create_reply(db, reply_data)


@router.put("/posts/{post_id}/like", response_model=LikeCount)
async def update_post_likes(
    post_id: int,
    toggle: LikeToggle,
    db: AsyncSession = Depends(get_db),
):
    return await forum_service.update_post_likes(db, post_id, toggle.clicked)


@router.put("/replies/{reply_id}/like", response_model=LikeCount)
async def update_reply_likes(
    reply_id: int,
    toggle: LikeToggle,
    db: AsyncSession = Depends(get_db),
):
    return await forum_service.update_reply_likes(db, reply_id, toggle.clicked)
