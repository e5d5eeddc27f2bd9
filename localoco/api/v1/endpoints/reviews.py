from fastapi import APIRouter, Depends, status
from sqlalchemy.ext.asyncio import AsyncSession

from localoco.core.database import get_db
from localoco.schemas.review import (
    LikeCount,
    LikeToggle,
    ReviewCreate,
    ReviewResponse,
    ReviewUpdate,
)
from localoco.services.review import review_service

router = APIRouter()


@router.get("/business/{uen}", response_model=list[ReviewResponse])
async def get_business_reviews(uen: str, db: AsyncSession = Depends(get_db)):
    """Get the reviews of a business."""
    return await review_service.get_business_reviews(db, uen)


@router.post("/", response_model=ReviewResponse, status_code=status.HTTP_201_CREATED)
async def create_review(review_data: ReviewCreate, db: AsyncSession = Depends(get_db)):
    """Review a business."""
    return await review_service.create_review(db, review_data)


@router.put("/{review_id}", response_model=ReviewResponse)
async def update_review(
    review_id: int,
    review_update: ReviewUpdate,
    db: AsyncSession = Depends(get_db),
):
    return await review_service.update_review(db, review_id, review_update)


@router.delete("/{review_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_review(review_id: int, db: AsyncSession = Depends(get_db)):
    await review_service.delete_review(db, review_id)


@router.put("/{review_id}/like", response_model=LikeCount)
async def update_review_likes(
    review_id: int,
    toggle: LikeToggle,
    db: AsyncSession = Depends(get_db),
):
    """Like or unlike a review."""
    return await review_service.update_review_likes(db, review_id, toggle.clicked)
