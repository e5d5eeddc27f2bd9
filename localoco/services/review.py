import structlog
from sqlalchemy import delete, select, update
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from localoco.core.errors import (
    BusinessRuleError,
    LocalocoError,
    NotFoundError,
    StoreError,
)
from localoco.models.business import Business
from localoco.models.review import BusinessReview
from localoco.models.user import User
from localoco.schemas.review import LikeCount, ReviewCreate, ReviewResponse, ReviewUpdate
from localoco.utils.db import ensure_rows_affected
from localoco.utils.likes import apply_like


def _reviews_with_authors():
    return select(BusinessReview, User.name, User.image_url).outerjoin(
        User, User.email == BusinessReview.email
    )


def _to_response(review: BusinessReview, user_name, user_image) -> ReviewResponse:
    return ReviewResponse.model_validate(review).model_copy(
        update={"user_name": user_name, "user_image": user_image}
    )


class ReviewService:
    """Service layer for business reviews."""

    def __init__(self, logger=None):
        self.logger = logger or structlog.get_logger(__name__)

    async def create_review(
        self, db: AsyncSession, review_data: ReviewCreate
    ) -> ReviewResponse:
        business = await db.execute(
            select(Business.uen).where(Business.uen == review_data.uen)
        )
        if business.scalar_one_or_none() is None:
            raise NotFoundError(f"Business {review_data.uen} not found")

        author = await db.execute(
            select(User.name, User.image_url).where(User.email == review_data.email)
        )
        author_row = author.first()
        if author_row is None:
            raise NotFoundError(f"User {review_data.email} not found")

        try:
            review = BusinessReview(**review_data.model_dump(), like_count=0)
            db.add(review)
            await db.commit()
            await db.refresh(review)
        except IntegrityError as e:
            await db.rollback()
            self.logger.error(
                "Failed to create review due to integrity constraint",
                uen=review_data.uen,
                error=str(e),
            )
            raise BusinessRuleError("Review could not be stored")
        except SQLAlchemyError as e:
            await db.rollback()
            self.logger.error("Failed to create review", uen=review_data.uen, error=str(e))
            raise StoreError("Failed to create review") from e

        self.logger.info(
            "Review created", review_id=review.id, uen=review.uen, rating=review.rating
        )
        return _to_response(review, author_row.name, author_row.image_url)

    async def get_business_reviews(
        self, db: AsyncSession, uen: str
    ) -> list[ReviewResponse]:
        """Reviews of a business with author name and image, newest first."""
        result = await db.execute(
            _reviews_with_authors()
            .where(BusinessReview.uen == uen)
            .order_by(BusinessReview.created_at.desc(), BusinessReview.id.desc())
        )
        return [_to_response(*row) for row in result.all()]

    async def update_review(
        self, db: AsyncSession, review_id: int, review_update: ReviewUpdate
    ) -> ReviewResponse:
        try:
            result = await db.execute(
                update(BusinessReview)
                .where(BusinessReview.id == review_id)
                .values(**review_update.model_dump())
            )
            ensure_rows_affected(result, f"Review {review_id} not found", NotFoundError)
            await db.commit()
        except LocalocoError:
            await db.rollback()
            raise
        except SQLAlchemyError as e:
            await db.rollback()
            self.logger.error("Failed to update review", review_id=review_id, error=str(e))
            raise StoreError("Failed to update review") from e

        self.logger.info("Review updated", review_id=review_id)

        result = await db.execute(
            _reviews_with_authors()
            .where(BusinessReview.id == review_id)
            .execution_options(populate_existing=True)
        )
        return _to_response(*result.one())

    async def delete_review(self, db: AsyncSession, review_id: int) -> None:
        try:
            result = await db.execute(
                delete(BusinessReview).where(BusinessReview.id == review_id)
            )
            ensure_rows_affected(result, f"Review {review_id} not found", NotFoundError)
            await db.commit()
        except LocalocoError:
            await db.rollback()
            raise
        except SQLAlchemyError as e:
            await db.rollback()
            self.logger.error("Failed to delete review", review_id=review_id, error=str(e))
            raise StoreError("Failed to delete review") from e

        self.logger.info("Review deleted", review_id=review_id)

    async def update_review_likes(
        self, db: AsyncSession, review_id: int, clicked: bool
    ) -> LikeCount:
        like_count = await apply_like(db, BusinessReview, review_id, clicked)
        if like_count is None:
            raise NotFoundError(f"Review {review_id} not found")

        self.logger.info(
            "Review likes updated", review_id=review_id, clicked=clicked, like_count=like_count
        )
        return LikeCount(id=review_id, like_count=like_count)


review_service = ReviewService()
