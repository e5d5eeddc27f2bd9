import structlog
from sqlalchemy import delete, select
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from localoco.core.errors import (
    BusinessRuleError,
    LocalocoError,
    NotFoundError,
    StoreError,
)
from localoco.models.bookmark import BookmarkedBusiness
from localoco.models.business import Business
from localoco.models.user import User
from localoco.schemas.bookmark import BookmarkResponse, BookmarkToggle
from localoco.utils.db import ensure_rows_affected


class BookmarkService:
    """Service layer for users' saved businesses."""

    def __init__(self, logger=None):
        self.logger = logger or structlog.get_logger(__name__)

    async def get_user_bookmarks(
        self, db: AsyncSession, user_id: str
    ) -> list[BookmarkResponse]:
        result = await db.execute(
            select(BookmarkedBusiness)
            .where(BookmarkedBusiness.user_id == user_id)
            .order_by(BookmarkedBusiness.uen)
        )
        return [BookmarkResponse.model_validate(b) for b in result.scalars().all()]

    async def update_bookmark(self, db: AsyncSession, toggle: BookmarkToggle) -> bool:
        """Add the bookmark when ``clicked`` is true, remove it otherwise.

        Returns whether the business is bookmarked afterwards.
        """
        if toggle.clicked:
            await self._add_bookmark(db, toggle.user_id, toggle.uen)
        else:
            await self._remove_bookmark(db, toggle.user_id, toggle.uen)

        self.logger.info(
            "Bookmark updated",
            user_id=toggle.user_id,
            uen=toggle.uen,
            bookmarked=toggle.clicked,
        )
        return toggle.clicked

    async def _add_bookmark(self, db: AsyncSession, user_id: str, uen: str) -> None:
        user = await db.execute(select(User.id).where(User.id == user_id))
        if user.scalar_one_or_none() is None:
            raise NotFoundError(f"User {user_id} not found")
        business = await db.execute(select(Business.uen).where(Business.uen == uen))
        if business.scalar_one_or_none() is None:
            raise NotFoundError(f"Business {uen} not found")

        try:
            db.add(BookmarkedBusiness(user_id=user_id, uen=uen))
            await db.commit()
        except IntegrityError as e:
            await db.rollback()
            self.logger.warning(
                "Duplicate bookmark rejected", user_id=user_id, uen=uen, error=str(e)
            )
            raise BusinessRuleError(f"Business {uen} is already bookmarked")
        except SQLAlchemyError as e:
            await db.rollback()
            self.logger.error("Failed to add bookmark", user_id=user_id, uen=uen, error=str(e))
            raise StoreError("Failed to add bookmark") from e

    async def _remove_bookmark(self, db: AsyncSession, user_id: str, uen: str) -> None:
        try:
            result = await db.execute(
                delete(BookmarkedBusiness).where(
                    BookmarkedBusiness.user_id == user_id,
                    BookmarkedBusiness.uen == uen,
                )
            )
            ensure_rows_affected(
                result, f"Business {uen} is not bookmarked", NotFoundError
            )
            await db.commit()
        except LocalocoError:
            await db.rollback()
            raise
        except SQLAlchemyError as e:
            await db.rollback()
            self.logger.error(
                "Failed to remove bookmark", user_id=user_id, uen=uen, error=str(e)
            )
            raise StoreError("Failed to remove bookmark") from e


bookmark_service = BookmarkService()
