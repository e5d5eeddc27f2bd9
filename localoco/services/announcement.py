import structlog
from sqlalchemy import delete, select, update
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from localoco.core.errors import LocalocoError, NotFoundError, StoreError
from localoco.models.announcement import BusinessAnnouncement
from localoco.models.business import Business
from localoco.schemas.announcement import (
    AnnouncementCreate,
    AnnouncementResponse,
    AnnouncementUpdate,
)
from localoco.utils.db import ensure_rows_affected


class AnnouncementService:
    """Service layer for business announcements."""

    def __init__(self, logger=None):
        self.logger = logger or structlog.get_logger(__name__)

    async def create_announcement(
        self, db: AsyncSession, announcement_data: AnnouncementCreate
    ) -> AnnouncementResponse:
        business = await db.execute(
            select(Business.uen).where(Business.uen == announcement_data.uen)
        )
        if business.scalar_one_or_none() is None:
            raise NotFoundError(f"Business {announcement_data.uen} not found")

        try:
            announcement = BusinessAnnouncement(**announcement_data.model_dump())
            db.add(announcement)
            await db.commit()
            await db.refresh(announcement)
        except SQLAlchemyError as e:
            await db.rollback()
            self.logger.error(
                "Failed to create announcement", uen=announcement_data.uen, error=str(e)
            )
            raise StoreError("Failed to create announcement") from e

        self.logger.info(
            "Announcement created",
            announcement_id=announcement.announcement_id,
            uen=announcement.uen,
        )
        return AnnouncementResponse.model_validate(announcement)

    async def get_all_announcements(self, db: AsyncSession) -> list[AnnouncementResponse]:
        result = await db.execute(
            select(BusinessAnnouncement).order_by(
                BusinessAnnouncement.created_at.desc(),
                BusinessAnnouncement.announcement_id.desc(),
            )
        )
        return [AnnouncementResponse.model_validate(a) for a in result.scalars().all()]

    async def get_announcements_by_uen(
        self, db: AsyncSession, uen: str
    ) -> list[AnnouncementResponse]:
        result = await db.execute(
            select(BusinessAnnouncement)
            .where(BusinessAnnouncement.uen == uen)
            .order_by(
                BusinessAnnouncement.created_at.desc(),
                BusinessAnnouncement.announcement_id.desc(),
            )
        )
        return [AnnouncementResponse.model_validate(a) for a in result.scalars().all()]

    async def update_announcement(
        self,
        db: AsyncSession,
        announcement_id: int,
        announcement_update: AnnouncementUpdate,
    ) -> AnnouncementResponse:
        try:
            result = await db.execute(
                update(BusinessAnnouncement)
                .where(BusinessAnnouncement.announcement_id == announcement_id)
                .values(**announcement_update.model_dump())
            )
            ensure_rows_affected(
                result, f"Announcement {announcement_id} not found", NotFoundError
            )
            await db.commit()
        except LocalocoError:
            await db.rollback()
            raise
        except SQLAlchemyError as e:
            await db.rollback()
            self.logger.error(
                "Failed to update announcement",
                announcement_id=announcement_id,
                error=str(e),
            )
            raise StoreError(f"Failed to update announcement {announcement_id}") from e

        self.logger.info("Announcement updated", announcement_id=announcement_id)

        result = await db.execute(
            select(BusinessAnnouncement)
            .where(BusinessAnnouncement.announcement_id == announcement_id)
            .execution_options(populate_existing=True)
        )
        return AnnouncementResponse.model_validate(result.scalar_one())

    async def delete_announcement(self, db: AsyncSession, announcement_id: int) -> None:
        try:
            result = await db.execute(
                delete(BusinessAnnouncement).where(
                    BusinessAnnouncement.announcement_id == announcement_id
                )
            )
            ensure_rows_affected(
                result, f"Announcement {announcement_id} not found", NotFoundError
            )
            await db.commit()
        except LocalocoError:
            await db.rollback()
            raise
        except SQLAlchemyError as e:
            await db.rollback()
            self.logger.error(
                "Failed to delete announcement",
                announcement_id=announcement_id,
                error=str(e),
            )
            raise StoreError(f"Failed to delete announcement {announcement_id}") from e

        self.logger.info("Announcement deleted", announcement_id=announcement_id)


announcement_service = AnnouncementService()
