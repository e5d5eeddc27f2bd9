from fastapi import APIRouter, Depends, status
from sqlalchemy.ext.asyncio import AsyncSession

from localoco.core.database import get_db
from localoco.schemas.announcement import (
    AnnouncementCreate,
    AnnouncementResponse,
    AnnouncementUpdate,
)
from localoco.services.announcement import announcement_service

router = APIRouter()


@router.get("/", response_model=list[AnnouncementResponse])
async def get_all_announcements(db: AsyncSession = Depends(get_db)):
    """Get every announcement, newest first."""
    return await announcement_service.get_all_announcements(db)


@router.get("/business/{uen}", response_model=list[AnnouncementResponse])
async def get_announcements_by_uen(uen: str, db: AsyncSession = Depends(get_db)):
    return await announcement_service.get_announcements_by_uen(db, uen)


@router.post(
    "/", response_model=AnnouncementResponse, status_code=status.HTTP_201_CREATED
)
async def create_announcement(
    announcement_data: AnnouncementCreate,
    db: AsyncSession = Depends(get_db),
):
    """Publish an announcement for a business."""
    return await announcement_service.create_announcement(db, announcement_data)


@router.put("/{announcement_id}", response_model=AnnouncementResponse)
async def update_announcement(
    announcement_id: int,
    announcement_update: AnnouncementUpdate,
    db: AsyncSession = Depends(get_db),
):
    return await announcement_service.update_announcement(
        db, announcement_id, announcement_update
    )


@router.delete("/{announcement_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_announcement(announcement_id: int, db: AsyncSession = Depends(get_db)):
    await announcement_service.delete_announcement(db, announcement_id)
