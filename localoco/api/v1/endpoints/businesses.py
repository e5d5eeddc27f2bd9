from typing import Optional

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from localoco.core.database import get_db
from localoco.core.errors import NotFoundError
from localoco.schemas.business import (
    BusinessCreate,
    BusinessFilter,
    BusinessNameMatch,
    BusinessResponse,
    BusinessUpdate,
    UenAvailability,
)
from localoco.services.business import business_service

router = APIRouter()


@router.get("/", response_model=list[BusinessResponse])
async def get_all_businesses(db: AsyncSession = Depends(get_db)):
    """Get every business in the directory, newest first."""
    return await business_service.get_all_businesses(db)


@router.post("/filter", response_model=list[BusinessResponse])
async def get_filtered_businesses(
    filters: BusinessFilter,
    db: AsyncSession = Depends(get_db),
):
    """Filter and sort the directory."""
    return await business_service.get_filtered_businesses(db, filters)


@router.get("/search", response_model=Optional[BusinessNameMatch])
async def search_business_by_name(
    name: str = Query(..., min_length=1, description="Free-text business name"),
    db: AsyncSession = Depends(get_db),
):
    """Resolve a business name to its UEN. Returns null when nothing matches."""
    return await business_service.search_business_by_name(db, name)


@router.get("/check-uen", response_model=UenAvailability)
async def check_uen_availability(
    uen: str = Query(..., min_length=1, max_length=20),
    db: AsyncSession = Depends(get_db),
):
    """Check whether a UEN is still free to register."""
    exists = await business_service.check_uen_exists(db, uen)
    return UenAvailability(uen=uen, available=not exists)


@router.get("/owned/{owner_id}", response_model=list[BusinessResponse])
async def get_owned_businesses(owner_id: str, db: AsyncSession = Depends(get_db)):
    """Get the businesses owned by a user."""
    return await business_service.get_owned_businesses(db, owner_id)


@router.get("/{uen}", response_model=BusinessResponse)
async def get_business(uen: str, db: AsyncSession = Depends(get_db)):
    """Get a business by UEN."""
    business = await business_service.get_business_by_uen(db, uen)
    if not business:
        raise NotFoundError(f"Business {uen} not found")
    return business


@router.post("/", response_model=BusinessResponse, status_code=status.HTTP_201_CREATED)
async def register_business(
    business_data: BusinessCreate,
    db: AsyncSession = Depends(get_db),
):
    """Register a new business."""
    return await business_service.register_business(db, business_data)


@router.put("/{uen}", response_model=BusinessResponse)
async def update_business(
    uen: str,
    business_update: BusinessUpdate,
    db: AsyncSession = Depends(get_db),
):
    """Update a business. Payment options and opening hours are replaced, not merged."""
    return await business_service.update_business(db, uen, business_update)


@router.delete("/{uen}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_business(uen: str, db: AsyncSession = Depends(get_db)):
    """Delete a business and everything attached to it."""
    await business_service.delete_business(db, uen)
