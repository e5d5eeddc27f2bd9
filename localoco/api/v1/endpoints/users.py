from typing import Optional

from fastapi import APIRouter, Depends, Query, status
from pydantic import EmailStr
from sqlalchemy.ext.asyncio import AsyncSession

from localoco.core.database import get_db
from localoco.schemas.user import (
    EmailAvailability,
    ReferralRequest,
    ReferralResponse,
    UserProfileResponse,
    UserResponse,
    UserUpdate,
    VoucherPage,
    VoucherResponse,
    VoucherStatus,
)
from localoco.services.user import user_service

router = APIRouter()


@router.get("/check-email", response_model=EmailAvailability)
async def check_email_availability(
    email: EmailStr = Query(...),
    db: AsyncSession = Depends(get_db),
):
    """Check whether an email address is still free to sign up with."""
    exists = await user_service.check_email_exists(db, email)
    return EmailAvailability(email=email, available=not exists)


@router.post(
    "/referral", response_model=ReferralResponse, status_code=status.HTTP_201_CREATED
)
async def handle_referral(
    referral: ReferralRequest,
    db: AsyncSession = Depends(get_db),
):
    """Redeem a referral code; both users receive a voucher."""
    return await user_service.handle_referral(
        db, referral.referral_code, referral.referred_id
    )


@router.put("/vouchers/{voucher_id}/use", response_model=VoucherResponse)
async def use_voucher(voucher_id: int, db: AsyncSession = Depends(get_db)):
    """Mark an issued voucher as used."""
    return await user_service.use_voucher(db, voucher_id)


@router.get("/{user_id}", response_model=UserProfileResponse)
async def get_profile(user_id: str, db: AsyncSession = Depends(get_db)):
    """Get a user's profile with vouchers, points and reviews."""
    return await user_service.get_user_by_id(db, user_id)


@router.put("/{user_id}", response_model=UserResponse)
async def update_profile(
    user_id: str,
    profile: UserUpdate,
    db: AsyncSession = Depends(get_db),
):
    """Update a user's profile."""
    return await user_service.update_profile(db, user_id, profile)


@router.delete("/{user_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_profile(user_id: str, db: AsyncSession = Depends(get_db)):
    """Delete a user's profile."""
    await user_service.delete_profile(db, user_id)


@router.get("/{user_id}/vouchers", response_model=VoucherPage)
async def get_user_vouchers(
    user_id: str,
    status: Optional[VoucherStatus] = Query(None, description="Filter by voucher status"),
    page: int = Query(1, ge=1),
    limit: int = Query(100, ge=1, le=1000, description="Vouchers per page"),
    db: AsyncSession = Depends(get_db),
):
    """Get a user's vouchers with pagination."""
    return await user_service.get_user_vouchers(
        db,
        user_id,
        status=status.value if status else None,
        page=page,
        limit=limit,
    )
