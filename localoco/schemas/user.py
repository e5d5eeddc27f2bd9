from datetime import datetime
from enum import Enum
from typing import Optional

from pydantic import BaseModel, EmailStr, Field, field_validator

from localoco.schemas.review import ReviewResponse
from localoco.utils.validation import validate_url_format


class VoucherStatus(str, Enum):
    ISSUED = "issued"
    USED = "used"
    EXPIRED = "expired"
    REVOKED = "revoked"


class UserUpdate(BaseModel):
    """Schema for editing a user profile."""

    name: str = Field(..., min_length=1)
    email: EmailStr
    image_url: str = ""
    bio: str = ""
    has_business: bool = False

    @field_validator("image_url")
    @classmethod
    def validate_image_url(cls, v):
        if not validate_url_format(v):
            raise ValueError(f"Invalid URL: {v}")
        return v


class UserResponse(BaseModel):
    id: str
    name: str
    email: str
    image_url: str = ""
    bio: str = ""
    has_business: bool = False
    referral_code: str
    referred_by_user_id: Optional[str] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    model_config = {"from_attributes": True}


class VoucherResponse(BaseModel):
    voucher_id: int
    user_id: str
    ref_id: Optional[int] = None
    amount: int
    status: VoucherStatus
    issued_at: Optional[datetime] = None
    expires_at: datetime
    referral_code: Optional[str] = None

    model_config = {"from_attributes": True}


class VoucherPage(BaseModel):
    vouchers: list[VoucherResponse]
    total: int
    page: int
    page_size: int
    total_pages: int


class UserProfileResponse(BaseModel):
    """Profile page payload: the user plus rewards and activity."""

    profile: UserResponse
    vouchers: list[VoucherResponse] = Field(default_factory=list)
    points: int = 0
    reviews: list[ReviewResponse] = Field(default_factory=list)
    successful_referrals: int = 0


class ReferralRequest(BaseModel):
    referral_code: str = Field(..., min_length=1, max_length=10)
    referred_id: str = Field(..., min_length=1, max_length=36)


class ReferralResponse(BaseModel):
    """Outcome of a redeemed referral code."""

    ref_id: int
    referrer_id: str
    referred_id: str
    referral_code: str
    status: str
    referred_at: Optional[datetime] = None
    vouchers: list[VoucherResponse] = Field(default_factory=list)


class EmailAvailability(BaseModel):
    email: str
    available: bool
