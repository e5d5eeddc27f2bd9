from datetime import datetime
from decimal import Decimal
from enum import Enum
from typing import Literal, Optional, Union

from pydantic import BaseModel, EmailStr, Field, field_validator

from localoco.utils.validation import (
    validate_phone_number,
    validate_time_of_day,
    validate_url_format,
)


class PriceTier(str, Enum):
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"


class PaymentOption(str, Enum):
    CASH = "cash"
    CARD = "card"
    PAYNOW = "paynow"
    DIGITAL_WALLETS = "digital_wallets"


class DayOfWeek(str, Enum):
    MONDAY = "Monday"
    TUESDAY = "Tuesday"
    WEDNESDAY = "Wednesday"
    THURSDAY = "Thursday"
    FRIDAY = "Friday"
    SATURDAY = "Saturday"
    SUNDAY = "Sunday"


class SortField(str, Enum):
    BUSINESS_NAME = "business_name"
    PRICE_TIER = "price_tier"
    DATE_OF_CREATION = "date_of_creation"


def _check_url(value: Optional[str]) -> Optional[str]:
    if value is not None and not validate_url_format(value):
        raise ValueError(f"Invalid URL: {value}")
    return value


class HourEntry(BaseModel):
    """Opening window of a single weekday."""

    open: str = Field(..., description="Opening time (HH:MM)")
    close: str = Field(..., description="Closing time (HH:MM)")

    @field_validator("open", "close")
    @classmethod
    def validate_clock_time(cls, v):
        if not validate_time_of_day(v):
            raise ValueError("Invalid time format (HH:MM)")
        return v


class BusinessBase(BaseModel):
    """Base business schema with common fields."""

    business_name: str = Field(..., min_length=1, max_length=255)
    business_category: str = Field(..., min_length=1, max_length=100)
    description: str = Field(..., min_length=1)
    address: str = Field(..., min_length=1, max_length=500)
    latitude: Decimal = Field(..., ge=-90, le=90, decimal_places=6)
    longitude: Decimal = Field(..., ge=-180, le=180, decimal_places=6)
    open247: bool = Field(False, description="Open around the clock")
    opening_hours: Optional[dict[DayOfWeek, HourEntry]] = Field(
        None, description="Weekly schedule; missing weekdays are closed"
    )
    email: Optional[EmailStr] = None
    phone_number: Optional[str] = Field(None, min_length=8, max_length=20)
    website_url: Optional[str] = Field(None, max_length=255)
    social_media_url: Optional[str] = Field(None, max_length=255)
    wallpaper_url: str = Field(..., min_length=1, max_length=255)
    price_tier: PriceTier
    offers_delivery: bool = False
    offers_pickup: bool = False
    payment_options: list[PaymentOption] = Field(default_factory=list)

    @field_validator("website_url", "social_media_url", "wallpaper_url")
    @classmethod
    def validate_urls(cls, v):
        return _check_url(v)

    @field_validator("phone_number")
    @classmethod
    def validate_phone(cls, v):
        if not validate_phone_number(v):
            raise ValueError("Invalid phone number format")
        return v


class BusinessCreate(BusinessBase):
    """Schema for registering a new business."""

    owner_id: str = Field(..., min_length=1, max_length=36)
    uen: str = Field(..., min_length=9, max_length=20, description="Unique Entity Number")


class BusinessUpdate(BaseModel):
    """Schema for updating a business. Only fields that are sent are applied."""

    owner_id: Optional[str] = Field(None, min_length=1, max_length=36)
    business_name: Optional[str] = Field(None, min_length=1, max_length=255)
    business_category: Optional[str] = Field(None, min_length=1, max_length=100)
    description: Optional[str] = Field(None, min_length=1)
    address: Optional[str] = Field(None, min_length=1, max_length=500)
    latitude: Optional[Decimal] = Field(None, ge=-90, le=90, decimal_places=6)
    longitude: Optional[Decimal] = Field(None, ge=-180, le=180, decimal_places=6)
    open247: Optional[bool] = None
    opening_hours: Optional[dict[DayOfWeek, HourEntry]] = None
    email: Optional[EmailStr] = None
    phone_number: Optional[str] = Field(None, min_length=8, max_length=20)
    website_url: Optional[str] = Field(None, max_length=255)
    social_media_url: Optional[str] = Field(None, max_length=255)
    wallpaper_url: Optional[str] = Field(None, min_length=1, max_length=255)
    price_tier: Optional[PriceTier] = None
    offers_delivery: Optional[bool] = None
    offers_pickup: Optional[bool] = None
    payment_options: Optional[list[PaymentOption]] = None

    @field_validator("website_url", "social_media_url", "wallpaper_url")
    @classmethod
    def validate_urls(cls, v):
        return _check_url(v)

    @field_validator("phone_number")
    @classmethod
    def validate_phone(cls, v):
        if not validate_phone_number(v):
            raise ValueError("Invalid phone number format")
        return v


class BusinessResponse(BaseModel):
    """Fully hydrated business as served to clients."""

    uen: str
    owner_id: str
    business_name: str
    business_category: str
    description: str
    address: str
    latitude: Decimal
    longitude: Decimal
    open247: bool
    opening_hours: dict[str, HourEntry] = Field(default_factory=dict)
    email: Optional[str] = None
    phone_number: Optional[str] = None
    website_url: Optional[str] = None
    social_media_url: Optional[str] = None
    wallpaper_url: str
    price_tier: PriceTier
    offers_delivery: bool
    offers_pickup: bool
    payment_options: list[PaymentOption] = Field(default_factory=list)
    avg_rating: int = Field(0, ge=0, le=5)
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


class BusinessFilter(BaseModel):
    """Directory filter request. Every field is optional and they combine with AND."""

    search_query: Optional[str] = Field(
        None, description="Case-insensitive match on name or description"
    )
    price_tier: Optional[Union[PriceTier, list[PriceTier]]] = None
    business_category: Optional[Union[str, list[str]]] = None
    newly_added: Optional[bool] = Field(
        None, description="Only businesses listed within the last week"
    )
    open247: Optional[bool] = None
    offers_delivery: Optional[bool] = None
    offers_pickup: Optional[bool] = None
    payment_options: Optional[list[PaymentOption]] = Field(
        None, description="Business must accept every listed option"
    )
    sort_by: Optional[str] = Field(
        None, description="business_name, price_tier or date_of_creation (default)"
    )
    sort_order: Optional[Literal["asc", "desc"]] = None


class BusinessNameMatch(BaseModel):
    """Minimal business reference returned by the name search."""

    uen: str
    name: str


class UenAvailability(BaseModel):
    uen: str
    available: bool
