import enum

from sqlalchemy import (
    Boolean,
    Column,
    DateTime,
    ForeignKey,
    Integer,
    Numeric,
    String,
    Text,
    Time,
)
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func

from localoco.core.database import Base


class PriceTier(enum.Enum):
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"


# Ordinal used when sorting by price tier
PRICE_TIER_RANK = {
    PriceTier.LOW.value: 0,
    PriceTier.MEDIUM.value: 1,
    PriceTier.HIGH.value: 2,
}


class Business(Base):
    """Directory listing keyed by its Unique Entity Number (UEN)."""

    __tablename__ = "businesses"

    # Core identity
    uen = Column(String(20), primary_key=True)
    owner_id = Column(
        String(36),
        ForeignKey("user.id", ondelete="CASCADE", onupdate="CASCADE"),
        nullable=False,
        index=True,
    )
    business_name = Column(String(255), nullable=False, index=True)
    business_category = Column(String(100), nullable=False, index=True)
    description = Column(Text, nullable=False)

    # Location
    address = Column(String(500), nullable=False)
    latitude = Column(Numeric(9, 6), nullable=False)
    longitude = Column(Numeric(9, 6), nullable=False)

    # Contact
    email = Column(String(100), nullable=True)
    phone_number = Column(String(20), nullable=True)
    website_url = Column(String(255), nullable=True)
    social_media_url = Column(String(255), nullable=True)
    wallpaper_url = Column(String(255), nullable=False)

    # Offering
    price_tier = Column(String(10), nullable=False, index=True)
    open247 = Column(Boolean, default=False, nullable=False)
    offers_delivery = Column(Boolean, default=False, nullable=False)
    offers_pickup = Column(Boolean, default=False, nullable=False)

    # Audit timestamps
    created_at = Column(
        DateTime(timezone=True), server_default=func.now(), nullable=False
    )
    updated_at = Column(DateTime(timezone=True), nullable=True, onupdate=func.now())

    # Relationships
    owner = relationship("User", back_populates="businesses")
    payment_options = relationship(
        "BusinessPaymentOption",
        back_populates="business",
        cascade="all, delete-orphan",
        passive_deletes=True,
    )
    opening_hours = relationship(
        "BusinessOpeningHours",
        back_populates="business",
        cascade="all, delete-orphan",
        passive_deletes=True,
    )

    def __repr__(self):
        return (
            f"<Business(uen={self.uen}, name={self.business_name}, "
            f"open247={self.open247})>"
        )


class BusinessPaymentOption(Base):
    """One accepted payment method of a business."""

    __tablename__ = "business_payment_options"

    id = Column(Integer, primary_key=True, autoincrement=True)
    uen = Column(
        String(20),
        ForeignKey("businesses.uen", ondelete="CASCADE", onupdate="CASCADE"),
        nullable=False,
        index=True,
    )
    payment_option = Column(String(50), nullable=False)

    business = relationship("Business", back_populates="payment_options")


class BusinessOpeningHours(Base):
    """Opening window for one weekday. Absent weekday means closed."""

    __tablename__ = "business_opening_hours"

    id = Column(Integer, primary_key=True, autoincrement=True)
    uen = Column(
        String(20),
        ForeignKey("businesses.uen", ondelete="CASCADE", onupdate="CASCADE"),
        nullable=False,
        index=True,
    )
    day_of_week = Column(String(10), nullable=False)
    open_time = Column(Time, nullable=False)
    close_time = Column(Time, nullable=False)

    business = relationship("Business", back_populates="opening_hours")

    def __repr__(self):
        return (
            f"<BusinessOpeningHours(uen={self.uen}, {self.day_of_week}: "
            f"{self.open_time}-{self.close_time})>"
        )
