import secrets
import string
import uuid

from sqlalchemy import Boolean, Column, DateTime, ForeignKey, Integer, String, Text
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func

from localoco.core.database import Base

REFERRAL_CODE_ALPHABET = string.ascii_uppercase + string.digits
REFERRAL_CODE_LENGTH = 8


def generate_referral_code() -> str:
    """Random upper-case alphanumeric code handed out to every new user."""
    return "".join(
        secrets.choice(REFERRAL_CODE_ALPHABET) for _ in range(REFERRAL_CODE_LENGTH)
    )


class User(Base):
    """Directory user. Rows are provisioned by the auth provider."""

    __tablename__ = "user"

    # Core identity
    id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    name = Column(Text, nullable=False)
    email = Column(String(255), unique=True, nullable=False, index=True)
    email_verified = Column(Boolean, default=False, nullable=False)

    # Profile
    image_url = Column(Text, nullable=False, default="")
    bio = Column(Text, nullable=False, default="")
    has_business = Column(Boolean, default=False, nullable=False)

    # Referral programme
    referral_code = Column(
        String(10),
        unique=True,
        nullable=False,
        index=True,
        default=generate_referral_code,
    )
    referred_by_user_id = Column(
        String(36), ForeignKey("user.id", ondelete="SET NULL"), nullable=True
    )

    # Audit timestamps
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(
        DateTime(timezone=True), server_default=func.now(), onupdate=func.now()
    )

    # Relationships
    businesses = relationship(
        "Business", back_populates="owner", passive_deletes=True
    )
    vouchers = relationship("Voucher", back_populates="user", passive_deletes=True)

    def __repr__(self):
        return f"<User(id={self.id}, email={self.email})>"


class UserPoints(Base):
    """Loyalty points balance keyed by user email."""

    __tablename__ = "user_points"

    email = Column(
        "user_email",
        String(255),
        ForeignKey("user.email", ondelete="CASCADE", onupdate="CASCADE"),
        primary_key=True,
    )
    points = Column(Integer, default=0, nullable=False)
