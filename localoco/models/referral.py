import enum

from sqlalchemy import (
    Column,
    DateTime,
    ForeignKey,
    Integer,
    String,
    UniqueConstraint,
)
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func

from localoco.core.database import Base


class ReferralStatus(enum.Enum):
    CLAIMED = "claimed"
    QUALIFIED = "qualified"
    REWARDED = "rewarded"
    REJECTED = "rejected"


class VoucherStatus(enum.Enum):
    ISSUED = "issued"
    USED = "used"
    EXPIRED = "expired"
    REVOKED = "revoked"


class Referral(Base):
    """Edge of the referral graph: referrer invited referred with a code."""

    __tablename__ = "referrals"

    ref_id = Column(Integer, primary_key=True, autoincrement=True)
    referrer_id = Column(
        String(36),
        ForeignKey("user.id", ondelete="CASCADE", onupdate="CASCADE"),
        nullable=False,
        index=True,
    )
    referred_id = Column(
        String(36),
        ForeignKey("user.id", ondelete="CASCADE", onupdate="CASCADE"),
        nullable=False,
        index=True,
    )
    referral_code = Column(String(10), nullable=False)
    status = Column(
        String(20), default=ReferralStatus.CLAIMED.value, nullable=False
    )
    referred_at = Column(
        DateTime(timezone=True), server_default=func.now(), nullable=False
    )

    vouchers = relationship("Voucher", back_populates="referral")

    __table_args__ = (
        UniqueConstraint("referrer_id", "referred_id", name="uq_referrer_referred"),
    )

    def __repr__(self):
        return (
            f"<Referral(ref_id={self.ref_id}, referrer={self.referrer_id}, "
            f"referred={self.referred_id}, status={self.status})>"
        )


class Voucher(Base):
    """Reward issued to either side of a referral."""

    __tablename__ = "vouchers"

    voucher_id = Column(Integer, primary_key=True, autoincrement=True)
    user_id = Column(
        String(36),
        ForeignKey("user.id", ondelete="CASCADE", onupdate="CASCADE"),
        nullable=False,
        index=True,
    )
    ref_id = Column(
        Integer,
        ForeignKey("referrals.ref_id", ondelete="SET NULL", onupdate="CASCADE"),
        nullable=True,
    )
    amount = Column(Integer, nullable=False)
    status = Column(
        String(20), default=VoucherStatus.ISSUED.value, nullable=False, index=True
    )
    issued_at = Column(
        DateTime(timezone=True), server_default=func.now(), nullable=False
    )
    expires_at = Column(DateTime(timezone=True), nullable=False, index=True)

    user = relationship("User", back_populates="vouchers")
    referral = relationship("Referral", back_populates="vouchers")

    def __repr__(self):
        return (
            f"<Voucher(voucher_id={self.voucher_id}, user={self.user_id}, "
            f"amount={self.amount}, status={self.status})>"
        )
