from sqlalchemy import (
    CheckConstraint,
    Column,
    DateTime,
    ForeignKey,
    Integer,
    String,
    Text,
)
from sqlalchemy.sql import func

from localoco.core.database import Base


class BusinessReview(Base):
    """A user's star rating and write-up of a business."""

    __tablename__ = "business_reviews"

    id = Column(Integer, primary_key=True, autoincrement=True)
    email = Column(
        "user_email",
        String(255),
        ForeignKey("user.email", ondelete="CASCADE", onupdate="CASCADE"),
        nullable=False,
        index=True,
    )
    uen = Column(
        String(20),
        ForeignKey("businesses.uen", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    rating = Column(Integer, nullable=False)
    body = Column(Text, nullable=False)
    like_count = Column(Integer, default=0, nullable=False)
    created_at = Column(
        DateTime(timezone=True), server_default=func.now(), nullable=False
    )

    __table_args__ = (
        CheckConstraint("rating BETWEEN 1 AND 5", name="ck_business_reviews_rating"),
        CheckConstraint("like_count >= 0", name="ck_business_reviews_like_count"),
    )

    def __repr__(self):
        return f"<BusinessReview(id={self.id}, uen={self.uen}, rating={self.rating})>"
