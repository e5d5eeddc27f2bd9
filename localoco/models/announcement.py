from sqlalchemy import Column, DateTime, ForeignKey, Integer, String, Text
from sqlalchemy.sql import func

from localoco.core.database import Base


class BusinessAnnouncement(Base):
    """News item published by a business for the newsletter feed."""

    __tablename__ = "business_announcements"

    announcement_id = Column(Integer, primary_key=True, autoincrement=True)
    uen = Column(
        String(20),
        ForeignKey("businesses.uen", ondelete="CASCADE", onupdate="CASCADE"),
        nullable=False,
        index=True,
    )
    title = Column(String(255), nullable=False)
    content = Column(Text, nullable=False)
    image_url = Column(String(500), nullable=False, default="")

    # Audit timestamps
    created_at = Column(
        DateTime(timezone=True), server_default=func.now(), nullable=False
    )
    updated_at = Column(
        DateTime(timezone=True), server_default=func.now(), onupdate=func.now()
    )
