from sqlalchemy import Column, ForeignKey, String

from localoco.core.database import Base


class BookmarkedBusiness(Base):
    """A user's saved business."""

    __tablename__ = "bookmarked_businesses"

    user_id = Column(
        String(36),
        ForeignKey("user.id", ondelete="CASCADE"),
        primary_key=True,
    )
    uen = Column(
        String(20),
        ForeignKey("businesses.uen", ondelete="CASCADE", onupdate="CASCADE"),
        primary_key=True,
        index=True,
    )
