from sqlalchemy import Column, DateTime, ForeignKey, Integer, String, Text
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func

from localoco.core.database import Base


class ForumPost(Base):
    """Community discussion thread, optionally tagged to a business."""

    __tablename__ = "forum_posts"

    id = Column(Integer, primary_key=True, autoincrement=True)
    email = Column(
        String(255),
        ForeignKey("user.email", ondelete="CASCADE", onupdate="CASCADE"),
        nullable=False,
        index=True,
    )
    uen = Column(
        String(20),
        ForeignKey("businesses.uen", ondelete="CASCADE"),
        nullable=True,
        index=True,
    )
    title = Column(String(255), nullable=True)
    body = Column(Text, nullable=False)
    like_count = Column(Integer, default=0, nullable=False)
    created_at = Column(
        DateTime(timezone=True), server_default=func.now(), nullable=False
    )

    replies = relationship(
        "ForumPostReply",
        back_populates="post",
        cascade="all, delete-orphan",
        passive_deletes=True,
    )


class ForumPostReply(Base):
    """Reply under a forum post."""

    __tablename__ = "forum_posts_replies"

    id = Column(Integer, primary_key=True, autoincrement=True)
    post_id = Column(
        Integer,
        ForeignKey("forum_posts.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    email = Column(
        String(255),
        ForeignKey("user.email", ondelete="CASCADE", onupdate="CASCADE"),
        nullable=False,
        index=True,
    )
    body = Column(Text, nullable=False)
    like_count = Column(Integer, default=0, nullable=False)
    created_at = Column(
        DateTime(timezone=True), server_default=func.now(), nullable=False
    )

    post = relationship("ForumPost", back_populates="replies")
