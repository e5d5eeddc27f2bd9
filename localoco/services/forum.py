from typing import Sequence

import structlog
from sqlalchemy import select
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from localoco.core.database import fetch_concurrently
from localoco.core.errors import BusinessRuleError, NotFoundError, StoreError
from localoco.models.business import Business
from localoco.models.forum import ForumPost, ForumPostReply
from localoco.models.user import User
from localoco.schemas.forum import (
    ForumPostCreate,
    ForumPostResponse,
    ForumReplyCreate,
    ForumReplyResponse,
)
from localoco.schemas.review import LikeCount
from localoco.utils.likes import apply_like


class ForumService:
    """Service layer for forum posts and replies."""

    def __init__(self, logger=None):
        self.logger = logger or structlog.get_logger(__name__)

    async def create_post(
        self, db: AsyncSession, post_data: ForumPostCreate
    ) -> ForumPostResponse:
        if post_data.uen:
            business = await db.execute(
                select(Business.uen).where(Business.uen == post_data.uen)
            )
            if business.scalar_one_or_none() is None:
                raise NotFoundError(f"Business {post_data.uen} not found")

        try:
            post = ForumPost(**post_data.model_dump(), like_count=0)
            db.add(post)
            await db.commit()
            await db.refresh(post)
        except IntegrityError as e:
            await db.rollback()
            self.logger.error(
                "Failed to create forum post due to integrity constraint",
                email=post_data.email,
                error=str(e),
            )
            raise NotFoundError(f"User {post_data.email} not found")
        except SQLAlchemyError as e:
            await db.rollback()
            self.logger.error("Failed to create forum post", email=post_data.email, error=str(e))
            raise StoreError("Failed to create forum post") from e

        self.logger.info("Forum post created", post_id=post.id, uen=post.uen)
        hydrated = await self._hydrate_posts(db, [post])
        return hydrated[0]

    async def create_reply(
        self, db: AsyncSession, reply_data: ForumReplyCreate
    ) -> ForumReplyResponse:
        post = await db.get(ForumPost, reply_data.post_id)
        if post is None:
            raise NotFoundError(f"Forum post {reply_data.post_id} not found")

        try:
            reply = ForumPostReply(**reply_data.model_dump(), like_count=0)
            db.add(reply)
            await db.commit()
            await db.refresh(reply)
        except IntegrityError as e:
            await db.rollback()
            self.logger.error(
                "Failed to create forum reply due to integrity constraint",
                post_id=reply_data.post_id,
                error=str(e),
            )
            raise BusinessRuleError("Forum reply could not be stored")
        except SQLAlchemyError as e:
            await db.rollback()
            self.logger.error(
                "Failed to create forum reply", post_id=reply_data.post_id, error=str(e)
            )
            raise StoreError("Failed to create forum reply") from e

        image = await db.execute(select(User.image_url).where(User.email == reply.email))

        self.logger.info("Forum reply created", reply_id=reply.id, post_id=reply.post_id)
        return ForumReplyResponse.model_validate(reply).model_copy(
            update={"image": image.scalar_one_or_none() or None}
        )

    async def get_all_posts(self, db: AsyncSession) -> list[ForumPostResponse]:
        result = await db.execute(
            select(ForumPost).order_by(ForumPost.created_at.desc(), ForumPost.id.desc())
        )
        return await self._hydrate_posts(db, result.scalars().all())

    async def get_posts_by_business(
        self, db: AsyncSession, uen: str
    ) -> list[ForumPostResponse]:
        result = await db.execute(
            select(ForumPost)
            .where(ForumPost.uen == uen)
            .order_by(ForumPost.created_at.desc(), ForumPost.id.desc())
        )
        return await self._hydrate_posts(db, result.scalars().all())

    async def update_post_likes(
        self, db: AsyncSession, post_id: int, clicked: bool
    ) -> LikeCount:
        like_count = await apply_like(db, ForumPost, post_id, clicked)
        if like_count is None:
            raise NotFoundError(f"Forum post {post_id} not found")

        self.logger.info("Forum post likes updated", post_id=post_id, like_count=like_count)
        return LikeCount(id=post_id, like_count=like_count)

    async def update_reply_likes(
        self, db: AsyncSession, reply_id: int, clicked: bool
    ) -> LikeCount:
        like_count = await apply_like(db, ForumPostReply, reply_id, clicked)
        if like_count is None:
            raise NotFoundError(f"Forum reply {reply_id} not found")

        self.logger.info(
            "Forum reply likes updated", reply_id=reply_id, like_count=like_count
        )
        return LikeCount(id=reply_id, like_count=like_count)

    async def _hydrate_posts(
        self, db: AsyncSession, posts: Sequence[ForumPost]
    ) -> list[ForumPostResponse]:
        """Attach replies (oldest first), author images and business names.

        Replies are read first since their authors are needed; author images and
        business names are then read together.
        """
        if not posts:
            return []

        replies_result = await db.execute(
            select(ForumPostReply)
            .where(ForumPostReply.post_id.in_([post.id for post in posts]))
            .order_by(ForumPostReply.created_at, ForumPostReply.id)
        )
        replies = replies_result.scalars().all()

        emails = {post.email for post in posts} | {reply.email for reply in replies}
        uens = {post.uen for post in posts if post.uen}

        users_stmt = select(User.email, User.image_url).where(User.email.in_(emails))
        businesses_stmt = None
        if uens:
            businesses_stmt = select(Business.uen, Business.business_name).where(
                Business.uen.in_(uens)
            )

        user_rows, business_rows = await fetch_concurrently(
            db, users_stmt, businesses_stmt
        )
        images = {row.email: row.image_url or None for row in user_rows}
        business_names = {row.uen: row.business_name for row in business_rows}

        replies_by_post: dict[int, list[ForumReplyResponse]] = {}
        for reply in replies:
            replies_by_post.setdefault(reply.post_id, []).append(
                ForumReplyResponse.model_validate(reply).model_copy(
                    update={"image": images.get(reply.email)}
                )
            )

        return [
            ForumPostResponse(
                id=post.id,
                email=post.email,
                image=images.get(post.email),
                uen=post.uen,
                business_name=business_names.get(post.uen) if post.uen else None,
                title=post.title,
                body=post.body,
                like_count=post.like_count,
                created_at=post.created_at,
                replies=replies_by_post.get(post.id, []),
            )
            for post in posts
        ]


forum_service = ForumService()
