import asyncio
from unittest.mock import MagicMock

import pytest
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import AsyncAdaptedQueuePool

from localoco.models.review import BusinessReview
from localoco.schemas.forum import ForumPostCreate, ForumReplyCreate
from localoco.services.business import BusinessService
from localoco.services.forum import ForumService
from localoco.services.review import ReviewService


@pytest.fixture
async def small_pool_engine(engine):
    """Second engine on the test database with a two-connection pool."""
    bounded = create_async_engine(
        engine.url,
        poolclass=AsyncAdaptedQueuePool,
        pool_size=2,
        max_overflow=0,
        pool_timeout=5,
    )
    yield bounded
    await bounded.dispose()


@pytest.fixture
def session_factory(small_pool_engine):
    return async_sessionmaker(
        small_pool_engine, class_=AsyncSession, expire_on_commit=False
    )


async def _run_with_own_sessions(session_factory, call, times: int):
    async def _one():
        async with session_factory() as session:
            return await call(session)

    return await asyncio.wait_for(
        asyncio.gather(*(_one() for _ in range(times))), timeout=30
    )


class TestDirectoryReadsUnderLoad:
    async def test_more_requests_than_pool_connections(
        self, owner, business_factory, session_factory
    ):
        await business_factory(owner, payment_options=["cash"], ratings=[4])
        await business_factory(owner, hours={"Monday": ("09:00", "17:00")})
        service = BusinessService(logger=MagicMock())

        results = await _run_with_own_sessions(
            session_factory, service.get_all_businesses, times=6
        )

        assert len(results) == 6
        for businesses in results:
            assert len(businesses) == 2

    async def test_forum_listing_under_load(self, owner, session_factory, db):
        forum = ForumService(logger=MagicMock())
        post = await forum.create_post(db, ForumPostCreate(email=owner.email, body="Hi"))
        await forum.create_reply(
            db, ForumReplyCreate(post_id=post.id, email=owner.email, body="Hello")
        )

        results = await _run_with_own_sessions(
            session_factory, forum.get_all_posts, times=6
        )

        for posts in results:
            assert [len(p.replies) for p in posts] == [1]


class TestConcurrentLikes:
    async def test_every_like_counts(self, db, owner, business_factory, session_factory):
        business = await business_factory(owner, ratings=[5])
        review_id = (
            await db.execute(
                select(BusinessReview.id).where(BusinessReview.uen == business.uen)
            )
        ).scalar_one()
        service = ReviewService(logger=MagicMock())

        async def _like(session):
            return await service.update_review_likes(session, review_id, True)

        results = await _run_with_own_sessions(session_factory, _like, times=3)

        assert sorted(r.like_count for r in results) == [1, 2, 3]
        stored = await db.execute(
            select(BusinessReview.like_count).where(BusinessReview.id == review_id)
        )
        assert stored.scalar_one() == 3

    async def test_unlikes_stop_at_zero(self, db, owner, business_factory, session_factory):
        business = await business_factory(owner, ratings=[5])
        review_id = (
            await db.execute(
                select(BusinessReview.id).where(BusinessReview.uen == business.uen)
            )
        ).scalar_one()
        service = ReviewService(logger=MagicMock())

        async def _unlike(session):
            return await service.update_review_likes(session, review_id, False)

        results = await _run_with_own_sessions(session_factory, _unlike, times=3)

        assert [r.like_count for r in results] == [0, 0, 0]
