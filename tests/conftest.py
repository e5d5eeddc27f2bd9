import os
from datetime import datetime, time, timezone
from decimal import Decimal

# Settings are read at import time; keep tests off the production database
os.environ.setdefault("DATABASE_URL", "sqlite+aiosqlite:///./localoco_test.db")

import pytest
from httpx import ASGITransport, AsyncClient
from sqlalchemy import event
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine

import localoco.models  # noqa: F401
from localoco.core.database import Base, get_db
from localoco.main import app
from localoco.models.business import Business, BusinessOpeningHours, BusinessPaymentOption
from localoco.models.review import BusinessReview
from localoco.models.user import User


@pytest.fixture
async def engine(tmp_path):
    """Fresh SQLite file database per test, with foreign keys enforced.

    A file (not :memory:) is used so that the concurrent hydration reads, which
    open their own connections, see what the test session committed.
    """
    engine = create_async_engine(f"sqlite+aiosqlite:///{tmp_path / 'localoco.db'}")

    @event.listens_for(engine.sync_engine, "connect")
    def _enable_foreign_keys(dbapi_connection, connection_record):
        cursor = dbapi_connection.cursor()
        cursor.execute("PRAGMA foreign_keys=ON")
        cursor.close()

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    yield engine

    await engine.dispose()


@pytest.fixture
async def db(engine):
    """Create a fresh database session for each test."""
    async_session = async_sessionmaker(
        engine, class_=AsyncSession, expire_on_commit=False
    )
    async with async_session() as session:
        yield session


@pytest.fixture
async def client(db: AsyncSession):
    """HTTP client against the app, with get_db bound to the test session."""

    async def _override_get_db():
        yield db

    app.dependency_overrides[get_db] = _override_get_db
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as ac:
        yield ac
    app.dependency_overrides.clear()


@pytest.fixture
def user_factory(db: AsyncSession):
    """Insert users; returns an async callable."""
    counter = {"n": 0}

    async def _create(**overrides) -> User:
        counter["n"] += 1
        n = counter["n"]
        data = {
            "id": f"user-{n}",
            "name": f"User {n}",
            "email": f"user{n}@example.com",
            "referral_code": f"CODE{n:04d}",
        }
        data.update(overrides)
        user = User(**data)
        db.add(user)
        await db.commit()
        await db.refresh(user)
        return user

    return _create


@pytest.fixture
def business_factory(db: AsyncSession):
    """Insert businesses with optional payment options, hours and ratings."""
    counter = {"n": 0}

    async def _create(
        owner: User,
        payment_options=(),
        hours=None,
        ratings=(),
        reviewer: User = None,
        **overrides,
    ) -> Business:
        counter["n"] += 1
        n = counter["n"]
        data = {
            "uen": f"UEN{n:06d}A",
            "owner_id": owner.id,
            "business_name": f"Business {n}",
            "business_category": "food",
            "description": f"Description of business {n}",
            "address": f"{n} Orchard Road",
            "latitude": Decimal("1.300000"),
            "longitude": Decimal("103.800000"),
            "wallpaper_url": "https://img.example.com/wallpaper.png",
            "price_tier": "medium",
            "open247": False,
        }
        data.update(overrides)
        business = Business(**data)
        db.add(business)
        await db.flush()

        for option in payment_options:
            db.add(BusinessPaymentOption(uen=business.uen, payment_option=option))
        for day, (open_at, close_at) in (hours or {}).items():
            db.add(
                BusinessOpeningHours(
                    uen=business.uen,
                    day_of_week=day,
                    open_time=time.fromisoformat(open_at),
                    close_time=time.fromisoformat(close_at),
                )
            )
        for rating in ratings:
            db.add(
                BusinessReview(
                    email=(reviewer or owner).email,
                    uen=business.uen,
                    rating=rating,
                    body="Review body",
                    like_count=0,
                )
            )

        await db.commit()
        await db.refresh(business)
        return business

    return _create


@pytest.fixture
async def owner(user_factory) -> User:
    return await user_factory(name="Olivia Owner", email="owner@example.com")


@pytest.fixture
def long_ago() -> datetime:
    return datetime(2020, 1, 1, 12, 0, tzinfo=timezone.utc)
