from datetime import datetime, timedelta, timezone

import pytest
from sqlalchemy import func, select

from localoco.core.errors import BusinessRuleError, NotFoundError
from localoco.models.business import BusinessOpeningHours, BusinessPaymentOption
from localoco.models.user import User
from localoco.schemas.business import BusinessCreate, BusinessFilter, BusinessUpdate
from localoco.services.business import BusinessService


@pytest.fixture
def service():
    return BusinessService()


def _create_payload(owner_id: str, **overrides) -> BusinessCreate:
    payload = {
        "owner_id": owner_id,
        "uen": "53312345A",
        "business_name": "Kopi Corner",
        "business_category": "food",
        "description": "Neighbourhood coffee shop",
        "address": "1 Tiong Bahru Road",
        "latitude": "1.284500",
        "longitude": "103.832100",
        "wallpaper_url": "https://img.example.com/kopi.png",
        "price_tier": "low",
        "payment_options": ["cash", "paynow"],
        "opening_hours": {
            "Monday": {"open": "08:00", "close": "17:00"},
            "Saturday": {"open": "09:00", "close": "13:00"},
        },
    }
    payload.update(overrides)
    return BusinessCreate(**payload)


async def _count(db, model, uen: str) -> int:
    result = await db.execute(select(func.count()).select_from(model).where(model.uen == uen))
    return result.scalar_one()


class TestHydration:
    """Hydrated listings built from batched reads."""

    async def test_preserves_order_and_attaches_children(
        self, db, service, owner, business_factory
    ):
        first = await business_factory(
            owner,
            payment_options=["cash", "card"],
            hours={"Monday": ("09:00", "18:00")},
            ratings=[4, 5],
        )
        second = await business_factory(owner, open247=True, ratings=[1])
        third = await business_factory(owner)

        hydrated = await service._hydrate_businesses(db, [third, first, second])

        assert [b.uen for b in hydrated] == [third.uen, first.uen, second.uen]

        by_uen = {b.uen: b for b in hydrated}
        assert by_uen[first.uen].payment_options == ["cash", "card"]
        assert by_uen[first.uen].opening_hours["Monday"].open == "09:00"
        assert by_uen[first.uen].opening_hours["Monday"].close == "18:00"
        assert by_uen[first.uen].avg_rating == 5
        assert by_uen[second.uen].avg_rating == 1
        assert by_uen[third.uen].avg_rating == 0
        assert by_uen[third.uen].payment_options == []
        assert by_uen[third.uen].opening_hours == {}

    async def test_open247_business_has_no_hours(self, db, service, owner, business_factory):
        business = await business_factory(owner, open247=True)
        # A stray row must never surface for a 24/7 business
        db.add(
            BusinessOpeningHours(
                uen=business.uen,
                day_of_week="Monday",
                open_time=datetime(2026, 1, 1, 9).time(),
                close_time=datetime(2026, 1, 1, 17).time(),
            )
        )
        await db.commit()

        (hydrated,) = await service._hydrate_businesses(db, [business])

        assert hydrated.opening_hours == {}

    async def test_ratings_are_rounded_integers_within_range(
        self, db, service, owner, business_factory
    ):
        business = await business_factory(owner, ratings=[3, 4])

        (hydrated,) = await service._hydrate_businesses(db, [business])

        assert hydrated.avg_rating == 4
        assert 0 <= hydrated.avg_rating <= 5


class TestFilteredBusinesses:
    """Filter conjunction and ordering against a real database."""

    async def test_empty_filter_returns_everything_newest_first(
        self, db, service, owner, business_factory, long_ago
    ):
        old = await business_factory(owner, created_at=long_ago)
        new = await business_factory(owner, created_at=long_ago + timedelta(days=30))

        result = await service.get_filtered_businesses(db, BusinessFilter())

        assert [b.uen for b in result] == [new.uen, old.uen]

    async def test_payment_options_require_every_option(
        self, db, service, owner, business_factory
    ):
        business = await business_factory(owner, payment_options=["cash", "card"])

        async def uens(options):
            result = await service.get_filtered_businesses(
                db, BusinessFilter(payment_options=options)
            )
            return [b.uen for b in result]

        assert await uens(["cash"]) == [business.uen]
        assert await uens(["cash", "card"]) == [business.uen]
        assert await uens(["cash", "card", "paynow"]) == []

    async def test_filters_combine_with_and(self, db, service, owner, business_factory):
        match = await business_factory(
            owner,
            business_name="Noodle Bar",
            price_tier="low",
            offers_delivery=True,
        )
        await business_factory(owner, business_name="Noodle House", price_tier="high", offers_delivery=True)
        await business_factory(owner, business_name="Noodle Stall", price_tier="low")
        await business_factory(owner, business_name="Bakery", price_tier="low", offers_delivery=True)

        result = await service.get_filtered_businesses(
            db,
            BusinessFilter(search_query="NOODLE", price_tier=["low"], offers_delivery=True),
        )

        assert [b.uen for b in result] == [match.uen]

    async def test_search_matches_description(self, db, service, owner, business_factory):
        match = await business_factory(owner, description="Best laksa in the east")
        await business_factory(owner)

        result = await service.get_filtered_businesses(db, BusinessFilter(search_query="laksa"))

        assert [b.uen for b in result] == [match.uen]

    async def test_newly_added(self, db, service, owner, business_factory, long_ago):
        fresh = await business_factory(
            owner, created_at=datetime.now(timezone.utc) - timedelta(days=2)
        )
        await business_factory(owner, created_at=long_ago)

        result = await service.get_filtered_businesses(db, BusinessFilter(newly_added=True))

        assert [b.uen for b in result] == [fresh.uen]

    async def test_false_flags_do_not_exclude(self, db, service, owner, business_factory):
        await business_factory(owner, open247=True)
        await business_factory(owner, open247=False)

        result = await service.get_filtered_businesses(db, BusinessFilter(open247=False))

        assert len(result) == 2

    async def test_sort_by_price_tier_uses_rank(self, db, service, owner, business_factory):
        high = await business_factory(owner, price_tier="high")
        low = await business_factory(owner, price_tier="low")
        medium = await business_factory(owner, price_tier="medium")

        ascending = await service.get_filtered_businesses(
            db, BusinessFilter(sort_by="price_tier", sort_order="asc")
        )
        descending = await service.get_filtered_businesses(
            db, BusinessFilter(sort_by="price_tier")
        )

        assert [b.uen for b in ascending] == [low.uen, medium.uen, high.uen]
        assert [b.uen for b in descending] == [high.uen, medium.uen, low.uen]

    async def test_sort_by_name(self, db, service, owner, business_factory):
        await business_factory(owner, business_name="Bravo")
        await business_factory(owner, business_name="Alpha")
        await business_factory(owner, business_name="Charlie")

        result = await service.get_filtered_businesses(
            db, BusinessFilter(sort_by="business_name", sort_order="asc")
        )

        assert [b.business_name for b in result] == ["Alpha", "Bravo", "Charlie"]


class TestSearchBusinessByName:
    """The exact, partial, reverse-containment cascade."""

    async def test_exact_match_wins_over_partial(self, db, service, owner, business_factory):
        await business_factory(owner, business_name="Acme Cafe Express")
        exact = await business_factory(owner, business_name="Acme Cafe")

        match = await service.search_business_by_name(db, "  ACME   cafe!! ")

        assert match.uen == exact.uen
        assert match.name == "Acme Cafe"

    async def test_partial_match(self, db, service, owner, business_factory):
        business = await business_factory(owner, business_name="Ah Hock Fried Hokkien Mee")

        match = await service.search_business_by_name(db, "hokkien")

        assert match.uen == business.uen

    async def test_reverse_containment(self, db, service, owner, business_factory):
        business = await business_factory(owner, business_name="Acme Cafe")

        match = await service.search_business_by_name(db, "visit Acme Cafe today")

        assert match.uen == business.uen

    async def test_no_match(self, db, service, owner, business_factory):
        await business_factory(owner, business_name="Acme Cafe")

        assert await service.search_business_by_name(db, "zebra crossing") is None


class TestBusinessLifecycle:
    """Registration, update and deletion."""

    async def test_register_flags_owner_and_stores_children(self, db, service, owner):
        created = await service.register_business(db, _create_payload(owner.id))

        assert created.uen == "53312345A"
        assert created.payment_options == ["cash", "paynow"]
        assert set(created.opening_hours) == {"Monday", "Saturday"}
        assert created.avg_rating == 0

        refreshed = await db.get(User, owner.id, populate_existing=True)
        assert refreshed.has_business is True

    async def test_register_open247_skips_hours(self, db, service, owner):
        await service.register_business(db, _create_payload(owner.id, open247=True))

        assert await _count(db, BusinessOpeningHours, "53312345A") == 0

    async def test_register_duplicate_uen(self, db, service, owner):
        await service.register_business(db, _create_payload(owner.id))

        with pytest.raises(BusinessRuleError):
            await service.register_business(db, _create_payload(owner.id))

    async def test_register_unknown_owner(self, db, service):
        with pytest.raises(NotFoundError):
            await service.register_business(db, _create_payload("missing-user"))

        assert await service.check_uen_exists(db, "53312345A") is False

    async def test_update_replaces_payment_options_and_hours(self, db, service, owner):
        await service.register_business(db, _create_payload(owner.id))

        updated = await service.update_business(
            db,
            "53312345A",
            BusinessUpdate(
                business_name="Kopi Corner Two",
                payment_options=["card"],
                opening_hours={"Sunday": {"open": "10:00", "close": "14:00"}},
            ),
        )

        assert updated.business_name == "Kopi Corner Two"
        assert updated.payment_options == ["card"]
        assert list(updated.opening_hours) == ["Sunday"]

    async def test_update_with_empty_payment_options_keeps_existing(self, db, service, owner):
        await service.register_business(db, _create_payload(owner.id))

        updated = await service.update_business(
            db, "53312345A", BusinessUpdate(payment_options=[])
        )

        assert updated.payment_options == ["cash", "paynow"]

    async def test_update_to_open247_drops_hours(self, db, service, owner):
        await service.register_business(db, _create_payload(owner.id))

        updated = await service.update_business(
            db, "53312345A", BusinessUpdate(open247=True)
        )

        assert updated.open247 is True
        assert updated.opening_hours == {}
        assert await _count(db, BusinessOpeningHours, "53312345A") == 0

    async def test_update_missing_business(self, db, service):
        with pytest.raises(NotFoundError):
            await service.update_business(db, "NOPE00000", BusinessUpdate(business_name="x"))

    async def test_delete_cascades(self, db, service, owner):
        await service.register_business(db, _create_payload(owner.id))

        await service.delete_business(db, "53312345A")

        assert await service.get_business_by_uen(db, "53312345A") is None
        assert await _count(db, BusinessPaymentOption, "53312345A") == 0
        assert await _count(db, BusinessOpeningHours, "53312345A") == 0

    async def test_delete_missing_business(self, db, service):
        with pytest.raises(NotFoundError):
            await service.delete_business(db, "NOPE00000")

    async def test_owned_businesses(self, db, service, owner, user_factory, business_factory):
        other = await user_factory()
        mine = await business_factory(owner)
        await business_factory(other)

        result = await service.get_owned_businesses(db, owner.id)

        assert [b.uen for b in result] == [mine.uen]
