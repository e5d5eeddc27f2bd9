import pytest
from pydantic import ValidationError

from localoco.schemas.business import BusinessCreate, BusinessFilter, BusinessUpdate, HourEntry
from localoco.schemas.forum import ForumPostCreate
from localoco.schemas.review import ReviewCreate
from localoco.schemas.user import ReferralRequest


def _business_payload(**overrides) -> dict:
    payload = {
        "owner_id": "user-1",
        "uen": "53312345A",
        "business_name": "Kopi Corner",
        "business_category": "food",
        "description": "Neighbourhood coffee shop",
        "address": "1 Tiong Bahru Road",
        "latitude": "1.284500",
        "longitude": "103.832100",
        "wallpaper_url": "https://img.example.com/kopi.png",
        "price_tier": "low",
    }
    payload.update(overrides)
    return payload


@pytest.mark.unit
class TestBusinessSchemas:
    """Unit tests for business request schemas."""

    def test_minimal_business_is_valid(self):
        business = BusinessCreate(**_business_payload())

        assert business.open247 is False
        assert business.payment_options == []
        assert business.opening_hours is None

    def test_opening_hours_keyed_by_weekday(self):
        business = BusinessCreate(
            **_business_payload(
                opening_hours={"Monday": {"open": "08:00", "close": "17:30"}},
                payment_options=["cash", "paynow"],
            )
        )

        (day, entry), = business.opening_hours.items()
        assert day.value == "Monday"
        assert entry == HourEntry(open="08:00", close="17:30")

    def test_unknown_weekday_rejected(self):
        with pytest.raises(ValidationError):
            BusinessCreate(
                **_business_payload(opening_hours={"Funday": {"open": "08:00", "close": "17:00"}})
            )

    def test_invalid_clock_time_rejected(self):
        with pytest.raises(ValidationError):
            HourEntry(open="25:00", close="17:00")

    def test_unknown_payment_option_rejected(self):
        with pytest.raises(ValidationError):
            BusinessCreate(**_business_payload(payment_options=["barter"]))

    def test_unknown_price_tier_rejected(self):
        with pytest.raises(ValidationError):
            BusinessCreate(**_business_payload(price_tier="premium"))

    def test_invalid_url_rejected(self):
        with pytest.raises(ValidationError):
            BusinessCreate(**_business_payload(website_url="not a url"))

    def test_latitude_out_of_range_rejected(self):
        with pytest.raises(ValidationError):
            BusinessCreate(**_business_payload(latitude="91"))

    def test_update_tracks_sent_fields_only(self):
        update = BusinessUpdate(business_name="Kopi Corner 2", payment_options=["card"])

        assert update.model_dump(exclude_unset=True) == {
            "business_name": "Kopi Corner 2",
            "payment_options": ["card"],
        }

    def test_filter_rejects_unknown_sort_order(self):
        with pytest.raises(ValidationError):
            BusinessFilter(sort_order="sideways")


@pytest.mark.unit
class TestOtherSchemas:
    @pytest.mark.parametrize("rating", [0, 6])
    def test_review_rating_bounds(self, rating):
        with pytest.raises(ValidationError):
            ReviewCreate(email="a@example.com", uen="53312345A", rating=rating, body="ok")

    def test_forum_post_blank_tags_become_none(self):
        post = ForumPostCreate(email="a@example.com", uen="  ", title="", body="Hello")

        assert post.uen is None
        assert post.title is None

    def test_referral_request_requires_code(self):
        with pytest.raises(ValidationError):
            ReferralRequest(referral_code="", referred_id="user-2")
