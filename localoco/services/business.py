import math
from datetime import time
from typing import Optional, Sequence

import structlog
from sqlalchemy import delete, func, select, update
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from localoco.core.database import fetch_concurrently
from localoco.core.errors import BusinessRuleError, LocalocoError, NotFoundError, StoreError
from localoco.models.business import Business, BusinessOpeningHours, BusinessPaymentOption
from localoco.models.review import BusinessReview
from localoco.models.user import User
from localoco.schemas.business import (
    BusinessCreate,
    BusinessFilter,
    BusinessNameMatch,
    BusinessResponse,
    BusinessUpdate,
    HourEntry,
)
from localoco.services.filters import (
    build_filter_conditions,
    build_sort_clause,
    compile_conditions,
)
from localoco.utils.validation import sanitize_business_name

# Columns a client may clear by sending null
NULLABLE_COLUMNS = {"email", "phone_number", "website_url", "social_media_url"}


def average_rating(ratings: Sequence[int]) -> int:
    """Mean rating rounded to the nearest star, halves up. 0 when unrated."""
    if not ratings:
        return 0
    return math.floor(sum(ratings) / len(ratings) + 0.5)


def _format_clock(value: time) -> str:
    return value.strftime("%H:%M")


def _opening_hour_rows(uen: str, schedule: dict) -> list[BusinessOpeningHours]:
    return [
        BusinessOpeningHours(
            uen=uen,
            day_of_week=day.value,
            open_time=time.fromisoformat(entry.open),
            close_time=time.fromisoformat(entry.close),
        )
        for day, entry in schedule.items()
    ]


def _payment_option_rows(uen: str, options: list) -> list[BusinessPaymentOption]:
    return [
        BusinessPaymentOption(uen=uen, payment_option=option.value)
        for option in dict.fromkeys(options)
    ]


class BusinessService:
    """Service layer for the business directory."""

    def __init__(self, logger=None):
        self.logger = logger or structlog.get_logger(__name__)

    async def register_business(
        self, db: AsyncSession, business_data: BusinessCreate
    ) -> BusinessResponse:
        """Register a business and flag its owner, all in one transaction.

        Opening hours are only stored for businesses that are not open 24/7.
        """
        uen = business_data.uen
        try:
            existing = await db.execute(select(Business.uen).where(Business.uen == uen))
            if existing.scalar_one_or_none():
                raise BusinessRuleError(f"Business with UEN {uen} already exists")

            owner_result = await db.execute(
                update(User)
                .where(User.id == business_data.owner_id)
                .values(has_business=True)
            )
            if owner_result.rowcount == 0:
                raise NotFoundError(f"Owner {business_data.owner_id} not found")

            business_dict = business_data.model_dump(
                exclude={"payment_options", "opening_hours"}
            )
            business_dict["price_tier"] = business_data.price_tier.value

            business = Business(**business_dict)
            business.payment_options = _payment_option_rows(
                uen, business_data.payment_options
            )
            if not business_data.open247 and business_data.opening_hours:
                business.opening_hours = _opening_hour_rows(
                    uen, business_data.opening_hours
                )

            db.add(business)
            await db.commit()

            self.logger.info(
                "Business registered successfully",
                uen=uen,
                owner_id=business_data.owner_id,
                open247=business_data.open247,
            )

        except LocalocoError:
            await db.rollback()
            raise
        except IntegrityError as e:
            await db.rollback()
            self.logger.error(
                "Failed to register business due to integrity constraint",
                uen=uen,
                error=str(e),
            )
            raise BusinessRuleError(f"Business with UEN {uen} may already exist")
        except SQLAlchemyError as e:
            await db.rollback()
            self.logger.error("Failed to register business", uen=uen, error=str(e))
            raise StoreError("Failed to register business") from e

        return await self.get_business_by_uen(db, uen)

    async def get_all_businesses(self, db: AsyncSession) -> list[BusinessResponse]:
        """Every business, newest first."""
        result = await db.execute(select(Business).order_by(*build_sort_clause(None, None)))
        return await self._hydrate_businesses(db, result.scalars().all())

    async def get_filtered_businesses(
        self, db: AsyncSession, filters: BusinessFilter
    ) -> list[BusinessResponse]:
        """Businesses matching every supplied filter, sorted as requested."""
        conditions = compile_conditions(build_filter_conditions(filters))

        query = select(Business)
        if conditions:
            query = query.where(*conditions)
        query = query.order_by(*build_sort_clause(filters.sort_by, filters.sort_order))

        result = await db.execute(query)
        businesses = result.scalars().all()

        self.logger.info(
            "Retrieved filtered businesses",
            conditions=len(conditions),
            count=len(businesses),
            sort_by=filters.sort_by,
        )
        return await self._hydrate_businesses(db, businesses)

    async def get_business_by_uen(
        self, db: AsyncSession, uen: str
    ) -> Optional[BusinessResponse]:
        result = await db.execute(
            select(Business)
            .where(Business.uen == uen)
            .execution_options(populate_existing=True)
        )
        business = result.scalar_one_or_none()

        if not business:
            self.logger.warning("Business not found", uen=uen)
            return None

        hydrated = await self._hydrate_businesses(db, [business])
        return hydrated[0]

    async def get_owned_businesses(
        self, db: AsyncSession, owner_id: str
    ) -> list[BusinessResponse]:
        result = await db.execute(
            select(Business)
            .where(Business.owner_id == owner_id)
            .order_by(*build_sort_clause(None, None))
        )
        return await self._hydrate_businesses(db, result.scalars().all())

    async def search_business_by_name(
        self, db: AsyncSession, name: str
    ) -> Optional[BusinessNameMatch]:
        """Resolve free text to a single business, most specific match first.

        1. stored name equals the sanitized input, ignoring case
        2. stored name contains the sanitized input
        3. sanitized input contains a sanitized stored name, first one in
           storage order wins

        Stage 3 is a full scan and deliberately permissive.
        """
        sanitized = sanitize_business_name(name)
        if not sanitized:
            return None

        lowered_name = func.lower(Business.business_name)

        exact = await db.execute(
            select(Business.uen, Business.business_name)
            .where(lowered_name == sanitized)
            .limit(1)
        )
        row = exact.first()
        if row:
            return BusinessNameMatch(uen=row.uen, name=row.business_name)

        partial = await db.execute(
            select(Business.uen, Business.business_name)
            .where(lowered_name.contains(sanitized, autoescape=True))
            .limit(1)
        )
        row = partial.first()
        if row:
            return BusinessNameMatch(uen=row.uen, name=row.business_name)

        everything = await db.execute(select(Business.uen, Business.business_name))
        for row in everything:
            stored = sanitize_business_name(row.business_name)
            if stored and stored in sanitized:
                return BusinessNameMatch(uen=row.uen, name=row.business_name)

        return None

    async def update_business(
        self, db: AsyncSession, uen: str, business_update: BusinessUpdate
    ) -> BusinessResponse:
        """Apply sent fields and replace payment options and hours wholesale.

        A non-empty ``payment_options`` list replaces the stored set. A business
        that ends up open 24/7 loses its opening hours, otherwise a sent
        ``opening_hours`` map replaces the stored schedule.
        """
        update_data = business_update.model_dump(
            exclude_unset=True, exclude={"payment_options", "opening_hours"}
        )
        update_data = {
            key: value
            for key, value in update_data.items()
            if value is not None or key in NULLABLE_COLUMNS
        }
        if update_data.get("price_tier") is not None:
            update_data["price_tier"] = business_update.price_tier.value

        try:
            current = await db.execute(select(Business.open247).where(Business.uen == uen))
            current_open247 = current.scalar_one_or_none()
            if current_open247 is None:
                raise NotFoundError(f"Business {uen} not found")

            if update_data:
                await db.execute(
                    update(Business).where(Business.uen == uen).values(**update_data)
                )

            if business_update.payment_options:
                await db.execute(
                    delete(BusinessPaymentOption).where(BusinessPaymentOption.uen == uen)
                )
                db.add_all(_payment_option_rows(uen, business_update.payment_options))

            open247 = update_data.get("open247", current_open247)
            if open247:
                await db.execute(
                    delete(BusinessOpeningHours).where(BusinessOpeningHours.uen == uen)
                )
            elif business_update.opening_hours is not None:
                await db.execute(
                    delete(BusinessOpeningHours).where(BusinessOpeningHours.uen == uen)
                )
                db.add_all(_opening_hour_rows(uen, business_update.opening_hours))

            await db.commit()

            self.logger.info(
                "Business updated successfully",
                uen=uen,
                fields=sorted(update_data),
                replaced_payment_options=bool(business_update.payment_options),
            )

        except LocalocoError:
            await db.rollback()
            raise
        except IntegrityError as e:
            await db.rollback()
            self.logger.error(
                "Failed to update business due to integrity constraint",
                uen=uen,
                error=str(e),
            )
            raise BusinessRuleError(f"Update of business {uen} violates a constraint")
        except SQLAlchemyError as e:
            await db.rollback()
            self.logger.error("Failed to update business", uen=uen, error=str(e))
            raise StoreError("Failed to update business") from e

        return await self.get_business_by_uen(db, uen)

    async def delete_business(self, db: AsyncSession, uen: str) -> None:
        """Delete a business; payment options, hours and reviews cascade."""
        try:
            result = await db.execute(delete(Business).where(Business.uen == uen))
            if result.rowcount == 0:
                raise NotFoundError(f"Business {uen} not found")
            await db.commit()
        except LocalocoError:
            await db.rollback()
            raise
        except SQLAlchemyError as e:
            await db.rollback()
            self.logger.error("Failed to delete business", uen=uen, error=str(e))
            raise StoreError("Failed to delete business") from e

        self.logger.info("Business deleted successfully", uen=uen)

    async def check_uen_exists(self, db: AsyncSession, uen: str) -> bool:
        result = await db.execute(select(Business.uen).where(Business.uen == uen))
        return result.scalar_one_or_none() is not None

    async def _hydrate_businesses(
        self, db: AsyncSession, businesses: Sequence[Business]
    ) -> list[BusinessResponse]:
        """Attach payment options, opening hours and average rating.

        Three batched reads run concurrently instead of one query per business.
        Opening hours are only read for businesses that are not open 24/7, and
        not at all when every business is. Output order matches input order.
        """
        if not businesses:
            return []

        uens = [business.uen for business in businesses]
        timed_uens = [business.uen for business in businesses if not business.open247]

        payment_stmt = (
            select(BusinessPaymentOption.uen, BusinessPaymentOption.payment_option)
            .where(BusinessPaymentOption.uen.in_(uens))
            .order_by(BusinessPaymentOption.id)
        )
        hours_stmt = None
        if timed_uens:
            hours_stmt = (
                select(
                    BusinessOpeningHours.uen,
                    BusinessOpeningHours.day_of_week,
                    BusinessOpeningHours.open_time,
                    BusinessOpeningHours.close_time,
                )
                .where(BusinessOpeningHours.uen.in_(timed_uens))
                .order_by(BusinessOpeningHours.id)
            )
        ratings_stmt = select(BusinessReview.uen, BusinessReview.rating).where(
            BusinessReview.uen.in_(uens)
        )

        payment_rows, hour_rows, rating_rows = await fetch_concurrently(
            db, payment_stmt, hours_stmt, ratings_stmt
        )

        payment_options: dict[str, list[str]] = {}
        for row in payment_rows:
            payment_options.setdefault(row.uen, []).append(row.payment_option)

        opening_hours: dict[str, dict[str, HourEntry]] = {}
        for row in hour_rows:
            opening_hours.setdefault(row.uen, {})[row.day_of_week] = HourEntry(
                open=_format_clock(row.open_time), close=_format_clock(row.close_time)
            )

        ratings: dict[str, list[int]] = {}
        for row in rating_rows:
            ratings.setdefault(row.uen, []).append(int(row.rating))

        return [
            BusinessResponse(
                uen=business.uen,
                owner_id=business.owner_id,
                business_name=business.business_name,
                business_category=business.business_category,
                description=business.description,
                address=business.address,
                latitude=business.latitude,
                longitude=business.longitude,
                open247=business.open247,
                opening_hours=(
                    {} if business.open247 else opening_hours.get(business.uen, {})
                ),
                email=business.email,
                phone_number=business.phone_number,
                website_url=business.website_url,
                social_media_url=business.social_media_url,
                wallpaper_url=business.wallpaper_url,
                price_tier=business.price_tier,
                offers_delivery=business.offers_delivery,
                offers_pickup=business.offers_pickup,
                payment_options=payment_options.get(business.uen, []),
                avg_rating=average_rating(ratings.get(business.uen, [])),
                created_at=business.created_at,
                updated_at=business.updated_at,
            )
            for business in businesses
        ]


business_service = BusinessService()
