from datetime import datetime, timezone
from typing import Optional

import structlog
from sqlalchemy import delete, func, select, update
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from localoco.core.config import settings
from localoco.core.errors import (
    BusinessRuleError,
    InputValidationError,
    LocalocoError,
    NotFoundError,
    StoreError,
)
from localoco.models.referral import Referral, ReferralStatus, Voucher, VoucherStatus
from localoco.models.review import BusinessReview
from localoco.models.user import User, UserPoints
from localoco.schemas.review import ReviewResponse
from localoco.schemas.user import (
    ReferralResponse,
    UserProfileResponse,
    UserResponse,
    UserUpdate,
    VoucherPage,
    VoucherResponse,
)
from localoco.utils.dates import add_months
from localoco.utils.db import ensure_rows_affected


def _voucher_response(voucher: Voucher, referral_code: Optional[str]) -> VoucherResponse:
    response = VoucherResponse.model_validate(voucher)
    return response.model_copy(update={"referral_code": referral_code})


def _vouchers_query(user_id: str, status: Optional[str] = None):
    query = (
        select(Voucher, Referral.referral_code)
        .outerjoin(Referral, Referral.ref_id == Voucher.ref_id)
        .where(Voucher.user_id == user_id)
    )
    if status:
        query = query.where(Voucher.status == status)
    return query.order_by(Voucher.issued_at.desc(), Voucher.voucher_id.desc())


class UserService:
    """Service layer for user profiles, referrals and vouchers."""

    def __init__(self, logger=None):
        self.logger = logger or structlog.get_logger(__name__)

    async def _get_user(self, db: AsyncSession, user_id: str) -> User:
        result = await db.execute(
            select(User)
            .where(User.id == user_id)
            .execution_options(populate_existing=True)
        )
        user = result.scalar_one_or_none()
        if not user:
            self.logger.warning("User not found", user_id=user_id)
            raise NotFoundError(f"User {user_id} not found")
        return user

    async def get_user_by_id(self, db: AsyncSession, user_id: str) -> UserProfileResponse:
        """Profile with vouchers, points, authored reviews and referral count."""
        user = await self._get_user(db, user_id)

        vouchers = await db.execute(_vouchers_query(user_id))

        points = await db.execute(
            select(UserPoints.points).where(UserPoints.email == user.email)
        )

        reviews = await db.execute(
            select(BusinessReview)
            .where(BusinessReview.email == user.email)
            .order_by(BusinessReview.created_at.desc(), BusinessReview.id.desc())
        )

        successful_referrals = await db.execute(
            select(func.count())
            .select_from(Referral)
            .where(
                Referral.referrer_id == user_id,
                Referral.status == ReferralStatus.CLAIMED.value,
            )
        )

        return UserProfileResponse(
            profile=UserResponse.model_validate(user),
            vouchers=[_voucher_response(v, code) for v, code in vouchers.all()],
            points=points.scalar_one_or_none() or 0,
            reviews=[
                ReviewResponse.model_validate(review).model_copy(
                    update={"user_name": user.name, "user_image": user.image_url}
                )
                for review in reviews.scalars().all()
            ],
            successful_referrals=successful_referrals.scalar_one(),
        )

    async def update_profile(
        self, db: AsyncSession, user_id: str, profile: UserUpdate
    ) -> UserResponse:
        try:
            result = await db.execute(
                update(User).where(User.id == user_id).values(**profile.model_dump())
            )
            ensure_rows_affected(result, f"User {user_id} not found", NotFoundError)
            await db.commit()
        except LocalocoError:
            await db.rollback()
            raise
        except IntegrityError as e:
            await db.rollback()
            self.logger.error(
                "Failed to update profile due to integrity constraint",
                user_id=user_id,
                error=str(e),
            )
            raise BusinessRuleError(f"Email {profile.email} is already in use")
        except SQLAlchemyError as e:
            await db.rollback()
            self.logger.error("Failed to update profile", user_id=user_id, error=str(e))
            raise StoreError("Failed to update user profile") from e

        self.logger.info("Profile updated successfully", user_id=user_id)
        return UserResponse.model_validate(await self._get_user(db, user_id))

    async def delete_profile(self, db: AsyncSession, user_id: str) -> None:
        """Delete a user; owned businesses, reviews, vouchers and bookmarks cascade."""
        try:
            result = await db.execute(delete(User).where(User.id == user_id))
            ensure_rows_affected(result, f"User {user_id} not found", NotFoundError)
            await db.commit()
        except LocalocoError:
            await db.rollback()
            raise
        except SQLAlchemyError as e:
            await db.rollback()
            self.logger.error("Failed to delete profile", user_id=user_id, error=str(e))
            raise StoreError("Failed to delete user profile") from e

        self.logger.info("Profile deleted successfully", user_id=user_id)

    async def handle_referral(
        self, db: AsyncSession, referral_code: str, referred_id: str
    ) -> ReferralResponse:
        """Redeem ``referral_code`` for ``referred_id``.

        Preconditions are checked in order: the code belongs to a user, that
        user is not the referred user, and the referred user has never been
        referred. Then, in a single transaction, a claimed referral and one
        voucher for each side are written and the referred user is linked to
        the referrer. Vouchers expire one calendar month after issuance,
        clamped to the end of a shorter month.
        """
        referrer_result = await db.execute(
            select(User.id).where(User.referral_code == referral_code)
        )
        referrer_id = referrer_result.scalar_one_or_none()
        if referrer_id is None:
            raise NotFoundError("Referral code is invalid")

        if referrer_id == referred_id:
            raise BusinessRuleError("Self-referral is not allowed")

        referred_result = await db.execute(
            select(User.id, User.referred_by_user_id).where(User.id == referred_id)
        )
        referred = referred_result.first()
        if referred is None:
            raise NotFoundError(f"User {referred_id} not found")
        if referred.referred_by_user_id is not None:
            raise BusinessRuleError("User has already been referred")

        now = datetime.now(timezone.utc)
        expires_at = add_months(now, 1)

        try:
            referral = Referral(
                referrer_id=referrer_id,
                referred_id=referred_id,
                referral_code=referral_code,
                status=ReferralStatus.CLAIMED.value,
                referred_at=now,
            )
            db.add(referral)
            await db.flush()

            vouchers = [
                Voucher(
                    user_id=owner_id,
                    ref_id=referral.ref_id,
                    amount=settings.REFERRAL_VOUCHER_AMOUNT,
                    status=VoucherStatus.ISSUED.value,
                    issued_at=now,
                    expires_at=expires_at,
                )
                for owner_id in (referred_id, referrer_id)
            ]
            db.add_all(vouchers)

            # Guarded on NULL so a concurrent redemption cannot relink the user
            link_result = await db.execute(
                update(User)
                .where(User.id == referred_id, User.referred_by_user_id.is_(None))
                .values(referred_by_user_id=referrer_id)
            )
            ensure_rows_affected(
                link_result, "User has already been referred", BusinessRuleError
            )

            await db.commit()

        except LocalocoError:
            await db.rollback()
            raise
        except IntegrityError as e:
            await db.rollback()
            self.logger.error(
                "Referral rejected by integrity constraint",
                referrer_id=referrer_id,
                referred_id=referred_id,
                error=str(e),
            )
            raise BusinessRuleError("Referral between these users already exists")
        except SQLAlchemyError as e:
            await db.rollback()
            self.logger.error(
                "Failed to record referral",
                referrer_id=referrer_id,
                referred_id=referred_id,
                error=str(e),
            )
            raise StoreError("Failed to record referral") from e

        self.logger.info(
            "Referral recorded",
            ref_id=referral.ref_id,
            referrer_id=referrer_id,
            referred_id=referred_id,
            voucher_ids=[voucher.voucher_id for voucher in vouchers],
        )

        return ReferralResponse(
            ref_id=referral.ref_id,
            referrer_id=referrer_id,
            referred_id=referred_id,
            referral_code=referral_code,
            status=referral.status,
            referred_at=now,
            vouchers=[_voucher_response(v, referral_code) for v in vouchers],
        )

    async def get_user_vouchers(
        self,
        db: AsyncSession,
        user_id: str,
        status: Optional[str] = None,
        page: int = 1,
        limit: int = 100,
    ) -> VoucherPage:
        """Vouchers of a user, newest first, optionally by status."""
        if page < 1 or limit < 1:
            raise InputValidationError(
                f"page and limit must be positive, got page={page} limit={limit}"
            )

        total_query = select(func.count()).select_from(Voucher).where(Voucher.user_id == user_id)
        if status:
            total_query = total_query.where(Voucher.status == status)
        total = (await db.execute(total_query)).scalar_one()

        result = await db.execute(
            _vouchers_query(user_id, status).offset((page - 1) * limit).limit(limit)
        )

        return VoucherPage(
            vouchers=[_voucher_response(v, code) for v, code in result.all()],
            total=total,
            page=page,
            page_size=limit,
            total_pages=((total - 1) // limit + 1) if total > 0 else 0,
        )

    async def use_voucher(self, db: AsyncSession, voucher_id: int) -> VoucherResponse:
        """Redeem an issued voucher. Any other status is final."""
        voucher = await db.get(Voucher, voucher_id)
        if voucher is None:
            raise NotFoundError(f"Voucher {voucher_id} not found")
        if voucher.status != VoucherStatus.ISSUED.value:
            raise BusinessRuleError(
                f"Voucher {voucher_id} is {voucher.status} and cannot be used"
            )

        try:
            result = await db.execute(
                update(Voucher)
                .where(
                    Voucher.voucher_id == voucher_id,
                    Voucher.status == VoucherStatus.ISSUED.value,
                )
                .values(status=VoucherStatus.USED.value)
            )
            ensure_rows_affected(
                result, f"Voucher {voucher_id} was already used", BusinessRuleError
            )
            await db.commit()
        except LocalocoError:
            await db.rollback()
            raise
        except SQLAlchemyError as e:
            await db.rollback()
            self.logger.error("Failed to use voucher", voucher_id=voucher_id, error=str(e))
            raise StoreError("Failed to update voucher status") from e

        self.logger.info("Voucher used", voucher_id=voucher_id, user_id=voucher.user_id)
        await db.refresh(voucher)
        return VoucherResponse.model_validate(voucher)

    async def check_email_exists(self, db: AsyncSession, email: str) -> bool:
        result = await db.execute(select(User.id).where(User.email == email))
        return result.first() is not None


user_service = UserService()
