from typing import Optional

from sqlalchemy import case, select, update
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from localoco.core.errors import StoreError


def adjust_like_count(count: Optional[int], clicked: bool) -> int:
    """Apply one like (``clicked``) or unlike to a raw counter, floored at 0.

    The counter is not a per-user ledger: nothing stops a caller from
    unliking more often than it liked, the floor only keeps it non-negative.
    """
    current = count or 0
    if clicked:
        return current + 1
    return max(current - 1, 0)


def like_count_expression(column, clicked: bool):
    """SQL counterpart of ``adjust_like_count`` evaluated on the stored value."""
    if clicked:
        return column + 1
    return case((column > 0, column - 1), else_=0)


async def apply_like(
    db: AsyncSession, model, target_id: int, clicked: bool
) -> Optional[int]:
    """Adjust ``like_count`` of one row in place. None when the row is missing.

    The increment runs inside the UPDATE, and the new value is read back
    before commit while the row is still write-locked.
    """
    try:
        result = await db.execute(
            update(model)
            .where(model.id == target_id)
            .values(like_count=like_count_expression(model.like_count, clicked))
            .execution_options(synchronize_session=False)
        )
        if not result.rowcount:
            await db.rollback()
            return None

        like_count = await db.execute(
            select(model.like_count).where(model.id == target_id)
        )
        new_count = like_count.scalar_one()
        await db.commit()
    except SQLAlchemyError as e:
        await db.rollback()
        raise StoreError(f"Failed to update likes of {model.__tablename__} {target_id}") from e

    return new_count
