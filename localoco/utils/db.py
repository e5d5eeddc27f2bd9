from typing import Type

from localoco.core.errors import LocalocoError, StoreError


def ensure_rows_affected(
    result, message: str, error: Type[LocalocoError] = StoreError
) -> int:
    """Raise ``error`` when a write touched no rows; return the row count."""
    affected = result.rowcount or 0
    if affected <= 0:
        raise error(message)
    return affected
