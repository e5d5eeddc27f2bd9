# Import all models to ensure they are registered with SQLAlchemy
from . import (
    announcement,
    bookmark,
    business,
    forum,
    referral,
    review,
    user,
)

__all__ = [
    "announcement",
    "bookmark",
    "business",
    "forum",
    "referral",
    "review",
    "user",
]
