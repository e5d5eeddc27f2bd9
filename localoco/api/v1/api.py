from fastapi import APIRouter

from localoco.api.v1.endpoints import (
    announcements,
    bookmarks,
    businesses,
    forum,
    reviews,
    users,
)

api_router = APIRouter()

# Business directory endpoints
api_router.include_router(businesses.router, prefix="/businesses", tags=["businesses"])

# User profile, referral and voucher endpoints
api_router.include_router(users.router, prefix="/users", tags=["users"])

# Review endpoints
api_router.include_router(reviews.router, prefix="/reviews", tags=["reviews"])

# Community forum endpoints
api_router.include_router(forum.router, prefix="/forum", tags=["forum"])

# Bookmark endpoints
api_router.include_router(bookmarks.router, prefix="/bookmarks", tags=["bookmarks"])

# Business announcement endpoints
api_router.include_router(
    announcements.router, prefix="/announcements", tags=["announcements"]
)
