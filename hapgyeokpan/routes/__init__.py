"""Route handlers for the community API."""

from fastapi import APIRouter

from hapgyeokpan.routes import (
    admin,
    auth,
    community,
    cutoffs,
    health,
    points,
    profile,
    rankings,
    uploads,
    verification,
)

api_router = APIRouter()
api_router.include_router(auth.router)
api_router.include_router(community.router)
api_router.include_router(rankings.router)
api_router.include_router(cutoffs.router)
api_router.include_router(points.router)
api_router.include_router(profile.router)
api_router.include_router(uploads.router)
api_router.include_router(verification.router)
api_router.include_router(admin.router)

__all__ = ["api_router", "health"]
