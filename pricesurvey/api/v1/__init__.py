"""
API v1 routes.
"""

from fastapi import APIRouter

from pricesurvey.api.v1 import administrators, auth, operative_users, users

router = APIRouter()

router.include_router(auth.router, prefix="/auth", tags=["Authentication"])
router.include_router(administrators.router, prefix="/administrators", tags=["Administrators"])
router.include_router(operative_users.router, prefix="/operative-users", tags=["Operative Users"])
router.include_router(users.router, prefix="/users", tags=["Users"])
