from fastapi import APIRouter

from .registrations import registrations_router
from .categories import categories_router
from .panchayaths import panchayaths_router
from .accounts import accounts_router
from .reports import reports_router
from .permissions import permissions_router
from .announcements import announcements_router
from .utilities import utilities_router

admin_router = APIRouter()

# Include sub-routers
admin_router.include_router(
    registrations_router,
    prefix="/registrations",
    tags=["Admin - Registration Management"],
)
admin_router.include_router(
    categories_router, prefix="/categories", tags=["Admin - Category Management"]
)
admin_router.include_router(
    panchayaths_router, prefix="/panchayaths", tags=["Admin - Panchayath Management"]
)
admin_router.include_router(
    accounts_router, prefix="/accounts", tags=["Admin - Cash Accounts"]
)
admin_router.include_router(reports_router, prefix="/reports", tags=["Admin - Reports"])
admin_router.include_router(
    permissions_router, prefix="/permissions", tags=["Admin - Permissions"]
)
admin_router.include_router(
    announcements_router,
    prefix="/announcements",
    tags=["Admin - Announcement Management"],
)
admin_router.include_router(
    utilities_router, prefix="/utilities", tags=["Admin - Utility Management"]
)
