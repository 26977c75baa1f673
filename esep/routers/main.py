from fastapi import APIRouter

from esep.routers.admin import admin_router
from esep.routers.public import public_router
from esep.routers.shared import shared_router

main_router = APIRouter()

# Include domain-based routers
main_router.include_router(admin_router, prefix="/admin", tags=["Admin"])
main_router.include_router(public_router, prefix="/public", tags=["Public"])
main_router.include_router(shared_router, prefix="/shared", tags=["Shared Services"])
