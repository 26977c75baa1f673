from fastapi import APIRouter

from .catalogue import catalogue_router
from .registrations import public_registrations_router
from .content import content_router

public_router = APIRouter()

# Include sub-routers
public_router.include_router(catalogue_router, tags=["Public - Catalogue"])
public_router.include_router(
    public_registrations_router,
    prefix="/registrations",
    tags=["Public - Registrations"],
)
public_router.include_router(content_router, tags=["Public - Content"])
