from fastapi import APIRouter, Depends, Request
from sqlalchemy import text
from sqlalchemy.orm import Session

from esep.config.settings import settings
from esep.db.session import get_sync_session
from esep.utils.responses import ResponseBuilder

health_router = APIRouter()


@health_router.get("/")
async def health_check(request: Request, db: Session = Depends(get_sync_session)):
    """
    Basic health check endpoint

    Returns application status and whether the database answers
    """
    db.execute(text("SELECT 1"))
    return ResponseBuilder.success(
        request=request,
        data={
            "status": "healthy",
            "service": settings.NAME,
            "version": settings.VERSION,
            "database": "reachable",
        },
        message="Service is running",
    )
