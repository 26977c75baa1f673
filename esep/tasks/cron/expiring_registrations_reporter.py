import asyncio
from datetime import datetime
from typing import Optional

from esep.celery import celery
from esep.config.settings import settings
from esep.db.session import get_sync_session
from esep.services.registration_service import RegistrationService
from esep.utils.logging import get_logger
from esep.utils.datetime_utils import naive_utc_now


@celery.task(bind=True, max_retries=3, default_retry_delay=60)
def expiring_registrations_reporter_task(self, request_id: str):
    """
    Daily task that reports pending registrations about to expire.

    Uses the same window as the admin expiring alert and logs one line per
    registration, soonest first, so the morning digest matches the dashboard.

    Args:
        request_id: Request ID for tracking purposes
    """
    return asyncio.run(_async_expiring_registrations_reporter(request_id))


async def _async_expiring_registrations_reporter(
    request_id: str, now: Optional[datetime] = None
):
    logger = get_logger().bind(request_id=request_id)
    now = now or naive_utc_now()
    window_days = settings.EXPIRING_ALERT_WINDOW_DAYS

    for db_session in get_sync_session():
        try:
            logger.info(
                f"Starting expiring registrations reporter ({window_days} day window)"
            )

            registration_service = RegistrationService(db_session)
            registrations = await registration_service.list_expiring_soon(
                now=now, window_days=window_days
            )
            items = [
                RegistrationService.to_expiring_item(registration, now)
                for registration in registrations
            ]

            for item in items:
                logger.info(
                    f"{item.esep_id} {item.name} ({item.category}) expires in "
                    f"{item.days_remaining} day(s)"
                )

            logger.info(
                f"Expiring registrations reporter completed: {len(items)} found"
            )
            return {
                "success": True,
                "expiring_count": len(items),
                "window_days": window_days,
                "customer_ids": [item.esep_id for item in items],
                "request_id": request_id,
            }
        except Exception as e:
            logger.error(
                f"Expiring registrations reporter failed: {str(e)}", exc_info=True
            )
            return {"success": False, "error": str(e), "request_id": request_id}
