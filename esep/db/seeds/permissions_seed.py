import uuid
from sqlalchemy.orm import Session
from sqlalchemy import select

from esep.db.models import Permission
from esep.services.permission_service import (
    MANAGE_REGISTRATIONS,
    VERIFY_PAYMENTS,
    MANAGE_CATEGORIES,
    MANAGE_PANCHAYATHS,
    VIEW_REPORTS,
    MANAGE_ACCOUNTS,
    MANAGE_PERMISSIONS,
    MANAGE_ANNOUNCEMENTS,
    MANAGE_UTILITIES,
)
from esep.utils.logging import get_logger

logger = get_logger()

PERMISSION_CATALOGUE = {
    MANAGE_REGISTRATIONS: "Review, approve, reject, restore and delete registrations",
    VERIFY_PAYMENTS: "Mark approved registrations as paid",
    MANAGE_CATEGORIES: "Create and edit registration categories",
    MANAGE_PANCHAYATHS: "Maintain the panchayath list",
    VIEW_REPORTS: "View approval reports and exports",
    MANAGE_ACCOUNTS: "Record cash movements and view balances",
    MANAGE_PERMISSIONS: "Grant and revoke admin permissions",
    MANAGE_ANNOUNCEMENTS: "Publish announcements on the public page",
    MANAGE_UTILITIES: "Maintain the useful links list",
}


def seed_permissions(db_session: Session):
    """Sync version: Seed the permission catalogue, adding missing names only"""

    existing = set(db_session.execute(select(Permission.name)).scalars().all())

    permissions = [
        Permission(id=str(uuid.uuid4()), name=name, description=description)
        for name, description in PERMISSION_CATALOGUE.items()
        if name not in existing
    ]

    db_session.add_all(permissions)
    db_session.commit()
    logger.info(
        f"Seeded {len(permissions)} permissions ({len(existing)} already present)"
    )
