import uuid
from sqlalchemy.orm import Session
from sqlalchemy import select

from esep.config.settings import settings
from esep.db.models import AdminUser
from esep.utils.auth import AuthUtils
from esep.utils.logging import get_logger

logger = get_logger()


def seed_admin_users(db_session: Session):
    """Sync version: Create the super admin from settings when absent"""

    username = settings.SUPER_ADMIN_USERNAME.strip().lower()
    existing = db_session.execute(
        select(AdminUser).where(AdminUser.username == username)
    ).scalar_one_or_none()
    if existing:
        logger.info(f"Super admin {username} already exists")
        return

    admin = AdminUser(
        id=str(uuid.uuid4()),
        username=username,
        full_name=settings.SUPER_ADMIN_FULL_NAME,
        email=settings.SUPER_ADMIN_EMAIL,
        password_hash=AuthUtils.hash_password(settings.SUPER_ADMIN_PASSWORD),
        is_active=True,
        is_super_admin=True,
        access_token_version=0,
    )

    db_session.add(admin)
    db_session.commit()
    logger.info(f"Seeded super admin: {admin.full_name} ({username})")
