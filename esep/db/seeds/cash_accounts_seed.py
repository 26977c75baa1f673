import uuid
from sqlalchemy.orm import Session
from sqlalchemy import select

from esep.config.settings import settings
from esep.db.models import CashAccount
from esep.utils.logging import get_logger

logger = get_logger()


def seed_cash_accounts(db_session: Session):
    """Sync version: Create the registration feed account and a bank account"""

    existing = set(db_session.execute(select(CashAccount.name)).scalars().all())

    accounts = []
    if settings.REGISTRATION_FEED_ACCOUNT_NAME not in existing:
        accounts.append(
            CashAccount(
                id=str(uuid.uuid4()),
                name=settings.REGISTRATION_FEED_ACCOUNT_NAME,
                is_registration_feed=True,
            )
        )
    if "Bank" not in existing:
        accounts.append(CashAccount(id=str(uuid.uuid4()), name="Bank"))

    db_session.add_all(accounts)
    db_session.commit()
    logger.info(f"Seeded {len(accounts)} cash accounts")
