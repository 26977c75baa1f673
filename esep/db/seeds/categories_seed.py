import uuid
from decimal import Decimal
from sqlalchemy.orm import Session
from sqlalchemy import select, func

from esep.db.models import Category
from esep.utils.logging import get_logger

logger = get_logger()


def seed_categories(db_session: Session):
    """Sync version: Seed categories into an empty table"""

    # Registrations reference categories, so an existing catalogue is kept
    if db_session.execute(select(func.count(Category.id))).scalar_one():
        logger.info("Categories already present, skipping")
        return

    # Add new categories
    categories = [
        Category(
            id=str(uuid.uuid4()),
            name_english="Pennyekka",
            name_malayalam="പെണ്ണേക്ക",
            description="Self-employment support for women entrepreneurs.",
            actual_fee=Decimal("500.00"),
            offer_fee=Decimal("300.00"),
            expiry_days=30,
            is_active=True,
        ),
        Category(
            id=str(uuid.uuid4()),
            name_english="Farmelife",
            name_malayalam="ഫാർമെലൈഫ്",
            description="Agriculture, dairy and poultry units.",
            actual_fee=Decimal("400.00"),
            offer_fee=None,
            expiry_days=45,
            is_active=True,
        ),
        Category(
            id=str(uuid.uuid4()),
            name_english="Organelife",
            name_malayalam="ഓർഗനെലൈഫ്",
            description="Organic farming and kitchen garden programme.",
            actual_fee=Decimal("250.00"),
            offer_fee=Decimal("200.00"),
            expiry_days=30,
            is_active=True,
        ),
        Category(
            id=str(uuid.uuid4()),
            name_english="Job Card",
            name_malayalam="ജോബ് കാർഡ്",
            description="General registration giving access to every scheme.",
            actual_fee=Decimal("1000.00"),
            offer_fee=Decimal("600.00"),
            expiry_days=60,
            is_active=True,
        ),
    ]

    db_session.add_all(categories)
    db_session.commit()
    logger.info(f"Seeded {len(categories)} categories")
