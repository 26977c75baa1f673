import uuid
from sqlalchemy.orm import Session
from sqlalchemy import select, func

from esep.db.models import Panchayath
from esep.utils.logging import get_logger

logger = get_logger()

PANCHAYATHS = {
    "Malappuram": ["Kondotty", "Areekode", "Edavanna", "Pulikkal"],
    "Kozhikode": ["Feroke", "Kunnamangalam", "Olavanna"],
}


def seed_panchayaths(db_session: Session):
    """Sync version: Seed panchayaths into an empty table"""

    if db_session.execute(select(func.count(Panchayath.id))).scalar_one():
        logger.info("Panchayaths already present, skipping")
        return

    panchayaths = [
        Panchayath(id=str(uuid.uuid4()), name=name, district=district, is_active=True)
        for district, names in PANCHAYATHS.items()
        for name in names
    ]

    db_session.add_all(panchayaths)
    db_session.commit()
    logger.info(
        f"Seeded {len(panchayaths)} panchayaths across {len(PANCHAYATHS)} districts"
    )
