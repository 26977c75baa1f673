import uuid
from sqlalchemy.orm import Session
from sqlalchemy import delete

from esep.db.models import Announcement, Utility
from esep.utils.logging import get_logger

logger = get_logger()


def seed_content(db_session: Session):
    """Sync version: Seed announcements and useful links for the public page"""

    db_session.execute(delete(Announcement))
    db_session.execute(delete(Utility))

    announcements = [
        Announcement(
            id=str(uuid.uuid4()),
            title="Registrations open",
            content="Registrations for all categories are open at the panchayath help desks.",
        ),
        Announcement(
            id=str(uuid.uuid4()),
            title="Offer fees",
            content="Reduced offer fees apply to registrations approved this month.",
        ),
    ]
    utilities = [
        Utility(
            id=str(uuid.uuid4()),
            name="Kerala Government Portal",
            url="https://kerala.gov.in",
            description="Official state government portal",
        ),
        Utility(
            id=str(uuid.uuid4()),
            name="Kudumbashree",
            url="https://www.kudumbashree.org",
            description="State poverty eradication mission",
        ),
    ]

    db_session.add_all(announcements + utilities)
    db_session.commit()
    logger.info(
        f"Seeded {len(announcements)} announcements and {len(utilities)} useful links"
    )
