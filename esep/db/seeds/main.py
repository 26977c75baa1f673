"""
Main seeding file that orchestrates all database seeding operations.

Runs seeding functions in the correct dependency order to ensure
referential integrity is maintained.
"""

from esep.db.session import SessionLocal
from esep.utils.logging import get_logger

# Import all seeding functions
from .permissions_seed import seed_permissions
from .admin_users_seed import seed_admin_users
from .categories_seed import seed_categories
from .panchayaths_seed import seed_panchayaths
from .cash_accounts_seed import seed_cash_accounts
from .content_seed import seed_content

logger = get_logger()


def seed_all_data():
    """
    Sync version: Seed all database tables in the correct dependency order.

    Announcements and useful links are cleared and reseeded. Everything else
    is only added when missing, so registrations, grants and ledger history
    survive a reseed.
    """

    db_session = SessionLocal()
    try:
        logger.info("Starting database seeding...")

        # Phase 1: Access control
        logger.info("Phase 1: Seeding permissions and the super admin...")
        seed_permissions(db_session)
        seed_admin_users(db_session)

        # Phase 2: Registration catalogue
        logger.info("Phase 2: Seeding categories and panchayaths...")
        seed_categories(db_session)
        seed_panchayaths(db_session)

        # Phase 3: Ledger and public content
        logger.info("Phase 3: Seeding cash accounts and public content...")
        seed_cash_accounts(db_session)
        seed_content(db_session)

        logger.info("Database seeding completed successfully!")
        return True

    except Exception as e:
        logger.error(f"Database seeding failed: {str(e)}")
        db_session.rollback()
        raise e
    finally:
        db_session.close()
