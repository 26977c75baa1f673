from sqlalchemy import select, func
from sqlalchemy.orm import Session

from esep.config.settings import settings
from esep.db.models import (
    AdminUser,
    Announcement,
    CashAccount,
    Category,
    Panchayath,
    Permission,
)
from esep.db.seeds.permissions_seed import seed_permissions, PERMISSION_CATALOGUE
from esep.db.seeds.admin_users_seed import seed_admin_users
from esep.db.seeds.categories_seed import seed_categories
from esep.db.seeds.panchayaths_seed import seed_panchayaths, PANCHAYATHS
from esep.db.seeds.cash_accounts_seed import seed_cash_accounts
from esep.db.seeds.content_seed import seed_content


def _count(db_session: Session, model) -> int:
    return db_session.execute(select(func.count()).select_from(model)).scalar_one()


def _seed(db_session: Session):
    seed_permissions(db_session)
    seed_admin_users(db_session)
    seed_categories(db_session)
    seed_panchayaths(db_session)
    seed_cash_accounts(db_session)
    seed_content(db_session)


class TestSeeds:
    """Test initial data seeding."""

    def test_seeding_twice_adds_nothing(self, db_session: Session):
        _seed(db_session)
        _seed(db_session)

        assert _count(db_session, Permission) == len(PERMISSION_CATALOGUE)
        assert _count(db_session, AdminUser) == 1
        assert _count(db_session, Category) == 4
        assert _count(db_session, Panchayath) == sum(
            len(names) for names in PANCHAYATHS.values()
        )
        assert _count(db_session, CashAccount) == 2
        assert _count(db_session, Announcement) == 2

    def test_super_admin_and_feed_account(self, db_session: Session):
        _seed(db_session)

        admin = db_session.execute(select(AdminUser)).scalar_one()
        assert admin.username == settings.SUPER_ADMIN_USERNAME.lower()
        assert admin.is_super_admin is True

        feed = db_session.execute(
            select(CashAccount).where(CashAccount.is_registration_feed == True)
        ).scalar_one()
        assert feed.name == settings.REGISTRATION_FEED_ACCOUNT_NAME

    def test_existing_catalogue_is_kept(self, db_session: Session, sample_category):
        seed_categories(db_session)

        names = db_session.execute(select(Category.name_english)).scalars().all()
        assert names == [sample_category.name_english]
