import pytest

from sqlalchemy import select
from sqlalchemy.orm import Session

from esep.db.models import Permission, UserPermission
from esep.schemas.permission_schemas import CreateAdminUserRequest
from esep.services.permission_service import (
    PermissionService,
    MANAGE_REGISTRATIONS,
    VIEW_REPORTS,
    MANAGE_ACCOUNTS,
)
from esep.utils.errors import DuplicateError, NotFoundError


class TestPermissionsFor:
    """Test capability resolution."""

    @pytest.mark.asyncio
    async def test_super_admin_holds_every_active_permission(
        self, db_session: Session, super_admin, permissions
    ):
        service = PermissionService(db_session)

        granted = await service.permissions_for(super_admin)

        assert granted == set(permissions)
        assert db_session.execute(select(UserPermission)).first() is None

    @pytest.mark.asyncio
    async def test_inactive_permissions_are_never_held(
        self, db_session: Session, super_admin, staff_admin, permissions
    ):
        service = PermissionService(db_session)
        await service.grant(staff_admin.id, permissions[VIEW_REPORTS].id, "eva")
        permissions[VIEW_REPORTS].is_active = False
        db_session.commit()

        assert VIEW_REPORTS not in await service.permissions_for(super_admin)
        assert await service.permissions_for(staff_admin) == set()

    @pytest.mark.asyncio
    async def test_regular_admin_holds_only_grants(
        self, db_session: Session, staff_admin, permissions
    ):
        service = PermissionService(db_session)
        assert await service.permissions_for(staff_admin) == set()

        await service.grant(staff_admin.id, permissions[VIEW_REPORTS].id, "eva")

        assert await service.permissions_for(staff_admin) == {VIEW_REPORTS}
        assert await service.has_any(staff_admin, [VIEW_REPORTS, MANAGE_ACCOUNTS])
        assert not await service.has_any(staff_admin, [MANAGE_REGISTRATIONS])

    @pytest.mark.asyncio
    async def test_deactivated_admin_loses_grants(
        self, db_session: Session, staff_admin, permissions
    ):
        service = PermissionService(db_session)
        await service.grant(staff_admin.id, permissions[VIEW_REPORTS].id, "eva")
        staff_admin.is_active = False
        db_session.commit()

        assert await service.permissions_for(staff_admin) == set()


class TestGrantAndRevoke:
    """Test grant and revoke."""

    @pytest.mark.asyncio
    async def test_duplicate_grant_is_rejected(
        self, db_session: Session, staff_admin, permissions
    ):
        service = PermissionService(db_session)
        permission = permissions[MANAGE_REGISTRATIONS]
        await service.grant(staff_admin.id, permission.id, "eva")

        with pytest.raises(DuplicateError) as exc_info:
            await service.grant(staff_admin.id, permission.id, "eva")

        assert exc_info.value.error_code == "PERMISSION_ALREADY_GRANTED"

    @pytest.mark.asyncio
    async def test_grant_records_grantor(
        self, db_session: Session, staff_admin, permissions
    ):
        service = PermissionService(db_session)

        grant = await service.grant(
            staff_admin.id, permissions[MANAGE_ACCOUNTS].id, "eva"
        )

        assert grant.granted_by == "eva"
        assert grant.granted_at is not None

    @pytest.mark.asyncio
    async def test_grant_unknown_permission(
        self, db_session: Session, staff_admin, permissions
    ):
        service = PermissionService(db_session)

        with pytest.raises(NotFoundError) as exc_info:
            await service.grant(
                staff_admin.id, "00000000-0000-0000-0000-000000000000", "eva"
            )

        assert exc_info.value.error_code == "PERMISSION_NOT_FOUND"

    @pytest.mark.asyncio
    async def test_revoke_removes_exactly_one_grant(
        self, db_session: Session, staff_admin, permissions
    ):
        service = PermissionService(db_session)
        reports = await service.grant(staff_admin.id, permissions[VIEW_REPORTS].id, "eva")
        await service.grant(staff_admin.id, permissions[MANAGE_ACCOUNTS].id, "eva")

        assert await service.revoke(reports.id) is True

        assert await service.permissions_for(staff_admin) == {MANAGE_ACCOUNTS}
        remaining = db_session.execute(select(UserPermission)).scalars().all()
        assert len(remaining) == 1

    @pytest.mark.asyncio
    async def test_revoke_absent_grant_is_a_no_op(
        self, db_session: Session, staff_admin, permissions
    ):
        service = PermissionService(db_session)
        grant = await service.grant(staff_admin.id, permissions[VIEW_REPORTS].id, "eva")
        await service.revoke(grant.id)

        assert await service.revoke(grant.id) is False

    @pytest.mark.asyncio
    async def test_list_grants_searches_name_and_permission(
        self, db_session: Session, staff_admin, make_admin, permissions
    ):
        other = make_admin("meera")
        service = PermissionService(db_session)
        await service.grant(staff_admin.id, permissions[VIEW_REPORTS].id, "eva")
        await service.grant(other.id, permissions[MANAGE_ACCOUNTS].id, "eva")

        by_name = await service.list_grants(search="meera")
        by_permission = await service.list_grants(search="reports")

        assert [g.username for g in by_name] == ["meera"]
        assert [g.permission_name for g in by_permission] == [VIEW_REPORTS]


class TestAdminUsers:
    """Test admin account creation."""

    @pytest.mark.asyncio
    async def test_create_admin_with_initial_grants(
        self, db_session: Session, permissions
    ):
        service = PermissionService(db_session)
        request = CreateAdminUserRequest(
            username="  Rahul ",
            full_name="Rahul Nair",
            password="s3cret-pass",
            permission_ids=[permissions[VIEW_REPORTS].id],
        )

        admin = await service.create_admin_user(request, "eva")

        assert admin.username == "rahul"
        assert admin.is_super_admin is False
        assert await service.permissions_for(admin) == {VIEW_REPORTS}

    @pytest.mark.asyncio
    async def test_username_must_be_unique(
        self, db_session: Session, staff_admin, permissions
    ):
        service = PermissionService(db_session)
        request = CreateAdminUserRequest(
            username="ANIL", full_name="Another Anil", password="s3cret-pass"
        )

        with pytest.raises(DuplicateError) as exc_info:
            await service.create_admin_user(request, "eva")

        assert exc_info.value.error_code == "USERNAME_TAKEN"


def test_permission_catalogue_is_seeded_once(db_session: Session, permissions):
    from esep.db.seeds.permissions_seed import seed_permissions, PERMISSION_CATALOGUE

    seed_permissions(db_session)

    names = db_session.execute(select(Permission.name)).scalars().all()
    assert sorted(names) == sorted(PERMISSION_CATALOGUE)
