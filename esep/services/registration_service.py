import re
import secrets
from typing import Optional, List, Tuple
from datetime import datetime, timedelta

from fastapi import Depends
from sqlalchemy.orm import Session, selectinload
from sqlalchemy import select, func, or_

from esep.config.settings import settings
from esep.db.models import Registration, RegistrationStatus, Category, Panchayath
from esep.db.session import get_sync_session
from esep.schemas.registration_schemas import (
    RegistrationCreateRequest,
    RegistrationListQueryParams,
    RegistrationResponse,
    RegistrationStatusResponse,
    ExpiringRegistrationItem,
)
from esep.services.base import BaseService
from esep.services.expiry_utils import ExpiryCalculator
from esep.utils.datetime_utils import naive_utc_now
from esep.utils.errors import (
    ValidationError,
    NotFoundError,
    InvalidTransitionError,
    DuplicateError,
    ConflictError,
)
from esep.utils.logging import get_logger

logger = get_logger()

REQUIRED_FIELDS = {
    "full_name": "Full name",
    "mobile_number": "Mobile number",
    "address": "Address",
    "ward": "Ward",
    "category_id": "Category",
}
MAX_CUSTOMER_ID_ATTEMPTS = 5
MOBILE_PATTERN = re.compile(r"^\+?\d{10,15}$")


class RegistrationService(BaseService):
    """Registration lifecycle: submission, review transitions and read queries"""

    # Lookups
    async def get_registration_by_id(self, registration_id: str) -> Optional[Registration]:
        """Get registration by ID or return None if not found"""
        result = self.db.execute(
            select(Registration)
            .options(
                selectinload(Registration.category),
                selectinload(Registration.preference_category),
                selectinload(Registration.panchayath),
            )
            .where(Registration.id == registration_id)
        )
        return result.scalar_one_or_none()

    async def get_registration(self, registration_id: str) -> Registration:
        registration = await self.get_registration_by_id(registration_id)
        if not registration:
            raise NotFoundError(
                f"Registration {registration_id} not found", "REGISTRATION_NOT_FOUND"
            )
        return registration

    async def get_for_update(
        self, registration_id: str, expected_version: Optional[int] = None
    ) -> Registration:
        """Fetch a registration and check the caller's version before mutating it"""
        registration = await self.get_registration(registration_id)
        if expected_version is not None and registration.version != expected_version:
            raise ConflictError(
                f"Registration {registration.customer_id} is at version "
                f"{registration.version}, expected {expected_version}"
            )
        return registration

    # Submission
    async def submit(self, draft: RegistrationCreateRequest) -> Registration:
        """Validate a citizen submission and store it as pending"""
        values = self._validate_draft(draft)

        category = self.db.get(Category, values["category_id"])
        if not category:
            raise NotFoundError("Selected category does not exist", "CATEGORY_NOT_FOUND")
        if not category.is_active:
            raise ValidationError(
                "Selected category is not accepting registrations", "CATEGORY_INACTIVE"
            )

        if draft.preference_category_id and not self.db.get(
            Category, draft.preference_category_id
        ):
            raise NotFoundError(
                "Preferred category does not exist", "PREFERENCE_CATEGORY_NOT_FOUND"
            )

        if draft.panchayath_id and not self.db.get(Panchayath, draft.panchayath_id):
            raise NotFoundError("Panchayath does not exist", "PANCHAYATH_NOT_FOUND")

        registration = Registration(
            customer_id=await self._generate_customer_id(values["mobile_number"]),
            full_name=values["full_name"],
            mobile_number=values["mobile_number"],
            address=values["address"],
            ward=values["ward"],
            agent=(draft.agent or "").strip() or None,
            category_id=category.id,
            preference_category_id=draft.preference_category_id or None,
            panchayath_id=draft.panchayath_id or None,
            fee=self.default_fee(category),
            status=RegistrationStatus.PENDING,
            expiry_date=None,
        )

        self.db.add(registration)
        self._commit("submit registration", duplicate_code="CUSTOMER_ID_COLLISION")
        self.db.refresh(registration)

        logger.info(
            f"Registration {registration.customer_id} submitted for category {category.name_english}"
        )
        return registration

    @staticmethod
    def default_fee(category: Category):
        """Offer fee when set, otherwise the actual fee, otherwise zero"""
        if category.offer_fee is not None:
            return category.offer_fee
        if category.actual_fee is not None:
            return category.actual_fee
        return 0

    # Transitions
    async def approve(
        self,
        registration_id: str,
        approver: str,
        expected_version: Optional[int] = None,
        now: Optional[datetime] = None,
    ) -> Registration:
        registration = await self.get_for_update(registration_id, expected_version)
        self._require_status(registration, "approve", RegistrationStatus.PENDING)

        now = now or naive_utc_now()
        registration.status = RegistrationStatus.APPROVED
        registration.approved_date = now
        registration.approved_by = approver
        if registration.expiry_date is None:
            # Deleted or deactivated categories fall back to the default window
            category = registration.category
            expiry_days = (
                category.expiry_days if category and category.is_active else None
            )
            registration.expiry_date = ExpiryCalculator.compute_expiry_date(
                now, expiry_days
            )

        self._commit("approve registration")
        logger.info(f"Registration {registration.customer_id} approved by {approver}")
        return registration

    async def reject(
        self,
        registration_id: str,
        approver: str,
        expected_version: Optional[int] = None,
        now: Optional[datetime] = None,
    ) -> Registration:
        registration = await self.get_for_update(registration_id, expected_version)
        self._require_status(registration, "reject", RegistrationStatus.PENDING)

        registration.status = RegistrationStatus.REJECTED
        registration.approved_date = now or naive_utc_now()
        registration.approved_by = approver

        self._commit("reject registration")
        logger.info(f"Registration {registration.customer_id} rejected by {approver}")
        return registration

    async def restore(
        self, registration_id: str, expected_version: Optional[int] = None
    ) -> Registration:
        """Send an approved or rejected registration back to pending.

        Approval and verification fields are cleared; expiry date, fee and
        category are kept.
        """
        registration = await self.get_for_update(registration_id, expected_version)
        self._require_status(
            registration,
            "restore",
            RegistrationStatus.APPROVED,
            RegistrationStatus.REJECTED,
        )

        registration.status = RegistrationStatus.PENDING
        registration.approved_date = None
        registration.approved_by = None
        registration.payment_verified = None
        registration.verified_by = None
        registration.verified_at = None

        self._commit("restore registration")
        logger.info(f"Registration {registration.customer_id} restored to pending")
        return registration

    async def delete(self, registration_id: str) -> None:
        """Hard delete; there is no archive"""
        registration = await self.get_registration(registration_id)
        customer_id = registration.customer_id

        self.db.delete(registration)
        self._commit("delete registration")
        logger.info(f"Registration {customer_id} deleted")

    # Read queries
    async def list_registrations(
        self, query_params: RegistrationListQueryParams, paginate: bool = True
    ) -> Tuple[List[Registration], int]:
        """Filtered registrations, newest first, with the unpaginated total"""
        query = self._build_filtered_query(query_params)

        total = self.db.execute(
            select(func.count()).select_from(query.subquery())
        ).scalar_one()

        query = query.order_by(Registration.created_at.desc()).options(
            selectinload(Registration.category),
            selectinload(Registration.preference_category),
            selectinload(Registration.panchayath),
        )
        if paginate:
            query = query.offset((query_params.page - 1) * query_params.per_page).limit(
                query_params.per_page
            )

        registrations = list(self.db.execute(query).scalars().all())
        return registrations, total

    async def lookup_status(
        self, customer_id: Optional[str] = None, mobile_number: Optional[str] = None
    ) -> List[Registration]:
        """Public lookup by customer ID or mobile number"""
        customer_id = (customer_id or "").strip()
        mobile_number = self._normalize_mobile(mobile_number or "")
        if not customer_id and not mobile_number:
            raise ValidationError(
                "Provide a customer ID or a mobile number", "LOOKUP_KEY_REQUIRED"
            )

        query = select(Registration).options(selectinload(Registration.category))
        if customer_id:
            query = query.where(
                func.upper(Registration.customer_id) == customer_id.upper()
            )
        else:
            query = query.where(Registration.mobile_number == mobile_number)

        registrations = list(
            self.db.execute(query.order_by(Registration.created_at.desc()))
            .scalars()
            .all()
        )
        if not registrations:
            raise NotFoundError("No registration found", "REGISTRATION_NOT_FOUND")
        return registrations

    async def list_expiring_soon(
        self, now: Optional[datetime] = None, window_days: Optional[int] = None
    ) -> List[Registration]:
        """Pending registrations whose expiry falls inside the alert window"""
        now = now or naive_utc_now()
        if window_days is None:
            window_days = settings.EXPIRING_ALERT_WINDOW_DAYS

        result = self.db.execute(
            select(Registration)
            .options(selectinload(Registration.category))
            .where(
                Registration.status == RegistrationStatus.PENDING,
                Registration.expiry_date.is_not(None),
                Registration.expiry_date > now,
                Registration.expiry_date <= now + timedelta(days=window_days),
            )
        )
        return ExpiryCalculator.list_expiring_soon(
            result.scalars().all(), now=now, window_days=window_days
        )

    # Response builders
    @staticmethod
    def to_response(
        registration: Registration, now: Optional[datetime] = None
    ) -> RegistrationResponse:
        now = now or naive_utc_now()
        return RegistrationResponse(
            id=registration.id,
            customer_id=registration.customer_id,
            full_name=registration.full_name,
            mobile_number=registration.mobile_number,
            address=registration.address,
            ward=registration.ward,
            agent=registration.agent,
            category_id=registration.category_id,
            category_name=(
                registration.category.name_english if registration.category else None
            ),
            preference_category_id=registration.preference_category_id,
            preference_category_name=(
                registration.preference_category.name_english
                if registration.preference_category
                else None
            ),
            panchayath_id=registration.panchayath_id,
            panchayath_name=(
                registration.panchayath.name if registration.panchayath else None
            ),
            fee=registration.fee,
            status=registration.status.value,
            created_at=registration.created_at,
            approved_date=registration.approved_date,
            approved_by=registration.approved_by,
            expiry_date=registration.expiry_date,
            payment_verified=registration.payment_verified,
            verified_by=registration.verified_by,
            verified_at=registration.verified_at,
            version=registration.version,
            days_remaining=ExpiryCalculator.days_remaining(registration, now),
            is_expired=ExpiryCalculator.is_expired(registration, now),
        )

    @staticmethod
    def to_status_response(
        registration: Registration, now: Optional[datetime] = None
    ) -> RegistrationStatusResponse:
        return RegistrationStatusResponse(
            customer_id=registration.customer_id,
            full_name=registration.full_name,
            status=registration.status.value,
            category_name=(
                registration.category.name_english if registration.category else None
            ),
            fee=registration.fee,
            created_at=registration.created_at,
            approved_date=registration.approved_date,
            expiry_date=registration.expiry_date,
            days_remaining=ExpiryCalculator.days_remaining(registration, now),
        )

    @staticmethod
    def to_expiring_item(
        registration: Registration, now: Optional[datetime] = None
    ) -> ExpiringRegistrationItem:
        return ExpiringRegistrationItem(
            id=registration.id,
            name=registration.full_name,
            phone=registration.mobile_number,
            esep_id=registration.customer_id,
            category=(
                registration.category.name_english
                if registration.category
                else "Unknown"
            ),
            location=registration.address,
            created_at=registration.created_at,
            days_remaining=ExpiryCalculator.days_remaining(registration, now) or 0,
        )

    # Helper Methods
    def _validate_draft(self, draft: RegistrationCreateRequest) -> dict:
        values = {}
        missing = []
        for field, label in REQUIRED_FIELDS.items():
            value = (getattr(draft, field) or "").strip()
            if not value:
                missing.append(label)
            values[field] = value

        if missing:
            raise ValidationError(
                f"Required fields missing: {', '.join(missing)}", "REQUIRED_FIELDS_MISSING"
            )

        values["mobile_number"] = self._normalize_mobile(values["mobile_number"])
        if not MOBILE_PATTERN.match(values["mobile_number"]):
            raise ValidationError(
                "Mobile number must contain 10 to 15 digits", "INVALID_MOBILE_NUMBER"
            )
        return values

    @staticmethod
    def _normalize_mobile(mobile_number: str) -> str:
        return re.sub(r"[\s\-()]", "", mobile_number.strip())

    async def _generate_customer_id(self, mobile_number: str) -> str:
        """Prefix + 2-digit year + last four mobile digits + random hex suffix"""
        digits = re.sub(r"\D", "", mobile_number)
        year = naive_utc_now().strftime("%y")

        for _ in range(MAX_CUSTOMER_ID_ATTEMPTS):
            candidate = (
                f"{settings.CUSTOMER_ID_PREFIX}{year}{digits[-4:]}"
                f"{secrets.token_hex(2).upper()}"
            )
            exists = self.db.execute(
                select(Registration.id).where(Registration.customer_id == candidate)
            ).first()
            if not exists:
                return candidate
            logger.warning(f"Customer ID collision on {candidate}, retrying")

        raise DuplicateError(
            "Could not generate a unique customer ID", "CUSTOMER_ID_COLLISION"
        )

    @staticmethod
    def _require_status(
        registration: Registration, action: str, *allowed: RegistrationStatus
    ) -> None:
        if registration.status not in allowed:
            raise InvalidTransitionError(
                f"Cannot {action} a registration that is {registration.status.value}",
                f"CANNOT_{action.upper()}_{registration.status.name}",
            )

    def _build_filtered_query(self, query_params):
        query = select(Registration)

        if query_params.status:
            query = query.where(
                Registration.status == RegistrationStatus(query_params.status)
            )
        if query_params.category_id:
            query = query.where(Registration.category_id == query_params.category_id)
        if query_params.panchayath_id:
            query = query.where(
                Registration.panchayath_id == query_params.panchayath_id
            )
        if query_params.search and query_params.search.strip():
            term = query_params.search.strip()
            query = query.where(
                or_(
                    Registration.full_name.icontains(term, autoescape=True),
                    Registration.mobile_number.contains(term, autoescape=True),
                    Registration.customer_id.icontains(term, autoescape=True),
                )
            )
        if query_params.expiring_within_days is not None:
            now = naive_utc_now()
            query = query.where(
                Registration.expiry_date.is_not(None),
                Registration.expiry_date > now,
                Registration.expiry_date
                <= now + timedelta(days=query_params.expiring_within_days),
            )
        return query


def get_registration_service(
    db_session: Session = Depends(get_sync_session),
) -> RegistrationService:
    """Dependency function to get RegistrationService instance"""
    return RegistrationService(db_session)
