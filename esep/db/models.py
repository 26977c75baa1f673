from typing import List, Optional
from datetime import datetime
from decimal import Decimal
import uuid
from sqlalchemy import (
    String,
    Boolean,
    Integer,
    Numeric,
    Text,
    ForeignKey,
    Enum,
    Index,
    UniqueConstraint,
    CheckConstraint,
    DateTime,
    Uuid,
)
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column, relationship
import enum

from esep.utils.datetime_utils import naive_utc_now


class Base(DeclarativeBase):
    pass


def _new_id() -> str:
    return str(uuid.uuid4())


# Enums
class RegistrationStatus(enum.Enum):
    PENDING = "pending"
    APPROVED = "approved"
    REJECTED = "rejected"


class CashTransactionType(enum.Enum):
    CASH_IN = "cash_in"
    CASH_OUT = "cash_out"
    TRANSFER_IN = "transfer_in"
    TRANSFER_OUT = "transfer_out"
    EXPENSE = "expense"


# Base model with common audit fields
class AuditMixin:
    """Mixin for common audit fields"""

    created_at: Mapped[datetime] = mapped_column(
        DateTime, default=naive_utc_now, nullable=False
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime, default=naive_utc_now, onupdate=naive_utc_now
    )


def id_column() -> Mapped[str]:
    return mapped_column(Uuid(as_uuid=False), primary_key=True, default=_new_id)


# Models
class Category(Base, AuditMixin):
    __tablename__ = "categories"

    id: Mapped[str] = id_column()
    name_english: Mapped[str] = mapped_column(String(200), nullable=False)
    name_malayalam: Mapped[str] = mapped_column(String(200), nullable=False)
    description: Mapped[Optional[str]] = mapped_column(Text)
    actual_fee: Mapped[Optional[Decimal]] = mapped_column(Numeric(12, 2))
    offer_fee: Mapped[Optional[Decimal]] = mapped_column(Numeric(12, 2))
    expiry_days: Mapped[Optional[int]] = mapped_column(Integer, default=30)
    is_active: Mapped[bool] = mapped_column(Boolean, default=True, nullable=False)

    # Relationships
    registrations: Mapped[List["Registration"]] = relationship(
        back_populates="category", foreign_keys="Registration.category_id"
    )

    # Constraints
    __table_args__ = (
        CheckConstraint(
            "expiry_days IS NULL OR expiry_days > 0",
            name="ck_categories_expiry_days_positive",
        ),
        CheckConstraint(
            "offer_fee IS NULL OR actual_fee IS NULL OR offer_fee <= actual_fee",
            name="ck_categories_offer_not_above_actual",
        ),
        Index("idx_categories_is_active", "is_active"),
        Index("idx_categories_name_english", "name_english"),
    )


class Panchayath(Base, AuditMixin):
    __tablename__ = "panchayaths"

    id: Mapped[str] = id_column()
    name: Mapped[str] = mapped_column(String(200), nullable=False)
    district: Mapped[str] = mapped_column(String(100), nullable=False)
    is_active: Mapped[bool] = mapped_column(Boolean, default=True, nullable=False)

    # Relationships
    registrations: Mapped[List["Registration"]] = relationship(
        back_populates="panchayath"
    )

    __table_args__ = (
        UniqueConstraint("name", "district", name="uq_panchayaths_name_district"),
        Index("idx_panchayaths_is_active", "is_active"),
    )


class Registration(Base, AuditMixin):
    __tablename__ = "registrations"

    id: Mapped[str] = id_column()
    customer_id: Mapped[str] = mapped_column(String(40), unique=True, nullable=False)
    full_name: Mapped[str] = mapped_column(String(200), nullable=False)
    mobile_number: Mapped[str] = mapped_column(String(20), nullable=False)
    address: Mapped[str] = mapped_column(Text, nullable=False)
    ward: Mapped[str] = mapped_column(String(100), nullable=False)
    agent: Mapped[Optional[str]] = mapped_column(String(200))
    category_id: Mapped[str] = mapped_column(
        Uuid(as_uuid=False), ForeignKey("categories.id"), nullable=False
    )
    preference_category_id: Mapped[Optional[str]] = mapped_column(
        Uuid(as_uuid=False), ForeignKey("categories.id")
    )
    panchayath_id: Mapped[Optional[str]] = mapped_column(
        Uuid(as_uuid=False), ForeignKey("panchayaths.id")
    )
    fee: Mapped[Optional[Decimal]] = mapped_column(Numeric(12, 2), default=0)
    status: Mapped[RegistrationStatus] = mapped_column(
        Enum(RegistrationStatus), default=RegistrationStatus.PENDING, nullable=False
    )
    approved_date: Mapped[Optional[datetime]] = mapped_column(DateTime)
    approved_by: Mapped[Optional[str]] = mapped_column(String(100))
    expiry_date: Mapped[Optional[datetime]] = mapped_column(DateTime)
    payment_verified: Mapped[Optional[bool]] = mapped_column(Boolean)
    verified_by: Mapped[Optional[str]] = mapped_column(String(100))
    verified_at: Mapped[Optional[datetime]] = mapped_column(DateTime)
    # Maintained by the ORM; every UPDATE checks and bumps it
    version: Mapped[int] = mapped_column(Integer, nullable=False)

    # Relationships
    category: Mapped[Optional["Category"]] = relationship(
        back_populates="registrations", foreign_keys=[category_id]
    )
    preference_category: Mapped[Optional["Category"]] = relationship(
        foreign_keys=[preference_category_id]
    )
    panchayath: Mapped[Optional["Panchayath"]] = relationship(
        back_populates="registrations"
    )

    # Constraints
    __table_args__ = (
        CheckConstraint(
            "payment_verified IS NOT TRUE OR status = 'APPROVED'",
            name="ck_registrations_verified_only_when_approved",
        ),
        Index("idx_registrations_customer_id", "customer_id"),
        Index("idx_registrations_status", "status"),
        Index("idx_registrations_category_id", "category_id"),
        Index("idx_registrations_panchayath_id", "panchayath_id"),
        Index("idx_registrations_mobile_number", "mobile_number"),
        Index("idx_registrations_approved_date", "approved_date"),
        Index("idx_registrations_expiry_date", "expiry_date"),
    )

    __mapper_args__ = {"version_id_col": version}


class AdminUser(Base, AuditMixin):
    __tablename__ = "admin_users"

    id: Mapped[str] = id_column()
    username: Mapped[str] = mapped_column(String(100), unique=True, nullable=False)
    full_name: Mapped[str] = mapped_column(String(200), nullable=False)
    email: Mapped[Optional[str]] = mapped_column(String(320))
    password_hash: Mapped[str] = mapped_column(String(255), nullable=False)
    is_active: Mapped[bool] = mapped_column(Boolean, default=True, nullable=False)
    is_super_admin: Mapped[bool] = mapped_column(
        Boolean, default=False, nullable=False
    )
    last_login: Mapped[Optional[datetime]] = mapped_column(DateTime)
    # Incremented on login and logout; tokens carrying an older value are rejected
    access_token_version: Mapped[int] = mapped_column(
        Integer, default=0, nullable=False
    )

    # Relationships
    user_permissions: Mapped[List["UserPermission"]] = relationship(
        back_populates="admin_user", cascade="all, delete-orphan"
    )

    __table_args__ = (
        Index("idx_admin_users_username", "username"),
        Index("idx_admin_users_is_active", "is_active"),
    )


class Permission(Base, AuditMixin):
    __tablename__ = "permissions"

    id: Mapped[str] = id_column()
    name: Mapped[str] = mapped_column(String(100), unique=True, nullable=False)
    description: Mapped[Optional[str]] = mapped_column(Text)
    is_active: Mapped[bool] = mapped_column(Boolean, default=True, nullable=False)

    # Relationships
    user_permissions: Mapped[List["UserPermission"]] = relationship(
        back_populates="permission", cascade="all, delete-orphan"
    )

    __table_args__ = (Index("idx_permissions_name", "name"),)


class UserPermission(Base):
    __tablename__ = "user_permissions"

    id: Mapped[str] = id_column()
    admin_user_id: Mapped[str] = mapped_column(
        Uuid(as_uuid=False),
        ForeignKey("admin_users.id", ondelete="CASCADE"),
        nullable=False,
    )
    permission_id: Mapped[str] = mapped_column(
        Uuid(as_uuid=False),
        ForeignKey("permissions.id", ondelete="CASCADE"),
        nullable=False,
    )
    granted_by: Mapped[Optional[str]] = mapped_column(String(100))
    granted_at: Mapped[datetime] = mapped_column(
        DateTime, default=naive_utc_now, nullable=False
    )

    # Relationships
    admin_user: Mapped["AdminUser"] = relationship(back_populates="user_permissions")
    permission: Mapped["Permission"] = relationship(back_populates="user_permissions")

    # Constraints
    __table_args__ = (
        UniqueConstraint(
            "admin_user_id", "permission_id", name="uq_user_perm_user_permission"
        ),
        Index("idx_user_perm_admin_user_id", "admin_user_id"),
        Index("idx_user_perm_permission_id", "permission_id"),
    )


class CashAccount(Base, AuditMixin):
    __tablename__ = "cash_accounts"

    id: Mapped[str] = id_column()
    name: Mapped[str] = mapped_column(String(100), unique=True, nullable=False)
    is_active: Mapped[bool] = mapped_column(Boolean, default=True, nullable=False)
    # Verified registration fees flow into this account
    is_registration_feed: Mapped[bool] = mapped_column(
        Boolean, default=False, nullable=False
    )

    # Relationships
    transactions: Mapped[List["CashTransaction"]] = relationship(
        back_populates="account", order_by="CashTransaction.created_at"
    )


class CashTransaction(Base):
    __tablename__ = "cash_transactions"

    id: Mapped[str] = id_column()
    account_id: Mapped[str] = mapped_column(
        Uuid(as_uuid=False), ForeignKey("cash_accounts.id"), nullable=False
    )
    transaction_type: Mapped[CashTransactionType] = mapped_column(
        Enum(CashTransactionType), nullable=False
    )
    amount: Mapped[Decimal] = mapped_column(Numeric(12, 2), nullable=False)
    description: Mapped[Optional[str]] = mapped_column(Text)
    # Pairs the two legs of a transfer
    reference_id: Mapped[Optional[str]] = mapped_column(String(36))
    created_by: Mapped[str] = mapped_column(String(100), nullable=False)
    created_at: Mapped[datetime] = mapped_column(
        DateTime, default=naive_utc_now, nullable=False
    )

    # Relationships
    account: Mapped["CashAccount"] = relationship(back_populates="transactions")

    __table_args__ = (
        CheckConstraint("amount > 0", name="ck_cash_transactions_amount_positive"),
        Index("idx_cash_transactions_account_id", "account_id"),
        Index("idx_cash_transactions_reference_id", "reference_id"),
    )


class Announcement(Base, AuditMixin):
    __tablename__ = "announcements"

    id: Mapped[str] = id_column()
    title: Mapped[str] = mapped_column(String(300), nullable=False)
    content: Mapped[str] = mapped_column(Text, nullable=False)
    is_active: Mapped[bool] = mapped_column(Boolean, default=True, nullable=False)


class Utility(Base, AuditMixin):
    __tablename__ = "utilities"

    id: Mapped[str] = id_column()
    name: Mapped[str] = mapped_column(String(200), nullable=False)
    url: Mapped[str] = mapped_column(String(1000), nullable=False)
    description: Mapped[Optional[str]] = mapped_column(Text)
    is_active: Mapped[bool] = mapped_column(Boolean, default=True, nullable=False)
