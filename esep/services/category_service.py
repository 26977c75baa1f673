from typing import Optional, List

from fastapi import Depends
from sqlalchemy.orm import Session
from sqlalchemy import select, func, or_

from esep.db.models import Category, Registration
from esep.db.session import get_sync_session
from esep.schemas.category_schemas import (
    CreateCategoryRequest,
    UpdateCategoryRequest,
    CategoryListQueryParams,
    CategoryResponse,
)
from esep.services.base import BaseService
from esep.utils.errors import ValidationError, NotFoundError
from esep.utils.logging import get_logger

logger = get_logger()


class CategoryService(BaseService):
    """Service provider for category-related business logic and database operations"""

    # Core CRUD Operations
    async def get_category_by_id(self, category_id: str) -> Optional[Category]:
        """Get category by ID or return None if not found"""
        result = self.db.execute(select(Category).where(Category.id == category_id))
        return result.scalar_one_or_none()

    async def get_category(self, category_id: str) -> Category:
        category = await self.get_category_by_id(category_id)
        if not category:
            raise NotFoundError(f"Category {category_id} not found", "CATEGORY_NOT_FOUND")
        return category

    async def create_category(self, category_data: CreateCategoryRequest) -> Category:
        """Create a new category with fee and expiry validation"""
        self._validate_rules(
            category_data.actual_fee, category_data.offer_fee, category_data.expiry_days
        )

        category = Category(
            name_english=category_data.name_english.strip(),
            name_malayalam=category_data.name_malayalam.strip(),
            description=category_data.description,
            actual_fee=category_data.actual_fee,
            offer_fee=category_data.offer_fee,
            expiry_days=category_data.expiry_days,
            is_active=category_data.is_active,
        )
        self.db.add(category)
        self._commit("create category")
        self.db.refresh(category)

        logger.info(f"Created new category: {category.name_english}")
        return category

    async def update_category(
        self, category_id: str, category_data: UpdateCategoryRequest
    ) -> Category:
        category = await self.get_category(category_id)
        self._validate_rules(
            category_data.actual_fee, category_data.offer_fee, category_data.expiry_days
        )

        category.name_english = category_data.name_english.strip()
        category.name_malayalam = category_data.name_malayalam.strip()
        category.description = category_data.description
        category.actual_fee = category_data.actual_fee
        category.offer_fee = category_data.offer_fee
        category.expiry_days = category_data.expiry_days

        self._commit("update category")
        self.db.refresh(category)

        logger.info(f"Updated category: {category.name_english}")
        return category

    async def set_active(self, category_id: str, is_active: bool) -> Category:
        """Activate or soft-deactivate a category"""
        category = await self.get_category(category_id)
        category.is_active = is_active

        self._commit("change category status")
        logger.info(
            f"Category {category.name_english} {'activated' if is_active else 'deactivated'}"
        )
        return category

    async def delete_category(self, category_id: str) -> None:
        """Hard delete, refused while any registration references the category"""
        category = await self.get_category(category_id)

        references = self.db.execute(
            select(func.count(Registration.id)).where(
                or_(
                    Registration.category_id == category_id,
                    Registration.preference_category_id == category_id,
                )
            )
        ).scalar_one()
        if references:
            raise ValidationError(
                f"Category is used by {references} registration{'s' if references != 1 else ''}; "
                "deactivate it instead",
                "CATEGORY_IN_USE",
            )

        self.db.delete(category)
        self._commit("delete category")
        logger.info(f"Deleted category: {category.name_english}")

    async def list_categories(
        self, query_params: CategoryListQueryParams
    ) -> List[Category]:
        query = select(Category)
        if query_params.is_active is not None:
            query = query.where(Category.is_active == query_params.is_active)

        sort_column = getattr(Category, query_params.sort_by or "name_english")
        query = query.order_by(
            sort_column.desc() if query_params.order == "desc" else sort_column.asc()
        )
        return list(self.db.execute(query).scalars().all())

    async def list_active_categories(self) -> List[Category]:
        """Categories open for public registration"""
        result = self.db.execute(
            select(Category)
            .where(Category.is_active == True)
            .order_by(Category.name_english.asc())
        )
        return list(result.scalars().all())

    # Helper Methods
    @staticmethod
    def _validate_rules(actual_fee, offer_fee, expiry_days) -> None:
        if offer_fee is not None and actual_fee is not None and offer_fee > actual_fee:
            raise ValidationError(
                "Offer fee cannot exceed the actual fee", "OFFER_FEE_ABOVE_ACTUAL"
            )
        if expiry_days is not None and expiry_days <= 0:
            raise ValidationError(
                "Expiry days must be greater than zero", "INVALID_EXPIRY_DAYS"
            )

    @staticmethod
    def to_response(category: Category) -> CategoryResponse:
        return CategoryResponse.model_validate(category)


def get_category_service(
    db_session: Session = Depends(get_sync_session),
) -> CategoryService:
    """Dependency function to get CategoryService instance"""
    return CategoryService(db_session)
