from typing import Annotated

from fastapi import APIRouter, Depends, Request, status, Path

from esep.middlewares.auth_middleware import require_permissions
from esep.services.category_service import CategoryService, get_category_service
from esep.services.permission_service import MANAGE_CATEGORIES
from esep.schemas.category_schemas import (
    CreateCategoryRequest,
    UpdateCategoryRequest,
    CategoryListQueryParams,
    CategoryResponse,
)
from esep.schemas.common_schemas import ActiveStatusRequest, UUID_PATTERN
from esep.utils.responses import ResponseBuilder

categories_router = APIRouter(
    dependencies=[Depends(require_permissions(MANAGE_CATEGORIES))]
)

CategoryId = Annotated[
    str, Path(pattern=UUID_PATTERN, description="Category ID")
]


@categories_router.get(
    "/",
    status_code=status.HTTP_200_OK,
    summary="Get all categories",
    description="Retrieve categories with optional active filter and sorting",
)
async def get_all_categories(
    request: Request,
    query_params: Annotated[CategoryListQueryParams, Depends()],
    category_service: CategoryService = Depends(get_category_service),
):
    categories = await category_service.list_categories(query_params)
    return ResponseBuilder.success(
        request=request,
        data=[CategoryService.to_response(c).model_dump(by_alias=True) for c in categories],
        message=f"Retrieved {len(categories)} categor{'ies' if len(categories) != 1 else 'y'}",
    )


@categories_router.post(
    "/",
    response_model=CategoryResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Create a new category",
    description="Offer fee may not exceed the actual fee and the expiry window must be positive",
)
async def create_category(
    request: Request,
    category_data: CreateCategoryRequest,
    category_service: CategoryService = Depends(get_category_service),
):
    category = await category_service.create_category(category_data)
    return ResponseBuilder.success(
        request=request,
        data=CategoryService.to_response(category).model_dump(by_alias=True),
        message="Category created successfully",
        status_code=status.HTTP_201_CREATED,
    )


@categories_router.put(
    "/{category_id}",
    response_model=CategoryResponse,
    summary="Update an existing category",
)
async def update_category(
    request: Request,
    category_id: CategoryId,
    category_data: UpdateCategoryRequest,
    category_service: CategoryService = Depends(get_category_service),
):
    category = await category_service.update_category(category_id, category_data)
    return ResponseBuilder.success(
        request=request,
        data=CategoryService.to_response(category).model_dump(by_alias=True),
        message="Category updated successfully",
    )


@categories_router.patch(
    "/{category_id}/status",
    response_model=CategoryResponse,
    summary="Activate or deactivate a category",
    description="Deactivated categories stop accepting registrations but stay referenced by existing ones",
)
async def set_category_status(
    request: Request,
    category_id: CategoryId,
    status_data: ActiveStatusRequest,
    category_service: CategoryService = Depends(get_category_service),
):
    category = await category_service.set_active(category_id, status_data.is_active)
    return ResponseBuilder.success(
        request=request,
        data=CategoryService.to_response(category).model_dump(by_alias=True),
        message=f"Category {'activated' if category.is_active else 'deactivated'}",
    )


@categories_router.delete(
    "/{category_id}",
    summary="Delete an unused category",
    description="Refused while any registration references the category",
)
async def delete_category(
    request: Request,
    category_id: CategoryId,
    category_service: CategoryService = Depends(get_category_service),
):
    await category_service.delete_category(category_id)
    return ResponseBuilder.success(request=request, message="Category deleted")
