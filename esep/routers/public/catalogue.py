from fastapi import APIRouter, Depends, Request

from esep.services.category_service import CategoryService, get_category_service
from esep.services.panchayath_service import (
    PanchayathService,
    get_panchayath_service,
)
from esep.schemas.panchayath_schemas import PanchayathResponse
from esep.utils.responses import ResponseBuilder

catalogue_router = APIRouter()


@catalogue_router.get(
    "/categories",
    summary="Categories open for registration",
    description="Active categories with their fees and expiry windows",
)
async def get_active_categories(
    request: Request,
    category_service: CategoryService = Depends(get_category_service),
):
    categories = await category_service.list_active_categories()
    return ResponseBuilder.success(
        request=request,
        data=[CategoryService.to_response(c).model_dump(by_alias=True) for c in categories],
        message=f"Retrieved {len(categories)} active categories",
    )


@catalogue_router.get("/panchayaths", summary="Active panchayaths")
async def get_active_panchayaths(
    request: Request,
    panchayath_service: PanchayathService = Depends(get_panchayath_service),
):
    panchayaths = await panchayath_service.list_active_panchayaths()
    return ResponseBuilder.success(
        request=request,
        data=[
            PanchayathResponse.model_validate(p).model_dump(by_alias=True)
            for p in panchayaths
        ],
        message=f"Retrieved {len(panchayaths)} active panchayaths",
    )
