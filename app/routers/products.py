# =============================================================================
# app/routers/products.py - Product Catalogue Endpoints
# =============================================================================

from typing import Annotated
from uuid import UUID

from fastapi import APIRouter, Path, Response
from pydantic import Field

from app.dependencies import AdminUser
from app.responses import success_response
from core.models import RequestModel
from core.services.product_service import ProductService

router = APIRouter()

NO_CACHE_HEADERS = {
    "Cache-Control": "no-store, no-cache, must-revalidate, proxy-revalidate",
    "Pragma": "no-cache",
    "Expires": "0",
}


class BatchDeleteProductsRequest(RequestModel):
    product_ids: list[UUID] = Field(..., min_length=1)


@router.get("")
async def list_products(response: Response):
    """
    Products available to buy: active with stock, newest first.

    Never cached, so a sold-out product disappears immediately.
    """
    response.headers.update(NO_CACHE_HEADERS)
    result = ProductService.list_available()
    return success_response(**result)


@router.post("/batch-delete")
async def batch_delete_products(request: BatchDeleteProductsRequest, admin: AdminUser):
    """Delete several products, skipping those with approved purchases."""
    result = ProductService.batch_delete([str(i) for i in request.product_ids])
    message = result.pop("message")
    return success_response(message=message, **result)


@router.get("/{product_id}")
async def get_product(
    product_id: Annotated[UUID, Path(description="Product UUID")],
):
    """A product with its seller."""
    return success_response(ProductService.get_product(product_id))


@router.delete("/{product_id}")
async def delete_product(
    product_id: Annotated[UUID, Path(description="Product UUID")],
    admin: AdminUser,
):
    """Delete a product; its pending and confirmed requests are cancelled."""
    result = ProductService.delete_product(product_id)
    message = result.pop("message")
    return success_response(message=message, **result)
