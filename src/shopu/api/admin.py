"""Shop admin endpoints: catalogue, orders, settings and bulk import.

Every route requires the tenant's API key (`Authorization: Bearer <key>`
or `X-Api-Key`).
"""

import asyncio
import json

from fastapi import APIRouter, Depends, Query, Request
from fastapi.responses import PlainTextResponse
from protean.exceptions import ObjectNotFoundError, ValidationError
from protean.utils.globals import current_domain

from shopu.api.schemas import (
    CategoryIdResponse,
    CreateCategoryRequest,
    CreateProductRequest,
    ProductIdResponse,
    RefundRequest,
    StatusResponse,
    UpdateCategoryRequest,
    UpdateOrderStatusRequest,
    UpdateProductRequest,
    UpdateVariantRequest,
    VariantIdResponse,
    VariantRequest,
)
from shopu.catalogue.bulk_import import TEMPLATE, import_catalogue_csv
from shopu.catalogue.category_management import CreateCategory, DeleteCategory, UpdateCategory
from shopu.catalogue.listing import admin_categories, admin_products
from shopu.catalogue.product import Product
from shopu.catalogue.product_management import (
    AddVariant,
    CreateProduct,
    DeleteProduct,
    RemoveVariant,
    RestoreProduct,
    UpdateProduct,
    UpdateVariant,
)
from shopu.ordering.listing import admin_order, admin_orders, order_stats
from shopu.ordering.management import UpdateOrderStatus
from shopu.payments.refunds import refund_order
from shopu.tenancy.access import tenant_admin
from shopu.tenancy.store_settings import StoreSettings, UpdateStoreSettings, settings_for_tenant
from shopu.tenancy.tenant import Tenant

router = APIRouter(prefix="/admin", tags=["admin"])


def _product(tenant: Tenant, product_id) -> dict:
    product = current_domain.repository_for(Product).get_for_tenant(tenant.id, product_id, include_deleted=True)
    if product is None:
        raise ObjectNotFoundError({"product": ["Product not found"]})
    return product.to_dict()


# --- Products ---


@router.get("/products")
async def list_products(
    search: str | None = None,
    category_id: str | None = None,
    is_active: bool | None = None,
    is_deleted: bool | None = None,
    sort_by: str = "created_at",
    sort_order: str = "desc",
    page: int = Query(1, ge=1),
    limit: int = Query(10, ge=1, le=100),
    tenant: Tenant = Depends(tenant_admin),
) -> dict:
    return admin_products(
        tenant.id,
        search=search,
        category_id=category_id,
        is_active=is_active,
        is_deleted=is_deleted,
        sort_by=sort_by,
        sort_order=sort_order,
        page=page,
        limit=limit,
    )


@router.post("/products", status_code=201, response_model=ProductIdResponse)
async def create_product(body: CreateProductRequest, tenant: Tenant = Depends(tenant_admin)) -> ProductIdResponse:
    command = CreateProduct(
        tenant_id=str(tenant.id),
        title=body.title,
        slug=body.slug,
        sku=body.sku,
        description=body.description,
        price=body.price,
        stock_quantity=body.stock_quantity,
        is_active=body.is_active,
        category_id=body.category_id,
        attributes=json.dumps(body.attributes) if body.attributes is not None else None,
        images=json.dumps(body.images) if body.images is not None else None,
        variants=json.dumps([v.model_dump() for v in body.variants]) if body.variants else None,
    )
    result = current_domain.process(command, asynchronous=False)
    return ProductIdResponse(product_id=result)


@router.get("/products/{product_id}")
async def get_product(product_id: str, tenant: Tenant = Depends(tenant_admin)) -> dict:
    return _product(tenant, product_id)


@router.put("/products/{product_id}")
async def update_product(product_id: str, body: UpdateProductRequest, tenant: Tenant = Depends(tenant_admin)) -> dict:
    changes = body.model_dump(exclude_unset=True)
    if not changes:
        raise ValidationError({"body": ["No changes supplied"]})
    command = UpdateProduct(tenant_id=str(tenant.id), product_id=product_id, changes=json.dumps(changes))
    current_domain.process(command, asynchronous=False)
    return _product(tenant, product_id)


@router.delete("/products/{product_id}", response_model=StatusResponse)
async def delete_product(product_id: str, tenant: Tenant = Depends(tenant_admin)) -> StatusResponse:
    current_domain.process(DeleteProduct(tenant_id=str(tenant.id), product_id=product_id), asynchronous=False)
    return StatusResponse()


@router.post("/products/{product_id}/restore")
async def restore_product(product_id: str, tenant: Tenant = Depends(tenant_admin)) -> dict:
    current_domain.process(RestoreProduct(tenant_id=str(tenant.id), product_id=product_id), asynchronous=False)
    return _product(tenant, product_id)


@router.post("/products/{product_id}/variants", status_code=201, response_model=VariantIdResponse)
async def add_variant(
    product_id: str, body: VariantRequest, tenant: Tenant = Depends(tenant_admin)
) -> VariantIdResponse:
    command = AddVariant(
        tenant_id=str(tenant.id),
        product_id=product_id,
        sku=body.sku,
        options=json.dumps(body.options),
        price=body.price,
        stock_quantity=body.stock_quantity,
        is_active=body.is_active,
    )
    result = current_domain.process(command, asynchronous=False)
    return VariantIdResponse(variant_id=result)


@router.put("/products/{product_id}/variants/{variant_id}")
async def update_variant(
    product_id: str, variant_id: str, body: UpdateVariantRequest, tenant: Tenant = Depends(tenant_admin)
) -> dict:
    command = UpdateVariant(
        tenant_id=str(tenant.id),
        product_id=product_id,
        variant_id=variant_id,
        changes=json.dumps(body.model_dump(exclude_unset=True)),
    )
    current_domain.process(command, asynchronous=False)
    return _product(tenant, product_id)


@router.delete("/products/{product_id}/variants/{variant_id}")
async def remove_variant(product_id: str, variant_id: str, tenant: Tenant = Depends(tenant_admin)) -> dict:
    command = RemoveVariant(tenant_id=str(tenant.id), product_id=product_id, variant_id=variant_id)
    current_domain.process(command, asynchronous=False)
    return _product(tenant, product_id)


# --- Categories ---


@router.get("/categories")
async def list_categories(tenant: Tenant = Depends(tenant_admin)) -> list[dict]:
    return admin_categories(tenant.id)


@router.post("/categories", status_code=201, response_model=CategoryIdResponse)
async def create_category(body: CreateCategoryRequest, tenant: Tenant = Depends(tenant_admin)) -> CategoryIdResponse:
    command = CreateCategory(
        tenant_id=str(tenant.id),
        name=body.name,
        slug=body.slug,
        description=body.description,
        parent_id=body.parent_id,
        is_active=body.is_active,
    )
    result = current_domain.process(command, asynchronous=False)
    return CategoryIdResponse(category_id=result)


@router.put("/categories/{category_id}", response_model=StatusResponse)
async def update_category(
    category_id: str, body: UpdateCategoryRequest, tenant: Tenant = Depends(tenant_admin)
) -> StatusResponse:
    command = UpdateCategory(
        tenant_id=str(tenant.id),
        category_id=category_id,
        changes=json.dumps(body.model_dump(exclude_unset=True)),
    )
    current_domain.process(command, asynchronous=False)
    return StatusResponse()


@router.delete("/categories/{category_id}", response_model=StatusResponse)
async def delete_category(category_id: str, tenant: Tenant = Depends(tenant_admin)) -> StatusResponse:
    current_domain.process(DeleteCategory(tenant_id=str(tenant.id), category_id=category_id), asynchronous=False)
    return StatusResponse()


# --- Orders ---


@router.get("/orders")
async def list_orders(
    status: str | None = None,
    search: str | None = None,
    date_filter: str | None = None,
    start_date: str | None = None,
    end_date: str | None = None,
    page: int = Query(1, ge=1),
    limit: int = Query(10, ge=1, le=100),
    tenant: Tenant = Depends(tenant_admin),
) -> dict:
    return admin_orders(
        tenant.id,
        status=status,
        search=search,
        date_filter=date_filter,
        start_date=start_date,
        end_date=end_date,
        page=page,
        limit=limit,
    )


@router.get("/orders/stats")
async def get_order_stats(tenant: Tenant = Depends(tenant_admin)) -> dict:
    return order_stats(tenant.id)


@router.get("/orders/{order_id}")
async def get_order(order_id: str, tenant: Tenant = Depends(tenant_admin)) -> dict:
    return admin_order(tenant.id, order_id)


@router.put("/orders/{order_id}/status")
async def update_order_status(
    order_id: str, body: UpdateOrderStatusRequest, tenant: Tenant = Depends(tenant_admin)
) -> dict:
    command = UpdateOrderStatus(tenant_id=str(tenant.id), order_id=order_id, status=body.status)
    return current_domain.process(command, asynchronous=False)


@router.post("/orders/{order_id}/refund")
async def refund(order_id: str, body: RefundRequest, tenant: Tenant = Depends(tenant_admin)) -> dict:
    return await asyncio.to_thread(refund_order, tenant.id, order_id, amount=body.amount)


# --- Settings ---


@router.get("/settings")
async def get_store_settings(tenant: Tenant = Depends(tenant_admin)) -> dict:
    return settings_for_tenant(tenant.id) or StoreSettings.create(str(tenant.id)).to_dict()


@router.put("/settings")
async def update_store_settings(body: dict, tenant: Tenant = Depends(tenant_admin)) -> dict:
    command = UpdateStoreSettings(tenant_id=str(tenant.id), changes=json.dumps(body))
    return current_domain.process(command, asynchronous=False)


# --- Bulk import ---


@router.post("/bulk-upload")
async def bulk_upload(request: Request, tenant: Tenant = Depends(tenant_admin)) -> dict:
    """Import a CSV sent as the raw request body (`Content-Type: text/csv`)."""
    raw = await request.body()
    try:
        content = raw.decode("utf-8-sig")
    except UnicodeDecodeError:
        raise ValidationError({"file": ["CSV must be UTF-8 encoded"]}) from None
    return import_catalogue_csv(tenant.id, content)


@router.get("/bulk-upload/template", response_class=PlainTextResponse)
async def bulk_upload_template(tenant: Tenant = Depends(tenant_admin)) -> PlainTextResponse:  # noqa: ARG001
    return PlainTextResponse(
        TEMPLATE,
        media_type="text/csv",
        headers={"Content-Disposition": 'attachment; filename="bulk-upload-template.csv"'},
    )
