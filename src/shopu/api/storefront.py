"""Public storefront endpoints: browsing, cart, checkout and order status.

The shop is resolved from the request host (or `X-Tenant-Slug` on a
platform host); carts are keyed by the `X-Session-Id` header.
"""

import asyncio
import json

from fastapi import APIRouter, Depends, Header, Query, Request
from protean.exceptions import ValidationError
from protean.utils.globals import current_domain

from shopu.api.schemas import AddToCartRequest, CheckoutRequest, CheckoutResponse, UpdateCartItemRequest
from shopu.cart.availability import summarize_cart
from shopu.cart.cart import Cart
from shopu.cart.items import AddToCart, ClearCart, RemoveFromCart, UpdateCartItem
from shopu.catalogue.listing import (
    category_tree,
    storefront_category_products,
    storefront_product,
    storefront_products,
)
from shopu.ordering.listing import order_payment_status
from shopu.payments.checkout import start_checkout
from shopu.payments.reconciliation import payment_failure_details
from shopu.tenancy.access import request_host, storefront_tenant
from shopu.tenancy.store_settings import StoreSettings, settings_for_tenant
from shopu.tenancy.tenant import Tenant

router = APIRouter(prefix="/store", tags=["storefront"])


async def cart_session(x_session_id: str | None = Header(default=None)) -> str:
    if not x_session_id or not x_session_id.strip():
        raise ValidationError({"session_id": ["X-Session-Id header is required"]})
    return x_session_id.strip()


def _cart(tenant: Tenant, session_id: str) -> dict:
    cart = current_domain.repository_for(Cart).find_for_session(tenant.id, session_id)
    return summarize_cart(cart, tenant.id, session_id)


def _address_json(address) -> str | None:
    if address is None:
        return None
    return json.dumps(address.model_dump(exclude_none=True))


# --- Store ---


@router.get("")
async def store_info(tenant: Tenant = Depends(storefront_tenant)) -> dict:
    return {
        "id": str(tenant.id),
        "name": tenant.name,
        "subdomain": tenant.subdomain,
        "custom_domain": tenant.custom_domain,
    }


@router.get("/settings")
async def store_settings(tenant: Tenant = Depends(storefront_tenant)) -> dict:
    return settings_for_tenant(tenant.id) or StoreSettings.create(str(tenant.id)).to_dict()


# --- Catalogue ---


@router.get("/categories")
async def list_categories(tenant: Tenant = Depends(storefront_tenant)) -> list[dict]:
    return category_tree(tenant.id)


@router.get("/categories/{slug}/products")
async def list_category_products(
    slug: str,
    search: str | None = None,
    min_price: float | None = Query(None, ge=0),
    max_price: float | None = Query(None, ge=0),
    sort_by: str = "created_at",
    sort_order: str = "desc",
    page: int = Query(1, ge=1),
    limit: int = Query(12, ge=1, le=100),
    tenant: Tenant = Depends(storefront_tenant),
) -> dict:
    return storefront_category_products(
        tenant.id,
        slug,
        search=search,
        min_price=min_price,
        max_price=max_price,
        sort_by=sort_by,
        sort_order=sort_order,
        page=page,
        limit=limit,
    )


@router.get("/products")
async def list_products(
    category_id: str | None = None,
    search: str | None = None,
    min_price: float | None = Query(None, ge=0),
    max_price: float | None = Query(None, ge=0),
    sort_by: str = "created_at",
    sort_order: str = "desc",
    page: int = Query(1, ge=1),
    limit: int = Query(12, ge=1, le=100),
    tenant: Tenant = Depends(storefront_tenant),
) -> dict:
    return storefront_products(
        tenant.id,
        category_id=category_id,
        search=search,
        min_price=min_price,
        max_price=max_price,
        sort_by=sort_by,
        sort_order=sort_order,
        page=page,
        limit=limit,
    )


@router.get("/products/{slug}")
async def get_product(slug: str, tenant: Tenant = Depends(storefront_tenant)) -> dict:
    return storefront_product(tenant.id, slug)


# --- Cart ---


@router.get("/cart")
async def get_cart(tenant: Tenant = Depends(storefront_tenant), session_id: str = Depends(cart_session)) -> dict:
    return _cart(tenant, session_id)


@router.post("/cart/items", status_code=201)
async def add_to_cart(
    body: AddToCartRequest,
    tenant: Tenant = Depends(storefront_tenant),
    session_id: str = Depends(cart_session),
) -> dict:
    command = AddToCart(
        tenant_id=str(tenant.id),
        session_id=session_id,
        product_id=body.product_id,
        variant_id=body.variant_id,
        quantity=body.quantity,
    )
    current_domain.process(command, asynchronous=False)
    return _cart(tenant, session_id)


@router.put("/cart/items/{item_id}")
async def update_cart_item(
    item_id: str,
    body: UpdateCartItemRequest,
    tenant: Tenant = Depends(storefront_tenant),
    session_id: str = Depends(cart_session),
) -> dict:
    command = UpdateCartItem(
        tenant_id=str(tenant.id),
        session_id=session_id,
        item_id=item_id,
        quantity=body.quantity,
    )
    current_domain.process(command, asynchronous=False)
    return _cart(tenant, session_id)


@router.delete("/cart/items/{item_id}")
async def remove_cart_item(
    item_id: str,
    tenant: Tenant = Depends(storefront_tenant),
    session_id: str = Depends(cart_session),
) -> dict:
    command = RemoveFromCart(tenant_id=str(tenant.id), session_id=session_id, item_id=item_id)
    current_domain.process(command, asynchronous=False)
    return _cart(tenant, session_id)


@router.delete("/cart")
async def clear_cart(tenant: Tenant = Depends(storefront_tenant), session_id: str = Depends(cart_session)) -> dict:
    current_domain.process(ClearCart(tenant_id=str(tenant.id), session_id=session_id), asynchronous=False)
    return _cart(tenant, session_id)


# --- Checkout and orders ---


@router.post("/checkout", status_code=201, response_model=CheckoutResponse)
async def checkout(
    body: CheckoutRequest,
    request: Request,
    tenant: Tenant = Depends(storefront_tenant),
    session_id: str = Depends(cart_session),
) -> CheckoutResponse:
    # Gateway calls block on HTTP, so they run in a worker thread
    result = await asyncio.to_thread(
        start_checkout,
        tenant,
        session_id=session_id,
        customer_email=body.customer_email,
        customer_name=body.customer_name,
        customer_phone=body.customer_phone,
        shipping_address=_address_json(body.shipping_address),
        billing_address=_address_json(body.billing_address),
        notes=body.notes,
        raw_host=request_host(request),
    )
    return CheckoutResponse(**result)


@router.get("/orders/{order_id}/status")
async def get_order_status(order_id: str, tenant: Tenant = Depends(storefront_tenant)) -> dict:
    return order_payment_status(tenant.id, order_id)


@router.get("/orders/{order_id}/payment-failure")
async def get_payment_failure(order_id: str, tenant: Tenant = Depends(storefront_tenant)) -> dict | None:
    return await asyncio.to_thread(payment_failure_details, tenant.id, order_id)
