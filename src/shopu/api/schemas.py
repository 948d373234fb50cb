"""Pydantic request/response schemas for the shopu API."""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, Field

# --- Common ---


class StatusResponse(BaseModel):
    status: str = "ok"


# --- Tenant Schemas ---


class RegisterTenantRequest(BaseModel):
    model_config = {
        "json_schema_extra": {
            "examples": [
                {
                    "name": "Tbilisi Tea House",
                    "subdomain": "teahouse",
                    "owner_email": "owner@teahouse.ge",
                }
            ]
        }
    }

    name: str = Field(..., min_length=2, max_length=100)
    subdomain: str = Field(..., min_length=3, max_length=50)
    owner_email: str | None = Field(None, max_length=254)


class TenantRegisteredResponse(BaseModel):
    tenant_id: str
    api_key: str
    tenant: dict


class UpdateTenantRequest(BaseModel):
    name: str | None = Field(None, min_length=2, max_length=100)
    subdomain: str | None = Field(None, min_length=3, max_length=50)


class CustomDomainRequest(BaseModel):
    model_config = {"json_schema_extra": {"examples": [{"custom_domain": "teahouse.ge"}]}}

    custom_domain: str = Field(..., min_length=3, max_length=253)


class ApiKeyResponse(BaseModel):
    api_key: str


# --- Cart Schemas ---


class AddToCartRequest(BaseModel):
    product_id: str
    variant_id: str | None = None
    quantity: int = Field(1, ge=1)


class UpdateCartItemRequest(BaseModel):
    quantity: int = Field(..., ge=1)


# --- Checkout Schemas ---


class AddressSchema(BaseModel):
    """Georgian (region/district/address) or international (street/city/...) address."""

    region: str | None = None
    region_name: dict[str, str] | None = None
    district: str | None = None
    district_name: dict[str, str] | None = None
    address: str | None = None
    street: str | None = None
    city: str | None = None
    state: str | None = None
    zip_code: str | None = None
    country: str | None = None
    notes: str | None = None
    latitude: float | None = Field(None, ge=-90, le=90)
    longitude: float | None = Field(None, ge=-180, le=180)


class CheckoutRequest(BaseModel):
    model_config = {
        "json_schema_extra": {
            "examples": [
                {
                    "customer_email": "nino@example.ge",
                    "customer_name": "Nino Beridze",
                    "customer_phone": "+995555123456",
                    "shipping_address": {
                        "region": "tbilisi",
                        "district": "vake",
                        "address": "Chavchavadze Ave 12",
                    },
                }
            ]
        }
    }

    customer_email: str = Field(..., max_length=254)
    customer_name: str = Field(..., min_length=1, max_length=200)
    customer_phone: str | None = Field(None, max_length=30)
    shipping_address: AddressSchema | None = None
    billing_address: AddressSchema | None = None
    notes: str | None = None


class CheckoutResponse(BaseModel):
    order: dict
    redirect_url: str


# --- Catalogue Schemas ---


class VariantRequest(BaseModel):
    sku: str | None = Field(None, max_length=100)
    options: dict[str, Any] = Field(default_factory=dict)
    price: float | None = Field(None, ge=0)
    stock_quantity: int = Field(0, ge=0)
    is_active: bool = True


class UpdateVariantRequest(BaseModel):
    sku: str | None = Field(None, max_length=100)
    options: dict[str, Any] | None = None
    price: float | None = Field(None, ge=0)
    stock_quantity: int | None = Field(None, ge=0)
    is_active: bool | None = None


class CreateProductRequest(BaseModel):
    model_config = {
        "json_schema_extra": {
            "examples": [
                {
                    "title": "Classic T-Shirt",
                    "price": 29.99,
                    "stock_quantity": 0,
                    "attributes": {"material": "Cotton"},
                    "images": ["https://example.com/tshirt.jpg"],
                    "variants": [
                        {"sku": "TSHIRT-M-WHT", "options": {"size": "M", "color": "White"}, "stock_quantity": 50}
                    ],
                }
            ]
        }
    }

    title: str = Field(..., min_length=1, max_length=200)
    slug: str | None = Field(None, max_length=200)
    sku: str | None = Field(None, max_length=100)
    description: str | None = None
    price: float = Field(..., ge=0)
    stock_quantity: int = Field(0, ge=0)
    is_active: bool = True
    category_id: str | None = None
    attributes: dict[str, Any] | None = None
    images: list[str] | None = None
    variants: list[VariantRequest] | None = None


class UpdateProductRequest(BaseModel):
    title: str | None = Field(None, min_length=1, max_length=200)
    slug: str | None = Field(None, max_length=200)
    sku: str | None = Field(None, max_length=100)
    description: str | None = None
    price: float | None = Field(None, ge=0)
    stock_quantity: int | None = Field(None, ge=0)
    is_active: bool | None = None
    category_id: str | None = None
    attributes: dict[str, Any] | None = None
    images: list[str] | None = None


class CreateCategoryRequest(BaseModel):
    name: str = Field(..., min_length=1, max_length=100)
    slug: str | None = Field(None, max_length=100)
    description: str | None = None
    parent_id: str | None = None
    is_active: bool = True


class UpdateCategoryRequest(BaseModel):
    name: str | None = Field(None, min_length=1, max_length=100)
    slug: str | None = Field(None, max_length=100)
    description: str | None = None
    parent_id: str | None = None
    is_active: bool | None = None


class ProductIdResponse(BaseModel):
    product_id: str


class VariantIdResponse(BaseModel):
    variant_id: str


class CategoryIdResponse(BaseModel):
    category_id: str


# --- Order Schemas ---


class UpdateOrderStatusRequest(BaseModel):
    status: str = Field(..., max_length=20)


class RefundRequest(BaseModel):
    amount: float | None = Field(None, gt=0)
