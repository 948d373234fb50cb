"""Product aggregate root with the ProductVariant entity.

A product sells either as itself (product-level price and stock) or through
variants such as size/colour combinations, each carrying its own stock and
an optional price override. Deletion is soft: deleted products vanish from
the storefront but stay referenced by historic orders.
"""

import json
from datetime import UTC, datetime

from protean import invariant
from protean.exceptions import ValidationError
from protean.fields import Boolean, DateTime, Float, HasMany, Identifier, Integer, String, Text

from shopu.catalogue.slugs import is_valid_slug
from shopu.domain import shop
from shopu.utils.db import fetch_all

_PRODUCT_FIELDS = (
    "title",
    "slug",
    "sku",
    "description",
    "price",
    "stock_quantity",
    "is_active",
    "category_id",
)


def _dump_json(value):
    if value is None or isinstance(value, str):
        return value
    return json.dumps(value)


def _load_json(value, default):
    if not value:
        return default
    return json.loads(value)


@shop.entity(part_of="Product")
class ProductVariant:
    sku = String(max_length=100)
    options = Text()  # JSON object, e.g. {"size": "M", "color": "Red"}
    price = Float(min_value=0.0)  # Overrides the product price when set
    stock_quantity = Integer(default=0)
    is_active = Boolean(default=True)

    @property
    def option_values(self) -> dict:
        return _load_json(self.options, {})

    def to_dict(self) -> dict:
        return {
            "id": str(self.id),
            "sku": self.sku,
            "options": self.option_values,
            "price": self.price,
            "stock_quantity": self.stock_quantity,
            "is_active": self.is_active,
        }


@shop.aggregate
class Product:
    tenant_id = Identifier(required=True)
    title = String(required=True, max_length=200)
    slug = String(required=True, max_length=200)
    sku = String(max_length=100)
    description = Text()
    price = Float(required=True, min_value=0.0)
    stock_quantity = Integer(default=0)
    is_active = Boolean(default=True)
    is_deleted = Boolean(default=False)
    deleted_at = DateTime()
    category_id = Identifier()
    attributes = Text()  # JSON object
    images = Text()  # JSON array of URLs
    variants = HasMany(ProductVariant)
    created_at = DateTime()
    updated_at = DateTime()

    @invariant.post
    def slug_must_be_url_safe(self):
        if not is_valid_slug(self.slug):
            raise ValidationError({"slug": ["Slug must contain only lowercase letters, digits and single hyphens"]})

    # -------------------------------------------------------------------
    # Factory
    # -------------------------------------------------------------------
    @classmethod
    def create(
        cls,
        tenant_id,
        title,
        slug,
        price,
        stock_quantity=0,
        sku=None,
        description=None,
        is_active=True,
        category_id=None,
        attributes=None,
        images=None,
    ):
        from shopu.catalogue.events import ProductCreated

        if stock_quantity is not None and stock_quantity < 0:
            raise ValidationError({"stock_quantity": ["Stock quantity cannot be negative"]})

        now = datetime.now(UTC)
        product = cls(
            tenant_id=tenant_id,
            title=title,
            slug=slug,
            sku=sku,
            price=price,
            stock_quantity=stock_quantity or 0,
            description=description,
            is_active=is_active,
            category_id=category_id,
            attributes=_dump_json(attributes),
            images=_dump_json(images),
            created_at=now,
            updated_at=now,
        )
        product.raise_(
            ProductCreated(
                product_id=str(product.id),
                tenant_id=str(tenant_id),
                title=title,
                slug=slug,
                price=price,
                category_id=category_id,
                created_at=now,
            )
        )
        return product

    # -------------------------------------------------------------------
    # Details
    # -------------------------------------------------------------------
    def update(self, **changes):
        from shopu.catalogue.events import ProductUpdated

        if self.is_deleted:
            raise ValidationError({"product": ["Cannot update a deleted product. Restore it first."]})
        if changes.get("stock_quantity") is not None and changes["stock_quantity"] < 0:
            raise ValidationError({"stock_quantity": ["Stock quantity cannot be negative"]})

        for field in _PRODUCT_FIELDS:
            if field in changes:
                setattr(self, field, changes[field])
        if "attributes" in changes:
            self.attributes = _dump_json(changes["attributes"])
        if "images" in changes:
            self.images = _dump_json(changes["images"])
        self.updated_at = datetime.now(UTC)

        self.raise_(
            ProductUpdated(
                product_id=str(self.id),
                tenant_id=str(self.tenant_id),
                title=self.title,
                price=self.price,
                is_active=self.is_active,
            )
        )

    def mark_deleted(self):
        from shopu.catalogue.events import ProductDeleted

        if self.is_deleted:
            raise ValidationError({"product": ["Product is already deleted"]})
        now = datetime.now(UTC)
        self.is_deleted = True
        self.deleted_at = now
        self.updated_at = now
        self.raise_(ProductDeleted(product_id=str(self.id), tenant_id=str(self.tenant_id), deleted_at=now))

    def restore(self):
        from shopu.catalogue.events import ProductRestored

        if not self.is_deleted:
            raise ValidationError({"product": ["Product is not deleted"]})
        self.is_deleted = False
        self.deleted_at = None
        self.updated_at = datetime.now(UTC)
        self.raise_(ProductRestored(product_id=str(self.id), tenant_id=str(self.tenant_id)))

    # -------------------------------------------------------------------
    # Variants
    # -------------------------------------------------------------------
    def find_variant(self, variant_id) -> ProductVariant | None:
        if not variant_id:
            return None
        return next((v for v in self.variants if str(v.id) == str(variant_id)), None)

    def _get_variant(self, variant_id) -> ProductVariant:
        variant = self.find_variant(variant_id)
        if variant is None:
            raise ValidationError({"variant_id": ["Variant not found"]})
        return variant

    def add_variant(self, sku=None, options=None, price=None, stock_quantity=0, is_active=True):
        from shopu.catalogue.events import VariantAdded

        if stock_quantity is not None and stock_quantity < 0:
            raise ValidationError({"stock_quantity": ["Stock quantity cannot be negative"]})

        variant = ProductVariant(
            sku=sku,
            options=_dump_json(options or {}),
            price=price,
            stock_quantity=stock_quantity or 0,
            is_active=is_active,
        )
        self.add_variants(variant)
        self.updated_at = datetime.now(UTC)

        self.raise_(
            VariantAdded(
                product_id=str(self.id),
                variant_id=str(variant.id),
                sku=sku,
                stock_quantity=variant.stock_quantity,
            )
        )
        return variant

    def update_variant(self, variant_id, **changes):
        from shopu.catalogue.events import VariantUpdated

        variant = self._get_variant(variant_id)
        if changes.get("stock_quantity") is not None and changes["stock_quantity"] < 0:
            raise ValidationError({"stock_quantity": ["Stock quantity cannot be negative"]})

        for field in ("sku", "price", "stock_quantity", "is_active"):
            if field in changes:
                setattr(variant, field, changes[field])
        if "options" in changes:
            variant.options = _dump_json(changes["options"] or {})
        self.updated_at = datetime.now(UTC)

        self.raise_(VariantUpdated(product_id=str(self.id), variant_id=str(variant.id)))
        return variant

    def remove_variant(self, variant_id):
        from shopu.catalogue.events import VariantRemoved

        variant = self._get_variant(variant_id)
        self.remove_variants(variant)
        self.updated_at = datetime.now(UTC)
        self.raise_(VariantRemoved(product_id=str(self.id), variant_id=str(variant_id)))

    # -------------------------------------------------------------------
    # Pricing and stock
    # -------------------------------------------------------------------
    def unit_price(self, variant_id=None) -> float:
        variant = self.find_variant(variant_id)
        if variant is not None and variant.price is not None:
            return variant.price
        return self.price

    def available_stock(self, variant_id=None) -> int:
        if variant_id:
            variant = self.find_variant(variant_id)
            return variant.stock_quantity if variant is not None else 0
        return self.stock_quantity or 0

    def adjust_stock(self, delta, variant_id=None, reason="manual", order_id=None):
        """Move stock by `delta` (negative to take) and return the new level.

        Stock is allowed to go below zero only when an order that had already
        released its stock is paid afterwards; every other caller validates
        availability first.
        """
        from shopu.catalogue.events import StockAdjusted

        if variant_id:
            holder = self._get_variant(variant_id)
        else:
            holder = self

        previous = holder.stock_quantity or 0
        holder.stock_quantity = previous + delta
        self.updated_at = datetime.now(UTC)

        self.raise_(
            StockAdjusted(
                product_id=str(self.id),
                variant_id=str(variant_id) if variant_id else None,
                previous_quantity=previous,
                new_quantity=holder.stock_quantity,
                reason=reason,
                order_id=str(order_id) if order_id else None,
            )
        )
        return holder.stock_quantity

    # -------------------------------------------------------------------
    # Serialization
    # -------------------------------------------------------------------
    @property
    def attribute_values(self) -> dict:
        return _load_json(self.attributes, {})

    @property
    def image_urls(self) -> list:
        return _load_json(self.images, [])

    def to_dict(self, active_variants_only: bool = False) -> dict:
        variants = [v for v in self.variants if v.is_active or not active_variants_only]
        return {
            "id": str(self.id),
            "title": self.title,
            "slug": self.slug,
            "sku": self.sku,
            "description": self.description,
            "price": self.price,
            "stock_quantity": self.stock_quantity,
            "is_active": self.is_active,
            "is_deleted": self.is_deleted,
            "category_id": str(self.category_id) if self.category_id else None,
            "attributes": self.attribute_values,
            "images": self.image_urls,
            "variants": [v.to_dict() for v in variants],
            "created_at": self.created_at.isoformat() if self.created_at else None,
            "updated_at": self.updated_at.isoformat() if self.updated_at else None,
        }


@shop.repository(part_of=Product)
class ProductRepository:
    def for_tenant(self, tenant_id, include_deleted: bool = False) -> list[Product]:
        query = self._dao.query.filter(tenant_id=str(tenant_id))
        if not include_deleted:
            query = query.filter(is_deleted=False)
        return fetch_all(query)

    def _first(self, **filters) -> Product | None:
        matches = self._dao.query.filter(**filters).limit(1).all().items
        return matches[0] if matches else None

    def get_for_tenant(self, tenant_id, product_id, include_deleted: bool = False) -> Product | None:
        product = self._first(tenant_id=str(tenant_id), id=str(product_id))
        if product is None or (product.is_deleted and not include_deleted):
            return None
        return product

    def find_by_slug(self, tenant_id, slug) -> Product | None:
        if not slug:
            return None
        return self._first(tenant_id=str(tenant_id), slug=slug, is_deleted=False)

    def find_by_sku(self, tenant_id, sku) -> Product | None:
        """Any product (deleted ones included) carrying the SKU."""
        if not sku:
            return None
        return self._first(tenant_id=str(tenant_id), sku=sku)
