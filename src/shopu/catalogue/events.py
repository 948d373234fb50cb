"""Domain events for the Product and Category aggregates."""

from protean.fields import Boolean, DateTime, Float, Identifier, Integer, String

from shopu.domain import shop


@shop.event(part_of="Product")
class ProductCreated:
    __version__ = 1

    product_id: Identifier(required=True)
    tenant_id: Identifier(required=True)
    title: String(required=True, max_length=200)
    slug: String(required=True, max_length=200)
    price: Float(required=True)
    category_id: Identifier()
    created_at: DateTime(required=True)


@shop.event(part_of="Product")
class ProductUpdated:
    __version__ = 1

    product_id: Identifier(required=True)
    tenant_id: Identifier(required=True)
    title: String(max_length=200)
    price: Float()
    is_active: Boolean()


@shop.event(part_of="Product")
class ProductDeleted:
    """A product was soft deleted; it disappears from the storefront."""

    __version__ = 1

    product_id: Identifier(required=True)
    tenant_id: Identifier(required=True)
    deleted_at: DateTime(required=True)


@shop.event(part_of="Product")
class ProductRestored:
    __version__ = 1

    product_id: Identifier(required=True)
    tenant_id: Identifier(required=True)


@shop.event(part_of="Product")
class VariantAdded:
    __version__ = 1

    product_id: Identifier(required=True)
    variant_id: Identifier(required=True)
    sku: String(max_length=100)
    stock_quantity: Integer()


@shop.event(part_of="Product")
class VariantUpdated:
    __version__ = 1

    product_id: Identifier(required=True)
    variant_id: Identifier(required=True)


@shop.event(part_of="Product")
class VariantRemoved:
    __version__ = 1

    product_id: Identifier(required=True)
    variant_id: Identifier(required=True)


@shop.event(part_of="Product")
class StockAdjusted:
    """Stock moved because of an order, a payment failure or a manual edit."""

    __version__ = 1

    product_id: Identifier(required=True)
    variant_id: Identifier()
    previous_quantity: Integer(required=True)
    new_quantity: Integer(required=True)
    reason: String(max_length=50)
    order_id: Identifier()


@shop.event(part_of="Category")
class CategoryCreated:
    __version__ = 1

    category_id: Identifier(required=True)
    tenant_id: Identifier(required=True)
    name: String(required=True, max_length=100)
    slug: String(required=True, max_length=100)
    parent_id: Identifier()


@shop.event(part_of="Category")
class CategoryUpdated:
    __version__ = 1

    category_id: Identifier(required=True)
    name: String(max_length=100)
    slug: String(max_length=100)
    parent_id: Identifier()
    is_active: Boolean()


@shop.event(part_of="Category")
class CategoryDeleted:
    __version__ = 1

    category_id: Identifier(required=True)
    tenant_id: Identifier(required=True)
