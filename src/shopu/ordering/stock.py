"""Stock movements caused by orders.

Each helper loads the products an order references, moves their stock and
stages them on the current Unit of Work, so the movement commits together
with the order change that caused it.
"""

import structlog
from protean.utils.globals import current_domain

from shopu.catalogue.product import Product
from shopu.ordering.order import Order

logger = structlog.get_logger(__name__)


def _move_stock(order: Order, sign: int, reason: str, products: dict[str, Product] | None = None) -> None:
    repo = current_domain.repository_for(Product)
    products = dict(products or {})
    touched: dict[str, Product] = {}

    for item in order.items:
        key = str(item.product_id)
        product = products.get(key) or touched.get(key)
        if product is None:
            product = repo.get_for_tenant(order.tenant_id, item.product_id, include_deleted=True)
        if product is None:
            logger.warning(
                "Product missing while moving order stock",
                order_id=str(order.id),
                product_id=key,
                reason=reason,
            )
            continue

        variant_id = item.variant_id if item.variant_id and product.find_variant(item.variant_id) else None
        if item.variant_id and variant_id is None:
            logger.warning(
                "Variant missing while moving order stock",
                order_id=str(order.id),
                product_id=key,
                variant_id=str(item.variant_id),
                reason=reason,
            )
            continue

        new_level = product.adjust_stock(sign * item.quantity, variant_id=variant_id, reason=reason, order_id=order.id)
        if new_level < 0:
            logger.warning(
                "Stock went negative",
                order_id=str(order.id),
                product_id=key,
                variant_id=str(variant_id) if variant_id else None,
                stock_quantity=new_level,
            )
        touched[key] = product

    for product in touched.values():
        repo.add(product)


def take_stock(order: Order, products: dict[str, Product] | None = None) -> None:
    """Decrement stock for every line of a freshly placed order."""
    _move_stock(order, -1, "order_placed", products)


def release_stock(order: Order) -> None:
    """Return an order's stock after its payment failed."""
    _move_stock(order, 1, "payment_failed")


def retake_stock(order: Order) -> None:
    """Take stock again for an order that was paid after its stock was released."""
    _move_stock(order, -1, "payment_recovered")
