"""Order placement: turn a session cart into a PENDING order.

Within a single Unit of Work the handler validates the cart against live
stock, creates the order with its item snapshots, decrements product or
variant stock and clears the cart.
"""

import json

import structlog
from protean import handle
from protean.fields import Identifier, String, Text
from protean.utils.globals import current_domain

from shopu.cart.availability import ensure_cart_can_checkout
from shopu.cart.cart import Cart
from shopu.domain import shop
from shopu.ordering.order import Address, Order
from shopu.ordering.stock import take_stock

logger = structlog.get_logger(__name__)


@shop.command(part_of="Order")
class PlaceOrder:
    tenant_id = Identifier(required=True)
    session_id = String(required=True, max_length=255)
    customer_email = String(required=True, max_length=254)
    customer_name = String(required=True, max_length=200)
    customer_phone = String(max_length=30)
    shipping_address = Text()  # JSON: address dict
    billing_address = Text()  # JSON: address dict
    notes = Text()


def _address(raw: str | None) -> Address | None:
    if not raw:
        return None
    data = json.loads(raw)
    if not data:
        return None
    for key in ("region_name", "district_name"):
        if isinstance(data.get(key), dict):
            data[key] = json.dumps(data[key])
    return Address(**data)


@shop.command_handler(part_of=Order)
class PlaceOrderHandler:
    @handle(PlaceOrder)
    def place_order(self, command):
        cart_repo = current_domain.repository_for(Cart)
        cart = cart_repo.find_for_session(command.tenant_id, command.session_id)
        products = ensure_cart_can_checkout(cart)

        lines = []
        for item in cart.items:
            product = products[str(item.product_id)]
            variant = product.find_variant(item.variant_id)
            lines.append(
                {
                    "product_id": str(item.product_id),
                    "variant_id": str(item.variant_id) if item.variant_id else None,
                    "quantity": item.quantity,
                    "price": item.price,
                    "title": product.title,
                    "variant_options": variant.option_values if variant else None,
                }
            )

        order = Order.place(
            tenant_id=command.tenant_id,
            customer_email=command.customer_email,
            customer_name=command.customer_name,
            customer_phone=command.customer_phone,
            lines=lines,
            shipping_address=_address(command.shipping_address),
            billing_address=_address(command.billing_address),
            notes=command.notes,
        )

        take_stock(order, products)
        current_domain.repository_for(Order).add(order)

        cart.clear(reason="checkout", order_id=order.id)
        cart_repo.add(cart)

        logger.info(
            "Order placed",
            order_id=str(order.id),
            order_number=order.order_number,
            tenant_id=str(command.tenant_id),
            total_amount=order.total_amount,
            item_count=len(order.items),
        )
        return str(order.id)
