"""Domain events for the Order aggregate."""

from protean.fields import DateTime, Float, Identifier, String, Text

from shopu.domain import shop


@shop.event(part_of="Order")
class OrderPlaced:
    """A cart was turned into an order; stock was taken and the cart cleared."""

    __version__ = 1

    order_id = Identifier(required=True)
    tenant_id = Identifier(required=True)
    order_number = String(required=True, max_length=50)
    customer_email = String(required=True, max_length=254)
    items = Text(required=True)  # JSON: list of item dicts
    total_amount = Float(required=True)
    placed_at = DateTime(required=True)


@shop.event(part_of="Order")
class GatewayOrderRecorded:
    """The payment gateway accepted the order and issued its own reference."""

    __version__ = 1

    order_id = Identifier(required=True)
    gateway_order_id = String(required=True, max_length=255)


@shop.event(part_of="Order")
class OrderPaymentConfirmed:
    __version__ = 1

    order_id = Identifier(required=True)
    tenant_id = Identifier(required=True)
    order_number = String(required=True, max_length=50)
    total_amount = Float(required=True)
    gateway_order_id = String(max_length=255)
    paid_at = DateTime(required=True)


@shop.event(part_of="Order")
class OrderPaymentFailed:
    __version__ = 1

    order_id = Identifier(required=True)
    tenant_id = Identifier(required=True)
    order_number = String(required=True, max_length=50)
    reason = String(max_length=500)
    failed_at = DateTime(required=True)


@shop.event(part_of="Order")
class OrderStatusChanged:
    __version__ = 1

    order_id = Identifier(required=True)
    previous_status = String(required=True, max_length=20)
    new_status = String(required=True, max_length=20)
    changed_at = DateTime(required=True)


@shop.event(part_of="Order")
class OrderRefunded:
    __version__ = 1

    order_id = Identifier(required=True)
    amount = Float(required=True)
    refunded_total = Float(required=True)
    refund_id = String(max_length=255)
    refunded_at = DateTime(required=True)
