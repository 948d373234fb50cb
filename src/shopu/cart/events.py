"""Domain events for the Cart aggregate."""

from protean.fields import Identifier, Integer, String

from shopu.domain import shop


@shop.event(part_of="Cart")
class CartItemAdded:
    __version__ = 1

    cart_id = Identifier(required=True)
    item_id = Identifier(required=True)
    product_id = Identifier(required=True)
    variant_id = Identifier()
    quantity = Integer(required=True)


@shop.event(part_of="Cart")
class CartItemQuantityUpdated:
    __version__ = 1

    cart_id = Identifier(required=True)
    item_id = Identifier(required=True)
    previous_quantity = Integer(required=True)
    new_quantity = Integer(required=True)


@shop.event(part_of="Cart")
class CartItemRemoved:
    __version__ = 1

    cart_id = Identifier(required=True)
    item_id = Identifier(required=True)


@shop.event(part_of="Cart")
class CartCleared:
    """All items left the cart, either by the shopper or by checkout."""

    __version__ = 1

    cart_id = Identifier(required=True)
    reason = String(max_length=50)
    order_id = Identifier()
