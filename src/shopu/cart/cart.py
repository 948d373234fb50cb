"""Cart aggregate: a shopper's session-scoped basket inside one tenant's store.

Carts are keyed by (tenant_id, session_id). Each line keeps the unit price
seen when the item was added; stock and availability are re-checked against
the live catalogue when the cart is shown and again at checkout.
"""

from datetime import UTC, datetime

from protean.exceptions import ValidationError
from protean.fields import DateTime, Float, HasMany, Identifier, Integer, String

from shopu.cart.events import CartCleared, CartItemAdded, CartItemQuantityUpdated, CartItemRemoved
from shopu.domain import shop


@shop.entity(part_of="Cart")
class CartItem:
    product_id = Identifier(required=True)
    variant_id = Identifier()
    quantity = Integer(required=True, min_value=1)
    price = Float(required=True, min_value=0.0)
    added_at = DateTime()

    @property
    def line_total(self) -> float:
        return round(self.price * self.quantity, 2)


@shop.aggregate
class Cart:
    tenant_id = Identifier(required=True)
    session_id = String(required=True, max_length=255)
    items = HasMany(CartItem)
    created_at = DateTime()
    updated_at = DateTime()

    @classmethod
    def create(cls, tenant_id, session_id):
        now = datetime.now(UTC)
        return cls(tenant_id=tenant_id, session_id=session_id, created_at=now, updated_at=now)

    # -------------------------------------------------------------------
    # Item management
    # -------------------------------------------------------------------
    def find_item(self, item_id) -> CartItem | None:
        return next((i for i in self.items if str(i.id) == str(item_id)), None)

    def find_line(self, product_id, variant_id=None) -> CartItem | None:
        """The line holding this product/variant combination, if any."""
        return next(
            (
                i
                for i in self.items
                if str(i.product_id) == str(product_id) and (str(i.variant_id or "") == str(variant_id or ""))
            ),
            None,
        )

    def add_item(self, product_id, variant_id, quantity, price):
        """Add an item to the cart (or increase quantity if already present)."""
        existing = self.find_line(product_id, variant_id)
        now = datetime.now(UTC)

        if existing:
            existing.quantity += quantity
            existing.price = price
            item = existing
        else:
            item = CartItem(
                product_id=product_id,
                variant_id=variant_id,
                quantity=quantity,
                price=price,
                added_at=now,
            )
            self.add_items(item)

        self.updated_at = now
        self.raise_(
            CartItemAdded(
                cart_id=str(self.id),
                item_id=str(item.id),
                product_id=str(product_id),
                variant_id=str(variant_id) if variant_id else None,
                quantity=quantity,
            )
        )
        return item

    def update_item_quantity(self, item_id, new_quantity, price=None):
        """Change a line's quantity; a given `price` replaces the line's price snapshot."""
        item = self.find_item(item_id)
        if item is None:
            raise ValidationError({"item_id": ["Cart item not found"]})

        previous_quantity = item.quantity
        item.quantity = new_quantity
        if price is not None:
            item.price = price
        self.updated_at = datetime.now(UTC)

        self.raise_(
            CartItemQuantityUpdated(
                cart_id=str(self.id),
                item_id=str(item_id),
                previous_quantity=previous_quantity,
                new_quantity=new_quantity,
            )
        )
        return item

    def remove_item(self, item_id):
        item = self.find_item(item_id)
        if item is None:
            raise ValidationError({"item_id": ["Cart item not found"]})

        self.remove_items(item)
        self.updated_at = datetime.now(UTC)
        self.raise_(CartItemRemoved(cart_id=str(self.id), item_id=str(item_id)))

    def clear(self, reason="cleared", order_id=None):
        for item in list(self.items):
            self.remove_items(item)
        self.updated_at = datetime.now(UTC)
        self.raise_(CartCleared(cart_id=str(self.id), reason=reason, order_id=str(order_id) if order_id else None))

    @property
    def is_empty(self) -> bool:
        return not self.items


@shop.repository(part_of=Cart)
class CartRepository:
    def find_for_session(self, tenant_id, session_id) -> Cart | None:
        matches = self._dao.query.filter(tenant_id=str(tenant_id), session_id=session_id).all().items
        return matches[0] if matches else None

    def get_or_create(self, tenant_id, session_id) -> Cart:
        return self.find_for_session(tenant_id, session_id) or Cart.create(tenant_id, session_id)
