"""Cart item management: commands and handler."""

from protean import handle
from protean.exceptions import ValidationError
from protean.fields import Identifier, Integer, String
from protean.utils.globals import current_domain

from shopu.cart.availability import ensure_sellable, ensure_stock
from shopu.cart.cart import Cart
from shopu.catalogue.product import Product
from shopu.domain import shop


@shop.command(part_of="Cart")
class AddToCart:
    tenant_id = Identifier(required=True)
    session_id = String(required=True, max_length=255)
    product_id = Identifier(required=True)
    variant_id = Identifier()
    quantity = Integer(required=True, min_value=1)


@shop.command(part_of="Cart")
class UpdateCartItem:
    tenant_id = Identifier(required=True)
    session_id = String(required=True, max_length=255)
    item_id = Identifier(required=True)
    quantity = Integer(required=True, min_value=1)


@shop.command(part_of="Cart")
class RemoveFromCart:
    tenant_id = Identifier(required=True)
    session_id = String(required=True, max_length=255)
    item_id = Identifier(required=True)


@shop.command(part_of="Cart")
class ClearCart:
    tenant_id = Identifier(required=True)
    session_id = String(required=True, max_length=255)


def _session_cart(repo, tenant_id, session_id) -> Cart:
    cart = repo.find_for_session(tenant_id, session_id)
    if cart is None:
        raise ValidationError({"cart": ["Cart not found"]})
    return cart


@shop.command_handler(part_of=Cart)
class ManageCartItemsHandler:
    @handle(AddToCart)
    def add_to_cart(self, command):
        product = current_domain.repository_for(Product).get_for_tenant(
            command.tenant_id, command.product_id, include_deleted=True
        )
        ensure_sellable(product, command.variant_id)

        repo = current_domain.repository_for(Cart)
        cart = repo.get_or_create(command.tenant_id, command.session_id)

        existing = cart.find_line(command.product_id, command.variant_id)
        in_cart = existing.quantity if existing else 0
        ensure_stock(product, command.variant_id, in_cart + command.quantity)

        item = cart.add_item(
            product_id=command.product_id,
            variant_id=command.variant_id,
            quantity=command.quantity,
            price=product.unit_price(command.variant_id),
        )
        repo.add(cart)
        return str(item.id)

    @handle(UpdateCartItem)
    def update_cart_item(self, command):
        repo = current_domain.repository_for(Cart)
        cart = _session_cart(repo, command.tenant_id, command.session_id)

        item = cart.find_item(command.item_id)
        if item is None:
            raise ValidationError({"item_id": ["Cart item not found"]})

        product = current_domain.repository_for(Product).get_for_tenant(command.tenant_id, item.product_id)
        ensure_sellable(product, item.variant_id)
        ensure_stock(product, item.variant_id, command.quantity)

        cart.update_item_quantity(command.item_id, command.quantity, price=product.unit_price(item.variant_id))
        repo.add(cart)

    @handle(RemoveFromCart)
    def remove_from_cart(self, command):
        repo = current_domain.repository_for(Cart)
        cart = _session_cart(repo, command.tenant_id, command.session_id)
        cart.remove_item(command.item_id)
        repo.add(cart)

    @handle(ClearCart)
    def clear_cart(self, command):
        repo = current_domain.repository_for(Cart)
        cart = _session_cart(repo, command.tenant_id, command.session_id)
        cart.clear()
        repo.add(cart)
