"""Application tests for cart item commands and the cart summary."""

import json

import pytest
from protean import current_domain
from protean.exceptions import ValidationError

from shopu.cart.availability import summarize_cart
from shopu.cart.cart import Cart
from shopu.cart.items import ClearCart, RemoveFromCart, UpdateCartItem
from shopu.catalogue.product_management import DeleteProduct, UpdateProduct, UpdateVariant


def _cart(tenant, session_id):
    return current_domain.repository_for(Cart).find_for_session(tenant.id, session_id)


class TestAddToCart:
    def test_creates_cart_on_first_item(self, tenant, session_id, make_product, add_to_cart):
        product = make_product(price=12.0)
        add_to_cart(product, quantity=2)

        cart = _cart(tenant, session_id)
        assert len(cart.items) == 1
        assert cart.items[0].price == 12.0

    def test_variant_price_used(self, make_product, add_to_cart, tenant, session_id):
        product = make_product(
            price=12.0, variants=[{"sku": "V-250", "options": {"w": "250g"}, "price": 25.0, "stock_quantity": 3}]
        )
        add_to_cart(product, variant_id=product.variants[0].id)
        assert _cart(tenant, session_id).items[0].price == 25.0

    def test_quantity_in_cart_counts_against_stock(self, make_product, add_to_cart):
        product = make_product(stock_quantity=3)
        add_to_cart(product, quantity=2)
        with pytest.raises(ValidationError) as exc:
            add_to_cart(product, quantity=2)
        assert exc.value.messages["quantity"] == ["Insufficient stock available"]

    def test_inactive_product_rejected(self, make_product, add_to_cart):
        product = make_product(is_active=False)
        with pytest.raises(ValidationError) as exc:
            add_to_cart(product)
        assert "product_id" in exc.value.messages

    def test_unknown_variant_rejected(self, make_product, add_to_cart):
        product = make_product()
        with pytest.raises(ValidationError) as exc:
            add_to_cart(product, variant_id="00000000-0000-0000-0000-000000000000")
        assert "variant_id" in exc.value.messages

    def test_carts_are_scoped_to_session(self, tenant, make_product, add_to_cart):
        product = make_product()
        add_to_cart(product, session="sess-a")
        add_to_cart(product, session="sess-b", quantity=2)
        assert _cart(tenant, "sess-a").items[0].quantity == 1
        assert _cart(tenant, "sess-b").items[0].quantity == 2


class TestChangeCart:
    def test_update_quantity_checks_stock(self, tenant, session_id, make_product, add_to_cart):
        product = make_product(stock_quantity=3)
        item_id = add_to_cart(product)

        current_domain.process(
            UpdateCartItem(tenant_id=str(tenant.id), session_id=session_id, item_id=item_id, quantity=3),
            asynchronous=False,
        )
        assert _cart(tenant, session_id).items[0].quantity == 3

        with pytest.raises(ValidationError):
            current_domain.process(
                UpdateCartItem(tenant_id=str(tenant.id), session_id=session_id, item_id=item_id, quantity=4),
                asynchronous=False,
            )

    def test_quantity_change_picks_up_current_price(self, tenant, session_id, make_product, add_to_cart):
        product = make_product(price=10.0)
        item_id = add_to_cart(product)
        current_domain.process(
            UpdateProduct(tenant_id=str(tenant.id), product_id=str(product.id), changes=json.dumps({"price": 20.0})),
            asynchronous=False,
        )

        current_domain.process(
            UpdateCartItem(tenant_id=str(tenant.id), session_id=session_id, item_id=item_id, quantity=2),
            asynchronous=False,
        )

        line = _cart(tenant, session_id).items[0]
        assert line.price == 20.0
        assert line.line_total == 40.0

    def test_quantity_change_uses_variant_price(self, tenant, session_id, make_product, add_to_cart):
        product = make_product(
            price=12.0, variants=[{"sku": "V-100", "options": {"w": "100g"}, "price": 8.0, "stock_quantity": 5}]
        )
        variant_id = product.variants[0].id
        item_id = add_to_cart(product, variant_id=variant_id)
        current_domain.process(
            UpdateVariant(
                tenant_id=str(tenant.id),
                product_id=str(product.id),
                variant_id=str(variant_id),
                changes=json.dumps({"price": 9.5}),
            ),
            asynchronous=False,
        )

        current_domain.process(
            UpdateCartItem(tenant_id=str(tenant.id), session_id=session_id, item_id=item_id, quantity=3),
            asynchronous=False,
        )
        assert _cart(tenant, session_id).items[0].price == 9.5

    def test_remove_and_clear(self, tenant, session_id, make_product, add_to_cart):
        first = add_to_cart(make_product(title="Green Tea"))
        add_to_cart(make_product(title="Black Tea"))

        current_domain.process(
            RemoveFromCart(tenant_id=str(tenant.id), session_id=session_id, item_id=first), asynchronous=False
        )
        assert len(_cart(tenant, session_id).items) == 1

        current_domain.process(ClearCart(tenant_id=str(tenant.id), session_id=session_id), asynchronous=False)
        assert _cart(tenant, session_id).is_empty

    def test_missing_cart(self, tenant):
        with pytest.raises(ValidationError) as exc:
            current_domain.process(ClearCart(tenant_id=str(tenant.id), session_id="nobody"), asynchronous=False)
        assert exc.value.messages["cart"] == ["Cart not found"]


class TestCartSummary:
    def test_empty_summary(self, tenant):
        summary = summarize_cart(None, tenant.id, "sess-x")
        assert summary["items"] == []
        assert summary["total"] == 0.0
        assert summary["session_id"] == "sess-x"

    def test_totals_skip_unavailable_lines(self, tenant, session_id, make_product, add_to_cart):
        green = make_product(title="Green Tea", price=10.0, stock_quantity=5)
        black = make_product(title="Black Tea", price=4.0, stock_quantity=5)
        add_to_cart(green, quantity=2)
        add_to_cart(black, quantity=1)
        current_domain.process(
            DeleteProduct(tenant_id=str(tenant.id), product_id=str(black.id)), asynchronous=False
        )

        summary = summarize_cart(_cart(tenant, session_id))
        assert summary["total"] == 20.0
        assert summary["item_count"] == 3
        assert summary["has_unavailable_items"] is True
        assert summary["unavailable_count"] == 1
        assert summary["has_stock_issues"] is False

    def test_stock_issue_after_stock_drops(self, tenant, session_id, make_product, add_to_cart):
        product = make_product(stock_quantity=5)
        add_to_cart(product, quantity=4)
        current_domain.process(
            UpdateProduct(
                tenant_id=str(tenant.id), product_id=str(product.id), changes=json.dumps({"stock_quantity": 2})
            ),
            asynchronous=False,
        )

        summary = summarize_cart(_cart(tenant, session_id))
        line = summary["items"][0]
        assert line["is_available"] is False
        assert line["available_stock"] == 2
        assert summary["has_stock_issues"] is True
        assert summary["stock_issue_count"] == 1
