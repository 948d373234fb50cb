"""Shared fixtures for payment tests."""

import json

import pytest
from protean import current_domain

from shopu.ordering.order import Order
from shopu.payments.checkout import start_checkout


@pytest.fixture()
def checked_out(tenant, session_id, make_product, add_to_cart, fake_gateway):
    """Check out 2 x 15.0 of a product (stock 5) through the fake gateway.

    Returns `{"order": dict, "product": Product, "gateway_order_id": str, "redirect_url": str}`.
    """
    product = make_product(title="Oolong", price=15.0, stock_quantity=5)
    add_to_cart(product, quantity=2)

    result = start_checkout(
        tenant,
        session_id=session_id,
        customer_email="nino@example.ge",
        customer_name="Nino Beridze",
        raw_host=f"{tenant.subdomain}.shopu.ge",
    )
    return {
        "order": result["order"],
        "product": product,
        "gateway_order_id": result["order"]["gateway_order_id"],
        "redirect_url": result["redirect_url"],
    }


@pytest.fixture()
def reload_order():
    def _reload(order_id):
        return current_domain.repository_for(Order).get(order_id)

    return _reload


@pytest.fixture()
def callback_body(fake_gateway):
    """Serialized callback for a fake gateway order in its current state."""

    def _body(gateway_order_id):
        return json.dumps(fake_gateway.callback_payload(gateway_order_id))

    return _body
