"""Reconciling fail-page landings with the gateway's view of the payment."""

import pytest
from protean.exceptions import ObjectNotFoundError

from shopu.payments.reconciliation import payment_failure_details


class TestPaymentFailureDetails:
    def test_completed_payment_confirms_order(self, tenant, checked_out, fake_gateway, reload_order, stock_of):
        fake_gateway.complete(checked_out["gateway_order_id"])

        result = payment_failure_details(tenant.id, checked_out["order"]["id"])

        assert result == {"order_status": "completed"}
        assert reload_order(checked_out["order"]["id"]).payment_status == "PAID"
        assert stock_of(checked_out["product"]) == 3

    def test_paid_order_skips_the_gateway(self, tenant, checked_out, fake_gateway):
        fake_gateway.complete(checked_out["gateway_order_id"])
        payment_failure_details(tenant.id, checked_out["order"]["id"])
        fake_gateway.calls.clear()

        assert payment_failure_details(tenant.id, checked_out["order"]["id"]) == {"order_status": "completed"}
        assert fake_gateway.calls == []

    def test_rejected_payment(self, tenant, checked_out, fake_gateway, reload_order, stock_of):
        fake_gateway.reject(checked_out["gateway_order_id"], reason="expiration", code="107")

        result = payment_failure_details(tenant.id, checked_out["order"]["id"])

        assert result == {
            "order_status": "rejected",
            "reject_reason": "expiration",
            "payment_code": "107",
            "code_description": "Payment declined",
        }
        order = reload_order(checked_out["order"]["id"])
        assert order.payment_status == "FAILED"
        assert stock_of(checked_out["product"]) == 5

    def test_rejected_twice_releases_stock_once(self, tenant, checked_out, fake_gateway, stock_of):
        fake_gateway.reject(checked_out["gateway_order_id"])
        payment_failure_details(tenant.id, checked_out["order"]["id"])
        payment_failure_details(tenant.id, checked_out["order"]["id"])
        assert stock_of(checked_out["product"]) == 5

    def test_in_progress(self, tenant, checked_out, reload_order):
        assert payment_failure_details(tenant.id, checked_out["order"]["id"]) == {"order_status": "in_progress"}
        assert reload_order(checked_out["order"]["id"]).payment_status == "PENDING"

    def test_gateway_error(self, tenant, checked_out, fake_gateway):
        fake_gateway.configure(should_succeed=False)
        assert payment_failure_details(tenant.id, checked_out["order"]["id"]) is None

    def test_gateway_does_not_know_the_order(self, tenant, checked_out, fake_gateway):
        fake_gateway.orders.clear()
        assert payment_failure_details(tenant.id, checked_out["order"]["id"]) is None

    def test_order_without_gateway_order(self, tenant, make_product, add_to_cart, place_order):
        add_to_cart(make_product())
        order = place_order()
        assert payment_failure_details(tenant.id, str(order.id)) is None

    def test_unknown_order(self, tenant):
        with pytest.raises(ObjectNotFoundError):
            payment_failure_details(tenant.id, "missing")
