"""Admin order status changes, listings and dashboard statistics."""

import pytest
from protean import current_domain
from protean.exceptions import ObjectNotFoundError, ValidationError

from shopu.ordering.listing import admin_order, admin_orders, order_payment_status, order_stats
from shopu.ordering.management import UpdateOrderStatus
from shopu.ordering.payment import ConfirmOrderPayment


@pytest.fixture()
def orders(make_product, add_to_cart, place_order):
    """Three orders: Nino (paid, 20.0), Giorgi (pending, 10.0), Ana (pending, 30.0)."""
    product = make_product(price=10.0, stock_quantity=50)

    placed = []
    for index, (name, email, quantity) in enumerate(
        [
            ("Nino Beridze", "nino@example.ge", 2),
            ("Giorgi Kapanadze", "giorgi@example.ge", 1),
            ("Ana Lomidze", "ana@example.ge", 3),
        ]
    ):
        session = f"sess-orders-{index}"
        add_to_cart(product, quantity=quantity, session=session)
        placed.append(place_order(session=session, customer_name=name, customer_email=email))

    current_domain.process(ConfirmOrderPayment(order_id=str(placed[0].id)), asynchronous=False)
    return placed


class TestUpdateOrderStatus:
    def test_update(self, tenant, orders):
        result = current_domain.process(
            UpdateOrderStatus(tenant_id=str(tenant.id), order_id=str(orders[0].id), status="SHIPPED"),
            asynchronous=False,
        )
        assert result["status"] == "SHIPPED"

    def test_by_order_number(self, tenant, orders):
        result = current_domain.process(
            UpdateOrderStatus(tenant_id=str(tenant.id), order_id=orders[1].order_number, status="CANCELLED"),
            asynchronous=False,
        )
        assert result["id"] == str(orders[1].id)

    def test_invalid_status(self, tenant, orders):
        with pytest.raises(ValidationError):
            current_domain.process(
                UpdateOrderStatus(tenant_id=str(tenant.id), order_id=str(orders[0].id), status="LOST"),
                asynchronous=False,
            )

    def test_other_tenants_order(self, orders):
        with pytest.raises(ObjectNotFoundError):
            current_domain.process(
                UpdateOrderStatus(tenant_id="another-tenant", order_id=str(orders[0].id), status="SHIPPED"),
                asynchronous=False,
            )


class TestAdminOrderListing:
    def test_newest_first(self, tenant, orders):
        result = admin_orders(tenant.id)
        assert result["pagination"]["total"] == 3
        assert result["orders"][0]["id"] == str(orders[2].id)

    def test_status_filter(self, tenant, orders):
        result = admin_orders(tenant.id, status="CONFIRMED")
        assert [o["id"] for o in result["orders"]] == [str(orders[0].id)]

    def test_invalid_status_filter(self, tenant, orders):
        with pytest.raises(ValidationError):
            admin_orders(tenant.id, status="LOST")

    @pytest.mark.parametrize("needle", ["giorgi", "GIORGI@EXAMPLE", "Kapanadze"])
    def test_search(self, tenant, orders, needle):
        result = admin_orders(tenant.id, search=needle)
        assert [o["customer_name"] for o in result["orders"]] == ["Giorgi Kapanadze"]

    def test_search_by_order_number(self, tenant, orders):
        result = admin_orders(tenant.id, search=orders[2].order_number)
        assert [o["id"] for o in result["orders"]] == [str(orders[2].id)]

    def test_date_filters(self, tenant, orders):
        assert admin_orders(tenant.id, date_filter="today")["pagination"]["total"] == 3
        assert admin_orders(tenant.id, date_filter="yesterday")["pagination"]["total"] == 0
        assert admin_orders(tenant.id, start_date="2020-01-01", end_date="2020-01-31")["orders"] == []

    def test_pagination(self, tenant, orders):
        result = admin_orders(tenant.id, page=2, limit=2)
        assert len(result["orders"]) == 1
        assert result["pagination"]["pages"] == 2

    def test_single_order(self, tenant, orders):
        assert admin_order(tenant.id, orders[0].order_number)["id"] == str(orders[0].id)
        with pytest.raises(ObjectNotFoundError):
            admin_order(tenant.id, "ORD-0-XXXXXX")


class TestOrderStats:
    def test_stats(self, tenant, orders):
        stats = order_stats(tenant.id)
        assert stats["total_orders"] == 3
        assert stats["monthly_orders"] == 3
        assert stats["weekly_orders"] == 3
        assert stats["monthly_revenue"] == 20.0
        assert len(stats["recent_orders"]) == 3
        assert stats["orders_by_status"] == [{"status": "CONFIRMED", "count": 1}, {"status": "PENDING", "count": 2}]

    def test_empty_shop(self, tenant):
        stats = order_stats(tenant.id)
        assert stats["total_orders"] == 0
        assert stats["monthly_revenue"] == 0
        assert stats["orders_by_status"] == []


class TestOrderPaymentStatus:
    def test_status(self, tenant, orders):
        assert order_payment_status(tenant.id, str(orders[0].id)) == {
            "order_number": orders[0].order_number,
            "payment_status": "PAID",
        }

    def test_unknown(self, tenant):
        with pytest.raises(ObjectNotFoundError):
            order_payment_status(tenant.id, "missing")
