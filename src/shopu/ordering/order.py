"""Order aggregate: a placed storefront order and its payment state.

Two independent status fields move the order along:

    status          PENDING -> CONFIRMED -> SHIPPED -> DELIVERED, or CANCELLED
    payment_status  PENDING -> PAID (-> REFUNDED), or PENDING -> FAILED (-> PAID)

Payment transitions are driven by the gateway and must tolerate repeated or
out-of-order callbacks: confirming an already paid order is a no-op, and a
failure never overrides PAID. A FAILED order may still become PAID, because
the gateway can report a failure redirect before the payment settles.
"""

import json
import secrets
import string
from datetime import UTC, datetime
from enum import Enum

from protean import invariant
from protean.exceptions import ValidationError
from protean.fields import Boolean, DateTime, Float, HasMany, Identifier, Integer, String, Text, ValueObject

from shopu.domain import shop
from shopu.ordering.events import (
    GatewayOrderRecorded,
    OrderPaymentConfirmed,
    OrderPaymentFailed,
    OrderPlaced,
    OrderRefunded,
    OrderStatusChanged,
)
from shopu.utils.db import fetch_all

_BASE36 = string.digits + string.ascii_uppercase


class OrderStatus(Enum):
    PENDING = "PENDING"
    CONFIRMED = "CONFIRMED"
    SHIPPED = "SHIPPED"
    DELIVERED = "DELIVERED"
    CANCELLED = "CANCELLED"


class PaymentStatus(Enum):
    PENDING = "PENDING"
    PAID = "PAID"
    FAILED = "FAILED"
    REFUNDED = "REFUNDED"


def generate_order_number(now: datetime | None = None) -> str:
    """`ORD-<epoch millis>-<6 random base36 chars>`."""
    now = now or datetime.now(UTC)
    suffix = "".join(secrets.choice(_BASE36) for _ in range(6))
    return f"ORD-{int(now.timestamp() * 1000)}-{suffix}"


@shop.value_object(part_of="Order")
class Address:
    """Delivery address in either the Georgian (region/district) or the
    international (street/city/zip) format."""

    region = String(max_length=100)
    region_name = Text()  # JSON: {"en": ..., "ka": ...}
    district = String(max_length=100)
    district_name = Text()  # JSON: {"en": ..., "ka": ...}
    address = String(max_length=500)
    street = String(max_length=255)
    city = String(max_length=100)
    state = String(max_length=100)
    zip_code = String(max_length=20)
    country = String(max_length=100)
    notes = String(max_length=500)
    latitude = Float(min_value=-90.0, max_value=90.0)
    longitude = Float(min_value=-180.0, max_value=180.0)

    @invariant.post
    def must_be_a_complete_address(self):
        georgian = all((self.region, self.district, self.address))
        international = all((self.street, self.city, self.state, self.zip_code, self.country))
        if not (georgian or international):
            raise ValidationError(
                {"address": ["Provide region, district and address, or street, city, state, zip code and country"]}
            )

    def to_dict(self) -> dict:
        data = {
            "region": self.region,
            "region_name": json.loads(self.region_name) if self.region_name else None,
            "district": self.district,
            "district_name": json.loads(self.district_name) if self.district_name else None,
            "address": self.address,
            "street": self.street,
            "city": self.city,
            "state": self.state,
            "zip_code": self.zip_code,
            "country": self.country,
            "notes": self.notes,
            "latitude": self.latitude,
            "longitude": self.longitude,
        }
        return {key: value for key, value in data.items() if value is not None}


@shop.entity(part_of="Order")
class OrderItem:
    product_id = Identifier(required=True)
    variant_id = Identifier()
    quantity = Integer(required=True, min_value=1)
    price = Float(required=True, min_value=0.0)
    title = String(required=True, max_length=200)
    variant_options = Text()  # JSON snapshot of the variant options

    @property
    def line_total(self) -> float:
        return round(self.price * self.quantity, 2)

    def to_dict(self) -> dict:
        return {
            "id": str(self.id),
            "product_id": str(self.product_id),
            "variant_id": str(self.variant_id) if self.variant_id else None,
            "quantity": self.quantity,
            "price": self.price,
            "title": self.title,
            "variant_options": json.loads(self.variant_options) if self.variant_options else None,
            "line_total": self.line_total,
        }


@shop.aggregate
class Order:
    order_number = String(required=True, max_length=50)
    tenant_id = Identifier(required=True)
    customer_email = String(required=True, max_length=254)
    customer_name = String(required=True, max_length=200)
    customer_phone = String(max_length=30)
    items = HasMany(OrderItem)
    total_amount = Float(required=True, min_value=0.0)
    status = String(choices=OrderStatus, default=OrderStatus.PENDING.value)
    payment_status = String(choices=PaymentStatus, default=PaymentStatus.PENDING.value)
    shipping_address = ValueObject(Address)
    billing_address = ValueObject(Address)
    notes = Text()
    gateway_order_id = String(max_length=255)
    gateway_details_url = String(max_length=1000)
    payment_failure_reason = String(max_length=500)
    stock_released = Boolean(default=False)
    refunded_amount = Float(default=0.0)
    paid_at = DateTime()
    created_at = DateTime()
    updated_at = DateTime()

    # -------------------------------------------------------------------
    # Factory
    # -------------------------------------------------------------------
    @classmethod
    def place(
        cls,
        tenant_id,
        customer_email,
        customer_name,
        lines,
        customer_phone=None,
        shipping_address=None,
        billing_address=None,
        notes=None,
    ):
        """Create a PENDING order from cart lines.

        `lines` are dicts with product_id, variant_id, quantity, price, title
        and variant_options (a dict or None).
        """
        if not lines:
            raise ValidationError({"items": ["Order must contain at least one item"]})

        now = datetime.now(UTC)
        items = [
            OrderItem(
                product_id=line["product_id"],
                variant_id=line.get("variant_id"),
                quantity=line["quantity"],
                price=line["price"],
                title=line["title"],
                variant_options=json.dumps(line["variant_options"]) if line.get("variant_options") else None,
            )
            for line in lines
        ]
        total = round(sum(item.line_total for item in items), 2)

        order = cls(
            order_number=generate_order_number(now),
            tenant_id=tenant_id,
            customer_email=customer_email,
            customer_name=customer_name,
            customer_phone=customer_phone,
            total_amount=total,
            status=OrderStatus.PENDING.value,
            payment_status=PaymentStatus.PENDING.value,
            shipping_address=shipping_address,
            billing_address=billing_address,
            notes=notes,
            created_at=now,
            updated_at=now,
        )
        for item in items:
            order.add_items(item)
        order.raise_(
            OrderPlaced(
                order_id=str(order.id),
                tenant_id=str(tenant_id),
                order_number=order.order_number,
                customer_email=customer_email,
                items=json.dumps([item.to_dict() for item in order.items]),
                total_amount=total,
                placed_at=now,
            )
        )
        return order

    # -------------------------------------------------------------------
    # Payment
    # -------------------------------------------------------------------
    @property
    def is_paid(self) -> bool:
        return self.payment_status in (PaymentStatus.PAID.value, PaymentStatus.REFUNDED.value)

    def record_gateway_order(self, gateway_order_id, details_url=None):
        self.gateway_order_id = gateway_order_id
        self.gateway_details_url = details_url
        self.updated_at = datetime.now(UTC)
        self.raise_(GatewayOrderRecorded(order_id=str(self.id), gateway_order_id=gateway_order_id))

    def confirm_payment(self) -> bool:
        """Mark the order paid. Returns False when it already was.

        If an earlier failure released the stock, the caller must take it again.
        """
        if self.is_paid:
            return False

        now = datetime.now(UTC)
        self.payment_status = PaymentStatus.PAID.value
        self.payment_failure_reason = None
        self.stock_released = False
        if self.status in (OrderStatus.PENDING.value, OrderStatus.CANCELLED.value):
            self.status = OrderStatus.CONFIRMED.value
        self.paid_at = now
        self.updated_at = now

        self.raise_(
            OrderPaymentConfirmed(
                order_id=str(self.id),
                tenant_id=str(self.tenant_id),
                order_number=self.order_number,
                total_amount=self.total_amount,
                gateway_order_id=self.gateway_order_id,
                paid_at=now,
            )
        )
        return True

    def fail_payment(self, reason=None) -> bool:
        """Mark the payment failed, cancel the order and flag its stock as released.

        Returns False (and changes nothing) when the order is already paid or
        already failed. The caller puts the stock back into the catalogue.
        """
        if self.is_paid or self.payment_status == PaymentStatus.FAILED.value:
            return False

        now = datetime.now(UTC)
        self.payment_status = PaymentStatus.FAILED.value
        self.payment_failure_reason = reason
        self.status = OrderStatus.CANCELLED.value
        self.stock_released = True
        self.updated_at = now

        self.raise_(
            OrderPaymentFailed(
                order_id=str(self.id),
                tenant_id=str(self.tenant_id),
                order_number=self.order_number,
                reason=reason,
                failed_at=now,
            )
        )
        return True

    def record_refund(self, amount, refund_id=None):
        if not self.is_paid:
            raise ValidationError({"payment_status": ["Only paid orders can be refunded"]})
        remaining = round(self.total_amount - (self.refunded_amount or 0.0), 2)
        if amount <= 0 or amount > remaining:
            raise ValidationError({"amount": [f"Refund amount must be between 0 and {remaining}"]})

        now = datetime.now(UTC)
        self.refunded_amount = round((self.refunded_amount or 0.0) + amount, 2)
        if self.refunded_amount >= self.total_amount:
            self.payment_status = PaymentStatus.REFUNDED.value
        self.updated_at = now

        self.raise_(
            OrderRefunded(
                order_id=str(self.id),
                amount=amount,
                refunded_total=self.refunded_amount,
                refund_id=refund_id,
                refunded_at=now,
            )
        )

    # -------------------------------------------------------------------
    # Fulfilment
    # -------------------------------------------------------------------
    def change_status(self, new_status):
        try:
            target = OrderStatus(new_status)
        except ValueError:
            raise ValidationError(
                {"status": [f"Invalid status. Must be one of: {', '.join(s.value for s in OrderStatus)}"]}
            ) from None

        previous = self.status
        if previous == target.value:
            return

        now = datetime.now(UTC)
        self.status = target.value
        self.updated_at = now
        self.raise_(
            OrderStatusChanged(
                order_id=str(self.id),
                previous_status=previous,
                new_status=target.value,
                changed_at=now,
            )
        )

    # -------------------------------------------------------------------
    # Serialization
    # -------------------------------------------------------------------
    def to_dict(self) -> dict:
        return {
            "id": str(self.id),
            "order_number": self.order_number,
            "tenant_id": str(self.tenant_id),
            "customer_email": self.customer_email,
            "customer_name": self.customer_name,
            "customer_phone": self.customer_phone,
            "total_amount": self.total_amount,
            "status": self.status,
            "payment_status": self.payment_status,
            "shipping_address": self.shipping_address.to_dict() if self.shipping_address else None,
            "billing_address": self.billing_address.to_dict() if self.billing_address else None,
            "notes": self.notes,
            "gateway_order_id": self.gateway_order_id,
            "payment_failure_reason": self.payment_failure_reason,
            "refunded_amount": self.refunded_amount or 0.0,
            "items": [item.to_dict() for item in self.items],
            "paid_at": self.paid_at.isoformat() if self.paid_at else None,
            "created_at": self.created_at.isoformat() if self.created_at else None,
            "updated_at": self.updated_at.isoformat() if self.updated_at else None,
        }


@shop.repository(part_of=Order)
class OrderRepository:
    def for_tenant(self, tenant_id) -> list[Order]:
        return fetch_all(self._dao.query.filter(tenant_id=str(tenant_id)))

    def _first(self, **filters) -> Order | None:
        matches = self._dao.query.filter(**filters).limit(1).all().items
        return matches[0] if matches else None

    def get_for_tenant(self, tenant_id, order_id) -> Order | None:
        """Look up by id or order number, scoped to the tenant."""
        if not order_id:
            return None
        return self._first(tenant_id=str(tenant_id), id=str(order_id)) or self._first(
            tenant_id=str(tenant_id), order_number=str(order_id)
        )

    def find_by_gateway_order_id(self, gateway_order_id) -> Order | None:
        if not gateway_order_id:
            return None
        return self._first(gateway_order_id=gateway_order_id)
