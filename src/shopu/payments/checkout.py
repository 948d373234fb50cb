"""Checkout orchestration: place the order, then hand it to the gateway.

The order is committed (stock taken, cart cleared) before the gateway is
called. If the checkout cannot be created for any reason, the order's
payment is failed straight away, which puts the stock back, and the error
reaches the caller.
"""

import structlog
from protean.utils.globals import current_domain

from shopu.config import get_settings
from shopu.errors import PaymentGatewayError
from shopu.ordering.order import Order
from shopu.ordering.payment import FailOrderPayment, RecordGatewayOrder
from shopu.ordering.placement import PlaceOrder
from shopu.payments.gateway import get_gateway
from shopu.payments.gateway.port import PaymentGateway
from shopu.tenancy.resolver import storefront_base_url
from shopu.tenancy.tenant import Tenant

logger = structlog.get_logger(__name__)


def _basket(order: Order) -> list[dict]:
    return [
        {
            "product_id": str(item.product_id),
            "description": item.title,
            "quantity": item.quantity,
            "unit_price": item.price,
        }
        for item in order.items
    ]


def start_checkout(
    tenant: Tenant,
    session_id: str,
    customer_email: str,
    customer_name: str,
    customer_phone: str | None = None,
    shipping_address: str | None = None,
    billing_address: str | None = None,
    notes: str | None = None,
    raw_host: str | None = None,
    gateway: PaymentGateway | None = None,
) -> dict:
    """Place an order from the session cart and open a hosted checkout.

    Addresses are JSON strings. Returns `{"order": ..., "redirect_url": ...}`.
    """
    settings = get_settings()
    gateway = gateway or get_gateway()

    order_id = current_domain.process(
        PlaceOrder(
            tenant_id=str(tenant.id),
            session_id=session_id,
            customer_email=customer_email,
            customer_name=customer_name,
            customer_phone=customer_phone,
            shipping_address=shipping_address,
            billing_address=billing_address,
            notes=notes,
        ),
        asynchronous=False,
    )
    repo = current_domain.repository_for(Order)
    order = repo.get(order_id)

    base_url = storefront_base_url(tenant, raw_host)
    try:
        session = gateway.create_checkout(
            external_order_id=str(order.id),
            total_amount=order.total_amount,
            basket=_basket(order),
            customer_name=order.customer_name,
            customer_email=order.customer_email,
            callback_url=settings.bog_callback_url,
            success_url=f"{base_url}/checkout/success?orderId={order.id}",
            fail_url=f"{base_url}/checkout/fail?orderId={order.id}",
            idempotency_key=str(order.id),
            ttl_minutes=settings.PAYMENT_TTL_MINUTES,
        )
    except Exception as exc:
        message = exc.message if isinstance(exc, PaymentGatewayError) else f"{type(exc).__name__}: {exc}"
        logger.error(
            "Checkout could not be created, releasing order",
            order_id=str(order.id),
            order_number=order.order_number,
            error=message,
            exc_info=not isinstance(exc, PaymentGatewayError),
        )
        current_domain.process(
            FailOrderPayment(order_id=str(order.id), reason=f"Payment gateway error: {message}"[:500]),
            asynchronous=False,
        )
        raise

    current_domain.process(
        RecordGatewayOrder(
            order_id=str(order.id),
            gateway_order_id=session.gateway_order_id,
            details_url=session.details_url,
        ),
        asynchronous=False,
    )
    logger.info(
        "Checkout started",
        order_id=str(order.id),
        order_number=order.order_number,
        gateway_order_id=session.gateway_order_id,
    )
    return {"order": repo.get(order_id).to_dict(), "redirect_url": session.redirect_url}
