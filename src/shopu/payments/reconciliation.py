"""Reconciling order payment state with the gateway.

The gateway sometimes redirects the customer to the fail page although the
payment went through, and callbacks can be late or lost. When the
storefront lands on the fail page it asks for the failure details; the
answer comes from the gateway itself, and the order is brought in line
with it on the way.
"""

import structlog
from protean.exceptions import ObjectNotFoundError
from protean.utils.globals import current_domain

from shopu.errors import PaymentGatewayError
from shopu.ordering.order import Order
from shopu.ordering.payment import ConfirmOrderPayment, FailOrderPayment
from shopu.payments.gateway import get_gateway
from shopu.payments.gateway.port import SUCCESS_STATUS, PaymentGateway

logger = structlog.get_logger(__name__)


def payment_failure_details(tenant_id, order_id, gateway: PaymentGateway | None = None) -> dict | None:
    """Why an order's payment failed, according to the gateway.

    Returns `{"order_status": "completed"}` when the order is in fact paid,
    the reject details when the gateway rejected it, and None when the
    gateway has nothing to say (no gateway order, unknown order, API error).
    """
    order = current_domain.repository_for(Order).get_for_tenant(tenant_id, order_id)
    if order is None:
        raise ObjectNotFoundError({"order": ["Order not found"]})

    if order.is_paid:
        return {"order_status": SUCCESS_STATUS}
    if not order.gateway_order_id:
        return None

    try:
        gateway = gateway or get_gateway()
        details = gateway.get_payment_details(order.gateway_order_id)
    except PaymentGatewayError as exc:
        logger.warning("Payment details unavailable", order_id=str(order.id), error=exc.message)
        return None
    if details is None:
        return None

    if details.is_completed:
        logger.info("Gateway reports payment completed, confirming order", order_id=str(order.id))
        current_domain.process(ConfirmOrderPayment(order_id=str(order.id)), asynchronous=False)
        return {"order_status": details.status}

    if details.is_rejected:
        reason = details.reject_reason or details.code_description or "Payment rejected"
        current_domain.process(FailOrderPayment(order_id=str(order.id), reason=reason[:500]), asynchronous=False)
        return {
            "order_status": details.status,
            "reject_reason": details.reject_reason,
            "payment_code": details.payment_code,
            "code_description": details.code_description,
        }

    return {"order_status": details.status}
