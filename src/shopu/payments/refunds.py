"""Admin refunds through the payment gateway."""

import structlog
from protean.exceptions import ObjectNotFoundError, ValidationError
from protean.utils.globals import current_domain

from shopu.errors import PaymentGatewayError
from shopu.ordering.order import Order
from shopu.ordering.payment import RecordOrderRefund
from shopu.payments.gateway import get_gateway
from shopu.payments.gateway.port import PaymentGateway

logger = structlog.get_logger(__name__)


def refund_order(tenant_id, order_id, amount: float | None = None, gateway: PaymentGateway | None = None) -> dict:
    """Refund a paid order, fully when `amount` is None. Stock is not returned."""
    repo = current_domain.repository_for(Order)
    order = repo.get_for_tenant(tenant_id, order_id)
    if order is None:
        raise ObjectNotFoundError({"order": ["Order not found"]})
    if not order.is_paid or not order.gateway_order_id:
        raise ValidationError({"payment_status": ["Only paid orders can be refunded"]})

    remaining = round(order.total_amount - (order.refunded_amount or 0.0), 2)
    refund_amount = remaining if amount is None else round(amount, 2)
    if refund_amount <= 0 or refund_amount > remaining:
        raise ValidationError({"amount": [f"Refund amount must be between 0 and {remaining}"]})

    gateway = gateway or get_gateway()
    partial = refund_amount < remaining or (order.refunded_amount or 0.0) > 0
    result = gateway.refund(order.gateway_order_id, refund_amount if partial else None)
    if not result.success:
        raise PaymentGatewayError(result.failure_reason or "Refund failed")

    current_domain.process(
        RecordOrderRefund(order_id=str(order.id), amount=refund_amount, refund_id=result.gateway_refund_id),
        asynchronous=False,
    )
    logger.info("Refund issued", order_id=str(order.id), amount=refund_amount, refund_id=result.gateway_refund_id)
    return repo.get(order.id).to_dict()
