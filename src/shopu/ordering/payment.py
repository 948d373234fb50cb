"""Payment state transitions driven by the payment gateway.

Callbacks can arrive more than once and in any order, so the confirm and
fail handlers return False instead of raising when the transition has
already happened. Stock follows the payment: a failure puts it back, and a
success that arrives after a failure takes it again.
"""

import structlog
from protean import handle
from protean.fields import Float, Identifier, String
from protean.utils.globals import current_domain

from shopu.domain import shop
from shopu.ordering.order import Order
from shopu.ordering.stock import release_stock, retake_stock

logger = structlog.get_logger(__name__)


@shop.command(part_of="Order")
class RecordGatewayOrder:
    order_id = Identifier(required=True)
    gateway_order_id = String(required=True, max_length=255)
    details_url = String(max_length=1000)


@shop.command(part_of="Order")
class ConfirmOrderPayment:
    order_id = Identifier(required=True)


@shop.command(part_of="Order")
class FailOrderPayment:
    order_id = Identifier(required=True)
    reason = String(max_length=500)


@shop.command(part_of="Order")
class RecordOrderRefund:
    order_id = Identifier(required=True)
    amount = Float(required=True)
    refund_id = String(max_length=255)


@shop.command_handler(part_of=Order)
class OrderPaymentHandler:
    @handle(RecordGatewayOrder)
    def record_gateway_order(self, command):
        repo = current_domain.repository_for(Order)
        order = repo.get(command.order_id)
        order.record_gateway_order(command.gateway_order_id, command.details_url)
        repo.add(order)

    @handle(ConfirmOrderPayment)
    def confirm_payment(self, command):
        repo = current_domain.repository_for(Order)
        order = repo.get(command.order_id)

        stock_was_released = order.stock_released
        if not order.confirm_payment():
            logger.info("Order already paid", order_id=str(order.id), order_number=order.order_number)
            return False

        if stock_was_released:
            logger.warning(
                "Payment confirmed after stock was released, taking stock again",
                order_id=str(order.id),
                order_number=order.order_number,
            )
            retake_stock(order)

        repo.add(order)
        logger.info("Order payment confirmed", order_id=str(order.id), order_number=order.order_number)
        return True

    @handle(FailOrderPayment)
    def fail_payment(self, command):
        repo = current_domain.repository_for(Order)
        order = repo.get(command.order_id)

        if not order.fail_payment(command.reason):
            logger.info(
                "Ignoring payment failure",
                order_id=str(order.id),
                payment_status=order.payment_status,
            )
            return False

        release_stock(order)
        repo.add(order)
        logger.info(
            "Order payment failed",
            order_id=str(order.id),
            order_number=order.order_number,
            reason=command.reason,
        )
        return True

    @handle(RecordOrderRefund)
    def record_refund(self, command):
        repo = current_domain.repository_for(Order)
        order = repo.get(command.order_id)
        order.record_refund(command.amount, command.refund_id)
        repo.add(order)
        logger.info(
            "Order refunded",
            order_id=str(order.id),
            amount=command.amount,
            refunded_total=order.refunded_amount,
        )
