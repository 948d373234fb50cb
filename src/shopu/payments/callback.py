"""Payment gateway callback (webhook) processing.

The gateway retries callbacks that are not acknowledged with a 2xx, so
anything that cannot be acted on but is not an authentication problem
(unparseable events, unknown orders) is acknowledged with 200.

    empty body                      400
    signature present but invalid   401
    signature missing (required)    401
    body is not JSON                400
    not a payment event / no order  200
    completed with code 100         confirm payment, 200
    rejected                        fail payment, 200
    unknown order                   200
    unexpected processing error     500
"""

import json

import structlog
from protean.exceptions import ObjectNotFoundError
from protean.utils.globals import current_domain

from shopu.config import get_settings
from shopu.ordering.order import Order
from shopu.ordering.payment import ConfirmOrderPayment, FailOrderPayment
from shopu.payments.gateway import get_gateway
from shopu.payments.gateway.port import CallbackResult, PaymentGateway

logger = structlog.get_logger(__name__)


def _find_order(parsed: CallbackResult) -> Order | None:
    repo = current_domain.repository_for(Order)
    try:
        return repo.get(parsed.external_order_id)
    except ObjectNotFoundError:
        return repo.find_by_gateway_order_id(parsed.gateway_order_id)


def handle_bog_callback(
    raw_body: bytes | str | None,
    signature: str | None,
    gateway: PaymentGateway | None = None,
) -> tuple[int, str]:
    """Verify and apply a payment callback. Returns (status code, response text)."""
    if isinstance(raw_body, bytes):
        raw_body = raw_body.decode("utf-8", errors="replace")
    if not raw_body:
        return 400, "Missing body"

    gateway = gateway or get_gateway()
    if signature:
        if not gateway.verify_callback_signature(raw_body, signature):
            logger.error("Payment callback signature verification failed")
            return 401, "Invalid signature"
    elif get_settings().BOG_REQUIRE_SIGNATURE:
        logger.error("Payment callback without signature rejected")
        return 401, "Missing signature"

    try:
        payload = json.loads(raw_body)
    except ValueError:
        return 400, "Invalid JSON"

    parsed = gateway.parse_callback(payload)
    if parsed is None or not parsed.external_order_id:
        logger.info("Ignoring payment callback", parsed=parsed is not None)
        return 200, "OK"

    log = logger.bind(external_order_id=parsed.external_order_id, gateway_order_id=parsed.gateway_order_id)
    if parsed.is_rejected:
        log.info(
            "Payment rejected",
            reject_reason=parsed.reject_reason,
            payment_code=parsed.code,
            code_description=parsed.code_description,
        )
    elif parsed.status == "completed":
        log.info("Payment completed", payment_code=parsed.code)

    try:
        order = _find_order(parsed)
        if order is None:
            log.warning("Payment callback for unknown order")
            return 200, "OK"

        if parsed.is_successful:
            current_domain.process(ConfirmOrderPayment(order_id=str(order.id)), asynchronous=False)
        elif parsed.is_rejected:
            reason = parsed.reject_reason or parsed.code_description or "Payment rejected"
            current_domain.process(FailOrderPayment(order_id=str(order.id), reason=reason[:500]), asynchronous=False)
    except Exception:
        log.exception("Payment callback processing error")
        return 500, "Processing error"

    return 200, "OK"
