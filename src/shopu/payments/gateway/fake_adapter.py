"""Configurable fake payment gateway for development and testing.

Simulates the hosted checkout without any external calls. Checkouts are
kept in memory in the `in_progress` state until a test (or a developer)
settles them with `complete()` or `reject()`, after which
`get_payment_details()` and `callback_payload()` report the outcome the
way the real gateway would.
"""

from uuid import uuid4

from shopu.errors import PaymentGatewayError
from shopu.payments.gateway.port import (
    REJECTED_STATUS,
    SUCCESS_CODE,
    SUCCESS_STATUS,
    CheckoutSession,
    PaymentDetails,
    PaymentGateway,
    RefundResult,
)

TEST_SIGNATURE = "test-signature"


class FakeGateway(PaymentGateway):
    """Configurable fake payment gateway."""

    def __init__(self) -> None:
        self.should_succeed: bool = True
        self.failure_reason: str = "Gateway unavailable"
        self.calls: list[dict] = []
        self.orders: dict[str, dict] = {}

    def configure(self, should_succeed: bool, failure_reason: str = "Gateway unavailable") -> None:
        """Make subsequent calls succeed or fail with `failure_reason`."""
        self.should_succeed = should_succeed
        self.failure_reason = failure_reason

    def _fail_if_configured(self) -> None:
        if not self.should_succeed:
            raise PaymentGatewayError(self.failure_reason)

    def create_checkout(
        self,
        external_order_id: str,
        total_amount: float,
        basket: list[dict],
        customer_name: str,
        customer_email: str,
        callback_url: str,
        success_url: str,
        fail_url: str,
        idempotency_key: str | None = None,
        ttl_minutes: int = 15,
    ) -> CheckoutSession:
        self.calls.append(
            {
                "method": "create_checkout",
                "external_order_id": external_order_id,
                "total_amount": total_amount,
                "basket": basket,
                "customer_name": customer_name,
                "customer_email": customer_email,
                "callback_url": callback_url,
                "success_url": success_url,
                "fail_url": fail_url,
                "idempotency_key": idempotency_key,
                "ttl_minutes": ttl_minutes,
            }
        )
        self._fail_if_configured()

        gateway_order_id = f"fake_ord_{uuid4().hex[:12]}"
        self.orders[gateway_order_id] = {
            "external_order_id": external_order_id,
            "total_amount": total_amount,
            "status": "in_progress",
            "code": None,
            "code_description": None,
            "reject_reason": None,
        }
        return CheckoutSession(
            gateway_order_id=gateway_order_id,
            redirect_url=f"https://fake-gateway.local/checkout/{gateway_order_id}",
            details_url=f"https://fake-gateway.local/orders/{gateway_order_id}",
        )

    # -------------------------------------------------------------------
    # Settling checkouts
    # -------------------------------------------------------------------
    def complete(self, gateway_order_id: str) -> None:
        self.orders[gateway_order_id].update(
            status=SUCCESS_STATUS, code=SUCCESS_CODE, code_description="Successful payment"
        )

    def reject(self, gateway_order_id: str, reason: str = "expiration", code: str = "107") -> None:
        self.orders[gateway_order_id].update(
            status=REJECTED_STATUS, code=code, code_description="Payment declined", reject_reason=reason
        )

    def callback_payload(self, gateway_order_id: str) -> dict:
        """A callback body for the checkout's current state."""
        order = self.orders[gateway_order_id]
        return {
            "event": "order_payment",
            "zoned_request_time": "2024-01-01T00:00:00.000000Z",
            "body": {
                "order_id": gateway_order_id,
                "external_order_id": order["external_order_id"],
                "order_status": {"key": order["status"]},
                "payment_detail": {"code": order["code"], "code_description": order["code_description"]},
                "purchase_units": {"transfer_amount": str(order["total_amount"])},
                "reject_reason": order["reject_reason"],
            },
        }

    # -------------------------------------------------------------------
    # Port
    # -------------------------------------------------------------------
    def verify_callback_signature(self, raw_body: str, signature: str) -> bool:  # noqa: ARG002
        return signature == TEST_SIGNATURE

    def get_payment_details(self, gateway_order_id: str) -> PaymentDetails | None:
        self.calls.append({"method": "get_payment_details", "gateway_order_id": gateway_order_id})
        self._fail_if_configured()

        order = self.orders.get(gateway_order_id)
        if order is None:
            return None
        return PaymentDetails(
            gateway_order_id=gateway_order_id,
            status=order["status"],
            reject_reason=order["reject_reason"],
            payment_code=order["code"],
            code_description=order["code_description"],
            raw=dict(order),
        )

    def refund(self, gateway_order_id: str, amount: float | None = None) -> RefundResult:
        self.calls.append({"method": "refund", "gateway_order_id": gateway_order_id, "amount": amount})

        if self.should_succeed:
            return RefundResult(
                success=True,
                gateway_refund_id=f"fake_ref_{uuid4().hex[:12]}",
                gateway_status="refunded",
            )
        return RefundResult(success=False, failure_reason=self.failure_reason)
