"""Payment gateway port (abstract interface).

Defines the contract that all payment gateway adapters implement. The flow
is a hosted checkout: the adapter creates a gateway-side order and returns
a redirect URL, the customer pays on the gateway's page, and the gateway
reports the outcome through a signed callback. Adapters can also be asked
for the current state of a payment, which is how missed or late callbacks
are reconciled.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass, field

SUCCESS_STATUS = "completed"
REJECTED_STATUS = "rejected"
SUCCESS_CODE = "100"


@dataclass(frozen=True)
class CheckoutSession:
    """A gateway-side order the customer is redirected to."""

    gateway_order_id: str
    redirect_url: str
    details_url: str | None = None


@dataclass(frozen=True)
class CallbackResult:
    """The parts of a payment callback the application acts on."""

    event: str
    gateway_order_id: str
    external_order_id: str | None
    status: str | None
    code: str = ""
    transfer_amount: str = "0"
    reject_reason: str | None = None
    code_description: str | None = None

    @property
    def is_successful(self) -> bool:
        return self.status == SUCCESS_STATUS and self.code == SUCCESS_CODE

    @property
    def is_rejected(self) -> bool:
        return self.status == REJECTED_STATUS


@dataclass(frozen=True)
class PaymentDetails:
    """Current state of a gateway order, as reported by the gateway."""

    gateway_order_id: str
    status: str | None
    reject_reason: str | None = None
    payment_code: str | None = None
    code_description: str | None = None
    raw: dict = field(default_factory=dict)

    @property
    def is_completed(self) -> bool:
        return self.status == SUCCESS_STATUS

    @property
    def is_rejected(self) -> bool:
        return self.status == REJECTED_STATUS


@dataclass(frozen=True)
class RefundResult:
    """Result of a refund attempt."""

    success: bool
    gateway_refund_id: str | None = None
    gateway_status: str | None = None
    failure_reason: str | None = None


class PaymentGateway(ABC):
    """Abstract payment gateway interface."""

    @abstractmethod
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
        """Create a hosted checkout for an order.

        `basket` items carry product_id, description, quantity, unit_price
        and optionally image and sku.
        """
        ...

    @abstractmethod
    def verify_callback_signature(self, raw_body: str, signature: str) -> bool:
        """Verify that a callback body is authentically from the gateway."""
        ...

    @abstractmethod
    def get_payment_details(self, gateway_order_id: str) -> PaymentDetails | None:
        """Fetch the current state of a gateway order; None when unknown."""
        ...

    @abstractmethod
    def refund(self, gateway_order_id: str, amount: float | None = None) -> RefundResult:
        """Refund a paid order, fully when `amount` is None."""
        ...

    def parse_callback(self, payload: dict) -> CallbackResult | None:
        """Extract the callback fields; None when the payload is not a
        payment event.

        Payload shape: `{"event": ..., "body": {"order_id": ...,
        "external_order_id": ..., "order_status": {"key": ...},
        "payment_detail": {"code": ..., "code_description": ...},
        "purchase_units": {"transfer_amount": ...}, "reject_reason": ...}}`
        """
        if not isinstance(payload, dict):
            return None
        body = payload.get("body")
        if not isinstance(body, dict) or not body.get("order_id") or not payload.get("event"):
            return None

        order_status = body.get("order_status") or {}
        payment_detail = body.get("payment_detail") or {}
        purchase_units = body.get("purchase_units") or {}
        return CallbackResult(
            event=payload["event"],
            gateway_order_id=str(body["order_id"]),
            external_order_id=body.get("external_order_id"),
            status=order_status.get("key"),
            code=str(payment_detail.get("code") or ""),
            transfer_amount=str(purchase_units.get("transfer_amount") or "0"),
            reject_reason=body.get("reject_reason"),
            code_description=payment_detail.get("code_description"),
        )
