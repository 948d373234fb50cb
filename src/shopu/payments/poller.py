"""Client-side payment status poller.

After the gateway redirects the customer back to the storefront, the
callback may not have arrived yet. The storefront keeps asking the API for
the order's payment status every couple of seconds until it reads PAID or
gives up. On the fail page it first asks for the failure details, because
the gateway may have redirected there for a payment that succeeded.
"""

import time
from dataclasses import dataclass

import requests
import structlog

logger = structlog.get_logger(__name__)

DEFAULT_INTERVAL = 2.0
DEFAULT_TIMEOUT = 60.0


@dataclass(frozen=True)
class PaymentOutcome:
    """Where polling ended: `paid`, `completed`, `failed` or `timeout`."""

    outcome: str
    payment_status: str | None = None
    order_number: str | None = None
    attempts: int = 0
    details: dict | None = None


class PaymentStatusPoller:
    """Polls the storefront API for an order's payment status."""

    def __init__(
        self,
        api_url: str,
        store_host: str | None = None,
        tenant_slug: str | None = None,
        interval: float = DEFAULT_INTERVAL,
        timeout: float = DEFAULT_TIMEOUT,
        request_timeout: float = 10.0,
        session: requests.Session | None = None,
        sleep=time.sleep,
        clock=time.monotonic,
    ) -> None:
        self.api_url = api_url.rstrip("/")
        self.interval = interval
        self.timeout = timeout
        self.request_timeout = request_timeout
        self.session = session or requests.Session()
        self._sleep = sleep
        self._clock = clock

        self.headers = {"Accept": "application/json"}
        if store_host:
            self.headers["X-Original-Host"] = store_host
        if tenant_slug:
            self.headers["X-Tenant-Slug"] = tenant_slug

    def _get(self, path: str):
        response = self.session.get(f"{self.api_url}{path}", headers=self.headers, timeout=self.request_timeout)
        response.raise_for_status()
        return response.json()

    def fetch_status(self, order_id: str) -> dict:
        """`{"order_number": ..., "payment_status": ...}` for the order."""
        return self._get(f"/store/orders/{order_id}/status")

    def fetch_failure_details(self, order_id: str) -> dict | None:
        return self._get(f"/store/orders/{order_id}/payment-failure")

    def wait_until_paid(self, order_id: str) -> PaymentOutcome:
        """Poll until the order reads PAID or the timeout elapses.

        Transport errors count as a missed poll; polling carries on.
        """
        deadline = self._clock() + self.timeout
        attempts = 0
        last: dict = {}
        while True:
            attempts += 1
            try:
                last = self.fetch_status(order_id)
            except requests.exceptions.RequestException as exc:
                logger.warning("Payment status poll failed", order_id=order_id, attempt=attempts, error=str(exc))
            else:
                if last.get("payment_status") == "PAID":
                    return PaymentOutcome("paid", "PAID", last.get("order_number"), attempts)

            if self._clock() + self.interval > deadline:
                logger.info("Payment status polling timed out", order_id=order_id, attempts=attempts)
                return PaymentOutcome("timeout", last.get("payment_status"), last.get("order_number"), attempts)
            self._sleep(self.interval)

    def resolve_fail_redirect(self, order_id: str) -> PaymentOutcome:
        """Decide what a fail-page landing really means.

        `completed` when the gateway reports the payment went through (the
        caller should show the success page), `failed` otherwise.
        """
        details = self.fetch_failure_details(order_id)
        if details and details.get("order_status") == "completed":
            logger.info("Fail redirect for a completed payment", order_id=order_id)
            return PaymentOutcome("completed", "PAID", attempts=1, details=details)
        return PaymentOutcome("failed", attempts=1, details=details)
