"""Bank of Georgia (BOG) Payment Manager adapter.

Talks to the BOG e-commerce API over HTTPS:

- OAuth2 client-credentials token, cached until a minute before it expires
- `POST /ecommerce/orders` to create a hosted checkout
- `GET /receipt/{order_id}` for the current payment state
- `POST /payment/refund/{order_id}` for full or partial refunds

Callbacks are signed by BOG with SHA256withRSA over the raw request body;
the base64 signature arrives in the `Callback-Signature` header.
"""

import base64
import time

import requests
import structlog
from cryptography.exceptions import InvalidSignature
from cryptography.hazmat.primitives import hashes, serialization
from cryptography.hazmat.primitives.asymmetric import padding

from shopu.errors import PaymentGatewayError
from shopu.payments.gateway.port import CheckoutSession, PaymentDetails, PaymentGateway, RefundResult

logger = structlog.get_logger(__name__)

TOKEN_REFRESH_MARGIN = 60  # seconds
MIN_TTL_MINUTES = 2
MAX_TTL_MINUTES = 1440
MASKED_PHONE = "+995***000"


def mask_email(email: str | None) -> str:
    """`john@example.com` -> `j***n@example.com`."""
    if not email or "@" not in email:
        return "***@***"
    local, domain = email.split("@", 1)
    if len(local) <= 2:
        masked = f"{local[:1]}***"
    else:
        masked = f"{local[0]}***{local[-1]}"
    return f"{masked}@{domain}"


def clamp_ttl(minutes: int) -> int:
    return min(MAX_TTL_MINUTES, max(MIN_TTL_MINUTES, int(minutes)))


def _money(value: float) -> float:
    return round(float(value), 2)


class BOGGateway(PaymentGateway):
    """Production BOG gateway adapter."""

    def __init__(
        self,
        client_id: str,
        client_secret: str,
        oauth_url: str,
        api_url: str,
        public_key_pem: str,
        currency: str = "GEL",
        timeout: float = 30.0,
        session: requests.Session | None = None,
        clock=time.time,
    ) -> None:
        self.client_id = client_id
        self.client_secret = client_secret
        self.oauth_url = oauth_url
        self.api_url = api_url.rstrip("/")
        self.public_key = serialization.load_pem_public_key(public_key_pem.encode("utf-8"))
        self.currency = currency
        self.timeout = timeout
        self.session = session or requests.Session()
        self._clock = clock
        self._token: str | None = None
        self._token_expires_at: float = 0.0

    # -------------------------------------------------------------------
    # HTTP plumbing
    # -------------------------------------------------------------------
    def _request(self, method: str, url: str, action: str, **kwargs) -> requests.Response:
        try:
            return self.session.request(method, url, timeout=self.timeout, **kwargs)
        except requests.exceptions.RequestException as exc:
            logger.error("BOG request failed", action=action, url=url, error=str(exc))
            raise PaymentGatewayError(f"BOG {action} failed: {exc}") from exc

    @staticmethod
    def _raise_for_status(response: requests.Response, action: str) -> None:
        if response.ok:
            return
        logger.error("BOG API error", action=action, status_code=response.status_code, body=response.text[:500])
        raise PaymentGatewayError(f"BOG {action} failed: {response.status_code} {response.text[:200]}")

    @staticmethod
    def _json(response: requests.Response, action: str, *required: str) -> dict:
        """Decode a successful reply; a body that is not the expected JSON object is a gateway error."""
        try:
            data = response.json()
        except ValueError as exc:
            logger.error("BOG reply is not JSON", action=action, body=response.text[:500])
            raise PaymentGatewayError(f"BOG {action} failed: invalid response body") from exc

        if not isinstance(data, dict):
            raise PaymentGatewayError(f"BOG {action} failed: unexpected response body")
        missing = [key for key in required if not data.get(key)]
        if missing:
            logger.error("BOG reply is incomplete", action=action, missing=missing)
            raise PaymentGatewayError(f"BOG {action} failed: response is missing {', '.join(missing)}")
        return data

    def get_access_token(self) -> str:
        now = self._clock()
        if self._token and self._token_expires_at > now + TOKEN_REFRESH_MARGIN:
            return self._token

        response = self._request(
            "POST",
            self.oauth_url,
            "OAuth",
            auth=(self.client_id, self.client_secret),
            data={"grant_type": "client_credentials"},
            headers={"Content-Type": "application/x-www-form-urlencoded"},
        )
        self._raise_for_status(response, "OAuth")

        data = self._json(response, "OAuth", "access_token")
        self._token = data["access_token"]
        self._token_expires_at = now + float(data.get("expires_in") or 0)
        logger.debug("BOG access token refreshed", expires_in=data.get("expires_in"))
        return self._token

    def _auth_headers(self) -> dict:
        return {"Authorization": f"Bearer {self.get_access_token()}"}

    # -------------------------------------------------------------------
    # Port
    # -------------------------------------------------------------------
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
        headers = {
            **self._auth_headers(),
            "Content-Type": "application/json",
            "Accept-Language": "ka",
        }
        if idempotency_key:
            headers["Idempotency-Key"] = idempotency_key

        body = {
            "callback_url": callback_url,
            "external_order_id": external_order_id,
            "capture": "automatic",
            "ttl": clamp_ttl(ttl_minutes),
            "payment_method": ["card"],
            "buyer": {
                "full_name": customer_name,
                "masked_email": mask_email(customer_email),
                "masked_phone": MASKED_PHONE,
            },
            "purchase_units": {
                "currency": self.currency,
                "total_amount": _money(total_amount),
                "total_discount_amount": 0,
                "basket": [
                    {
                        "product_id": item["product_id"],
                        "description": item.get("description"),
                        "quantity": item["quantity"],
                        "unit_price": _money(item["unit_price"]),
                        "unit_discount_price": 0,
                        "vat": 0,
                        "vat_percent": 0,
                        "total_price": _money(item["unit_price"] * item["quantity"]),
                        "image": item.get("image"),
                        "package_code": item.get("sku"),
                        "tin": None,
                        "pinfl": None,
                        "product_discount_id": None,
                    }
                    for item in basket
                ],
                "delivery": {"amount": 0},
            },
            "redirect_urls": {"success": success_url, "fail": fail_url},
        }

        response = self._request("POST", f"{self.api_url}/ecommerce/orders", "create order", json=body, headers=headers)
        self._raise_for_status(response, "create order")

        data = self._json(response, "create order", "id")
        links = data.get("_links") or {}
        redirect_url = (links.get("redirect") or {}).get("href")
        if not redirect_url:
            raise PaymentGatewayError("BOG did not return redirect URL")

        logger.info("BOG order created", external_order_id=external_order_id, gateway_order_id=data.get("id"))
        return CheckoutSession(
            gateway_order_id=str(data["id"]),
            redirect_url=redirect_url,
            details_url=(links.get("details") or {}).get("href"),
        )

    def verify_callback_signature(self, raw_body: str, signature: str) -> bool:
        try:
            self.public_key.verify(
                base64.b64decode(signature, validate=True),
                raw_body.encode("utf-8"),
                padding.PKCS1v15(),
                hashes.SHA256(),
            )
        except (InvalidSignature, ValueError) as exc:
            logger.warning("BOG callback signature verification failed", error=type(exc).__name__)
            return False
        return True

    def get_payment_details(self, gateway_order_id: str) -> PaymentDetails | None:
        response = self._request(
            "GET", f"{self.api_url}/receipt/{gateway_order_id}", "get details", headers=self._auth_headers()
        )
        if response.status_code == 404:
            return None
        self._raise_for_status(response, "get details")

        data = self._json(response, "get details")
        payment_detail = data.get("payment_detail") or {}
        return PaymentDetails(
            gateway_order_id=gateway_order_id,
            status=(data.get("order_status") or {}).get("key"),
            reject_reason=data.get("reject_reason"),
            payment_code=payment_detail.get("code"),
            code_description=payment_detail.get("code_description"),
            raw=data,
        )

    def refund(self, gateway_order_id: str, amount: float | None = None) -> RefundResult:
        body = {"amount": str(amount)} if amount is not None else {}
        response = self._request(
            "POST",
            f"{self.api_url}/payment/refund/{gateway_order_id}",
            "refund",
            json=body,
            headers={**self._auth_headers(), "Content-Type": "application/json"},
        )
        if not response.ok:
            logger.error("BOG refund rejected", gateway_order_id=gateway_order_id, status_code=response.status_code)
            return RefundResult(success=False, failure_reason=f"{response.status_code} {response.text[:200]}")

        data = self._json(response, "refund") if response.content else {}
        return RefundResult(
            success=True,
            gateway_refund_id=data.get("action_id"),
            gateway_status=data.get("key") or "refunded",
        )
