"""Payment gateway factory.

Provides get_gateway() / set_gateway() to swap implementations:
- FakeGateway for development and testing
- BOGGateway for production, selected with PAYMENT_GATEWAY=bog
"""

from shopu.config import get_settings
from shopu.errors import GatewayNotConfiguredError
from shopu.payments.gateway.fake_adapter import FakeGateway
from shopu.payments.gateway.port import PaymentGateway

_current_gateway: PaymentGateway | None = None


def _build_gateway() -> PaymentGateway:
    settings = get_settings()
    if settings.PAYMENT_GATEWAY != "bog":
        return FakeGateway()

    if not settings.BOG_CLIENT_ID or not settings.BOG_CLIENT_SECRET:
        raise GatewayNotConfiguredError("BOG_CLIENT_ID and BOG_CLIENT_SECRET must be configured")

    from shopu.payments.gateway.bog_adapter import BOGGateway

    return BOGGateway(
        client_id=settings.BOG_CLIENT_ID,
        client_secret=settings.BOG_CLIENT_SECRET,
        oauth_url=settings.BOG_OAUTH_URL,
        api_url=settings.BOG_API_URL,
        public_key_pem=settings.BOG_CALLBACK_PUBLIC_KEY,
        currency=settings.CURRENCY,
        timeout=settings.BOG_REQUEST_TIMEOUT,
    )


def get_gateway() -> PaymentGateway:
    """Return the current payment gateway, building it from settings on first use."""
    global _current_gateway
    if _current_gateway is None:
        _current_gateway = _build_gateway()
    return _current_gateway


def set_gateway(gateway: PaymentGateway) -> None:
    """Override the active payment gateway (useful for tests)."""
    global _current_gateway
    _current_gateway = gateway


def reset_gateway() -> None:
    """Reset to the gateway selected by settings."""
    global _current_gateway
    _current_gateway = None
