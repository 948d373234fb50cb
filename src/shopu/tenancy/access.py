"""FastAPI dependencies that attach the resolved tenant to a request."""

from fastapi import Depends, Header, Request

from shopu.errors import AuthenticationError, TenantInactiveError
from shopu.tenancy.resolver import resolve_tenant
from shopu.tenancy.tenant import Tenant
from shopu.utils.logging import add_context


def request_host(request: Request) -> str | None:
    """The browser-facing host: `X-Original-Host` from the proxy, else `Host`."""
    return request.headers.get("x-original-host") or request.headers.get("host")


async def current_tenant(
    request: Request,
    x_tenant_slug: str | None = Header(default=None),
) -> Tenant:
    """Resolve the tenant regardless of its active state."""
    tenant = resolve_tenant(request_host(request), x_tenant_slug)
    request.state.tenant = tenant
    add_context(tenant_id=str(tenant.id))
    return tenant


async def storefront_tenant(tenant: Tenant = Depends(current_tenant)) -> Tenant:
    """Resolve the tenant for public storefront routes; inactive shops are closed."""
    if not tenant.is_active:
        raise TenantInactiveError()
    return tenant


def _api_key_from_headers(authorization: str, x_api_key: str) -> str | None:
    if x_api_key:
        return x_api_key.strip()
    scheme, _, token = authorization.partition(" ")
    if scheme.lower() == "bearer" and token.strip():
        return token.strip()
    return None


async def tenant_admin(
    tenant: Tenant = Depends(current_tenant),
    authorization: str = Header(default=""),
    x_api_key: str = Header(default=""),
) -> Tenant:
    """Require the tenant's API key (`Authorization: Bearer <key>` or `X-Api-Key`)."""
    api_key = _api_key_from_headers(authorization, x_api_key)
    if api_key is None:
        raise AuthenticationError("Access token required")
    if not tenant.verify_api_key(api_key):
        raise AuthenticationError("Invalid API key")
    return tenant
