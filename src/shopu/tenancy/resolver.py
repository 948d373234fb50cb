"""Map an inbound request host to the tenant that owns it.

Behind the platform's reverse proxy the browser host arrives in
`X-Original-Host`; direct requests use `Host`. Resolution order:

1. On a platform (main) domain, an explicit `X-Tenant-Slug` header selects
   the tenant by subdomain. This is how the admin app and local
   development address a shop.
2. Custom domain lookup: the host itself, `www.` + host, then host
   without `www.`.
3. Subdomain fallback: the first label of `*.localhost` or of any host
   with more than two labels.
"""

from dataclasses import dataclass

import structlog
from protean.utils.globals import current_domain

from shopu.config import get_settings
from shopu.errors import MissingHostError, TenantNotFoundError
from shopu.tenancy.tenant import Tenant

logger = structlog.get_logger(__name__)


@dataclass(frozen=True)
class HostInfo:
    host: str
    is_main_domain: bool
    subdomain: str | None


def normalize_host(raw_host: str | None) -> str | None:
    """Lowercase the host and strip any port."""
    if not raw_host:
        return None
    host = raw_host.split(",", 1)[0].strip().lower()
    if host.startswith("["):
        # IPv6 literal
        host = host.split("]", 1)[0] + "]"
    else:
        host = host.split(":", 1)[0]
    return host.rstrip(".") or None


def extract_subdomain(host: str) -> str | None:
    """Return the tenant label of a platform host, or None for a bare domain."""
    if host.startswith("www."):
        host = host[4:]
    parts = host.split(".")

    if "localhost" in host:
        if len(parts) > 1 and parts[0] != "localhost":
            return parts[0]
        return None

    if len(parts) > 2:
        return parts[0]
    return None


def is_main_domain(host: str, main_domains: list[str] | None = None) -> bool:
    main_domains = main_domains if main_domains is not None else get_settings().main_domains
    bare = host[4:] if host.startswith("www.") else host
    return bare in main_domains


def inspect_host(raw_host: str | None) -> HostInfo:
    host = normalize_host(raw_host)
    if not host:
        raise MissingHostError()
    return HostInfo(host=host, is_main_domain=is_main_domain(host), subdomain=extract_subdomain(host))


def custom_domain_candidates(host: str) -> list[str]:
    candidates = [host, f"www.{host}"]
    if host.startswith("www."):
        candidates.append(host[4:])
    return candidates


def resolve_tenant(raw_host: str | None, tenant_slug: str | None = None) -> Tenant:
    """Resolve the tenant for a request host.

    Raises `MissingHostError` when no host is available and
    `TenantNotFoundError` when nothing matches.
    """
    info = inspect_host(raw_host)
    repo = current_domain.repository_for(Tenant)

    if info.is_main_domain and tenant_slug:
        tenant = repo.find_by_subdomain(tenant_slug.strip().lower())
        if tenant is None:
            raise TenantNotFoundError(subdomain=tenant_slug)
        return tenant

    tenant = repo.find_by_custom_domain(*custom_domain_candidates(info.host))
    if tenant is not None:
        logger.debug("Tenant resolved by custom domain", host=info.host, tenant_id=str(tenant.id))
        return tenant

    if info.subdomain:
        tenant = repo.find_by_subdomain(info.subdomain)
        if tenant is not None:
            return tenant
        raise TenantNotFoundError(subdomain=info.subdomain)

    raise TenantNotFoundError(host=info.host)


def storefront_base_url(tenant: Tenant, raw_host: str | None = None) -> str:
    """Public storefront URL used for payment redirects."""
    scheme = get_settings().STOREFRONT_SCHEME
    if raw_host and raw_host.strip():
        # Keep the port so local development redirects back to the same server
        host = raw_host.split(",", 1)[0].strip().lower()
        return f"{scheme}://{host}"
    if tenant.custom_domain:
        return f"{scheme}://{tenant.custom_domain}"
    main_domain = next(
        (d for d in get_settings().main_domains if d not in ("localhost", "127.0.0.1")),
        "localhost",
    )
    return f"{scheme}://{tenant.subdomain}.{main_domain}"
