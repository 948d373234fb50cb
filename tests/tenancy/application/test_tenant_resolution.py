"""Application tests for resolving the tenant that owns a request host."""

from uuid import uuid4

import pytest
from protean import current_domain

from shopu.errors import MissingHostError, TenantNotFoundError
from shopu.tenancy.management import SetCustomDomain
from shopu.tenancy.registration import RegisterTenant
from shopu.tenancy.resolver import resolve_tenant, storefront_base_url
from shopu.tenancy.tenant import Tenant


def _with_custom_domain(tenant, domain):
    current_domain.process(SetCustomDomain(tenant_id=str(tenant.id), custom_domain=domain), asynchronous=False)
    return current_domain.repository_for(Tenant).get(tenant.id)


class TestSubdomainResolution:
    def test_platform_subdomain(self, tenant):
        assert resolve_tenant(f"{tenant.subdomain}.shopu.ge").id == tenant.id

    def test_localhost_subdomain_with_port(self, tenant):
        assert resolve_tenant(f"{tenant.subdomain}.localhost:3000").id == tenant.id

    def test_unknown_subdomain(self):
        with pytest.raises(TenantNotFoundError):
            resolve_tenant("nosuchshop.shopu.ge")


class TestTenantSlugHeader:
    def test_slug_selects_tenant_on_main_domain(self, tenant):
        assert resolve_tenant("localhost:8000", tenant_slug=tenant.subdomain).id == tenant.id

    def test_unknown_slug(self):
        with pytest.raises(TenantNotFoundError):
            resolve_tenant("shopu.ge", tenant_slug="nosuchshop")

    def test_slug_ignored_on_tenant_host(self, tenant):
        other = current_domain.process(
            RegisterTenant(name="Other", subdomain=f"shop{uuid4().hex[:10]}"), asynchronous=False
        )
        other_tenant = current_domain.repository_for(Tenant).get(other["tenant_id"])
        resolved = resolve_tenant(f"{tenant.subdomain}.shopu.ge", tenant_slug=other_tenant.subdomain)
        assert resolved.id == tenant.id


class TestCustomDomainResolution:
    def test_exact_custom_domain(self, tenant):
        domain = f"tea{uuid4().hex[:8]}.ge"
        _with_custom_domain(tenant, domain)
        assert resolve_tenant(domain).id == tenant.id

    def test_www_host_matches_bare_custom_domain(self, tenant):
        domain = f"tea{uuid4().hex[:8]}.ge"
        _with_custom_domain(tenant, domain)
        assert resolve_tenant(f"www.{domain}").id == tenant.id

    def test_bare_host_matches_www_custom_domain(self, tenant):
        domain = f"tea{uuid4().hex[:8]}.ge"
        _with_custom_domain(tenant, f"www.{domain}")
        assert resolve_tenant(domain).id == tenant.id

    def test_custom_domain_preferred_over_subdomain(self, tenant):
        label = f"tea{uuid4().hex[:8]}"
        current_domain.process(RegisterTenant(name="Lookalike", subdomain=label), asynchronous=False)
        # `<label>.example.ge` has three labels, so it also reads as a subdomain host
        _with_custom_domain(tenant, f"{label}.example.ge")
        assert resolve_tenant(f"{label}.example.ge").id == tenant.id

    def test_unknown_custom_domain(self):
        with pytest.raises(TenantNotFoundError):
            resolve_tenant("unknown-shop.ge")


class TestMissingHost:
    @pytest.mark.parametrize("host", [None, ""])
    def test_missing_host(self, host):
        with pytest.raises(MissingHostError):
            resolve_tenant(host)


class TestStorefrontBaseUrl:
    def test_uses_request_host_with_port(self, tenant):
        assert storefront_base_url(tenant, "TeaHouse.localhost:3000") == "https://teahouse.localhost:3000"

    def test_prefers_custom_domain_without_host(self, tenant):
        domain = f"tea{uuid4().hex[:8]}.ge"
        tenant = _with_custom_domain(tenant, domain)
        assert storefront_base_url(tenant) == f"https://{domain}"

    def test_falls_back_to_platform_subdomain(self, tenant):
        assert storefront_base_url(tenant) == f"https://{tenant.subdomain}.shopu.ge"
