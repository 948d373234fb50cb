"""Tenant management: details, custom domain, activation and API key rotation."""

from protean import handle
from protean.exceptions import ValidationError
from protean.fields import Identifier, String
from protean.utils.globals import current_domain

from shopu.config import get_settings
from shopu.domain import shop
from shopu.tenancy.tenant import Tenant, normalize_custom_domain


@shop.command(part_of="Tenant")
class UpdateTenant:
    tenant_id: Identifier(required=True)
    name: String(max_length=100)
    subdomain: String(max_length=50)


@shop.command(part_of="Tenant")
class SetCustomDomain:
    tenant_id: Identifier(required=True)
    custom_domain: String(required=True, max_length=253)


@shop.command(part_of="Tenant")
class RemoveCustomDomain:
    tenant_id: Identifier(required=True)


@shop.command(part_of="Tenant")
class ActivateTenant:
    tenant_id: Identifier(required=True)


@shop.command(part_of="Tenant")
class DeactivateTenant:
    tenant_id: Identifier(required=True)


@shop.command(part_of="Tenant")
class RotateApiKey:
    tenant_id: Identifier(required=True)


def _ensure_not_platform_domain(domain: str) -> None:
    for main_domain in get_settings().main_domains:
        if domain == main_domain or domain.endswith(f".{main_domain}"):
            raise ValidationError({"custom_domain": ["Platform domains cannot be used as a custom domain"]})


@shop.command_handler(part_of=Tenant)
class TenantManagementHandler:
    @handle(UpdateTenant)
    def update_tenant(self, command):
        repo = current_domain.repository_for(Tenant)
        tenant = repo.get(command.tenant_id)

        if command.subdomain:
            existing = repo.find_by_subdomain(command.subdomain)
            if existing and str(existing.id) != str(tenant.id):
                raise ValidationError({"subdomain": ["Subdomain already taken"]})

        tenant.update_details(name=command.name, subdomain=command.subdomain)
        repo.add(tenant)

    @handle(SetCustomDomain)
    def set_custom_domain(self, command):
        repo = current_domain.repository_for(Tenant)
        tenant = repo.get(command.tenant_id)

        domain = normalize_custom_domain(command.custom_domain)
        _ensure_not_platform_domain(domain)

        # `example.ge` and `www.example.ge` address the same shop
        bare = domain[4:] if domain.startswith("www.") else domain
        existing = repo.find_by_custom_domain(bare, f"www.{bare}")
        if existing and str(existing.id) != str(tenant.id):
            raise ValidationError({"custom_domain": ["Domain is already connected to another store"]})

        tenant.set_custom_domain(domain)
        repo.add(tenant)

    @handle(RemoveCustomDomain)
    def remove_custom_domain(self, command):
        repo = current_domain.repository_for(Tenant)
        tenant = repo.get(command.tenant_id)
        tenant.remove_custom_domain()
        repo.add(tenant)

    @handle(ActivateTenant)
    def activate_tenant(self, command):
        repo = current_domain.repository_for(Tenant)
        tenant = repo.get(command.tenant_id)
        tenant.activate()
        repo.add(tenant)

    @handle(DeactivateTenant)
    def deactivate_tenant(self, command):
        repo = current_domain.repository_for(Tenant)
        tenant = repo.get(command.tenant_id)
        tenant.deactivate()
        repo.add(tenant)

    @handle(RotateApiKey)
    def rotate_api_key(self, command):
        repo = current_domain.repository_for(Tenant)
        tenant = repo.get(command.tenant_id)
        api_key = tenant.rotate_api_key()
        repo.add(tenant)
        return api_key
