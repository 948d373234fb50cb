"""Tenant registration: command and handler."""

from protean import handle
from protean.exceptions import ValidationError
from protean.fields import String
from protean.utils.globals import current_domain

from shopu.domain import shop
from shopu.tenancy.tenant import Tenant


@shop.command(part_of="Tenant")
class RegisterTenant:
    """Open a new shop under a platform subdomain."""

    name: String(required=True, max_length=100)
    subdomain: String(required=True, max_length=50)
    owner_email: String(max_length=254)


@shop.command_handler(part_of=Tenant)
class RegisterTenantHandler:
    @handle(RegisterTenant)
    def register_tenant(self, command):
        repo = current_domain.repository_for(Tenant)
        if repo.find_by_subdomain(command.subdomain):
            raise ValidationError({"subdomain": ["Subdomain already taken"]})

        tenant, api_key = Tenant.register(
            name=command.name,
            subdomain=command.subdomain,
            owner_email=command.owner_email,
        )
        repo.add(tenant)
        return {"tenant_id": str(tenant.id), "api_key": api_key}
