"""Domain events for the Tenant aggregate."""

from protean.fields import DateTime, Identifier, String

from shopu.domain import shop


@shop.event(part_of="Tenant")
class TenantRegistered:
    """A new shop was opened on the platform."""

    __version__ = 1

    tenant_id: Identifier(required=True)
    name: String(required=True, max_length=100)
    subdomain: String(required=True, max_length=50)
    owner_email: String(max_length=254)
    registered_at: DateTime(required=True)


@shop.event(part_of="Tenant")
class TenantDetailsUpdated:
    """The shop name or subdomain changed."""

    __version__ = 1

    tenant_id: Identifier(required=True)
    name: String(required=True, max_length=100)
    subdomain: String(required=True, max_length=50)
    previous_subdomain: String(max_length=50)


@shop.event(part_of="Tenant")
class CustomDomainChanged:
    """A custom domain was attached to or detached from the shop."""

    __version__ = 1

    tenant_id: Identifier(required=True)
    custom_domain: String(max_length=253)
    previous_custom_domain: String(max_length=253)


@shop.event(part_of="Tenant")
class TenantActivated:
    __version__ = 1

    tenant_id: Identifier(required=True)
    activated_at: DateTime(required=True)


@shop.event(part_of="Tenant")
class TenantDeactivated:
    __version__ = 1

    tenant_id: Identifier(required=True)
    deactivated_at: DateTime(required=True)


@shop.event(part_of="Tenant")
class ApiKeyRotated:
    __version__ = 1

    tenant_id: Identifier(required=True)
    rotated_at: DateTime(required=True)
