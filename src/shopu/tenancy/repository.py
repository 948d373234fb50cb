"""Repository for the Tenant aggregate."""

from shopu.domain import shop
from shopu.tenancy.tenant import Tenant


@shop.repository(part_of=Tenant)
class TenantRepository:
    def find_by_subdomain(self, subdomain: str) -> Tenant | None:
        if not subdomain:
            return None
        matches = self._dao.query.filter(subdomain=subdomain.lower()).all().items
        return matches[0] if matches else None

    def find_by_custom_domain(self, *domains: str) -> Tenant | None:
        """Return the tenant owning the first matching domain, in the given order."""
        for domain in domains:
            if not domain:
                continue
            matches = self._dao.query.filter(custom_domain=domain.lower()).all().items
            if matches:
                return matches[0]
        return None
