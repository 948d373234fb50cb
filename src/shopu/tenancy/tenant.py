"""Tenant aggregate: a shop reachable through a platform subdomain or its own custom domain."""

import hashlib
import hmac
import re
import secrets
from datetime import UTC, datetime

from protean import invariant
from protean.exceptions import ValidationError
from protean.fields import Boolean, DateTime, String

from shopu.domain import shop
from shopu.tenancy.events import (
    ApiKeyRotated,
    CustomDomainChanged,
    TenantActivated,
    TenantDeactivated,
    TenantDetailsUpdated,
    TenantRegistered,
)

_SUBDOMAIN_RE = re.compile(r"^[a-z0-9]{3,50}$")
_HOSTNAME_LABEL_RE = re.compile(r"^[a-z0-9](?:[a-z0-9-]{0,61}[a-z0-9])?$")

# Sentinel for distinguishing "not provided" from None in partial updates
_UNSET = object()


def hash_api_key(api_key: str) -> str:
    return hashlib.sha256(api_key.encode("utf-8")).hexdigest()


def normalize_custom_domain(value: str) -> str:
    """Lowercase a domain and strip any scheme, path, port and trailing dot."""
    domain = value.strip().lower()
    if "://" in domain:
        domain = domain.split("://", 1)[1]
    domain = domain.split("/", 1)[0].split(":", 1)[0].rstrip(".")
    return domain


def is_valid_hostname(domain: str) -> bool:
    if not domain or len(domain) > 253 or "." not in domain:
        return False
    return all(_HOSTNAME_LABEL_RE.match(label) for label in domain.split("."))


@shop.aggregate
class Tenant:
    """A shop on the platform.

    Storefront traffic reaches a tenant either through `<subdomain>.<main domain>`
    or through a custom domain the owner points at the platform. Admin access
    is granted by an API key issued at registration; only its sha256 digest
    is stored.
    """

    name: String(required=True, min_length=2, max_length=100)
    subdomain: String(required=True, max_length=50)
    custom_domain: String(max_length=253)
    owner_email: String(max_length=254)
    is_active: Boolean(default=True)
    api_key_hash: String(max_length=64)
    created_at: DateTime()
    updated_at: DateTime()

    @invariant.post
    def subdomain_must_be_alphanumeric(self):
        if self.subdomain and not _SUBDOMAIN_RE.match(self.subdomain):
            raise ValidationError(
                {"subdomain": ["Subdomain must be 3-50 lowercase letters or digits"]}
            )

    @invariant.post
    def custom_domain_must_be_a_hostname(self):
        if self.custom_domain and not is_valid_hostname(self.custom_domain):
            raise ValidationError({"custom_domain": [f"Invalid domain: {self.custom_domain}"]})

    # -------------------------------------------------------------------
    # Factory
    # -------------------------------------------------------------------
    @classmethod
    def register(cls, name, subdomain, owner_email=None):
        """Open a shop and return it with the plain-text API key (shown once)."""
        now = datetime.now(UTC)
        api_key = secrets.token_urlsafe(32)
        tenant = cls(
            name=name,
            subdomain=subdomain.strip().lower(),
            owner_email=owner_email,
            is_active=True,
            api_key_hash=hash_api_key(api_key),
            created_at=now,
            updated_at=now,
        )
        tenant.raise_(
            TenantRegistered(
                tenant_id=str(tenant.id),
                name=tenant.name,
                subdomain=tenant.subdomain,
                owner_email=owner_email,
                registered_at=now,
            )
        )
        return tenant, api_key

    # -------------------------------------------------------------------
    # Access
    # -------------------------------------------------------------------
    def verify_api_key(self, api_key: str | None) -> bool:
        if not api_key or not self.api_key_hash:
            return False
        return hmac.compare_digest(self.api_key_hash, hash_api_key(api_key))

    def rotate_api_key(self) -> str:
        api_key = secrets.token_urlsafe(32)
        now = datetime.now(UTC)
        self.api_key_hash = hash_api_key(api_key)
        self.updated_at = now
        self.raise_(ApiKeyRotated(tenant_id=str(self.id), rotated_at=now))
        return api_key

    # -------------------------------------------------------------------
    # Details
    # -------------------------------------------------------------------
    def update_details(self, name=_UNSET, subdomain=_UNSET):
        previous_subdomain = self.subdomain
        if name is not _UNSET and name is not None:
            self.name = name
        if subdomain is not _UNSET and subdomain is not None:
            self.subdomain = subdomain.strip().lower()
        self.updated_at = datetime.now(UTC)

        self.raise_(
            TenantDetailsUpdated(
                tenant_id=str(self.id),
                name=self.name,
                subdomain=self.subdomain,
                previous_subdomain=previous_subdomain if previous_subdomain != self.subdomain else None,
            )
        )

    def set_custom_domain(self, domain):
        previous = self.custom_domain
        self.custom_domain = normalize_custom_domain(domain) if domain else None
        self.updated_at = datetime.now(UTC)

        self.raise_(
            CustomDomainChanged(
                tenant_id=str(self.id),
                custom_domain=self.custom_domain,
                previous_custom_domain=previous,
            )
        )

    def remove_custom_domain(self):
        if self.custom_domain is None:
            return
        self.set_custom_domain(None)

    # -------------------------------------------------------------------
    # Lifecycle
    # -------------------------------------------------------------------
    def activate(self):
        if self.is_active:
            return
        now = datetime.now(UTC)
        self.is_active = True
        self.updated_at = now
        self.raise_(TenantActivated(tenant_id=str(self.id), activated_at=now))

    def deactivate(self):
        if not self.is_active:
            return
        now = datetime.now(UTC)
        self.is_active = False
        self.updated_at = now
        self.raise_(TenantDeactivated(tenant_id=str(self.id), deactivated_at=now))

    def to_dict(self) -> dict:
        return {
            "id": str(self.id),
            "name": self.name,
            "subdomain": self.subdomain,
            "custom_domain": self.custom_domain,
            "owner_email": self.owner_email,
            "is_active": self.is_active,
            "created_at": self.created_at.isoformat() if self.created_at else None,
        }
