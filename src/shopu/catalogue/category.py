"""Category aggregate: a tenant's hierarchical product grouping."""

from datetime import UTC, datetime

from protean import invariant
from protean.exceptions import ValidationError
from protean.fields import Boolean, DateTime, Identifier, String, Text

from shopu.catalogue.slugs import is_valid_slug
from shopu.domain import shop
from shopu.utils.db import fetch_all


@shop.aggregate
class Category:
    """Categories nest through `parent_id`; the storefront shows active,
    non-deleted categories as a tree with recursive product counts."""

    tenant_id: Identifier(required=True)
    name: String(required=True, max_length=100)
    slug: String(required=True, max_length=100)
    description: Text()
    parent_id: Identifier()
    is_active: Boolean(default=True)
    is_deleted: Boolean(default=False)
    created_at: DateTime()
    updated_at: DateTime()

    @invariant.post
    def slug_must_be_url_safe(self):
        if not is_valid_slug(self.slug):
            raise ValidationError({"slug": ["Slug must contain only lowercase letters, digits and single hyphens"]})

    @invariant.post
    def category_cannot_be_its_own_parent(self):
        if self.parent_id and str(self.parent_id) == str(self.id):
            raise ValidationError({"parent_id": ["Category cannot be its own parent"]})

    @classmethod
    def create(cls, tenant_id, name, slug, description=None, parent_id=None, is_active=True):
        from shopu.catalogue.events import CategoryCreated

        now = datetime.now(UTC)
        category = cls(
            tenant_id=tenant_id,
            name=name,
            slug=slug,
            description=description,
            parent_id=parent_id,
            is_active=is_active,
            created_at=now,
            updated_at=now,
        )
        category.raise_(
            CategoryCreated(
                category_id=str(category.id),
                tenant_id=str(tenant_id),
                name=name,
                slug=slug,
                parent_id=parent_id,
            )
        )
        return category

    def update(self, **changes):
        from shopu.catalogue.events import CategoryUpdated

        for field in ("name", "slug", "description", "parent_id", "is_active"):
            if field in changes:
                setattr(self, field, changes[field])
        self.updated_at = datetime.now(UTC)

        self.raise_(
            CategoryUpdated(
                category_id=str(self.id),
                name=self.name,
                slug=self.slug,
                parent_id=self.parent_id,
                is_active=self.is_active,
            )
        )

    def mark_deleted(self):
        from shopu.catalogue.events import CategoryDeleted

        if self.is_deleted:
            raise ValidationError({"category": ["Category is already deleted"]})
        self.is_deleted = True
        self.is_active = False
        self.updated_at = datetime.now(UTC)
        self.raise_(CategoryDeleted(category_id=str(self.id), tenant_id=str(self.tenant_id)))

    def to_dict(self) -> dict:
        return {
            "id": str(self.id),
            "name": self.name,
            "slug": self.slug,
            "description": self.description,
            "parent_id": str(self.parent_id) if self.parent_id else None,
            "is_active": self.is_active,
            "created_at": self.created_at.isoformat() if self.created_at else None,
        }


@shop.repository(part_of=Category)
class CategoryRepository:
    def for_tenant(self, tenant_id, include_deleted: bool = False) -> list[Category]:
        query = self._dao.query.filter(tenant_id=str(tenant_id))
        if not include_deleted:
            query = query.filter(is_deleted=False)
        return fetch_all(query)

    def _first(self, **filters) -> Category | None:
        matches = self._dao.query.filter(**filters).limit(1).all().items
        return matches[0] if matches else None

    def get_for_tenant(self, tenant_id, category_id) -> Category | None:
        """Live category owned by the tenant, or None."""
        if not category_id:
            return None
        return self._first(tenant_id=str(tenant_id), id=str(category_id), is_deleted=False)

    def find_by_slug(self, tenant_id, slug) -> Category | None:
        if not slug:
            return None
        return self._first(tenant_id=str(tenant_id), slug=slug, is_deleted=False)
