"""Category management: commands and handler."""

import json

from protean import handle
from protean.exceptions import ObjectNotFoundError, ValidationError
from protean.fields import Boolean, Identifier, String, Text
from protean.utils.globals import current_domain

from shopu.catalogue.category import Category
from shopu.catalogue.product import Product
from shopu.catalogue.slugs import slugify, unique_slug
from shopu.catalogue.tree import descendant_ids
from shopu.domain import shop


@shop.command(part_of="Category")
class CreateCategory:
    tenant_id: Identifier(required=True)
    name: String(required=True, max_length=100)
    slug: String(max_length=100)
    description: Text()
    parent_id: Identifier()
    is_active: Boolean(default=True)


@shop.command(part_of="Category")
class UpdateCategory:
    tenant_id: Identifier(required=True)
    category_id: Identifier(required=True)
    changes: Text(required=True)  # JSON object; a null parent_id moves the category to the root


@shop.command(part_of="Category")
class DeleteCategory:
    tenant_id: Identifier(required=True)
    category_id: Identifier(required=True)


def _load_category(repo, tenant_id, category_id) -> Category:
    category = repo.get_for_tenant(tenant_id, category_id)
    if category is None:
        raise ObjectNotFoundError({"category": ["Category not found"]})
    return category


def _ensure_parent(repo, tenant_id, parent_id) -> None:
    if parent_id and repo.get_for_tenant(tenant_id, parent_id) is None:
        raise ValidationError({"parent_id": ["Parent category not found"]})


def _ensure_slug_free(repo, tenant_id, slug, exclude_id=None) -> None:
    existing = repo.find_by_slug(tenant_id, slug)
    if existing and str(existing.id) != str(exclude_id):
        raise ValidationError({"slug": ["Slug already exists for another category"]})


@shop.command_handler(part_of=Category)
class ManageCategoryHandler:
    @handle(CreateCategory)
    def create_category(self, command):
        repo = current_domain.repository_for(Category)
        _ensure_parent(repo, command.tenant_id, command.parent_id)

        if command.slug:
            slug = command.slug
            _ensure_slug_free(repo, command.tenant_id, slug)
        else:
            taken = {c.slug for c in repo.for_tenant(command.tenant_id)}
            slug = unique_slug(slugify(command.name), taken)

        category = Category.create(
            tenant_id=command.tenant_id,
            name=command.name,
            slug=slug,
            description=command.description,
            parent_id=command.parent_id,
            is_active=command.is_active if command.is_active is not None else True,
        )
        repo.add(category)
        return str(category.id)

    @handle(UpdateCategory)
    def update_category(self, command):
        repo = current_domain.repository_for(Category)
        category = _load_category(repo, command.tenant_id, command.category_id)
        changes = json.loads(command.changes)

        if changes.get("parent_id"):
            parent_id = changes["parent_id"]
            if str(parent_id) == str(category.id):
                raise ValidationError({"parent_id": ["Category cannot be its own parent"]})
            _ensure_parent(repo, command.tenant_id, parent_id)
            subtree = descendant_ids(repo.for_tenant(command.tenant_id), str(category.id))
            if str(parent_id) in subtree:
                raise ValidationError({"parent_id": ["Category cannot be moved under its own subcategory"]})

        if changes.get("slug"):
            _ensure_slug_free(repo, command.tenant_id, changes["slug"], exclude_id=category.id)

        category.update(**changes)
        repo.add(category)

    @handle(DeleteCategory)
    def delete_category(self, command):
        repo = current_domain.repository_for(Category)
        category = _load_category(repo, command.tenant_id, command.category_id)

        children = [c for c in repo.for_tenant(command.tenant_id) if str(c.parent_id) == str(category.id)]
        if children:
            raise ValidationError({"category": ["Cannot delete category with subcategories"]})

        products = current_domain.repository_for(Product).for_tenant(command.tenant_id)
        if any(str(p.category_id) == str(category.id) for p in products):
            raise ValidationError({"category": ["Cannot delete category with products"]})

        category.mark_deleted()
        repo.add(category)
