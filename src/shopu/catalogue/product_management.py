"""Product and variant management: commands and handler."""

import json

from protean import handle
from protean.exceptions import ObjectNotFoundError, ValidationError
from protean.fields import Boolean, Float, Identifier, Integer, String, Text
from protean.utils.globals import current_domain

from shopu.catalogue.category import Category
from shopu.catalogue.product import Product
from shopu.catalogue.slugs import slugify, unique_slug
from shopu.domain import shop


@shop.command(part_of="Product")
class CreateProduct:
    tenant_id: Identifier(required=True)
    title: String(required=True, max_length=200)
    slug: String(max_length=200)
    sku: String(max_length=100)
    description: Text()
    price: Float(required=True, min_value=0.0)
    stock_quantity: Integer(default=0)
    is_active: Boolean(default=True)
    category_id: Identifier()
    attributes: Text()  # JSON object
    images: Text()  # JSON array
    variants: Text()  # JSON array of variant dicts


@shop.command(part_of="Product")
class UpdateProduct:
    tenant_id: Identifier(required=True)
    product_id: Identifier(required=True)
    changes: Text(required=True)  # JSON object


@shop.command(part_of="Product")
class DeleteProduct:
    tenant_id: Identifier(required=True)
    product_id: Identifier(required=True)


@shop.command(part_of="Product")
class RestoreProduct:
    tenant_id: Identifier(required=True)
    product_id: Identifier(required=True)


@shop.command(part_of="Product")
class AddVariant:
    tenant_id: Identifier(required=True)
    product_id: Identifier(required=True)
    sku: String(max_length=100)
    options: Text()  # JSON object
    price: Float(min_value=0.0)
    stock_quantity: Integer(default=0)
    is_active: Boolean(default=True)


@shop.command(part_of="Product")
class UpdateVariant:
    tenant_id: Identifier(required=True)
    product_id: Identifier(required=True)
    variant_id: Identifier(required=True)
    changes: Text(required=True)  # JSON object


@shop.command(part_of="Product")
class RemoveVariant:
    tenant_id: Identifier(required=True)
    product_id: Identifier(required=True)
    variant_id: Identifier(required=True)


def _load_product(repo, tenant_id, product_id, include_deleted=False) -> Product:
    product = repo.get_for_tenant(tenant_id, product_id, include_deleted=include_deleted)
    if product is None:
        raise ObjectNotFoundError({"product": ["Product not found"]})
    return product


def _ensure_category(tenant_id, category_id) -> None:
    if not category_id:
        return
    if current_domain.repository_for(Category).get_for_tenant(tenant_id, category_id) is None:
        raise ValidationError({"category_id": ["Category not found"]})


def _ensure_sku_free(repo, tenant_id, sku, exclude_id=None) -> None:
    existing = repo.find_by_sku(tenant_id, sku)
    if existing and str(existing.id) != str(exclude_id):
        suffix = " (deleted product)" if existing.is_deleted else ""
        raise ValidationError({"sku": [f"SKU already exists for another product{suffix}"]})


def _ensure_slug_free(repo, tenant_id, slug, exclude_id=None) -> None:
    existing = repo.find_by_slug(tenant_id, slug)
    if existing and str(existing.id) != str(exclude_id):
        raise ValidationError({"slug": ["Slug already exists for another active product"]})


@shop.command_handler(part_of=Product)
class ManageProductHandler:
    @handle(CreateProduct)
    def create_product(self, command):
        repo = current_domain.repository_for(Product)
        _ensure_category(command.tenant_id, command.category_id)
        _ensure_sku_free(repo, command.tenant_id, command.sku)

        if command.slug:
            slug = command.slug
            _ensure_slug_free(repo, command.tenant_id, slug)
        else:
            taken = {p.slug for p in repo.for_tenant(command.tenant_id)}
            slug = unique_slug(slugify(command.title), taken)

        product = Product.create(
            tenant_id=command.tenant_id,
            title=command.title,
            slug=slug,
            sku=command.sku,
            description=command.description,
            price=command.price,
            stock_quantity=command.stock_quantity,
            is_active=command.is_active if command.is_active is not None else True,
            category_id=command.category_id,
            attributes=json.loads(command.attributes) if command.attributes else None,
            images=json.loads(command.images) if command.images else None,
        )
        for variant in json.loads(command.variants) if command.variants else []:
            product.add_variant(
                sku=variant.get("sku"),
                options=variant.get("options"),
                price=variant.get("price"),
                stock_quantity=variant.get("stock_quantity", 0),
                is_active=variant.get("is_active", True),
            )

        repo.add(product)
        return str(product.id)

    @handle(UpdateProduct)
    def update_product(self, command):
        repo = current_domain.repository_for(Product)
        product = _load_product(repo, command.tenant_id, command.product_id)
        changes = json.loads(command.changes)

        if changes.get("category_id"):
            _ensure_category(command.tenant_id, changes["category_id"])
        if changes.get("sku"):
            _ensure_sku_free(repo, command.tenant_id, changes["sku"], exclude_id=product.id)
        if changes.get("slug"):
            _ensure_slug_free(repo, command.tenant_id, changes["slug"], exclude_id=product.id)

        product.update(**changes)
        repo.add(product)

    @handle(DeleteProduct)
    def delete_product(self, command):
        repo = current_domain.repository_for(Product)
        product = _load_product(repo, command.tenant_id, command.product_id, include_deleted=True)
        product.mark_deleted()
        repo.add(product)

    @handle(RestoreProduct)
    def restore_product(self, command):
        repo = current_domain.repository_for(Product)
        product = _load_product(repo, command.tenant_id, command.product_id, include_deleted=True)

        clash = repo.find_by_slug(command.tenant_id, product.slug)
        if clash and str(clash.id) != str(product.id):
            raise ValidationError(
                {"slug": [f'Cannot restore: slug "{product.slug}" is now used by another active product']}
            )

        product.restore()
        repo.add(product)

    @handle(AddVariant)
    def add_variant(self, command):
        repo = current_domain.repository_for(Product)
        product = _load_product(repo, command.tenant_id, command.product_id)
        variant = product.add_variant(
            sku=command.sku,
            options=json.loads(command.options) if command.options else None,
            price=command.price,
            stock_quantity=command.stock_quantity,
            is_active=command.is_active if command.is_active is not None else True,
        )
        repo.add(product)
        return str(variant.id)

    @handle(UpdateVariant)
    def update_variant(self, command):
        repo = current_domain.repository_for(Product)
        product = _load_product(repo, command.tenant_id, command.product_id)
        product.update_variant(command.variant_id, **json.loads(command.changes))
        repo.add(product)

    @handle(RemoveVariant)
    def remove_variant(self, command):
        repo = current_domain.repository_for(Product)
        product = _load_product(repo, command.tenant_id, command.product_id)
        product.remove_variant(command.variant_id)
        repo.add(product)
