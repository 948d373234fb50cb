"""Read side of the catalogue: storefront browsing and admin listings.

Storefront queries only ever see active, non-deleted products and
categories. Category filters include every subcategory of the requested
category.
"""

from protean.exceptions import ObjectNotFoundError
from protean.utils.globals import current_domain

from shopu.catalogue.category import Category
from shopu.catalogue.product import Product
from shopu.catalogue.tree import build_tree, descendant_ids
from shopu.utils.pagination import paginate

SORTABLE_FIELDS = {"created_at", "updated_at", "price", "title"}


def _visible_products(tenant_id) -> list[Product]:
    return [p for p in current_domain.repository_for(Product).for_tenant(tenant_id) if p.is_active]


def _visible_categories(tenant_id) -> list[Category]:
    return [c for c in current_domain.repository_for(Category).for_tenant(tenant_id) if c.is_active]


def _sort(products: list[Product], sort_by: str, sort_order: str) -> list[Product]:
    if sort_by not in SORTABLE_FIELDS:
        sort_by = "created_at"

    def key(product):
        value = getattr(product, sort_by)
        if isinstance(value, str):
            return value.lower()
        return value if value is not None else 0

    return sorted(products, key=key, reverse=(sort_order or "desc").lower() != "asc")


def filter_products(
    products: list[Product],
    category_ids: set[str] | None = None,
    search: str | None = None,
    min_price: float | None = None,
    max_price: float | None = None,
) -> list[Product]:
    result = []
    needle = search.strip().lower() if search else None
    for product in products:
        if category_ids is not None and str(product.category_id) not in category_ids:
            continue
        if needle and needle not in product.title.lower() and needle not in (product.description or "").lower():
            continue
        if min_price is not None and product.price < min_price:
            continue
        if max_price is not None and product.price > max_price:
            continue
        result.append(product)
    return result


def category_tree(tenant_id) -> list[dict]:
    """Active categories nested by parent, with recursive product counts."""
    counts: dict[str, int] = {}
    for product in _visible_products(tenant_id):
        if product.category_id:
            counts[str(product.category_id)] = counts.get(str(product.category_id), 0) + 1
    return build_tree(_visible_categories(tenant_id), counts)


def storefront_products(
    tenant_id,
    category_id=None,
    search=None,
    min_price=None,
    max_price=None,
    sort_by="created_at",
    sort_order="desc",
    page=1,
    limit=12,
) -> dict:
    category_ids = None
    if category_id:
        categories = _visible_categories(tenant_id)
        category_ids = {str(category_id)} | descendant_ids(categories, str(category_id))

    products = filter_products(_visible_products(tenant_id), category_ids, search, min_price, max_price)
    page_items, pagination = paginate(_sort(products, sort_by, sort_order), page, limit)
    return {
        "products": [p.to_dict(active_variants_only=True) for p in page_items],
        "pagination": pagination,
    }


def storefront_product(tenant_id, slug) -> dict:
    product = current_domain.repository_for(Product).find_by_slug(tenant_id, slug)
    if product is None or not product.is_active:
        raise ObjectNotFoundError({"product": ["Product not found"]})

    data = product.to_dict(active_variants_only=True)
    if product.category_id:
        category = current_domain.repository_for(Category).get_for_tenant(tenant_id, product.category_id)
        data["category"] = category.to_dict() if category else None
    return data


def storefront_category_products(tenant_id, category_slug, **filters) -> dict:
    category = current_domain.repository_for(Category).find_by_slug(tenant_id, category_slug)
    if category is None or not category.is_active:
        raise ObjectNotFoundError({"category": ["Category not found"]})

    result = storefront_products(tenant_id, category_id=str(category.id), **filters)
    result["category"] = category.to_dict()
    return result


def admin_products(
    tenant_id,
    search=None,
    category_id=None,
    is_active=None,
    is_deleted=None,
    sort_by="created_at",
    sort_order="desc",
    page=1,
    limit=10,
) -> dict:
    products = current_domain.repository_for(Product).for_tenant(tenant_id, include_deleted=True)
    if is_deleted is not None:
        products = [p for p in products if p.is_deleted == is_deleted]
    if is_active is not None:
        products = [p for p in products if p.is_active == is_active]

    category_ids = {str(category_id)} if category_id else None
    products = filter_products(products, category_ids, search)
    page_items, pagination = paginate(_sort(products, sort_by, sort_order), page, limit)
    return {"products": [p.to_dict() for p in page_items], "pagination": pagination}


def admin_categories(tenant_id) -> list[dict]:
    counts: dict[str, int] = {}
    for product in current_domain.repository_for(Product).for_tenant(tenant_id):
        if product.category_id:
            counts[str(product.category_id)] = counts.get(str(product.category_id), 0) + 1
    return build_tree(current_domain.repository_for(Category).for_tenant(tenant_id), counts)
