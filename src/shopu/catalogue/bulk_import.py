"""Bulk catalogue import from CSV.

Columns::

    Category,Product Name,Variant Options,Product Description,Price,Stock,SKU,Status,Image URLs,Attributes

- `Category` is a path such as `Electronics > Phones`; every level is
  created (or reactivated) parents first.
- Rows without a product name only declare categories.
- Rows sharing a product name describe one product. Rows with
  `Variant Options` (`size:M|color:Black`) become its variants; the first
  row without options (or the first row) supplies the base product.
- `Image URLs` are separated by `|`; `Attributes` use `key:value|key:value`.
- `Status` is `ACTIVE` (default) or `INACTIVE`.

Categories are matched by name under the same parent, products by slug and
variants by SKU, so a file can be imported again to update the catalogue.
Each category and product is saved on its own: a bad row is reported and
the rest of the file still goes in.
"""

import csv
import io
import secrets
import string

import structlog
from protean.exceptions import ValidationError
from protean.utils.globals import current_domain

from shopu.catalogue.category import Category
from shopu.catalogue.product import Product
from shopu.catalogue.slugs import slugify, unique_slug

logger = structlog.get_logger(__name__)

COLUMNS = (
    "Category",
    "Product Name",
    "Variant Options",
    "Product Description",
    "Price",
    "Stock",
    "SKU",
    "Status",
    "Image URLs",
    "Attributes",
)

TEMPLATE = """Category,Product Name,Variant Options,Product Description,Price,Stock,SKU,Status,Image URLs,Attributes
Electronics,,,,,,,,,
Electronics > Phones,,,,,,,,,
Electronics > Phones,iPhone 14 Pro,,Latest iPhone with A16 Bionic chip,999.99,50,IPHONE14PRO,ACTIVE,https://example.com/iphone.jpg,brand:Apple|warranty:1 year
Electronics > Phones,iPhone 14 Pro,storage:128GB|color:Black,,999.99,30,IPHONE14PRO-128-BLK,ACTIVE,,
Electronics > Phones,iPhone 14 Pro,storage:256GB|color:Black,,1099.99,25,IPHONE14PRO-256-BLK,ACTIVE,,
Home & Garden > Furniture,Modern Sofa,,Comfortable 3-seater sofa,899.99,15,SOFA001,ACTIVE,https://example.com/sofa.jpg,material:Fabric|seats:3
"""

PATH_SEPARATOR = " > "


def _cell(row: dict, column: str) -> str:
    return (row.get(column) or "").strip()


def parse_pairs(value: str) -> dict:
    """`k1:v1|k2:v2` -> {"k1": "v1", "k2": "v2"}; malformed pairs are skipped."""
    pairs = {}
    for chunk in (value or "").split("|"):
        key, _, val = chunk.partition(":")
        if key.strip() and val.strip():
            pairs[key.strip()] = val.strip()
    return pairs


def parse_image_urls(value: str) -> list[str]:
    return [url.strip() for url in (value or "").split("|") if url.strip()]


def _price(value: str) -> float | None:
    try:
        return float(value)
    except ValueError:
        return None


def _stock(value: str) -> int:
    try:
        return max(int(float(value)), 0)
    except ValueError:
        return 0


def _generate_sku() -> str:
    return "SKU-" + "".join(secrets.choice(string.digits + string.ascii_uppercase) for _ in range(9))


def _message(exc: Exception) -> str:
    messages = getattr(exc, "messages", None)
    if isinstance(messages, dict):
        return "; ".join(f"{field}: {', '.join(map(str, errs))}" for field, errs in messages.items())
    return str(exc)


def read_rows(content: str) -> list[dict]:
    """Parse CSV text (a UTF-8 BOM is tolerated) into stripped row dicts."""
    reader = csv.DictReader(io.StringIO(content.lstrip("\ufeff")))
    if not reader.fieldnames or "Category" not in [name.strip() for name in reader.fieldnames]:
        raise ValidationError({"file": [f"CSV header must contain: {', '.join(COLUMNS)}"]})
    rows = []
    for row in reader:
        cleaned = {(key or "").strip(): (value or "").strip() for key, value in row.items() if key}
        if any(cleaned.values()):
            rows.append(cleaned)
    return rows


class CatalogueImport:
    """One import run for a tenant; collects counts and errors as it goes."""

    def __init__(self, tenant_id) -> None:
        self.tenant_id = tenant_id
        self.category_repo = current_domain.repository_for(Category)
        self.product_repo = current_domain.repository_for(Product)
        self.categories: dict[str, Category] = {}
        self.result = {
            "categories": {"created": 0, "updated": 0, "errors": []},
            "products": {"created": 0, "updated": 0, "errors": []},
            "variants": {"created": 0, "updated": 0, "errors": []},
        }

    # -------------------------------------------------------------------
    # Categories
    # -------------------------------------------------------------------
    def import_categories(self, rows: list[dict]) -> None:
        paths = set()
        for row in rows:
            parts = [p.strip() for p in _cell(row, "Category").split(">") if p.strip()]
            for depth in range(1, len(parts) + 1):
                paths.add(PATH_SEPARATOR.join(parts[:depth]))

        for path in sorted(paths, key=lambda p: (p.count(PATH_SEPARATOR), p)):
            try:
                self._import_category(path)
            except ValidationError as exc:
                logger.warning("Category import failed", path=path, error=_message(exc))
                self.result["categories"]["errors"].append({"category": path, "error": _message(exc)})

    def _import_category(self, path: str) -> None:
        parts = path.split(PATH_SEPARATOR)
        name = parts[-1]
        parent_path = PATH_SEPARATOR.join(parts[:-1]) if len(parts) > 1 else None
        parent = self.categories.get(parent_path) if parent_path else None
        if parent_path and parent is None:
            raise ValidationError({"parent": [f"Parent category '{parent_path}' could not be imported"]})
        parent_id = str(parent.id) if parent else None

        existing_categories = self.category_repo.for_tenant(self.tenant_id, include_deleted=True)
        live = [c for c in existing_categories if not c.is_deleted]
        base_slug = slugify(name)
        existing = next(
            (
                c
                for c in live
                if c.name.lower() == name.lower()
                and (str(c.parent_id) if c.parent_id else None) == parent_id
            ),
            None,
        )

        if existing:
            existing.update(name=name, is_active=True)
            self.category_repo.add(existing)
            self.result["categories"]["updated"] += 1
            category = existing
        else:
            slug = unique_slug(base_slug, {c.slug for c in existing_categories})
            category = Category.create(tenant_id=self.tenant_id, name=name, slug=slug, parent_id=parent_id)
            self.category_repo.add(category)
            self.result["categories"]["created"] += 1
        self.categories[path] = category

    # -------------------------------------------------------------------
    # Products
    # -------------------------------------------------------------------
    def import_products(self, rows: list[dict]) -> None:
        groups: dict[str, list[dict]] = {}
        for row in rows:
            name = _cell(row, "Product Name")
            if name:
                groups.setdefault(name, []).append(row)

        for name, group in groups.items():
            try:
                self._import_product(name, group)
            except ValidationError as exc:
                logger.warning("Product import failed", product=name, error=_message(exc))
                self.result["products"]["errors"].append({"product": name, "error": _message(exc)})

    def _category_id(self, row: dict) -> str | None:
        path = PATH_SEPARATOR.join(p.strip() for p in _cell(row, "Category").split(">") if p.strip())
        category = self.categories.get(path)
        return str(category.id) if category else None

    def _sku_owner(self, sku: str) -> Product | None:
        return self.product_repo.find_by_sku(self.tenant_id, sku) if sku else None

    def _import_product(self, name: str, group: list[dict]) -> None:
        variant_rows = [r for r in group if _cell(r, "Variant Options")]
        base = next((r for r in group if not _cell(r, "Variant Options")), group[0])

        price = _price(_cell(base, "Price"))
        if price is None or price < 0:
            price = 0.0
        sku = "" if _cell(base, "Variant Options") else _cell(base, "SKU")
        details = {
            "title": name,
            "description": _cell(group[0], "Product Description") or None,
            "price": price,
            "stock_quantity": _stock(_cell(base, "Stock")),
            "is_active": _cell(group[0], "Status").upper() != "INACTIVE",
            "category_id": self._category_id(group[0]),
        }
        attributes = parse_pairs(_cell(base, "Attributes"))
        images = parse_image_urls(_cell(base, "Image URLs"))

        all_products = self.product_repo.for_tenant(self.tenant_id, include_deleted=True)
        base_slug = slugify(name)
        existing = next((p for p in all_products if p.slug == base_slug and not p.is_deleted), None)

        owner = self._sku_owner(sku)
        if owner is not None and (existing is None or str(owner.id) != str(existing.id)):
            raise ValidationError({"sku": [f"SKU '{sku}' is already used by another product"]})

        if existing:
            changes = dict(details, sku=sku or existing.sku)
            if attributes:
                changes["attributes"] = attributes
            if images:
                changes["images"] = images
            existing.update(**changes)
            product = existing
            self.result["products"]["updated"] += 1
        else:
            product = Product.create(
                tenant_id=self.tenant_id,
                slug=unique_slug(base_slug, {p.slug for p in all_products}),
                sku=sku or None,
                attributes=attributes or None,
                images=images or None,
                **details,
            )
            self.result["products"]["created"] += 1

        for row in variant_rows:
            try:
                self._import_variant(product, row)
            except ValidationError as exc:
                self.result["variants"]["errors"].append(
                    {"product": name, "variant": _cell(row, "Variant Options"), "error": _message(exc)}
                )
        self.product_repo.add(product)

    def _import_variant(self, product: Product, row: dict) -> None:
        options = parse_pairs(_cell(row, "Variant Options"))
        if not options:
            raise ValidationError({"options": ["Variant options must look like key:value|key:value"]})
        sku = _cell(row, "SKU") or _generate_sku()
        price = _price(_cell(row, "Price"))
        stock = _stock(_cell(row, "Stock"))

        existing = next((v for v in product.variants if v.sku == sku), None)
        if existing:
            product.update_variant(existing.id, options=options, price=price, stock_quantity=stock, is_active=True)
            self.result["variants"]["updated"] += 1
        else:
            owner = self._sku_owner(sku)
            if owner is not None and str(owner.id) != str(product.id):
                raise ValidationError({"sku": [f"SKU '{sku}' is already used by another product"]})
            product.add_variant(sku=sku, options=options, price=price, stock_quantity=stock)
            self.result["variants"]["created"] += 1


def import_catalogue_csv(tenant_id, content: str) -> dict:
    """Import categories, products and variants for a tenant from CSV text."""
    if not content or not content.strip():
        raise ValidationError({"file": ["CSV file is empty"]})

    rows = read_rows(content)
    run = CatalogueImport(tenant_id)
    run.import_categories(rows)
    run.import_products(rows)

    logger.info(
        "Catalogue imported",
        tenant_id=str(tenant_id),
        rows=len(rows),
        categories_created=run.result["categories"]["created"],
        products_created=run.result["products"]["created"],
        variants_created=run.result["variants"]["created"],
    )
    return run.result
